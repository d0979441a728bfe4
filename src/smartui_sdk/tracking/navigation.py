"""Navigation tracking and retried snapshots for Appium sessions."""

import asyncio
import hashlib
import time
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..adapters.appium import AppiumAdapter
from ..client import ServerClient
from ..config import Config, load_config
from ..errors import ALWAYS_RAISED, ServerConnectionError, SmartUIError
from ..log import get_logger
from ..models import Navigation, SnapshotResult, TrackingResult
from ..orchestrator import SnapshotOrchestrator
from .results import current_spec_file, current_test_name, now_iso, save_tracking_result
from .uploader import ApiUploader

log = get_logger(__name__)

RESULTS_FILE = "navigation-tracking.json"
BACKUP_FILE = "navigation-tracking-backup.json"

# Selector prefixes understood by click_and_track / set_value_and_track
_XPATH_START = ("/", "(")


def parse_selector(selector: str) -> tuple[str, str]:
    """Translate a WebdriverIO-style selector into a (by, value) locator."""
    if selector.startswith("~"):
        return "accessibility id", selector[1:]
    if selector.startswith("#"):
        return "id", selector[1:]
    if selector.startswith(_XPATH_START):
        return "xpath", selector
    if "=" in selector:
        by, _, value = selector.partition("=")
        return by.strip(), value.strip()
    return "accessibility id", selector


class NavigationTracker:
    """Follow screen transitions of one driver session and take snapshots.

    The session is the driver handle plus the current test label and the
    ordered navigation events recorded against it.
    """

    def __init__(
        self,
        driver: Any,
        config: Config | None = None,
        *,
        client: ServerClient | None = None,
        screen_map: Mapping[str, str] | None = None,
        screen_markers: Mapping[str, list[str]] | None = None,
        uploader: ApiUploader | None = None,
        min_check_interval: float = 0.3,
        settle_delay: float = 0.3,
    ):
        self.driver = driver
        self.config = config or load_config()
        self.adapter = AppiumAdapter(driver)
        self.screen_map = dict(screen_map or {})
        self.screen_markers = dict(screen_markers or {})
        self.min_check_interval = min_check_interval
        self.settle_delay = settle_delay
        self.results_dir = Path(self.config.tracker.results_dir)

        # Retries need the orchestrator to raise; non-throwing mode is applied here
        self._client = client or ServerClient.from_config(self.config)
        self._owns_client = client is None
        self.orchestrator = SnapshotOrchestrator(
            self._client, self.config.model_copy(update={"raise_errors": True})
        )

        if uploader is None and self.config.upload.enabled:
            uploader = ApiUploader.from_config(self.config.upload)
            log.info("API upload enabled")
        self.uploader = uploader

        self.session_id = self._extract_session_id()
        self.platform_name = self._detect_platform()
        self.navigations: list[Navigation] = []
        self.current_screen = ""
        self._current_test: str | None = None
        self._last_action = ""
        self._last_source_hash = ""
        self._last_check = 0.0

        self.results_dir.mkdir(parents=True, exist_ok=True)
        self._add_navigation("", "App Start", "test_start")
        log.debug("NavigationTracker ready: session %s on %s", self.session_id, self.platform_name)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _extract_session_id(self) -> str:
        session = getattr(self.driver, "session", None)
        caps = getattr(self.driver, "capabilities", None) or {}
        for candidate in (
            getattr(self.driver, "session_id", None),
            getattr(session, "id", None),
            caps.get("sessionId"),
        ):
            if candidate:
                return str(candidate)
        return f"session_{int(time.time() * 1000)}"

    def _detect_platform(self) -> str:
        caps = getattr(self.driver, "capabilities", None) or {}
        automation = str(caps.get("automationName") or caps.get("appium:automationName") or "").lower()
        platform = str(caps.get("platformName") or caps.get("appium:platformName") or "").lower()

        if "android" in automation or platform == "android":
            return "Android"
        if "ios" in automation or "xcuitest" in automation or platform == "ios":
            return "iOS"
        return "Unknown"

    # Test context

    def set_current_test(self, test_name: str) -> None:
        self._current_test = test_name
        log.info("Test context set: %s", test_name)

    def test_name(self) -> str:
        return self._current_test or current_test_name()

    def spec_file(self) -> str:
        return current_spec_file()

    # Navigation

    def _add_navigation(self, previous: str, current: str, navigation_type: str) -> None:
        if self.navigations and self.navigations[-1].current_screen == current:
            return

        self.navigations.append(Navigation(
            previous_screen=previous,
            current_screen=current,
            timestamp=now_iso(),
            navigation_type=navigation_type,
            spec_file=self.spec_file(),
            test_name=self.test_name(),
        ))
        self.current_screen = current
        log.info("%s → %s", previous or "(start)", current)

    async def record_user_action(self, element_id: str) -> None:
        """Record an interaction; a mapped element moves to its screen."""
        self._last_action = element_id
        log.debug("User action recorded: %s", element_id)

        screen = self.screen_map.get(element_id)
        if screen and screen != self.current_screen:
            self._add_navigation(self.current_screen, screen, "user_interaction")

    async def before_click(self, element_id: str) -> None:
        if element_id in self.screen_map:
            self._last_action = element_id

    async def after_click(self) -> None:
        await asyncio.sleep(self.settle_delay)
        await self.track_navigation()

    async def track_navigation(self) -> None:
        """Check the current screen and record a change, at most every ``min_check_interval``."""
        now = time.monotonic()
        if self._last_check and now - self._last_check < self.min_check_interval:
            log.debug("Skipping navigation check (throttled)")
            return
        self._last_check = now

        screen = await self.current_screen_name()
        if screen and screen != self.current_screen:
            self._add_navigation(self.current_screen, screen, "navigation_detected")

    async def current_screen_name(self) -> str:
        # A recent mapped action wins over page-source inspection
        if inferred := self.screen_map.get(self._last_action):
            self._last_action = ""
            return inferred

        try:
            source = await asyncio.to_thread(getattr, self.driver, "page_source", "")
        except Exception as exc:
            log.debug("Could not get page source: %s", exc)
            source = ""

        if source:
            digest = hashlib.sha1(source.encode()).hexdigest()
            if digest == self._last_source_hash:
                return self.current_screen
            self._last_source_hash = digest

            if detected := self.identify_screen(source):
                return detected

            if "webview" in source.lower():
                try:
                    url = await self.adapter.current_url()
                except Exception as exc:
                    log.debug("Could not get current URL: %s", exc)
                else:
                    if url:
                        return f"WebView: {url.rstrip('/').rsplit('/', 1)[-1] or url}"

        return f"Screen at {datetime.now().strftime('%H:%M:%S')}"

    def identify_screen(self, page_source: str) -> str | None:
        """First screen whose markers all appear in ``page_source``."""
        for screen, markers in self.screen_markers.items():
            if markers and all(marker in page_source for marker in markers):
                return screen
        return None

    async def click_and_track(self, selector: str, element_name: str | None = None) -> None:
        by, value = parse_selector(selector)
        action = element_name or value
        element = await asyncio.to_thread(self.driver.find_element, by, value)

        await self.record_user_action(value)
        await self.before_click(action)
        await asyncio.to_thread(element.click)
        await self.after_click()
        log.info("Clicked and tracked: %s", action)

    async def set_value_and_track(self, selector: str, value: str, element_name: str | None = None) -> None:
        by, locator = parse_selector(selector)
        element = await asyncio.to_thread(self.driver.find_element, by, locator)

        await self.record_user_action(locator)
        await asyncio.to_thread(element.send_keys, value)
        log.info("Set value and tracked: %s = %s", element_name or locator, value)

    # Snapshots

    async def snapshot(self, name: str, options: Mapping | None = None) -> SnapshotResult | None:
        """Capture the current screen, retrying transient failures.

        Each attempt is bounded by ``tracker.attempt_timeout``; only the last
        attempt's error surfaces.
        """
        settings = self.config.tracker
        retrying = AsyncRetrying(
            stop=stop_after_attempt(settings.retry_attempts),
            wait=wait_exponential(multiplier=settings.retry_delay, max=30),
            retry=retry_if_exception(_is_retryable),
            before_sleep=lambda state: log.warning(
                "Snapshot attempt %d/%d failed: %s",
                state.attempt_number,
                settings.retry_attempts,
                state.outcome.exception(),
            ),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._snapshot_attempt(name, options)
        except SmartUIError as exc:
            if self.config.raise_errors or isinstance(exc, ALWAYS_RAISED):
                raise
            log.error(str(exc))
            return None

    async def _snapshot_attempt(self, name: str, options: Mapping | None) -> SnapshotResult | None:
        timeout = self.config.tracker.attempt_timeout
        try:
            return await asyncio.wait_for(
                self.orchestrator.capture(self.adapter, name, options), timeout
            )
        except asyncio.TimeoutError as exc:
            raise ServerConnectionError(
                f"Snapshot attempt timed out after {timeout:g} seconds",
                snapshot_name=name,
            ) from exc

    # Persistence

    def tracking_result(self) -> TrackingResult:
        now = now_iso()
        return TrackingResult(
            spec_file=self.spec_file(),
            test_name=self.test_name(),
            session_id=self.session_id,
            navigations=list(self.navigations),
            timestamp=now,
            save_timestamp=now,
        )

    async def save_results(self) -> Path:
        """Write the session to disk and upload it when an uploader is set."""
        return await save_tracking_result(
            self.tracking_result(), self.results_dir, RESULTS_FILE, BACKUP_FILE, self.uploader
        )


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, SmartUIError) and exc.retryable

