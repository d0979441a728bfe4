"""URL tracking for Playwright pages."""

import time
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from ..config import Config, load_config
from ..log import get_logger
from ..models import Navigation, TrackingResult
from .results import current_spec_file, current_test_name, now_iso, save_tracking_result
from .uploader import ApiUploader

log = get_logger(__name__)

RESULTS_FILE = "url-tracking-results.json"
BACKUP_FILE = "url-tracking-backup.json"

NULL_URL = "null"
_BLANK_URLS = ("", "null", "about:blank")


def normalize_url(url: str | None) -> str:
    if url is None or url in _BLANK_URLS:
        return NULL_URL
    return url


def is_hash_change(old: str, new: str) -> bool:
    """True when only the fragment differs between ``old`` and ``new``."""
    if NULL_URL in (old, new):
        return False
    before, after = urlsplit(old), urlsplit(new)
    return before._replace(fragment="") == after._replace(fragment="") and before.fragment != after.fragment


class UrlTracker:
    """Record the main-frame URL history of a Playwright page.

    Main-frame navigations arrive through the page's ``framenavigated``
    event. Events closer together than ``tracker.url_debounce`` seconds are
    dropped. Results are saved and uploaded in the same format as the
    Appium navigation tracker, with URLs in the screen fields.
    """

    def __init__(
        self,
        page: Any,
        config: Config | None = None,
        *,
        uploader: ApiUploader | None = None,
        test_name: str | None = None,
        spec_file: str | None = None,
    ):
        self.page = page
        self.config = config or load_config()
        self.track_hash_changes = self.config.tracker.track_hash_changes
        self.debounce = self.config.tracker.url_debounce
        self.results_dir = Path(self.config.tracker.results_dir)

        if uploader is None and self.config.upload.enabled:
            uploader = ApiUploader.from_config(self.config.upload)
        self.uploader = uploader

        self._test_name = test_name
        self._spec_file = spec_file
        self.session_id = f"session_{self.test_name()}_{int(time.time() * 1000)}"
        self.navigations: list[Navigation] = []
        self.last_url = NULL_URL
        self.started = False
        self._pending_type: str | None = None
        self._last_event = 0.0

    def test_name(self) -> str:
        return self._test_name or current_test_name()

    def spec_file(self) -> str:
        return self._spec_file or current_spec_file()

    @property
    def current_url(self) -> str:
        return self.last_url

    async def start(self) -> None:
        """Record the page's initial URL and subscribe to navigations."""
        if self.started:
            return

        self.last_url = normalize_url(self.page.url)
        if self.last_url != NULL_URL:
            self._record(NULL_URL, self.last_url, "page_load")

        self.page.on("framenavigated", self._on_frame_navigated)
        self.started = True
        log.debug("URL tracker started for %s", self.test_name())

    async def stop(self) -> None:
        """Unsubscribe and record the final URL if it moved unnoticed."""
        if not self.started:
            return

        self.page.remove_listener("framenavigated", self._on_frame_navigated)
        self.started = False

        final = normalize_url(self.page.url)
        if final not in (NULL_URL, self.last_url):
            self._record(self.last_url, final, "final")
            self.last_url = final

    async def __aenter__(self) -> "UrlTracker":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    def _on_frame_navigated(self, frame: Any) -> None:
        if frame is not self.page.main_frame:
            return

        new_url = normalize_url(frame.url)
        if new_url in (NULL_URL, self.last_url):
            return

        now = time.monotonic()
        if self._last_event and now - self._last_event < self.debounce:
            log.debug("Navigation to %s dropped (debounced)", new_url)
            return
        self._last_event = now

        old_url, self.last_url = self.last_url, new_url
        pending, self._pending_type = self._pending_type, None
        if is_hash_change(old_url, new_url):
            if not self.track_hash_changes:
                return
            navigation_type = "hash_change"
        else:
            navigation_type = pending or "navigation"

        self._record(old_url, new_url, navigation_type)

    def record_navigation(self, url: str, navigation_type: str = "manual_record") -> None:
        """Record a navigation the page events did not report."""
        new_url = normalize_url(url)
        if new_url == NULL_URL or new_url == self.last_url:
            return
        old_url, self.last_url = self.last_url, new_url
        self._record(old_url, new_url, navigation_type)

    async def go_back(self, **kwargs) -> Any:
        self._pending_type = "back"
        return await self.page.go_back(**kwargs)

    async def go_forward(self, **kwargs) -> Any:
        self._pending_type = "forward"
        return await self.page.go_forward(**kwargs)

    async def reload(self, **kwargs) -> Any:
        response = await self.page.reload(**kwargs)
        self._record(self.last_url, self.last_url, "refresh")
        return response

    def _record(self, old_url: str, new_url: str, navigation_type: str) -> None:
        self.navigations.append(Navigation(
            previous_screen=old_url,
            current_screen=new_url,
            timestamp=now_iso(),
            navigation_type=navigation_type,
            spec_file=self.spec_file(),
            test_name=self.test_name(),
        ))
        log.info("%s → %s (%s)", old_url, new_url, navigation_type)

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
        """Write the URL history to disk and upload it when an uploader is set."""
        return await save_tracking_result(
            self.tracking_result(),
            self.results_dir,
            RESULTS_FILE,
            BACKUP_FILE,
            self.uploader,
            tracking_type="url-tracker",
        )
