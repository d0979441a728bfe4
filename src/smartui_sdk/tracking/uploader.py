"""Upload navigation tracking results to the LambdaTest insights API."""

import base64
import os
import time
from collections.abc import Mapping, Sequence
from dataclasses import asdict, is_dataclass

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..config import DEFAULT_INSIGHTS_ENDPOINT, UploadConfig
from ..errors import SmartUIError, UploadError
from ..log import get_logger

log = get_logger(__name__)

REQUIRED_NAVIGATION_FIELDS = (
    "spec_file",
    "test_name",
    "previous_screen",
    "current_screen",
    "timestamp",
    "navigation_type",
)


class ApiUploader:
    """Basic-auth uploader with exponential-backoff retries."""

    def __init__(
        self,
        api_endpoint: str = DEFAULT_INSIGHTS_ENDPOINT,
        username: str | None = None,
        access_key: str | None = None,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_endpoint = api_endpoint
        self.username = username or os.environ.get("LT_USERNAME")
        self.access_key = access_key or os.environ.get("LT_ACCESS_KEY")
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: UploadConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ApiUploader":
        return cls(
            api_endpoint=config.api_endpoint,
            username=config.username,
            access_key=config.access_key,
            timeout=config.timeout,
            retry_attempts=config.retry_attempts,
            retry_delay=config.retry_delay,
            transport=transport,
        )

    @property
    def auth_token(self) -> str | None:
        if not self.username or not self.access_key:
            return None
        credentials = f"{self.username}:{self.access_key}"
        return base64.b64encode(credentials.encode()).decode()

    async def upload_tracking_results(
        self,
        navigations: Sequence,
        test_id: str,
        tracking_type: str = "mobile-navigation-tracker",
    ) -> httpx.Response:
        """POST navigations for ``test_id``, retrying transient failures."""
        log.info("Uploading tracking results for test: %s", test_id)

        token = self.auth_token
        if token is None:
            raise UploadError(
                "No authentication credentials provided. Set LT_USERNAME and "
                "LT_ACCESS_KEY environment variables or pass username/access_key."
            )

        payload = {
            "keyName": "test_id",
            "keyValue": test_id,
            "data": {"navigations": [_as_dict(nav) for nav in navigations]},
            "type": tracking_type,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Basic {token}",
            "User-Agent": "smartui-sdk-python",
        }

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=self.retry_delay),
            retry=retry_if_exception(_is_retryable),
            before_sleep=self._log_failed_attempt,
            reraise=True,
        )
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as http:
            async for attempt in retrying:
                with attempt:
                    response = await self._post(http, payload, headers)
                    log.info("Upload successful")
                    return response

    async def _post(self, http: httpx.AsyncClient, payload: dict, headers: dict) -> httpx.Response:
        try:
            response = await http.post(self.api_endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise UploadError(f"Request timeout after {self.timeout:g}s") from exc
        except httpx.TransportError as exc:
            raise UploadError(f"Request failed: {exc}") from exc

        if not response.is_success:
            raise UploadError(f"HTTP {response.status_code}: {response.reason_phrase}")
        return response

    def _log_failed_attempt(self, retry_state) -> None:
        log.error(
            "Upload attempt %d/%d failed: %s",
            retry_state.attempt_number,
            self.retry_attempts,
            retry_state.outcome.exception(),
        )

    @staticmethod
    def validate_tracking_data(navigations: Sequence | None) -> bool:
        """Check there is something worth uploading."""
        if navigations is None:
            log.warning("No tracking data provided")
            return False
        if len(navigations) == 0:
            log.warning("No navigation entries to upload")
            return False

        invalid = [
            nav for nav in navigations
            if not all(name in _as_dict(nav) for name in REQUIRED_NAVIGATION_FIELDS)
        ]
        if invalid:
            log.warning("Found %d invalid navigation entries missing required fields", len(invalid))
        return True

    @staticmethod
    def extract_test_id(metadata: Mapping | None, test_name: str | None = None) -> str:
        """Pick a session/build/test id from metadata, else derive one from the test name."""
        if metadata:
            nested = metadata.get("data") or {}
            for key in ("session_id", "build_id", "test_id"):
                if metadata.get(key):
                    return str(metadata[key])
                if nested.get(key):
                    return str(nested[key])
        return f"{test_name or 'unknown_test'}_{int(time.time() * 1000)}"


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, SmartUIError) and exc.retryable


def _as_dict(navigation) -> dict:
    if is_dataclass(navigation):
        return asdict(navigation)
    return dict(navigation)
