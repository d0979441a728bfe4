"""Tests for the navigation results uploader."""

import asyncio
import base64
import json

import httpx
import pytest

from smartui_sdk.config import UploadConfig
from smartui_sdk.errors import UploadError
from smartui_sdk.models import Navigation
from smartui_sdk.tracking.uploader import ApiUploader

ENDPOINT = "https://insights.test/tracking"


def _navigation(current="Home Screen") -> Navigation:
    return Navigation(
        previous_screen="App Start",
        current_screen=current,
        timestamp="2026-01-01T00:00:00+00:00",
        navigation_type="user_interaction",
        spec_file="test_login.py",
        test_name="test_login",
    )


class RecordingApi:
    """Insights API stand-in returning the queued statuses in order."""

    def __init__(self, *statuses):
        self.statuses = list(statuses) or [200]
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return httpx.Response(status, json={"ok": status < 400})

    def uploader(self, **kwargs) -> ApiUploader:
        kwargs.setdefault("username", "alice")
        kwargs.setdefault("access_key", "secret")
        kwargs.setdefault("retry_delay", 0)
        return ApiUploader(ENDPOINT, transport=httpx.MockTransport(self.handler), **kwargs)


class TestUpload:
    """Request shape and retries."""

    def test_posts_payload_with_basic_auth(self):
        api = RecordingApi()

        asyncio.run(api.uploader().upload_tracking_results([_navigation()], "abc-123"))

        request = api.requests[0]
        expected = base64.b64encode(b"alice:secret").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"
        assert request.headers["User-Agent"] == "smartui-sdk-python"

        body = json.loads(request.content)
        assert body["keyName"] == "test_id"
        assert body["keyValue"] == "abc-123"
        assert body["type"] == "mobile-navigation-tracker"
        assert body["data"]["navigations"][0]["current_screen"] == "Home Screen"

    def test_retries_until_success(self):
        api = RecordingApi(503, 502, 200)

        response = asyncio.run(api.uploader().upload_tracking_results([_navigation()], "abc-123"))

        assert response.status_code == 200
        assert len(api.requests) == 3

    def test_gives_up_after_attempts(self):
        api = RecordingApi(500)

        with pytest.raises(UploadError, match="HTTP 500"):
            asyncio.run(api.uploader(retry_attempts=2).upload_tracking_results([_navigation()], "abc-123"))

        assert len(api.requests) == 2

    def test_missing_credentials(self):
        api = RecordingApi()
        uploader = ApiUploader(ENDPOINT, transport=httpx.MockTransport(api.handler))

        with pytest.raises(UploadError, match="LT_USERNAME"):
            asyncio.run(uploader.upload_tracking_results([_navigation()], "abc-123"))

        assert api.requests == []

    def test_credentials_from_environment(self, monkeypatch):
        monkeypatch.setenv("LT_USERNAME", "bob")
        monkeypatch.setenv("LT_ACCESS_KEY", "key")

        assert ApiUploader().auth_token == base64.b64encode(b"bob:key").decode()

    def test_from_config(self):
        config = UploadConfig(enabled=True, api_endpoint=ENDPOINT, username="u", access_key="k", retry_attempts=5)

        uploader = ApiUploader.from_config(config)

        assert uploader.api_endpoint == ENDPOINT
        assert uploader.retry_attempts == 5
        assert uploader.auth_token is not None


class TestHelpers:
    """Validation and test id extraction."""

    def test_validate_tracking_data(self):
        assert ApiUploader.validate_tracking_data([_navigation()])
        assert not ApiUploader.validate_tracking_data([])
        assert not ApiUploader.validate_tracking_data(None)

    def test_incomplete_entries_still_upload(self):
        assert ApiUploader.validate_tracking_data([{"current_screen": "Home"}])

    @pytest.mark.parametrize("metadata, expected", [
        ({"session_id": "s-1", "build_id": "b-1"}, "s-1"),
        ({"build_id": "b-1"}, "b-1"),
        ({"data": {"test_id": "t-1"}}, "t-1"),
    ])
    def test_extract_test_id(self, metadata, expected):
        assert ApiUploader.extract_test_id(metadata) == expected

    def test_extract_test_id_fallback(self):
        assert ApiUploader.extract_test_id({}, "test_login").startswith("test_login_")
        assert ApiUploader.extract_test_id(None).startswith("unknown_test_")
