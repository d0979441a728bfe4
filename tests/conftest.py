"""Shared fakes: a SmartUI server on httpx.MockTransport and mock runtime handles."""

import httpx
import pytest

from smartui_sdk.adapters.base import SERIALIZE_SCRIPT, SERIALIZE_WITH_URL_SCRIPT
from smartui_sdk.client import ServerClient
from smartui_sdk.config import Config

BASE_URL = "http://smartui.test"
SERIALIZER_SOURCE = "window.SmartUIDOM={serialize:()=>'<html/>'}"


class FakeSmartUIServer:
    """Scriptable stand-in for the SmartUI server.

    Each route maps to a (status, json body) tuple, an exception to raise,
    or a list of those consumed one per request.
    """

    def __init__(self, **routes):
        self.requests: list[httpx.Request] = []
        self.routes = {
            "/healthcheck": (200, {"data": {"cliVersion": "1.0"}}),
            "/domserializer": (200, {"data": {"dom": SERIALIZER_SOURCE}}),
            "/snapshot": (200, {"data": {"warnings": []}}),
            "/snapshot/status": (200, {"data": {"status": "completed"}}),
        }
        for name, route in routes.items():
            self.routes["/" + name.replace("__", "/")] = route

    @property
    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes[request.url.path]
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if isinstance(route, type) and issubclass(route, Exception):
            raise route("simulated transport failure", request=request)
        if isinstance(route, Exception):
            raise route
        status, body = route
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self, timeout: float = 5.0) -> ServerClient:
        return ServerClient(BASE_URL, timeout=timeout, transport=self.transport())


class MockPage:
    """Mock async Playwright page."""

    def __init__(self, url: str = "https://example.com/login", dom: str = "<html/>"):
        self.url = url
        self.dom = dom
        self.injected = False
        self.evaluated: list[str] = []
        self.fail_injection = False

    async def evaluate(self, expression, arg=None):
        self.evaluated.append(expression)
        if expression in (SERIALIZE_SCRIPT, SERIALIZE_WITH_URL_SCRIPT):
            if not self.injected:
                raise RuntimeError("ReferenceError: SmartUIDOM is not defined")
            if expression == SERIALIZE_WITH_URL_SCRIPT:
                return {"dom": self.dom, "url": self.url}
            return self.dom
        if self.fail_injection:
            raise RuntimeError("SyntaxError: Unexpected token '<'")
        self.injected = True
        return None


class MockElement:
    """Mock WebDriver element."""

    def __init__(self, driver, locator):
        self.driver = driver
        self.locator = locator

    def click(self):
        self.driver.actions.append(("click", self.locator))
        if self.locator in self.driver.click_sources:
            self.driver.page_source = self.driver.click_sources[self.locator]

    def send_keys(self, value):
        self.driver.actions.append(("send_keys", self.locator, value))


class MockDriver:
    """Mock Appium WebDriver (synchronous, like the Python client)."""

    def __init__(self, context: str = "NATIVE_APP", page_source: str = "<hierarchy/>"):
        self.session_id = "abc-123"
        self.capabilities = {
            "platformName": "Android",
            "automationName": "UiAutomator2",
            "appPackage": "com.example.app",
        }
        self.current_context = context
        self.current_url = "https://example.com/webview/page"
        self.page_source = page_source
        self.scripts: list[tuple] = []
        self.actions: list[tuple] = []
        self.click_sources: dict[tuple, str] = {}

    def execute_script(self, script, *args):
        self.scripts.append((script, args))
        if "SmartUIDOM.serialize" in script and script.startswith("return"):
            return {"dom": "<html>webview</html>", "url": self.current_url}
        return None

    def find_element(self, by, value):
        return MockElement(self, (by, value))


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep developer SMARTUI_* / LT_* variables out of the tests."""
    import os

    for key in list(os.environ):
        if key.startswith(("SMARTUI_", "LT_")):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def server() -> FakeSmartUIServer:
    return FakeSmartUIServer()


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        server_address=BASE_URL,
        tracker={"retry_attempts": 3, "retry_delay": 0, "attempt_timeout": 5, "results_dir": tmp_path / "results"},
    )
