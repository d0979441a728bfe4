"""
Appium adapter.

Appium (and Selenium) drivers are synchronous and every command is a round
trip to the driver server, so each call is pushed onto a worker thread.
In a WEBVIEW context the page is serialized like a browser; in the
NATIVE_APP context the structural XML dump (``page_source``) is the snapshot.
"""

import asyncio
from collections.abc import Mapping
from typing import Any

from ..client import ServerClient
from ..config import Config
from ..models import CapturedDOM, SnapshotResult, TestType
from ..orchestrator import capture_snapshot
from .base import RuntimeAdapter

# execute_script runs a function body, not an arrow function
WEBVIEW_SERIALIZE_SCRIPT = (
    "return {dom: SmartUIDOM.serialize(arguments[0] || {}), url: document.URL};"
)

APP_ID_CAPABILITIES = ("appPackage", "appium:appPackage", "bundleId", "appium:bundleId")


class AppiumAdapter(RuntimeAdapter):
    """Drive an Appium (or Selenium) WebDriver."""

    test_type = TestType.APPIUM

    def check_native(self) -> bool:
        return self.handle is not None and (
            callable(getattr(self.handle, "execute_script", None))
            or hasattr(self.handle, "page_source")
        )

    async def context(self) -> str:
        """Current Appium context name, or "" for plain WebDriver sessions."""
        context = await asyncio.to_thread(getattr, self.handle, "current_context", None)
        return str(context or "")

    async def supports_scripts(self) -> bool:
        context = await self.context()
        if not context:
            return callable(getattr(self.handle, "execute_script", None))
        return not context.upper().startswith("NATIVE_APP")

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        args = () if arg is None else (arg,)
        return await asyncio.to_thread(self.handle.execute_script, script, *args)

    async def current_url(self) -> str:
        if not await self.supports_scripts():
            return self.app_url()

        # Appium Python client exposes current_url; WebdriverIO-style handles use getUrl
        url = await asyncio.to_thread(getattr, self.handle, "current_url", None)
        if url and not callable(url):
            return url
        for method in ("get_url", "getUrl"):
            if callable(getattr(self.handle, method, None)):
                return await asyncio.to_thread(getattr(self.handle, method))
        return self.app_url()

    def app_url(self) -> str:
        caps = getattr(self.handle, "capabilities", None) or {}
        for key in APP_ID_CAPABILITIES:
            if caps.get(key):
                return f"app://{caps[key]}"
        return "app://native"

    async def capture(self, options: dict) -> CapturedDOM:
        if await self.supports_scripts():
            result = await self.evaluate(WEBVIEW_SERIALIZE_SCRIPT, options)
            return CapturedDOM(dom=result["dom"], url=result["url"])

        source = await asyncio.to_thread(getattr, self.handle, "page_source")
        return CapturedDOM(dom=source, url=self.app_url())


async def smartui_snapshot(
    driver: Any,
    name: str,
    options: Mapping | None = None,
    *,
    config: Config | None = None,
    client: ServerClient | None = None,
) -> SnapshotResult | None:
    """Capture the current screen of ``driver`` and upload it as ``name``."""
    return await capture_snapshot(
        AppiumAdapter(driver), name, options, config=config, client=client
    )
