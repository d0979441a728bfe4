"""Puppeteer adapter for pyppeteer-style pages."""

from collections.abc import Mapping
from typing import Any

from ..client import ServerClient
from ..config import Config
from ..models import CapturedDOM, SnapshotResult, TestType
from ..orchestrator import capture_snapshot
from .base import SERIALIZE_WITH_URL_SCRIPT, RuntimeAdapter, resolve


class PuppeteerAdapter(RuntimeAdapter):
    """Drive a Puppeteer page through ``page.evaluate``."""

    test_type = TestType.PUPPETEER

    def check_native(self) -> bool:
        return self.handle is not None and callable(getattr(self.handle, "evaluate", None))

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if arg is None:
            # pyppeteer guesses whether a string is a function; the serializer
            # bundle is an expression and must be forced as one.
            return await resolve(self.handle.evaluate(script, force_expr=True))
        return await resolve(self.handle.evaluate(script, arg))

    async def current_url(self) -> str:
        return await resolve(self.handle.url)

    async def capture(self, options: dict) -> CapturedDOM:
        result = await self.evaluate(SERIALIZE_WITH_URL_SCRIPT, options)
        return CapturedDOM(dom=result["dom"], url=result["url"])


async def smartui_snapshot(
    page: Any,
    name: str,
    options: Mapping | None = None,
    *,
    config: Config | None = None,
    client: ServerClient | None = None,
) -> SnapshotResult | None:
    """Capture ``page`` and upload it to the SmartUI server as ``name``."""
    return await capture_snapshot(
        PuppeteerAdapter(page), name, options, config=config, client=client
    )
