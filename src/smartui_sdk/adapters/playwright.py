"""Playwright adapter for ``playwright.async_api`` pages."""

import inspect
from collections.abc import Mapping
from typing import Any

from ..client import ServerClient
from ..config import Config
from ..errors import PreconditionError
from ..models import SnapshotResult, TestType
from ..orchestrator import capture_snapshot
from .base import RuntimeAdapter


class PlaywrightAdapter(RuntimeAdapter):
    """Drive a Playwright page through ``page.evaluate``."""

    test_type = TestType.PLAYWRIGHT

    def check_native(self) -> bool:
        evaluate = getattr(self.handle, "evaluate", None)
        if self.handle is None or not callable(evaluate):
            return False
        # The sync API refuses to run inside an asyncio loop
        if not inspect.iscoroutinefunction(evaluate):
            raise PreconditionError(
                "Playwright sync API pages are not supported; "
                "use a page from playwright.async_api."
            )
        return True

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self.handle.evaluate(script, arg)

    async def current_url(self) -> str:
        # ``Page.url`` is a property in the Python bindings
        return self.handle.url


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
        PlaywrightAdapter(page), name, options, config=config, client=client
    )
