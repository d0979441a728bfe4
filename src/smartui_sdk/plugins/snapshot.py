"""Pytest plugin exposing a ``smartui`` fixture bound to the loaded config."""

import asyncio
from collections.abc import Callable, Mapping
from typing import Any

import pytest

from ..adapters import AppiumAdapter, CypressAdapter, PlaywrightAdapter, PuppeteerAdapter, RuntimeAdapter
from ..client import ServerClient
from ..config import Config, load_config
from ..models import SnapshotResult
from ..orchestrator import capture_snapshot

ADAPTERS: dict[str, Callable[[Any], RuntimeAdapter]] = {
    "appium": AppiumAdapter,
    "cypress": CypressAdapter,
    "playwright": PlaywrightAdapter,
    "puppeteer": PuppeteerAdapter,
}


class SnapshotSession:
    """Snapshot helper for a single test; names default to the test's name."""

    def __init__(self, config: Config, default_name: str, client: ServerClient | None = None):
        self.config = config
        self.default_name = default_name
        self.client = client

    def adapter_for(self, handle: Any, framework: str | None = None) -> RuntimeAdapter:
        if isinstance(handle, RuntimeAdapter):
            return handle
        if framework:
            return ADAPTERS[framework](handle)

        # Drivers execute scripts; pages evaluate them
        if callable(getattr(handle, "execute_script", None)):
            return AppiumAdapter(handle)
        if type(handle).__module__.startswith("pyppeteer"):
            return PuppeteerAdapter(handle)
        return PlaywrightAdapter(handle)

    async def snapshot(
        self,
        handle: Any,
        name: str | None = None,
        options: Mapping | None = None,
        framework: str | None = None,
    ) -> SnapshotResult | None:
        return await capture_snapshot(
            self.adapter_for(handle, framework),
            name or self.default_name,
            options,
            config=self.config,
            client=self.client,
        )

    def snapshot_sync(
        self,
        handle: Any,
        name: str | None = None,
        options: Mapping | None = None,
        framework: str | None = None,
    ) -> SnapshotResult | None:
        """Blocking variant for synchronous tests.

        Runs its own event loop, so it suits WebDriver handles. Playwright
        sync-API pages are rejected by the adapter.
        """
        return asyncio.run(self.snapshot(handle, name, options, framework))


@pytest.fixture(scope="session")
def smartui_config() -> Config:
    """SmartUI configuration loaded once per test session."""
    return load_config()


@pytest.fixture
def smartui(request: pytest.FixtureRequest, smartui_config: Config) -> SnapshotSession:
    """Take SmartUI snapshots from a test."""
    return SnapshotSession(smartui_config, default_name=request.node.name)
