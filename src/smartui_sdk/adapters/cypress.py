"""
Cypress adapter.

Cypress tests run in the browser, so the handle here is a bridge object
forwarding commands into the application window under test (AUT). It needs
three members:
  config(key)          -> Cypress.config(key)
  evaluate(script, arg)-> result of evaluating ``script`` in the AUT window
  url()                -> document.URL of the AUT
"""

from collections.abc import Mapping
from typing import Any

from ..client import ServerClient
from ..config import Config
from ..models import SnapshotResult, TestType
from ..orchestrator import capture_snapshot
from .base import RuntimeAdapter, resolve


class CypressAdapter(RuntimeAdapter):
    """Drive a Cypress bridge. Skips capture in interactive (``cypress open``) runs."""

    test_type = TestType.CYPRESS

    def __init__(self, handle: Any, test_type: TestType = TestType.CYPRESS):
        super().__init__(handle)
        self.test_type = test_type

    def check_native(self) -> bool:
        return self.handle is not None and all(
            callable(getattr(self.handle, attr, None)) for attr in ("config", "evaluate", "url")
        )

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await resolve(self.handle.evaluate(script, arg))

    async def current_url(self) -> str:
        return await resolve(self.handle.url())

    def skip_reason(self, config: Config) -> str | None:
        if not self.handle.config("isInteractive"):
            return None
        if config.interactive_mode or self.handle.config("enableSmartUIInteractiveMode"):
            return None
        return 'Disabled in interactive mode, use "cypress run" instead of "cypress open"'


async def smartui_snapshot(
    bridge: Any,
    name: str,
    options: Mapping | None = None,
    *,
    config: Config | None = None,
    client: ServerClient | None = None,
) -> SnapshotResult | None:
    """Capture the Cypress AUT and upload it to the SmartUI server as ``name``."""
    return await capture_snapshot(
        CypressAdapter(bridge), name, options, config=config, client=client
    )
