"""Base adapter interface for automation frameworks."""

import inspect
from abc import ABC, abstractmethod
from typing import Any

from ..config import Config
from ..models import CapturedDOM, TestType

# Evaluated inside the page once the serializer has been injected.
SERIALIZE_SCRIPT = "(options) => SmartUIDOM.serialize(options)"
SERIALIZE_WITH_URL_SCRIPT = "(options) => ({dom: SmartUIDOM.serialize(options), url: document.URL})"


async def resolve(value: Any) -> Any:
    """Await ``value`` if the native API handed back an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


class RuntimeAdapter(ABC):
    """Capability interface the snapshot orchestrator drives.

    One subclass per automation framework. Subclasses translate the native
    handle (page, driver, bridge) into these few operations and nothing else.
    """

    test_type: TestType

    def __init__(self, handle: Any):
        self.handle = handle

    async def supports_scripts(self) -> bool:
        """Whether the runtime can execute the injected serializer."""
        return True

    @abstractmethod
    def check_native(self) -> bool:
        """
        Check the handle looks like the framework's native object.

        Returns:
            True if captures can be attempted with this handle
        """
        pass

    @abstractmethod
    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run ``script`` in the runtime's evaluation context."""
        pass

    @abstractmethod
    async def current_url(self) -> str:
        pass

    async def capture(self, options: dict) -> CapturedDOM:
        """Serialize the DOM with the injected serializer."""
        dom = await self.evaluate(SERIALIZE_SCRIPT, options)
        return CapturedDOM(dom=dom, url=await self.current_url())

    def skip_reason(self, config: Config) -> str | None:
        """Reason to skip capture entirely, or None to proceed."""
        return None
