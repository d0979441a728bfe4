"""
Serializer injection.

The serializer source comes from the SmartUI server and is executed inside
the page (or webview) under test, defining ``SmartUIDOM.serialize`` there.
This is remote code running in the runtime: the server is trusted by whoever
configured its address. Stricter variants implement ``SerializerInjector``.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .errors import InjectionError
from .log import get_logger

log = get_logger(__name__)

if TYPE_CHECKING:
    from .adapters.base import RuntimeAdapter


class SerializerInjector(ABC):
    """Makes the server's serializer available inside a runtime."""

    @abstractmethod
    async def inject(self, adapter: "RuntimeAdapter", serializer_source: str) -> None:
        pass


class RuntimeInjector(SerializerInjector):
    """Evaluate the serializer directly in the runtime's global scope."""

    async def inject(self, adapter: "RuntimeAdapter", serializer_source: str) -> None:
        if not await adapter.supports_scripts():
            log.debug("Runtime cannot execute scripts; serializer not injected")
            return

        if not serializer_source:
            raise InjectionError("SmartUI server returned an empty DOM serializer")

        try:
            await adapter.evaluate(serializer_source)
        except Exception as exc:
            raise InjectionError(f"DOM serializer failed to execute: {exc}") from exc
