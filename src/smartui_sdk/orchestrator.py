"""Snapshot orchestration: the capture protocol shared by every adapter."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .client import ServerClient
from .config import Config, load_config
from .errors import ALWAYS_RAISED, InjectionError, PreconditionError, ServerUnavailableError, SmartUIError
from .injector import RuntimeInjector, SerializerInjector
from .log import get_logger
from .models import CaptureState, Snapshot, SnapshotRequest, SnapshotResult

if TYPE_CHECKING:
    from .adapters.base import RuntimeAdapter

log = get_logger(__name__)


@dataclass
class CaptureRun:
    """State of one capture call. Never shared between calls."""

    name: Any
    state: CaptureState = CaptureState.IDLE
    history: list[CaptureState] = field(default_factory=lambda: [CaptureState.IDLE])

    def transition(self, state: CaptureState) -> None:
        log.debug("%s: %s -> %s", self.name, self.state.value, state.value)
        self.state = state
        self.history.append(state)


class SnapshotOrchestrator:
    """Drive a capture call from availability check to upload.

    The orchestrator holds no per-call state, so one instance can serve
    concurrent captures. It never retries; see ``NavigationTracker.snapshot``
    for a bounded retry wrapper.
    """

    def __init__(
        self,
        client: ServerClient,
        config: Config | None = None,
        injector: SerializerInjector | None = None,
    ):
        self.client = client
        self.config = config or load_config()
        self.injector = injector or RuntimeInjector()

    async def capture(
        self,
        adapter: "RuntimeAdapter",
        name: Any,
        options: Mapping | None = None,
    ) -> SnapshotResult | None:
        """
        Capture and upload one snapshot.

        Returns:
            The result, or None when the capture was skipped, or failed while
            ``raise_errors`` is disabled. Precondition and availability
            failures are raised regardless
        """
        run = CaptureRun(name)
        try:
            return await self._run(run, adapter, name, options)
        except SmartUIError as exc:
            run.transition(CaptureState.FAILED)
            if isinstance(name, str) and name:
                exc.snapshot_name = name
            if self.config.raise_errors or isinstance(exc, ALWAYS_RAISED):
                raise
            log.error('SmartUI snapshot failed "%s"', name)
            log.error(exc.message)
            return None

    async def _run(
        self,
        run: CaptureRun,
        adapter: "RuntimeAdapter",
        name: Any,
        options: Mapping | None,
    ) -> SnapshotResult | None:
        options = _validate(adapter, name, options)

        if reason := adapter.skip_reason(self.config):
            log.info("Snapshot skipped: %s (%s)", name, reason)
            run.transition(CaptureState.SKIPPED)
            return None

        run.transition(CaptureState.CHECKING_AVAILABILITY)
        try:
            health = await self.client.check_health()
        except SmartUIError as exc:
            log.debug("Health check failed: %s", exc)
            raise ServerUnavailableError("Cannot find SmartUI server.") from exc
        if not health.cli_version:
            raise ServerUnavailableError("Cannot find SmartUI server.")

        run.transition(CaptureState.FETCHING_SERIALIZER)
        serializer = await self.client.fetch_serializer()
        await self.injector.inject(adapter, serializer.serializer_source or "")

        run.transition(CaptureState.CAPTURING)
        try:
            captured = await adapter.capture(options)
        except SmartUIError:
            raise
        except Exception as exc:
            raise InjectionError(f"DOM serialization failed: {exc}") from exc

        run.transition(CaptureState.UPLOADING)
        request = SnapshotRequest(
            snapshot=Snapshot(dom=captured.dom, url=captured.url, name=name, options=options),
            test_type=adapter.test_type,
        )
        response = await self.client.post_snapshot(request)

        log.info("Snapshot captured: %s", name)
        warnings = response.warnings
        for warning in warnings:
            log.warning(warning)

        run.transition(CaptureState.DONE)
        return SnapshotResult(
            name=name,
            url=captured.url,
            test_type=adapter.test_type,
            warnings=warnings,
        )


def _validate(adapter: "RuntimeAdapter", name: Any, options: Mapping | None) -> dict:
    if not isinstance(name, str) or not name:
        raise PreconditionError("The `name` argument is required.")
    if adapter is None or not adapter.check_native():
        framework = adapter.test_type.value if adapter is not None else "runtime"
        raise PreconditionError(f"A {framework} runtime handle is required.")
    if options is None:
        return {}
    if not isinstance(options, Mapping):
        raise PreconditionError("The `options` argument must be a mapping.")
    return dict(options)


async def capture_snapshot(
    adapter: "RuntimeAdapter",
    name: Any,
    options: Mapping | None = None,
    *,
    config: Config | None = None,
    client: ServerClient | None = None,
) -> SnapshotResult | None:
    """One-shot capture: builds a client from config unless one is supplied."""
    config = config or load_config()
    if client is not None:
        return await SnapshotOrchestrator(client, config).capture(adapter, name, options)

    async with ServerClient.from_config(config) as owned:
        return await SnapshotOrchestrator(owned, config).capture(adapter, name, options)
