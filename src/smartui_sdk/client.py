"""
Async HTTP client for the SmartUI server.

Endpoints (base = resolved server address):
  GET  /healthcheck        -> {"data": {"cliVersion": "..."}}
  GET  /domserializer      -> {"data": {"dom": "<serializer source>"}}
  POST /snapshot           -> {"data": {"warnings": [...]}}
  GET  /snapshot/status    -> processing status for a context id

Each method issues exactly one request. Nothing here retries.
"""

from typing import Any

import httpx

from .config import Config, load_config, resolve_server_address
from .errors import ServerConnectionError, ServerError
from .log import get_logger
from .models import SnapshotRequest, SnapshotResponse

log = get_logger(__name__)


class ServerClient:
    """Thin typed façade over the SmartUI server's HTTP API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: Config | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ServerClient":
        """Build a client, resolving the server address exactly once."""
        config = config or load_config()
        return cls(resolve_server_address(config), timeout=config.timeout, transport=transport)

    async def __aenter__(self) -> "ServerClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def check_health(self) -> SnapshotResponse:
        return await self._request("GET", "/healthcheck")

    async def fetch_serializer(self) -> SnapshotResponse:
        return await self._request("GET", "/domserializer")

    async def post_snapshot(self, request: SnapshotRequest) -> SnapshotResponse:
        return await self._request(
            "POST",
            "/snapshot",
            content=request.to_json(),
            headers={"Content-Type": "application/json"},
        )

    async def get_snapshot_status(self, context_id: str, timeout: float = 600) -> SnapshotResponse:
        """Poll the processing status of a snapshot context.

        A timeout is reported as a synthetic 408 response rather than raised,
        since a slow status call usually means the snapshot is still processing.
        """
        try:
            return await self._request(
                "GET",
                "/snapshot/status",
                params={"contextId": context_id},
                timeout=timeout,
            )
        except ServerConnectionError as exc:
            if not isinstance(exc.__cause__, httpx.TimeoutException):
                raise
            return SnapshotResponse(
                status=408,
                body=f"Request timed out after {timeout:g} seconds-> Snapshot still processing",
            )

    async def _request(self, method: str, path: str, **kwargs: Any) -> SnapshotResponse:
        log.debug("%s %s%s", method, self.base_url, path)
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise ServerConnectionError(
                f"Request to {path} timed out after {kwargs.get('timeout', self.timeout):g} seconds"
            ) from exc
        except httpx.TransportError as exc:
            raise ServerConnectionError(str(exc) or exc.__class__.__name__) from exc

        response = SnapshotResponse(
            status=resp.status_code,
            body=_decode_body(resp),
            headers=dict(resp.headers),
        )
        if not response.ok:
            message = response.error_message or f"HTTP {resp.status_code}: {resp.reason_phrase}"
            raise ServerError(message, status=resp.status_code)
        return response


def _decode_body(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text
