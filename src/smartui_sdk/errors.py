"""Error taxonomy for snapshot capture."""


class SmartUIError(Exception):
    """Base class for every error raised by the SDK.

    ``snapshot_name`` is attached by the orchestrator once the error is known
    to belong to a capture call, so test-runner output can attribute it.
    """

    retryable: bool = True

    def __init__(self, message: str, *, snapshot_name: str | None = None):
        super().__init__(message)
        self.message = message
        self.snapshot_name = snapshot_name

    def __str__(self) -> str:
        if self.snapshot_name:
            return f'Snapshot capture failed "{self.snapshot_name}": {self.message}'
        return self.message


class PreconditionError(SmartUIError, ValueError):
    """Missing or invalid snapshot name or runtime handle."""

    retryable = False


class ConfigurationError(SmartUIError):
    """The SDK cannot be configured as requested."""

    retryable = False


class ServerConnectionError(SmartUIError, ConnectionError):
    """The server could not be reached, or the request timed out."""


class ServerUnavailableError(SmartUIError):
    """The health check failed or did not report a CLI version."""


class ServerError(SmartUIError):
    """The server answered with a status outside [200, 300)."""

    def __init__(self, message: str, *, status: int, snapshot_name: str | None = None):
        super().__init__(message, snapshot_name=snapshot_name)
        self.status = status


class InjectionError(SmartUIError):
    """The serializer script failed inside the target runtime."""


class UploadError(SmartUIError):
    """Uploading navigation tracking data failed."""


# Raised to the caller even when raise_errors is disabled
ALWAYS_RAISED = (PreconditionError, ServerUnavailableError)
