"""SmartUI SDK - framework-agnostic snapshot capture for visual regression tests."""

from .adapters import AppiumAdapter, CypressAdapter, PlaywrightAdapter, PuppeteerAdapter, RuntimeAdapter
from .client import ServerClient
from .config import AddressPolicy, Config, load_config, resolve_server_address
from .errors import (
    ConfigurationError,
    InjectionError,
    PreconditionError,
    ServerConnectionError,
    ServerError,
    ServerUnavailableError,
    SmartUIError,
    UploadError,
)
from .injector import RuntimeInjector, SerializerInjector
from .log import get_logger, setup_logging
from .models import SnapshotResult, TestType
from .orchestrator import SnapshotOrchestrator, capture_snapshot
from .tracking import ApiUploader, NavigationTracker, UrlTracker

__version__ = "0.1.0"

__all__ = [
    "AddressPolicy",
    "ApiUploader",
    "AppiumAdapter",
    "Config",
    "ConfigurationError",
    "CypressAdapter",
    "InjectionError",
    "NavigationTracker",
    "PlaywrightAdapter",
    "PreconditionError",
    "PuppeteerAdapter",
    "RuntimeAdapter",
    "RuntimeInjector",
    "SerializerInjector",
    "ServerClient",
    "ServerConnectionError",
    "ServerError",
    "ServerUnavailableError",
    "SmartUIError",
    "SnapshotOrchestrator",
    "SnapshotResult",
    "TestType",
    "UploadError",
    "UrlTracker",
    "capture_snapshot",
    "get_logger",
    "load_config",
    "resolve_server_address",
    "setup_logging",
]
