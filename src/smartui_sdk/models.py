"""Core data models for the SmartUI SDK."""

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class TestType(str, Enum):
    """Automation framework that produced a snapshot."""

    __test__ = False  # not a pytest test class

    CYPRESS = "cypress-driver"
    JS_CYPRESS = "js-cypress-driver"
    PUPPETEER = "js-puppeteer-driver"
    PLAYWRIGHT = "js-playwright-driver"
    APPIUM = "appium-driver"


class CaptureState(Enum):
    """States a single capture call moves through."""

    IDLE = "idle"
    CHECKING_AVAILABILITY = "checking_availability"
    FETCHING_SERIALIZER = "fetching_serializer"
    CAPTURING = "capturing"
    UPLOADING = "uploading"
    DONE = "done"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class CapturedDOM:
    """Serialized DOM as produced by the server's serializer, plus its URL."""

    dom: Any  # opaque, schema owned by the server
    url: str


@dataclass
class Snapshot:
    """The snapshot part of an upload request."""

    dom: Any
    url: str
    name: str
    options: dict = field(default_factory=dict)


@dataclass
class SnapshotRequest:
    """Body of ``POST /snapshot``."""

    snapshot: Snapshot
    test_type: TestType

    def to_payload(self) -> dict:
        return {
            "snapshot": asdict(self.snapshot),
            "testType": self.test_type.value,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload())


@dataclass
class SnapshotResponse:
    """A response from the SmartUI server."""

    status: int
    body: Any = None
    headers: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def data(self) -> dict:
        if isinstance(self.body, dict) and isinstance(self.body.get("data"), dict):
            return self.body["data"]
        return {}

    @property
    def warnings(self) -> list[str]:
        return list(self.data.get("warnings") or [])

    @property
    def cli_version(self) -> str | None:
        return self.data.get("cliVersion")

    @property
    def serializer_source(self) -> str | None:
        return self.data.get("dom")

    @property
    def error_message(self) -> str | None:
        """The server's ``error.message``, if the body carries one."""
        if isinstance(self.body, dict):
            error = self.body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return None


@dataclass
class SnapshotResult:
    """Outcome of a successful capture call."""

    name: str
    url: str
    test_type: TestType
    warnings: list[str] = field(default_factory=list)


@dataclass
class Navigation:
    """A single transition recorded by a tracker.

    The Appium tracker stores screen names; the URL tracker stores URLs.
    """

    previous_screen: str
    current_screen: str
    timestamp: str
    navigation_type: str
    spec_file: str
    test_name: str


@dataclass
class TrackingResult:
    """Everything the navigation tracker persists for one session."""

    spec_file: str
    test_name: str
    session_id: str
    navigations: list[Navigation]
    timestamp: str
    save_timestamp: str

    @property
    def navigation_count(self) -> int:
        return len(self.navigations)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["navigation_count"] = self.navigation_count
        return data
