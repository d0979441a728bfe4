"""Test context lookup and persistence shared by the trackers."""

import json
import os
from datetime import datetime, timezone
from pathlib import Path

from ..errors import UploadError
from ..log import get_logger
from ..models import TrackingResult
from .uploader import ApiUploader

log = get_logger(__name__)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def current_test_name() -> str:
    """Name of the running pytest test, else a timestamped placeholder."""
    if current := os.environ.get("PYTEST_CURRENT_TEST"):
        node = current.rsplit(" ", 1)[0]
        return node.split("::")[-1]
    return f"test_{datetime.now().strftime('%Y%m%dT%H%M%S')}"


def current_spec_file() -> str:
    if current := os.environ.get("PYTEST_CURRENT_TEST"):
        return Path(current.split("::", 1)[0]).name
    return "unknown_spec_file"


async def save_tracking_result(
    result: TrackingResult,
    results_dir: Path,
    results_file: str,
    backup_file: str,
    uploader: ApiUploader | None = None,
    tracking_type: str = "mobile-navigation-tracker",
) -> Path:
    """Write ``result`` as JSON and upload it when an uploader is given.

    A failed write falls back to ``backup_file`` with the navigations only.
    Upload failures are logged; the local file is already written.
    """
    path = results_dir / results_file
    log.debug("Saving %d navigation events to %s", result.navigation_count, path)

    try:
        results_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(result.to_dict(), indent=2))
    except OSError as exc:
        log.error("Error saving results: %s", exc)
        return _save_backup(result, results_dir / backup_file)

    log.info("Results saved to %s", path)

    if uploader and result.navigations:
        if ApiUploader.validate_tracking_data(result.navigations):
            test_id = ApiUploader.extract_test_id({"session_id": result.session_id}, result.test_name)
            try:
                await uploader.upload_tracking_results(result.navigations, test_id, tracking_type)
            except UploadError as exc:
                log.error("API upload failed: %s", exc)
        else:
            log.warning("Skipping API upload due to invalid tracking data")

    return path


def _save_backup(result: TrackingResult, backup: Path) -> Path:
    simple = {
        "spec_file": result.spec_file,
        "navigations": result.to_dict()["navigations"],
        "timestamp": result.timestamp,
    }
    backup.parent.mkdir(parents=True, exist_ok=True)
    backup.write_text(json.dumps(simple, indent=2))
    log.info("Backup results saved to %s", backup)
    return backup
