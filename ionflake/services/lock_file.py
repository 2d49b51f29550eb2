"""Lock file persistence.

The lock file records the revision each git input resolved to, so later
evaluations resolve the same snapshots.

Format:
    {"version": 1, "inputs": {"<name>": {"locator": "...", "rev": "..."}}}
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path

from ..errors import ResolutionError
from ..models.inputs import ResolvedInput

logger = logging.getLogger(__name__)

LOCK_VERSION = 1


def load_lock(path: Path) -> dict[str, tuple[str, str]]:
    """Load locked revisions.

    Returns:
        Input name mapped to (locator, rev); empty if the file does not exist

    Raises:
        ResolutionError: If the lock file is unreadable or of another version
    """
    if not path.exists():
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ResolutionError(f"Cannot read lock file {path}: {e}") from e

    if data.get("version") != LOCK_VERSION:
        raise ResolutionError(f"Unsupported lock file version in {path}: {data.get('version')}")

    return {name: (entry["locator"], entry["rev"]) for name, entry in data.get("inputs", {}).items()}


def write_lock(path: Path, resolved: Mapping[str, ResolvedInput]) -> None:
    """Write the revisions of the resolved git inputs.

    Inputs without a revision (local paths, fsspec downloads) are not locked.
    """
    inputs = {
        name: {"locator": item.locator, "rev": item.rev}
        for name, item in sorted(resolved.items())
        if item.rev is not None
    }
    path.write_text(json.dumps({"version": LOCK_VERSION, "inputs": inputs}, indent=2) + "\n", encoding="utf-8")
    logger.info(f"Wrote {len(inputs)} locked inputs to {path}")
