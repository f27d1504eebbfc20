"""JSON snapshot persistence for the annotation store.

A snapshot is a single JSON file holding the four entity collections. The
location can be overridden with the ``QUALCODE_SNAPSHOT_PATH`` environment
variable; otherwise ``persistence.snapshot_path`` from settings is used.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Sequence

from src.annotation.store import AnnotationStore

logger = logging.getLogger(__name__)

_SNAPSHOT_ENV_VAR = "QUALCODE_SNAPSHOT_PATH"
_DEFAULT_SNAPSHOT_PATH = "data/workspace.json"
SNAPSHOT_VERSION = 1


class SnapshotError(RuntimeError):
    """Raised when a snapshot file cannot be read or has the wrong shape."""


def get_snapshot_path(settings: Optional[Any] = None) -> Path:
    """Return where snapshots are read from and written to."""

    override = os.getenv(_SNAPSHOT_ENV_VAR)
    if override:
        return Path(override)
    persistence = getattr(settings, "persistence", None) if settings is not None else None
    if persistence is not None:
        return Path(persistence.snapshot_path)
    return Path(_DEFAULT_SNAPSHOT_PATH)


def save_snapshot(store: AnnotationStore, path: str | Path) -> Path:
    """Write the store's collections to ``path`` and return the path."""

    snapshot_path = Path(path)
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)

    payload = {"version": SNAPSHOT_VERSION, **store.snapshot()}
    tmp_path = snapshot_path.with_suffix(snapshot_path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    os.replace(tmp_path, snapshot_path)
    logger.info(f"Saved snapshot to {snapshot_path}")
    return snapshot_path


def load_snapshot(path: str | Path, palette: Sequence[str], **store_kwargs: Any) -> AnnotationStore:
    """Build a store from a snapshot file.

    A missing file yields an empty store. A file that is not a JSON object,
    whose entities are missing required fields, or whose quote offsets or
    comment timestamps are invalid raises :class:`SnapshotError`.
    """

    snapshot_path = Path(path)
    if not snapshot_path.exists():
        logger.info(f"No snapshot at {snapshot_path}; starting with an empty workspace")
        return AnnotationStore(palette=palette, **store_kwargs)

    try:
        data = json.loads(snapshot_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SnapshotError(f"Failed to read snapshot {snapshot_path}: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot {snapshot_path} must contain a JSON object")

    try:
        return AnnotationStore.from_snapshot(data, palette=palette, **store_kwargs)
    except (KeyError, TypeError, ValueError) as e:
        raise SnapshotError(f"Malformed snapshot {snapshot_path}: {e}") from e
