"""Sync state persistence layer.

Manages the JSON state file that carries the sync watermark
(``last_synced_at``) between passes, stored as ``sync_state.json`` in the
configured state directory.

Key design choices:

* **Atomic writes** -- ``atomic_write_json()`` writes to a temp file then
  calls ``os.replace()`` so readers never see partial data.  The local
  store's tombstone history uses the same helper.
* **Read once, write once** -- the engine calls ``load()`` at the start
  of a pass and ``save()`` only after every action has been applied.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from vault_sync.exceptions import StoreIOError

logger = logging.getLogger(__name__)

STATE_FILENAME = "sync_state.json"


def atomic_write_json(target: Path, data: Any) -> None:
    """Write *data* as JSON to *target* atomically.

    Creates the parent directory if it does not exist.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        dir=str(target.parent), suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
        os.replace(tmp_path, target)
    except BaseException:
        # Clean up temp file on any failure.
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def read_json(path: Path, default: Any) -> Any:
    """Load JSON from *path*, returning *default* if the file is missing."""
    if not path.exists():
        return default
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


class WatermarkStore:
    """Load and save the sync watermark.

    Args:
        state_dir: Directory holding ``sync_state.json``.
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = Path(state_dir)

    @property
    def path(self) -> Path:
        return self._state_dir / STATE_FILENAME

    def load(self) -> int:
        """Return ``last_synced_at``, or ``0`` if never synced.

        Raises:
            StoreIOError: If the state file is unreadable or malformed.
        """
        try:
            state = read_json(self.path, {})
            value = state.get("last_synced_at") or 0
            return int(value)
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            raise StoreIOError(
                str(self.path), f"bad sync state: {exc}"
            ) from exc

    def save(self, last_synced_at: int) -> None:
        """Persist *last_synced_at* atomically."""
        state = {
            "version": 1,
            "last_synced_at": int(last_synced_at),
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }
        atomic_write_json(self.path, state)
        logger.debug("Watermark advanced to %d", last_synced_at)
