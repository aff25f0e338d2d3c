"""Bidirectional file sync engine.

Public API for reconciling two independently mutable file stores (a
*host* and a *remote*) into a consistent state.

Architecture
------------
The engine has no shared history between replicas.  It classifies each
path from the two metadata snapshots, their tombstones, and a single
watermark (``last_synced_at``) marking the end of the previous
successful pass.

Modules:

- ``engine``    -- ``SyncEngine``: orchestrates a full sync pass.
- ``planner``   -- ``plan()``: metadata diff into ordered ``SyncAction``s.
- ``applier``   -- ``SyncApplier``: executes actions against the stores.
- ``resolver``  -- ``ConflictResolver``: strategy selection and merging.
- ``merger``    -- Text merge via ``merge3`` library.
- ``models``    -- ``FileRecord``, ``SyncAction``, ``SyncOperation``,
  ``Strategy``, ``SyncResult``, ``SyncReport``: core data contracts.
- ``reporter``  -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from vault_sync.config import load_settings
    from vault_sync.stores import LocalFileStore
    from vault_sync.sync import (
        SyncEngine,
        format_dry_run_preview,
        format_sync_report,
    )

    settings = load_settings()
    engine = SyncEngine.from_config(
        host=LocalFileStore(Path("notes")),
        remote=remote_store,           # any FileStore implementation
        config=settings.sync,
    )

    # Dry-run first to preview changes
    preview = await engine.run(dry_run=True)
    print(format_dry_run_preview(preview))

    report = await engine.run()
    print(format_sync_report(report))
"""

from .applier import SyncApplier
from .engine import SyncEngine
from .models import (
    FileRecord,
    Strategy,
    SyncAction,
    SyncOperation,
    SyncReport,
    SyncResult,
)
from .planner import plan
from .reporter import (
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
)
from .resolver import ConflictResolver

__all__ = [
    "ConflictResolver",
    "FileRecord",
    "Strategy",
    "SyncAction",
    "SyncApplier",
    "SyncEngine",
    "SyncOperation",
    "SyncReport",
    "SyncResult",
    "format_dry_run_preview",
    "format_sync_report",
    "plan",
    "report_to_json",
]
