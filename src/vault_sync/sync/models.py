"""Pydantic models for the bidirectional sync engine.

Defines the core data contracts used across all sync modules:

- ``FileRecord``: Metadata of one path in one store (live or tombstone).
- ``SyncOperation``: Enum of possible sync operations.
- ``Strategy``: Enum of conflict resolution strategies.
- ``SyncAction``: One planned operation for a divergent path.
- ``SyncResult``: Outcome of applying one action.
- ``SyncReport``: Aggregate results for a full sync pass.

All models are frozen (immutable) for safety.  Timestamps are integer
epoch milliseconds.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class SyncOperation(str, Enum):
    """Possible sync operations for a host/remote pair."""

    PRUNE = "prune"
    REMOVE = "remove"
    CONFLICT = "conflict"
    PUSH = "push"
    PULL = "pull"


class Strategy(str, Enum):
    """Conflict resolution strategies."""

    RESOLVE = "resolve"
    IGNORE = "ignore"
    LATEST = "latest"
    OLDEST = "oldest"
    ALWAYS_PULL = "always-pull"
    ALWAYS_PUSH = "always-push"


class FileRecord(BaseModel):
    """Metadata for one path as observed in one store.

    Attributes:
        path: Normalised relative path, unique within a snapshot.
        size: Byte length (0 for tombstones).
        created_at: Creation instant.
        updated_at: Last modification instant.
        deleted_at: Deletion instant, meaningful only when ``deleted``.
        deleted: True if this record is a tombstone.
    """

    path: str
    size: int = 0
    created_at: int = 0
    updated_at: int = 0
    deleted_at: int = 0
    deleted: bool = False

    model_config = {"frozen": True}

    @classmethod
    def tombstone(cls, path: str, deleted_at: int) -> FileRecord:
        """Build a tombstone record for *path*."""
        return cls(
            path=path,
            size=0,
            created_at=deleted_at,
            updated_at=deleted_at,
            deleted_at=deleted_at,
            deleted=True,
        )


class SyncAction(BaseModel):
    """A single planned operation.

    At least one of ``host_file`` / ``remote_file`` is set; both refer to
    the same path when both are present.
    """

    host_file: FileRecord | None = None
    remote_file: FileRecord | None = None
    operation: SyncOperation

    model_config = {"frozen": True}

    @property
    def path(self) -> str:
        record = self.host_file or self.remote_file
        return record.path if record is not None else ""

    def redispatch(self, operation: SyncOperation) -> SyncAction:
        """Return a copy of this action carrying *operation*."""
        return self.model_copy(update={"operation": operation})


class SyncResult(BaseModel):
    """Result of applying one action.

    Attributes:
        path: Path the action applied to.
        operation: The planned operation.
        strategy: Strategy chosen for a conflict, else ``None``.
        effective_operation: The operation actually executed after
            strategy re-dispatch; ``None`` when nothing was written.
    """

    path: str
    operation: SyncOperation
    strategy: Strategy | None = None
    effective_operation: SyncOperation | None = None

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for a full sync pass.

    Attributes:
        watermark: The ``last_synced_at`` value used for classification.
        now: Timestamp the pass stamped its writes with.
        dry_run: Whether this was a dry-run (no changes applied).
        results: One entry per planned action.
        started_at: ISO 8601 timestamp when the pass started.
        completed_at: ISO 8601 timestamp when the pass completed.
    """

    watermark: int
    now: int
    dry_run: bool = False
    results: list[SyncResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def _with(self, operation: SyncOperation) -> list[SyncResult]:
        return [r for r in self.results if r.operation == operation]

    @property
    def pushed(self) -> list[SyncResult]:
        """Results where action is PUSH."""
        return self._with(SyncOperation.PUSH)

    @property
    def pulled(self) -> list[SyncResult]:
        """Results where action is PULL."""
        return self._with(SyncOperation.PULL)

    @property
    def removed(self) -> list[SyncResult]:
        """Results where action is REMOVE."""
        return self._with(SyncOperation.REMOVE)

    @property
    def pruned(self) -> list[SyncResult]:
        """Results where action is PRUNE."""
        return self._with(SyncOperation.PRUNE)

    @property
    def conflicts(self) -> list[SyncResult]:
        """Results where action is CONFLICT."""
        return self._with(SyncOperation.CONFLICT)

    def summary(self) -> str:
        """Format a human-readable summary of the sync pass.

        Returns:
            Multi-line summary string with counts by action.
        """
        lines = [
            "Sync report" + (" (dry run)" if self.dry_run else ""),
            f"  Pushed:    {len(self.pushed)}",
            f"  Pulled:    {len(self.pulled)}",
            f"  Removed:   {len(self.removed)}",
            f"  Pruned:    {len(self.pruned)}",
            f"  Conflicts: {len(self.conflicts)}",
            f"  Total:     {len(self.results)}",
        ]
        return "\n".join(lines)
