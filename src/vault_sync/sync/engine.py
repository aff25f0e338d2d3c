"""Core sync engine that orchestrates one bidirectional sync pass.

The ``SyncEngine`` ties together the stores, planner, applier, and
watermark into a complete pass.  It:

1. Loads the watermark (``last_synced_at``, 0 if never synced).
2. Lists files (tombstones included) on both stores.
3. Drops excluded paths from both listings.
4. Plans the actions.
5. Applies them one at a time, in plan order.
6. Advances the watermark to the pass timestamp.
7. Builds and returns a ``SyncReport``.

Error handling is per-pass: the first failing action aborts the pass and
the error propagates.  Actions applied before the failure stay applied;
the watermark is left unchanged so the next pass re-plans from fresh
metadata.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from vault_sync.codec import ContentCodec
from vault_sync.core.async_utils import now_ms
from vault_sync.exceptions import SyncInProgressError
from vault_sync.globs import ExcludeFilter
from vault_sync.state import WatermarkStore
from vault_sync.sync.applier import SyncApplier
from vault_sync.sync.models import FileRecord, SyncReport, SyncResult
from vault_sync.sync.planner import plan
from vault_sync.sync.resolver import ConflictResolver

if TYPE_CHECKING:
    from vault_sync.config_schema import SyncConfig
    from vault_sync.stores.base import FileStore

logger = logging.getLogger(__name__)


class SyncEngine:
    """Run sync passes between a host and a remote store.

    The engine refuses to start a pass while another pass on the same
    instance is running; callers sharing stores across engines must
    serialise passes themselves.

    Args:
        host: The host store.
        remote: The remote store.
        resolver: Conflict resolver.
        watermark_store: Persistence for ``last_synced_at``.
        exclude: Paths matching this filter are ignored on both sides.
        codec: Transform applied around merged content.
    """

    def __init__(
        self,
        host: FileStore,
        remote: FileStore,
        resolver: ConflictResolver,
        watermark_store: WatermarkStore,
        exclude: ExcludeFilter | None = None,
        codec: ContentCodec | None = None,
    ) -> None:
        self.host = host
        self.remote = remote
        self.watermark_store = watermark_store
        self.exclude = exclude or ExcludeFilter()
        self.applier = SyncApplier(host, remote, resolver, codec)
        self._in_progress = False

    @classmethod
    def from_config(
        cls,
        host: FileStore,
        remote: FileStore,
        config: SyncConfig,
        codec: ContentCodec | None = None,
    ) -> SyncEngine:
        """Build an engine from the ``sync`` config section."""
        return cls(
            host=host,
            remote=remote,
            resolver=ConflictResolver(
                config.resolution_strategies,
                config.fallback_conflict_resolution_strategy,
            ),
            watermark_store=WatermarkStore(Path(config.state_dir)),
            exclude=ExcludeFilter(config.exclude_globs),
            codec=codec,
        )

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(self, dry_run: bool = False) -> SyncReport:
        """Execute one sync pass.

        Args:
            dry_run: If ``True``, plan the actions but do not apply them
                and do not advance the watermark.  Stores are still
                listed, so their own listing bookkeeping may be updated.

        Returns:
            A ``SyncReport`` describing what was (or would be) done.

        Raises:
            SyncInProgressError: If a pass is already running.
            StaleWriteError: A store saw a concurrent modification.
            ResolutionError: A conflict strategy is not recognised.
            StoreIOError: A store operation failed.
        """
        if self._in_progress:
            raise SyncInProgressError("A sync pass is already running")

        self._in_progress = True
        try:
            return await self._run(dry_run)
        finally:
            self._in_progress = False

    async def _run(self, dry_run: bool) -> SyncReport:
        started_at = datetime.now(timezone.utc).isoformat()
        watermark = self.watermark_store.load()
        now = now_ms()

        host_files = self._filter(await self.host.list_files())
        remote_files = self._filter(await self.remote.list_files())
        logger.debug(
            "Current status: %d host files, %d remote files",
            len(host_files),
            len(remote_files),
        )
        logger.debug("Last synced at %d, now %d", watermark, now)

        actions = plan(host_files, remote_files, watermark)
        logger.info(
            "Planned %d actions%s",
            len(actions),
            " (dry run)" if dry_run else "",
        )

        if dry_run:
            return SyncReport(
                watermark=watermark,
                now=now,
                dry_run=True,
                results=[
                    SyncResult(path=a.path, operation=a.operation)
                    for a in actions
                ],
                started_at=started_at,
                completed_at=datetime.now(timezone.utc).isoformat(),
            )

        results: list[SyncResult] = []
        for action in actions:
            try:
                results.append(await self.applier.apply(action, now))
            except Exception as exc:
                logger.error(
                    "Sync pass aborted at %s (%s): %s",
                    action.path,
                    action.operation.value,
                    exc,
                )
                raise

        self.watermark_store.save(now)

        return SyncReport(
            watermark=watermark,
            now=now,
            results=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _filter(self, files: list[FileRecord]) -> list[FileRecord]:
        if not self.exclude.active:
            return files
        kept = [f for f in files if not self.exclude.is_excluded(f.path)]
        if len(kept) != len(files):
            logger.debug("Excluded %d paths", len(files) - len(kept))
        return kept
