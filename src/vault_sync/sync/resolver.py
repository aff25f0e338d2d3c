"""Conflict classification and text merging.

``ConflictResolver`` answers two questions for a path both sides changed:

- ``classify()``: which ``Strategy`` applies.  Text files always get
  ``Strategy.RESOLVE``; everything else is matched against the configured
  rules (first match wins) before falling back to the default strategy.
- ``merge()``: the merged text for ``Strategy.RESOLVE``.

``strategy_to_operation()`` maps a non-merging strategy to the plain
push/pull operation the applier re-dispatches to.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Iterable

from vault_sync.exceptions import ResolutionError
from vault_sync.globs import match_path
from vault_sync.sync.merger import generate_diff, merge_by_age
from vault_sync.sync.models import FileRecord, Strategy, SyncOperation

if TYPE_CHECKING:
    from vault_sync.config_schema import ConflictRule

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS: frozenset[str] = frozenset(
    {
        "md",
        "txt",
        "json",
        "yaml",
        "yml",
        "toml",
        "ini",
        "conf",
        "cfg",
        "config",
        "properties",
        "env",
    }
)


def coerce_strategy(value: Strategy | str) -> Strategy:
    """Convert a configured strategy string to ``Strategy``.

    Raises:
        ResolutionError: If *value* is not a known strategy.
    """
    if isinstance(value, Strategy):
        return value
    try:
        return Strategy(str(value).strip())
    except ValueError:
        raise ResolutionError(value) from None


def is_text_file(path: str) -> bool:
    """Return ``True`` if the extension of *path* marks it as text.

    The extension is whatever follows the last ``.`` of the file name,
    so dotfiles such as ``.env`` count as text.
    """
    name = PurePosixPath(path).name
    if "." not in name:
        return False
    return name.rsplit(".", 1)[1].lower() in TEXT_EXTENSIONS


def strategy_to_operation(
    strategy: Strategy, host_file: FileRecord, remote_file: FileRecord
) -> SyncOperation | None:
    """Map a strategy to the operation it re-dispatches to.

    Returns ``None`` for ``IGNORE``.  Equal timestamps count as "host is
    not older": ``LATEST`` pushes and ``OLDEST`` pulls.

    Raises:
        ResolutionError: For ``RESOLVE`` (handled by merging, not by
            re-dispatch) or an unknown strategy.
    """
    host_older = host_file.updated_at < remote_file.updated_at
    match strategy:
        case Strategy.IGNORE:
            return None
        case Strategy.LATEST:
            return SyncOperation.PULL if host_older else SyncOperation.PUSH
        case Strategy.OLDEST:
            return SyncOperation.PUSH if host_older else SyncOperation.PULL
        case Strategy.ALWAYS_PULL:
            return SyncOperation.PULL
        case Strategy.ALWAYS_PUSH:
            return SyncOperation.PUSH
    raise ResolutionError(strategy)


class ConflictResolver:
    """Pick a strategy for conflicting paths and merge text content.

    Args:
        rules: Conflict rules in declared order.  Each rule's ``glob``
            may hold several comma-separated patterns.
        fallback: Strategy used when no rule matches.
    """

    def __init__(
        self,
        rules: Iterable[ConflictRule] = (),
        fallback: Strategy | str = Strategy.LATEST,
    ) -> None:
        self.rules: list[tuple[str, str]] = [
            (pattern.strip(), rule.strategy)
            for rule in rules
            for pattern in rule.glob.split(",")
            if pattern.strip()
        ]
        self.fallback = fallback

    def classify(
        self, host_file: FileRecord, remote_file: FileRecord
    ) -> Strategy:
        """Return the strategy for a conflicting pair.

        Both records share a path; the host path is the one matched.

        Raises:
            ResolutionError: If the matched or fallback strategy is
                unknown, or is ``resolve`` for a non-text path.
        """
        path = host_file.path
        if is_text_file(path):
            return Strategy.RESOLVE

        for pattern, strategy in self.rules:
            if match_path(path, pattern):
                logger.debug(
                    "Rule %r matched %s -> %s", pattern, path, strategy
                )
                return self._replacement_strategy(strategy, path)

        return self._replacement_strategy(self.fallback, path)

    @staticmethod
    def _replacement_strategy(value: Strategy | str, path: str) -> Strategy:
        # Non-text content is only ever replaced whole, never merged.
        strategy = coerce_strategy(value)
        if strategy == Strategy.RESOLVE:
            logger.error("Cannot merge non-text file %s", path)
            raise ResolutionError(value)
        return strategy

    def merge(
        self,
        host_file: FileRecord,
        remote_file: FileRecord,
        host_text: str,
        remote_text: str,
    ) -> str:
        """Merge host and remote text, newer snapshot applied over older."""
        if host_file.updated_at < remote_file.updated_at:
            older, newer = host_text, remote_text
        else:
            older, newer = remote_text, host_text

        merged = merge_by_age(older, newer)
        if logger.isEnabledFor(logging.DEBUG) and merged != newer:
            logger.debug(
                "Merge of %s differs from newer snapshot:\n%s",
                host_file.path,
                generate_diff(newer, merged, "newer", "merged"),
            )
        return merged
