"""Exception hierarchy for vault_sync.

- ``VaultSyncError``: base class for everything raised by the package.
- ``StaleWriteError``: optimistic-concurrency violation detected by a store.
- ``ResolutionError``: unknown or misconfigured conflict strategy.
- ``StoreIOError``: underlying read/write/enumerate failure in a store.
- ``SyncInProgressError``: a second pass was started on a busy engine.
- ``ConfigError``: a config file cannot be loaded or holds invalid sync
  settings.
"""

from __future__ import annotations


class VaultSyncError(Exception):
    """Base class for vault_sync errors."""


class StaleWriteError(VaultSyncError):
    """The target changed since the metadata snapshot was taken.

    Attributes:
        path: Store-relative path of the target.
        expected: The ``updated_at`` the caller believed was current.
        actual: The ``updated_at`` the store actually holds.
    """

    def __init__(self, path: str, expected: int, actual: int) -> None:
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"File has been modified since last sync: {path} "
            f"(expected updated_at={expected}, found {actual})"
        )


class ResolutionError(VaultSyncError):
    """Conflict strategy is not recognised."""

    def __init__(self, strategy: object) -> None:
        self.strategy = strategy
        super().__init__(f"Invalid resolution strategy: {strategy!r}")


class StoreIOError(VaultSyncError):
    """A store could not read, write, or enumerate a path."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Store I/O failed for '{path}': {reason}")


class SyncInProgressError(VaultSyncError):
    """A sync pass is already running on this engine."""


class ConfigError(VaultSyncError):
    """A config file is unreadable or declares invalid sync settings.

    Attributes:
        source: The file (or file chain) the problem was found in.
    """

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"{source}: {message}")
