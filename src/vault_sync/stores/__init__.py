"""File store implementations.

- ``base``   -- ``FileStore`` protocol.
- ``memory`` -- ``MemoryFileStore``: dictionary-backed replica.
- ``local``  -- ``LocalFileStore``: directory-backed replica with a
  persisted tombstone history.
"""

from .base import FileStore
from .local import LocalFileStore
from .memory import MemoryFileStore

__all__ = ["FileStore", "LocalFileStore", "MemoryFileStore"]
