"""Core helpers shared between stores and the sync engine."""

from .async_utils import now_ms, run_sync

__all__ = ["now_ms", "run_sync"]
