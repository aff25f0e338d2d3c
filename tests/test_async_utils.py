"""
Tests for async_utils module.

Covers run_sync and now_ms.
"""

import threading
import time

from vault_sync.core.async_utils import now_ms, run_sync


def _sync_add(a: int, b: int) -> int:
    """Simple sync function for testing."""
    return a + b


async def test_run_sync_calls_function():
    """run_sync delegates to asyncio.to_thread with correct args."""
    result = await run_sync(_sync_add, 3, 4)
    assert result == 7


async def test_run_sync_passes_kwargs():
    """run_sync forwards keyword arguments."""

    def _kw_func(*, name: str) -> str:
        return f"hello {name}"

    result = await run_sync(_kw_func, name="world")
    assert result == "hello world"


async def test_run_sync_uses_worker_thread():
    main = threading.get_ident()
    worker = await run_sync(threading.get_ident)
    assert worker != main


def test_now_ms_is_epoch_milliseconds():
    before = int(time.time() * 1000)
    value = now_ms()
    after = int(time.time() * 1000)
    assert isinstance(value, int)
    assert before - 1 <= value <= after + 1
