"""Async helpers shared by stores and the engine."""

import asyncio
import time
from typing import Any, Callable, TypeVar

T = TypeVar("T")


def now_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return time.time_ns() // 1_000_000


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a blocking function in a worker thread without stalling the loop.

    Stores use this for filesystem calls so a pass stays a single
    sequence of awaited operations.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        content = await run_sync(path.read_bytes)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
