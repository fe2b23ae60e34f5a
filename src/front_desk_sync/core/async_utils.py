"""Async utilities for bridging blocking HTTP calls to the event loop."""

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    The sync engine runs on a single cooperative loop; outbound ``requests``
    calls go through here so only the issuing task is suspended while the
    drain tick, connectivity poll and UI callbacks keep being serviced.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        # In the outbox drain:
        await run_sync(client.send_client_event, event.to_client_event())
    """
    return await asyncio.to_thread(func, *args, **kwargs)
