"""Async helpers for bridging blocking calls into the event loop."""

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Used for the blocking ``requests`` calls made by identity providers.

    Example:
        identity = await run_sync(provider.sign_in_anonymously)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
