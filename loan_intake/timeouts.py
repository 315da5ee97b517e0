"""Timeout bound for calls into external services."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loan_intake.exceptions import LoanIntakeError

T = TypeVar("T")


async def call_with_timeout(
    awaitable: Awaitable[T],
    timeout: float,
    on_timeout: Callable[[], LoanIntakeError],
) -> T:
    """Await ``awaitable`` for at most ``timeout`` seconds.

    A timeout is never a partial success: it is converted into the error
    built by ``on_timeout`` so callers see the component's own failure kind.

    Args:
        awaitable: The external call to bound.
        timeout: Limit in seconds.
        on_timeout: Factory for the error raised when the limit is hit.

    Returns:
        Whatever the awaitable returns.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as exc:
        raise on_timeout() from exc
