"""Fixed-delay retry for async operations.

The policy is flat: a fixed wait between attempts, no jitter,
no exponential growth.  By default every exception counts as transient,
including model refusals, so a refusal is re-asked before it is surfaced.

Usage
-----
::

    url = await retry_operation(lambda: client.generate(...), retries=2)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRIES = 2
DEFAULT_DELAY_SECONDS = 2.0


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    retries: int = DEFAULT_RETRIES,
    *,
    delay: float = DEFAULT_DELAY_SECONDS,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    """Run *operation*, retrying after a fixed delay when it fails.

    The operation is awaited at most ``retries + 1`` times.  The caller does
    not get control back until it succeeds or the budget is exhausted.

    Args:
        operation: Zero-argument callable returning a fresh awaitable on
            every call.
        retries: Retries allowed after the first attempt.
        delay: Seconds to wait between attempts.
        retry_on: Exception types treated as transient.  Anything else
            propagates immediately.

    Returns:
        The operation's result.

    Raises:
        ValueError: If ``retries`` is negative.
        Exception: The last failure once the budget is exhausted.
    """
    if retries < 0:
        raise ValueError(f"retries must be >= 0, got {retries}")

    remaining = retries
    while True:
        try:
            return await operation()
        except retry_on as e:
            if remaining <= 0:
                raise
            logger.warning(
                f"Operation failed ({e}), retrying in {delay:g}s... "
                f"({remaining} attempts left)"
            )
            await asyncio.sleep(delay)
            remaining -= 1
