"""
Deadlines for external calls.

Policy queries, directory lookups and email sends all run under a
caller-overridable timeout. A timed-out call raises
``OperationTimeoutException`` and writes nothing.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from servicedesk.core.exceptions import OperationTimeoutException

T = TypeVar("T")


async def with_deadline(
    awaitable: Awaitable[T],
    timeout_seconds: Optional[float],
    operation: str,
) -> T:
    """Await ``awaitable``, failing after ``timeout_seconds`` (None = no limit)."""
    if timeout_seconds is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        raise OperationTimeoutException(operation, timeout_seconds) from exc
