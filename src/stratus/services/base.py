"""Timeout handling shared by node loads."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from stratus.services.errors import LoadTimeoutError
from stratus.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def execute_with_timeout(
    operation: Callable[[], Awaitable[T]],
    operation_name: str,
    timeout: float,
) -> T:
    """Execute an operation bounded by a timeout.

    Cancellation of the caller is propagated unchanged; only the timeout
    expiring is converted.

    Args:
        operation: Async callable to execute
        operation_name: Human-readable operation name for logging
        timeout: Timeout in seconds

    Returns:
        Result of the operation

    Raises:
        LoadTimeoutError: If the operation did not finish in time
    """
    logger.debug(f"Executing {operation_name} (timeout {timeout}s)")
    try:
        return await asyncio.wait_for(operation(), timeout=timeout)
    except TimeoutError as e:
        logger.warning(f"{operation_name} timed out after {timeout}s")
        raise LoadTimeoutError(
            f"{operation_name} timed out after {timeout:.0f} seconds. "
            "Check your network connection and try again."
        ) from e
