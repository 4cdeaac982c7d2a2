"""
Retry with exponential backoff for sink deliveries.

One routine serves both the upsert and the delete path.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from eslsync.core.errors import DeliveryCancelledError, DeliveryError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


def _log_before_sleep(operation_name: str) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        logger.info(
            "delivery_retry_scheduled",
            operation=operation_name,
            attempt=retry_state.attempt_number,
            delay_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        )
    return before_sleep


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    sleep: SleepFn = asyncio.sleep,
    retry_on: Tuple[Type[BaseException], ...] = (DeliveryError,),
    operation_name: str = "delivery",
) -> T:
    """
    Run an operation, retrying failures with exponential backoff.

    The delay before retry n+1 is base_delay * 2^(n-1): 1s, 2s, ... by default.
    DeliveryCancelledError is never retried.

    Args:
        operation: Coroutine factory, called once per attempt
        max_attempts: Total attempts including the first
        base_delay: Delay before the first retry, in seconds
        sleep: Awaitable used for the backoff; may raise to abort the loop
        retry_on: Exception types that count as a failed attempt
        operation_name: Label for log events

    Returns:
        The operation's result from the first successful attempt

    Raises:
        The last failure once attempts are exhausted, or whatever the
        sleep raised when backoff was interrupted
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2),
        retry=(
            retry_if_exception_type(retry_on)
            & retry_if_not_exception_type(DeliveryCancelledError)
        ),
        sleep=sleep,
        before_sleep=_log_before_sleep(operation_name),
        reraise=True,
    )

    async for attempt in retrying:
        with attempt:
            return await operation()

    # AsyncRetrying either returns from inside the loop or raises
    raise RuntimeError("retry loop exited without a result")


class ShutdownAwareSleep:
    """
    Backoff sleep that ends early when shutdown is requested.

    Raises DeliveryCancelledError instead of returning once the shutdown
    event is set, so the retry loop stops without another attempt.
    """

    def __init__(self, shutdown_event: Optional[asyncio.Event] = None):
        self._shutdown = shutdown_event or asyncio.Event()

    @property
    def shutdown_event(self) -> asyncio.Event:
        return self._shutdown

    def trigger(self) -> None:
        """Wake every pending sleep and fail it."""
        self._shutdown.set()

    async def __call__(self, seconds: float) -> None:
        if self._shutdown.is_set():
            raise DeliveryCancelledError("Delivery aborted: shutdown in progress")
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise DeliveryCancelledError("Interrupted during retry backoff")
