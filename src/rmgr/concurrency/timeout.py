import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from rmgr.config.logging_config import get_logger

T = TypeVar("T")

log = get_logger(__name__)


class TimeoutError(Exception):
    """Raised when an operation does not settle within its deadline."""

    def __init__(self, timeout_seconds: float, message: str | None = None):
        self.timeout_seconds = timeout_seconds
        self.message = message or f"Operation timed out after {timeout_seconds}s"
        super().__init__(self.message)


def _log_late_outcome(future: asyncio.Future[Any]) -> None:
    if future.cancelled():
        log.debug("Timed out operation was cancelled after its deadline")
        return
    exc = future.exception()
    if exc is not None:
        log.debug(f"Timed out operation failed after its deadline: {exc!r}")
    else:
        log.debug("Timed out operation completed after its deadline; result discarded")


async def _race(
    awaitable: Awaitable[T],
    seconds: float,
    exception_message: str | None = None,
) -> T:
    """
    Race an awaitable against a timer without cancelling it.

    Unlike asyncio.wait_for, the awaitable keeps running when the deadline
    expires; only the caller stops waiting for it.
    """
    future = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({future}, timeout=seconds)
    except asyncio.CancelledError:
        future.add_done_callback(_log_late_outcome)
        raise
    if future in done:
        return future.result()
    future.add_done_callback(_log_late_outcome)
    raise TimeoutError(seconds, exception_message)


def timeout(
    seconds: float,
    exception_message: str | None = None,
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """
    Decorator that bounds an async function by a deadline.

    The decorated call raises TimeoutError once `seconds` elapse. The
    underlying coroutine is not cancelled.

    Example:
        @timeout(5.0)
        async def connect():
            return await open_connection("db.internal", 5432)

        try:
            conn = await connect()
        except TimeoutError:
            conn = None
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return await _race(func(*args, **kwargs), seconds, exception_message)

        return wrapper

    return decorator


def with_deadline(
    action: Callable[..., Awaitable[T]],
    seconds: float | None,
    exception_message: str | None = None,
) -> Callable[..., Awaitable[T]]:
    """
    Wrap an async action so each call is bounded by `seconds`.

    Args:
        action: Async callable to bound.
        seconds: Deadline in seconds. None returns `action` unchanged.
        exception_message: Custom error message (optional).

    Returns:
        An async callable taking the same arguments as `action`.

    Raises:
        ValueError: If `seconds` is not positive.

    Example:
        acquire = with_deadline(open_pool, 0.1)
        pool = await manager.add(acquire, close_pool)
    """
    if seconds is None:
        return action
    if seconds <= 0:
        raise ValueError("seconds must be a positive number")

    async def bounded(*args: Any) -> T:
        return await _race(action(*args), seconds, exception_message)

    return bounded


__all__ = [
    "TimeoutError",
    "timeout",
    "with_deadline",
]
