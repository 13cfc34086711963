"""
Normalisation of caller-supplied actions to a single async contract.

Resource managers accept acquire/release actions in several shapes:

- coroutine functions: ``async def acquire(): ...``
- plain callables returning a value or an awaitable: ``lambda: open_file()``
- completion-callback callables taking a trailing callback:
  ``def acquire(callback): ...`` calling ``callback(None, resource)`` on
  success or ``callback(error)`` on failure.

`as_async_action` inspects the callable once and returns an async callable
taking exactly the expected positional arguments.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable

AsyncAction = Callable[..., Awaitable[Any]]

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def required_positional_count(func: Callable[..., Any]) -> int | None:
    """
    Return how many positional arguments `func` requires.

    Returns None when the signature cannot be inspected or accepts *args,
    in which case the arity is unknown.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return None

    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in _POSITIONAL and param.default is inspect.Parameter.empty:
            count += 1
    return count


def expects_callback(func: Callable[..., Any], arity: int) -> bool:
    """Return True if `func` takes a completion callback after `arity` arguments."""
    return required_positional_count(func) == arity + 1


def _as_exception(error: Any) -> BaseException:
    if isinstance(error, BaseException):
        return error
    return RuntimeError(f"Action reported failure: {error!r}")


def _from_callback(func: Callable[..., Any]) -> AsyncAction:
    async def run(*args: Any) -> Any:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()

        def settle(error: Any = None, result: Any = None) -> None:
            def apply() -> None:
                if future.done():
                    return
                # falsy non-exception error values mean success
                if isinstance(error, BaseException) or error:
                    future.set_exception(_as_exception(error))
                else:
                    future.set_result(result)

            # the callback may fire from a worker thread
            loop.call_soon_threadsafe(apply)

        func(*args, settle)
        return await future

    return run


def _from_callable(func: Callable[..., Any]) -> AsyncAction:
    async def run(*args: Any) -> Any:
        result = func(*args)
        if inspect.isawaitable(result):
            return await result
        return result

    return run


def as_async_action(func: Callable[..., Any], arity: int) -> AsyncAction:
    """
    Wrap `func` into an async callable taking `arity` positional arguments.

    Args:
        func: The caller action, in any supported shape.
        arity: Number of arguments the action receives (0 for acquire,
            1 for release).

    Returns:
        An async callable. Awaiting it yields the action's result or raises
        its failure.

    Example:
        def quit_client(client, callback):
            client.quit(callback)

        release = as_async_action(quit_client, 1)
        await release(client)
    """
    if expects_callback(func, arity):
        return _from_callback(func)
    return _from_callable(func)


def describe_action(func: Callable[..., Any]) -> str:
    """Return a short human readable name for an action, for log messages."""
    return getattr(func, "__qualname__", None) or getattr(func, "__name__", None) or repr(func)


__all__ = [
    "AsyncAction",
    "as_async_action",
    "describe_action",
    "expects_callback",
    "required_positional_count",
]
