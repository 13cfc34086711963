from .actions import AsyncAction, as_async_action, describe_action, expects_callback
from .timeout import TimeoutError, timeout, with_deadline

__all__ = [
    "AsyncAction",
    "TimeoutError",
    "as_async_action",
    "describe_action",
    "expects_callback",
    "timeout",
    "with_deadline",
]
