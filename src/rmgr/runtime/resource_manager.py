"""
Lifecycle management for dynamically acquired resources.

A ResourceManager collects release actions as resources are acquired and
runs them in reverse order of acquisition completion when closed. A failed
acquisition tears down everything registered before it. Release failures
never stop the drain; they are collected and raised together once every
release has been attempted.
"""

from __future__ import annotations

import asyncio
import enum
import functools
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from rmgr.concurrency.actions import AsyncAction, as_async_action, describe_action
from rmgr.concurrency.timeout import with_deadline
from rmgr.config.environment import Environment
from rmgr.config.logging_config import get_logger
from rmgr.runtime.errors import (
    AcquisitionError,
    ClosedError,
    ClosingError,
    ReleaseError,
    ValidationError,
)

log = get_logger(__name__)


class ManagerState(enum.Enum):
    """Lifecycle states of a resource manager."""

    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class ResourceManagerConfig:
    """
    Configuration for a resource manager.

    Attributes:
        acquire_timeout: Deadline in seconds applied to every acquire action,
            or None to wait indefinitely.
        release_timeout: Deadline in seconds applied to every release action,
            or None to wait indefinitely.
    """

    acquire_timeout: float | None = None
    release_timeout: float | None = None

    def __post_init__(self) -> None:
        for name in ("acquire_timeout", "release_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be a positive number of seconds")

    @classmethod
    def from_environment(cls) -> ResourceManagerConfig:
        """Build a config from RMGR_ACQUIRE_TIMEOUT and RMGR_RELEASE_TIMEOUT."""
        return cls(
            acquire_timeout=Environment.get_acquire_timeout(),
            release_timeout=Environment.get_release_timeout(),
        )


@dataclass
class _Release:
    name: str
    action: Callable[[], Awaitable[Any]]


class ResourceManager:
    """
    Tears down every acquired resource exactly once, in reverse order.

    Resources are registered with `add`, which runs the acquire action and
    remembers a release bound to the produced resource. `close` waits for
    in-flight acquisitions, then runs the releases last-in first-out. Every
    release is attempted even if earlier ones fail.

    Example:
        manager = ResourceManager(ResourceManagerConfig(acquire_timeout=5.0))

        log_file = await manager.add(
            lambda: open("service.log", "a"),
            lambda f: f.close(),
        )
        server = await manager.add(
            lambda: asyncio.start_server(handle, port=0),
            close_server,
        )

        await manager.close()  # closes server, then log_file

        # Or scoped
        async with ResourceManager() as manager:
            conn = await manager.add(connect, disconnect)
    """

    def __init__(self, config: ResourceManagerConfig | None = None):
        """
        Initialize the resource manager.

        Args:
            config: Optional configuration. Uses defaults (no deadlines) if
                not provided.
        """
        self._config = config or ResourceManagerConfig()
        self._state = ManagerState.OPEN
        self._releases: list[_Release] = []
        self._pending: set[asyncio.Task[Any]] = set()
        self._closing: asyncio.Task[None] | None = None

    @property
    def config(self) -> ResourceManagerConfig:
        return self._config

    @property
    def state(self) -> ManagerState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def closed(self) -> bool:
        """Return True once every release has been attempted."""
        return self._state is ManagerState.CLOSED

    @property
    def pending(self) -> int:
        """Return the number of acquisitions still in flight."""
        return len(self._pending)

    def __len__(self) -> int:
        return len(self._releases)

    def __repr__(self) -> str:
        return (
            f"<ResourceManager state={self._state.value} "
            f"registered={len(self._releases)} pending={len(self._pending)}>"
        )

    def _check_open(self) -> None:
        if self._state is ManagerState.CLOSED:
            raise ClosedError()
        if self._state is ManagerState.CLOSING:
            raise ClosingError()

    async def add(
        self,
        acquire: Callable[..., Any],
        release: Callable[..., Any],
    ) -> Any:
        """
        Acquire a resource and register its release.

        Args:
            acquire: Action producing the resource. Either takes no arguments
                (returning the resource or an awaitable of it) or takes a
                single callback invoked as `callback(None, resource)` or
                `callback(error)`.
            release: Action tearing the resource down. Either takes the
                resource, or the resource and a callback invoked as
                `callback(error)` / `callback(None)`.

        Returns:
            The acquired resource.

        Raises:
            ClosedError: If the manager has closed.
            ClosingError: If the manager is closing.
            ValidationError: If acquire or release is not callable.
            AcquisitionError: If acquire failed. Everything registered so far
                has been released by then.
        """
        self._check_open()

        if not callable(acquire):
            raise ValidationError("acquire must be callable")
        if not callable(release):
            raise ValidationError("release must be callable")

        name = describe_action(acquire)
        acquire_action = with_deadline(
            as_async_action(acquire, 0),
            self._config.acquire_timeout,
            f"Acquire {name} timed out after {self._config.acquire_timeout}s",
        )
        release_action = with_deadline(
            as_async_action(release, 1),
            self._config.release_timeout,
            f"Release {describe_action(release)} timed out after {self._config.release_timeout}s",
        )

        task = asyncio.ensure_future(self._acquire(name, acquire_action, release_action))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        failure: BaseException
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError as exc:
            if not task.cancelled():
                # the caller was cancelled; the acquisition carries on
                task.add_done_callback(self._on_abandoned_acquisition)
                raise
            failure = exc
        except Exception as exc:
            failure = exc

        log.warning(f"Acquire {name} failed, releasing {len(self._releases)} registered resource(s): {failure!r}")
        teardown_error: ReleaseError | None = None
        try:
            await self.close()
        except ReleaseError as close_exc:
            teardown_error = close_exc
        raise AcquisitionError(failure, teardown_error) from failure

    async def _acquire(self, name: str, acquire: AsyncAction, release: AsyncAction) -> Any:
        resource = await acquire()
        # no await between settling and registering: close() waits on this task
        self._releases.append(_Release(name=name, action=functools.partial(release, resource)))
        log.debug(f"Registered resource from {name} ({len(self._releases)} registered)")
        return resource

    def _on_abandoned_acquisition(self, task: asyncio.Task[Any]) -> None:
        if not task.cancelled() and task.exception() is None:
            return
        failure = "cancelled" if task.cancelled() else repr(task.exception())
        log.error(f"Acquisition failed after its caller was cancelled: {failure}")
        if self._state is ManagerState.OPEN:
            closing = asyncio.ensure_future(self.close())
            closing.add_done_callback(_log_background_close)

    async def close(self) -> None:
        """
        Release every registered resource in reverse order.

        Only the first call does any work; every call, concurrent or later,
        observes the same outcome. Acquisitions in flight when the close
        starts are waited for first, so resources they produce are released
        too.

        Raises:
            ReleaseError: If any release failed. All releases have been
                attempted by then.
        """
        if self._closing is None:
            self._state = ManagerState.CLOSING
            self._closing = asyncio.ensure_future(self._drain())
        try:
            await asyncio.shield(self._closing)
        except ReleaseError as exc:
            # shared instance: drop frames left by earlier close() calls
            raise exc.with_traceback(None)

    async def _drain(self) -> None:
        in_flight = list(self._pending)
        log.debug(
            f"Closing resource manager: {len(self._releases)} registered, {len(in_flight)} acquisition(s) in flight"
        )
        if in_flight:
            await asyncio.wait(in_flight)

        errors: list[BaseException] = []
        try:
            while self._releases:
                entry = self._releases.pop()
                try:
                    await entry.action()
                except (Exception, asyncio.CancelledError) as exc:
                    # the drain task is shielded, so a cancellation here came from the release
                    log.warning(f"Release of resource from {entry.name} failed: {exc!r}")
                    errors.append(exc)
        finally:
            self._state = ManagerState.CLOSED

        if errors:
            log.error(f"Resource manager closed with {len(errors)} failed release(s)")
            raise ReleaseError(errors) from errors[0]
        log.debug("Resource manager closed")

    async def __aenter__(self) -> ResourceManager:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        try:
            await self.close()
        except ReleaseError as close_exc:
            if exc_val is None:
                raise
            exc_val.add_note(f"Resource manager teardown also failed: {close_exc}")
            log.error(f"Resource manager teardown failed while handling {exc_val!r}: {close_exc}")
        return False


def _log_background_close(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.error(f"Teardown after abandoned acquisition failed: {exc}")


def create_resource_manager(
    acquire_timeout: float | None = None,
    release_timeout: float | None = None,
) -> ResourceManager:
    """
    Create a resource manager with optional deadlines.

    Args:
        acquire_timeout: Deadline in seconds for each acquire action.
        release_timeout: Deadline in seconds for each release action.

    Returns:
        A new, open ResourceManager.
    """
    return ResourceManager(
        ResourceManagerConfig(acquire_timeout=acquire_timeout, release_timeout=release_timeout)
    )


__all__ = [
    "ManagerState",
    "ResourceManager",
    "ResourceManagerConfig",
    "create_resource_manager",
]
