"""Exceptions raised by ResourceManager."""

from typing import Sequence


class ResourceManagerError(Exception):
    """Base exception for resource manager errors."""

    pass


class ValidationError(ResourceManagerError, TypeError):
    """Raised when an acquire or release argument is not callable."""

    pass


class ClosedError(ResourceManagerError):
    """Raised when adding to a manager that has already closed."""

    def __init__(self, message: str = "Resource manager is closed"):
        super().__init__(message)


class ClosingError(ResourceManagerError):
    """Raised when adding to a manager whose close is in progress."""

    def __init__(self, message: str = "Resource manager is closing"):
        super().__init__(message)


class ReleaseError(ResourceManagerError):
    """
    Raised by close() when one or more release actions failed.

    `primary` is the first failure encountered while draining, `other` holds
    the remaining failures in the order they occurred.
    """

    def __init__(self, errors: Sequence[BaseException]):
        if not errors:
            raise ValueError("ReleaseError requires at least one failure")
        self.primary: BaseException = errors[0]
        self.other: tuple[BaseException, ...] = tuple(errors[1:])
        count = len(errors)
        noun = "release" if count == 1 else "releases"
        super().__init__(f"{count} {noun} failed during close: {self.primary!r}")

    @property
    def errors(self) -> tuple[BaseException, ...]:
        """All failures, primary first."""
        return (self.primary, *self.other)


class AcquisitionError(ResourceManagerError):
    """
    Raised by add() when an acquire action failed.

    `cause` is the acquisition failure itself. When the teardown that the
    failure triggered also failed, `teardown_error` holds that ReleaseError.
    """

    def __init__(self, cause: BaseException, teardown_error: ReleaseError | None = None):
        self.cause = cause
        self.teardown_error = teardown_error
        message = f"Acquisition failed: {cause!r}"
        if teardown_error is not None:
            message += f" (teardown also failed: {teardown_error})"
        super().__init__(message)
