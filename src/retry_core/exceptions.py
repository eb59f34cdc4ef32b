"""
Retry core exceptions.

This module defines the error taxonomy seen by callers of the executor:

- ``Unrecoverable``: marker raised by an operation to stop retrying. The
  executor never lets the marker escape; it surfaces the wrapped cause.
- ``Cancelled`` / ``DeadlineExceeded``: reasons attached to a cancelled
  ``CancellationToken``. The executor raises the token's reason when
  cancellation is observed after a failed attempt.

Ordinary (transient) failures are whatever the operation raises and are not
wrapped: on exhaustion the last one is re-raised unchanged.
"""

from typing import Any


class RetryError(Exception):
    """
    Base exception for all errors defined by the retry core.

    Attributes:
        message: Human-readable error description
        details: Structured error data for logging
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class Cancelled(RetryError):
    """
    Raised by the executor when its cancellation token fires.

    This is the default reason of ``CancellationToken.cancel()``.
    """

    def __init__(self, message: str = "operation cancelled", details: dict[str, Any] | None = None):
        super().__init__(message, details)


class DeadlineExceeded(Cancelled):
    """Cancellation reason of a token whose deadline has passed."""

    def __init__(self, timeout_seconds: float | None = None):
        details = {}
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        super().__init__("deadline exceeded", details)


class Unrecoverable(RetryError):
    """
    Marker for a failure that must not be retried.

    Carries exactly one cause. Raise it from an operation (usually via
    ``unrecoverable(err)``) to make the executor stop immediately and raise
    ``cause`` instead; the strategy tree is never consulted.
    """

    def __init__(self, cause: BaseException):
        if not isinstance(cause, BaseException):
            raise TypeError(
                f"Unrecoverable cause must be an exception, got {type(cause).__name__}"
            )
        super().__init__(
            f"unrecoverable: {cause}",
            {"cause_type": type(cause).__name__},
        )
        self._cause = cause
        self.__cause__ = cause

    @property
    def cause(self) -> BaseException:
        """The wrapped error surfaced to the caller."""
        return self._cause


def unrecoverable(err: BaseException) -> Unrecoverable:
    """Wrap ``err`` so that the executor stops retrying and raises ``err``."""
    return Unrecoverable(err)


def is_unrecoverable(err: BaseException | None) -> bool:
    return isinstance(err, Unrecoverable)


def unrecoverable_cause(err: BaseException | None) -> BaseException | None:
    """Return the wrapped cause of an ``Unrecoverable`` marker, else ``None``."""
    if isinstance(err, Unrecoverable):
        return err.cause
    return None
