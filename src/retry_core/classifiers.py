"""
Error-classification strategies.

These strategies look at the error raised by the failed attempt rather
than at counters or clocks. Both walk the error's wrap chain:

1. the error itself
2. its ``Unrecoverable.cause`` if it is a marker
3. ``__cause__`` (``raise ... from ...``), otherwise ``__context__``
   unless the context was suppressed

Combine them with limits and delays, e.g. retry only connection failures::

    and_(type_match(ConnectionError), max_attempts(5), fixed_delay(1.0))
"""

from collections.abc import Iterator

from retry_core.cancellation import CancellationToken
from retry_core.exceptions import Unrecoverable


def error_chain(error: BaseException | None) -> Iterator[BaseException]:
    """Yield ``error`` and every error it wraps, outermost first."""
    seen: set[int] = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))
        yield error
        if isinstance(error, Unrecoverable):
            error = error.cause
        elif error.__cause__ is not None:
            error = error.__cause__
        elif not error.__suppress_context__:
            error = error.__context__
        else:
            error = None


class IsErrorStrategy:
    """Retries iff the target error appears in the chain (identity or equality)."""

    def __init__(self, target: BaseException):
        self.target = target

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        return any(
            candidate is self.target or candidate == self.target
            for candidate in error_chain(error)
        )

    def __repr__(self) -> str:
        return f"is_error({self.target!r})"


class TypeMatchStrategy:
    """
    Retries iff some error in the chain is an instance of ``error_type``.

    ``isinstance`` honours ABC registration, so an unrelated error kind can
    join a family without inheriting from it::

        class Transient(abc.ABC): ...
        Transient.register(TimeoutError)
        type_match(Transient)
    """

    def __init__(self, error_type: type):
        self.error_type = error_type

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        return any(isinstance(candidate, self.error_type) for candidate in error_chain(error))

    def __repr__(self) -> str:
        return f"type_match({self.error_type.__name__})"


def is_error(target: BaseException) -> IsErrorStrategy:
    if not isinstance(target, BaseException):
        raise TypeError(f"is_error target must be an exception, got {type(target).__name__}")
    return IsErrorStrategy(target)


def type_match(example: BaseException | type) -> TypeMatchStrategy:
    """
    Match errors of the same kind as ``example``.

    Args:
        example: An exception instance (its class is used) or a class
    """
    if isinstance(example, BaseException):
        return TypeMatchStrategy(type(example))
    if isinstance(example, type):
        return TypeMatchStrategy(example)
    raise TypeError(
        f"type_match expects an exception or a class, got {type(example).__name__}"
    )
