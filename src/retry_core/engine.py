"""
Retry executor.

Runs one operation under a strategy tree until it succeeds, is marked
unrecoverable, is cancelled, or the strategies decline. Exactly one terminal
outcome per call:

    1. Success: the operation's return value is returned
    2. Cancellation: the token's reason is raised (the operation's error
       becomes its ``__cause__``)
    3. Unrecoverable: the marker's cause is raised, the marker never escapes
    4. Exhaustion: the last operation error is re-raised unchanged

Cancellation is observed right after a failed attempt and inside delays. A
delay cut short counts as a strategy refusal, so case 4 applies when the
tree declines; if a combinator still approves the retry (e.g. ``or_``), the
loop stops with case 2 instead of calling the operation again. A
successful return always wins. All waiting happens inside strategies.

The reason raised on cancellation is the token's own exception object.
Tokens cancelled through a parent share the parent's reason, so sibling
sequences raise the same instance and its ``__cause__``/``__traceback__``
reflect whichever raised it last. Use a distinct ``cancel(reason)`` per
token when the chained cause matters.

Usage:
    result = execute(lambda attempt: fetch(), default())
    result = execute_with_token(token, lambda token, attempt: fetch(token), default())
"""

from collections.abc import Callable
from typing import TypeVar

import structlog

from retry_core.cancellation import CancellationToken
from retry_core.exceptions import Unrecoverable
from retry_core.strategies import Strategy, and_

T = TypeVar("T")

Operation = Callable[[int], T]
CancellableOperation = Callable[[CancellationToken, int], T]

logger = structlog.get_logger(__name__)


def execute(operation: Operation[T], *strategies: Strategy) -> T:
    """
    Run ``operation(attempt)`` with retries, without external cancellation.

    Args:
        operation: Callable receiving the 0-based attempt index
        strategies: Combined with ``and_`` in the given order; none means
            retry until success or an unrecoverable failure

    Returns:
        The value returned by the first successful attempt
    """
    return execute_with_token(
        CancellationToken(),
        lambda _token, attempt: operation(attempt),
        *strategies,
    )


def execute_with_token(
    token: CancellationToken,
    operation: CancellableOperation[T],
    *strategies: Strategy,
) -> T:
    """
    Run ``operation(token, attempt)`` with retries until a terminal outcome.

    Args:
        token: Cancellation token; also handed to the operation and strategies
        operation: Callable receiving the token and the 0-based attempt index
        strategies: Combined with ``and_`` in the given order

    Returns:
        The value returned by the first successful attempt

    Raises:
        BaseException: ``token.reason`` if cancelled, the cause of an
            ``Unrecoverable`` marker, or the last error once strategies decline
    """
    strategy = and_(*strategies)
    attempt = 0

    while True:
        try:
            result = operation(token, attempt)
        except Exception as exc:
            error = exc
        else:
            if attempt > 0:
                logger.info("Operation succeeded after retries", attempts=attempt + 1)
            return result

        if token.cancelled:
            logger.warning(
                "Retry cancelled",
                attempts=attempt + 1,
                reason=type(token.reason).__name__,
                error_type=type(error).__name__,
            )
            raise token.reason from error

        if isinstance(error, Unrecoverable):
            logger.debug(
                "Unrecoverable failure, not retrying",
                attempt=attempt,
                error_type=type(error.cause).__name__,
            )
            raise error.cause

        if not strategy.attempt(token, attempt, error):
            logger.warning(
                "Retry strategies exhausted",
                attempts=attempt + 1,
                error_type=type(error).__name__,
            )
            raise error

        if token.cancelled:
            # a combinator approved the retry although a delay was cut short
            logger.warning("Retry cancelled during backoff", attempts=attempt + 1)
            raise token.reason from error

        logger.debug("Retrying operation", attempt=attempt, error_type=type(error).__name__)
        attempt += 1
