"""
Composable retry strategies and a small retry executor.

An operation is retried until it succeeds, raises an ``Unrecoverable``
marker, its cancellation token fires, or the composed strategy declines.
Strategies are plain objects with one method, ``attempt(token, attempt,
error) -> bool``, combined with ``and_`` / ``or_`` / ``not_`` / ``sequence``.

Main Components:
    - execute / execute_with_token: the retry loop
    - Strategy: protocol implemented by every policy
    - max_attempts, infinite: attempt limits
    - fixed_delay, random_delay, linear_delay, pow_delay, exp_delay, delays:
      delay shapes
    - is_error, type_match: error filters
    - unrecoverable: mark an error as final
    - CancellationToken, sleep: cooperative cancellation

Usage:
    >>> from retry_core import and_, execute, fixed_delay, max_attempts
    >>> execute(lambda attempt: fetch(), and_(max_attempts(3), fixed_delay(0.5)))
"""

from retry_core.backoff import (
    DelayListStrategy,
    FixedDelayStrategy,
    LinearDelayStrategy,
    PowDelayStrategy,
    RandomDelayStrategy,
    delays,
    exp_delay,
    fixed_delay,
    linear_delay,
    pow_delay,
    random_delay,
)
from retry_core.cancellation import CancellationToken, sleep
from retry_core.classifiers import (
    IsErrorStrategy,
    TypeMatchStrategy,
    error_chain,
    is_error,
    type_match,
)
from retry_core.engine import execute, execute_with_token
from retry_core.exceptions import (
    Cancelled,
    DeadlineExceeded,
    RetryError,
    Unrecoverable,
    is_unrecoverable,
    unrecoverable,
    unrecoverable_cause,
)
from retry_core.strategies import (
    AndStrategy,
    FunctionStrategy,
    InfiniteStrategy,
    MaxAttemptsStrategy,
    NotStrategy,
    OrStrategy,
    SequenceStrategy,
    Strategy,
    and_,
    default,
    function,
    infinite,
    max_attempts,
    not_,
    or_,
    sequence,
)

__version__ = "0.1.0"

__all__ = [
    "AndStrategy",
    "CancellationToken",
    "Cancelled",
    "DeadlineExceeded",
    "DelayListStrategy",
    "FixedDelayStrategy",
    "FunctionStrategy",
    "InfiniteStrategy",
    "IsErrorStrategy",
    "LinearDelayStrategy",
    "MaxAttemptsStrategy",
    "NotStrategy",
    "OrStrategy",
    "PowDelayStrategy",
    "RandomDelayStrategy",
    "RetryError",
    "SequenceStrategy",
    "Strategy",
    "TypeMatchStrategy",
    "Unrecoverable",
    "and_",
    "default",
    "delays",
    "error_chain",
    "execute",
    "execute_with_token",
    "exp_delay",
    "fixed_delay",
    "function",
    "infinite",
    "is_error",
    "is_unrecoverable",
    "linear_delay",
    "max_attempts",
    "not_",
    "or_",
    "pow_delay",
    "random_delay",
    "sequence",
    "sleep",
    "type_match",
    "unrecoverable",
    "unrecoverable_cause",
]
