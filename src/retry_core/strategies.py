"""
Retry strategies and combinators.

A strategy is consulted by the executor after every failed attempt and
answers one question: retry or stop? Returning True means the retry is
approved *and* any delay it required has already elapsed.

Strategies compose like boolean expressions::

    and_(max_attempts(5), pow_delay(0.1, math.sqrt(2)))

Combinators evaluate children left to right and short-circuit, so put
cheap, side-effect free checks (counters, error filters) before delays:
a delay placed after a counter never sleeps once the counter has declined.

Stateful strategies (``MaxAttemptsStrategy``, the accumulating delays,
``DelayListStrategy``) own their counters and advance them on every call.
Build a fresh tree per retry sequence and never share one between
sequences running concurrently; this is part of the API contract, there is
no internal locking.
"""

from collections.abc import Callable
from typing import Protocol, runtime_checkable

import structlog

from retry_core.backoff import pow_delay
from retry_core.cancellation import CancellationToken
from retry_core.config import Settings, settings

logger = structlog.get_logger(__name__)

StrategyFunc = Callable[[CancellationToken, int, BaseException | None], bool]


@runtime_checkable
class Strategy(Protocol):
    """
    Protocol for retry strategies.

    ``attempt`` receives the cancellation token, the 0-based index of the
    attempt that just failed and the error it raised.
    """

    def attempt(
        self,
        token: CancellationToken,
        attempt: int,
        error: BaseException | None,
    ) -> bool:
        ...


class AndStrategy:
    """Accepts only if every child accepts; stops at the first refusal."""

    def __init__(self, strategies: tuple[Strategy, ...]):
        self.strategies = strategies

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        for strategy in self.strategies:
            if not strategy.attempt(token, attempt, error):
                return False
        return True

    def __repr__(self) -> str:
        return f"and_({', '.join(map(repr, self.strategies))})"


class OrStrategy:
    """Accepts as soon as one child accepts; declines if all decline."""

    def __init__(self, strategies: tuple[Strategy, ...]):
        self.strategies = strategies

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        for strategy in self.strategies:
            if strategy.attempt(token, attempt, error):
                return True
        return False

    def __repr__(self) -> str:
        return f"or_({', '.join(map(repr, self.strategies))})"


class SequenceStrategy(OrStrategy):
    """
    Try each policy in turn, falling back to the next once it declines.

    Evaluates like ``OrStrategy``; the name states intent: the first child
    is the primary policy, later ones are fallbacks used once it is spent.
    """

    def __repr__(self) -> str:
        return f"sequence({', '.join(map(repr, self.strategies))})"


class NotStrategy:
    """Inverts a single child's decision."""

    def __init__(self, strategy: Strategy):
        self.strategy = strategy

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        return not self.strategy.attempt(token, attempt, error)

    def __repr__(self) -> str:
        return f"not_({self.strategy!r})"


class InfiniteStrategy:
    """Always retries."""

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        return True

    def __repr__(self) -> str:
        return "infinite()"


class MaxAttemptsStrategy:
    """
    Caps the total number of operation calls.

    ``attempts`` counts calls, so the strategy approves ``attempts - 1``
    retries and declines forever after.
    """

    def __init__(self, attempts: int):
        self.attempts = attempts
        self._remaining = attempts - 1

    @property
    def remaining(self) -> int:
        """Retries still available."""
        return self._remaining

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        if self._remaining <= 0:
            logger.debug("Attempt limit reached", max_attempts=self.attempts, attempt=attempt)
            return False
        self._remaining -= 1
        return True

    def __repr__(self) -> str:
        return f"max_attempts({self.attempts})"


class FunctionStrategy:
    """Delegates the decision to a caller-supplied function."""

    def __init__(self, func: StrategyFunc):
        self.func = func

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        return bool(self.func(token, attempt, error))

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"function({name})"


_INFINITE = InfiniteStrategy()


def and_(*strategies: Strategy) -> AndStrategy:
    """All children must agree. ``and_()`` with no children always accepts."""
    return AndStrategy(strategies)


def or_(*strategies: Strategy) -> OrStrategy:
    """Any child may agree. ``or_()`` with no children always declines."""
    return OrStrategy(strategies)


def sequence(*strategies: Strategy) -> SequenceStrategy:
    return SequenceStrategy(strategies)


def not_(strategy: Strategy) -> NotStrategy:
    return NotStrategy(strategy)


def infinite() -> InfiniteStrategy:
    """Retry forever. Stateless, so a single shared instance is returned."""
    return _INFINITE


def max_attempts(attempts: int) -> MaxAttemptsStrategy:
    """
    Limit the operation to ``attempts`` calls in total.

    Raises:
        ValueError: If ``attempts`` is less than 1
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")
    return MaxAttemptsStrategy(attempts)


def function(func: StrategyFunc) -> FunctionStrategy:
    """Wrap ``func(token, attempt, error) -> bool`` as a strategy."""
    if not callable(func):
        raise TypeError(f"strategy function must be callable, got {type(func).__name__}")
    return FunctionStrategy(func)


def default(config: Settings | None = None) -> AndStrategy:
    """
    Bounded attempts with exponential backoff.

    ``and_(max_attempts(N), pow_delay(seed, base))`` with N, seed and base
    taken from ``RETRY_DEFAULT_*`` settings (5 calls, 0.1 s, sqrt(2)).
    Returns a fresh tree on every call.
    """
    config = config or settings
    return and_(
        max_attempts(config.DEFAULT_MAX_ATTEMPTS),
        pow_delay(config.DEFAULT_SEED_DELAY, config.DEFAULT_BACKOFF_BASE),
    )
