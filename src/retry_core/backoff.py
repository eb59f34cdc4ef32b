"""
Delay-shaped retry strategies.

Each strategy computes a duration (seconds) and hands it to ``sleep``; it
approves the retry iff the wait completed without cancellation. Linear and
power delays accumulate: the delay used on one call determines the next.
"""

import math
import random

import structlog

from retry_core.cancellation import CancellationToken, sleep

logger = structlog.get_logger(__name__)


def _check_delay(name: str, seconds: float) -> None:
    if not math.isfinite(seconds):
        raise ValueError(f"{name} must be finite, got {seconds}")
    if seconds < 0:
        raise ValueError(f"{name} must be >= 0, got {seconds}")


class FixedDelayStrategy:
    """Waits the same ``delay`` before every retry."""

    def __init__(self, delay: float):
        self.delay = delay

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        return sleep(token, self.delay)

    def __repr__(self) -> str:
        return f"fixed_delay({self.delay})"


class RandomDelayStrategy:
    """Waits a uniformly sampled duration in ``[min_delay, max_delay)``."""

    def __init__(self, min_delay: float, max_delay: float):
        self.min_delay = min_delay
        self.max_delay = max_delay

    def next_delay(self) -> float:
        if self.min_delay == self.max_delay:
            return self.min_delay
        return self.min_delay + random.random() * (self.max_delay - self.min_delay)

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        delay = self.next_delay()
        logger.debug("Applying random delay", delay_seconds=delay, attempt=attempt)
        return sleep(token, delay)

    def __repr__(self) -> str:
        return f"random_delay({self.min_delay}, {self.max_delay})"


class LinearDelayStrategy:
    """Waits ``seed``, then ``seed + delta``, ``seed + 2*delta``, ..."""

    def __init__(self, seed: float, delta: float):
        self.seed = seed
        self.delta = delta
        self._delay = seed

    @property
    def current_delay(self) -> float:
        """Delay the next call will wait."""
        return self._delay

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        delay = self._delay
        self._delay = max(0.0, delay + self.delta)
        logger.debug("Applying linear backoff", delay_seconds=delay, attempt=attempt)
        return sleep(token, delay)

    def __repr__(self) -> str:
        return f"linear_delay({self.seed}, {self.delta})"


class PowDelayStrategy:
    """
    Geometric backoff: waits ``seed``, ``seed*base``, ``seed*base**2``, ...

    With ``base > 1`` this is exponential backoff; ``base < 1`` shrinks the
    delay on every call.
    """

    def __init__(self, seed: float, base: float):
        self.seed = seed
        self.base = base
        self._delay = seed

    @property
    def current_delay(self) -> float:
        """Delay the next call will wait."""
        return self._delay

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        delay = self._delay
        self._delay = delay * self.base
        logger.debug(
            "Applying exponential backoff",
            delay_seconds=delay,
            base=self.base,
            attempt=attempt,
        )
        return sleep(token, delay)

    def __repr__(self) -> str:
        return f"pow_delay({self.seed}, {self.base})"


class DelayListStrategy:
    """
    Waits each listed delay once, in order, then declines.

    Declining on exhaustion does not sleep, so the list length is also the
    number of retries it allows.
    """

    def __init__(self, delays: tuple[float, ...]):
        self.delays = delays
        self._index = 0

    @property
    def remaining(self) -> int:
        return len(self.delays) - self._index

    def attempt(self, token: CancellationToken, attempt: int, error: BaseException | None) -> bool:
        if self._index >= len(self.delays):
            return False
        delay = self.delays[self._index]
        self._index += 1
        return sleep(token, delay)

    def __repr__(self) -> str:
        return f"delays({', '.join(map(str, self.delays))})"


def fixed_delay(delay: float) -> FixedDelayStrategy:
    _check_delay("delay", delay)
    return FixedDelayStrategy(delay)


def random_delay(min_delay: float, max_delay: float) -> RandomDelayStrategy:
    """
    Raises:
        ValueError: If a bound is negative or ``min_delay > max_delay``
    """
    _check_delay("min_delay", min_delay)
    _check_delay("max_delay", max_delay)
    if min_delay > max_delay:
        raise ValueError(f"min_delay ({min_delay}) must not exceed max_delay ({max_delay})")
    return RandomDelayStrategy(min_delay, max_delay)


def linear_delay(seed: float, delta: float) -> LinearDelayStrategy:
    """Linear backoff. ``delta`` may be negative; the delay never drops below 0."""
    _check_delay("seed", seed)
    if not math.isfinite(delta):
        raise ValueError(f"delta must be finite, got {delta}")
    return LinearDelayStrategy(seed, delta)


def pow_delay(seed: float, base: float) -> PowDelayStrategy:
    _check_delay("seed", seed)
    if not math.isfinite(base) or base <= 0:
        raise ValueError(f"base must be finite and > 0, got {base}")
    return PowDelayStrategy(seed, base)


def exp_delay(seed: float) -> PowDelayStrategy:
    """Exponential backoff with base e."""
    return pow_delay(seed, math.e)


def delays(*values: float) -> DelayListStrategy:
    """Retry once per listed delay, waiting that long before each retry."""
    for value in values:
        _check_delay("delay", value)
    return DelayListStrategy(tuple(values))
