"""Shared test fixtures and configuration for all tests.

Provides cancellation tokens, a recording strategy double and a settings
instance with fast defaults.
"""

import pytest

from retry_core.cancellation import CancellationToken
from retry_core.config import Settings


class RecordingStrategy:
    """Strategy double that replays scripted decisions and records every call."""

    def __init__(self, decisions):
        self.decisions = list(decisions)
        self.calls: list[tuple[int, BaseException | None]] = []

    def attempt(self, token, attempt, error):
        self.calls.append((attempt, error))
        if len(self.calls) <= len(self.decisions):
            return self.decisions[len(self.calls) - 1]
        return self.decisions[-1] if self.decisions else False


@pytest.fixture
def token() -> CancellationToken:
    """Fresh, live cancellation token."""
    return CancellationToken()


@pytest.fixture
def cancelled_token() -> CancellationToken:
    """Token that is already cancelled with the default reason."""
    cancelled = CancellationToken()
    cancelled.cancel()
    return cancelled


@pytest.fixture
def recording_strategy():
    """Factory fixture for RecordingStrategy.

    Usage:
        def test_something(recording_strategy):
            strategy = recording_strategy([True, False])
    """
    def _create(decisions=(True,)) -> RecordingStrategy:
        return RecordingStrategy(decisions)

    return _create


@pytest.fixture
def fast_settings() -> Settings:
    """Settings whose default policy retries quickly."""
    return Settings(
        DEFAULT_MAX_ATTEMPTS=3,
        DEFAULT_SEED_DELAY=0.0,
        DEFAULT_BACKOFF_BASE=2.0,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def recorded_sleeps(monkeypatch) -> list[float]:
    """Replace the delay strategies' sleep with a recorder that never blocks.

    The recorder still honours cancellation, like the real primitive.
    """
    slept: list[float] = []

    def _fake_sleep(token: CancellationToken, seconds: float) -> bool:
        slept.append(seconds)
        return not token.cancelled

    monkeypatch.setattr("retry_core.backoff.sleep", _fake_sleep)
    return slept
