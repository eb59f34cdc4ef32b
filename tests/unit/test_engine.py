"""
Unit tests for the retry executor.

Tests the loop's terminal outcomes: success, exhaustion, unrecoverable
failure and cancellation, plus attempt indexing and strategy consultation.
"""

import pytest

from retry_core.backoff import fixed_delay
from retry_core.cancellation import CancellationToken
from retry_core.engine import execute, execute_with_token
from retry_core.exceptions import Cancelled, unrecoverable
from retry_core.strategies import function, max_attempts, not_, or_


class FlakyError(Exception):
    pass


def flaky(failures, result="ok"):
    """Operation failing ``failures`` times before returning ``result``."""
    calls = []

    def operation(attempt):
        calls.append(attempt)
        if len(calls) <= failures:
            raise FlakyError(f"attempt {attempt}")
        return result

    operation.calls = calls
    return operation


def always_fail(token, attempt):
    raise FlakyError(f"attempt {attempt}")


class TestExecute:
    """Test suite for execute (no external cancellation)."""

    def test_success_first_attempt(self):
        operation = flaky(0)

        assert execute(operation) == "ok"
        assert operation.calls == [0]

    def test_second_attempt_success(self):
        """Test failure on attempt 0 then success under max_attempts(5)."""
        operation = flaky(1)

        assert execute(operation, max_attempts(5)) == "ok"
        assert operation.calls == [0, 1]

    def test_attempt_index_advances_by_one(self):
        operation = flaky(4)

        execute(operation)

        assert operation.calls == [0, 1, 2, 3, 4]

    def test_exhaustion_reraises_last_error_unchanged(self):
        errors = []

        def operation(attempt):
            errors.append(FlakyError(attempt))
            raise errors[-1]

        with pytest.raises(FlakyError) as exc_info:
            execute(operation, max_attempts(3))

        assert len(errors) == 3
        assert exc_info.value is errors[-1]

    def test_unrecoverable_surfaces_cause_only(self, recording_strategy):
        """Test that the marker never escapes and the strategy is skipped."""
        cause = FlakyError("fatal")
        calls = []
        strategy = recording_strategy([True])

        def operation(attempt):
            calls.append(attempt)
            raise unrecoverable(cause)

        with pytest.raises(FlakyError) as exc_info:
            execute(operation, strategy)

        assert exc_info.value is cause
        assert calls == [0]
        assert strategy.calls == []

    def test_strategy_sees_attempt_and_error(self, recording_strategy):
        strategy = recording_strategy([True, False])
        operation = flaky(5)

        with pytest.raises(FlakyError):
            execute(operation, strategy)

        assert [attempt for attempt, _ in strategy.calls] == [0, 1]
        assert [str(error) for _, error in strategy.calls] == ["attempt 0", "attempt 1"]

    def test_multiple_strategies_are_anded_in_order(self, recording_strategy):
        limit = max_attempts(2)
        after = recording_strategy([True])
        operation = flaky(5)

        with pytest.raises(FlakyError):
            execute(operation, limit, after)

        assert operation.calls == [0, 1]
        assert len(after.calls) == 1

    def test_base_exceptions_are_not_retried(self):
        calls = []

        def operation(attempt):
            calls.append(attempt)
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            execute(operation)
        assert calls == [0]

    def test_fresh_loop_per_call(self):
        """Test that no attempt state leaks between executions."""
        first = flaky(1)
        second = flaky(1)

        execute(first, max_attempts(2))
        execute(second, max_attempts(2))

        assert second.calls == [0, 1]


class TestExecuteWithToken:
    """Test suite for execute_with_token."""

    def test_operation_receives_token(self, token):
        seen = []

        def operation(tok, attempt):
            seen.append(tok)
            return attempt

        assert execute_with_token(token, operation) == 0
        assert seen == [token]

    def test_cancellation_after_failure_surfaces_reason(self, token, recording_strategy):
        """Test that cancellation observed after a failed attempt wins over the error."""
        strategy = recording_strategy([True])
        error = FlakyError("late")

        def operation(tok, attempt):
            tok.cancel()
            raise error

        with pytest.raises(Cancelled) as exc_info:
            execute_with_token(token, operation, strategy)

        assert exc_info.value is token.reason
        assert exc_info.value.__cause__ is error
        assert strategy.calls == []

    def test_custom_cancel_reason(self, token):
        reason = TimeoutError("shutdown")
        token.cancel(reason)

        with pytest.raises(TimeoutError) as exc_info:
            execute_with_token(token, always_fail)

        assert exc_info.value is reason

    def test_cancellation_takes_priority_over_unrecoverable(self, cancelled_token):
        def operation(tok, attempt):
            raise unrecoverable(FlakyError("fatal"))

        with pytest.raises(Cancelled):
            execute_with_token(cancelled_token, operation)

    def test_success_wins_over_cancellation(self, cancelled_token):
        """Test that a successful attempt returns even on a cancelled token."""
        assert execute_with_token(cancelled_token, lambda tok, attempt: "done") == "done"

    def test_first_attempt_always_runs(self, cancelled_token):
        calls = []

        def operation(tok, attempt):
            calls.append(attempt)
            raise FlakyError()

        with pytest.raises(Cancelled):
            execute_with_token(cancelled_token, operation)
        assert calls == [0]

    def test_strategy_receives_token(self, token):
        received = []

        class TokenProbe:
            def attempt(self, tok, attempt, error):
                received.append(tok)
                return attempt < 1

        with pytest.raises(FlakyError):
            execute_with_token(token, always_fail, TokenProbe())

        assert received == [token, token]

    def test_no_strategies_retries_until_success(self):
        operation = flaky(10)

        assert execute_with_token(CancellationToken(), lambda tok, attempt: operation(attempt)) == "ok"
        assert len(operation.calls) == 11

    def test_cancellation_during_approved_retry_stops_loop(self, token):
        """Test that cancellation seen while a strategy approves ends the loop."""
        calls = []
        cancel_then_approve = function(lambda tok, attempt, error: tok.cancel() or True)

        def operation(tok, attempt):
            calls.append(attempt)
            raise FlakyError(attempt)

        with pytest.raises(Cancelled) as exc_info:
            execute_with_token(token, operation, or_(cancel_then_approve, max_attempts(10)))

        assert calls == [0]
        assert isinstance(exc_info.value.__cause__, FlakyError)

    def test_negated_interrupted_delay_does_not_retry(self, token, monkeypatch):
        """Test not_ over a delay that cancellation cut short."""
        calls = []

        def interrupted_sleep(tok, seconds):
            tok.cancel()
            return False

        monkeypatch.setattr("retry_core.backoff.sleep", interrupted_sleep)

        def operation(tok, attempt):
            calls.append(attempt)
            raise FlakyError(attempt)

        with pytest.raises(Cancelled):
            execute_with_token(token, operation, not_(fixed_delay(1.0)))

        assert calls == [0]
