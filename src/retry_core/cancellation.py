"""
Cooperative cancellation and the Sleep primitive.

A ``CancellationToken`` is an externally controlled, one-shot signal. Once
cancelled it stays cancelled and carries the exception describing why
(``reason``). The executor checks it after each failed attempt, and
``sleep`` aborts a pending delay as soon as it fires.

Timeouts are expressed as tokens that cancel themselves. Close them (or use
them as context managers) when the sequence ends early, so the timer stops
and the token detaches from its parent::

    with CancellationToken.with_timeout(30.0, parent=shutdown) as token:
        execute_with_token(token, operation, default())

A child cancelled through its parent shares the parent's ``reason`` object.
"""

import math
import threading
import time
import weakref
from typing import Optional

from retry_core.exceptions import Cancelled, DeadlineExceeded


def _check_duration(name: str, seconds: float) -> None:
    if not math.isfinite(seconds):
        raise ValueError(f"{name} must be finite, got {seconds}")
    if seconds < 0:
        raise ValueError(f"{name} must be >= 0, got {seconds}")


class CancellationToken:
    """
    One-shot cancellation signal backed by ``threading.Event``.

    Safe to cancel from any thread. The first ``cancel()`` call wins;
    later calls are no-ops and do not replace the reason.

    Children are held weakly and unlink themselves when cancelled or
    closed, so a long-lived parent does not accumulate finished children.
    """

    def __init__(self, parent: Optional["CancellationToken"] = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: BaseException | None = None
        self._timer: threading.Timer | None = None
        self._children: weakref.WeakSet[CancellationToken] = weakref.WeakSet()
        self._parent = parent

        if parent is not None:
            parent._link(self)

    @classmethod
    def with_timeout(
        cls, seconds: float, parent: Optional["CancellationToken"] = None
    ) -> "CancellationToken":
        """Create a token cancelled with ``DeadlineExceeded`` after ``seconds``."""
        _check_duration("timeout", seconds)
        token = cls(parent)
        if token.cancelled:
            return token
        if seconds == 0:
            token.cancel(DeadlineExceeded(seconds))
            return token
        timer = threading.Timer(seconds, token.cancel, args=(DeadlineExceeded(seconds),))
        timer.daemon = True
        token._timer = timer
        timer.start()
        return token

    @classmethod
    def with_deadline(
        cls, deadline: float, parent: Optional["CancellationToken"] = None
    ) -> "CancellationToken":
        """Create a token cancelled at ``deadline`` (a ``time.monotonic()`` value)."""
        if not math.isfinite(deadline):
            raise ValueError(f"deadline must be finite, got {deadline}")
        return cls.with_timeout(max(0.0, deadline - time.monotonic()), parent)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> BaseException | None:
        """Why the token was cancelled, or ``None`` while it is still live."""
        return self._reason

    def cancel(self, reason: BaseException | None = None) -> bool:
        """
        Fire the token.

        Args:
            reason: Exception surfaced by the executor; defaults to ``Cancelled()``

        Returns:
            True if this call cancelled the token, False if it already was
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason if reason is not None else Cancelled()
            self._event.set()
            children = list(self._children)
            self._children.clear()

        self._detach()
        for child in children:
            child.cancel(self._reason)
        return True

    def close(self) -> None:
        """Stop the deadline timer and detach from the parent without cancelling."""
        self._detach()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or ``timeout`` elapses. Returns ``cancelled``."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise self._reason

    def _link(self, child: "CancellationToken") -> None:
        with self._lock:
            if not self._event.is_set():
                self._children.add(child)
                return
        child.cancel(self._reason)

    def _unlink(self, child: "CancellationToken") -> None:
        with self._lock:
            self._children.discard(child)

    def _detach(self) -> None:
        with self._lock:
            timer, self._timer = self._timer, None
            parent, self._parent = self._parent, None
        if timer is not None:
            timer.cancel()
        if parent is not None:
            parent._unlink(self)

    def __enter__(self) -> "CancellationToken":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        if self.cancelled:
            return f"CancellationToken(cancelled, reason={self._reason!r})"
        return "CancellationToken(live)"


def sleep(token: CancellationToken, seconds: float) -> bool:
    """
    Wait ``seconds`` unless ``token`` fires first.

    This is the only place the retry core blocks on wall-clock time.

    Returns:
        True if the full delay elapsed, False if cancellation cut it short

    Raises:
        ValueError: If ``seconds`` is NaN or infinite
    """
    if not math.isfinite(seconds):
        raise ValueError(f"delay must be finite, got {seconds}")
    if seconds <= 0:
        return not token.cancelled
    return not token.wait(seconds)
