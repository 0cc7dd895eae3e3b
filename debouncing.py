"""Timer-driven coalescing helpers used by the viewport engine.

Two shapes of deferral are needed by the chart:

- ``QueuedDebouncer`` executes queued calls at a fixed cadence and, with
  ``drop_overflow=True``, keeps only the newest call per tick. The viewport uses
  it as a frame coalescer for bursts of pointer-move samples.
- ``TrailingDebouncer`` restarts its timer on every call and fires once, with
  the latest arguments, after the input has been quiet for ``delay_ms``.

Both schedule on the running asyncio loop when one exists (the Jupyter kernel
case) and fall back to a daemon ``threading.Timer`` otherwise.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Optional, Tuple
import asyncio
import logging
import threading

logger = logging.getLogger(__name__)


def schedule_call(delay_s: float, callback: Callable[[], Any]) -> Any:
    """Schedule ``callback`` after ``delay_s`` seconds and return a cancellable handle."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        timer = threading.Timer(delay_s, callback)
        timer.daemon = True
        timer.start()
        return timer
    return loop.call_later(delay_s, callback)


@dataclass
class _QueuedCall:
    args: Tuple[Any, ...]
    kwargs: dict[str, Any]


class QueuedDebouncer:
    """Queue callback invocations and execute at a fixed cadence.

    Parameters
    ----------
    callback:
        Callable to execute from queued events.
    execute_every_ms:
        Execution cadence in milliseconds.
    drop_overflow:
        If ``True``, each tick keeps only the last queued event before executing.
    """

    def __init__(
        self,
        callback: Callable[..., Any],
        *,
        execute_every_ms: int,
        drop_overflow: bool = True,
    ) -> None:
        if execute_every_ms <= 0:
            raise ValueError("execute_every_ms must be > 0")
        self._callback = callback
        self._execute_every_s = execute_every_ms / 1000.0
        self._drop_overflow = bool(drop_overflow)

        self._queue: Deque[_QueuedCall] = deque()
        self._lock = threading.Lock()
        self._timer: Optional[Any] = None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            self._queue.append(_QueuedCall(args=args, kwargs=dict(kwargs)))
            if self._timer is None:
                self._timer = schedule_call(self._execute_every_s, self._on_tick)

    @property
    def pending(self) -> bool:
        """Return ``True`` while queued calls are waiting for a tick."""
        with self._lock:
            return bool(self._queue)

    def flush(self) -> None:
        """Cancel the pending tick and run the newest queued call immediately.

        Older queued calls are discarded, which is the right behaviour for
        gesture sampling where only the last pointer state matters.
        """
        with self._lock:
            self._cancel_timer_locked()
            if not self._queue:
                return
            call = self._queue[-1]
            self._queue.clear()
        self._run(call)

    def cancel(self) -> None:
        """Drop every queued call without executing it."""
        with self._lock:
            self._cancel_timer_locked()
            self._queue.clear()

    def _cancel_timer_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_tick(self) -> None:
        call: Optional[_QueuedCall] = None

        with self._lock:
            self._timer = None
            if not self._queue:
                return

            if self._drop_overflow and len(self._queue) > 1:
                last = self._queue[-1]
                self._queue.clear()
                self._queue.append(last)

            call = self._queue.popleft()
            if self._queue:
                self._timer = schedule_call(self._execute_every_s, self._on_tick)

        self._run(call)

    def _run(self, call: _QueuedCall) -> None:
        try:
            self._callback(*call.args, **call.kwargs)
        except Exception:
            logger.exception("QueuedDebouncer callback failed")


class TrailingDebouncer:
    """Run ``callback`` once the calls stop arriving for ``delay_ms``.

    Every call replaces the stored arguments and restarts the timer, so the
    delay is always measured from the *last* call in a burst.
    """

    def __init__(self, callback: Callable[..., Any], *, delay_ms: int) -> None:
        if delay_ms <= 0:
            raise ValueError("delay_ms must be > 0")
        self._callback = callback
        self._delay_s = delay_ms / 1000.0
        self._lock = threading.Lock()
        self._timer: Optional[Any] = None
        self._call: Optional[_QueuedCall] = None
        self._generation = 0

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            self._call = _QueuedCall(args=args, kwargs=dict(kwargs))
            self._timer = schedule_call(self._delay_s, lambda: self._on_fire(generation))

    @property
    def pending(self) -> bool:
        """Return ``True`` while a trailing call is scheduled."""
        with self._lock:
            return self._timer is not None

    def cancel(self) -> None:
        """Forget the pending call."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._call = None
            self._generation += 1

    def _on_fire(self, generation: int) -> None:
        with self._lock:
            # A timer that raced with a restart must not fire stale arguments.
            if generation != self._generation or self._call is None:
                return
            call = self._call
            self._call = None
            self._timer = None
        try:
            self._callback(*call.args, **call.kwargs)
        except Exception:
            logger.exception("TrailingDebouncer callback failed")
