from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from rubber_chart.chart_guard import GuardState, ReentrancyGuard
from rubber_chart.debouncing import QueuedDebouncer, TrailingDebouncer


class _FakeLoopHandle:
    def __init__(self, delay: float, callback):
        self.delay = delay
        self._callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self._callback()


class _FakeAsyncLoop:
    def __init__(self) -> None:
        self.handles: list[_FakeLoopHandle] = []

    def call_later(self, delay: float, callback):
        handle = _FakeLoopHandle(delay, callback)
        self.handles.append(handle)
        return handle


def _fail_once():
    state = {"calls": []}

    def _callback(payload):
        state["calls"].append(payload)
        if len(state["calls"]) == 1:
            raise RuntimeError("boom")

    return state, _callback


# --- QueuedDebouncer ---


def test_queued_debouncer_keeps_processing_after_callback_error_threading(fake_clock, caplog) -> None:
    state, callback = _fail_once()
    debouncer = QueuedDebouncer(callback, execute_every_ms=1, drop_overflow=False)
    with caplog.at_level(logging.ERROR, logger="rubber_chart.debouncing"):
        debouncer("first")
        debouncer("second")
        assert len(fake_clock.timers) == 1

        fake_clock.timers[0].fire()
        assert len(fake_clock.timers) == 2
        fake_clock.timers[1].fire()

    assert state["calls"] == ["first", "second"]
    assert "QueuedDebouncer callback failed" in caplog.text


def test_queued_debouncer_keeps_processing_after_callback_error_asyncio(caplog) -> None:
    state, callback = _fail_once()
    fake_loop = _FakeAsyncLoop()

    with patch("rubber_chart.debouncing.asyncio.get_running_loop", return_value=fake_loop):
        debouncer = QueuedDebouncer(callback, execute_every_ms=1, drop_overflow=False)
        with caplog.at_level(logging.ERROR, logger="rubber_chart.debouncing"):
            debouncer("first")
            debouncer("second")
            assert len(fake_loop.handles) == 1

            fake_loop.handles[0].fire()
            assert len(fake_loop.handles) == 2
            fake_loop.handles[1].fire()

    assert state["calls"] == ["first", "second"]
    assert "QueuedDebouncer callback failed" in caplog.text


def test_queued_debouncer_drops_overflow_per_tick(fake_clock) -> None:
    seen = []
    debouncer = QueuedDebouncer(seen.append, execute_every_ms=16)
    for sample in (1, 2, 3):
        debouncer(sample)
    assert debouncer.pending
    fake_clock.fire_all()
    assert seen == [3]
    assert not debouncer.pending


def test_queued_debouncer_flush_runs_newest_call_now(fake_clock) -> None:
    seen = []
    debouncer = QueuedDebouncer(seen.append, execute_every_ms=16)
    debouncer(1)
    debouncer(2)
    debouncer.flush()
    assert seen == [2]
    assert fake_clock.pending() == []
    debouncer.flush()
    assert seen == [2]


def test_queued_debouncer_cancel_discards_queue(fake_clock) -> None:
    seen = []
    debouncer = QueuedDebouncer(seen.append, execute_every_ms=16)
    debouncer(1)
    debouncer.cancel()
    fake_clock.fire_all()
    assert seen == []
    assert not debouncer.pending


# --- TrailingDebouncer ---


def test_trailing_debouncer_fires_once_with_latest_arguments(fake_clock) -> None:
    seen = []
    debouncer = TrailingDebouncer(lambda *a, **k: seen.append((a, k)), delay_ms=120)
    debouncer(1)
    debouncer(2, tag="x")
    assert len(fake_clock.pending()) == 1
    assert fake_clock.pending()[0].delay == pytest.approx(0.12)
    fake_clock.fire_all()
    assert seen == [((2,), {"tag": "x"})]
    assert not debouncer.pending


def test_trailing_debouncer_ignores_stale_timer(fake_clock) -> None:
    seen = []
    debouncer = TrailingDebouncer(seen.append, delay_ms=50)
    debouncer("old")
    stale = fake_clock.timers[0]
    debouncer("new")
    # a timer that already left the queue when it was cancelled still calls back
    stale.cancelled = False
    stale.fire()
    assert seen == []
    fake_clock.fire_all()
    assert seen == ["new"]


def test_trailing_debouncer_cancel_forgets_call(fake_clock) -> None:
    seen = []
    debouncer = TrailingDebouncer(seen.append, delay_ms=50)
    debouncer("x")
    debouncer.cancel()
    fake_clock.fire_all()
    assert seen == []


def test_trailing_debouncer_logs_callback_error_asyncio(caplog) -> None:
    fake_loop = _FakeAsyncLoop()

    def _boom(_payload) -> None:
        raise RuntimeError("boom")

    with patch("rubber_chart.debouncing.asyncio.get_running_loop", return_value=fake_loop):
        debouncer = TrailingDebouncer(_boom, delay_ms=10)
        with caplog.at_level(logging.ERROR, logger="rubber_chart.debouncing"):
            debouncer("a")
            debouncer("b")
            assert fake_loop.handles[0].cancelled
            fake_loop.handles[1].fire()

    assert "TrailingDebouncer callback failed" in caplog.text


@pytest.mark.parametrize("factory", [
    lambda: QueuedDebouncer(print, execute_every_ms=0),
    lambda: TrailingDebouncer(print, delay_ms=-5),
])
def test_non_positive_intervals_are_rejected(factory) -> None:
    with pytest.raises(ValueError):
        factory()


# --- ReentrancyGuard ---


def test_guard_arm_and_release(fake_clock) -> None:
    guard = ReentrancyGuard(release_ms=300)
    assert guard.state is GuardState.DISARMED
    guard.arm()
    assert guard.armed
    fake_clock.fire_all()
    assert guard.state is GuardState.DISARMED


def test_guard_hold_survives_release_timer(fake_clock) -> None:
    guard = ReentrancyGuard()
    guard.arm()
    guard.hold()
    fake_clock.fire_all()
    assert guard.state is GuardState.HELD
    guard.arm()
    fake_clock.fire_all()
    assert guard.state is GuardState.DISARMED


def test_guard_disarm_is_immediate(fake_clock) -> None:
    guard = ReentrancyGuard()
    guard.arm()
    guard.disarm()
    assert not guard.armed
    assert fake_clock.pending() == []
