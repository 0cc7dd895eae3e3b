"""Ownership of the chart's view window and every operation that changes it.

Purpose
-------
``ViewportController`` is the single writer of the current :class:`ViewWindow`.
Button, wheel and pinch zoom, panning, autoscale and filter changes all funnel
through it, and listeners (the render bridge) are told about every committed
change so they can declutter and redraw.

Concepts and structure
----------------------
- State is ``NO_WINDOW`` until the first window is set (restored or
  autoscaled), then ``HAS_WINDOW`` forever; windows are replaced, never removed.
- Every change that pushes a window arms the :class:`ReentrancyGuard` first:
  the listener is about to push ranges into Plotly and Plotly echoes them back.
- Backend notifications that arrive while the guard is disarmed are genuine
  user gestures. They are coalesced with a trailing debounce before the window
  is committed.
- Two-pointer gestures record the start distance, start window and anchor at
  gesture start. Each sample re-derives the window from that fixed anchor, and
  samples are coalesced to at most one per frame.

Important gotchas
-----------------
- Zoom-out is refused once the window covers the autoscale bounds; zoom-in is
  limited to 5% of the bounds span. Both are relative to the *filtered* items.
- Listener exceptions are logged and swallowed so one broken listener cannot
  starve the others.
"""

from __future__ import annotations

import enum
import itertools
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from .chart_guard import GuardState, ReentrancyGuard
from .chart_view import ViewWindow, autoscale_bounds, should_autoscale, zoomed_window
from .debouncing import QueuedDebouncer, TrailingDebouncer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewportConfig:
    """Tuning knobs for autoscale padding, zoom limits and event timing.

    Parameters
    ----------
    pad_fraction : float
        Autoscale padding as a fraction of the data span per side.
    min_pad : float
        Minimum absolute autoscale padding per side.
    min_span_fraction : float
        Smallest allowed span as a fraction of the autoscale span.
    button_zoom : float
        Scale applied by the zoom-in button (zoom-out uses its reciprocal).
    wheel_sensitivity : float
        Wheel zoom uses ``exp(deltaY * wheel_sensitivity)``.
    guard_release_ms : int
        Quiet time after the last programmatic push before notifications count.
    notify_debounce_ms : int
        Coalescing delay for genuine backend notifications.
    frame_ms : int
        Cadence of coalesced gesture samples.
    """

    pad_fraction: float = 0.05
    min_pad: float = 0.5
    min_span_fraction: float = 0.05
    button_zoom: float = 0.6
    wheel_sensitivity: float = 0.002
    guard_release_ms: int = 300
    notify_debounce_ms: int = 120
    frame_ms: int = 16

    def __post_init__(self) -> None:
        if not 0 < self.button_zoom < 1:
            raise ValueError("button_zoom must be in (0, 1)")
        if not 0 < self.min_span_fraction <= 1:
            raise ValueError("min_span_fraction must be in (0, 1]")
        if self.pad_fraction < 0 or self.min_pad < 0:
            raise ValueError("autoscale padding must be >= 0")


class ViewportState(enum.Enum):
    NO_WINDOW = "no-window"
    HAS_WINDOW = "has-window"


@dataclass(frozen=True)
class ViewChange:
    """Notification payload delivered to viewport listeners.

    ``push`` is ``True`` when the window originated here and must be sent to the
    backend; ``False`` when the backend already shows it (user gesture commit)
    or when only the item set changed.
    """

    window: Optional[ViewWindow]
    reason: str
    push: bool = True


@dataclass
class PinchGesture:
    """Snapshot taken when a two-pointer gesture starts."""

    start_distance: float
    start_window: ViewWindow
    anchor_fx: float
    anchor_fy: float
    anchor_point: Tuple[float, float]
    last_window: Optional[ViewWindow] = None


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


class ViewportController:
    """Own the current view window and mediate every change to it."""

    def __init__(
        self,
        *,
        config: ViewportConfig = ViewportConfig(),
        initial_window: Optional[ViewWindow] = None,
    ) -> None:
        self._config = config
        self._window = initial_window
        self._items: Tuple[Any, ...] = ()
        self._listeners: Dict[int, Callable[[ViewChange], Any]] = {}
        self._listener_ids = itertools.count(1)
        self._guard = ReentrancyGuard(release_ms=config.guard_release_ms)
        self._notify = TrailingDebouncer(self._commit_backend_window, delay_ms=config.notify_debounce_ms)
        self._frames = QueuedDebouncer(
            self._apply_pinch_sample, execute_every_ms=config.frame_ms, drop_overflow=True
        )
        self._gesture: Optional[PinchGesture] = None

    # --- Properties ---

    @property
    def config(self) -> ViewportConfig:
        return self._config

    @property
    def state(self) -> ViewportState:
        return ViewportState.NO_WINDOW if self._window is None else ViewportState.HAS_WINDOW

    @property
    def guard(self) -> ReentrancyGuard:
        """Return the re-entrancy guard (read-only use outside this class)."""
        return self._guard

    @property
    def items(self) -> Tuple[Any, ...]:
        """Return the currently filtered item set used for bounds."""
        return self._items

    @property
    def gesture(self) -> Optional[PinchGesture]:
        return self._gesture

    def current_window(self) -> Optional[ViewWindow]:
        """Return the authoritative window, or ``None`` before the first draw."""
        return self._window

    def autoscale_bounds(self) -> Optional[ViewWindow]:
        """Return the padded bounds of the filtered items, or ``None`` when empty."""
        return autoscale_bounds(
            self._items, pad_fraction=self._config.pad_fraction, min_pad=self._config.min_pad
        )

    # --- Listeners ---

    def subscribe(self, callback: Callable[[ViewChange], Any]) -> int:
        """Register ``callback`` for window/redraw notifications and return its token."""
        token = next(self._listener_ids)
        self._listeners[token] = callback
        return token

    def unsubscribe(self, token: int) -> None:
        self._listeners.pop(token, None)

    # --- Operations ---

    def set_items(self, items: Iterable[Any], *, reason: str = "filter") -> Optional[ViewWindow]:
        """Replace the filtered item set and redraw.

        With no window yet, or when some filtered item lies outside the current
        window, the preserved view is discarded in favour of the autoscale
        bounds. Otherwise the window is kept as is.
        """
        self._items = tuple(items)
        if self._window is None or should_autoscale(self._items, self._window):
            bounds = self.autoscale_bounds()
            if bounds is not None:
                self._push(bounds, reason)
                return bounds
        self._emit(ViewChange(self._window, reason, push=self._window is not None))
        return self._window

    def request_zoom(
        self,
        scale: float,
        anchor_fx: float = 0.5,
        anchor_fy: float = 0.5,
        *,
        reason: str = "zoom",
    ) -> Optional[ViewWindow]:
        """Zoom about a fractional anchor; return the new window or ``None`` for a no-op."""
        if self._window is None or self._gesture is not None:
            return None
        new_window = zoomed_window(
            self._window,
            scale,
            _clamp01(anchor_fx),
            _clamp01(anchor_fy),
            self.autoscale_bounds(),
            min_span_fraction=self._config.min_span_fraction,
        )
        if new_window is None:
            logger.debug("zoom refused (scale=%s, window=%s)", scale, self._window)
            return None
        self._push(new_window, reason)
        return new_window

    def zoom_in(self) -> Optional[ViewWindow]:
        """Button zoom-in about the window centre."""
        return self.request_zoom(self._config.button_zoom, reason="button")

    def zoom_out(self) -> Optional[ViewWindow]:
        """Button zoom-out about the window centre."""
        return self.request_zoom(1.0 / self._config.button_zoom, reason="button")

    def request_wheel(self, delta_y: float, anchor_fx: float, anchor_fy: float) -> Optional[ViewWindow]:
        """Zoom for one wheel event; positive ``delta_y`` zooms out."""
        try:
            scale = math.exp(float(delta_y) * self._config.wheel_sensitivity)
        except (TypeError, ValueError, OverflowError):
            return None
        if scale == 1.0:
            return None
        return self.request_zoom(scale, anchor_fx, anchor_fy, reason="wheel")

    def request_pan(self, dfx: float, dfy: float) -> Optional[ViewWindow]:
        """Shift the window by fractions of its span; panning is never clamped."""
        if self._window is None or self._window.is_degenerate:
            return None
        new_window = self._window.panned(float(dfx), float(dfy))
        self._push(new_window, "pan")
        return new_window

    def request_autoscale(self) -> Optional[ViewWindow]:
        """Reset the window to the autoscale bounds of the filtered items."""
        bounds = self.autoscale_bounds()
        if bounds is None:
            return None
        self._push(bounds, "autoscale")
        return bounds

    def refresh(self, reason: str = "refresh") -> None:
        """Re-emit the current window so listeners redraw (e.g. after a resize)."""
        self._emit(ViewChange(self._window, reason, push=self._window is not None))

    # --- Backend notifications ---

    def on_backend_view_change(self, x_range: Any, y_range: Any) -> bool:
        """Receive a view-change notification from the render backend.

        Returns ``True`` when the notification was accepted for (debounced)
        commit and ``False`` when it was suppressed or malformed.
        """
        if self._guard.armed:
            logger.debug("suppressed backend view change while guard is %s", self._guard.state.value)
            return False
        try:
            window = ViewWindow.from_ranges(x_range, y_range)
        except (TypeError, ValueError, IndexError):
            return False
        if not all(math.isfinite(v) for v in (*window.x_range, *window.y_range)):
            return False
        self._notify(window)
        return True

    def _commit_backend_window(self, window: ViewWindow) -> None:
        if self._guard.armed or self._gesture is not None:
            return
        if window == self._window:
            return
        self._window = window
        self._emit(ViewChange(window, "relayout", push=False))

    # --- Two-pointer gestures ---

    def begin_pinch(self, distance: float, anchor_fx: float, anchor_fy: float) -> bool:
        """Start a pinch gesture at pointer ``distance`` around a fractional anchor."""
        if self._window is None or self._window.is_degenerate or not distance > 0:
            return False
        self._notify.cancel()
        self._frames.cancel()
        self._guard.hold()
        fx, fy = _clamp01(anchor_fx), _clamp01(anchor_fy)
        self._gesture = PinchGesture(
            start_distance=float(distance),
            start_window=self._window,
            anchor_fx=fx,
            anchor_fy=fy,
            anchor_point=self._window.data_point(fx, fy),
        )
        return True

    def update_pinch(self, distance: float) -> None:
        """Queue a pointer-distance sample; applied at most once per frame."""
        if self._gesture is None or not distance >= 1:
            return
        self._frames(float(distance))

    def end_pinch(self, remaining_pointers: int = 0) -> Optional[ViewWindow]:
        """End the gesture once fewer than two pointers remain.

        Flushes any coalesced sample so the committed window reflects the last
        pointer state, clears the gesture and starts the guard release timer.
        """
        if self._gesture is None or remaining_pointers >= 2:
            return None
        self._frames.flush()
        gesture = self._gesture
        self._gesture = None
        self._guard.arm()
        return gesture.last_window

    def _apply_pinch_sample(self, distance: float) -> None:
        gesture = self._gesture
        if gesture is None:
            return
        scale = gesture.start_distance / distance
        new_window = zoomed_window(
            gesture.start_window,
            scale,
            gesture.anchor_fx,
            gesture.anchor_fy,
            self.autoscale_bounds(),
            min_span_fraction=self._config.min_span_fraction,
        )
        if new_window is None:
            return
        gesture.last_window = new_window
        self._push(new_window, "pinch")

    # --- Plumbing ---

    def _push(self, window: ViewWindow, reason: str) -> None:
        self._window = window
        self._emit(ViewChange(window, reason, push=True))

    def _emit(self, change: ViewChange) -> None:
        if change.push:
            self._notify.cancel()
            if self._guard.state is not GuardState.HELD:
                self._guard.arm()
        for token, callback in list(self._listeners.items()):
            try:
                callback(change)
            except Exception:
                logger.exception("viewport listener %s failed for %s", token, change.reason)
