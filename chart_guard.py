"""Suppression of the render backend's echo notifications.

Plotly reports a view-window change for every range the chart pushes into it,
which is indistinguishable from a user pan unless the push is remembered.
``ReentrancyGuard`` is that memory, modelled as a three-state machine:

``DISARMED``
    Backend notifications are genuine user gestures.
``ARMED``
    A programmatic push happened recently. A release timer is pending and is
    restarted by every further push, so a burst of pushes keeps the guard armed
    until ``release_ms`` after the *last* one.
``HELD``
    A multi-pointer gesture owns the view. No release timer runs until the
    gesture ends and calls :meth:`arm`.
"""

from __future__ import annotations

import enum
import logging

from .debouncing import TrailingDebouncer

logger = logging.getLogger(__name__)


class GuardState(enum.Enum):
    """Suppression state of a :class:`ReentrancyGuard`."""

    DISARMED = "disarmed"
    ARMED = "armed"
    HELD = "held"


class ReentrancyGuard:
    """Armed/disarmed flag with a trailing release timer."""

    def __init__(self, *, release_ms: int = 300) -> None:
        self._state = GuardState.DISARMED
        self._release = TrailingDebouncer(self._on_release, delay_ms=release_ms)

    @property
    def state(self) -> GuardState:
        """Return the current guard state."""
        return self._state

    @property
    def armed(self) -> bool:
        """Return ``True`` when backend notifications must be discarded."""
        return self._state is not GuardState.DISARMED

    def arm(self) -> None:
        """Arm before a programmatic push and restart the release timer."""
        self._state = GuardState.ARMED
        self._release()

    def hold(self) -> None:
        """Arm indefinitely, e.g. for the lifetime of a pinch gesture."""
        self._release.cancel()
        self._state = GuardState.HELD

    def disarm(self) -> None:
        """Disarm immediately and forget any pending release."""
        self._release.cancel()
        self._state = GuardState.DISARMED

    def _on_release(self) -> None:
        if self._state is GuardState.ARMED:
            logger.debug("re-entrancy guard released")
            self._state = GuardState.DISARMED
