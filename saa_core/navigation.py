"""
Navigation reload gate: honour "arrived from another screen, please reload"
at most once per arrival.

States are ARMED and FIRED, keyed by the arrival's identity (origin screen and
router key). Repeated observations of the same arrival are ignored; only a
new arrival, or leaving the dashboard, rearms the gate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class GateState(Enum):
    ARMED = "armed"
    FIRED = "fired"


@dataclass(frozen=True)
class NavigationSignal:
    """
    What the router reports when the dashboard is shown.

    origin: screen the user came from (e.g. "/import"); None on first load.
    reload: whether the origin asked for a reload.
    key: router location key, distinguishes two arrivals from the same origin.
    """

    origin: str | None
    reload: bool = False
    key: str | None = None

    @property
    def arrival(self) -> tuple[str | None, str | None]:
        return (self.origin, self.key)


class NavigationGate:
    """Explicit {ARMED, FIRED} machine replacing ad-hoc "already reloaded" flags."""

    def __init__(self, home: str = "/") -> None:
        self.home = home
        self._state = GateState.ARMED
        self._arrival: tuple[str | None, str | None] | None = None

    @property
    def state(self) -> GateState:
        return self._state

    def observe(self, signal: NavigationSignal) -> bool:
        """Return True if this signal should trigger a reload (fires the gate)."""
        if not signal.reload or signal.origin is None or signal.origin == self.home:
            return False
        if self._state is GateState.FIRED and signal.arrival == self._arrival:
            logger.debug("Navigation reload already serviced for %s", signal.arrival)
            return False
        self._state = GateState.FIRED
        self._arrival = signal.arrival
        logger.info("Navigation arrival from %s: reload requested", signal.origin)
        return True

    def leave(self) -> None:
        """The dashboard was navigated away from; the next arrival is new."""
        self._state = GateState.ARMED
        self._arrival = None
