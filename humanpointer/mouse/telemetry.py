from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional
import time

MAX_RECORDED_EVENTS = 20000


@dataclass(frozen=True)
class MouseEvent:
    """One dispatched pointer event as seen by the recorder."""

    x: float
    y: float
    t: float  # seconds since recorder start (monotonic)
    kind: str  # "move"|"down"|"up"|"click"
    button: Optional[str] = None


@dataclass
class TrajectoryRecorder:
    """Collects one session's pointer events for analysis and rendering.

    Keeps the most recent MAX_RECORDED_EVENTS events so long-lived sessions
    stay bounded.
    """

    events: Deque[MouseEvent] = field(
        default_factory=lambda: deque(maxlen=MAX_RECORDED_EVENTS)
    )
    start_ts: float = field(default_factory=time.perf_counter)

    def _now(self) -> float:
        return time.perf_counter() - self.start_ts

    def _log(self, x: float, y: float, kind: str, button: Optional[str] = None) -> None:
        self.events.append(MouseEvent(float(x), float(y), self._now(), kind, button))

    def log_move(self, x: float, y: float) -> None:
        self._log(x, y, "move")

    def log_down(self, x: float, y: float, button: str = "left") -> None:
        self._log(x, y, "down", button)

    def log_up(self, x: float, y: float, button: str = "left") -> None:
        self._log(x, y, "up", button)

    def log_click(self, x: float, y: float, button: str = "left") -> None:
        """Semantic click marker for plots; the press/release are logged separately."""
        self._log(x, y, "click", button)

    def moves(self) -> List[MouseEvent]:
        return [event for event in self.events if event.kind == "move"]

    def reset(self) -> None:
        """Clear all recorded events and reset the time origin to now."""
        self.events.clear()
        self.start_ts = time.perf_counter()
