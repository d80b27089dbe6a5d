from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Optional

from ..errors import SessionClosed
from ..utils import round_half_up
from .telemetry import TrajectoryRecorder
from .types import Point


class CursorStateStore:
    """Per-session virtual cursor position.

    Tracks where the synthetic cursor last came to rest on each session so the
    next path starts there instead of teleporting from the viewport centre.
    """

    def __init__(self) -> None:
        self._positions: Dict[Hashable, Point] = {}

    def last_position(self, session: Hashable) -> Optional[Point]:
        return self._positions.get(session)

    def set_last_position(self, session: Hashable, point: Point) -> None:
        self._positions[session] = Point(float(point[0]), float(point[1]))

    def start_position(
        self, session: Hashable, viewport_width: float, viewport_height: float
    ) -> Point:
        """Last known position, or the viewport centre on first interaction."""
        last = self._positions.get(session)
        if last is not None:
            return last
        return Point(round_half_up(viewport_width / 2), round_half_up(viewport_height / 2))

    def has_position(self, session: Hashable) -> bool:
        return session in self._positions

    def clear(self, session: Hashable) -> None:
        self._positions.pop(session, None)


@dataclass
class SessionContext:
    """Everything bound to one attached tab: its capability and telemetry.

    ``closed`` flips synchronously on teardown; in-flight operations check it
    between stages and stop with SessionClosed.
    """

    session_id: Hashable
    capability: Any
    recorder: TrajectoryRecorder = field(default_factory=TrajectoryRecorder)
    closed: bool = False

    def ensure_open(self) -> None:
        if self.closed:
            raise SessionClosed(self.session_id)
