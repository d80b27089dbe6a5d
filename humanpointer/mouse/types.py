from __future__ import annotations
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union
import math

from ..utils import round_half_up


class Point(NamedTuple):
    """Viewport-relative pixel coordinates."""

    x: float
    y: float

    def distance_to(self, other: "Point") -> float:
        return math.hypot(other[0] - self.x, other[1] - self.y)


class PathPoint(NamedTuple):
    """One waypoint; ``delay_ms`` is the wait after dispatching it."""

    position: Point
    delay_ms: int


Path = List[PathPoint]


def as_point(value: Union[Point, Tuple[float, float], Sequence[float], dict]) -> Point:
    """Normalize (x, y) tuples and {"x", "y"} dicts into a Point."""
    if isinstance(value, Point):
        return value
    if isinstance(value, dict):
        return Point(float(value["x"]), float(value["y"]))
    return Point(float(value[0]), float(value[1]))


def quad_center(quad: Sequence[float]) -> Point:
    """Centre of an 8-number CDP quad."""
    xs = (quad[0], quad[2], quad[4], quad[6])
    ys = (quad[1], quad[3], quad[5], quad[7])
    return Point(round_half_up(sum(xs) / 4.0), round_half_up(sum(ys) / 4.0))


@dataclass(frozen=True)
class Target:
    """A targeting request: raw coordinates, a CSS selector, or a ref handle.

    Build one with ``Target.at(x, y)``, ``Target.css(selector)`` or
    ``Target.ref(handle)``.
    """

    kind: str  # "point" | "selector" | "ref"
    point: Optional[Point] = None
    selector: Optional[str] = None
    handle: Optional[str] = None

    @classmethod
    def at(cls, x: float, y: float) -> "Target":
        return cls("point", point=Point(float(x), float(y)))

    @classmethod
    def css(cls, selector: str) -> "Target":
        if not selector:
            raise ValueError("selector must be a non-empty string")
        return cls("selector", selector=selector)

    @classmethod
    def ref(cls, handle: str) -> "Target":
        if not handle:
            raise ValueError("ref must be a non-empty string")
        return cls("ref", handle=handle)

    @property
    def is_element(self) -> bool:
        return self.kind in ("selector", "ref")


def as_target(value) -> Target:
    """Coerce loose inputs: Target, (x, y), {"x", "y"} or a CSS selector string."""
    if isinstance(value, Target):
        return value
    if isinstance(value, str):
        return Target.css(value)
    if isinstance(value, dict) and {"x", "y"} <= set(value.keys()):
        return Target.at(value["x"], value["y"])
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return Target.at(value[0], value[1])
    raise ValueError("Either selector, ref, or x,y coordinates are required")
