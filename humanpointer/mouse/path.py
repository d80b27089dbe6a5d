from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..errors import PathSynthesisAborted
from ..utils import round_half_up
from .config import cfg, TuningParameters, DEFAULT_TUNING
from .types import Path, PathPoint, Point, as_point

_SQRT3 = math.sqrt(3)
_SQRT5 = math.sqrt(5)


@dataclass(frozen=True)
class PathStats:
    """Summary of a synthesized path, reported back to callers."""

    points: int
    distance: int
    duration_ms: int
    avg_hz: int
    min_hz: int
    max_hz: int


def hz_cap_for_distance(distance: float) -> int:
    """Upper bound on the move-event rate for a path of this length."""
    short_limit, short_cap = cfg.HZ_CAP_SHORT
    medium_limit, medium_cap = cfg.HZ_CAP_MEDIUM
    long_limit, long_cap = cfg.HZ_CAP_LONG
    if distance < short_limit:
        return short_cap
    if distance < medium_limit:
        return medium_cap
    if distance >= long_limit:
        return long_cap
    ratio = (distance - medium_limit) / (long_limit - medium_limit)
    return int(math.floor(medium_cap + ratio * (long_cap - medium_cap)))


def speed_curve(progress: float, peak_start: float, peak_end: float) -> float:
    """Speed multiplier in [0, 1]: quadratic ease-in, plateau, quadratic ease-out."""
    if progress < peak_start:
        t = progress / peak_start
        return t * t
    if progress <= peak_end:
        return 1.0
    t = (progress - peak_end) / (1.0 - peak_end)
    return 1.0 - t * t


def event_rates(
    count: int, peak_start: float, peak_end: float, min_hz: float, peak_hz: float
) -> List[float]:
    """Instantaneous event rate (Hz) for each of ``count`` path points."""
    denominator = (count - 1) or 1
    return [
        min_hz + speed_curve(i / denominator, peak_start, peak_end) * (peak_hz - min_hz)
        for i in range(count)
    ]


def _walk(
    start: Point, end: Point, tuning: TuningParameters, rng, points: List[Point]
) -> None:
    """WindMouse walk, appending into ``points``; raises on the iteration cap."""
    x, y = start
    end_x, end_y = end
    wind_x = wind_y = 0.0
    velocity_x = velocity_y = 0.0

    while True:
        dx = end_x - x
        dy = end_y - y
        distance = math.hypot(dx, dy)

        if distance <= tuning.target_radius:
            points.append(end)
            return

        wind_mag = min(tuning.wind, distance)
        wind_x = wind_x / _SQRT3 + (rng.random() * 2 - 1) * wind_mag / _SQRT5
        wind_y = wind_y / _SQRT3 + (rng.random() * 2 - 1) * wind_mag / _SQRT5

        gravity_mag = min(tuning.gravity, distance)
        velocity_x += wind_x + gravity_mag * dx / distance
        velocity_y += wind_y + gravity_mag * dy / distance

        speed = math.hypot(velocity_x, velocity_y)
        max_speed = min(tuning.max_step, distance / 2 + 1)
        if speed > max_speed:
            scale = max_speed / speed
            velocity_x *= scale
            velocity_y *= scale

        x += velocity_x
        y += velocity_y
        points.append(Point(x, y))

        if len(points) >= cfg.MAX_PATH_POINTS:
            raise PathSynthesisAborted(
                f"WindMouse reached {cfg.MAX_PATH_POINTS} points "
                f"({start} -> {end}); snapping to target"
            )


def synthesize_path(
    start,
    end,
    tuning: Optional[TuningParameters] = None,
    *,
    rng=None,
) -> Path:
    """Generate a human-like pointer path from ``start`` to ``end``.

    The first pass runs WindMouse (gravity toward the target, decaying random
    wind, per-step speed clamp) until the cursor is within ``target_radius``,
    then lands exactly on ``end``. The second pass assigns inter-event delays
    from a speed curve: slow start, a randomized peak window, slow finish,
    with the peak rate capped by total distance.

    ``rng`` is any object with ``random()`` and ``uniform()``; pass a seeded
    ``random.Random`` for reproducible paths. Never raises for finite input.
    """
    rng = rng or random
    tuning = tuning or DEFAULT_TUNING
    start = as_point(start)
    end = as_point(end)

    total_distance = start.distance_to(end)
    if total_distance < cfg.MIN_PATH_DISTANCE_PX:
        return [PathPoint(end, cfg.SHORT_PATH_DELAY_MS)]

    cap = hz_cap_for_distance(total_distance)
    peak_hz = int(math.floor(cap * rng.uniform(*cfg.PEAK_HZ_FRACTION_RANGE)))
    peak_hz = min(peak_hz, cap)
    min_hz = max(cfg.MIN_HZ_FLOOR, peak_hz * cfg.MIN_HZ_FRACTION)
    peak_start = rng.uniform(*cfg.PEAK_START_RANGE)
    peak_end = rng.uniform(*cfg.PEAK_END_RANGE)

    raw_points: List[Point] = []
    try:
        _walk(start, end, tuning, rng, raw_points)
    except PathSynthesisAborted as exc:
        logging.getLogger(__name__).warning("%s", exc)
        raw_points.append(end)

    rates = event_rates(len(raw_points), peak_start, peak_end, min_hz, peak_hz)
    return [
        PathPoint(position, max(1, round_half_up(1000.0 / hz)))
        for position, hz in zip(raw_points, rates)
    ]


def path_duration(path: Sequence[PathPoint]) -> int:
    """Total replay time of a path in ms."""
    return sum(point.delay_ms for point in path)


def path_stats(path: Sequence[PathPoint]) -> PathStats:
    """Point count, chord distance, duration and Hz spread of a path."""
    if len(path) < 2:
        return PathStats(
            points=len(path),
            distance=0,
            duration_ms=path_duration(path),
            avg_hz=0,
            min_hz=0,
            max_hz=0,
        )
    delays = [point.delay_ms for point in path]
    total = sum(delays)
    avg_dt = total / len(path)
    first, last = path[0].position, path[-1].position
    return PathStats(
        points=len(path),
        distance=round_half_up(first.distance_to(last)),
        duration_ms=total,
        avg_hz=round_half_up(1000.0 / avg_dt),
        min_hz=round_half_up(1000.0 / max(delays)),
        max_hz=round_half_up(1000.0 / min(delays)),
    )
