from __future__ import annotations
import math
from typing import List

from .telemetry import TrajectoryRecorder


def move_speeds(recorder: TrajectoryRecorder, *, min_dt_ms: float = 1.0) -> List[float]:
    """Per-step speed in px/ms between consecutive recorded moves."""
    moves = recorder.moves()
    speeds: List[float] = []
    for prev, cur in zip(moves, moves[1:]):
        dt_ms = max(min_dt_ms, (cur.t - prev.t) * 1000.0)
        speeds.append(math.hypot(cur.x - prev.x, cur.y - prev.y) / dt_ms)
    return speeds


def summarize_speeds(recorder: TrajectoryRecorder) -> str:
    """Summarize instantaneous movement speeds from recorded 'move' events.

    Reports average, p95, p99, max and sample count.
    """
    speeds = move_speeds(recorder)
    if not speeds:
        return "No move data"
    ordered = sorted(speeds)
    n = len(ordered)
    average = sum(ordered) / n
    p95 = ordered[max(0, int(0.95 * n) - 1)]
    p99 = ordered[max(0, int(0.99 * n) - 1)]
    return (
        f"speed px/ms: avg={average:.3f}, p95={p95:.3f}, p99={p99:.3f}, "
        f"max={ordered[-1]:.3f}, samples={n}"
    )
