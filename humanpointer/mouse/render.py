from __future__ import annotations
import asyncio
import logging
import math
from pathlib import Path as FSPath
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from .telemetry import TrajectoryRecorder

TrajectoryCallback = Optional[Callable[[FSPath], Awaitable[None]]]

_SLOW_RGB = (0, 120, 255)
_MID_RGB = (60, 205, 60)
_FAST_RGB = (255, 60, 60)


def _quantile(values: Sequence[float], q: float) -> float:
    """Linear-interpolated quantile, q in [0, 1]."""
    if not values:
        return 0.0
    data = sorted(values)
    idx = min(1.0, max(0.0, q)) * (len(data) - 1)
    lo, hi = int(math.floor(idx)), int(math.ceil(idx))
    return data[lo] + (data[hi] - data[lo]) * (idx - lo)


def _lerp_rgb(a: Tuple[int, int, int], b: Tuple[int, int, int], u: float) -> Tuple[int, int, int]:
    return tuple(int(a[i] + (b[i] - a[i]) * u) for i in range(3))  # type: ignore[return-value]


def speed_to_rgb(speed: float, v_min: float, v_max: float) -> Tuple[int, int, int]:
    """Blue (slow) -> green -> red (fast)."""
    t = 0.0 if v_max <= v_min else (speed - v_min) / (v_max - v_min)
    t = max(0.0, min(1.0, t))
    if t <= 0.5:
        return _lerp_rgb(_SLOW_RGB, _MID_RGB, t / 0.5)
    return _lerp_rgb(_MID_RGB, _FAST_RGB, (t - 0.5) / 0.5)


def _render(
    recorder_events: List,
    viewport: Tuple[int, int],
    outfile: str,
    margin: int,
    background: Tuple[int, int, int],
) -> str:
    width, height = int(viewport[0]), int(viewport[1])
    legend_room = 80
    image = Image.new("RGB", (width + margin * 2 + legend_room, height + margin * 2), background)
    draw = ImageDraw.Draw(image)

    def to_canvas(x: float, y: float) -> Tuple[float, float]:
        return (
            margin + max(0.0, min(width - 1.0, x)),
            margin + max(0.0, min(height - 1.0, y)),
        )

    moves = [e for e in recorder_events if e.kind == "move"]
    segments = []
    for prev, cur in zip(moves, moves[1:]):
        dt_ms = max(1.0, (cur.t - prev.t) * 1000.0)
        segments.append((prev, cur, math.hypot(cur.x - prev.x, cur.y - prev.y) / dt_ms))

    if not segments:
        draw.text((margin, margin), "Not enough move data", fill=(180, 180, 180))
        image.save(outfile, format="JPEG", quality=92, optimize=True)
        return outfile

    speeds = [s for _, _, s in segments]
    # robust colour scale so one stalled send does not wash out the plot
    v_min, v_max = _quantile(speeds, 0.05), _quantile(speeds, 0.95)
    if v_max <= v_min:
        v_max = v_min + 1e-6

    for prev, cur, speed in segments:
        draw.line(
            [to_canvas(prev.x, prev.y), to_canvas(cur.x, cur.y)],
            fill=speed_to_rgb(speed, v_min, v_max),
            width=2,
        )

    for event in recorder_events:
        if event.kind != "click":
            continue
        cx, cy = to_canvas(event.x, event.y)
        for radius, colour in ((9, (255, 140, 40)), (5, (255, 200, 80))):
            draw.ellipse([cx - radius, cy - radius, cx + radius, cy + radius], outline=colour, width=2)

    legend_left = margin + width + 20
    legend_height = max(80, height - 40)
    for i in range(legend_height):
        speed_here = v_max - (i / max(1, legend_height - 1)) * (v_max - v_min)
        draw.line(
            [(legend_left, margin + i), (legend_left + 18, margin + i)],
            fill=speed_to_rgb(speed_here, v_min, v_max),
        )
    draw.text((legend_left + 24, margin - 2), f"fast\n{v_max:.3f}", fill=(220, 220, 220))
    draw.text(
        (legend_left + 24, margin + legend_height - 22), f"slow\n{v_min:.3f}", fill=(220, 220, 220)
    )
    draw.text(
        (margin, height + margin - 14),
        f"moves {len(moves)} | px/ms p50 {_quantile(speeds, 0.5):.3f} | max {max(speeds):.3f}",
        fill=(200, 200, 200),
    )

    image.save(outfile, format="JPEG", quality=92, optimize=True)
    return outfile


async def save_mouse_trajectory_jpeg(
    recorder: TrajectoryRecorder,
    viewport: Tuple[int, int],
    outfile: str = "mouse_trajectory.jpg",
    *,
    canvas_margin: int = 20,
    background_color: Tuple[int, int, int] = (12, 12, 14),
    on_saved: TrajectoryCallback = None,
) -> str:
    """Render a session's recorded pointer path to a JPEG, coloured by speed.

    Rendering runs in a worker thread so the event loop keeps dispatching.
    ``on_saved`` (async) receives the written path.
    """
    events = list(recorder.events)
    outfile_path = await asyncio.to_thread(
        _render, events, viewport, outfile, canvas_margin, background_color
    )
    if on_saved is not None:
        try:
            await on_saved(FSPath(outfile_path))
        except Exception:
            logging.getLogger(__name__).warning(
                "Trajectory callback failed for %s", outfile_path, exc_info=True
            )
    return outfile_path
