from .types import Point, PathPoint, Target
from .config import cfg, TuningParameters, DEFAULT_TUNING
from .path import PathStats, synthesize_path, path_stats
from .render import save_mouse_trajectory_jpeg
from .telemetry import TrajectoryRecorder
from .analysis import summarize_speeds
from .controller import PointerDriver, ClickResult

__all__ = [
    "Point",
    "PathPoint",
    "Target",
    "cfg",
    "TuningParameters",
    "DEFAULT_TUNING",
    "PathStats",
    "synthesize_path",
    "path_stats",
    "save_mouse_trajectory_jpeg",
    "TrajectoryRecorder",
    "summarize_speeds",
    "PointerDriver",
    "ClickResult",
]
