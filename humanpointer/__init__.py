from __future__ import annotations
from .mouse import (
    PointerDriver,
    ClickResult,
    Target,
    Point,
    TuningParameters,
    synthesize_path,
    save_mouse_trajectory_jpeg,
    summarize_speeds,
)
from .capability import InspectionCapability, ZendriverCapability
from .errors import (
    PointerError,
    HandleNotFound,
    GeometryUnavailable,
    ElementGoneAfterScroll,
    ActuationFailed,
    SessionClosed,
    ViewportUnavailable,
)

__all__ = [
    "PointerDriver",
    "ClickResult",
    "Target",
    "Point",
    "TuningParameters",
    "synthesize_path",
    "save_mouse_trajectory_jpeg",
    "summarize_speeds",
    "InspectionCapability",
    "ZendriverCapability",
    "PointerError",
    "HandleNotFound",
    "GeometryUnavailable",
    "ElementGoneAfterScroll",
    "ActuationFailed",
    "SessionClosed",
    "ViewportUnavailable",
]
