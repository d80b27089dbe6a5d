from __future__ import annotations
from dataclasses import dataclass


class cfg:
    """Human-like tuning for pointer paths, scrolling and clicks"""

    # --- WindMouse / path generation ---
    GRAVITY = 9.0  # pull toward target (higher = more direct)
    WIND = 3.0  # lateral wobble (higher = more erratic)
    MAX_STEP = 15.0
    TARGET_RADIUS = 2.0
    MIN_PATH_DISTANCE_PX = 5.0
    SHORT_PATH_DELAY_MS = 10
    MAX_PATH_POINTS = 10000

    # --- Speed curve / event rate ---
    PEAK_START_RANGE = (0.40, 0.55)
    PEAK_END_RANGE = (0.70, 0.85)
    PEAK_HZ_FRACTION_RANGE = (0.70, 1.00)
    MIN_HZ_FRACTION = 0.15
    MIN_HZ_FLOOR = 50.0
    # (distance upper bound, hz cap); 800..1200 interpolates between caps
    HZ_CAP_SHORT = (300.0, 250)
    HZ_CAP_MEDIUM = (800.0, 500)
    HZ_CAP_LONG = (1200.0, 1000)

    # --- Scrolling ---
    SCROLL_STEP_PX = 50.0
    PAGE_SCROLL_MS_PER_STEP = 50
    CONTAINER_SCROLL_MS_PER_STEP = 75  # containers scroll slower/gentler
    MIN_SCROLL_DURATION_MS = 100
    SCROLL_SAFETY_MARGIN_MS = 2000
    MIN_SCROLL_DELTA_PX = 10.0
    SETTLE_AFTER_SCROLL_S = 0.150
    SCROLL_TARGET_ATTR = "data-humanpointer-scroll-target"

    # --- Clicks ---
    PRESS_RELEASE_DELAY_MS = (10, 90)
    LINGER_MS = (800, 1500)
    CURSOR_FADE_IN_S = 0.150
    BUTTONS = ("left", "right", "middle")

    # --- CDP dispatch ---
    CDP_SEND_TIMEOUT_S = 0.25
    CLICK_SEND_TIMEOUT_S = 2.0  # press/release are awaited, never detached
    MOVE_SEND_RETRIES = 3
    RETRY_BACKOFF_S = 0.02

    # --- Ancestry fingerprints ---
    MAX_ANCESTOR_DEPTH = 10
    ANCESTOR_MIN_TEXT = 20
    NAME_MAX_CHARS = 100
    ANCESTOR_CONTENT_MAX_CHARS = 200
    ANCESTOR_PREFIX_CHARS = 50
    MIN_MATCH_SCORE = 3

    # --- Accessibility tree outline ---
    TREE_NAME_MAX_CHARS = 80


@dataclass(frozen=True)
class TuningParameters:
    """Knobs for one WindMouse run; defaults mirror ``cfg``."""

    gravity: float = cfg.GRAVITY
    wind: float = cfg.WIND
    max_step: float = cfg.MAX_STEP
    target_radius: float = cfg.TARGET_RADIUS


DEFAULT_TUNING = TuningParameters()
