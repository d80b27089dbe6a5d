from __future__ import annotations
import asyncio
import ctypes
import math
import platform
import random


class HiResTimer:
    """Context manager to request 1ms Windows system timer resolution.

    On Windows this reduces sleep jitter/latency for tighter timing loops.
    On other platforms, it is a no-op.
    """

    def __enter__(self):
        if ctypes and platform.system() == "Windows":
            ctypes.windll.winmm.timeBeginPeriod(1)
        return self

    def __exit__(self, exc_type, exc, tb):
        if ctypes and platform.system() == "Windows":
            ctypes.windll.winmm.timeEndPeriod(1)


def weighted_random_delay(min_ms: int = 10, max_ms: int = 90, rng=None) -> int:
    """Random delay in ms biased toward the upper end of [min_ms, max_ms].

    Uses the inverted quadratic 1 - (1 - u)^2, so roughly three quarters of
    draws land in the upper half of the range.
    """
    u = (rng or random).random()
    weighted = 1.0 - (1.0 - u) ** 2
    return int(math.floor(min_ms + weighted * (max_ms - min_ms)))


def sleep_ms(ms: float) -> asyncio.Future:
    return asyncio.sleep(max(0.0, ms) / 1000.0)


def round_half_up(value: float) -> int:
    """Round to the nearest int with .5 going up (JS Math.round semantics)."""
    return int(math.floor(value + 0.5))
