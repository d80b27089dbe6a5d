import logging
import math
import random

import pytest

from humanpointer.mouse.config import cfg, TuningParameters
from humanpointer.mouse.path import (
    event_rates,
    hz_cap_for_distance,
    path_duration,
    path_stats,
    speed_curve,
    synthesize_path,
)
from humanpointer.mouse.types import Point

PAIRS = [
    ((0, 0), (5, 0)),
    ((500, 400), (650, 400)),
    ((10, 10), (900, 700)),
    ((1200, 50), (40, 1000)),
    ((0, 0), (1920, 1080)),
    ((333.3, 12.7), (340.1, 20.2)),
]


@pytest.mark.parametrize("start,end", PAIRS)
def test_path_lands_exactly_on_target(start, end):
    rng = random.Random(1234)
    for _ in range(20):
        path = synthesize_path(start, end, rng=rng)
        assert path[-1].position == Point(float(end[0]), float(end[1]))


@pytest.mark.parametrize("end", [(100, 100), (103, 102), (104.9, 100), (100, 95.1)])
def test_short_moves_are_a_single_point(end):
    path = synthesize_path((100, 100), end, rng=random.Random(3))
    assert len(path) == 1
    assert path[0].position == Point(float(end[0]), float(end[1]))
    assert path[0].delay_ms == cfg.SHORT_PATH_DELAY_MS


@pytest.mark.parametrize("start,end", PAIRS)
def test_delays_are_positive_integers(start, end):
    path = synthesize_path(start, end, rng=random.Random(99))
    assert all(isinstance(p.delay_ms, int) and p.delay_ms >= 1 for p in path)
    total = path_duration(path)
    assert isinstance(total, int) and total > 0


def test_short_path_never_exceeds_250_hz():
    rng = random.Random(5)
    for _ in range(50):
        path = synthesize_path((500, 400), (650, 400), rng=rng)
        # 250 Hz cap means no gap under 4 ms
        assert min(p.delay_ms for p in path) >= 4


@pytest.mark.parametrize(
    "distance,cap",
    [(150, 250), (299.9, 250), (300, 500), (799, 500), (800, 500), (1000, 750), (1199, 998), (1200, 1000), (3000, 1000)],
)
def test_hz_cap_buckets(distance, cap):
    assert hz_cap_for_distance(distance) == cap


def test_event_rates_stay_within_cap():
    cap = hz_cap_for_distance(1000)
    peak_hz = math.floor(cap * 1.0)
    min_hz = max(cfg.MIN_HZ_FLOOR, peak_hz * cfg.MIN_HZ_FRACTION)
    rates = event_rates(120, 0.45, 0.8, min_hz, peak_hz)
    assert max(rates) <= cap
    assert min(rates) >= min_hz


def test_speed_curve_shape():
    assert speed_curve(0.0, 0.5, 0.8) == 0.0
    assert speed_curve(0.25, 0.5, 0.8) == pytest.approx(0.25)
    assert speed_curve(0.6, 0.5, 0.8) == 1.0
    assert speed_curve(1.0, 0.5, 0.8) == pytest.approx(0.0)


def test_ends_are_slower_than_middle():
    path = synthesize_path((0, 0), (1000, 0), rng=random.Random(8))
    middle = path[len(path) // 2].delay_ms
    assert path[0].delay_ms > middle
    assert path[-1].delay_ms > middle


def test_seeded_rng_is_reproducible():
    a = synthesize_path((0, 0), (640, 480), rng=random.Random(42))
    b = synthesize_path((0, 0), (640, 480), rng=random.Random(42))
    assert a == b


def test_custom_tuning_still_converges():
    tuning = TuningParameters(gravity=4, wind=8, max_step=25, target_radius=4)
    path = synthesize_path((0, 0), (800, 300), tuning, rng=random.Random(11))
    assert path[-1].position == Point(800.0, 300.0)


def test_point_cap_snaps_to_target(monkeypatch, caplog):
    monkeypatch.setattr(cfg, "MAX_PATH_POINTS", 5)
    with caplog.at_level(logging.WARNING, logger="humanpointer.mouse.path"):
        path = synthesize_path((0, 0), (1500, 0), rng=random.Random(2))
    assert len(path) == 6
    assert path[-1].position == Point(1500.0, 0.0)
    assert "snapping to target" in caplog.text


def test_path_stats():
    path = synthesize_path((0, 0), (300, 400), rng=random.Random(21))
    stats = path_stats(path)
    assert stats.points == len(path)
    assert stats.duration_ms == path_duration(path)
    assert stats.max_hz >= stats.avg_hz >= stats.min_hz > 0
    assert stats.max_hz <= 1000


def test_path_stats_single_point():
    path = synthesize_path((0, 0), (1, 1))
    stats = path_stats(path)
    assert stats.points == 1
    assert stats.duration_ms == path_duration(path) == cfg.SHORT_PATH_DELAY_MS
