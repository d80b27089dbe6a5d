import asyncio

import pytest

from humanpointer.errors import ViewportUnavailable
from humanpointer.mouse.config import cfg
from humanpointer.mouse.scroll import (
    ViewportScroller,
    get_viewport,
    page_scroll_delta,
    scroll_duration_ms,
    should_animate,
)
from humanpointer.mouse.types import Point


@pytest.mark.parametrize(
    "delta,ms_per_step,expected",
    [(500, 50, 500), (-500, 50, 500), (20, 50, 100), (1234, 50, 1234), (200, 75, 300), (50, 75, 100)],
)
def test_scroll_duration(delta, ms_per_step, expected):
    assert scroll_duration_ms(delta, ms_per_step) == expected


def test_small_deltas_do_not_animate():
    assert not should_animate(9)
    assert not should_animate(-9.99)
    assert should_animate(10)
    assert page_scroll_delta(1300, 800) == 900


@pytest.mark.parametrize("point", [(0, 0), (1000, 800), (500, 400), (999.5, 0.5)])
def test_visible_point_is_a_noop(fake, point):
    outcome = asyncio.run(ViewportScroller(fake).ensure_visible(Point(*point)))
    assert outcome.scrolled is False
    assert fake.animations == []


def test_nine_pixel_delta_is_not_animated(fake):
    # off to the right, but already vertically centred within 9 px
    outcome = asyncio.run(ViewportScroller(fake).ensure_visible(Point(1500, 409)))
    assert outcome.scrolled is False
    assert fake.animations == []


def test_page_scroll_centres_point(fake):
    outcome = asyncio.run(ViewportScroller(fake).ensure_visible(Point(500, 900)))
    assert outcome.scrolled is True
    assert outcome.container_scrolled is False
    assert outcome.delta == 500
    assert outcome.duration_ms == 500
    assert len(fake.animations) == 1
    assert "window.scrollTo(0, scrollPos)" in fake.animations[0]
    assert "const duration = 500;" in fake.animations[0]
    assert "easeInOutCubic" in fake.animations[0]


def test_page_scroll_upwards(fake):
    outcome = asyncio.run(ViewportScroller(fake).ensure_visible(Point(500, -600)))
    assert outcome.delta == -1000
    assert outcome.duration_ms == 1000


def test_container_scroll_for_selector(fake):
    fake.container = {"found": True, "scrollTop": 120, "delta": 200}
    outcome = asyncio.run(
        ViewportScroller(fake).ensure_visible(Point(300, 1400), selector="#menu li:last-child")
    )
    assert outcome.container_scrolled is True
    assert outcome.delta == 200
    assert outcome.duration_ms == 300
    assert "container.scrollTop = scrollPos" in fake.animations[0]


def test_container_scroll_tags_and_untags_node(fake):
    fake.container = {"found": True, "scrollTop": 0, "delta": -400}
    outcome = asyncio.run(ViewportScroller(fake).ensure_visible(Point(300, -50), locator=77))
    assert outcome.container_scrolled is True
    assert [loc for loc, _ in fake.function_calls] == [77, 77]
    assert "setAttribute" in fake.function_calls[0][1]
    assert "removeAttribute" in fake.function_calls[1][1]


def test_no_scrollable_container_falls_back_to_page(fake):
    outcome = asyncio.run(ViewportScroller(fake).ensure_visible(Point(300, 1000), locator=5))
    assert outcome.scrolled is True
    assert outcome.container_scrolled is False
    assert outcome.delta == 600


def test_stalled_animation_forces_final_offset(fake, monkeypatch):
    monkeypatch.setattr(cfg, "SCROLL_SAFETY_MARGIN_MS", 0)
    fake.animation_seconds = 5.0
    fake.scroll_y = 100
    outcome = asyncio.run(ViewportScroller(fake).scroll_by(120))
    assert outcome.scrolled is True
    assert outcome.duration_ms == 120
    assert fake.evaluated[-1].strip() == "window.scrollTo(0, 220.0)"


def test_scroll_by_small_delta(fake):
    outcome = asyncio.run(ViewportScroller(fake).scroll_by(5))
    assert outcome.scrolled is False
    assert outcome.delta == 5


def test_viewport_unavailable(fake):
    fake.width = 0
    with pytest.raises(ViewportUnavailable) as info:
        asyncio.run(get_viewport(fake, timeout_seconds=0.1, poll_interval_seconds=0.02))
    assert info.value.stage == "resolution"


def test_viewport_metrics(fake):
    fake.scroll_y = 250
    metrics = asyncio.run(get_viewport(fake))
    assert (metrics.width, metrics.height, metrics.scroll_y) == (1000, 800, 250)
