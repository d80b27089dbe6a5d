from __future__ import annotations
import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import ViewportUnavailable
from ..utils import round_half_up
from .config import cfg
from .types import Point


@dataclass(frozen=True)
class ViewportMetrics:
    width: float
    height: float
    scroll_y: float = 0.0

    def contains(self, point: Point) -> bool:
        x, y = point
        return 0 <= x <= self.width and 0 <= y <= self.height


@dataclass(frozen=True)
class ScrollOutcome:
    """Result of a scroll request; ``delta`` is in px, positive = down."""

    scrolled: bool
    container_scrolled: bool = False
    delta: int = 0
    duration_ms: int = 0


NOT_SCROLLED = ScrollOutcome(scrolled=False)


def scroll_duration_ms(delta: float, ms_per_step: float = cfg.PAGE_SCROLL_MS_PER_STEP) -> int:
    """Animation length: ``ms_per_step`` for every 50 px, never under 100 ms."""
    steps = abs(delta) / cfg.SCROLL_STEP_PX
    return max(cfg.MIN_SCROLL_DURATION_MS, round_half_up(steps * ms_per_step))


def page_scroll_delta(y: float, viewport_height: float) -> float:
    """Scroll offset change that centres viewport-relative ``y`` vertically."""
    return y - viewport_height / 2.0


def should_animate(delta: float) -> bool:
    return abs(delta) >= cfg.MIN_SCROLL_DELTA_PX


_VIEWPORT_EXPR = (
    "({width: window.innerWidth || 0, height: window.innerHeight || 0, "
    "scrollY: window.scrollY || 0})"
)

_EASING_JS = """
    function easeInOutCubic(t) {
      return t < 0.5 ? 4 * t * t * t : 1 - Math.pow(-2 * t + 2, 3) / 2;
    }
"""

_SCROLLABLE_PARENT_JS = """
    function getScrollableParent(element) {
      let parent = element.parentElement;
      while (parent && parent !== document.documentElement && parent !== document.body) {
        const overflowY = window.getComputedStyle(parent).overflowY;
        if ((overflowY === 'auto' || overflowY === 'scroll') &&
            parent.scrollHeight > parent.clientHeight) {
          return parent;
        }
        parent = parent.parentElement;
      }
      return null;
    }
"""


def _animation_js(set_scroll: str, safety_ms: int) -> str:
    """rAF loop body; expects startPos, delta, duration and resolve in scope."""
    return f"""
      const startTime = performance.now();
      const maxTime = duration + {int(safety_ms)};
      {_EASING_JS}
      function step(now) {{
        const elapsed = now - startTime;
        if (elapsed > maxTime) {{
          const scrollPos = startPos + delta;
          {set_scroll};
          resolve(true);
          return;
        }}
        const progress = Math.min(elapsed / duration, 1);
        const scrollPos = startPos + delta * easeInOutCubic(progress);
        {set_scroll};
        if (progress < 1) {{
          requestAnimationFrame(step);
        }} else {{
          resolve(true);
        }}
      }}
      requestAnimationFrame(step);
    """


def page_animation_code(delta: float, duration_ms: int) -> str:
    return f"""
    new Promise(resolve => {{
      const startPos = window.scrollY;
      const delta = {json.dumps(float(delta))};
      const duration = {int(duration_ms)};
      {_animation_js("window.scrollTo(0, scrollPos)", cfg.SCROLL_SAFETY_MARGIN_MS)}
    }})
    """


def container_measure_code(element_expression: str) -> str:
    """Find the nearest scrollable ancestor and the delta that centres the element."""
    return f"""
    (function() {{
      const el = {element_expression};
      if (!el) return {{ found: false, error: 'Element not found' }};
      {_SCROLLABLE_PARENT_JS}
      const container = getScrollableParent(el);
      if (!container) return {{ found: false }};
      const elRect = el.getBoundingClientRect();
      const containerRect = container.getBoundingClientRect();
      const elRelativeTop = elRect.top - containerRect.top + container.scrollTop;
      const targetScrollTop = elRelativeTop - container.clientHeight / 2 + elRect.height / 2;
      return {{
        found: true,
        scrollTop: container.scrollTop,
        delta: targetScrollTop - container.scrollTop
      }};
    }})()
    """


def container_animation_code(element_expression: str, delta: float, duration_ms: int) -> str:
    return f"""
    new Promise(resolve => {{
      const el = {element_expression};
      {_SCROLLABLE_PARENT_JS}
      const container = el ? getScrollableParent(el) : null;
      if (!container) {{ resolve(false); return; }}
      const startPos = container.scrollTop;
      const delta = {json.dumps(float(delta))};
      const duration = {int(duration_ms)};
      {_animation_js("container.scrollTop = scrollPos", cfg.SCROLL_SAFETY_MARGIN_MS)}
    }})
    """


def container_jump_code(element_expression: str, scroll_top: float) -> str:
    return f"""
    (function() {{
      const el = {element_expression};
      {_SCROLLABLE_PARENT_JS}
      const container = el ? getScrollableParent(el) : null;
      if (container) container.scrollTop = {json.dumps(float(scroll_top))};
      return !!container;
    }})()
    """


def _metric(value: Any, name: str) -> float:
    try:
        if isinstance(value, dict):
            return float(value.get(name) or 0)
        return float(getattr(value, name, 0) or 0)
    except (TypeError, ValueError):
        return 0.0


async def get_viewport(
    capability,
    *,
    timeout_seconds: float = 1.5,
    poll_interval_seconds: float = 0.05,
) -> ViewportMetrics:
    """Viewport size and page scroll offset, polled until the page reports them."""
    start = time.perf_counter()
    last_error: Optional[BaseException] = None
    while True:
        try:
            raw = await capability.evaluate(_VIEWPORT_EXPR)
            width, height = _metric(raw, "width"), _metric(raw, "height")
            if width > 0 and height > 0:
                return ViewportMetrics(width, height, _metric(raw, "scrollY"))
        except Exception as exc:
            last_error = exc
        if (time.perf_counter() - start) >= timeout_seconds:
            break
        await asyncio.sleep(poll_interval_seconds)

    raise ViewportUnavailable(
        f"Viewport did not become ready within {timeout_seconds:.2f}s"
        + (f" last error: {last_error!r}" if last_error else "")
    )


class ViewportScroller:
    """Brings a point or element into the visible viewport with eased scrolling.

    Elements inside a scrollable container (dropdowns, modals, feeds) scroll
    that container; everything else scrolls the page to centre the target.
    """

    def __init__(self, capability):
        self.capability = capability

    async def ensure_visible(
        self,
        point: Point,
        *,
        locator: Optional[int] = None,
        selector: Optional[str] = None,
    ) -> ScrollOutcome:
        metrics = await get_viewport(self.capability)
        if metrics.contains(point):
            return NOT_SCROLLED

        if locator is not None or selector is not None:
            outcome = await self._scroll_container(locator=locator, selector=selector)
            if outcome.container_scrolled:
                return outcome

        return await self._animate_page(page_scroll_delta(point[1], metrics.height), metrics)

    async def scroll_by(self, pixels: float) -> ScrollOutcome:
        metrics = await get_viewport(self.capability)
        return await self._animate_page(float(pixels), metrics)

    async def _bounded(self, expression: str, duration_ms: int) -> bool:
        """Await an in-page animation; False when the deadline passed first."""
        deadline_s = (duration_ms + cfg.SCROLL_SAFETY_MARGIN_MS) / 1000.0
        try:
            await asyncio.wait_for(
                self.capability.evaluate(expression, await_promise=True),
                timeout=deadline_s,
            )
            return True
        except asyncio.TimeoutError:
            logging.getLogger(__name__).warning(
                "Scroll animation stalled >%.0f ms; forcing final offset",
                deadline_s * 1000.0,
            )
            return False

    async def _animate_page(self, delta: float, metrics: ViewportMetrics) -> ScrollOutcome:
        if not should_animate(delta):
            return ScrollOutcome(scrolled=False, delta=round_half_up(delta))

        duration = scroll_duration_ms(delta, cfg.PAGE_SCROLL_MS_PER_STEP)
        if not await self._bounded(page_animation_code(delta, duration), duration):
            await self.capability.evaluate(
                f"window.scrollTo(0, {json.dumps(metrics.scroll_y + delta)})"
            )
        logging.getLogger(__name__).debug("Page scrolled %.0f px in %d ms", delta, duration)
        return ScrollOutcome(
            scrolled=True, delta=round_half_up(delta), duration_ms=duration
        )

    async def _scroll_container(
        self, *, locator: Optional[int], selector: Optional[str]
    ) -> ScrollOutcome:
        if selector is not None:
            return await self._scroll_container_of(
                f"document.querySelector({json.dumps(selector)})"
            )

        attr = cfg.SCROLL_TARGET_ATTR
        try:
            await self.capability.call_function_on(
                locator, f"function() {{ this.setAttribute({json.dumps(attr)}, '1'); }}"
            )
        except Exception:
            logging.getLogger(__name__).debug(
                "Could not tag node %s for container scroll", locator, exc_info=True
            )
            return NOT_SCROLLED

        try:
            return await self._scroll_container_of(
                f"document.querySelector({json.dumps('[' + attr + ']')})"
            )
        finally:
            try:
                await self.capability.call_function_on(
                    locator, f"function() {{ this.removeAttribute({json.dumps(attr)}); }}"
                )
            except Exception:
                logging.getLogger(__name__).debug(
                    "Could not untag node %s", locator, exc_info=True
                )

    async def _scroll_container_of(self, element_expression: str) -> ScrollOutcome:
        measured = await self.capability.evaluate(container_measure_code(element_expression))
        if not isinstance(measured, dict) or not measured.get("found"):
            return NOT_SCROLLED

        delta = float(measured.get("delta") or 0.0)
        if not should_animate(delta):
            return NOT_SCROLLED

        duration = scroll_duration_ms(delta, cfg.CONTAINER_SCROLL_MS_PER_STEP)
        animation = container_animation_code(element_expression, delta, duration)
        if not await self._bounded(animation, duration):
            start = float(measured.get("scrollTop") or 0.0)
            await self.capability.evaluate(
                container_jump_code(element_expression, start + delta)
            )
        logging.getLogger(__name__).debug(
            "Container scrolled %.0f px in %d ms", delta, duration
        )
        return ScrollOutcome(
            scrolled=True,
            container_scrolled=True,
            delta=round_half_up(delta),
            duration_ms=duration,
        )
