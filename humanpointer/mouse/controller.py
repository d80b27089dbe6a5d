from __future__ import annotations
import logging
import random
from dataclasses import dataclass
from typing import Dict, Hashable, Optional

from ..capability import InspectionCapability, ZendriverCapability
from ..errors import SessionClosed
from ..refs import ElementReferenceStore, SnapshotResult
from .analysis import summarize_speeds
from .config import cfg, TuningParameters, DEFAULT_TUNING
from .dispatchers import PointerActuator
from .path import PathStats, path_stats, synthesize_path
from .render import TrajectoryCallback, save_mouse_trajectory_jpeg
from .resolver import TargetResolver, refresh_snapshot
from .scroll import ScrollOutcome, ViewportScroller, get_viewport
from .state import CursorStateStore, SessionContext
from .types import Point, as_target


@dataclass(frozen=True)
class ClickResult:
    success: bool
    final_position: Point
    start_position: Point
    scrolled: bool
    reidentified: bool
    button: str
    click_count: int
    press_delay_ms: int
    linger_ms: int
    path: PathStats
    ref: Optional[str] = None


class PointerDriver:
    """Session-aware facade: resolve a target, synthesize a path, click.

    One driver can serve many tabs; reference snapshots, cursor positions and
    telemetry are all keyed by the session id passed to ``attach``. Calls for
    the same session must be serialized by the caller.
    """

    def __init__(
        self,
        *,
        tuning: Optional[TuningParameters] = None,
        rng=None,
        settle_seconds: float = cfg.SETTLE_AFTER_SCROLL_S,
    ):
        self.tuning = tuning or DEFAULT_TUNING
        self.rng = rng or random
        self.references = ElementReferenceStore()
        self.cursor_state = CursorStateStore()
        self.resolver = TargetResolver(self.references, settle_seconds=settle_seconds)
        self.actuator = PointerActuator(self.cursor_state, rng=self.rng)
        self._sessions: Dict[Hashable, SessionContext] = {}

    async def attach(self, session: Hashable, tab_or_capability) -> SessionContext:
        """Bind a zendriver Tab (or any InspectionCapability) to ``session``."""
        if isinstance(tab_or_capability, InspectionCapability):
            capability = tab_or_capability
        else:
            capability = ZendriverCapability(tab_or_capability)
            await capability.attach()
        ctx = SessionContext(session_id=session, capability=capability)
        self._sessions[session] = ctx
        return ctx

    def context(self, session: Hashable) -> SessionContext:
        ctx = self._sessions.get(session)
        if ctx is None:
            raise SessionClosed(session)
        return ctx

    def close_session(self, session: Hashable) -> None:
        """Tear down a tab: drop refs and cursor state, fail in-flight work."""
        ctx = self._sessions.pop(session, None)
        if ctx is not None:
            ctx.closed = True
        self.references.clear(session)
        self.cursor_state.clear(session)
        logging.getLogger(__name__).debug("Session %r closed", session)

    def last_position(self, session: Hashable) -> Optional[Point]:
        return self.cursor_state.last_position(session)

    async def capture_snapshot(self, session: Hashable) -> SnapshotResult:
        """Capture the accessibility outline; its refs replace earlier ones."""
        return await refresh_snapshot(self.context(session), self.references)

    async def move_and_click(
        self,
        session: Hashable,
        target,
        *,
        button: str = "left",
        click_count: int = 1,
        delay_ms: Optional[int] = None,
        show_cursor: bool = True,
    ) -> ClickResult:
        """Click at coordinates, a CSS selector, or an accessibility ref.

        The cursor travels a WindMouse path from where the previous click
        on this session left it (viewport centre the first time).
        """
        if button not in cfg.BUTTONS:
            raise ValueError("button must be left, right, or middle")
        target = as_target(target)
        ctx = self.context(session)

        resolution = await self.resolver.resolve(ctx, target)
        viewport = await get_viewport(ctx.capability)
        start = self.cursor_state.start_position(session, viewport.width, viewport.height)
        path = synthesize_path(start, resolution.point, self.tuning, rng=self.rng)
        stats = path_stats(path)
        logging.getLogger(__name__).debug(
            "Click %s: %d points over %d ms", target, stats.points, stats.duration_ms
        )

        actuation = await self.actuator.perform(
            ctx,
            path,
            start=start,
            button=button,
            click_count=click_count,
            delay_ms=delay_ms,
            show_cursor=show_cursor,
        )
        return ClickResult(
            success=True,
            final_position=actuation.final_position,
            start_position=start,
            scrolled=resolution.scrolled,
            reidentified=resolution.reidentified,
            button=button,
            click_count=click_count,
            press_delay_ms=actuation.press_delay_ms,
            linger_ms=actuation.linger_ms,
            path=stats,
            ref=resolution.handle,
        )

    async def scroll_into_view(self, session: Hashable, target) -> ScrollOutcome:
        target = as_target(target)
        ctx = self.context(session)
        if target.is_element:
            resolution = await self.resolver.resolve(ctx, target)
            return resolution.scroll
        return await ViewportScroller(ctx.capability).ensure_visible(target.point)

    async def scroll_by(self, session: Hashable, pixels: float) -> ScrollOutcome:
        """Scroll the page by ``pixels`` (positive = down) with easing."""
        return await ViewportScroller(self.context(session).capability).scroll_by(pixels)

    def summarize_speeds(self, session: Hashable) -> str:
        return summarize_speeds(self.context(session).recorder)

    async def save_trajectory(
        self,
        session: Hashable,
        outfile: str = "mouse_trajectory.jpg",
        *,
        on_saved: TrajectoryCallback = None,
    ) -> str:
        ctx = self.context(session)
        viewport = await get_viewport(ctx.capability)
        return await save_mouse_trajectory_jpeg(
            ctx.recorder,
            (int(viewport.width), int(viewport.height)),
            outfile,
            on_saved=on_saved,
        )
