from __future__ import annotations
import asyncio
import logging
import math
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Set

from ..errors import ActuationFailed
from ..utils import HiResTimer, sleep_ms, weighted_random_delay
from .config import cfg
from .cursor import cursor_create_code, cursor_move_code, cursor_remove_code, ripple_code
from .state import CursorStateStore, SessionContext
from .types import PathPoint, Point

CDP_SEND_TIMEOUT_S: float = cfg.CDP_SEND_TIMEOUT_S
MOVE_SEND_RETRIES: int = cfg.MOVE_SEND_RETRIES
RETRY_BACKOFF_S: float = cfg.RETRY_BACKOFF_S
CLICK_SEND_TIMEOUT_S: float = cfg.CLICK_SEND_TIMEOUT_S


@dataclass(frozen=True)
class ActuationResult:
    final_position: Point
    press_delay_ms: int
    linger_ms: int


class PointerActuator:
    """Replays a synthesized path through the input capability, then clicks.

    Points go out strictly in order, one mouseMoved each, sleeping each
    point's delay after dispatch. The optional overlay cursor is moved just
    before each event and never blocks dispatch.
    """

    def __init__(self, cursor_state: CursorStateStore, *, rng=None):
        self.cursor_state = cursor_state
        self.rng = rng or random
        self._background: Set[asyncio.Task] = set()

    def _keep(self, task: asyncio.Task) -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _send(
        self,
        send: Callable[[], Awaitable[Any]],
        *,
        label: str,
        attempts: int = 1,
        detach: bool = True,
    ) -> None:
        """Bounded-time send; raises ActuationFailed when exhausted.

        Detached sends (moves) that stall are left to finish in the
        background. Non-detached sends (press/release) are awaited up to
        CLICK_SEND_TIMEOUT_S and a stall counts as a failure.
        """
        logger = logging.getLogger(__name__)
        last_err: Optional[BaseException] = None
        for _ in range(max(1, attempts)):
            if not detach:
                try:
                    await asyncio.wait_for(send(), timeout=CLICK_SEND_TIMEOUT_S)
                    return
                except asyncio.TimeoutError as exc:
                    raise ActuationFailed(
                        f"{label} did not complete within {CLICK_SEND_TIMEOUT_S * 1000.0:.0f} ms"
                    ) from exc
                except Exception as exc:
                    last_err = exc
                    await asyncio.sleep(RETRY_BACKOFF_S)
                    continue

            task = asyncio.ensure_future(send())
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout=CDP_SEND_TIMEOUT_S)
                return
            except asyncio.TimeoutError:
                logger.warning(
                    "CDP %s pending >%.0f ms; letting it finish in background",
                    label,
                    CDP_SEND_TIMEOUT_S * 1000.0,
                )

                def _late_log(done: asyncio.Task) -> None:
                    if not done.cancelled() and done.exception() is not None:
                        logger.warning("CDP %s failed late: %r", label, done.exception())

                task.add_done_callback(_late_log)
                self._keep(task)
                return
            except Exception as exc:
                last_err = exc
                await asyncio.sleep(RETRY_BACKOFF_S)
        raise ActuationFailed(f"{label} dispatch failed: {last_err!r}") from last_err

    async def _overlay(self, ctx: SessionContext, code: str) -> None:
        """Cosmetic in-page cursor update; failures are logged and dropped."""
        try:
            await asyncio.wait_for(ctx.capability.evaluate(code), timeout=CDP_SEND_TIMEOUT_S)
        except Exception:
            logging.getLogger(__name__).debug("Cursor overlay update skipped", exc_info=True)

    async def _move(self, ctx: SessionContext, point: Point) -> None:
        await self._send(
            lambda: ctx.capability.dispatch_move(point),
            label="mouseMoved",
            attempts=MOVE_SEND_RETRIES,
        )
        ctx.recorder.log_move(point[0], point[1])

    async def perform(
        self,
        ctx: SessionContext,
        path: Sequence[PathPoint],
        *,
        start: Point,
        button: str = "left",
        click_count: int = 1,
        delay_ms: Optional[int] = None,
        show_cursor: bool = True,
    ) -> ActuationResult:
        """Move along ``path`` from ``start`` and click at its final point."""
        if button not in cfg.BUTTONS:
            raise ValueError("button must be left, right, or middle")
        if not path:
            raise ValueError("path must contain at least one point")

        press_delay = (
            int(delay_ms)
            if delay_ms is not None
            else weighted_random_delay(*cfg.PRESS_RELEASE_DELAY_MS, rng=self.rng)
        )
        linger_lo, linger_hi = cfg.LINGER_MS
        linger = int(math.floor(linger_lo + self.rng.random() * (linger_hi - linger_lo)))

        ctx.ensure_open()
        if show_cursor:
            await self._overlay(ctx, cursor_create_code(*start))
            await asyncio.sleep(cfg.CURSOR_FADE_IN_S)

        with HiResTimer():
            await self._move(ctx, start)
            for waypoint in path:
                ctx.ensure_open()
                if show_cursor:
                    await self._overlay(ctx, cursor_move_code(*waypoint.position))
                await self._move(ctx, waypoint.position)
                if waypoint.delay_ms > 0:
                    await sleep_ms(waypoint.delay_ms)

            if show_cursor:
                await self._overlay(ctx, ripple_code())

            final = path[-1].position
            ctx.ensure_open()
            await self._send(
                lambda: ctx.capability.dispatch_press(final, button, click_count),
                label="mousePressed",
                detach=False,
            )
            ctx.recorder.log_down(final.x, final.y, button)
            if press_delay > 0:
                await sleep_ms(press_delay)
            await self._send(
                lambda: ctx.capability.dispatch_release(final, button, click_count),
                label="mouseReleased",
                detach=False,
            )
            ctx.recorder.log_up(final.x, final.y, button)
            ctx.recorder.log_click(final.x, final.y, button)

        # only a fully released click moves the session's cursor
        ctx.ensure_open()
        self.cursor_state.set_last_position(ctx.session_id, final)

        if show_cursor:
            self._keep(asyncio.ensure_future(self._overlay(ctx, cursor_remove_code(linger))))

        return ActuationResult(final_position=final, press_delay_ms=press_delay, linger_ms=linger)
