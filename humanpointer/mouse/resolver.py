from __future__ import annotations
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..errors import ElementGoneAfterScroll, GeometryUnavailable, HandleNotFound
from ..refs import (
    AncestryFingerprint,
    ElementReferenceStore,
    SnapshotResult,
    StructuralSnapshot,
    find_best_match,
)
from .config import cfg
from .scroll import NOT_SCROLLED, ScrollOutcome, ViewportScroller
from .state import SessionContext
from .types import Point, as_target, quad_center

ELEMENT_NODE = 1

# tags that carry an ARIA role override often enough to always pass
_GENERIC_TAGS = frozenset(
    {"div", "span", "li", "td", "th", "p", "section", "article", "label", "header", "nav"}
)
_ROLE_TAGS = {
    "button": frozenset({"button", "input", "summary", "a"}),
    "link": frozenset({"a", "area"}),
    "textbox": frozenset({"input", "textarea"}),
    "searchbox": frozenset({"input"}),
    "checkbox": frozenset({"input"}),
    "radio": frozenset({"input"}),
    "combobox": frozenset({"input", "select"}),
    "heading": frozenset({"h1", "h2", "h3", "h4", "h5", "h6"}),
    "image": frozenset({"img", "svg", "picture", "canvas"}),
    "img": frozenset({"img", "svg", "picture", "canvas"}),
    "listitem": frozenset({"li"}),
    "option": frozenset({"option"}),
}
_TEXT_ROLES = frozenset({"StaticText", "InlineTextBox", "text"})


def node_matches_role(descriptor, role: Optional[str]) -> bool:
    """Loose compatibility between a live DOM node and a recorded a11y role.

    Unknown roles accept any element; known roles accept their native tags
    plus generic containers. Text roles accept any node.
    """
    if descriptor is None:
        return False
    if role in _TEXT_ROLES:
        return True
    if descriptor.node_type != ELEMENT_NODE:
        return False
    allowed = _ROLE_TAGS.get(role or "")
    if allowed is None:
        return True
    return descriptor.node_name in allowed or descriptor.node_name in _GENERIC_TAGS


def selector_center_code(selector: str) -> str:
    sel = json.dumps(selector)
    return f"""
    (function() {{
      const el = document.querySelector({sel});
      if (!el) return {{ error: 'Element not found: ' + {sel} }};
      const rect = el.getBoundingClientRect();
      if (rect.width === 0 && rect.height === 0) return {{ error: 'Element has no dimensions' }};
      return {{ x: Math.round(rect.x + rect.width / 2), y: Math.round(rect.y + rect.height / 2) }};
    }})()
    """


@dataclass(frozen=True)
class Resolution:
    """Where to click, and what it took to get there."""

    point: Point
    scrolled: bool = False
    reidentified: bool = False
    locator: Optional[int] = None
    handle: Optional[str] = None
    scroll: ScrollOutcome = NOT_SCROLLED


async def refresh_snapshot(
    ctx: SessionContext, references: ElementReferenceStore
) -> SnapshotResult:
    """Capture the accessibility tree and make it the session's live snapshot."""
    raw_nodes = await ctx.capability.capture_structural_snapshot()
    result = StructuralSnapshot.from_ax_nodes(raw_nodes).build()
    ctx.ensure_open()
    references.capture_snapshot(ctx.session_id, result.refs, result.fingerprints)
    return result


class TargetResolver:
    """Turns a Target into viewport coordinates, scrolling and re-identifying.

    Ref targets whose node went stale (no box, or a post-scroll describe
    that no longer fits the recorded role) get exactly one re-identification
    attempt against a freshly captured snapshot.
    """

    def __init__(
        self,
        references: ElementReferenceStore,
        *,
        settle_seconds: float = cfg.SETTLE_AFTER_SCROLL_S,
    ):
        self.references = references
        self.settle_seconds = settle_seconds

    async def resolve(self, ctx: SessionContext, target) -> Resolution:
        target = as_target(target)
        ctx.ensure_open()
        if target.kind == "ref":
            return await self._resolve_ref(ctx, target.handle)
        if target.kind == "selector":
            return await self._resolve_selector(ctx, target.selector)
        return Resolution(point=target.point)

    async def _selector_point(self, ctx: SessionContext, selector: str) -> Point:
        value = await ctx.capability.evaluate(selector_center_code(selector))
        if not isinstance(value, dict):
            raise GeometryUnavailable(f"Failed to get element coordinates for {selector!r}")
        if value.get("error"):
            raise GeometryUnavailable(str(value["error"]))
        if value.get("x") is None or value.get("y") is None:
            raise GeometryUnavailable(f"Failed to get element coordinates for {selector!r}")
        return Point(float(value["x"]), float(value["y"]))

    async def _resolve_selector(self, ctx: SessionContext, selector: str) -> Resolution:
        point = await self._selector_point(ctx, selector)
        outcome = await ViewportScroller(ctx.capability).ensure_visible(point, selector=selector)
        if not outcome.scrolled:
            return Resolution(point=point)

        await asyncio.sleep(self.settle_seconds)
        ctx.ensure_open()
        try:
            point = await self._selector_point(ctx, selector)
        except GeometryUnavailable:
            raise ElementGoneAfterScroll() from None
        return Resolution(point=point, scrolled=True, scroll=outcome)

    async def _geometry(self, ctx: SessionContext, locator: int) -> Optional[Point]:
        quad = await ctx.capability.query_geometry(locator)
        return quad_center(quad) if quad else None

    async def _still_valid(
        self, ctx: SessionContext, locator: int, original: Optional[AncestryFingerprint]
    ) -> bool:
        if original is None:
            return True
        try:
            descriptor = await ctx.capability.describe(locator)
        except Exception:
            logging.getLogger(__name__).debug(
                "describe failed for node %s", locator, exc_info=True
            )
            return False
        return node_matches_role(descriptor, original.role)

    async def _reidentify(
        self, ctx: SessionContext, handle: str, original: Optional[AncestryFingerprint]
    ) -> Optional[Tuple[str, int, Point]]:
        """Match the original fingerprint against a fresh snapshot."""
        logger = logging.getLogger(__name__)
        if original is None:
            return None
        logger.info("Element %s changed, attempting re-identification", handle)
        await refresh_snapshot(ctx, self.references)
        match = find_best_match(original, self.references.candidates(ctx.session_id))
        if match is None:
            logger.warning("No element matched the ancestry of %s", handle)
            return None
        locator = self.references.resolve(ctx.session_id, match)
        point = await self._geometry(ctx, locator) if locator is not None else None
        if point is None:
            return None
        logger.info("Re-identified element: %s -> %s", handle, match)
        return match, locator, point

    async def _resolve_ref(self, ctx: SessionContext, handle: str) -> Resolution:
        session = ctx.session_id
        locator = self.references.resolve(session, handle)
        if locator is None:
            raise HandleNotFound(handle)
        # held before any recapture replaces the session's fingerprints
        original = self.references.fingerprint_of(session, handle)
        current_handle = handle
        reidentified = False

        point = await self._geometry(ctx, locator)
        if point is None:
            replacement = await self._reidentify(ctx, handle, original)
            if replacement is None:
                raise GeometryUnavailable(f"Element for ref {handle!r} no longer exists in DOM")
            current_handle, locator, point = replacement
            reidentified = True

        ctx.ensure_open()
        outcome = await ViewportScroller(ctx.capability).ensure_visible(point, locator=locator)
        if not outcome.scrolled:
            return Resolution(
                point=point, reidentified=reidentified, locator=locator, handle=current_handle
            )

        await asyncio.sleep(self.settle_seconds)
        ctx.ensure_open()
        fresh = None
        if await self._still_valid(ctx, locator, original):
            fresh = await self._geometry(ctx, locator)

        if fresh is None:
            if reidentified:
                raise ElementGoneAfterScroll(handle)
            replacement = await self._reidentify(ctx, handle, original)
            if replacement is None:
                raise ElementGoneAfterScroll(handle)
            current_handle, locator, fresh = replacement
            reidentified = True

        return Resolution(
            point=fresh,
            scrolled=True,
            reidentified=reidentified,
            locator=locator,
            handle=current_handle,
            scroll=outcome,
        )
