from __future__ import annotations
import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import pytest

from humanpointer.capability import InspectionCapability, NodeDescriptor
import humanpointer.mouse.dispatchers as dispatchers


def quad(x: float, y: float, w: float = 40, h: float = 20) -> List[float]:
    """Content quad centred on (x, y)."""
    left, top, right, bottom = x - w / 2, y - h / 2, x + w / 2, y + h / 2
    return [left, top, right, top, right, bottom, left, bottom]


def ax_node(
    node_id: str,
    role: Optional[str],
    name: Optional[str] = None,
    *,
    parent: Optional[str] = None,
    children: Optional[List[str]] = None,
    backend: Optional[int] = None,
    ignored: bool = False,
    properties: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """CDP Accessibility.AXNode JSON as returned by getFullAXTree."""
    raw: Dict[str, Any] = {"nodeId": node_id, "ignored": ignored}
    if role is not None:
        raw["role"] = {"type": "role", "value": role}
    if name is not None:
        raw["name"] = {"type": "computedString", "value": name}
    if parent is not None:
        raw["parentId"] = parent
    if children:
        raw["childIds"] = list(children)
    if backend is not None:
        raw["backendDOMNodeId"] = backend
    if properties:
        raw["properties"] = properties
    return raw


class FakeCapability(InspectionCapability):
    """In-memory page: boxes, node descriptions, an AX tree and a viewport.

    ``on_scroll`` runs whenever a scroll animation is awaited, which lets a
    test mutate the page the way a re-render after scrolling would.
    """

    def __init__(self, width: float = 1000, height: float = 800):
        self.width = width
        self.height = height
        self.scroll_y = 0.0
        self.boxes: Dict[int, List[float]] = {}
        self.descriptors: Dict[int, NodeDescriptor] = {}
        self.ax_nodes: List[Dict[str, Any]] = []
        self.selectors: Dict[str, Dict[str, Any]] = {}
        self.container: Dict[str, Any] = {"found": False}
        self.events: List[tuple] = []
        self.evaluated: List[str] = []
        self.animations: List[str] = []
        self.function_calls: List[tuple] = []
        self.snapshot_count = 0
        self.fail: Dict[str, BaseException] = {}
        self.animation_seconds = 0.0
        self.on_scroll: Optional[Callable[[], None]] = None
        self.on_move: Optional[Callable[[int], None]] = None

    async def query_geometry(self, locator):
        return self.boxes.get(locator)

    async def describe(self, locator):
        return self.descriptors.get(locator)

    def _dispatch(self, kind: str, *args) -> None:
        if kind in self.fail:
            raise self.fail[kind]
        self.events.append((kind,) + args)

    async def dispatch_move(self, point):
        self._dispatch("move", tuple(point))
        if self.on_move is not None:
            self.on_move(sum(1 for e in self.events if e[0] == "move"))

    async def dispatch_press(self, point, button, count):
        self._dispatch("press", tuple(point), button, count)

    async def dispatch_release(self, point, button, count):
        self._dispatch("release", tuple(point), button, count)

    async def evaluate(self, expression, *, await_promise=False):
        self.evaluated.append(expression)
        if "innerWidth" in expression:
            return {"width": self.width, "height": self.height, "scrollY": self.scroll_y}
        if "new Promise" in expression:
            self.animations.append(expression)
            if self.animation_seconds:
                await asyncio.sleep(self.animation_seconds)
            if self.on_scroll is not None:
                self.on_scroll()
            return True
        if "found: true" in expression:
            return dict(self.container)
        if "Element has no dimensions" in expression:
            for selector, value in self.selectors.items():
                if json.dumps(selector) in expression:
                    return dict(value)
            return {"error": "Element not found"}
        return None

    async def call_function_on(self, locator, declaration):
        self.function_calls.append((locator, declaration))
        return None

    async def capture_structural_snapshot(self):
        self.snapshot_count += 1
        return [dict(node) for node in self.ax_nodes]

    def dispatched(self, kind: str) -> List[tuple]:
        return [event for event in self.events if event[0] == kind]


@pytest.fixture
def fake():
    return FakeCapability()


@pytest.fixture
def no_sleep(monkeypatch):
    """Replay paths without waiting out their inter-point delays."""

    async def _instant(ms):
        return None

    monkeypatch.setattr(dispatchers, "sleep_ms", _instant)
    monkeypatch.setattr(dispatchers.cfg, "CURSOR_FADE_IN_S", 0.0)
