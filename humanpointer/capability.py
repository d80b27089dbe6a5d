from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from zendriver import cdp

from .mouse.types import Point


@dataclass(frozen=True)
class NodeDescriptor:
    """Coarse description of a DOM node (from DOM.describeNode)."""

    node_name: str
    node_type: int = 1


class InspectionCapability:
    """Remote input/inspection surface the pointer pipeline consumes.

    Geometry and describe lookups return None when the node is gone; dispatch
    calls raise on channel failure. Subclass for other transports or tests.
    """

    async def query_geometry(self, locator: int) -> Optional[List[float]]:
        raise NotImplementedError

    async def describe(self, locator: int) -> Optional[NodeDescriptor]:
        raise NotImplementedError

    async def dispatch_move(self, point: Point) -> None:
        raise NotImplementedError

    async def dispatch_press(self, point: Point, button: str, count: int) -> None:
        raise NotImplementedError

    async def dispatch_release(self, point: Point, button: str, count: int) -> None:
        raise NotImplementedError

    async def evaluate(self, expression: str, *, await_promise: bool = False) -> Any:
        raise NotImplementedError

    async def call_function_on(self, locator: int, declaration: str) -> Any:
        raise NotImplementedError

    async def capture_structural_snapshot(self) -> List[Dict[str, Any]]:
        raise NotImplementedError


def _unwrap_zendriver_value(possibly_wrapped: Any) -> Any:
    """Normalize zendriver responses into plain dicts or values."""
    value = possibly_wrapped
    if isinstance(value, tuple):
        value = value[0] if value else {}
    for method_name in ("to_json", "to_dict", "dict"):
        method = getattr(value, method_name, None)
        if callable(method):
            try:
                return method()
            except Exception:
                logging.getLogger(__name__).debug(
                    "%s() failed on %r", method_name, type(value), exc_info=True
                )
    return value or {}


def _resolve_mouse_button(name: str = "left") -> Any:
    """Return the CDP MouseButton enum member for a button name."""
    button_enum = cdp.input_.MouseButton
    for attr in (name.upper(), name):
        if hasattr(button_enum, attr):
            return getattr(button_enum, attr)
    return button_enum(name)


class ZendriverCapability(InspectionCapability):
    """InspectionCapability backed by a zendriver Tab."""

    def __init__(self, tab):
        self.tab = tab

    async def attach(self) -> None:
        """Enable focus emulation so input reaches background tabs."""
        try:
            await self.tab.send(cdp.emulation.set_focus_emulation_enabled(enabled=True))
        except Exception:
            logging.getLogger(__name__).warning(
                "Failed to enable focus emulation", exc_info=True
            )

    async def query_geometry(self, locator: int) -> Optional[List[float]]:
        try:
            resp = await self.tab.send(
                cdp.dom.get_box_model(backend_node_id=cdp.dom.BackendNodeId(locator))
            )
        except Exception:
            logging.getLogger(__name__).debug(
                "DOM.getBoxModel failed for node %s", locator, exc_info=True
            )
            return None
        model = _unwrap_zendriver_value(resp)
        model = model.get("model") or model
        content: Sequence[float] = model.get("content") or []
        if len(content) < 8:
            return None
        return [float(v) for v in content[:8]]

    async def describe(self, locator: int) -> Optional[NodeDescriptor]:
        try:
            resp = await self.tab.send(
                cdp.dom.describe_node(backend_node_id=cdp.dom.BackendNodeId(locator))
            )
        except Exception:
            logging.getLogger(__name__).debug(
                "DOM.describeNode failed for node %s", locator, exc_info=True
            )
            return None
        node = _unwrap_zendriver_value(resp)
        node = node.get("node") or node
        name = node.get("nodeName")
        if not name:
            return None
        return NodeDescriptor(
            node_name=str(name).lower(), node_type=int(node.get("nodeType", 1))
        )

    async def _mouse_event(self, type_: str, point: Point, **extra) -> None:
        await self.tab.send(
            cdp.input_.dispatch_mouse_event(
                type_=type_, x=float(point[0]), y=float(point[1]), **extra
            )
        )

    async def dispatch_move(self, point: Point) -> None:
        await self._mouse_event("mouseMoved", point)

    async def dispatch_press(self, point: Point, button: str, count: int) -> None:
        await self._mouse_event(
            "mousePressed",
            point,
            button=_resolve_mouse_button(button),
            click_count=int(count),
        )

    async def dispatch_release(self, point: Point, button: str, count: int) -> None:
        await self._mouse_event(
            "mouseReleased",
            point,
            button=_resolve_mouse_button(button),
            click_count=int(count),
        )

    async def evaluate(self, expression: str, *, await_promise: bool = False) -> Any:
        resp = await self.tab.send(
            cdp.runtime.evaluate(
                expression=expression,
                return_by_value=True,
                await_promise=await_promise,
            )
        )
        remote, exception = (resp if isinstance(resp, tuple) else (resp, None))
        if exception is not None:
            raise RuntimeError(f"Runtime.evaluate threw: {exception.text}")
        return getattr(remote, "value", None)

    async def call_function_on(self, locator: int, declaration: str) -> Any:
        remote = await self.tab.send(
            cdp.dom.resolve_node(backend_node_id=cdp.dom.BackendNodeId(locator))
        )
        object_id = getattr(remote, "object_id", None)
        if not object_id:
            raise LookupError(f"Node {locator} could not be resolved to an object")
        resp = await self.tab.send(
            cdp.runtime.call_function_on(
                function_declaration=declaration,
                object_id=object_id,
                return_by_value=True,
            )
        )
        result, exception = (resp if isinstance(resp, tuple) else (resp, None))
        if exception is not None:
            raise RuntimeError(f"Runtime.callFunctionOn threw: {exception.text}")
        return getattr(result, "value", None)

    async def capture_structural_snapshot(self) -> List[Dict[str, Any]]:
        await self.tab.send(cdp.accessibility.enable())
        nodes = await self.tab.send(cdp.accessibility.get_full_ax_tree())
        return [_unwrap_zendriver_value(node) for node in nodes or []]
