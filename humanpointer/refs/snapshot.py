from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..mouse.config import cfg
from .matcher import AncestryFingerprint

_TRACKED_PROPERTIES = (
    "level",
    "url",
    "focusable",
    "checked",
    "selected",
    "expanded",
    "disabled",
)


def _ax_value(field_value: Any) -> Any:
    """Unwrap a CDP AXValue ({"type": ..., "value": ...}) to its raw value."""
    if isinstance(field_value, dict):
        return field_value.get("value")
    return field_value


@dataclass
class SnapshotNode:
    """One accessibility node in the arena; links are by node id."""

    node_id: str
    role: Optional[str] = None
    name: Optional[str] = None
    parent_id: Optional[str] = None
    child_ids: List[str] = field(default_factory=list)
    backend_node_id: Optional[int] = None
    ignored: bool = False
    properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_ax_node(cls, raw: Dict[str, Any]) -> "SnapshotNode":
        """Build from CDP ``Accessibility.AXNode`` JSON."""
        properties: Dict[str, Any] = {}
        for prop in raw.get("properties") or []:
            if prop.get("name") in _TRACKED_PROPERTIES:
                properties[prop["name"]] = _ax_value(prop.get("value"))
        backend = raw.get("backendDOMNodeId")
        parent = raw.get("parentId")
        return cls(
            node_id=str(raw["nodeId"]),
            role=_ax_value(raw.get("role")),
            name=_ax_value(raw.get("name")),
            parent_id=str(parent) if parent is not None else None,
            child_ids=[str(c) for c in raw.get("childIds") or []],
            backend_node_id=int(backend) if backend is not None else None,
            ignored=bool(raw.get("ignored", False)),
            properties=properties,
        )


@dataclass
class SnapshotResult:
    """Outline text plus the handle maps produced by one capture."""

    tree: str
    element_count: int
    refs: Dict[str, int]
    fingerprints: Dict[str, AncestryFingerprint]


class StructuralSnapshot:
    """Arena of accessibility nodes captured at one instant."""

    def __init__(self, nodes: List[SnapshotNode]):
        self.nodes: Dict[str, SnapshotNode] = {}
        for node in nodes:
            self.nodes[node.node_id] = node
        self._order = [node.node_id for node in nodes]

    @classmethod
    def from_ax_nodes(cls, raw_nodes: List[Dict[str, Any]]) -> "StructuralSnapshot":
        return cls([SnapshotNode.from_ax_node(raw) for raw in raw_nodes])

    @property
    def root(self) -> Optional[SnapshotNode]:
        for node_id in self._order:
            node = self.nodes[node_id]
            if node.parent_id is None or node.parent_id not in self.nodes:
                return node
        return None

    def parent_of(self, node: SnapshotNode) -> Optional[SnapshotNode]:
        if node.parent_id is None:
            return None
        return self.nodes.get(node.parent_id)

    @staticmethod
    def _is_listed(node: SnapshotNode) -> bool:
        if node.ignored:
            return False
        if not node.role or node.role in ("none", "generic"):
            return bool(node.name)
        return True

    def fingerprint(self, node: SnapshotNode) -> AncestryFingerprint:
        """Capture role/name/parent and the nearest text-bearing ancestor.

        The walk starts at the parent and climbs at most MAX_ANCESTOR_DEPTH
        levels; the first ancestor whose name has ANCESTOR_MIN_TEXT characters
        supplies ``ancestor_content``.
        """
        name_max = cfg.NAME_MAX_CHARS
        parent = self.parent_of(node)
        if parent is None:
            return AncestryFingerprint(
                role=node.role, name=node.name[:name_max] if node.name else node.name
            )

        ancestor_content = ancestor_role = None
        ancestor: Optional[SnapshotNode] = parent
        depth = 0
        while ancestor is not None and depth < cfg.MAX_ANCESTOR_DEPTH:
            text = ancestor.name
            if text and len(text) >= cfg.ANCESTOR_MIN_TEXT:
                ancestor_content = text[: cfg.ANCESTOR_CONTENT_MAX_CHARS]
                ancestor_role = ancestor.role
                break
            ancestor = self.parent_of(ancestor)
            depth += 1

        return AncestryFingerprint(
            role=node.role,
            name=node.name[:name_max] if node.name else node.name,
            parent_role=parent.role,
            parent_name=parent.name[:name_max] if parent.name else parent.name,
            ancestor_content=ancestor_content,
            ancestor_role=ancestor_role,
        )

    def _outline_line(self, node: SnapshotNode, handle: str, depth: int) -> str:
        line = f"{'  ' * depth}- {node.role or 'unknown'}"
        if node.name:
            limit = cfg.TREE_NAME_MAX_CHARS
            name = node.name if len(node.name) <= limit else node.name[: limit - 3] + "..."
            name = name.replace('"', '\\"').replace("\n", " ")
            line += f' "{name}"'
        line += f" [ref={handle}]"

        props = []
        for key in _TRACKED_PROPERTIES:
            value = node.properties.get(key)
            if key in ("focusable", "selected", "disabled"):
                if value is True:
                    props.append(key)
            elif key == "url":
                if value:
                    props.append(f"url={value}")
            elif value is not None:
                props.append(f"{key}={str(value).lower() if isinstance(value, bool) else value}")
        if props:
            line += f" [{', '.join(props)}]"
        return line

    def build(self) -> SnapshotResult:
        """Assign handles e1, e2, ... in document order and render the outline.

        Walks the tree with an explicit stack; nodes that are not listed pass
        their children up at the same depth.
        """
        root = self.root
        if root is None:
            return SnapshotResult(tree="", element_count=0, refs={}, fingerprints={})

        lines: List[str] = []
        refs: Dict[str, int] = {}
        fingerprints: Dict[str, AncestryFingerprint] = {}
        counter = 0
        seen = set()
        stack: List[Tuple[str, int]] = [(root.node_id, 0)]
        while stack:
            node_id, depth = stack.pop()
            node = self.nodes.get(node_id)
            if node is None or node_id in seen:
                continue
            seen.add(node_id)

            child_depth = depth
            if self._is_listed(node):
                counter += 1
                handle = f"e{counter}"
                lines.append(self._outline_line(node, handle, depth))
                if node.backend_node_id is not None:
                    refs[handle] = node.backend_node_id
                    fingerprints[handle] = self.fingerprint(node)
                child_depth = depth + 1

            for child_id in reversed(node.child_ids):
                stack.append((child_id, child_depth))

        return SnapshotResult(
            tree="\n".join(lines),
            element_count=counter,
            refs=refs,
            fingerprints=fingerprints,
        )
