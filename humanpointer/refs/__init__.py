from .matcher import AncestryFingerprint, find_best_match, score_candidate
from .snapshot import SnapshotNode, SnapshotResult, StructuralSnapshot
from .store import ElementReferenceStore

__all__ = [
    "AncestryFingerprint",
    "ElementReferenceStore",
    "SnapshotNode",
    "SnapshotResult",
    "StructuralSnapshot",
    "find_best_match",
    "score_candidate",
]
