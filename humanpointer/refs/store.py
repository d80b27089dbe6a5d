from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Mapping, Optional, Tuple

from .matcher import AncestryFingerprint


@dataclass(frozen=True)
class _Snapshot:
    locators: Dict[str, int] = field(default_factory=dict)
    fingerprints: Dict[str, AncestryFingerprint] = field(default_factory=dict)


class ElementReferenceStore:
    """Per-session mapping from ref handles to backend node ids and fingerprints.

    Each session holds exactly one live snapshot; capturing a new one swaps the
    whole mapping, so handles from an older capture simply stop resolving.
    """

    def __init__(self) -> None:
        self._snapshots: Dict[Hashable, _Snapshot] = {}

    def capture_snapshot(
        self,
        session: Hashable,
        handle_to_locator: Mapping[str, int],
        fingerprints: Mapping[str, AncestryFingerprint],
    ) -> None:
        self._snapshots[session] = _Snapshot(dict(handle_to_locator), dict(fingerprints))

    def resolve(self, session: Hashable, handle: str) -> Optional[int]:
        snapshot = self._snapshots.get(session)
        if snapshot is None:
            return None
        return snapshot.locators.get(handle)

    def fingerprint_of(
        self, session: Hashable, handle: str
    ) -> Optional[AncestryFingerprint]:
        snapshot = self._snapshots.get(session)
        if snapshot is None:
            return None
        return snapshot.fingerprints.get(handle)

    def candidates(self, session: Hashable) -> List[Tuple[str, AncestryFingerprint]]:
        """(handle, fingerprint) pairs of the live snapshot, in capture order."""
        snapshot = self._snapshots.get(session)
        if snapshot is None:
            return []
        return list(snapshot.fingerprints.items())

    def has_snapshot(self, session: Hashable) -> bool:
        return session in self._snapshots

    def clear(self, session: Hashable) -> None:
        self._snapshots.pop(session, None)
