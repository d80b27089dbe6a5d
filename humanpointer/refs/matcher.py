from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from ..mouse.config import cfg


@dataclass(frozen=True)
class AncestryFingerprint:
    """Structural signature used to re-identify an element after DOM mutation.

    Attributes:
        role: Accessibility role of the element (hard filter when matching).
        name: Accessible name, truncated.
        parent_role: Role of the direct accessibility parent.
        parent_name: Name of the direct accessibility parent, truncated.
        ancestor_content: Name of the nearest ancestor with substantial text.
        ancestor_role: Role of that ancestor.
    """

    role: Optional[str] = None
    name: Optional[str] = None
    parent_role: Optional[str] = None
    parent_name: Optional[str] = None
    ancestor_content: Optional[str] = None
    ancestor_role: Optional[str] = None


def score_candidate(
    target: AncestryFingerprint, candidate: AncestryFingerprint
) -> Optional[int]:
    """Additive similarity score, or None when the roles differ."""
    if candidate.role != target.role:
        return None

    score = 0
    if candidate.name == target.name:
        score += 1
    if candidate.parent_role == target.parent_role:
        score += 1
    if candidate.parent_name == target.parent_name:
        score += 2

    # ancestor text is the strongest signal; prefix containment tolerates truncation
    theirs, ours = candidate.ancestor_content, target.ancestor_content
    if theirs and ours:
        prefix = cfg.ANCESTOR_PREFIX_CHARS
        if theirs == ours:
            score += 10
        elif ours[:prefix] in theirs or theirs[:prefix] in ours:
            score += 5
    return score


def find_best_match(
    target: AncestryFingerprint,
    candidates: Iterable[Tuple[str, AncestryFingerprint]],
    *,
    min_score: int = cfg.MIN_MATCH_SCORE,
) -> Optional[str]:
    """Return the handle of the best-scoring candidate, or None below ``min_score``.

    Ties keep the first candidate encountered.
    """
    best_handle: Optional[str] = None
    best_score = 0
    for handle, fingerprint in candidates:
        score = score_candidate(target, fingerprint)
        if score is not None and score > best_score:
            best_score = score
            best_handle = handle
    return best_handle if best_score >= min_score else None
