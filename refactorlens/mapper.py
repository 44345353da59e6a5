"""Element mapper: best-effort correspondence between legacy and refactored nodes.

Explicit hints are applied first, then every still-unmapped named legacy node
is greedily paired with its most similar unclaimed refactored node. No global
assignment is attempted, so processing order (pre-order) decides conflicts:
when two legacy nodes prefer the same refactored node, the first one wins and
the second falls back to its best remaining candidate.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .config import SIMILARITY_THRESHOLD, SIMILARITY_WEIGHTS
from .models import Mapping, Node, SyntaxTree

logger = logging.getLogger(__name__)


# ===================================================================
# Similarity
# ===================================================================

def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def name_similarity(name1: str, name2: str) -> float:
    if not name1 and not name2:
        return 0.0
    if name1 == name2:
        return 1.0
    longest = max(len(name1), len(name2))
    return 1.0 - levenshtein_distance(name1, name2) / longest


def parameter_similarity(params1: Sequence[str], params2: Sequence[str]) -> float:
    """Share of parameters present in both lists, relative to the longer list."""
    if not params1 and not params2:
        return 1.0
    if not params1 or not params2:
        return 0.0
    others = set(params2)
    intersection = sum(1 for p in params1 if p in others)
    return intersection / max(len(params1), len(params2))


def calculate_similarity(node1: Node, node2: Node) -> float:
    """Weighted name / kind / parameter similarity in [0, 1]."""
    name_sim = name_similarity(node1.metadata.name or "", node2.metadata.name or "")
    type_sim = 1.0 if node1.kind == node2.kind else 0.5
    param_sim = parameter_similarity(node1.metadata.parameters, node2.metadata.parameters)
    return (
        name_sim * SIMILARITY_WEIGHTS["name"]
        + type_sim * SIMILARITY_WEIGHTS["type"]
        + param_sim * SIMILARITY_WEIGHTS["parameters"]
    )


def find_best_match(target: Node, candidates: Sequence[Node]) -> Optional[Tuple[Node, float]]:
    """First candidate reaching the highest similarity, or None if none scores above 0."""
    best: Optional[Tuple[Node, float]] = None
    best_similarity = 0.0
    for candidate in candidates:
        similarity = calculate_similarity(target, candidate)
        if similarity > best_similarity:
            best_similarity = similarity
            best = (candidate, similarity)
    return best


# ===================================================================
# Mapper
# ===================================================================

class ElementMapper:
    """Builds a :class:`Mapping` between two normalized trees."""

    def __init__(self, threshold: float = SIMILARITY_THRESHOLD) -> None:
        self.threshold = threshold

    def map(
        self,
        legacy: SyntaxTree,
        refactored: SyntaxTree,
        hints: Optional[Dict[str, str]] = None,
    ) -> Mapping:
        mapping = Mapping()

        # 1. Explicit hints
        for legacy_name, refactored_name in (hints or {}).items():
            legacy_node = legacy.find_by_name(legacy_name)
            refactored_node = refactored.find_by_name(refactored_name)
            if legacy_node is None or refactored_node is None:
                logger.debug("Ignoring map hint %s -> %s: name not found", legacy_name, refactored_name)
                continue
            if legacy_node.handle in mapping or mapping.is_target(refactored_node.handle):
                logger.debug("Ignoring map hint %s -> %s: node already mapped", legacy_name, refactored_name)
                continue
            mapping.add(legacy_node.handle, refactored_node.handle)

        # 2. Automatic matching over named nodes
        legacy_nodes = [n for n in legacy.named_nodes() if n.handle not in mapping]
        refactored_nodes = refactored.named_nodes()

        for legacy_node in legacy_nodes:
            candidates: List[Node] = [
                n for n in refactored_nodes if not mapping.is_target(n.handle)
            ]
            best = find_best_match(legacy_node, candidates)
            if best is not None and best[1] > self.threshold:
                mapping.add(legacy_node.handle, best[0].handle)

        logger.debug(
            "Mapped %d of %d named legacy nodes (%d hints)",
            len(mapping), len(legacy.named_nodes()), len(hints or {}),
        )
        return mapping


def map_elements(
    legacy: SyntaxTree,
    refactored: SyntaxTree,
    hints: Optional[Dict[str, str]] = None,
) -> Mapping:
    """Convenience wrapper around :meth:`ElementMapper.map`."""
    return ElementMapper().map(legacy, refactored, hints)
