"""Pattern classifier: tags refactoring techniques found in a :class:`DiffResult`.

Node-level detection walks the added, removed and modified collections.
Kind rules look at every node; lexical rules look at nodes carrying
metadata (declarations and imports), since the text of anonymous nodes is
already covered by the file-level pass over the unified diff's added lines.
Modified pairs only feed the name-change rule.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .models import DiffResult, FileChange, ModifiedNode, Node, RefactorTag, RefactorType
from .signatures import (
    ADDED,
    DEFAULT_REGISTRY,
    NAME_CHANGED,
    REMOVED,
    PatternRule,
    SignatureRegistry,
)

logger = logging.getLogger(__name__)

_FILE_TEXT_CONFIDENCE = 0.8
_FILE_SUMMARY_CONFIDENCE = 0.7


class PatternClassifier:
    """Match diff artifacts against the refactor signature table."""

    def __init__(self, registry: SignatureRegistry = DEFAULT_REGISTRY):
        self.registry = registry

    def classify(self, diff: DiffResult, language: Optional[str] = None) -> List[RefactorTag]:
        """Return merged tags sorted by level, highest first."""
        detections: List[RefactorTag] = []

        for node in diff.added:
            detections.extend(self.detect_node(node, ADDED))
        for node in diff.removed:
            detections.extend(self.detect_node(node, REMOVED))
        for change in diff.modified:
            detections.extend(self.detect_modified(change))
        for file_change in diff.files:
            detections.extend(self.detect_file(file_change))

        tags = merge_tags(detections)
        logger.debug(
            "Classified %s diff: %d raw detections, %d tags",
            language or "unknown", len(detections), len(tags),
        )
        return tags

    # ------------------------------------------------------------------
    # Node level
    # ------------------------------------------------------------------

    def detect_node(self, node: Node, condition: str) -> List[RefactorTag]:
        detections: List[RefactorTag] = []
        lexical_scope = _has_metadata(node) and condition == ADDED
        text = node.text.lower() if lexical_scope else ""

        for signature in self.registry.refactor:
            for rule in signature.rules:
                if rule.condition != condition:
                    continue
                if rule.is_kind and rule.kind == node.kind:
                    detections.append(RefactorTag(
                        type=signature.type,
                        level=signature.level,
                        evidence=(_kind_evidence(node, condition),),
                        confidence=node_confidence(node, lexical_hit=False, kind_hit=True),
                    ))
                elif rule.is_lexical and lexical_scope and rule.text.lower() in text:
                    detections.append(RefactorTag(
                        type=signature.type,
                        level=signature.level,
                        evidence=(_lexical_evidence(node, rule),),
                        confidence=node_confidence(node, lexical_hit=True, kind_hit=False),
                    ))
        return detections

    def detect_modified(self, change: ModifiedNode) -> List[RefactorTag]:
        """Only name-change rules apply to a mapped pair."""
        if not has_name_change(change):
            return []
        node = change.refactored
        detections: List[RefactorTag] = []

        for signature in self.registry.refactor:
            for rule in signature.rules:
                if rule.condition == NAME_CHANGED:
                    detections.append(RefactorTag(
                        type=signature.type,
                        level=signature.level,
                        evidence=(_rename_evidence(change),),
                        confidence=node_confidence(node, lexical_hit=False, kind_hit=False),
                    ))
        return detections

    # ------------------------------------------------------------------
    # File level
    # ------------------------------------------------------------------

    def detect_file(self, file_change: FileChange) -> List[RefactorTag]:
        """Patterns invisible at single-node level: introduced lines and import churn."""
        detections: List[RefactorTag] = []

        added_text = "\n".join(file_change.added_lines()).lower()
        if added_text:
            for signature in self.registry.refactor:
                for rule in signature.rules:
                    if rule.is_lexical and rule.text.lower() in added_text:
                        detections.append(RefactorTag(
                            type=signature.type,
                            level=signature.level,
                            evidence=(f"Found {rule.text} in file changes",),
                            confidence=_FILE_TEXT_CONFIDENCE,
                        ))

        summary = file_change.ast_diff_summary.lower()
        if "import" in summary or "dependency" in summary:
            detections.append(RefactorTag(
                type=RefactorType.MOVE_MODULARIZE,
                level=2,
                evidence=("Import/dependency changes detected",),
                confidence=_FILE_SUMMARY_CONFIDENCE,
            ))
        return detections


# ===================================================================
# Helpers
# ===================================================================

def node_confidence(node: Node, lexical_hit: bool, kind_hit: bool) -> float:
    confidence = 0.5
    if lexical_hit:
        confidence += 0.3
    if kind_hit:
        confidence += 0.2
    if node.metadata.name:
        confidence += 0.1
    if node.metadata.imports:
        confidence += 0.1
    return min(confidence, 1.0)


def has_name_change(change: ModifiedNode) -> bool:
    # Only the reason label counts; node kinds after the colon may contain "identifier"
    labels = [reason.split(":", 1)[0].lower() for reason in change.changes]
    return any("name" in label or "identifier" in label for label in labels)


def merge_tags(detections: Iterable[RefactorTag]) -> List[RefactorTag]:
    """Collapse detections of the same type.

    Level is the maximum, evidence the first-seen-ordered union, confidence
    the running average ``(existing + new) / 2``. The result is sorted by
    level descending; ties keep first-detection order.
    """
    merged: Dict[RefactorType, RefactorTag] = {}
    for tag in detections:
        existing = merged.get(tag.type)
        if existing is None:
            merged[tag.type] = tag
            continue
        evidence = list(existing.evidence)
        evidence.extend(e for e in tag.evidence if e not in evidence)
        merged[tag.type] = RefactorTag(
            type=tag.type,
            level=max(existing.level, tag.level),
            evidence=tuple(evidence),
            confidence=(existing.confidence + tag.confidence) / 2,
        )
    return sorted(merged.values(), key=lambda t: t.level, reverse=True)


def _has_metadata(node: Node) -> bool:
    return bool(node.metadata.name or node.metadata.imports)


def _lexical_evidence(node: Node, rule: PatternRule) -> str:
    location = f" in {node.name}" if node.name else ""
    return f"Found {rule.text} usage{location} ({node.kind})"


def _kind_evidence(node: Node, condition: str) -> str:
    label = f" {node.name}" if node.name else ""
    return f"{condition.capitalize()} {node.kind}{label}"


def _rename_evidence(change: ModifiedNode) -> str:
    return f"Renamed {change.legacy.name} -> {change.refactored.name} ({change.refactored.kind})"


def classify(
    diff: DiffResult,
    language: Optional[str] = None,
    registry: SignatureRegistry = DEFAULT_REGISTRY,
) -> List[RefactorTag]:
    """Convenience wrapper around :meth:`PatternClassifier.classify`."""
    return PatternClassifier(registry).classify(diff, language)
