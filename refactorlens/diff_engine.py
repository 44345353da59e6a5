"""DiffEngine for classifying node-level and line-level changes between two trees."""

from __future__ import annotations

import difflib
import logging
from typing import List, Set, Tuple

from .config import FILE_IMPACT_WEIGHTS
from .models import (
    DiffResult,
    DiffStats,
    FileChange,
    Mapping,
    ModifiedNode,
    Node,
    SyntaxTree,
)

logger = logging.getLogger(__name__)


class DiffEngine:
    """Turns a legacy/refactored tree pair and their mapping into a :class:`DiffResult`."""

    def __init__(self, file_path: str = "main"):
        """Initialize DiffEngine.

        Args:
            file_path: Name reported for the single compared file.
        """
        self.file_path = file_path

    # ------------------------------------------------------------------
    # Text level
    # ------------------------------------------------------------------

    def create_diff(self, original: str, modified: str, filename: str = "file") -> str:
        """Create unified diff between two versions.

        Args:
            original: Original content
            modified: Modified content
            filename: Name of file for diff header

        Returns:
            Unified diff string (empty when both versions are identical)
        """
        diff = difflib.unified_diff(
            original.splitlines(),
            modified.splitlines(),
            fromfile=f"a/{filename}",
            tofile=f"b/{filename}",
            lineterm="",
        )
        lines = list(diff)
        return "\n".join(lines) + "\n" if lines else ""

    @staticmethod
    def count_line_changes(original: str, modified: str) -> Tuple[int, int]:
        """Sum contiguous runs of added and removed lines.

        Returns:
            (lines_added, lines_removed)
        """
        matcher = difflib.SequenceMatcher(
            None, original.splitlines(), modified.splitlines(), autojunk=False
        )
        added = removed = 0
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag in ("replace", "delete"):
                removed += i2 - i1
            if tag in ("replace", "insert"):
                added += j2 - j1
        return added, removed

    # ------------------------------------------------------------------
    # Tree level
    # ------------------------------------------------------------------

    def compute(self, legacy: SyntaxTree, refactored: SyntaxTree, mapping: Mapping) -> DiffResult:
        """Classify nodes as added, removed or modified and gather statistics."""
        legacy_signatures: Set[Tuple[str, str, str]] = {n.signature() for n in legacy}
        refactored_signatures: Set[Tuple[str, str, str]] = {n.signature() for n in refactored}

        added = tuple(
            n for n in refactored
            if not mapping.is_target(n.handle) and n.signature() not in legacy_signatures
        )
        removed = tuple(
            n for n in legacy
            if n.handle not in mapping and n.signature() not in refactored_signatures
        )

        modified: List[ModifiedNode] = []
        for legacy_handle, refactored_handle in mapping.items():
            old, new = legacy[legacy_handle], refactored[refactored_handle]
            if not old.is_equivalent(new):
                modified.append(ModifiedNode(
                    legacy=old,
                    refactored=new,
                    changes=tuple(node_changes(old, new)),
                ))

        lines_added, lines_removed = self.count_line_changes(legacy.source, refactored.source)
        overall = DiffStats(
            nodes_added=len(added),
            nodes_removed=len(removed),
            nodes_modified=len(modified),
            lines_added=lines_added,
            lines_removed=lines_removed,
        )

        file_change = FileChange(
            file_path=self.file_path,
            text_diff=self.create_diff(legacy.source, refactored.source, self.file_path),
            ast_diff_summary=generate_ast_summary(added, removed, modified),
            impact_score=calculate_impact_score(len(added), len(removed), len(modified)),
            lines_added=lines_added,
            lines_removed=lines_removed,
            lines_modified=len(modified),
        )

        logger.debug(
            "Diff of %s: +%d -%d ~%d nodes, +%d -%d lines",
            self.file_path, len(added), len(removed), len(modified), lines_added, lines_removed,
        )
        return DiffResult(
            added=added,
            removed=removed,
            modified=tuple(modified),
            files=(file_change,),
            overall=overall,
        )


def node_changes(old: Node, new: Node) -> List[str]:
    """Human-readable reasons why two mapped nodes differ."""
    changes: List[str] = []
    if old.kind != new.kind:
        changes.append(f"Type changed: {old.kind} -> {new.kind}")
    if old.text != new.text:
        changes.append("Content modified")

    before, after = old.metadata, new.metadata
    if before.name != after.name:
        changes.append(f"Name changed: {before.name or '<anonymous>'} -> {after.name or '<anonymous>'}")
    if before.parameters != after.parameters:
        changes.append("Parameters changed")
    if before.imports != after.imports:
        changes.append("Imports changed")
    return changes


def generate_ast_summary(
    added: Tuple[Node, ...],
    removed: Tuple[Node, ...],
    modified: List[ModifiedNode],
) -> str:
    summary: List[str] = []
    if added:
        summary.append(f"{len(added)} nodes added")
    if removed:
        summary.append(f"{len(removed)} nodes removed")
    if modified:
        summary.append(f"{len(modified)} nodes modified")

    imports_added = sum(len(n.metadata.imports) for n in added)
    imports_removed = sum(len(n.metadata.imports) for n in removed)
    if imports_added:
        summary.append(f"{imports_added} imports added")
    if imports_removed:
        summary.append(f"{imports_removed} imports removed")

    return ", ".join(summary) if summary else "No structural changes"


def calculate_impact_score(added: int, removed: int, modified: int) -> int:
    score = (
        added * FILE_IMPACT_WEIGHTS["added"]
        + removed * FILE_IMPACT_WEIGHTS["removed"]
        + modified * FILE_IMPACT_WEIGHTS["modified"]
    )
    return min(score, 100)


def compute_diff(
    legacy: SyntaxTree,
    refactored: SyntaxTree,
    mapping: Mapping,
    file_path: str = "main",
) -> DiffResult:
    """Convenience wrapper around :meth:`DiffEngine.compute`."""
    return DiffEngine(file_path).compute(legacy, refactored, mapping)
