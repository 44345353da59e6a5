"""Core data models shared by the mapping, diffing, classification and scoring stages."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


# ===================================================================
# Syntax tree
# ===================================================================

@dataclass(frozen=True)
class Span:
    """Zero-based (row, column) start and end of a node in its source."""
    start: Tuple[int, int]
    end: Tuple[int, int]

    def __str__(self) -> str:
        return f"{self.start[0] + 1}:{self.start[1]}-{self.end[0] + 1}:{self.end[1]}"


@dataclass(frozen=True)
class NodeMetadata:
    """Language-specific facts extracted from a single node."""
    name: Optional[str] = None
    parameters: Tuple[str, ...] = ()
    imports: Tuple[str, ...] = ()

    def key(self) -> str:
        """Stable serialization used for structural equivalence."""
        return json.dumps(
            {"imports": list(self.imports), "name": self.name, "parameters": list(self.parameters)},
            sort_keys=True,
        )


@dataclass(frozen=True)
class Node:
    """A normalized syntax node addressed by its handle in a :class:`SyntaxTree`."""
    handle: int
    kind: str
    text: str
    span: Span
    language: str
    metadata: NodeMetadata = field(default_factory=NodeMetadata)
    parent: Optional[int] = None
    children: Tuple[int, ...] = ()

    @property
    def name(self) -> Optional[str]:
        return self.metadata.name

    def signature(self) -> Tuple[str, str, str]:
        """Kind, text and metadata: two nodes with equal signatures are equivalent."""
        return (self.kind, self.text, self.metadata.key())

    def is_equivalent(self, other: "Node") -> bool:
        return self.signature() == other.signature()

    def __str__(self) -> str:
        label = f" {self.name}" if self.name else ""
        return f"{self.kind}{label} @ {self.span}"


@dataclass(frozen=True)
class SyntaxTree:
    """Arena of nodes stored in depth-first pre-order; handle 0 is the root."""
    language: str
    source: str
    nodes: Tuple[Node, ...] = ()

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __getitem__(self, handle: int) -> Node:
        return self.nodes[handle]

    @property
    def root(self) -> Optional[Node]:
        return self.nodes[0] if self.nodes else None

    def children_of(self, node: Node) -> List[Node]:
        return [self.nodes[h] for h in node.children]

    def named_nodes(self) -> List[Node]:
        """Nodes with a declared name, in pre-order."""
        return [n for n in self.nodes if n.metadata.name]

    def find_by_name(self, name: str) -> Optional[Node]:
        """First node (pre-order) whose declared name equals *name*."""
        for node in self.nodes:
            if node.metadata.name == name:
                return node
        return None


class Mapping:
    """Partial injective correspondence from legacy handles to refactored handles."""

    def __init__(self) -> None:
        self._forward: Dict[int, int] = {}
        self._targets: Dict[int, int] = {}

    def add(self, legacy: int, refactored: int) -> None:
        if legacy in self._forward:
            raise ValueError(f"Legacy node {legacy} is already mapped")
        if refactored in self._targets:
            raise ValueError(f"Refactored node {refactored} is already a mapping target")
        self._forward[legacy] = refactored
        self._targets[refactored] = legacy

    def get(self, legacy: int) -> Optional[int]:
        return self._forward.get(legacy)

    def source_of(self, refactored: int) -> Optional[int]:
        return self._targets.get(refactored)

    def is_target(self, refactored: int) -> bool:
        return refactored in self._targets

    def items(self) -> List[Tuple[int, int]]:
        """Pairs in the order they were recorded."""
        return list(self._forward.items())

    def __contains__(self, legacy: object) -> bool:
        return legacy in self._forward

    def __len__(self) -> int:
        return len(self._forward)

    def __iter__(self) -> Iterator[int]:
        return iter(self._forward)


# ===================================================================
# Diff
# ===================================================================

@dataclass(frozen=True)
class ModifiedNode:
    """A mapped pair whose nodes are not structurally equivalent."""
    legacy: Node
    refactored: Node
    changes: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "legacy": str(self.legacy),
            "refactored": str(self.refactored),
            "changes": list(self.changes),
        }


@dataclass(frozen=True)
class FileChange:
    """Per-file summary of a diff."""
    file_path: str
    text_diff: str
    ast_diff_summary: str
    impact_score: int
    lines_added: int = 0
    lines_removed: int = 0
    lines_modified: int = 0

    def added_lines(self) -> List[str]:
        """Lines introduced by the unified diff, without the leading ``+``."""
        return [
            line[1:]
            for line in self.text_diff.splitlines()
            if line.startswith("+") and not line.startswith("+++")
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filePath": self.file_path,
            "changes": {
                "textDiff": self.text_diff,
                "astDiffSummary": self.ast_diff_summary,
                "impactScore": self.impact_score,
                "linesAdded": self.lines_added,
                "linesRemoved": self.lines_removed,
                "linesModified": self.lines_modified,
            },
        }


@dataclass(frozen=True)
class DiffStats:
    nodes_added: int = 0
    nodes_removed: int = 0
    nodes_modified: int = 0
    lines_added: int = 0
    lines_removed: int = 0

    @property
    def is_empty(self) -> bool:
        return not (
            self.nodes_added or self.nodes_removed or self.nodes_modified
            or self.lines_added or self.lines_removed
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "nodesAdded": self.nodes_added,
            "nodesRemoved": self.nodes_removed,
            "nodesModified": self.nodes_modified,
            "linesAdded": self.lines_added,
            "linesRemoved": self.lines_removed,
        }


@dataclass(frozen=True)
class DiffResult:
    """Added, removed and modified nodes plus line-level statistics."""
    added: Tuple[Node, ...] = ()
    removed: Tuple[Node, ...] = ()
    modified: Tuple[ModifiedNode, ...] = ()
    files: Tuple[FileChange, ...] = ()
    overall: DiffStats = field(default_factory=DiffStats)

    @classmethod
    def empty(cls) -> "DiffResult":
        return cls()


# ===================================================================
# Classification
# ===================================================================

class RefactorType(str, Enum):
    EXTRACT_METHOD = "Extract Method"
    INLINE_METHOD = "Inline Method"
    RENAME_SYMBOL = "Rename Symbol"
    MOVE_MODULARIZE = "Move/Modularize"
    SERVICE_EXTRACTION = "Service Extraction"
    LAYERING = "Layering"
    EVENT_DRIVEN = "Event-driven"
    CLOUD_MIGRATION = "Cloud Migration"
    ERROR_HANDLING = "Error Handling"
    LOGGING_OBSERVABILITY = "Logging/Observability"
    TESTING = "Testing"
    CONTAINERIZATION = "Containerization"
    INFRASTRUCTURE_AS_CODE = "Infrastructure as Code"
    DATABASE_MIGRATION = "Database Migration"


@dataclass(frozen=True)
class RefactorTag:
    """A detected refactoring technique with its level, evidence and confidence."""
    type: RefactorType
    level: int
    evidence: Tuple[str, ...] = ()
    confidence: float = 0.8

    def __post_init__(self):
        """Validate ranges."""
        if not 0 <= self.level <= 4:
            raise ValueError(f"Refactor level must be within 0..4, got {self.level}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be within 0..1, got {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "level": self.level,
            "evidence": list(self.evidence),
            "confidence": round(self.confidence, 4),
        }

    def __str__(self) -> str:
        return f"{self.type.value} (level {self.level}, {self.confidence:.0%})"


# ===================================================================
# Risk
# ===================================================================

class RiskKind(str, Enum):
    SECURITY = "security"
    LICENSE = "license"
    COMPATIBILITY = "compatibility"
    PERFORMANCE = "performance"
    MAINTAINABILITY = "maintainability"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class RiskFlag:
    """A lexical finding attached to the refactored source."""
    kind: RiskKind
    severity: Severity
    description: str
    suggestion: str

    @property
    def dedup_key(self) -> Tuple[str, str, str]:
        return (self.kind.value, self.severity.value, self.description)

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.kind.value,
            "severity": self.severity.value,
            "description": self.description,
            "suggestion": self.suggestion,
        }


# ===================================================================
# Scoring and results
# ===================================================================

@dataclass
class ImpactMetrics:
    """Raw and normalized metrics behind an impact score."""
    total_lines_changed: int = 0
    files_modified: int = 0
    new_dependencies: List[str] = field(default_factory=list)
    removed_dependencies: List[str] = field(default_factory=list)
    cyclomatic_complexity_delta: float = 0.0
    test_coverage_delta: float = 0.0
    ast_nodes_changed: int = 0
    new_infrastructure_components: float = 0.0
    architectural_changes: int = 0
    normalized: Dict[str, float] = field(default_factory=dict)
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalLinesChanged": self.total_lines_changed,
            "filesModified": self.files_modified,
            "newDependencies": list(self.new_dependencies),
            "removedDependencies": list(self.removed_dependencies),
            "cyclomaticComplexityDelta": self.cyclomatic_complexity_delta,
            "testCoverageDelta": self.test_coverage_delta,
            "astNodesChanged": self.ast_nodes_changed,
            "newInfrastructureComponents": self.new_infrastructure_components,
            "architecturalChanges": self.architectural_changes,
            "normalized": {k: round(v, 4) for k, v in self.normalized.items()},
            "description": self.description,
        }


@dataclass
class ImpactReport:
    overall_score: int
    level: int
    detailed: ImpactMetrics


@dataclass
class AnalysisOptions:
    """Per-call options for :func:`refactorlens.analyzer.analyze`."""
    map_hints: Dict[str, str] = field(default_factory=dict)
    include_security_scan: bool = True
    include_quality_scan: bool = False
    adjust_for_language: bool = False
    file_path: str = "main"


@dataclass
class AnalysisResult:
    """Outcome of comparing a legacy and a refactored source."""
    overall_score: int
    level: int
    summary: str
    refactor_types: List[RefactorTag]
    files: List[FileChange]
    risk_flags: List[RiskFlag]
    metrics: ImpactMetrics
    diff: DiffResult = field(default_factory=DiffResult, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the stable result contract."""
        return {
            "overallScore": self.overall_score,
            "level": self.level,
            "summary": self.summary,
            "refactorTypes": [t.to_dict() for t in self.refactor_types],
            "files": [f.to_dict() for f in self.files],
            "riskFlags": [r.to_dict() for r in self.risk_flags],
            "metrics": self.metrics.to_dict(),
        }
