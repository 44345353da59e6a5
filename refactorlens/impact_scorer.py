"""Impact scorer: folds a diff and its refactor tags into a 0-100 score and a 0-4 level."""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence

from .config import LANGUAGE_ADJUSTMENTS, LEVEL_THRESHOLDS, SCORE_WEIGHTS
from .models import DiffResult, ImpactMetrics, ImpactReport, RefactorTag, RefactorType
from .signatures import COMPLEX_TYPES, INFRASTRUCTURE_TYPES, SIMPLIFYING_TYPES

logger = logging.getLogger(__name__)

IMPACT_DESCRIPTIONS: Dict[int, str] = {
    0: "No significant changes detected",
    1: "Minor code improvements and refactoring",
    2: "Moderate restructuring with some architectural changes",
    3: "Significant modernization with new patterns and infrastructure",
    4: "Major architectural transformation with cloud-native adoption",
}


class ImpactScorer:
    """Weighted composite of line churn, node churn, infrastructure, tests and complexity."""

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        self.weights = dict(weights or SCORE_WEIGHTS)

    def score(
        self,
        diff: DiffResult,
        tags: Sequence[RefactorTag],
        language: Optional[str] = None,
        adjust_for_language: bool = False,
    ) -> ImpactReport:
        metrics = self.calculate_metrics(diff, tags)
        if adjust_for_language and language:
            adjust_metrics_for_language(metrics, language)

        if diff.overall.is_empty and not tags:
            # Nothing changed: every normalized component is neutral
            overall = 0
            metrics.normalized = {key: 0.0 for key in self.weights}
        else:
            metrics.normalized = self.normalize(metrics)
            overall = self.overall_score(metrics.normalized)

        level = determine_level(overall)
        metrics.description = describe_impact(level, metrics)
        logger.debug("Impact score %d (level %d): %s", overall, level, metrics.normalized)
        return ImpactReport(overall_score=overall, level=level, detailed=metrics)

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def calculate_metrics(self, diff: DiffResult, tags: Sequence[RefactorTag]) -> ImpactMetrics:
        stats = diff.overall
        metrics = ImpactMetrics(
            total_lines_changed=(
                stats.lines_added + stats.lines_removed
                + sum(f.lines_modified for f in diff.files)
            ),
            files_modified=sum(1 for f in diff.files if f.text_diff),
            new_dependencies=_unique_imports(n.metadata.imports for n in diff.added),
            removed_dependencies=_unique_imports(n.metadata.imports for n in diff.removed),
            ast_nodes_changed=stats.nodes_added + stats.nodes_removed + stats.nodes_modified,
        )

        for tag in tags:
            if tag.level >= 4:
                metrics.architectural_changes += 1
            if tag.type in INFRASTRUCTURE_TYPES:
                metrics.new_infrastructure_components += 1

        metrics.cyclomatic_complexity_delta = complexity_delta(tags)
        metrics.test_coverage_delta = coverage_delta(tags)
        return metrics

    def normalize(self, metrics: ImpactMetrics) -> Dict[str, float]:
        return {
            "linesChanged": normalize_lines_changed(metrics.total_lines_changed),
            "astNodesChanged": normalize_ast_nodes(metrics.ast_nodes_changed),
            "newInfrastructure": normalize_infrastructure(metrics.new_infrastructure_components),
            "testCoverage": normalize_test_coverage(metrics.test_coverage_delta),
            "complexityDelta": normalize_complexity(metrics.cyclomatic_complexity_delta),
        }

    def overall_score(self, normalized: Dict[str, float]) -> int:
        total = sum(normalized[key] * weight for key, weight in self.weights.items())
        # Half-up rounding, not Python's round-half-to-even
        return int(math.floor(min(max(total, 0.0), 100.0) + 0.5))


# ===================================================================
# Component rules
# ===================================================================

def complexity_delta(tags: Sequence[RefactorTag]) -> float:
    delta = 0
    for tag in tags:
        delta += tag.level * 2 if tag.type in COMPLEX_TYPES else tag.level
        if tag.type in SIMPLIFYING_TYPES:
            delta -= tag.level
    return float(max(delta, -10))


def coverage_delta(tags: Sequence[RefactorTag]) -> float:
    delta = 0
    for tag in tags:
        if tag.type == RefactorType.TESTING:
            delta += tag.level * 10
        elif tag.level >= 3:
            delta -= 5
    return float(max(min(delta, 50), -50))


def _logistic(x: float, centre: float, slope: float) -> float:
    if x == 0:
        return 0.0
    return min(100.0 / (1.0 + math.exp(-(x - centre) / slope)), 100.0)


def normalize_lines_changed(lines: float) -> float:
    return _logistic(lines, 200.0, 100.0)


def normalize_ast_nodes(nodes: float) -> float:
    return _logistic(nodes, 50.0, 25.0)


def normalize_infrastructure(components: float) -> float:
    return min(components * 20.0, 100.0)


def normalize_test_coverage(delta: float) -> float:
    return min(max((delta + 50.0) * 2.0, 0.0), 100.0)


def normalize_complexity(delta: float) -> float:
    return min(max((10.0 - delta) * 5.0, 0.0), 100.0)


def adjust_metrics_for_language(metrics: ImpactMetrics, language: str) -> ImpactMetrics:
    """Scale complexity delta and infrastructure count by per-language multipliers."""
    adjustment = LANGUAGE_ADJUSTMENTS.get(language)
    if adjustment is None:
        return metrics
    metrics.cyclomatic_complexity_delta *= adjustment["complexityMultiplier"]
    metrics.new_infrastructure_components *= adjustment["infrastructureWeight"]
    return metrics


def determine_level(score: float) -> int:
    level = 0
    for candidate, threshold in enumerate(LEVEL_THRESHOLDS):
        if score >= threshold:
            level = candidate
    return level


def describe_impact(level: int, metrics: ImpactMetrics) -> str:
    description = IMPACT_DESCRIPTIONS.get(level, IMPACT_DESCRIPTIONS[0])
    if metrics.new_infrastructure_components > 0:
        description += f" ({metrics.new_infrastructure_components:g} new infrastructure components)"
    if metrics.architectural_changes > 0:
        description += f" ({metrics.architectural_changes} architectural changes)"
    return description


def _unique_imports(groups) -> List[str]:
    seen: List[str] = []
    for imports in groups:
        for name in imports:
            if name not in seen:
                seen.append(name)
    return seen


def score_impact(
    diff: DiffResult,
    tags: Sequence[RefactorTag],
    language: Optional[str] = None,
    adjust_for_language: bool = False,
) -> ImpactReport:
    """Convenience wrapper around :meth:`ImpactScorer.score`."""
    return ImpactScorer().score(diff, tags, language, adjust_for_language)
