"""Analysis pipeline: parse, normalize, map, diff, classify and score, with a concurrent risk scan."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Dict, List, Optional, Sequence

from .classifier import PatternClassifier
from .config import LEVEL_NAMES, SUPPORTED_LANGUAGES
from .diff_engine import DiffEngine
from .errors import AnalysisTimeoutError, UnsupportedLanguageError
from .impact_scorer import ImpactScorer
from .mapper import ElementMapper
from .models import (
    AnalysisOptions,
    AnalysisResult,
    RefactorTag,
    RefactorType,
    RiskKind,
    Severity,
    SyntaxTree,
)
from .normalizer import normalize
from .parser import TreeSitterParser, get_parser
from .risk_scanner import RiskScanner, deduplicate_flags

logger = logging.getLogger(__name__)

# Follow-up actions per refactor technique
NEXT_STEPS: Dict[RefactorType, Sequence[str]] = {
    RefactorType.SERVICE_EXTRACTION: (
        "Run integration tests for the new service endpoints",
        "Update API documentation and client SDKs",
    ),
    RefactorType.CLOUD_MIGRATION: (
        "Test with cloud emulators in development environment",
        "Implement proper retry/backoff for cloud API calls",
    ),
    RefactorType.DATABASE_MIGRATION: (
        "Run database migration scripts in staging environment",
        "Validate data integrity after migration",
    ),
    RefactorType.CONTAINERIZATION: (
        "Test container builds and deployment pipeline",
        "Update CI/CD configurations for containerized deployment",
    ),
}


class RefactorAnalyzer:
    """Runs the full comparison of a legacy and a refactored source.

    Every stage is a plain object so callers (and tests) can swap one out.
    The stages keep no per-analysis state, so one analyzer can serve
    concurrent calls.
    """

    def __init__(
        self,
        parser: Optional[TreeSitterParser] = None,
        mapper: Optional[ElementMapper] = None,
        classifier: Optional[PatternClassifier] = None,
        scorer: Optional[ImpactScorer] = None,
        risk_scanner: Optional[RiskScanner] = None,
    ):
        self._parser = parser
        self.mapper = mapper or ElementMapper()
        self.classifier = classifier or PatternClassifier()
        self.scorer = scorer or ImpactScorer()
        self.risk_scanner = risk_scanner or RiskScanner()

    @property
    def parser(self) -> TreeSitterParser:
        if self._parser is None:
            self._parser = get_parser()
        return self._parser

    def parse_tree(self, source: str, language: str) -> SyntaxTree:
        """Parse *source* and normalize it into a :class:`SyntaxTree`."""
        tree = self.parser.parse(source, language)
        return normalize(tree.root_node, language, source)

    def analyze(
        self,
        legacy_source: str,
        refactored_source: str,
        language: str,
        options: Optional[AnalysisOptions] = None,
    ) -> AnalysisResult:
        """Compare two versions of a source file.

        Raises:
            UnsupportedLanguageError: *language* is not supported.
            ParseError: Either source is malformed.
        """
        options = options or AnalysisOptions()
        if language not in SUPPORTED_LANGUAGES:
            raise UnsupportedLanguageError(language)

        started = time.perf_counter()
        logger.info("Analyzing %s (%s)", options.file_path, language)

        legacy = self.parse_tree(legacy_source, language)
        refactored = self.parse_tree(refactored_source, language)
        logger.debug(
            "Parsed %d legacy and %d refactored nodes in %.1fms",
            len(legacy), len(refactored), (time.perf_counter() - started) * 1000,
        )

        with ThreadPoolExecutor(max_workers=1) as executor:
            scan_future = executor.submit(
                self.risk_scanner.scan,
                refactored_source,
                language,
                options.include_security_scan,
                options.include_quality_scan,
            )

            mapping = self.mapper.map(legacy, refactored, options.map_hints)
            diff = DiffEngine(options.file_path).compute(legacy, refactored, mapping)
            tags = self.classifier.classify(diff, language)
            report = self.scorer.score(
                diff, tags, language, adjust_for_language=options.adjust_for_language,
            )

            risk_flags = scan_future.result()

        risk_flags = deduplicate_flags(
            risk_flags
            + self.risk_scanner.scan_dependencies(
                report.detailed.new_dependencies, options.include_security_scan,
            )
        )

        result = AnalysisResult(
            overall_score=report.overall_score,
            level=report.level,
            summary=generate_summary(tags),
            refactor_types=tags,
            files=list(diff.files),
            risk_flags=risk_flags,
            metrics=report.detailed,
            diff=diff,
        )
        logger.info(
            "Analysis of %s finished in %.1fms: score %d, level %d, %d tags, %d risk flags",
            options.file_path, (time.perf_counter() - started) * 1000,
            result.overall_score, result.level, len(tags), len(risk_flags),
        )
        return result


# ===================================================================
# Summaries
# ===================================================================

def generate_summary(tags: Sequence[RefactorTag]) -> str:
    """One-line description built from the three highest-level tags."""
    top = sorted(tags, key=lambda t: t.level, reverse=True)[:3]
    if not top:
        return "No significant refactoring detected"

    level_name = LEVEL_NAMES.get(top[0].level, "unknown")
    return f"Major {level_name} changes: " + ", ".join(t.type.value.lower() for t in top)


def suggest_next_steps(result: AnalysisResult) -> List[str]:
    """De-duplicated follow-up actions for the tags and risk flags of *result*."""
    steps: List[str] = []
    for tag in result.refactor_types:
        steps.extend(NEXT_STEPS.get(tag.type, ()))
    for flag in result.risk_flags:
        if flag.kind == RiskKind.SECURITY and flag.severity == Severity.HIGH:
            steps.append("Review and address security vulnerabilities before deployment")
        if flag.kind == RiskKind.LICENSE:
            steps.append("Review new dependency licenses for compliance")
    return list(dict.fromkeys(steps))


# ===================================================================
# Module-level entry points
# ===================================================================

_default_analyzer: Optional[RefactorAnalyzer] = None


def get_analyzer() -> RefactorAnalyzer:
    global _default_analyzer
    if _default_analyzer is None:
        _default_analyzer = RefactorAnalyzer()
    return _default_analyzer


def analyze(
    legacy_source: str,
    refactored_source: str,
    language: str,
    options: Optional[AnalysisOptions] = None,
) -> AnalysisResult:
    """Compare *legacy_source* with *refactored_source* using the shared analyzer."""
    return get_analyzer().analyze(legacy_source, refactored_source, language, options)


def analyze_with_timeout(
    legacy_source: str,
    refactored_source: str,
    language: str,
    options: Optional[AnalysisOptions] = None,
    timeout: float = 30.0,
    analyzer: Optional[RefactorAnalyzer] = None,
) -> AnalysisResult:
    """Like :func:`analyze`, but give up after *timeout* seconds.

    A late result is discarded; the worker thread is left to finish on its own.

    Raises:
        AnalysisTimeoutError: The deadline passed first.
    """
    analyzer = analyzer or get_analyzer()
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(analyzer.analyze, legacy_source, refactored_source, language, options)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        logger.warning("Analysis timed out after %gs", timeout)
        raise AnalysisTimeoutError(timeout) from None
    finally:
        executor.shutdown(wait=False)
