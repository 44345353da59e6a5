"""Lexical risk scanner for refactored source text."""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from .models import RiskFlag, RiskKind, Severity
from .signatures import (
    DEFAULT_REGISTRY,
    RESTRICTIVE_DEPENDENCY_MARKERS,
    RiskSignature,
    SignatureRegistry,
)

logger = logging.getLogger(__name__)


class RiskScanner:
    """Scan source text for security, license and compatibility risks."""

    def __init__(self, registry: SignatureRegistry = DEFAULT_REGISTRY):
        self.registry = registry

    def scan(
        self,
        source: str,
        language: str = "",
        include_security_scan: bool = True,
        include_quality_scan: bool = False,
    ) -> List[RiskFlag]:
        """Scan *source* and return de-duplicated flags.

        Args:
            source: Refactored source text
            language: Language tag, used for logging only
            include_security_scan: When False, nothing is scanned
            include_quality_scan: Also run performance and maintainability checks

        Returns:
            Flags in family order (security, license, compatibility, then
            performance and maintainability when requested)
        """
        if not include_security_scan:
            return []

        flags = self.scan_security(source) + self.scan_licenses(source) + self.scan_compatibility(source)
        if include_quality_scan:
            flags += self.scan_performance(source) + self.scan_maintainability(source)

        flags = deduplicate_flags(flags)
        logger.debug("Risk scan of %s source: %d flags", language or "unknown", len(flags))
        return flags

    def scan_security(self, source: str) -> List[RiskFlag]:
        return _scan_family(source, self.registry.security)

    def scan_licenses(self, source: str) -> List[RiskFlag]:
        return _scan_family(source, self.registry.license)

    def scan_compatibility(self, source: str) -> List[RiskFlag]:
        return _scan_family(source, self.registry.compatibility)

    def scan_performance(self, source: str) -> List[RiskFlag]:
        return _scan_family(source, self.registry.performance)

    def scan_maintainability(self, source: str) -> List[RiskFlag]:
        return _scan_family(source, self.registry.maintainability)

    def scan_dependencies(
        self,
        dependencies: Iterable[str],
        include_security_scan: bool = True,
    ) -> List[RiskFlag]:
        """Flag dependency names that hint at a restrictive license."""
        if not include_security_scan:
            return []
        flags: List[RiskFlag] = []
        for dep in dependencies:
            lowered = dep.lower()
            if any(marker in lowered for marker in RESTRICTIVE_DEPENDENCY_MARKERS):
                flags.append(RiskFlag(
                    kind=RiskKind.LICENSE,
                    severity=Severity.HIGH,
                    description=f"Dependency {dep} may have restrictive license",
                    suggestion="Review dependency license before including in production",
                ))
        return deduplicate_flags(flags)


def _scan_family(source: str, signatures: Sequence[RiskSignature]) -> List[RiskFlag]:
    """One flag per pattern reaching its signature's match threshold."""
    flags: List[RiskFlag] = []
    for signature in signatures:
        for pattern in signature.patterns:
            count = sum(1 for _ in pattern.finditer(source))
            if count and count >= signature.min_matches:
                flags.append(RiskFlag(
                    kind=signature.kind,
                    severity=signature.severity,
                    description=signature.describe(count),
                    suggestion=signature.suggestion,
                ))
    return flags


def deduplicate_flags(flags: Iterable[RiskFlag]) -> List[RiskFlag]:
    """Keep the first flag per ``(kind, severity, description)``."""
    seen: set = set()
    unique: List[RiskFlag] = []
    for flag in flags:
        if flag.dedup_key not in seen:
            seen.add(flag.dedup_key)
            unique.append(flag)
    return unique


def scan(
    source: str,
    language: str = "",
    include_security_scan: bool = True,
    include_quality_scan: bool = False,
) -> List[RiskFlag]:
    """Convenience wrapper around :meth:`RiskScanner.scan`."""
    return RiskScanner().scan(source, language, include_security_scan, include_quality_scan)
