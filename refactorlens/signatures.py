"""Signature library: refactor-technique patterns and risk regexes as immutable tables.

The tables are built once at import time and shared by every analysis. The
classifier and the risk scanner only walk them; extending detection means
adding records here, not touching traversal code.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Tuple

from .models import RefactorType, RiskKind, Severity

# Rule conditions
ADDED = "added"
REMOVED = "removed"
NAME_CHANGED = "name_changed"


@dataclass(frozen=True)
class PatternRule:
    """One match rule: kind-based (``kind``), lexical (``text``) or name-changed."""
    condition: str
    kind: Optional[str] = None
    text: Optional[str] = None

    @property
    def is_lexical(self) -> bool:
        return self.text is not None

    @property
    def is_kind(self) -> bool:
        return self.kind is not None


@dataclass(frozen=True)
class RefactorSignature:
    type: RefactorType
    level: int
    rules: Tuple[PatternRule, ...]


@dataclass(frozen=True)
class RiskSignature:
    """A family member of the risk scan.

    ``description`` is a template receiving ``count`` (number of matches);
    a flag is raised once a single pattern matches ``min_matches`` times.
    """
    category: str
    kind: RiskKind
    severity: Severity
    patterns: Tuple[Pattern[str], ...]
    description: str
    suggestion: str
    min_matches: int = 1

    def describe(self, count: int) -> str:
        return self.description.format(count=count)


def _kinds(condition: str, *kinds: str) -> Tuple[PatternRule, ...]:
    return tuple(PatternRule(condition=condition, kind=k) for k in kinds)


def _terms(*terms: str) -> Tuple[PatternRule, ...]:
    return tuple(PatternRule(condition=ADDED, text=t) for t in terms)


def _regexes(*patterns: str, flags: int = re.IGNORECASE) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, flags) for p in patterns)


_FUNCTION_KINDS = ("function_declaration", "method_declaration", "function_definition")


# ===================================================================
# Refactor techniques
# ===================================================================

REFACTOR_SIGNATURES: Tuple[RefactorSignature, ...] = (
    # Structural
    RefactorSignature(RefactorType.EXTRACT_METHOD, 2, _kinds(ADDED, *_FUNCTION_KINDS)),
    RefactorSignature(RefactorType.INLINE_METHOD, 2, _kinds(REMOVED, *_FUNCTION_KINDS)),
    RefactorSignature(RefactorType.RENAME_SYMBOL, 1, (PatternRule(condition=NAME_CHANGED),)),
    RefactorSignature(
        RefactorType.MOVE_MODULARIZE, 2,
        _kinds(ADDED, "import_statement", "import_declaration", "using_directive"),
    ),
    # Architectural
    RefactorSignature(
        RefactorType.SERVICE_EXTRACTION, 4,
        _terms("restcontroller", "controller", "service", "@restcontroller", "@controller",
               "@service", "express", "fastify", "flask", "django"),
    ),
    RefactorSignature(
        RefactorType.LAYERING, 3,
        _terms("repository", "dao", "datalayer", "@repository", "@dao"),
    ),
    RefactorSignature(
        RefactorType.EVENT_DRIVEN, 4,
        _terms("kafka", "rabbitmq", "sqs", "eventbus", "pubsub", "messaging"),
    ),
    RefactorSignature(
        RefactorType.CLOUD_MIGRATION, 3,
        _terms(
            # AWS
            "aws-sdk", "s3", "dynamodb", "lambda", "ec2", "rds", "sns", "sqs",
            # Azure
            "azure", "blob", "cosmosdb", "functions",
            # GCP
            "google-cloud", "gcs", "firestore", "cloud-functions",
        ),
    ),
    # Code quality
    RefactorSignature(
        RefactorType.ERROR_HANDLING, 2,
        _terms("try", "catch", "exception", "error", "retry", "fallback"),
    ),
    RefactorSignature(
        RefactorType.LOGGING_OBSERVABILITY, 2,
        _terms("log4j", "slf4j", "winston", "bunyan", "logging", "logger",
               "metrics", "monitoring", "tracing"),
    ),
    RefactorSignature(
        RefactorType.TESTING, 2,
        _terms("junit", "testng", "jest", "mocha", "pytest", "unittest", "mockito",
               "sinon", "@test", "describe", "it(", "test("),
    ),
    # Infrastructure
    RefactorSignature(
        RefactorType.CONTAINERIZATION, 4,
        _terms("dockerfile", "docker-compose", "kubernetes", "k8s", "helm", "container"),
    ),
    RefactorSignature(
        RefactorType.INFRASTRUCTURE_AS_CODE, 4,
        _terms("terraform", "cloudformation", "arm", "pulumi", "cdk", "serverless"),
    ),
    RefactorSignature(
        RefactorType.DATABASE_MIGRATION, 3,
        _terms("jpa", "hibernate", "mybatis", "sequelize", "typeorm", "sqlalchemy",
               "mongoose", "prisma", "migration", "schema"),
    ),
)

# Tag types counted as new infrastructure by the impact scorer
INFRASTRUCTURE_TYPES = frozenset({
    RefactorType.SERVICE_EXTRACTION,
    RefactorType.CLOUD_MIGRATION,
    RefactorType.CONTAINERIZATION,
    RefactorType.INFRASTRUCTURE_AS_CODE,
    RefactorType.EVENT_DRIVEN,
})

# Tag types weighing double in the complexity delta
COMPLEX_TYPES = frozenset({
    RefactorType.SERVICE_EXTRACTION,
    RefactorType.CLOUD_MIGRATION,
    RefactorType.EVENT_DRIVEN,
    RefactorType.INFRASTRUCTURE_AS_CODE,
})

# Tag types that reduce complexity
SIMPLIFYING_TYPES = frozenset({
    RefactorType.EXTRACT_METHOD,
    RefactorType.INLINE_METHOD,
    RefactorType.RENAME_SYMBOL,
})


# ===================================================================
# Risks
# ===================================================================

_LICENSE_SUGGESTION = "Review license compatibility with your project requirements"

SECURITY_SIGNATURES: Tuple[RiskSignature, ...] = (
    RiskSignature(
        category="secrets",
        kind=RiskKind.SECURITY,
        severity=Severity.HIGH,
        patterns=_regexes(
            r"password\s*=\s*[\"'][^\"']+[\"']",
            r"api[_-]?key\s*=\s*[\"'][^\"']+[\"']",
            r"secret\s*=\s*[\"'][^\"']+[\"']",
            r"token\s*=\s*[\"'][^\"']+[\"']",
            r"access[_-]?key\s*=\s*[\"'][^\"']+[\"']",
            r"private[_-]?key\s*=\s*[\"'][^\"']+[\"']",
            r"aws[_-]?access[_-]?key",
            r"aws[_-]?secret[_-]?key",
            r"github[_-]?token",
            r"database[_-]?password",
        ),
        description="Potential secret exposure detected ({count} occurrences)",
        suggestion="Use environment variables or secure configuration management for secrets",
    ),
    RiskSignature(
        category="deprecated_crypto",
        kind=RiskKind.SECURITY,
        severity=Severity.MEDIUM,
        patterns=_regexes(
            r"\bmd5\s*\(",
            r"\bsha1\s*\(",
            r"\bdes\s*\(",
            r"\brc4\s*\(",
            r"crypto\.createHash\s*\(\s*['\"]md5['\"]",
            r"crypto\.createHash\s*\(\s*['\"]sha1['\"]",
            r"MessageDigest\.getInstance\s*\(\s*['\"]MD5['\"]",
            r"MessageDigest\.getInstance\s*\(\s*['\"]SHA-?1['\"]",
        ),
        description="Deprecated cryptographic functions found ({count} occurrences)",
        suggestion="Replace with modern cryptographic functions (SHA-256, AES-256)",
    ),
    RiskSignature(
        category="sql_injection",
        kind=RiskKind.SECURITY,
        severity=Severity.HIGH,
        patterns=_regexes(
            r"executeQuery\s*\(\s*[\"'][^\"']*[\"']\s*\+",
            r"\bquery\s*\(\s*[\"'][^\"']*[\"']\s*\+",
            r"Statement\.execute\s*\(\s*[\"'][^\"']*[\"']\s*\+",
            r"cursor\.execute\s*\(\s*[\"'][^\"']*[\"']\s*[+%]",
        ),
        description="Potential SQL injection vulnerability ({count} occurrences)",
        suggestion="Use parameterized queries or prepared statements",
    ),
    RiskSignature(
        category="xss",
        kind=RiskKind.SECURITY,
        severity=Severity.MEDIUM,
        patterns=(
            re.compile(r"innerHTML\s*=\s*[^;]+$", re.IGNORECASE | re.MULTILINE),
            re.compile(r"document\.write\s*\(", re.IGNORECASE),
            re.compile(r"\beval\s*\(", re.IGNORECASE),
            re.compile(r"\bnew\s+Function\s*\("),
            re.compile(r"setTimeout\s*\(\s*[\"'][^,]+,\s*0\s*\)", re.IGNORECASE),
        ),
        description="Potential XSS vulnerability ({count} occurrences)",
        suggestion="Sanitize user input and use Content Security Policy",
    ),
    RiskSignature(
        category="path_traversal",
        kind=RiskKind.SECURITY,
        severity=Severity.HIGH,
        patterns=_regexes(
            r"\.\./\.\./",
            r"\.\.\\\.\.\\",
            r"\.\.%2f\.\.%2f",
            r"\.\.%5c\.\.%5c",
            r"readFile\w*\s*\(\s*[^)]*\.\.",
            r"\bopen\s*\(\s*[^)]*\.\.",
        ),
        description="Potential path traversal vulnerability ({count} occurrences)",
        suggestion="Validate and sanitize file paths, use path.join() or equivalent",
    ),
)

LICENSE_SIGNATURES: Tuple[RiskSignature, ...] = (
    RiskSignature(
        category="gpl",
        kind=RiskKind.LICENSE,
        severity=Severity.HIGH,
        patterns=_regexes(r"\bgpl[_-]?v?[0-9]?", r"gnu[_ -]?general[_ -]?public[_ -]?license"),
        description="GPL license may require source code disclosure ({count} occurrences)",
        suggestion=_LICENSE_SUGGESTION,
    ),
    RiskSignature(
        category="agpl",
        kind=RiskKind.LICENSE,
        severity=Severity.CRITICAL,
        patterns=_regexes(r"\bagpl[_-]?v?[0-9]?", r"gnu[_ -]?affero[_ -]?general[_ -]?public[_ -]?license"),
        description="AGPL license requires source code disclosure for network services ({count} occurrences)",
        suggestion=_LICENSE_SUGGESTION,
    ),
    RiskSignature(
        category="copyleft",
        kind=RiskKind.LICENSE,
        severity=Severity.HIGH,
        patterns=_regexes(r"copyleft"),
        description="Copyleft license may impose restrictions ({count} occurrences)",
        suggestion=_LICENSE_SUGGESTION,
    ),
    RiskSignature(
        category="proprietary",
        kind=RiskKind.LICENSE,
        severity=Severity.MEDIUM,
        patterns=_regexes(r"proprietary", r"commercial[_ -]?license", r"closed[_ -]?source"),
        description="Proprietary license may require commercial agreement ({count} occurrences)",
        suggestion=_LICENSE_SUGGESTION,
    ),
)

COMPATIBILITY_SIGNATURES: Tuple[RiskSignature, ...] = (
    RiskSignature(
        category="deprecated_apis",
        kind=RiskKind.COMPATIBILITY,
        severity=Severity.MEDIUM,
        patterns=_regexes(
            r"new\s+Date\s*\([^)]+\)",
            r"\.call\s*\(\s*null\s*,",
            r"arguments\.callee",
            r"\bwith\s*\(",
            r"\beval\s*\(",
            flags=0,
        ),
        description="Deprecated API usage found ({count} occurrences)",
        suggestion="Update to modern APIs and remove deprecated usage",
    ),
    RiskSignature(
        category="browser_compatibility",
        kind=RiskKind.COMPATIBILITY,
        severity=Severity.LOW,
        patterns=_regexes(
            r"document\.all",
            r"window\.event",
            r"attachEvent",
            r"detachEvent",
            r"createStyleSheet",
            flags=0,
        ),
        description="Browser compatibility issues ({count} occurrences)",
        suggestion="Test across target browsers and update polyfills",
    ),
    RiskSignature(
        category="runtime_version",
        kind=RiskKind.COMPATIBILITY,
        severity=Severity.LOW,
        patterns=_regexes(
            r"process\.version",
            r"node[_-]?version",
            r"v8[_-]?version",
            r"sys\.version_info",
            flags=0,
        ),
        description="Runtime version dependencies ({count} occurrences)",
        suggestion="Declare the minimum supported runtime version in the project manifest",
    ),
)

PERFORMANCE_SIGNATURES: Tuple[RiskSignature, ...] = (
    RiskSignature(
        category="loop_length",
        kind=RiskKind.PERFORMANCE,
        severity=Severity.MEDIUM,
        patterns=_regexes(
            r"for\s*\(\s*(?:var|let)\s+\w+\s*=\s*0\s*;\s*\w+\s*<\s*[\w.]+\.length\s*;\s*\w+\+\+\s*\)",
            flags=0,
        ),
        description="Inefficient loop with repeated .length access ({count} occurrences)",
        suggestion="Cache array length before loop",
        min_matches=4,
    ),
    RiskSignature(
        category="dom_queries",
        kind=RiskKind.PERFORMANCE,
        severity=Severity.MEDIUM,
        patterns=_regexes(r"document\.getElementById\s*\(", flags=0),
        description="Multiple DOM queries without caching ({count} occurrences)",
        suggestion="Cache DOM elements for reuse",
        min_matches=4,
    ),
    RiskSignature(
        category="dynamic_regex",
        kind=RiskKind.PERFORMANCE,
        severity=Severity.MEDIUM,
        patterns=_regexes(r"new\s+RegExp\s*\(", flags=0),
        description="Dynamic regex creation in loops ({count} occurrences)",
        suggestion="Create regex patterns outside loops",
        min_matches=4,
    ),
)

MAINTAINABILITY_SIGNATURES: Tuple[RiskSignature, ...] = (
    RiskSignature(
        category="long_parameter_list",
        kind=RiskKind.MAINTAINABILITY,
        severity=Severity.LOW,
        patterns=_regexes(r"(?:function|def)\s+\w+\s*\([^)]{50,}\)", flags=0),
        description="Functions with many parameters ({count} occurrences)",
        suggestion="Consider using parameter objects or builder pattern",
    ),
    RiskSignature(
        category="long_block",
        kind=RiskKind.MAINTAINABILITY,
        severity=Severity.LOW,
        patterns=_regexes(r"\{[^}]{200,}\}", flags=0),
        description="Very long functions or blocks ({count} occurrences)",
        suggestion="Break down into smaller, focused functions",
    ),
    RiskSignature(
        category="technical_debt",
        kind=RiskKind.MAINTAINABILITY,
        severity=Severity.LOW,
        patterns=_regexes(r"(?://|#)\s*(?:TODO|FIXME|HACK)\b", flags=0),
        description="Code with TODO/FIXME/HACK comments ({count} occurrences)",
        suggestion="Address technical debt before production deployment",
    ),
)

# Dependency names hinting at a restrictive license
RESTRICTIVE_DEPENDENCY_MARKERS: Tuple[str, ...] = ("gpl", "copyleft")


@dataclass(frozen=True)
class SignatureRegistry:
    """Bundle of every table consumed by the classifier and the risk scanner."""
    refactor: Tuple[RefactorSignature, ...] = REFACTOR_SIGNATURES
    security: Tuple[RiskSignature, ...] = SECURITY_SIGNATURES
    license: Tuple[RiskSignature, ...] = LICENSE_SIGNATURES
    compatibility: Tuple[RiskSignature, ...] = COMPATIBILITY_SIGNATURES
    performance: Tuple[RiskSignature, ...] = PERFORMANCE_SIGNATURES
    maintainability: Tuple[RiskSignature, ...] = MAINTAINABILITY_SIGNATURES

    def signature_for(self, refactor_type: RefactorType) -> Optional[RefactorSignature]:
        for signature in self.refactor:
            if signature.type == refactor_type:
                return signature
        return None


DEFAULT_REGISTRY = SignatureRegistry()
