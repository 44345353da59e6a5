"""Configuration paths and fixed analysis constants for RefactorLens."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Tuple

BASE_DIR = Path(os.environ.get("REFACTORLENS_HOME", str(Path.home() / ".refactorlens"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

SUPPORTED_LANGUAGES: Tuple[str, ...] = ("javascript", "java", "python", "c", "cpp")

# Element mapping
SIMILARITY_THRESHOLD = 0.7
SIMILARITY_WEIGHTS: Dict[str, float] = {
    "name": 0.5,
    "type": 0.3,
    "parameters": 0.2,
}

# Per-file impact sub-score weights
FILE_IMPACT_WEIGHTS: Dict[str, int] = {
    "added": 2,
    "removed": 3,
    "modified": 1,
}

# Composite impact score
SCORE_WEIGHTS: Dict[str, float] = {
    "linesChanged": 0.30,
    "astNodesChanged": 0.25,
    "newInfrastructure": 0.20,
    "testCoverage": 0.15,
    "complexityDelta": 0.10,
}

# Minimum score for levels 0..4
LEVEL_THRESHOLDS: Tuple[int, ...] = (0, 20, 40, 60, 80)

LEVEL_NAMES: Dict[int, str] = {
    0: "trivial",
    1: "minor",
    2: "moderate",
    3: "significant",
    4: "architectural",
}

# Optional per-language multipliers for (complexity delta, infrastructure count)
LANGUAGE_ADJUSTMENTS: Dict[str, Dict[str, float]] = {
    "java": {"complexityMultiplier": 1.1, "infrastructureWeight": 1.2},
    "javascript": {"complexityMultiplier": 0.9, "infrastructureWeight": 1.0},
    "python": {"complexityMultiplier": 0.95, "infrastructureWeight": 1.0},
    "c": {"complexityMultiplier": 1.3, "infrastructureWeight": 0.8},
    "cpp": {"complexityMultiplier": 1.2, "infrastructureWeight": 0.9},
    "csharp": {"complexityMultiplier": 1.05, "infrastructureWeight": 1.1},
}
