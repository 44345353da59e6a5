"""Exceptions raised by the RefactorLens analysis pipeline."""

from __future__ import annotations

from typing import Optional, Tuple


class RefactorLensError(Exception):
    """Base class for RefactorLens errors."""


class UnsupportedLanguageError(RefactorLensError, ValueError):
    """Raised when no grammar or normalizer exists for a language."""

    def __init__(self, language: str) -> None:
        self.language = language
        super().__init__(f"Unsupported language: {language}")


class ParseError(RefactorLensError):
    """Raised when source text cannot be parsed for the given language."""

    def __init__(
        self,
        language: str,
        position: Optional[Tuple[int, int]] = None,
        detail: str = "",
    ) -> None:
        self.language = language
        self.position = position
        self.detail = detail
        message = f"Failed to parse {language} code"
        if position is not None:
            # rows/columns are zero-based in the tree, one-based for humans
            message += f" at line {position[0] + 1}, column {position[1] + 1}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class AnalysisTimeoutError(RefactorLensError, TimeoutError):
    """Raised when an analysis does not finish before its deadline."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Analysis did not complete within {timeout:g}s")
