"""Tree-sitter parsing capability for the languages RefactorLens can analyse.

Grammars are loaded once per :class:`TreeSitterParser`; a fresh tree-sitter
parser object is created for every call so one instance can serve concurrent
analyses.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import SUPPORTED_LANGUAGES
from .errors import ParseError, UnsupportedLanguageError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Language <-> file-extension mapping
# ---------------------------------------------------------------------------
LANGUAGE_MAP: Dict[str, str] = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".hh": "cpp",
}


def language_for_path(path: Path) -> Optional[str]:
    """Infer the analysis language from a file extension."""
    return LANGUAGE_MAP.get(path.suffix.lower())


class TreeSitterParser:
    """Multi-language concrete-syntax-tree parser built on Tree-sitter.

    Tree-sitter is error tolerant, so a tree is always produced; sources whose
    tree contains ``ERROR`` or missing nodes are rejected with
    :class:`ParseError` because the analysis cannot reason about them.
    """

    # Map language name -> module that provides the tree-sitter Language
    _GRAMMAR_MODULES: Dict[str, str] = {
        "python": "tree_sitter_python",
        "javascript": "tree_sitter_javascript",
        "java": "tree_sitter_java",
        "c": "tree_sitter_c",
        "cpp": "tree_sitter_cpp",
    }

    def __init__(self, languages: Optional[List[str]] = None) -> None:
        self._languages: Dict[str, Any] = {}
        self._requested_languages = list(languages or SUPPORTED_LANGUAGES)
        self._init_languages()

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def _init_languages(self) -> None:
        from tree_sitter import Language

        for lang in self._requested_languages:
            mod_name = self._GRAMMAR_MODULES.get(lang)
            if mod_name is None:
                logger.warning("No grammar module mapped for language '%s'", lang)
                continue
            try:
                mod = importlib.import_module(mod_name)
            except ImportError:
                logger.warning(
                    "Grammar package '%s' not installed for language '%s'. "
                    "Install with: pip install %s",
                    mod_name, lang, mod_name.replace("_", "-"),
                )
                continue
            # tree-sitter >=0.22 per-language packages expose a
            # language() function that returns the Language capsule.
            self._languages[lang] = Language(mod.language())
            logger.debug("Loaded tree-sitter grammar for %s", lang)

    def supports_language(self, language: str) -> bool:
        return language in self._languages

    @property
    def languages(self) -> List[str]:
        return sorted(self._languages)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, source: str, language: str) -> Any:
        """Parse *source* and return the tree-sitter ``Tree``.

        Raises:
            UnsupportedLanguageError: No grammar is loaded for *language*.
            ParseError: The source is malformed for *language*.
        """
        ts_language = self._languages.get(language)
        if ts_language is None:
            raise UnsupportedLanguageError(language)

        from tree_sitter import Parser as TSParser

        parser = TSParser(ts_language)
        tree = parser.parse(source.encode("utf-8"))

        root = tree.root_node
        if root.has_error:
            position, detail = _first_error(root)
            raise ParseError(language, position, detail)
        return tree


def _first_error(root: Any) -> Tuple[Optional[Tuple[int, int]], str]:
    """Locate the first ``ERROR`` or missing node below *root*."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR":
            return (node.start_point[0], node.start_point[1]), "unexpected syntax"
        if node.is_missing:
            return (node.start_point[0], node.start_point[1]), f"missing '{node.type}'"
        stack.extend(reversed([c for c in node.children if c.has_error or c.is_missing]))
    return None, "syntax error"


_default_parser: Optional[TreeSitterParser] = None


def get_parser() -> TreeSitterParser:
    """Process-wide parser with every supported grammar loaded."""
    global _default_parser
    if _default_parser is None:
        _default_parser = TreeSitterParser()
    return _default_parser
