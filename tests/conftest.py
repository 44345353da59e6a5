"""Pytest configuration and fixtures for RefactorLens tests."""

from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pytest

from refactorlens.analyzer import RefactorAnalyzer
from refactorlens.models import Node, NodeMetadata, Span, SyntaxTree
from refactorlens.normalizer import normalize
from refactorlens.parser import TreeSitterParser


@pytest.fixture(scope="session")
def ts_parser() -> TreeSitterParser:
    """Parser with every supported grammar loaded (shared, grammars load once)."""
    return TreeSitterParser()


@pytest.fixture(scope="session")
def parse_tree(ts_parser: TreeSitterParser) -> Callable[[str, str], SyntaxTree]:
    """Parse and normalize a snippet: ``parse_tree(source, language)``."""

    def _parse(source: str, language: str) -> SyntaxTree:
        return normalize(ts_parser.parse(source, language), language, source)

    return _parse


@pytest.fixture(scope="session")
def analyzer(ts_parser: TreeSitterParser) -> RefactorAnalyzer:
    return RefactorAnalyzer(parser=ts_parser)


@pytest.fixture
def fixtures_dir() -> Path:
    """Get path to the sample source files."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def temp_config(tmp_path: Path, monkeypatch) -> Path:
    """Point the config manager at a throwaway TOML file."""
    config_file = tmp_path / "refactorlens" / "config.toml"
    monkeypatch.setattr("refactorlens.config_manager.CONFIG_FILE", config_file)
    return config_file


@pytest.fixture
def make_tree() -> Callable[..., SyntaxTree]:
    """Build a flat tree by hand: a ``program`` root with one child per entry.

    Each entry is a dict with ``kind`` and optionally ``name``, ``params``,
    ``imports`` and ``text``.
    """

    def _make(entries: Sequence[Dict], language: str = "javascript") -> SyntaxTree:
        children: List[Node] = []
        for offset, entry in enumerate(entries, start=1):
            name: Optional[str] = entry.get("name")
            params = tuple(entry.get("params", ()))
            text = entry.get("text") or f"{entry['kind']} {name or ''}({', '.join(params)})"
            children.append(Node(
                handle=offset,
                kind=entry["kind"],
                text=text,
                span=Span((offset - 1, 0), (offset - 1, len(text))),
                language=language,
                metadata=NodeMetadata(
                    name=name,
                    parameters=params,
                    imports=tuple(entry.get("imports", ())),
                ),
                parent=0,
            ))
        source = "\n".join(c.text for c in children)
        root = Node(
            handle=0,
            kind="program",
            text=source,
            span=Span((0, 0), (len(children), 0)),
            language=language,
            children=tuple(c.handle for c in children),
        )
        return SyntaxTree(language=language, source=source, nodes=(root, *children))

    return _make


@pytest.fixture
def legacy_js() -> str:
    return (
        "function computeTotal(items) {\n"
        "  return items.reduce((sum, item) => sum + item.price, 0);\n"
        "}\n"
    )


@pytest.fixture
def renamed_js() -> str:
    return (
        "function calculateTotal(items) {\n"
        "  return items.reduce((sum, item) => sum + item.price, 0);\n"
        "}\n"
    )


@pytest.fixture
def express_js() -> str:
    return (
        "const express = require('express');\n"
        "\n"
        "class OrderController {\n"
        "  list(req, res) {\n"
        "    res.json([]);\n"
        "  }\n"
        "}\n"
    )
