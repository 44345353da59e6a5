"""Tests for the pattern classifier."""

import pytest

from refactorlens.classifier import (
    PatternClassifier,
    classify,
    has_name_change,
    merge_tags,
    node_confidence,
)
from refactorlens.diff_engine import compute_diff
from refactorlens.mapper import map_elements
from refactorlens.models import DiffResult, FileChange, ModifiedNode, RefactorTag, RefactorType
from refactorlens.signatures import DEFAULT_REGISTRY, REFACTOR_SIGNATURES


def _classify(parse_tree, legacy_src: str, refactored_src: str, language: str = "javascript"):
    legacy = parse_tree(legacy_src, language)
    refactored = parse_tree(refactored_src, language)
    diff = compute_diff(legacy, refactored, map_elements(legacy, refactored))
    return {tag.type: tag for tag in classify(diff, language)}


class TestSignatureTable:
    def test_fourteen_techniques(self):
        assert len(REFACTOR_SIGNATURES) == 14
        assert {s.type for s in REFACTOR_SIGNATURES} == set(RefactorType)

    def test_baseline_levels(self):
        assert DEFAULT_REGISTRY.signature_for(RefactorType.RENAME_SYMBOL).level == 1
        assert DEFAULT_REGISTRY.signature_for(RefactorType.SERVICE_EXTRACTION).level == 4
        assert DEFAULT_REGISTRY.signature_for(RefactorType.DATABASE_MIGRATION).level == 3


class TestMergeTags:
    """Tests for duplicate merging and ordering."""

    def test_merge_same_type(self):
        tags = merge_tags([
            RefactorTag(RefactorType.TESTING, 2, ("a", "b"), 0.6),
            RefactorTag(RefactorType.TESTING, 3, ("b", "c"), 1.0),
        ])

        assert len(tags) == 1
        assert tags[0].level == 3
        assert tags[0].evidence == ("a", "b", "c")
        assert tags[0].confidence == pytest.approx(0.8)

    def test_running_average(self):
        tags = merge_tags([
            RefactorTag(RefactorType.TESTING, 2, ("a",), 0.6),
            RefactorTag(RefactorType.TESTING, 2, ("a",), 1.0),
            RefactorTag(RefactorType.TESTING, 2, ("a",), 0.6),
        ])
        # ((0.6 + 1.0) / 2 + 0.6) / 2
        assert tags[0].confidence == pytest.approx(0.7)

    def test_sorted_by_level_stable(self):
        tags = merge_tags([
            RefactorTag(RefactorType.ERROR_HANDLING, 2),
            RefactorTag(RefactorType.SERVICE_EXTRACTION, 4),
            RefactorTag(RefactorType.TESTING, 2),
            RefactorTag(RefactorType.LAYERING, 3),
        ])

        assert [t.type for t in tags] == [
            RefactorType.SERVICE_EXTRACTION,
            RefactorType.LAYERING,
            RefactorType.ERROR_HANDLING,
            RefactorType.TESTING,
        ]

    def test_empty(self):
        assert merge_tags([]) == []

    def test_invalid_tag_rejected(self):
        with pytest.raises(ValueError):
            RefactorTag(RefactorType.TESTING, 5)
        with pytest.raises(ValueError):
            RefactorTag(RefactorType.TESTING, 1, confidence=1.5)


class TestConfidence:
    def test_boosts(self, make_tree):
        tree = make_tree([
            {"kind": "class_declaration", "name": "OrderController"},
            {"kind": "call_expression", "imports": ("express",), "text": "require('express')"},
            {"kind": "expression_statement", "text": "retry();"},
        ])

        assert node_confidence(tree[1], lexical_hit=True, kind_hit=False) == pytest.approx(0.9)
        assert node_confidence(tree[2], lexical_hit=False, kind_hit=True) == pytest.approx(0.8)
        assert node_confidence(tree[3], lexical_hit=False, kind_hit=False) == pytest.approx(0.5)

    def test_capped_at_one(self, make_tree):
        tree = make_tree([{"kind": "x", "name": "n", "imports": ("m",)}])
        assert node_confidence(tree[1], lexical_hit=True, kind_hit=True) == 1.0


class TestNameChange:
    def test_reasons(self, make_tree):
        tree = make_tree([{"kind": "function_declaration", "name": "a"}])
        node = tree[1]

        assert has_name_change(ModifiedNode(node, node, ("Name changed: a -> b",)))
        assert has_name_change(ModifiedNode(node, node, ("Identifier updated",)))
        assert not has_name_change(ModifiedNode(node, node, ("Content modified",)))
        assert not has_name_change(ModifiedNode(node, node, ("Parameters changed",)))
        assert not has_name_change(
            ModifiedNode(node, node, ("Type changed: identifier -> type_identifier",))
        )


class TestNodeDetection:
    """Tests for detection over added, removed and modified nodes."""

    def test_empty_diff(self):
        assert PatternClassifier().classify(DiffResult.empty()) == []

    def test_rename_symbol(self, parse_tree, legacy_js, renamed_js):
        tags = _classify(parse_tree, legacy_js, renamed_js)

        assert list(tags) == [RefactorType.RENAME_SYMBOL]
        rename = tags[RefactorType.RENAME_SYMBOL]
        assert rename.level == 1
        assert "Renamed computeTotal -> calculateTotal (function_declaration)" in rename.evidence

    def test_service_extraction(self, parse_tree, express_js):
        legacy = "function list(req, res) {\n  res.json([]);\n}\n"
        tags = _classify(parse_tree, legacy, express_js)

        service = tags[RefactorType.SERVICE_EXTRACTION]
        assert service.level == 4
        assert "Found controller usage in OrderController (class_declaration)" in service.evidence
        assert RefactorType.MOVE_MODULARIZE in tags
        assert tags[RefactorType.MOVE_MODULARIZE].level == 2

    def test_extract_method(self, parse_tree):
        legacy = "def run(items):\n    return sum(items)\n"
        refactored = "def run(items):\n    return total(items)\n\n\ndef total(items):\n    return sum(items)\n"
        tags = _classify(parse_tree, legacy, refactored, "python")

        extract = tags[RefactorType.EXTRACT_METHOD]
        assert extract.level == 2
        assert "Added function_definition total" in extract.evidence

    def test_inline_method(self, parse_tree):
        legacy = "def run(items):\n    return total(items)\n\n\ndef total(items):\n    return sum(items)\n"
        refactored = "def run(items):\n    return sum(items)\n"
        tags = _classify(parse_tree, legacy, refactored, "python")

        assert "Removed function_definition total" in tags[RefactorType.INLINE_METHOD].evidence
        assert RefactorType.EXTRACT_METHOD not in tags

    def test_python_import_and_logging(self, parse_tree):
        legacy = "def run():\n    return 1\n"
        refactored = "import logging\n\n\ndef run():\n    return 1\n"
        tags = _classify(parse_tree, legacy, refactored, "python")

        move = tags[RefactorType.MOVE_MODULARIZE]
        assert "Added import_statement" in move.evidence
        assert "Import/dependency changes detected" in move.evidence
        assert RefactorType.LOGGING_OBSERVABILITY in tags

    def test_modified_node_only_feeds_rename(self, make_tree):
        legacy = make_tree([{"kind": "function_declaration", "name": "save", "text": "save() { put(); }"}])
        refactored = make_tree([{"kind": "function_declaration", "name": "save", "text": "save() { rds.put(); }"}])
        change = ModifiedNode(legacy[1], refactored[1], ("Content modified",))

        assert PatternClassifier().detect_modified(change) == []

    def test_parameter_named_name_is_not_a_rename(self, parse_tree):
        legacy = "function greet(name) {\n  return 'hi ' + name;\n}\n"
        refactored = "function greet(fullName) {\n  return 'hi ' + fullName;\n}\n"
        tags = _classify(parse_tree, legacy, refactored)

        assert RefactorType.RENAME_SYMBOL not in tags


class TestFileDetection:
    def test_added_lines_only(self):
        file_change = FileChange(
            file_path="main",
            text_diff="--- a/kafka\n+++ b/kafka\n@@ -1 +1 @@\n-retry()\n+sqlalchemy.create_engine()\n",
            ast_diff_summary="No structural changes",
            impact_score=0,
        )

        tags = {t.type: t for t in PatternClassifier().detect_file(file_change)}

        assert set(tags) == {RefactorType.DATABASE_MIGRATION}
        assert tags[RefactorType.DATABASE_MIGRATION].evidence == ("Found sqlalchemy in file changes",)
        assert tags[RefactorType.DATABASE_MIGRATION].confidence == pytest.approx(0.8)

    def test_dependency_summary(self):
        file_change = FileChange(
            file_path="main",
            text_diff="",
            ast_diff_summary="2 nodes added, 1 imports removed",
            impact_score=4,
        )

        tags = PatternClassifier().detect_file(file_change)

        assert len(tags) == 1
        assert tags[0].type == RefactorType.MOVE_MODULARIZE
        assert tags[0].confidence == pytest.approx(0.7)
        assert tags[0].evidence == ("Import/dependency changes detected",)
