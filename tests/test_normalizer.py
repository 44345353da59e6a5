"""Tests for CST normalization and per-language metadata extraction."""

import pytest

from refactorlens.errors import UnsupportedLanguageError
from refactorlens.normalizer import METADATA_EXTRACTORS, normalize


class TestTreeShape:
    """The arena keeps every node in pre-order with consistent links."""

    def test_preorder_handles(self, parse_tree):
        tree = parse_tree("function add(a, b) { return a + b; }\n", "javascript")

        assert tree.root.handle == 0
        assert tree.root.parent is None
        assert tree.root.kind == "program"
        for node in tree:
            assert tree[node.handle] is node
            for child in tree.children_of(node):
                assert child.parent == node.handle
                assert child.handle > node.handle

    def test_child_order_follows_source(self, parse_tree):
        tree = parse_tree("function a() {}\nfunction b() {}\n", "javascript")
        names = [c.name for c in tree.children_of(tree.root)]
        assert names == ["a", "b"]

    def test_anonymous_nodes_are_kept(self, parse_tree):
        """Punctuation and keywords become nodes too."""
        tree = parse_tree("function add(a, b) { return a + b; }\n", "javascript")
        kinds = {n.kind for n in tree}
        assert "function" in kinds
        assert "(" in kinds

    def test_source_and_spans(self, parse_tree):
        source = "function a() {}\n\nfunction b() {}\n"
        tree = parse_tree(source, "javascript")
        b = tree.find_by_name("b")

        assert tree.source == source
        assert tree.language == "javascript"
        assert b.span.start == (2, 0)
        assert str(b.span).startswith("3:0")
        assert all(n.language == "javascript" for n in tree)

    def test_unsupported_language(self, ts_parser):
        tree = ts_parser.parse("x = 1\n", "python")
        with pytest.raises(UnsupportedLanguageError):
            normalize(tree, "ruby")

    def test_extractor_table_covers_supported_languages(self):
        assert set(METADATA_EXTRACTORS) == {"javascript", "java", "python", "c", "cpp"}


class TestJavaScriptMetadata:
    def test_function_declaration(self, parse_tree):
        tree = parse_tree("function add(a, b) { return a + b; }\n", "javascript")
        node = tree.find_by_name("add")

        assert node.kind == "function_declaration"
        assert node.metadata.parameters == ("a", "b")
        assert node.metadata.imports == ()

    def test_class_and_method(self, parse_tree):
        tree = parse_tree("class OrderController {\n  list(req, res) { return 1; }\n}\n", "javascript")

        assert tree.find_by_name("OrderController").kind == "class_declaration"
        method = tree.find_by_name("list")
        assert method.kind == "method_definition"
        assert method.metadata.parameters == ("req", "res")

    def test_import_statement(self, parse_tree):
        tree = parse_tree("import express from 'express';\n", "javascript")
        imports = [n for n in tree if n.metadata.imports]

        assert len(imports) == 1
        assert imports[0].kind == "import_statement"
        assert imports[0].metadata.imports == ("express",)

    def test_require_call(self, parse_tree):
        tree = parse_tree("const express = require('express');\n", "javascript")
        imports = [n for n in tree if n.metadata.imports]

        assert [n.kind for n in imports] == ["call_expression"]
        assert imports[0].metadata.imports == ("express",)

    def test_other_calls_have_no_imports(self, parse_tree):
        tree = parse_tree("load('express');\n", "javascript")
        assert not any(n.metadata.imports for n in tree)

    def test_default_parameters_keep_their_text(self, parse_tree):
        tree = parse_tree("function f(a, b = 2) { return a; }\n", "javascript")
        assert tree.find_by_name("f").metadata.parameters == ("a", "b = 2")


class TestPythonMetadata:
    SOURCE = (
        "import os.path\n"
        "import numpy as np\n"
        "from collections import OrderedDict\n"
        "\n"
        "class Loader:\n"
        "    def load(self, path, mode=\"r\"):\n"
        "        return open(path, mode)\n"
    )

    def test_imports(self, parse_tree):
        tree = parse_tree(self.SOURCE, "python")
        by_kind = {n.kind: n.metadata.imports for n in tree if n.metadata.imports}

        assert by_kind["import_from_statement"] == ("collections",)
        statements = [n.metadata.imports for n in tree if n.kind == "import_statement"]
        assert statements == [("os.path",), ("numpy",)]

    def test_declarations(self, parse_tree):
        tree = parse_tree(self.SOURCE, "python")

        assert tree.find_by_name("Loader").kind == "class_definition"
        method = tree.find_by_name("load")
        assert method.kind == "function_definition"
        assert method.metadata.parameters == ("self", "path", 'mode="r"')

    def test_named_nodes_in_preorder(self, parse_tree):
        tree = parse_tree(self.SOURCE, "python")
        assert [n.name for n in tree.named_nodes()] == ["Loader", "load"]


class TestJavaMetadata:
    SOURCE = (
        "import java.util.List;\n"
        "import java.io.*;\n"
        "\n"
        "public class OrderService {\n"
        "    public OrderService() {}\n"
        "    public int total(int a, int b) { return a + b; }\n"
        "}\n"
    )

    def test_imports(self, parse_tree):
        tree = parse_tree(self.SOURCE, "java")
        imports = [n.metadata.imports for n in tree if n.kind == "import_declaration"]
        assert imports == [("java.util.List",), ("java.io.*",)]

    def test_declarations(self, parse_tree):
        tree = parse_tree(self.SOURCE, "java")
        kinds = [(n.kind, n.name) for n in tree.named_nodes()]

        assert kinds == [
            ("class_declaration", "OrderService"),
            ("constructor_declaration", "OrderService"),
            ("method_declaration", "total"),
        ]
        assert tree.find_by_name("total").metadata.parameters == ("int a", "int b")


class TestCFamilyMetadata:
    def test_c_function_through_pointer_declarator(self, parse_tree):
        source = (
            "#include <stdio.h>\n"
            "#include \"orders.h\"\n"
            "\n"
            "static int *find(int *items, int n) { return items; }\n"
        )
        tree = parse_tree(source, "c")

        node = tree.find_by_name("find")
        assert node.kind == "function_definition"
        assert node.metadata.parameters == ("int *items", "int n")
        includes = [n.metadata.imports for n in tree if n.kind == "preproc_include"]
        assert includes == [("stdio.h",), ("orders.h",)]

    def test_c_struct_definition_only(self, parse_tree):
        source = (
            "struct order { int id; };\n"
            "void ship(struct order *o) { }\n"
        )
        tree = parse_tree(source, "c")

        structs = [n for n in tree.named_nodes() if n.kind == "struct_specifier"]
        assert [s.name for s in structs] == ["order"]
        assert tree.find_by_name("ship").kind == "function_definition"

    def test_cpp_declarations(self, parse_tree):
        source = (
            "#include <vector>\n"
            "using namespace std;\n"
            "namespace shop {\n"
            "class Cart { int size; };\n"
            "int& first(std::vector<int>& xs) { return xs[0]; }\n"
            "}\n"
        )
        tree = parse_tree(source, "cpp")

        assert tree.find_by_name("shop").kind == "namespace_definition"
        assert tree.find_by_name("Cart").kind == "class_specifier"
        first = tree.find_by_name("first")
        assert first.kind == "function_definition"
        assert first.metadata.parameters == ("std::vector<int>& xs",)

        imports = [n.metadata.imports for n in tree if n.metadata.imports]
        assert imports == [("vector",), ("std",)]
