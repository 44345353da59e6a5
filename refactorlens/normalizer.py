"""Normalize a Tree-sitter concrete syntax tree into a :class:`SyntaxTree` arena.

Every source node (named and anonymous) becomes one :class:`Node`, stored in
depth-first pre-order so a node's handle is smaller than any of its
descendants'. Metadata extraction is language specific:

* declared name - the ``name`` field (C/C++: the function declarator chain)
* parameters    - text of each named child of the parameter list
* imports       - module / header targets of import-like constructs
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import UnsupportedLanguageError
from .models import Node, NodeMetadata, Span, SyntaxTree

logger = logging.getLogger(__name__)

MetadataExtractor = Callable[[Any], NodeMetadata]

_EMPTY = NodeMetadata()


# ===================================================================
# Public API
# ===================================================================

def normalize(raw_root: Any, language: str, source: Optional[str] = None) -> SyntaxTree:
    """Build the normalized tree for *raw_root*.

    Args:
        raw_root: Root node exposing the tree-sitter node interface
            (``type``, ``text``, ``start_point``, ``end_point``,
            ``children``, ``child_by_field_name``). A ``Tree`` is accepted too.
        language: Language tag attached to every node.
        source: Full source text; defaults to the root node's text.

    Raises:
        UnsupportedLanguageError: No metadata extractor exists for *language*.
    """
    extractor = METADATA_EXTRACTORS.get(language)
    if extractor is None:
        raise UnsupportedLanguageError(language)

    if hasattr(raw_root, "root_node"):
        raw_root = raw_root.root_node

    # Pass 1: assign pre-order handles and remember each node's parent.
    order: List[Tuple[Any, Optional[int]]] = []
    stack: List[Tuple[Any, Optional[int]]] = [(raw_root, None)]
    while stack:
        raw, parent = stack.pop()
        handle = len(order)
        order.append((raw, parent))
        for child in reversed(raw.children):
            stack.append((child, handle))

    children: List[List[int]] = [[] for _ in order]
    for handle, (_, parent) in enumerate(order):
        if parent is not None:
            children[parent].append(handle)

    # Pass 2: freeze nodes.
    nodes = tuple(
        Node(
            handle=handle,
            kind=raw.type,
            text=_text(raw),
            span=Span(
                start=(raw.start_point[0], raw.start_point[1]),
                end=(raw.end_point[0], raw.end_point[1]),
            ),
            language=language,
            metadata=extractor(raw),
            parent=parent,
            children=tuple(children[handle]),
        )
        for handle, (raw, parent) in enumerate(order)
    )

    if source is None:
        source = nodes[0].text if nodes else ""

    logger.debug("Normalized %d %s nodes", len(nodes), language)
    return SyntaxTree(language=language, source=source, nodes=nodes)


# ===================================================================
# Shared helpers
# ===================================================================

def _text(raw: Any) -> str:
    text = raw.text
    if text is None:
        return ""
    if isinstance(text, bytes):
        return text.decode("utf-8", errors="replace")
    return str(text)


def _field(raw: Any, name: str) -> Any:
    return raw.child_by_field_name(name)


def _strip_quotes(text: str) -> str:
    return text.strip().strip("'\"`")


def _parameters(params_node: Any) -> Tuple[str, ...]:
    """Text of each parameter in a parameter list node."""
    if params_node is None:
        return ()
    return tuple(
        _text(child)
        for child in params_node.children
        if child.is_named and child.type != "comment"
    )


def _declaration(raw: Any, kinds: frozenset) -> NodeMetadata:
    if raw.type not in kinds:
        return _EMPTY
    name_node = _field(raw, "name")
    if name_node is None:
        return _EMPTY
    return NodeMetadata(
        name=_text(name_node),
        parameters=_parameters(_field(raw, "parameters")),
    )


# ===================================================================
# JavaScript
# ===================================================================

_JS_DECLARATIONS = frozenset({
    "function_declaration",
    "function",
    "function_expression",
    "generator_function_declaration",
    "generator_function",
    "class_declaration",
    "class",
    "method_definition",
})


def _javascript_metadata(raw: Any) -> NodeMetadata:
    if raw.type == "import_statement":
        source = _field(raw, "source")
        if source is not None:
            return NodeMetadata(imports=(_strip_quotes(_text(source)),))
        return _EMPTY

    if raw.type == "call_expression":
        func = _field(raw, "function")
        if func is not None and func.type == "identifier" and _text(func) == "require":
            args = _field(raw, "arguments")
            targets = [
                _strip_quotes(_text(a))
                for a in (args.children if args is not None else [])
                if a.type in ("string", "template_string")
            ]
            if targets:
                return NodeMetadata(imports=(targets[0],))
        return _EMPTY

    return _declaration(raw, _JS_DECLARATIONS)


# ===================================================================
# Java
# ===================================================================

_JAVA_DECLARATIONS = frozenset({
    "class_declaration",
    "interface_declaration",
    "enum_declaration",
    "record_declaration",
    "method_declaration",
    "constructor_declaration",
})


def _java_metadata(raw: Any) -> NodeMetadata:
    if raw.type == "import_declaration":
        target = ""
        wildcard = False
        for child in raw.children:
            if child.type in ("scoped_identifier", "identifier"):
                target = _text(child)
            elif child.type == "asterisk":
                wildcard = True
        if not target:
            return _EMPTY
        return NodeMetadata(imports=(f"{target}.*" if wildcard else target,))

    return _declaration(raw, _JAVA_DECLARATIONS)


# ===================================================================
# Python
# ===================================================================

_PY_DECLARATIONS = frozenset({"function_definition", "class_definition"})


def _python_metadata(raw: Any) -> NodeMetadata:
    if raw.type == "import_statement":
        modules: List[str] = []
        for sub in raw.children:
            if sub.type == "dotted_name":
                modules.append(_text(sub))
            elif sub.type == "aliased_import":
                name_n = _field(sub, "name")
                if name_n is not None:
                    modules.append(_text(name_n))
        return NodeMetadata(imports=tuple(modules)) if modules else _EMPTY

    if raw.type == "import_from_statement":
        mod_node = _field(raw, "module_name")
        if mod_node is None:
            return _EMPTY
        return NodeMetadata(imports=(_text(mod_node),))

    return _declaration(raw, _PY_DECLARATIONS)


# ===================================================================
# C / C++
# ===================================================================

_C_TYPE_SPECIFIERS = frozenset({"struct_specifier", "union_specifier", "enum_specifier"})
_CPP_TYPE_SPECIFIERS = _C_TYPE_SPECIFIERS | {"class_specifier"}


def _function_declarator(raw: Any) -> Any:
    """Follow ``declarator`` fields (through pointers/references) to the function declarator."""
    decl = _field(raw, "declarator")
    while decl is not None and decl.type != "function_declarator":
        next_decl = _field(decl, "declarator")
        if next_decl is None:
            # reference_declarator keeps its inner declarator as a plain child
            next_decl = next((c for c in decl.children if c.is_named), None)
        decl = next_decl
    return decl


def _c_family_metadata(raw: Any, type_specifiers: frozenset, cpp: bool) -> NodeMetadata:
    if raw.type == "function_definition":
        declarator = _function_declarator(raw)
        if declarator is None:
            return _EMPTY
        name_node = _field(declarator, "declarator")
        if name_node is None:
            return _EMPTY
        return NodeMetadata(
            name=_text(name_node),
            parameters=_parameters(_field(declarator, "parameters")),
        )

    if raw.type in type_specifiers:
        # Only definitions (with a body) declare a type; `struct foo x;` references one.
        name_node = _field(raw, "name")
        if name_node is None or _field(raw, "body") is None:
            return _EMPTY
        return NodeMetadata(name=_text(name_node))

    if raw.type == "preproc_include":
        path = _field(raw, "path")
        if path is None:
            return _EMPTY
        return NodeMetadata(imports=(_text(path).strip().strip('<>"'),))

    if cpp and raw.type == "using_declaration":
        target = _text(raw).strip().rstrip(";")
        target = target[len("using"):].strip()
        if target.startswith("namespace "):
            target = target[len("namespace "):].strip()
        return NodeMetadata(imports=(target,)) if target else _EMPTY

    if cpp and raw.type == "namespace_definition":
        name_node = _field(raw, "name")
        if name_node is not None:
            return NodeMetadata(name=_text(name_node))

    return _EMPTY


def _c_metadata(raw: Any) -> NodeMetadata:
    return _c_family_metadata(raw, _C_TYPE_SPECIFIERS, cpp=False)


def _cpp_metadata(raw: Any) -> NodeMetadata:
    return _c_family_metadata(raw, _CPP_TYPE_SPECIFIERS, cpp=True)


METADATA_EXTRACTORS: Dict[str, MetadataExtractor] = {
    "javascript": _javascript_metadata,
    "java": _java_metadata,
    "python": _python_metadata,
    "c": _c_metadata,
    "cpp": _cpp_metadata,
}
