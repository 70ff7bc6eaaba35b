"""
ast_parser.py - Tree-sitter based JavaScript parser producing SyntaxNode trees.

Responsibilities:
- Load the tree-sitter JavaScript grammar and keep one Parser per thread.
- Reject source that does not parse cleanly under the run's grammar profile
  (ECMAScript version + script/module source type).
- Convert tree-sitter nodes into immutable SyntaxNode trees carrying
  start/end offsets and line/column locations on every node.

Conversion keeps named nodes and meaningful anonymous tokens (keywords,
operators, quotes) and drops comments and pure punctuation, so optional
semicolons and trailing commas do not change the tree shape.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Union

import tree_sitter_javascript as tsjs
from tree_sitter import Language, Node, Parser

from ast_compare.errors import ParseError
from ast_compare.models import Position, SourceLocation, SyntaxNode, normalize_ecma_version
from ast_compare.parse_cache import ParseCache

logger = logging.getLogger(__name__)

JS_LANGUAGE = Language(tsjs.language())

# ---------------------------------------------------------------------------
# Grammar profile tables
# ---------------------------------------------------------------------------

# Anonymous tokens that carry no structure of their own
PUNCTUATION: frozenset[str] = frozenset({
    ";", ",", "(", ")", "{", "}", "[", "]", ":", ".", "${",
})

# Extras that are not part of the syntax tree
DROPPED_NODE_TYPES: frozenset[str] = frozenset({"comment", "html_comment"})

# Named node type → first ECMAScript edition that allows it
NODE_MIN_VERSION: dict[str, int] = {
    "await_expression":            2017,
    "import":                      2020,  # dynamic import()
    "optional_chain":              2020,
    "field_definition":            2022,
    "class_static_block":          2022,
    "private_property_identifier": 2022,
}

# Anonymous keyword/operator token → first ECMAScript edition that allows it
TOKEN_MIN_VERSION: dict[str, int] = {
    "**":    2016,
    "**=":   2016,
    "async": 2017,
    "await": 2017,
    "??":    2020,
    "&&=":   2021,
    "||=":   2021,
    "??=":   2021,
}

# Node type → (required parent type, first edition) for syntax that is only
# newer in one position, e.g. spread in object literals
NESTED_MIN_VERSION: dict[str, tuple[str, int]] = {
    "spread_element": ("object",         2018),
    "rest_pattern":   ("object_pattern", 2018),
}

# Grammar extensions that no ECMAScript edition accepts
NON_STANDARD_NODE_TYPES: frozenset[str] = frozenset({"decorator"})
NON_STANDARD_PREFIX = "jsx_"

MODULE_ONLY_STATEMENTS: frozenset[str] = frozenset({"import_statement", "export_statement"})


class JavaScriptParser:
    """Parses JavaScript source into SyntaxNode trees under a fixed profile.

    Usage::

        parser = JavaScriptParser(ecma_version=2015, source_type="script")
        tree = parser.parse_file("/path/to/foo.js")
    """

    def __init__(
        self,
        ecma_version: int = 2015,
        source_type: str = "script",
        cache: Optional[ParseCache] = None,
    ) -> None:
        if source_type not in ("script", "module"):
            raise ValueError(f"Unknown source_type: {source_type!r}")
        self.ecma_version = normalize_ecma_version(ecma_version)
        self.source_type = source_type
        self._cache: ParseCache = cache if cache is not None else ParseCache()
        self._local = threading.local()

    def _parser(self) -> Parser:
        # tree-sitter Parser objects are not safe to share between threads.
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = Parser(JS_LANGUAGE)
            self._local.parser = parser
        return parser

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse_file(self, file_path: str) -> SyntaxNode:
        """Read and parse *file_path*.

        Raises:
            ParseError: unreadable file or invalid source.
        """
        try:
            with open(file_path, "rb") as fh:
                source = fh.read()
        except OSError as exc:
            raise ParseError(file_path, exc.strerror or str(exc)) from exc
        return self.parse_source(source, file_path)

    def parse_source(self, source: Union[bytes, str], file_path: str = "<source>") -> SyntaxNode:
        """Parse source text into a SyntaxNode tree.

        Results are cached by content hash, so identical sources share one
        (immutable) tree.
        """
        if isinstance(source, str):
            source = source.encode("utf-8")

        cached = self._cache.get(source)
        if cached is not None:
            return cached

        tree = self._parser().parse(source)
        root = tree.root_node
        if root.has_error:
            _raise_syntax_error(root, file_path)
        if self.source_type == "script":
            for child in root.named_children:
                if child.type in MODULE_ONLY_STATEMENTS:
                    raise ParseError(
                        file_path,
                        "'import' and 'export' may appear only with 'sourceType: module'",
                        *_line_col(child),
                    )

        result = self._convert(root, source, file_path)
        self._cache.put(source, result)
        return result

    def cache_stats(self) -> dict:
        """Return cache performance counters (delegates to ParseCache.stats)."""
        return self._cache.stats()

    def release(self, *trees: Optional[SyntaxNode]) -> None:
        """Drop *trees* from the cache once their comparison is finished."""
        for tree in trees:
            if tree is not None:
                self._cache.discard(tree)

    def clear_cache(self) -> None:
        self._cache.clear()

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def _convert(self, node: Node, source: bytes, file_path: str) -> SyntaxNode:
        self._check_version(node, source, file_path)

        fields: dict[str, list[SyntaxNode]] = {}
        children: list[SyntaxNode] = []
        cursor = node.walk()
        if cursor.goto_first_child():
            while True:
                child = cursor.node
                if _keep(child):
                    converted = self._convert(child, source, file_path)
                    field_name = cursor.field_name
                    if field_name:
                        fields.setdefault(field_name, []).append(converted)
                    else:
                        children.append(converted)
                if not cursor.goto_next_sibling():
                    break

        # Only real tokens carry text; a node emptied by filtering has none
        text: Optional[str] = None
        if node.child_count == 0:
            text = _node_text(node, source)

        return SyntaxNode(
            type=node.type,
            start=node.start_byte,
            end=node.end_byte,
            loc=SourceLocation(
                start=Position(line=node.start_point[0] + 1, column=node.start_point[1]),
                end=Position(line=node.end_point[0] + 1, column=node.end_point[1]),
            ),
            fields={k: v[0] if len(v) == 1 else v for k, v in fields.items()},
            children=children,
            text=text,
        )

    def _check_version(self, node: Node, source: bytes, file_path: str) -> None:
        if node.type in NON_STANDARD_NODE_TYPES or node.type.startswith(NON_STANDARD_PREFIX):
            raise ParseError(
                file_path,
                f"'{node.type}' is not ECMAScript syntax",
                *_line_col(node),
            )
        required = _required_version(node, source)
        if required is not None and required > self.ecma_version:
            raise ParseError(
                file_path,
                f"'{node.type}' requires ecmaVersion >= {required} "
                f"(configured {self.ecma_version})",
                *_line_col(node),
            )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _keep(node: Node) -> bool:
    if node.type in DROPPED_NODE_TYPES:
        return False
    return node.is_named or node.type not in PUNCTUATION


def _node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def _required_version(node: Node, source: bytes) -> Optional[int]:
    """Return the first edition that accepts *node*, or None for ES2015 syntax."""
    if not node.is_named:
        return TOKEN_MIN_VERSION.get(node.type)
    if node.type in NODE_MIN_VERSION:
        return NODE_MIN_VERSION[node.type]
    if node.type in NESTED_MIN_VERSION:
        parent_type, version = NESTED_MIN_VERSION[node.type]
        parent = node.parent
        return version if parent is not None and parent.type == parent_type else None
    if node.type == "catch_clause":
        # Optional catch binding
        return 2019 if node.child_by_field_name("parameter") is None else None
    if node.type == "number":
        literal = _node_text(node, source)
        if "_" in literal:
            return 2021
        if literal.endswith("n"):
            return 2020
    return None


def _line_col(node: Node) -> tuple[int, int]:
    return node.start_point[0] + 1, node.start_point[1]


def _first_error(root: Node) -> Optional[Node]:
    """Return the first ERROR or MISSING node in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node
        # Reverse so the leftmost child is examined first.
        stack.extend(
            c for c in reversed(node.children) if c.has_error or c.is_missing
        )
    return None


def _raise_syntax_error(root: Node, file_path: str) -> None:
    bad = _first_error(root) or root
    if bad.is_missing:
        message = f"Missing {bad.type}"
    else:
        message = "Unexpected token"
    logger.debug("Syntax error in %s at %s", file_path, bad.start_point)
    raise ParseError(file_path, message, *_line_col(bad))
