"""
reporter.py - Console reporting and on-disk persistence of divergent pairs.

For every divergent pair the reporter prints which file diverged and where
(line/column in each version).  With persistence enabled it also writes:

    <original>.ast        original syntax tree
    <modified>.ast        modified syntax tree
    <original>.ast.diff   difference list

All three are JSON with 4-space indentation.  A failed write raises
PersistError and aborts the run.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from rich.console import Console
from rich.markup import escape

from ast_compare.errors import PersistError
from ast_compare.models import (
    ComparisonResult,
    DiffKind,
    DifferenceRecord,
    FilePair,
    SyntaxNode,
)

logger = logging.getLogger(__name__)

AST_OUT_EXT = ".ast"
AST_DIFF_EXT = ".diff"
JSON_INDENT = 4

stderr_console = Console(stderr=True)


def ast_paths(pair: FilePair) -> tuple[str, str, str]:
    """Return (original .ast, modified .ast, .ast.diff) artifact paths."""
    original_ast = pair.original + AST_OUT_EXT
    modified_ast = pair.modified + AST_OUT_EXT
    return original_ast, modified_ast, original_ast + AST_DIFF_EXT


def load_tree(path: str) -> SyntaxNode:
    """Read a persisted .ast file back into a SyntaxNode."""
    return SyntaxNode.model_validate_json(Path(path).read_text(encoding="utf-8"))


def _write_json(path: str, payload: Any) -> None:
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=JSON_INDENT)
    except OSError as exc:
        raise PersistError(path, exc.strerror or str(exc)) from exc


# ---------------------------------------------------------------------------
# Location lookup
# ---------------------------------------------------------------------------

def _loc_of(value: Any) -> Optional[dict]:
    if isinstance(value, dict) and isinstance(value.get("loc"), dict):
        return value["loc"]
    return None


def _nearest_loc(tree: Any, path: Sequence[Any]) -> Optional[dict]:
    """Location of the deepest node along *path* inside *tree*."""
    best = _loc_of(tree)
    current = tree
    for key in path:
        if isinstance(current, dict) and key in current:
            current = current[key]
        elif isinstance(current, list) and isinstance(key, int) and 0 <= key < len(current):
            current = current[key]
        else:
            break
        best = _loc_of(current) or best
    return best


def record_locations(
    record: DifferenceRecord,
    original_tree: Any,
    modified_tree: Any,
) -> tuple[Optional[dict], Optional[dict]]:
    """Return the (original, modified) locations for one difference record.

    A side whose value is itself a node reports that node's location;
    otherwise the deepest enclosing node on that side is used.
    """
    path = record.path or []
    source = record.item if record.kind is DiffKind.ARRAY and record.item else record

    original = _loc_of(source.lhs) if source.kind is not DiffKind.ADDED else None
    if original is None and original_tree is not None:
        original = _nearest_loc(original_tree, path)

    modified = _loc_of(source.rhs) if source.kind is not DiffKind.DELETED else None
    if modified is None and modified_tree is not None:
        modified = _nearest_loc(modified_tree, path)
    return original, modified


def format_loc(file_path: str, loc: dict) -> str:
    start = loc["start"]
    end = loc["end"]
    return f"{file_path}:{start['line']}:{start['column']}-{end['line']}:{end['column']}"


# ---------------------------------------------------------------------------
# Reporter
# ---------------------------------------------------------------------------

class Reporter:
    """Reports divergent pairs and, when *persist* is set, saves their trees.

    Usage::

        reporter = Reporter(persist=config.debug)
        reporter.report(pair, original_tree, modified_tree, result)
    """

    def __init__(self, persist: bool = False, console: Optional[Console] = None) -> None:
        self.persist = persist
        self.console = console if console is not None else stderr_console

    def report(
        self,
        pair: FilePair,
        original_tree: SyntaxNode,
        modified_tree: SyntaxNode,
        result: ComparisonResult,
    ) -> None:
        if result.is_equal:
            return

        diff_json = result.to_json_list()
        logger.debug("Differences for %s: %s", pair.original, json.dumps(diff_json))

        self.console.print(f"[bold red]AST variation detected in[/bold red] {escape(pair.original)}")

        original_json = original_tree.to_json_dict()
        modified_json = modified_tree.to_json_dict()
        for record in result.differences:
            original_loc, modified_loc = record_locations(record, original_json, modified_json)
            if original_loc is not None:
                self.console.print(f"  Original: {escape(format_loc(pair.original, original_loc))}")
            if modified_loc is not None:
                self.console.print(f"  Modified: {escape(format_loc(pair.modified, modified_loc))}")

        if self.persist:
            self.save(pair, original_json, modified_json, diff_json)
        else:
            self.console.print("Use the -d option to save AST dumps and diff info.")

    def save(
        self,
        pair: FilePair,
        original_json: dict,
        modified_json: dict,
        diff_json: list,
    ) -> tuple[str, str, str]:
        """Write the diff and both trees; raise PersistError on the first failure."""
        original_ast, modified_ast, diff_path = ast_paths(pair)
        _write_json(diff_path, diff_json)
        _write_json(original_ast, original_json)
        _write_json(modified_ast, modified_json)

        self.console.print("AST dumps available in the following files:")
        self.console.print(f"  {escape(original_ast)}")
        self.console.print(f"  {escape(modified_ast)}")
        self.console.print("Diff of AST dumps saved to:")
        self.console.print(f"  {escape(diff_path)}\n")
        return original_ast, modified_ast, diff_path
