"""
test_reporter.py - Tests for divergence reporting and AST dump persistence.
"""

from __future__ import annotations

import io
import json
from pathlib import Path

import pytest
from rich.console import Console

from ast_compare.ast_parser import JavaScriptParser
from ast_compare.differ import compare_trees
from ast_compare.errors import PersistError
from ast_compare.models import FilePair
from ast_compare.reporter import Reporter, ast_paths, load_tree, record_locations


def _console() -> tuple[Console, io.StringIO]:
    buf = io.StringIO()
    return Console(file=buf, width=1000, color_system=None), buf


def _write_pair(tmp_path: Path, original_src: str, modified_src: str) -> FilePair:
    (tmp_path / "orig").mkdir()
    (tmp_path / "mod").mkdir()
    original = tmp_path / "orig" / "t.js"
    modified = tmp_path / "mod" / "t.js"
    original.write_text(original_src)
    modified.write_text(modified_src)
    return FilePair(original=str(original), modified=str(modified))


def _parse_pair(pair: FilePair):
    parser = JavaScriptParser()
    original_tree = parser.parse_file(pair.original)
    modified_tree = parser.parse_file(pair.modified)
    return original_tree, modified_tree, compare_trees(original_tree, modified_tree)


class TestConsoleReport:

    def test_equal_pair_is_silent(self, tmp_path):
        pair = _write_pair(tmp_path, "const a = 1;", "const a   = 1;")
        out, buf = _console()
        Reporter(persist=True, console=out).report(pair, *_parse_pair(pair))
        assert buf.getvalue() == ""
        assert not any(Path(p).exists() for p in ast_paths(pair))

    def test_divergence_without_persist_prints_hint(self, tmp_path):
        pair = _write_pair(tmp_path, "const a = 1;\n", "const a = 2;\n")
        out, buf = _console()
        Reporter(persist=False, console=out).report(pair, *_parse_pair(pair))
        text = buf.getvalue()
        assert f"AST variation detected in {pair.original}" in text
        assert "Use the -d option" in text
        assert f"Original: {pair.original}:1:" in text
        assert f"Modified: {pair.modified}:1:" in text
        assert not any(Path(p).exists() for p in ast_paths(pair))

    def test_record_locations_point_at_literal(self, tmp_path):
        pair = _write_pair(tmp_path, "\n\nconst a = 1;\n", "const a = 2;\n")
        original_tree, modified_tree, result = _parse_pair(pair)
        record = next(r for r in result.differences if r.lhs == "1")
        original_loc, modified_loc = record_locations(
            record, original_tree.to_json_dict(), modified_tree.to_json_dict()
        )
        assert original_loc["start"] == {"line": 3, "column": 10}
        assert modified_loc["start"] == {"line": 1, "column": 10}

    def test_record_locations_for_added_node(self, tmp_path):
        pair = _write_pair(tmp_path, "a();\n", "a();\nb();\n")
        original_tree, modified_tree, result = _parse_pair(pair)
        [record] = result.differences
        original_loc, modified_loc = record_locations(
            record, original_tree.to_json_dict(), modified_tree.to_json_dict()
        )
        # The added statement has its own location; the original side falls
        # back to the enclosing program node.
        assert modified_loc["start"]["line"] == 2
        assert original_loc["start"]["line"] == 1

    def test_console_keyword_receives_output(self, tmp_path):
        pair = _write_pair(tmp_path, "a();\n", "b();\n")
        out, buf = _console()
        reporter = Reporter(console=out)
        assert reporter.console is out
        reporter.report(pair, *_parse_pair(pair))
        assert "AST variation detected in" in buf.getvalue()

    def test_default_console_writes_to_stderr(self):
        assert Reporter().console.stderr is True


class TestPersistence:

    def test_three_artifacts_written(self, tmp_path):
        pair = _write_pair(tmp_path, "const a = 1;\n", "const a = 2;\n")
        out, buf = _console()
        original_tree, modified_tree, result = _parse_pair(pair)
        Reporter(persist=True, console=out).report(pair, original_tree, modified_tree, result)

        original_ast, modified_ast, diff_path = ast_paths(pair)
        assert original_ast == pair.original + ".ast"
        assert modified_ast == pair.modified + ".ast"
        assert diff_path == pair.original + ".ast.diff"
        for path in (original_ast, modified_ast, diff_path):
            assert Path(path).exists()
        assert "AST dumps available" in buf.getvalue()

        diff_json = json.loads(Path(diff_path).read_text())
        assert diff_json == result.to_json_list()
        assert Path(diff_path).read_text().startswith("[\n    {")

    def test_persisted_trees_reload_equal(self, tmp_path):
        pair = _write_pair(tmp_path, "var x = [1, 'a'];\n", "var x = [1, 'b'];\n")
        out, _ = _console()
        original_tree, modified_tree, result = _parse_pair(pair)
        Reporter(persist=True, console=out).report(pair, original_tree, modified_tree, result)

        reloaded_original = load_tree(pair.original + ".ast")
        reloaded_modified = load_tree(pair.modified + ".ast")
        assert compare_trees(reloaded_original, original_tree).is_equal
        assert compare_trees(reloaded_modified, modified_tree).is_equal
        assert compare_trees(reloaded_original, reloaded_modified).has_differences

    def test_unwritable_target_raises_persist_error(self, tmp_path):
        pair = _write_pair(tmp_path, "const a = 1;\n", "const a = 2;\n")
        original_tree, modified_tree, result = _parse_pair(pair)
        broken = FilePair(
            original=pair.original,
            modified=str(tmp_path / "no-such-dir" / "t.js"),
        )
        out, _ = _console()
        with pytest.raises(PersistError) as excinfo:
            Reporter(persist=True, console=out).report(broken, original_tree, modified_tree, result)
        assert excinfo.value.path == broken.modified + ".ast"
