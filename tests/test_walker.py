"""
test_walker.py - Tests for source file discovery and path pairing.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from ast_compare.errors import DiscoveryError
from ast_compare.models import CompareConfig, EntryKind, FilePair
from ast_compare.pairing import iter_file_pairs, pair_path
from ast_compare.walker import iter_entries, scan_roots, walk_source_files


def _touch(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestWalkSourceFiles:

    def test_extension_filter_and_nesting(self, tmp_path):
        _touch(tmp_path / "foo.js")
        _touch(tmp_path / "foo.txt")
        _touch(tmp_path / "bar" / "baz.js")
        files = walk_source_files([str(tmp_path)])
        assert {os.path.relpath(f, tmp_path) for f in files} == {
            "foo.js",
            os.path.join("bar", "baz.js"),
        }

    def test_arbitrary_depth(self, tmp_path):
        deep = tmp_path / "a" / "b" / "c" / "d" / "e.js"
        _touch(deep)
        assert walk_source_files([str(tmp_path)]) == [str(deep)]

    def test_multiple_roots(self, tmp_path):
        _touch(tmp_path / "one" / "a.js")
        _touch(tmp_path / "two" / "b.js")
        files = walk_source_files([str(tmp_path / "one"), str(tmp_path / "two")])
        assert sorted(Path(f).name for f in files) == ["a.js", "b.js"]

    def test_custom_extensions(self, tmp_path):
        _touch(tmp_path / "a.js")
        _touch(tmp_path / "b.mjs")
        files = walk_source_files([str(tmp_path)], extensions=[".mjs"])
        assert [Path(f).name for f in files] == ["b.mjs"]

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="named pipes need POSIX")
    def test_named_pipe_is_skipped(self, tmp_path):
        _touch(tmp_path / "real.js")
        os.mkfifo(tmp_path / "pipe.js")
        files = walk_source_files([str(tmp_path)])
        assert [Path(f).name for f in files] == ["real.js"]

    def test_dangling_symlink_is_skipped(self, tmp_path):
        _touch(tmp_path / "real.js")
        try:
            os.symlink(tmp_path / "gone.js", tmp_path / "link.js")
        except (OSError, NotImplementedError):
            pytest.skip("symlinks unavailable")
        files = walk_source_files([str(tmp_path)])
        assert [Path(f).name for f in files] == ["real.js"]

    def test_missing_root_is_fatal(self, tmp_path):
        missing = str(tmp_path / "missing")
        with pytest.raises(DiscoveryError) as excinfo:
            walk_source_files([missing])
        assert excinfo.value.path == missing
        assert missing in str(excinfo.value)


class TestIterEntries:

    def test_entry_kinds(self, tmp_path):
        _touch(tmp_path / "file.js")
        (tmp_path / "sub").mkdir()
        kinds = {Path(e.path).name: e.kind for e in iter_entries(str(tmp_path))}
        assert kinds == {"file.js": EntryKind.FILE, "sub": EntryKind.DIRECTORY}

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="named pipes need POSIX")
    def test_pipe_is_other(self, tmp_path):
        os.mkfifo(tmp_path / "pipe")
        [entry] = list(iter_entries(str(tmp_path)))
        assert entry.kind is EntryKind.OTHER


class TestPairPath:

    def test_root_substitution(self):
        assert pair_path("/a/x/y.js", "/a", "/b") == os.path.normpath("/b/x/y.js")

    def test_result_is_normalized(self):
        assert pair_path("/a/./x//z/../y.js", "/a", "/b") == os.path.normpath("/b/x/y.js")

    def test_only_first_occurrence_replaced(self):
        assert pair_path("/a/a/y.js", "/a", "/b") == os.path.normpath("/b/a/y.js")

    def test_relative_roots(self):
        assert pair_path("orig/jstests/t.js", "orig", "mod") == os.path.join("mod", "jstests", "t.js")


class TestIterFilePairs:

    def test_pairs_preserve_relative_paths(self, tmp_path):
        original = tmp_path / "orig"
        modified = tmp_path / "mod"
        _touch(original / "jstests" / "a.js")
        _touch(original / "jstests" / "core" / "b.js")
        _touch(original / "other" / "ignored.js")
        config = CompareConfig(original_source=str(original), modified_source=str(modified))

        pairs = list(iter_file_pairs(config))
        assert all(isinstance(p, FilePair) for p in pairs)
        assert len(pairs) == 2
        assert {(p.original, p.modified) for p in pairs} == {
            (str(original / "jstests" / "a.js"), str(modified / "jstests" / "a.js")),
            (
                str(original / "jstests" / "core" / "b.js"),
                str(modified / "jstests" / "core" / "b.js"),
            ),
        }

    def test_scan_roots_joins_subdirs(self):
        config = CompareConfig(
            original_source="/src", modified_source="/dst", js_files_dir=["t1", "t2"]
        )
        assert scan_roots(config) == [os.path.join("/src", "t1"), os.path.join("/src", "t2")]
