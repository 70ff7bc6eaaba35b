"""
models.py - Pydantic v2 data models for ast-compare.

Defines data structures for:
- Run configuration
- Directory entries and original/modified file pairs
- Syntax tree nodes (tagged variant with position metadata)
- Difference records and comparison results
- Run summaries
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class EntryKind(str, Enum):
    """What a directory listing entry turned out to be."""
    DIRECTORY = "directory"
    FILE = "file"
    OTHER = "other"      # sockets, pipes, devices, dangling links


class DiffKind(str, Enum):
    """Difference record kinds, using the single-letter codes of the .ast.diff format."""
    ADDED = "N"
    DELETED = "D"
    EDITED = "E"
    ARRAY = "A"


class FailurePolicy(str, Enum):
    """How the pipeline reacts to a per-pair parse or persist error."""
    FAIL_FAST = "fail_fast"
    COLLECT = "collect"


# ---------------------------------------------------------------------------
# Configuration model
# ---------------------------------------------------------------------------

def normalize_ecma_version(version: int) -> int:
    """Accept both edition numbers (6..) and years (2015..); return the year."""
    if 6 <= version < 2015:
        version += 2009
    if version < 2015:
        raise ValueError(f"Unsupported ecma_version {version}: 2015 (6) is the minimum")
    return version


class CompareConfig(BaseModel):
    """Resolved configuration for one comparison run.

    Built once (CLI flags and/or a JSON file) and passed explicitly into
    the pipeline.
    """
    model_config = ConfigDict(frozen=True)

    original_source: str
    modified_source: str
    # Subdirectories of both trees that hold the js files to analyze
    js_files_dir: list[str] = Field(default_factory=lambda: ["jstests"])
    debug: bool = False     # persist AST dumps and diff for divergent pairs
    verbose: bool = False
    extensions: list[str] = Field(default_factory=lambda: [".js"])
    ecma_version: int = 2015
    source_type: Literal["script", "module"] = "script"
    jobs: int = Field(default=1, ge=1)
    failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST
    # Exit non-zero when any pair diverges (off by default)
    fail_on_divergence: bool = False

    @field_validator("ecma_version")
    @classmethod
    def _check_ecma_version(cls, value: int) -> int:
        return normalize_ecma_version(value)


# ---------------------------------------------------------------------------
# Discovery models
# ---------------------------------------------------------------------------

class FileEntry(BaseModel):
    path: str
    kind: EntryKind


class FilePair(BaseModel):
    """An original file and its counterpart in the modified tree."""
    original: str
    modified: str


# ---------------------------------------------------------------------------
# Syntax tree
# ---------------------------------------------------------------------------

class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: int       # 1-based
    column: int     # 0-based


class SourceLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: Position
    end: Position


class SyntaxNode(BaseModel):
    """A single node of a parsed JavaScript syntax tree.

    ``type`` is the node-kind tag.  Children that the grammar attaches to a
    named field live in ``fields`` (a list when the field repeats); the rest
    live in ``children`` in source order.  Leaf nodes carry their source
    ``text``.  ``start``/``end``/``loc`` are position metadata: useful for
    diagnostics, ignored by the differencer.
    """
    model_config = ConfigDict(frozen=True)

    type: str
    start: int
    end: int
    loc: SourceLocation
    fields: dict[str, Union[SyntaxNode, list[SyntaxNode]]] = Field(default_factory=dict)
    children: list[SyntaxNode] = Field(default_factory=list)
    text: Optional[str] = None

    @property
    def is_leaf(self) -> bool:
        return not self.fields and not self.children

    def to_json_dict(self) -> dict[str, Any]:
        """Plain JSON structure used for persistence and differencing."""
        return _prune(self.model_dump(mode="json", exclude_none=True))


def _prune(value: Any) -> Any:
    # Empty fields/children maps are noise in dumps; drop them recursively.
    if isinstance(value, dict):
        return {
            k: _prune(v) for k, v in value.items()
            if not (k in ("fields", "children") and not v)
        }
    if isinstance(value, list):
        return [_prune(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Comparison results
# ---------------------------------------------------------------------------

class DifferenceRecord(BaseModel):
    """One structural divergence between two trees.

    ``path`` is the sequence of mapping keys / sequence indices from the
    root to the divergent value.  ``lhs``/``rhs`` are only set where they
    apply (no ``lhs`` for N, no ``rhs`` for D).  Array records carry the
    ``index`` of the changed element and a nested, path-less ``item``.
    """
    kind: DiffKind
    path: Optional[list[Union[str, int]]] = None
    lhs: Any = None
    rhs: Any = None
    index: Optional[int] = None
    item: Optional[DifferenceRecord] = None

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class ComparisonResult(BaseModel):
    """Either the explicit "equal" case or an ordered list of differences."""
    differences: list[DifferenceRecord] = Field(default_factory=list)

    @classmethod
    def equal(cls) -> ComparisonResult:
        return cls()

    @property
    def is_equal(self) -> bool:
        return not self.differences

    @property
    def has_differences(self) -> bool:
        return bool(self.differences)

    def __len__(self) -> int:
        return len(self.differences)

    def to_json_list(self) -> list[dict[str, Any]]:
        return [d.to_json_dict() for d in self.differences]


class PairOutcome(BaseModel):
    """Result of parsing and comparing one file pair."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    pair: FilePair
    original_tree: Optional[SyntaxNode] = None
    modified_tree: Optional[SyntaxNode] = None
    result: Optional[ComparisonResult] = None
    error: Optional[Exception] = None


class RunSummary(BaseModel):
    """Aggregate outcome of a full comparison run."""
    files_compared: int = 0
    divergent: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    fail_on_divergence: bool = False

    @property
    def exit_code(self) -> int:
        if self.errors:
            return 1
        if self.fail_on_divergence and self.divergent:
            return 1
        return 0
