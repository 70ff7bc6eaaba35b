"""
differ.py - Structural differencing of tree-shaped values.

Works over any JSON-like values (dicts, lists, scalars) or pydantic models,
which are dumped to plain JSON first.  The record format follows deep-diff:

    N  value present only on the right        (path, rhs)
    D  value present only on the left         (path, lhs)
    E  value changed                          (path, lhs, rhs)
    A  sequence element added/removed         (path, index, item=N|D)

Sequences are compared positionally with no alignment: inserting one
element in the middle of a list reports every shifted index after it.

A prefilter is consulted before descending into each mapping key or
sequence index at every depth; when it returns True nothing at or below
that key can produce a record.  ``is_position_key`` is the filter used for
syntax trees.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from typing import Any, Optional, Union

from pydantic import BaseModel

from ast_compare.models import ComparisonResult, DiffKind, DifferenceRecord, SyntaxNode

logger = logging.getLogger(__name__)

PathKey = Union[str, int]
Prefilter = Callable[[Sequence[PathKey], PathKey], bool]

POSITION_KEYS: frozenset[str] = frozenset({"start", "end", "loc", "line", "column"})

_MISSING = object()


def is_position_key(path: Sequence[PathKey], key: PathKey) -> bool:
    """True when *key* names position metadata.  Indices never match."""
    return isinstance(key, str) and key in POSITION_KEYS


def _type_of(value: Any) -> str:
    # JSON type categories; bool is checked before int on purpose.
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _plain(value: Any) -> Any:
    if isinstance(value, SyntaxNode):
        return value.to_json_dict()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


class _Differ:
    def __init__(self, prefilter: Optional[Prefilter]) -> None:
        self.prefilter = prefilter
        self.records: list[DifferenceRecord] = []

    def visit(self, lhs: Any, rhs: Any, path: list[PathKey], key: Any = _MISSING) -> None:
        current = list(path)
        if key is not _MISSING:
            if self.prefilter is not None and self.prefilter(current, key):
                return
            current.append(key)

        if lhs is _MISSING:
            if rhs is not _MISSING:
                self.records.append(DifferenceRecord(kind=DiffKind.ADDED, path=current, rhs=rhs))
            return
        if rhs is _MISSING:
            self.records.append(DifferenceRecord(kind=DiffKind.DELETED, path=current, lhs=lhs))
            return

        ltype, rtype = _type_of(lhs), _type_of(rhs)
        if ltype != rtype:
            self.records.append(
                DifferenceRecord(kind=DiffKind.EDITED, path=current, lhs=lhs, rhs=rhs)
            )
        elif ltype == "array":
            self._visit_sequence(lhs, rhs, current)
        elif ltype == "object":
            self._visit_mapping(lhs, rhs, current)
        elif lhs != rhs:
            if ltype == "number" and _is_nan(lhs) and _is_nan(rhs):
                return
            self.records.append(
                DifferenceRecord(kind=DiffKind.EDITED, path=current, lhs=lhs, rhs=rhs)
            )

    def _visit_sequence(self, lhs: Sequence, rhs: Sequence, path: list[PathKey]) -> None:
        for i, item in enumerate(lhs):
            if i >= len(rhs):
                self._array_change(path, i, DifferenceRecord(kind=DiffKind.DELETED, lhs=item))
            else:
                self.visit(item, rhs[i], path, i)
        for i in range(len(lhs), len(rhs)):
            self._array_change(path, i, DifferenceRecord(kind=DiffKind.ADDED, rhs=rhs[i]))

    def _array_change(self, path: list[PathKey], index: int, item: DifferenceRecord) -> None:
        if self.prefilter is not None and self.prefilter(path, index):
            return
        self.records.append(
            DifferenceRecord(kind=DiffKind.ARRAY, path=list(path), index=index, item=item)
        )

    def _visit_mapping(self, lhs: dict, rhs: dict, path: list[PathKey]) -> None:
        for k, value in lhs.items():
            self.visit(value, rhs.get(k, _MISSING), path, k)
        for k, value in rhs.items():
            if k not in lhs:
                self.visit(_MISSING, value, path, k)


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def diff(lhs: Any, rhs: Any, prefilter: Optional[Prefilter] = is_position_key) -> ComparisonResult:
    """Compare two tree-shaped values and return their differences.

    Pass ``prefilter=None`` to compare every key, position metadata included.
    """
    differ = _Differ(prefilter)
    differ.visit(_plain(lhs), _plain(rhs), [])
    if not differ.records:
        return ComparisonResult.equal()
    return ComparisonResult(differences=differ.records)


def compare_trees(original: SyntaxNode, modified: SyntaxNode) -> ComparisonResult:
    """Structural comparison of two syntax trees, ignoring position metadata."""
    if original is modified:
        # Same cached tree: identical source on both sides.
        return ComparisonResult.equal()
    result = diff(original, modified, prefilter=is_position_key)
    logger.debug("compare_trees: %d difference(s)", len(result))
    return result
