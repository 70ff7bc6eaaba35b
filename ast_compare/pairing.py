"""
pairing.py - Map files of the original tree onto the modified tree.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator

from ast_compare.models import CompareConfig, FilePair
from ast_compare.walker import scan_roots, walk_source_files

logger = logging.getLogger(__name__)


def pair_path(original_file: str, original_root: str, modified_root: str) -> str:
    """Return the modified-tree counterpart of *original_file*.

    Replaces the first occurrence of *original_root* with *modified_root*
    and normalizes the result.  No existence check: a missing counterpart
    surfaces later as a parse failure.
    """
    return os.path.normpath(original_file.replace(original_root, modified_root, 1))


def iter_file_pairs(config: CompareConfig) -> Iterator[FilePair]:
    """Discover source files under the original tree and pair each one."""
    files = walk_source_files(scan_roots(config), config.extensions)
    for original in files:
        modified = pair_path(original, config.original_source, config.modified_source)
        logger.debug("Paired %s -> %s", original, modified)
        yield FilePair(original=original, modified=modified)
