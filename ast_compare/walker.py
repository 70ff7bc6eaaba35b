"""
walker.py - Source file discovery beneath a set of root directories.

The walk is stack based (depth-first, popping from the end).  Callers must
treat the result as an unordered set.  Entries that are neither directories
nor regular files (sockets, pipes, devices, dangling links) are skipped with
a debug log line; a directory that cannot be listed aborts the walk with
DiscoveryError.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from ast_compare.errors import DiscoveryError
from ast_compare.models import CompareConfig, EntryKind, FileEntry

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".js",)


def iter_entries(directory: str) -> Iterator[FileEntry]:
    """Yield one FileEntry per child of *directory*.

    Symlinks are followed when classifying, so a link to a directory is a
    directory and a dangling link is ``OTHER``.

    Raises:
        DiscoveryError: if the directory cannot be listed.
    """
    try:
        with os.scandir(directory) as it:
            children = list(it)
    except OSError as exc:
        raise DiscoveryError(directory, exc.strerror or str(exc)) from exc

    for child in children:
        path = os.path.join(directory, child.name)
        if child.is_dir():
            kind = EntryKind.DIRECTORY
        elif child.is_file():
            kind = EntryKind.FILE
        else:
            kind = EntryKind.OTHER
        yield FileEntry(path=path, kind=kind)


def walk_source_files(
    roots: Iterable[str],
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> list[str]:
    """Recursively enumerate all source files under *roots*.

    Returns paths joined onto the given roots (absolute when the roots are).
    """
    wanted = {ext.lower() for ext in extensions}
    directories = list(roots)
    logger.debug("List of directories to scan: %s", directories)

    files: list[str] = []
    while directories:
        directory = directories.pop()
        logger.debug("Searching for files and directories in %s", directory)
        for entry in iter_entries(directory):
            if entry.kind is EntryKind.DIRECTORY:
                directories.append(entry.path)
            elif entry.kind is EntryKind.FILE:
                if Path(entry.path).suffix.lower() in wanted:
                    files.append(entry.path)
            else:
                logger.debug("%s is not a normal file or directory", entry.path)

    logger.debug("%d files found in the corpus", len(files))
    return files


def scan_roots(config: CompareConfig) -> list[str]:
    """Directories of the original tree to scan, one per configured subdir."""
    return [os.path.join(config.original_source, subdir) for subdir in config.js_files_dir]
