"""
errors.py - Exception classes for ast-compare.

Every fatal condition of a run is one of these; each names the path
needed to reproduce it.  A structural divergence is not an error: it is a
non-equal ComparisonResult.
"""

from __future__ import annotations

from typing import Optional


class AstCompareError(Exception):
    """Base exception for all ast-compare errors."""

    pass


class DiscoveryError(AstCompareError):
    """A configured root or subdirectory could not be listed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Error accessing {path}: {reason}")


class ParseError(AstCompareError):
    """Source text is not valid under the run's grammar profile.

    Also raised when the file cannot be read at all, which is how a
    modified-tree file that does not exist surfaces.
    """

    def __init__(
        self,
        file_path: str,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        """Initialize parse error with optional location.

        Args:
            file_path: Path of the offending file
            message: Parser error description
            line: Line number where the error occurred (1-indexed)
            column: Column where the error occurred (0-indexed)
        """
        self.file_path = file_path
        self.message = message
        self.line = line
        self.column = column

        location = ""
        if line is not None:
            location = f" ({line}:{column if column is not None else 0})"
        super().__init__(f"{file_path}: {message}{location}")


class PersistError(AstCompareError):
    """A result artifact (.ast / .ast.diff) could not be written."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Error writing to {path}: {reason}")
