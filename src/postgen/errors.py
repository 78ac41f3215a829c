from __future__ import annotations

from typing import Optional


class PostgenError(Exception):
    """Base class for errors raised by postgen."""


class SourceParseError(PostgenError):
    """A Go source file could not be parsed into a clean syntax tree."""

    def __init__(self, path: str, line: Optional[int] = None, detail: str = "syntax error") -> None:
        self.path = path
        self.line = line
        self.detail = detail
        where = f"{path}:{line}" if line is not None else path
        super().__init__(f"parse {where}: {detail}")


class ProjectAnalysisError(PostgenError):
    """Whole-project analysis aborted (wraps the underlying SourceParseError)."""
