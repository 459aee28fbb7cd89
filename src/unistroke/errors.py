"""Exceptions raised by the stroke pipeline and template library."""

from __future__ import annotations


class StrokeError(Exception):
    """Base class for all unistroke errors."""


class InvalidStroke(StrokeError, ValueError):
    """A geometric operation was attempted on a stroke with no points."""


class SizeMismatch(StrokeError, ValueError):
    """Two strokes being compared have different point counts."""


class NoTemplates(StrokeError, LookupError):
    """Recognition was requested against an empty template collection."""


class LibraryFormatError(StrokeError, ValueError):
    """A stroke library file could not be parsed."""

    def __init__(self, message: str, line: int | None = None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line
