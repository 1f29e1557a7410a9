"""
Error types for event-file parsing.

Validation mismatches are not exceptions; see ValidationIssue in domain.events.
"""

from typing import Optional


class FileAccessFailure(OSError):
    """An input (or the file list itself) could not be opened."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot open {path}: {reason}")
        self.path = path
        self.reason = reason


class FormatViolation(ValueError):
    """A token did not match the grammar expected at the current position."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        line_number: Optional[int] = None,
        token: Optional[str] = None
    ):
        location = ""
        if source is not None:
            location = f"{source}:{line_number}: " if line_number else f"{source}: "
        super().__init__(f"{location}{message}")
        self.source = source
        self.line_number = line_number
        self.token = token


class EndOfInput(EOFError):
    """The token cursor has no further tokens."""


class FileProcessingError(RuntimeError):
    """
    An input failed after it was opened.

    stat holds what had been counted up to the failure, so the caller can
    still fold it into the run totals before the error propagates.
    """

    def __init__(self, path: str, stat, cause: Exception):
        super().__init__(f"Processing {path} failed: {cause}")
        self.path = path
        self.stat = stat
        self.cause = cause
