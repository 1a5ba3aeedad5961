"""Typed exception hierarchy for CLI-related errors.

All exceptions inherit from CLIError, which itself derives from the
editor layer's EditorError so callers can catch everything in one place.
"""

from typing import Optional

from src.editors.errors import EditorError


class CLIError(EditorError):
    """Base exception for all CLI-related errors."""
    pass


class InputError(CLIError):
    """Raised when an input file cannot be read or parsed."""

    def __init__(self, file_path: str, reason: Optional[str] = None):
        message = f"Cannot load input file {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.reason = reason
