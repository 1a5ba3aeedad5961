"""Typed exception hierarchy for editor abstraction errors.

This module defines all custom exceptions raised by the editor adapters,
factory and configuration layer. All exceptions inherit from EditorError
so callers can catch any editor-level failure with a single handler.

Conversion and formatting-preservation problems are normally reported
through result objects (error/warning lists) rather than raised.
"""

from typing import Optional


class EditorError(Exception):
    """Base exception for all editor abstraction errors."""
    pass


class ValidationError(EditorError):
    """Raised when a text change range lies outside the current content."""

    def __init__(self, start: int, end: int, content_length: int):
        super().__init__(
            f"Invalid text change positions: start={start}, end={end}, "
            f"content length={content_length}"
        )
        self.start = start
        self.end = end
        self.content_length = content_length


class AdapterUnavailableError(EditorError):
    """Raised when a mutation is attempted without a backing editor."""

    def __init__(self, editor_type: str, operation: Optional[str] = None):
        if operation:
            message = f"{editor_type} editor not available (operation: {operation})"
        else:
            message = f"{editor_type} editor not available"
        super().__init__(message)
        self.editor_type = editor_type
        self.operation = operation


class ConversionError(EditorError):
    """Raised when structured content cannot be built from raw data."""

    def __init__(self, message: str):
        super().__init__(message)


class UnsupportedEditorError(EditorError):
    """Raised when an adapter is requested for an unknown editor type."""

    def __init__(self, editor_type: str):
        super().__init__(f"Unsupported editor type: {editor_type}")
        self.editor_type = editor_type


class ConfigError(EditorError):
    """Raised when editor configuration is invalid or malformed."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class ConfigFilesystemError(EditorError):
    """Raised when a configuration file cannot be read or written."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Config file operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason
