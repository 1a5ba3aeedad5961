"""Command-line interface for the editor abstraction layer.

This package provides the `editor-bridge` CLI tool that converts documents
between plain text, HTML, markdown and structured JSON, reports statistics,
validates structure and restores formatting in AI rewrites.
"""

from .convert_command import ConvertCommand
from .models import ConvertSummary, ExitCode, InputKind, LoadedDocument, OutputFormat
from .errors import CLIError, InputError

__all__ = [
    'ConvertCommand',
    'ConvertSummary',
    'ExitCode',
    'InputKind',
    'LoadedDocument',
    'OutputFormat',
    'CLIError',
    'InputError',
]
