"""Data models for CLI operations.

This module defines the enums and dataclasses used by the editor-bridge
command, following the patterns established in src/editors/models.py.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional

from src.editors.models import StructuredContent
from src.editors.structured_content_handler import ValidationReport


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Document converted (and validated, if requested)
    - GENERAL_ERROR (1): Config issues or unexpected failures
    - VALIDATION_FAILED (2): --validate found errors in the document
    - INPUT_ERROR (3): Input file missing, unreadable or malformed

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    VALIDATION_FAILED = 2
    INPUT_ERROR = 3


class OutputFormat(str, Enum):
    """Target format of a conversion."""
    HTML = "html"
    MARKDOWN = "markdown"
    TEXT = "text"
    JSON = "json"


class InputKind(str, Enum):
    """How an input file is interpreted, decided by its extension."""
    TEXT = "text"
    HTML = "html"
    JSON = "json"


@dataclass
class LoadedDocument:
    """An input file read from disk and parsed into structured content.

    Attributes:
        path: Path the document was read from
        kind: Input interpretation (text, HTML or structured JSON)
        raw: File content as read
        content: Structured form of the document

    Example:
        >>> doc = LoadedDocument(path="notes.md", kind=InputKind.TEXT,
        ...                      raw="Hello", content=StructuredContent())
    """
    path: str
    kind: InputKind
    raw: str
    content: StructuredContent


@dataclass
class ConvertSummary:
    """Outcome of a single editor-bridge run.

    Attributes:
        output: Rendered document in the requested format
        validation: Validation report, when validation was requested
        warnings: Elements post-processing could not place
        preserved_count: Rich-text elements kept from the original, when
            an original was given
    """
    output: str
    validation: Optional[ValidationReport] = None
    warnings: List[str] = field(default_factory=list)
    preserved_count: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return self.validation is None or self.validation.is_valid
