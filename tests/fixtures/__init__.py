"""Test fixtures for editor and CLI tests.

This module provides sample documents in every supported input format:
plain text, markdown, HTML and structured JSON.
"""

from .sample_documents import (
    SAMPLE_HTML_SIMPLE,
    SAMPLE_MARKDOWN_RICH,
    SAMPLE_STRUCTURED_DICT,
    SAMPLE_STRUCTURED_INVALID_DICT,
    SAMPLE_TEXT_SIMPLE,
    get_paragraphs_content,
    get_sample_structured_content,
)

__all__ = [
    "SAMPLE_HTML_SIMPLE",
    "SAMPLE_MARKDOWN_RICH",
    "SAMPLE_STRUCTURED_DICT",
    "SAMPLE_STRUCTURED_INVALID_DICT",
    "SAMPLE_TEXT_SIMPLE",
    "get_paragraphs_content",
    "get_sample_structured_content",
]
