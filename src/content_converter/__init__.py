"""Content conversion module for HTML → markdown conversion.

This module provides the MarkdownConverter used to normalise editor HTML
into markdown before rich-text analysis.
"""

from .markdown_converter import MarkdownConverter

__all__ = ['MarkdownConverter']
