"""Test helper modules for editor adapter testing.

This package provides in-memory stand-ins for host editors:
- fake_editors: rich-text (ProseMirror-style) and block editor fakes
"""

from .fake_editors import FakeNovelEditor, FakeTiptapEditor, novel_block

__all__ = [
    'FakeNovelEditor',
    'FakeTiptapEditor',
    'novel_block',
]
