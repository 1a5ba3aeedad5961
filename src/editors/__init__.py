"""Editor abstraction layer for AI-assisted content editing.

This package lets an AI assistant read, select and rewrite content without
knowing which editing surface is mounted: a plain text buffer, a node-tree
rich-text editor or a block-JSON editor.

Key classes:
    SelectionManager: Tracks registered adapters and the active selection
    EditorFactory: Detects surfaces and creates matching adapters
    TextareaAdapter / TiptapAdapter / NovelAdapter: Per-backend adapters
    ContentParser: Conversions between text, HTML, markdown and blocks
    StructuredContentHandler: Block-level editing of structured documents
    RichTextProcessor: Re-applies links, images and emphasis to AI output
"""

from .models import (
    BlockType,
    Content,
    ContentBlock,
    ContentMetadata,
    ContentParseResult,
    EditorAdapter,
    EditorCapabilities,
    EditorEventHandlers,
    EditorState,
    EditorType,
    SelectionContext,
    SelectionWindow,
    StructuredContent,
    TextChange,
    TextSelection,
)
from .errors import (
    AdapterUnavailableError,
    ConfigError,
    ConfigFilesystemError,
    ConversionError,
    EditorError,
    UnsupportedEditorError,
    ValidationError,
)
from .config import ConfigLoader, EditorConfig
from .surfaces import BlockEditor, RichTextEditor, TextBuffer, TextSurface
from .polling import SelectionPoller
from .base_adapter import BaseEditorAdapter
from .textarea_adapter import TextareaAdapter
from .tiptap_adapter import TiptapAdapter
from .novel_adapter import NovelAdapter
from .editor_factory import DetectionResult, EditorFactory
from .content_parser import ContentParser
from .block_store import BlockRecord, BlockStore
from .rich_text_processor import (
    ElementValidation,
    FormattingPreservationResult,
    LinkElement,
    MediaElement,
    RichTextElement,
    RichTextProcessor,
)
from .structured_content_handler import (
    BlockImage,
    BlockLink,
    BlockModification,
    ContentModificationResult,
    ContentStatistics,
    StructuredContentHandler,
    ValidationReport,
)
from .selection_manager import (
    ContentStats,
    SelectionManager,
    TextRange,
    get_global_selection_manager,
    reset_global_selection_manager,
)

__all__ = [
    # Main interface
    'SelectionManager',
    'EditorFactory',
    'get_global_selection_manager',
    'reset_global_selection_manager',
    # Adapters
    'EditorAdapter',
    'BaseEditorAdapter',
    'TextareaAdapter',
    'TiptapAdapter',
    'NovelAdapter',
    'DetectionResult',
    # Surfaces
    'TextSurface',
    'RichTextEditor',
    'BlockEditor',
    'TextBuffer',
    'SelectionPoller',
    # Content utilities
    'ContentParser',
    'StructuredContentHandler',
    'RichTextProcessor',
    'BlockStore',
    'BlockRecord',
    # Data models
    'EditorType',
    'BlockType',
    'Content',
    'ContentBlock',
    'StructuredContent',
    'TextSelection',
    'SelectionWindow',
    'TextChange',
    'EditorCapabilities',
    'EditorState',
    'EditorEventHandlers',
    'SelectionContext',
    'ContentMetadata',
    'ContentParseResult',
    'BlockModification',
    'ContentModificationResult',
    'ValidationReport',
    'ContentStatistics',
    'BlockLink',
    'BlockImage',
    'RichTextElement',
    'MediaElement',
    'LinkElement',
    'FormattingPreservationResult',
    'ElementValidation',
    'ContentStats',
    'TextRange',
    # Configuration
    'EditorConfig',
    'ConfigLoader',
    # Errors
    'EditorError',
    'ValidationError',
    'AdapterUnavailableError',
    'ConversionError',
    'UnsupportedEditorError',
    'ConfigError',
    'ConfigFilesystemError',
]
