"""Adapter for node-tree rich-text editors (Tiptap/ProseMirror style).

The backend works in node-tree positions: every node boundary counts as
one unit, so native offsets are NOT plain-text offsets. Selections and
changes passed through this adapter are always native positions.
"""

import html
import logging
from typing import Any, Dict, List, Optional

from .base_adapter import DEFAULT_CONTEXT_RADIUS, BaseEditorAdapter
from .config import DEFAULT_POLL_INTERVALS
from .errors import AdapterUnavailableError, EditorError, ValidationError
from .models import (
    Content,
    ContentBlock,
    EditorCapabilities,
    EditorType,
    SelectionWindow,
    StructuredContent,
    TextChange,
    TextSelection,
    heading_level,
)
from .surfaces import RichTextEditor

logger = logging.getLogger(__name__)

TIPTAP_CAPABILITIES = EditorCapabilities(
    supports_rich_text=True,
    supports_structured_content=True,
    supports_undo=True,
    supports_selection=True,
    supports_formatting=True,
    supported_formats=('text/html', 'text/plain', 'application/json'),
)

STRUCTURED_VERSION = '1.0'

# Matches the newline that joins blocks in the plain-text projection
BLOCK_SEPARATOR = '\n'

# Backend node type -> universal block type
NODE_TYPE_MAP = {
    'paragraph': 'paragraph',
    'heading': 'heading',
    'bulletList': 'list',
    'orderedList': 'list',
    'codeBlock': 'code',
    'blockquote': 'quote',
    'image': 'image',
}

# Universal block type -> backend node type
BLOCK_TYPE_MAP = {
    'paragraph': 'paragraph',
    'heading': 'heading',
    'list': 'bulletList',
    'code': 'codeBlock',
    'quote': 'blockquote',
    'image': 'image',
}

LIST_NODE_TYPES = {'bulletList', 'orderedList'}


class TiptapAdapter(BaseEditorAdapter):
    """Adapter over a node-tree rich-text editor.

    Attributes:
        editor: Backend editor instance, or None when not mounted
        context_radius: Characters of context attached to selections
    """

    def __init__(
        self,
        editor: Optional[RichTextEditor],
        poll_interval: float = DEFAULT_POLL_INTERVALS[EditorType.TIPTAP],
        context_radius: int = DEFAULT_CONTEXT_RADIUS,
    ):
        super().__init__(EditorType.TIPTAP, TIPTAP_CAPABILITIES, poll_interval)
        self.editor = editor
        self.context_radius = context_radius
        self._setup_event_listeners()
        self._take_baseline()
        self.start_selection_monitoring()

    def get_content(self) -> StructuredContent:
        if not self.editor:
            return StructuredContent()
        return self.convert_to_structured(self.editor.get_json())

    def set_content(self, content: Content) -> None:
        """Replace the document.

        Strings containing markup are passed to the editor as HTML; any
        other string is escaped and wrapped in a paragraph.

        Raises:
            AdapterUnavailableError: If no editor is mounted
        """
        if not self.editor:
            raise AdapterUnavailableError(self.type.value, 'set_content')

        try:
            if isinstance(content, str):
                if '<' in content:
                    self.editor.commands.set_content(content)
                else:
                    self.editor.commands.set_content(f"<p>{html.escape(content)}</p>")
            else:
                self.editor.commands.set_content(self.convert_from_structured(content))
            self.notify_content_change()
        except Exception as e:
            self.notify_error(EditorError(f"Failed to set Tiptap content: {e}"))

    def get_selection(self) -> Optional[TextSelection]:
        if not self.editor:
            return None

        try:
            selection = self.editor.state.selection
            if selection.empty:
                return None

            start, end = selection.from_, selection.to
            text = self.editor.state.doc.text_between(start, end, BLOCK_SEPARATOR)
            if not text:
                return None

            return self.create_selection_context(
                TextSelection(text=text, start=start, end=end),
                self.context_radius,
            )
        except Exception as e:
            self.notify_error(EditorError(f"Failed to get Tiptap selection: {e}"))
            return None

    def set_selection(self, start: int, end: int) -> None:
        if not self.editor:
            return

        try:
            self.editor.commands.set_text_selection({'from': start, 'to': end})
            self.editor.commands.focus()
        except Exception as e:
            self.notify_error(EditorError(f"Failed to set Tiptap selection: {e}"))

    def apply_change(self, change: TextChange) -> None:
        """Replace a native position range through a transaction.

        Raises:
            AdapterUnavailableError: If no editor is mounted
            ValidationError: If the range exceeds the document size
        """
        if not self.editor:
            raise AdapterUnavailableError(self.type.value, 'apply_change')

        self.validate_change(change)

        try:
            tr = self.editor.state.tr
            if change.new_text:
                tr.replace_with(change.start, change.end, self.editor.schema.text(change.new_text))
            else:
                # Empty text nodes are not allowed in the node tree
                tr.delete(change.start, change.end)
            self.editor.view.dispatch(tr)

            cursor = change.start + len(change.new_text)
            self.editor.commands.set_text_selection(cursor)

            self.notify_content_change()
        except Exception as e:
            self.notify_error(EditorError(f"Failed to apply Tiptap change: {e}"))

    def validate_change(self, change: TextChange) -> None:
        """Check a change against the node-tree document size.

        Raises:
            ValidationError: If the range is outside the document
        """
        if not self.editor:
            super().validate_change(change)
            return

        size = self.editor.state.doc.content.size
        if change.start < 0 or change.end > size or change.start > change.end:
            raise ValidationError(change.start, change.end, size)

    def create_selection_context(
        self,
        selection: TextSelection,
        context_radius: int = DEFAULT_CONTEXT_RADIUS,
    ) -> TextSelection:
        """Attach before/after windows read from the node tree.

        The radius is measured in node-tree positions, so a window that
        crosses a block boundary holds slightly fewer characters.
        """
        if not self.editor:
            return super().create_selection_context(selection, context_radius)

        doc = self.editor.state.doc
        size = doc.content.size
        before = doc.text_between(
            max(0, selection.start - context_radius), selection.start, BLOCK_SEPARATOR
        )
        after = doc.text_between(
            selection.end, min(size, selection.end + context_radius), BLOCK_SEPARATOR
        )

        return TextSelection(
            text=selection.text,
            start=selection.start,
            end=selection.end,
            context=SelectionWindow(before=before, after=after),
        )

    def focus(self) -> None:
        if self.editor and getattr(self.editor, 'commands', None):
            self.editor.commands.focus()

    def blur(self) -> None:
        if self.editor and getattr(self.editor, 'view', None):
            self.editor.view.dom.blur()

    # ----- Rich text operations -----

    def apply_formatting(self, format: str, attributes: Optional[Dict[str, Any]] = None) -> None:
        """Apply a formatting command to the current selection.

        Args:
            format: One of bold, italic, underline, link, heading
            attributes: Extra options (``href`` for links, ``level`` for headings)

        Raises:
            AdapterUnavailableError: If no editor is mounted
        """
        if not self.editor:
            raise AdapterUnavailableError(self.type.value, 'apply_formatting')

        attributes = attributes or {}
        commands = self.editor.commands
        try:
            if format == 'bold':
                commands.toggle_bold()
            elif format == 'italic':
                commands.toggle_italic()
            elif format == 'underline':
                commands.toggle_underline()
            elif format == 'link':
                if attributes.get('href'):
                    commands.set_link({'href': attributes['href']})
                else:
                    logger.warning("Link formatting requested without href, skipping")
            elif format == 'heading':
                commands.toggle_heading({'level': heading_level(attributes.get('level'))})
            else:
                logger.warning(f"Unsupported formatting: {format}")
        except Exception as e:
            self.notify_error(EditorError(f"Failed to apply formatting: {e}"))

    def insert_block(
        self,
        block_type: str,
        content: str = '',
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Insert a block at the cursor.

        Raises:
            AdapterUnavailableError: If no editor is mounted
        """
        if not self.editor:
            raise AdapterUnavailableError(self.type.value, 'insert_block')

        attributes = attributes or {}
        text = html.escape(content or '')
        commands = self.editor.commands
        try:
            if block_type == 'paragraph':
                commands.insert_content(f"<p>{text}</p>")
            elif block_type == 'heading':
                level = heading_level(attributes.get('level'))
                commands.insert_content(f"<h{level}>{text}</h{level}>")
            elif block_type == 'list':
                commands.toggle_bullet_list()
            elif block_type == 'code':
                commands.insert_content(f"<pre><code>{text}</code></pre>")
            elif block_type == 'quote':
                commands.insert_content(f"<blockquote><p>{text}</p></blockquote>")
            else:
                logger.warning(f"Unsupported block type: {block_type}")
        except Exception as e:
            self.notify_error(EditorError(f"Failed to insert block: {e}"))

    # ----- Listener wiring -----

    def _setup_event_listeners(self) -> None:
        if not self.editor:
            return
        self.editor.on('update', self._handle_update)
        self.editor.on('focus', self._handle_focus)
        self.editor.on('blur', self._handle_blur)

    def _remove_event_listeners(self) -> None:
        if not self.editor:
            return
        self.editor.off('update', self._handle_update)
        self.editor.off('focus', self._handle_focus)
        self.editor.off('blur', self._handle_blur)

    def _release_backend(self) -> None:
        if self.editor and callable(getattr(self.editor, 'destroy', None)):
            self.editor.destroy()

    # ----- Conversion -----

    def convert_to_structured(self, doc: Optional[Dict[str, Any]]) -> StructuredContent:
        """Convert the backend JSON document to the universal form."""
        if not doc or not doc.get('content'):
            return StructuredContent()

        return StructuredContent(
            content=[
                self._convert_node(node, str(index))
                for index, node in enumerate(doc['content'])
            ],
            version=STRUCTURED_VERSION,
        )

    def _convert_node(self, node: Dict[str, Any], path: str) -> ContentBlock:
        attrs = dict(node.get('attrs') or {})
        block = ContentBlock(
            id=str(attrs.get('id') or f"tt-{path}"),
            type=NODE_TYPE_MAP.get(node.get('type'), 'paragraph'),
            attributes=attrs,
        )

        inline: List[str] = []
        children: List[ContentBlock] = []
        for index, child in enumerate(node.get('content') or []):
            child_type = child.get('type')
            if child_type == 'text':
                inline.append(child.get('text') or '')
            elif child_type == 'hardBreak':
                inline.append('\n')
            else:
                children.append(self._convert_node(child, f"{path}.{index}"))

        block.content = ''.join(inline)
        if children:
            block.children = children
        return block

    def convert_from_structured(self, content: StructuredContent) -> Dict[str, Any]:
        """Convert universal content to the backend JSON document."""
        return {
            'type': 'doc',
            'content': [self._convert_block(block) for block in content.content],
        }

    def _convert_block(self, block: ContentBlock, parent_type: Optional[str] = None) -> Dict[str, Any]:
        if parent_type in LIST_NODE_TYPES:
            node_type = 'listItem'
        else:
            node_type = BLOCK_TYPE_MAP.get(block.type, 'paragraph')

        node: Dict[str, Any] = {
            'type': node_type,
            'attrs': dict(block.attributes),
        }

        inner: List[Dict[str, Any]] = []
        if block.content:
            inner.append({'type': 'text', 'text': block.content})
        for child in block.children or []:
            inner.append(self._convert_block(child, node_type))
        if inner:
            node['content'] = inner

        return node
