"""Adapter for block-JSON editors (Novel style).

The backend document looks like::

    {"type": "doc", "version": "1.0", "blocks": [
        {"id": "a1", "type": "paragraph", "props": {},
         "content": [{"type": "text", "text": "Hello"}], "children": [...]}
    ]}

Translation between plain-text offsets and the backend's block positions
is a clamp-only approximation: plain-text offsets are passed through and
clamped to the text length. The error grows with every block boundary
before the position, since the backend counts structural units that the
flattened text represents as a single separator (or not at all).
"""

import logging
from typing import Any, Dict, Optional, Tuple

from .base_adapter import DEFAULT_CONTEXT_RADIUS, BaseEditorAdapter
from .config import DEFAULT_POLL_INTERVALS
from .errors import AdapterUnavailableError, EditorError
from .models import (
    Content,
    ContentBlock,
    EditorCapabilities,
    EditorType,
    StructuredContent,
    TextChange,
    TextSelection,
    generate_block_id,
)
from .surfaces import BlockEditor

logger = logging.getLogger(__name__)

NOVEL_CAPABILITIES = EditorCapabilities(
    supports_rich_text=True,
    supports_structured_content=True,
    supports_undo=True,
    supports_selection=True,
    supports_formatting=True,
    supported_formats=('application/json', 'text/html', 'text/plain'),
)

DEFAULT_VERSION = '1.0'

NOVEL_TO_BLOCK_TYPE = {
    'paragraph': 'paragraph',
    'heading': 'heading',
    'bulletListItem': 'list',
    'numberedListItem': 'list',
    'codeBlock': 'code',
    'blockquote': 'quote',
    'image': 'image',
    'link': 'link',
}

BLOCK_TO_NOVEL_TYPE = {
    'paragraph': 'paragraph',
    'heading': 'heading',
    'list': 'bulletListItem',
    'code': 'codeBlock',
    'quote': 'blockquote',
    'image': 'image',
    'link': 'link',
}


class NovelAdapter(BaseEditorAdapter):
    """Adapter over a block-JSON editor.

    Attributes:
        editor: Backend editor instance, or None when not mounted
        context_radius: Characters of context attached to selections
    """

    def __init__(
        self,
        editor: Optional[BlockEditor],
        poll_interval: float = DEFAULT_POLL_INTERVALS[EditorType.NOVEL],
        context_radius: int = DEFAULT_CONTEXT_RADIUS,
    ):
        super().__init__(EditorType.NOVEL, NOVEL_CAPABILITIES, poll_interval)
        self.editor = editor
        self.context_radius = context_radius
        self._setup_event_listeners()
        self._take_baseline()
        # Native selection events drive most updates; polling is a fallback
        self.start_selection_monitoring()

    def get_content(self) -> StructuredContent:
        if not self.editor:
            return StructuredContent()

        try:
            return self.convert_to_structured(self.editor.get_json())
        except Exception as e:
            self.notify_error(EditorError(f"Failed to get Novel content: {e}"))
            return StructuredContent()

    def set_content(self, content: Content) -> None:
        """Replace the document.

        A string becomes one paragraph block per non-blank line.

        Raises:
            AdapterUnavailableError: If no editor is mounted
        """
        if not self.editor:
            raise AdapterUnavailableError(self.type.value, 'set_content')

        try:
            if isinstance(content, str):
                self.editor.set_content(self.convert_text_to_novel(content))
            else:
                self.editor.set_content(self.convert_from_structured(content))
            self.notify_content_change()
        except Exception as e:
            self.notify_error(EditorError(f"Failed to set Novel content: {e}"))

    def get_selection(self) -> Optional[TextSelection]:
        if not self.editor:
            return None

        try:
            selection = self.editor.get_selection()
            if not selection or selection.get('empty'):
                return None

            text_content = self.get_text_content()
            start, end = self.novel_positions_to_text(selection['from'], selection['to'], len(text_content))

            return self.create_selection_context(
                TextSelection(text=text_content[start:end], start=start, end=end),
                self.context_radius,
            )
        except Exception as e:
            self.notify_error(EditorError(f"Failed to get Novel selection: {e}"))
            return None

    def set_selection(self, start: int, end: int) -> None:
        if not self.editor:
            return

        try:
            native_from, native_to = self.text_positions_to_novel(start, end)
            self.editor.set_selection(native_from, native_to)
            self.editor.focus()
        except Exception as e:
            self.notify_error(EditorError(f"Failed to set Novel selection: {e}"))

    def apply_change(self, change: TextChange) -> None:
        """Replace a plain-text range in the block document.

        Raises:
            AdapterUnavailableError: If no editor is mounted
            ValidationError: If the range exceeds the text length
        """
        if not self.editor:
            raise AdapterUnavailableError(self.type.value, 'apply_change')

        self.validate_change(change)

        try:
            native_from, native_to = self.text_positions_to_novel(change.start, change.end)
            self.editor.replace_range(native_from, native_to, change.new_text)

            cursor, _ = self.text_positions_to_novel(
                change.start + len(change.new_text),
                change.start + len(change.new_text),
            )
            self.editor.set_selection(cursor, cursor)

            self.notify_content_change()
        except Exception as e:
            self.notify_error(EditorError(f"Failed to apply Novel change: {e}"))

    def focus(self) -> None:
        if self.editor and callable(getattr(self.editor, 'focus', None)):
            self.editor.focus()

    def blur(self) -> None:
        if self.editor and callable(getattr(self.editor, 'blur', None)):
            self.editor.blur()

    # ----- Block operations -----

    def insert_block(
        self,
        block_type: str,
        content: str = '',
        position: Optional[int] = None,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Insert a new block.

        Args:
            block_type: Universal block type (paragraph, heading, list, code, quote...)
            content: Text of the block
            position: Top-level index to insert at; appended when None
            attributes: Block props (``level`` for headings, ``language`` for code)

        Returns:
            Id of the new block

        Raises:
            AdapterUnavailableError: If no editor is mounted
        """
        if not self.editor:
            raise AdapterUnavailableError(self.type.value, 'insert_block')

        block = self.create_novel_block(block_type, content, attributes)
        try:
            if position is not None:
                self.editor.insert_block_at(position, block)
            else:
                self.editor.insert_block(block)
            self.notify_content_change()
        except Exception as e:
            self.notify_error(EditorError(f"Failed to insert Novel block: {e}"))
        return block['id']

    def update_block(self, block_id: str, updates: Dict[str, Any]) -> None:
        """Update a block by id.

        ``updates`` uses universal field names (type, content, attributes);
        they are translated to the backend's block fields.

        Raises:
            AdapterUnavailableError: If no editor is mounted
        """
        if not self.editor:
            raise AdapterUnavailableError(self.type.value, 'update_block')

        try:
            self.editor.update_block(block_id, self._to_native_updates(updates))
            self.notify_content_change()
        except Exception as e:
            self.notify_error(EditorError(f"Failed to update Novel block: {e}"))

    def delete_block(self, block_id: str) -> None:
        """Delete a block by id.

        Raises:
            AdapterUnavailableError: If no editor is mounted
        """
        if not self.editor:
            raise AdapterUnavailableError(self.type.value, 'delete_block')

        try:
            self.editor.delete_block(block_id)
            self.notify_content_change()
        except Exception as e:
            self.notify_error(EditorError(f"Failed to delete Novel block: {e}"))

    # ----- Listener wiring -----

    def _setup_event_listeners(self) -> None:
        if not self.editor:
            return
        self.editor.on('update', self._handle_update)
        self.editor.on('focus', self._handle_focus)
        self.editor.on('blur', self._handle_blur)
        self.editor.on('selectionUpdate', self._handle_selection_update)

    def _remove_event_listeners(self) -> None:
        if not self.editor:
            return
        self.editor.off('update', self._handle_update)
        self.editor.off('focus', self._handle_focus)
        self.editor.off('blur', self._handle_blur)
        self.editor.off('selectionUpdate', self._handle_selection_update)

    def _handle_selection_update(self, *_args) -> None:
        self.check_selection_change()

    def _release_backend(self) -> None:
        if self.editor and callable(getattr(self.editor, 'destroy', None)):
            self.editor.destroy()

    # ----- Position translation -----

    def novel_positions_to_text(self, native_from: int, native_to: int, length: int) -> Tuple[int, int]:
        """Map backend positions to plain-text offsets (clamped)."""
        start = max(0, min(native_from, length))
        end = max(start, min(native_to, length))
        return start, end

    def text_positions_to_novel(self, start: int, end: int) -> Tuple[int, int]:
        """Map plain-text offsets to backend positions (identity)."""
        return start, end

    # ----- Conversion -----

    def convert_to_structured(self, doc: Optional[Dict[str, Any]]) -> StructuredContent:
        """Convert a backend document to the universal form."""
        if not doc or not doc.get('blocks'):
            return StructuredContent()

        return StructuredContent(
            content=[
                self._convert_novel_block(block, str(index))
                for index, block in enumerate(doc['blocks'])
            ],
            version=str(doc.get('version') or DEFAULT_VERSION),
        )

    def _convert_novel_block(self, block: Dict[str, Any], path: str) -> ContentBlock:
        children = block.get('children')
        return ContentBlock(
            id=str(block.get('id') or f"nv-{path}"),
            type=NOVEL_TO_BLOCK_TYPE.get(block.get('type'), 'paragraph'),
            content=self._extract_inline_text(block.get('content')),
            attributes=dict(block.get('props') or {}),
            children=[
                self._convert_novel_block(child, f"{path}.{index}")
                for index, child in enumerate(children)
            ] if children else None,
        )

    @staticmethod
    def _extract_inline_text(inline: Any) -> str:
        if not inline:
            return ''
        if isinstance(inline, str):
            return inline
        return ''.join(
            item.get('text') or ''
            for item in inline
            if isinstance(item, dict) and item.get('type') == 'text'
        )

    def convert_from_structured(self, content: StructuredContent) -> Dict[str, Any]:
        """Convert universal content to a backend document."""
        return {
            'type': 'doc',
            'blocks': [self._convert_block(block) for block in content.content],
            'version': content.version or DEFAULT_VERSION,
        }

    def _convert_block(self, block: ContentBlock) -> Dict[str, Any]:
        novel_block: Dict[str, Any] = {
            'id': block.id,
            'type': BLOCK_TO_NOVEL_TYPE.get(block.type, 'paragraph'),
            'props': dict(block.attributes),
            'content': [{'type': 'text', 'text': block.content}] if block.content else [],
        }
        if block.children:
            novel_block['children'] = [self._convert_block(child) for child in block.children]
        return novel_block

    def convert_text_to_novel(self, text: str) -> Dict[str, Any]:
        """One paragraph block per non-blank line."""
        paragraphs = [line for line in text.split('\n') if line.strip()]
        return {
            'type': 'doc',
            'blocks': [
                {
                    'id': generate_block_id(),
                    'type': 'paragraph',
                    'props': {},
                    'content': [{'type': 'text', 'text': paragraph}],
                }
                for paragraph in paragraphs
            ],
            'version': DEFAULT_VERSION,
        }

    def create_novel_block(
        self,
        block_type: str,
        content: str = '',
        attributes: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Build a backend block for insertion."""
        props = dict(attributes or {})
        if block_type == 'heading':
            props.setdefault('level', 1)
        elif block_type == 'code':
            props.setdefault('language', 'text')

        if block_type not in BLOCK_TO_NOVEL_TYPE:
            logger.warning(f"Unknown block type '{block_type}', inserting a paragraph")

        return {
            'id': generate_block_id(),
            'type': BLOCK_TO_NOVEL_TYPE.get(block_type, 'paragraph'),
            'props': props,
            'content': [{'type': 'text', 'text': content}] if content else [],
        }

    def _to_native_updates(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        native: Dict[str, Any] = {}
        for key, value in updates.items():
            if key == 'id':
                # Ids are immutable
                continue
            if key == 'type':
                native['type'] = BLOCK_TO_NOVEL_TYPE.get(value, 'paragraph')
            elif key == 'content':
                native['content'] = [{'type': 'text', 'text': value}] if value else []
            elif key == 'attributes':
                native['props'] = dict(value or {})
            elif key == 'children':
                native['children'] = [
                    self._convert_block(child if isinstance(child, ContentBlock) else ContentBlock.from_dict(child))
                    for child in value or []
                ]
            else:
                native[key] = value
        return native
