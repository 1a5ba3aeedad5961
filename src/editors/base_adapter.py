"""Base adapter providing the behaviour shared by every editor type.

Concrete adapters only implement backend access (content, selection,
mutation, listeners). Everything else lives here: plain-text extraction
from structured content, ordered batch application, dirty tracking,
selection polling and context windows.
"""

import json
import logging
import math
from typing import Any, Callable, List, Optional

from .errors import ValidationError
from .models import (
    Content,
    ContentBlock,
    EditorAdapter,
    EditorCapabilities,
    EditorEventHandlers,
    EditorState,
    EditorType,
    SelectionWindow,
    StructuredContent,
    TextChange,
    TextSelection,
)
from .polling import SelectionPoller

logger = logging.getLogger(__name__)

# Rough estimation: ~4 characters per token
CHARS_PER_TOKEN = 4

DEFAULT_CONTEXT_RADIUS = 100


class BaseEditorAdapter(EditorAdapter):
    """Shared adapter logic.

    Subclasses must call ``_take_baseline()`` once their backend is
    attached so that the first content notification reflects a real
    change rather than the initial load.

    Attributes:
        type: Backend type this adapter is bound to
        capabilities: Static capability flags for the backend
        event_handlers: Registered callbacks (one per slot)
    """

    def __init__(
        self,
        editor_type: EditorType,
        capabilities: EditorCapabilities,
        poll_interval: float,
    ):
        self.type = editor_type
        self.capabilities = capabilities
        self.event_handlers = EditorEventHandlers()
        self._is_dirty = False
        self._last_snapshot = ""
        self._last_selection: Optional[TextSelection] = None
        self._poller = SelectionPoller(self.check_selection_change, poll_interval)
        self._destroyed = False

    # ----- Common implementations -----

    def get_text_content(self) -> str:
        content = self.get_content()
        if isinstance(content, str):
            return content
        return self.extract_text_from_structured(content)

    def clear_selection(self) -> None:
        selection = self.get_selection()
        if selection:
            self.set_selection(selection.start, selection.start)

    def apply_changes(self, changes: List[TextChange]) -> None:
        """Apply several changes as one batch.

        Changes are applied from the highest start offset down, so an
        earlier edit never shifts the offsets of one still to come.
        """
        for change in sorted(changes, key=lambda c: c.start, reverse=True):
            self.apply_change(change)

    def get_state(self) -> EditorState:
        return EditorState(
            content=self.get_content(),
            selection=self.get_selection(),
            can_undo=self.capabilities.supports_undo,
            can_redo=self.capabilities.supports_undo,
            is_dirty=self._is_dirty,
        )

    @property
    def is_dirty(self) -> bool:
        return self._is_dirty

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def mark_clean(self) -> None:
        """Reset the dirty flag, keeping the current content as baseline."""
        self._is_dirty = False
        self._last_snapshot = self._snapshot(self.get_content())

    def on_content_change(self, callback: Callable[[Content], None]) -> None:
        self.event_handlers.on_content_change = callback

    def on_selection_change(
        self, callback: Callable[[Optional[TextSelection]], None]
    ) -> None:
        self.event_handlers.on_selection_change = callback

    def on_focus(self, callback: Callable[[], None]) -> None:
        self.event_handlers.on_focus = callback

    def on_blur(self, callback: Callable[[], None]) -> None:
        self.event_handlers.on_blur = callback

    def on_error(self, callback: Callable[[Exception], None]) -> None:
        self.event_handlers.on_error = callback

    def estimate_tokens(self) -> int:
        return math.ceil(len(self.get_text_content()) / CHARS_PER_TOKEN)

    def get_word_count(self) -> int:
        return len(self.get_text_content().split())

    def get_character_count(self) -> int:
        return len(self.get_text_content())

    def destroy(self) -> None:
        """Stop polling, detach listeners and release the backend.

        Safe to call more than once. Cleanup failures are logged, since
        the host may already have torn the surface down.
        """
        if self._destroyed:
            return
        self._destroyed = True
        self.stop_selection_monitoring()

        try:
            self._remove_event_listeners()
        except Exception as e:
            logger.warning(f"Failed to remove {self.type.value} listeners during teardown: {e}")

        try:
            self._release_backend()
        except Exception as e:
            logger.warning(f"Failed to release {self.type.value} editor during teardown: {e}")

    # ----- Selection monitoring -----

    def start_selection_monitoring(self) -> None:
        self._poller.start()

    def stop_selection_monitoring(self) -> None:
        self._poller.stop()

    @property
    def is_monitoring(self) -> bool:
        return self._poller.is_running

    def check_selection_change(self) -> None:
        """Compare the current selection with the last known one and
        notify only when it differs."""
        current = self.get_selection()
        if self._selection_key(current) != self._selection_key(self._last_selection):
            self._last_selection = current
            self.notify_selection_change(current)

    @staticmethod
    def _selection_key(selection: Optional[TextSelection]):
        if selection is None:
            return None
        return (selection.start, selection.end, selection.text)

    # ----- Hooks for subclasses -----

    def _remove_event_listeners(self) -> None:
        """Detach backend listeners (override in subclasses)."""

    def _release_backend(self) -> None:
        """Release the backend editor (override in subclasses)."""

    # ----- Helpers -----

    def extract_text_from_structured(self, content: StructuredContent) -> str:
        if not content.content:
            return ''
        return '\n'.join(self.extract_text_from_block(block) for block in content.content)

    def extract_text_from_block(self, block: Any) -> str:
        """Depth-first text of a block: its own content when present,
        otherwise its children's text joined together."""
        if isinstance(block, str):
            return block
        if isinstance(block, ContentBlock):
            if block.content:
                return block.content
            if block.children:
                return ''.join(self.extract_text_from_block(child) for child in block.children)
            return ''
        if isinstance(block, dict):
            if block.get('type') == 'text':
                return block.get('text') or ''
            inner = block.get('content')
            if isinstance(inner, list):
                return ''.join(self.extract_text_from_block(child) for child in inner)
            if isinstance(inner, str) and inner:
                return inner
            children = block.get('children')
            if children:
                return ''.join(self.extract_text_from_block(child) for child in children)
        return ''

    def notify_content_change(self) -> None:
        current = self.get_content()
        snapshot = self._snapshot(current)
        if snapshot == self._last_snapshot:
            return

        self._is_dirty = True
        self._last_snapshot = snapshot

        if self.event_handlers.on_content_change:
            self.event_handlers.on_content_change(current)

    def notify_selection_change(self, selection: Optional[TextSelection]) -> None:
        if self.event_handlers.on_selection_change:
            self.event_handlers.on_selection_change(selection)

    def notify_error(self, error: Exception) -> None:
        if self.event_handlers.on_error:
            self.event_handlers.on_error(error)
        else:
            logger.error(f"Editor adapter error ({self.type.value}): {error}")

    def _handle_focus(self, *_args) -> None:
        if self.event_handlers.on_focus:
            self.event_handlers.on_focus()

    def _handle_blur(self, *_args) -> None:
        if self.event_handlers.on_blur:
            self.event_handlers.on_blur()

    def _handle_update(self, *_args) -> None:
        self.notify_content_change()

    def validate_change(self, change: TextChange) -> None:
        """Check a change against the current plain-text length.

        Raises:
            ValidationError: If the range is outside the content
        """
        length = len(self.get_text_content())
        if change.start < 0 or change.end > length or change.start > change.end:
            raise ValidationError(change.start, change.end, length)

    def create_selection_context(
        self,
        selection: TextSelection,
        context_radius: int = DEFAULT_CONTEXT_RADIUS,
    ) -> TextSelection:
        full_text = self.get_text_content()
        before_start = max(0, selection.start - context_radius)
        after_end = min(len(full_text), selection.end + context_radius)

        return TextSelection(
            text=selection.text,
            start=selection.start,
            end=selection.end,
            context=SelectionWindow(
                before=full_text[before_start:selection.start],
                after=full_text[selection.end:after_end],
            ),
        )

    def _take_baseline(self) -> None:
        self._last_snapshot = self._snapshot(self.get_content())

    @staticmethod
    def _snapshot(content: Content) -> str:
        if isinstance(content, StructuredContent):
            content = content.to_dict()
        return json.dumps(content, sort_keys=True, default=str)
