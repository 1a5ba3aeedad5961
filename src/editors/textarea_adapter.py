"""Adapter for plain text surfaces (textarea-like)."""

import logging
from typing import Optional

from .base_adapter import DEFAULT_CONTEXT_RADIUS, BaseEditorAdapter
from .config import DEFAULT_POLL_INTERVALS
from .models import EditorCapabilities, EditorType, TextChange, TextSelection
from .surfaces import TextSurface

logger = logging.getLogger(__name__)

TEXTAREA_CAPABILITIES = EditorCapabilities(
    supports_rich_text=False,
    supports_structured_content=False,
    supports_undo=True,
    supports_selection=True,
    supports_formatting=False,
    supported_formats=('text/plain',),
)


class TextareaAdapter(BaseEditorAdapter):
    """Adapter over a linear text surface.

    Native offsets are plain-text offsets, so selections and changes map
    one to one onto the surface value.
    """

    def __init__(
        self,
        element: TextSurface,
        poll_interval: float = DEFAULT_POLL_INTERVALS[EditorType.TEXTAREA],
        context_radius: int = DEFAULT_CONTEXT_RADIUS,
    ):
        super().__init__(EditorType.TEXTAREA, TEXTAREA_CAPABILITIES, poll_interval)
        self.element = element
        self.context_radius = context_radius
        self._setup_event_listeners()
        self._take_baseline()
        self.start_selection_monitoring()

    def get_content(self) -> str:
        return self.element.value

    def set_content(self, content: str) -> None:
        """Replace the whole surface value.

        Raises:
            TypeError: If content is not a string
        """
        if not isinstance(content, str):
            raise TypeError(
                f"TextareaAdapter only supports string content, got {type(content).__name__}"
            )

        self.element.value = content
        self._trigger_input_event()
        self.notify_content_change()

    def get_selection(self) -> Optional[TextSelection]:
        start = self.element.selection_start
        end = self.element.selection_end

        # A caret is not a selection
        if start == end:
            return None

        text = self.element.value[start:end]
        return self.create_selection_context(
            TextSelection(text=text, start=start, end=end),
            self.context_radius,
        )

    def set_selection(self, start: int, end: int) -> None:
        self.element.set_selection_range(start, end)
        self.element.focus()

    def apply_change(self, change: TextChange) -> None:
        self.validate_change(change)

        current = self.element.value
        self.element.value = current[:change.start] + change.new_text + current[change.end:]

        cursor = change.start + len(change.new_text)
        self.element.set_selection_range(cursor, cursor)

        self._trigger_input_event()
        self.notify_content_change()

    def focus(self) -> None:
        self.element.focus()

    def blur(self) -> None:
        self.element.blur()

    def _setup_event_listeners(self) -> None:
        self.element.add_event_listener('input', self._handle_update)
        self.element.add_event_listener('focus', self._handle_focus)
        self.element.add_event_listener('blur', self._handle_blur)

    def _remove_event_listeners(self) -> None:
        self.element.remove_event_listener('input', self._handle_update)
        self.element.remove_event_listener('focus', self._handle_focus)
        self.element.remove_event_listener('blur', self._handle_blur)

    def _trigger_input_event(self) -> None:
        self.element.dispatch_event('input')
