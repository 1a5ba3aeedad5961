"""Host editing surfaces the adapters bind to.

Adapters never import a concrete editor library. Instead, each adapter
expects a host object with a known shape, described here as Protocols:

    TextSurface:     linear text buffer with offset-based selection
    RichTextEditor:  node-tree editor (Tiptap/ProseMirror style)
    BlockEditor:     block-JSON editor (Novel style)

TextBuffer is the concrete in-memory text surface. The editor factory
recognises it by class, and it backs adapters created from <textarea>
elements found in parsed HTML.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Protocol

from bs4 import Tag

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


class TextSurface(Protocol):
    """Shape of a textarea-like surface."""

    value: str
    selection_start: int
    selection_end: int

    def set_selection_range(self, start: int, end: int) -> None: ...

    def focus(self) -> None: ...

    def blur(self) -> None: ...

    def add_event_listener(self, event_type: str, listener: Listener) -> None: ...

    def remove_event_listener(self, event_type: str, listener: Listener) -> None: ...

    def dispatch_event(self, event_type: str) -> bool: ...


class RichTextEditor(Protocol):
    """Shape of a node-tree rich-text editor.

    Selections are read from ``state.selection`` (``from_``, ``to``,
    ``empty``) and measured in node-tree position units. ``state.doc``
    exposes ``content.size`` and ``text_between(start, end, separator)``.
    Changes go through ``state.tr`` and ``view.dispatch``.
    """

    state: Any
    commands: Any
    view: Any
    schema: Any

    def get_json(self) -> Dict[str, Any]: ...

    def on(self, event: str, handler: Callable[..., None]) -> None: ...

    def off(self, event: str, handler: Callable[..., None]) -> None: ...

    def destroy(self) -> None: ...


class BlockEditor(Protocol):
    """Shape of a block-JSON editor.

    ``get_json`` returns ``{"type": "doc", "blocks": [...]}``;
    ``get_selection`` returns a dict with ``from``, ``to`` and ``empty``.
    """

    def get_json(self) -> Dict[str, Any]: ...

    def set_content(self, content: Dict[str, Any]) -> None: ...

    def get_selection(self) -> Optional[Dict[str, Any]]: ...

    def set_selection(self, start: int, end: int) -> None: ...

    def replace_range(self, start: int, end: int, text: str) -> None: ...

    def insert_block(self, block: Dict[str, Any]) -> None: ...

    def insert_block_at(self, position: int, block: Dict[str, Any]) -> None: ...

    def update_block(self, block_id: str, updates: Dict[str, Any]) -> None: ...

    def delete_block(self, block_id: str) -> None: ...

    def focus(self) -> None: ...

    def blur(self) -> None: ...

    def on(self, event: str, handler: Callable[..., None]) -> None: ...

    def off(self, event: str, handler: Callable[..., None]) -> None: ...

    def destroy(self) -> None: ...


class TextBuffer:
    """In-memory textarea surface.

    Mirrors the parts of a browser textarea the adapter relies on: a
    string value, a clamped selection range, focus state and
    input/focus/blur listeners. Assigning ``value`` programmatically does
    not fire ``input``, just like the DOM.

    Attributes:
        element_id: Id of the element this buffer was created from, if any
        has_focus: Whether the surface currently has focus
    """

    def __init__(self, value: str = "", element_id: Optional[str] = None):
        self._value = value
        self.selection_start = len(value)
        self.selection_end = len(value)
        self.element_id = element_id
        self.has_focus = False
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    @classmethod
    def from_element(cls, element: Tag) -> "TextBuffer":
        """Create a buffer seeded from a parsed <textarea> element."""
        element_id = element.get("id") or element.get("data-editor-id")
        return cls(element.get_text(), element_id=element_id)

    @property
    def value(self) -> str:
        return self._value

    @value.setter
    def value(self, new_value: str) -> None:
        self._value = new_value
        # Browsers move the caret to the end on programmatic assignment
        self.selection_start = len(new_value)
        self.selection_end = len(new_value)

    def set_selection_range(self, start: int, end: int) -> None:
        length = len(self._value)
        start = max(0, min(start, length))
        end = max(start, min(end, length))
        self.selection_start = start
        self.selection_end = end

    def insert_text(self, text: str) -> None:
        """Type text over the current selection, as a user would."""
        start, end = self.selection_start, self.selection_end
        self._value = self._value[:start] + text + self._value[end:]
        cursor = start + len(text)
        self.selection_start = cursor
        self.selection_end = cursor
        self.dispatch_event("input")

    def focus(self) -> None:
        if not self.has_focus:
            self.has_focus = True
            self.dispatch_event("focus")

    def blur(self) -> None:
        if self.has_focus:
            self.has_focus = False
            self.dispatch_event("blur")

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        if listener not in self._listeners[event_type]:
            self._listeners[event_type].append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        if listener in self._listeners[event_type]:
            self._listeners[event_type].remove(listener)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners[event_type])

    def dispatch_event(self, event_type: str) -> bool:
        for listener in list(self._listeners[event_type]):
            listener(event_type)
        return True
