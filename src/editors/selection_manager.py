"""Selection tracking across several registered editors.

SelectionManager keeps a registry of adapters keyed by id and a single
active adapter. Selection events from background adapters are dropped;
only the active adapter's selection reaches listeners. All reads and
mutations go to the active adapter, in that adapter's own position space.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .base_adapter import DEFAULT_CONTEXT_RADIUS, BaseEditorAdapter
from .errors import AdapterUnavailableError
from .models import EditorAdapter, SelectionContext, TextChange, TextSelection

logger = logging.getLogger(__name__)

SelectionListener = Callable[[Optional[TextSelection]], None]
ContextListener = Callable[[Optional[SelectionContext]], None]


@dataclass
class TextRange:
    start: int
    end: int


@dataclass
class ContentStats:
    """Size of the active adapter's content and selection."""

    word_count: int
    character_count: int
    estimated_tokens: int
    has_selection: bool
    selection_length: int


class SelectionManager:
    """Registry of adapters with one active adapter.

    Attributes:
        context_radius: Default characters of context around a selection
    """

    def __init__(self, context_radius: int = DEFAULT_CONTEXT_RADIUS):
        self.context_radius = context_radius
        self._adapters: Dict[str, EditorAdapter] = {}
        self._active: Optional[EditorAdapter] = None
        self._selection_listeners: List[SelectionListener] = []
        self._context_listeners: List[ContextListener] = []

    # ----- Registry -----

    def register_adapter(self, adapter_id: str, adapter: EditorAdapter) -> None:
        """Register an adapter and subscribe to its selection changes.

        Registering a new adapter under an existing id destroys the old one.
        """
        previous = self._adapters.get(adapter_id)
        if previous is not None and previous is not adapter:
            logger.warning(f"Replacing adapter registered as '{adapter_id}'")
            self.unregister_adapter(adapter_id)

        self._adapters[adapter_id] = adapter

        def forward(selection: Optional[TextSelection]) -> None:
            if adapter is self._active:
                self._publish(selection, adapter)

        adapter.on_selection_change(forward)
        logger.debug(f"Registered {adapter.type.value} adapter '{adapter_id}'")

    def unregister_adapter(self, adapter_id: str) -> None:
        """Remove and destroy an adapter; unknown ids are ignored."""
        adapter = self._adapters.pop(adapter_id, None)
        if adapter is None:
            return
        if adapter is self._active:
            self._active = None
        adapter.destroy()
        logger.debug(f"Unregistered adapter '{adapter_id}'")

    def set_active_adapter(self, adapter_id: str) -> None:
        """Make an adapter active and publish its current selection."""
        adapter = self._adapters.get(adapter_id)
        if adapter is None:
            logger.warning(f"Cannot activate unknown adapter '{adapter_id}'")
            return

        self._active = adapter
        self._publish(adapter.get_selection(), adapter)

    def get_adapter_ids(self) -> List[str]:
        return list(self._adapters)

    def get_adapter(self, adapter_id: str) -> Optional[EditorAdapter]:
        return self._adapters.get(adapter_id)

    def get_active_adapter_id(self) -> Optional[str]:
        if self._active is None:
            return None
        for adapter_id, adapter in self._adapters.items():
            if adapter is self._active:
                return adapter_id
        return None

    # ----- Selection -----

    def get_current_selection(self) -> Optional[TextSelection]:
        if self._active is None:
            return None
        return self._active.get_selection()

    def get_selection_context(self, context_radius: Optional[int] = None) -> Optional[SelectionContext]:
        selection = self.get_current_selection()
        if selection is None or self._active is None:
            return None
        return self._create_selection_context(selection, self._active, context_radius)

    def set_selection(self, start: int, end: int) -> None:
        if self._active is not None:
            self._active.set_selection(start, end)

    def clear_selection(self) -> None:
        if self._active is not None:
            self._active.clear_selection()

    def focus(self) -> None:
        if self._active is not None:
            self._active.focus()

    def has_selection(self) -> bool:
        selection = self.get_current_selection()
        return selection is not None and len(selection.text) > 0

    def get_selected_text(self) -> str:
        selection = self.get_current_selection()
        return selection.text if selection else ''

    # ----- Content -----

    def apply_change(self, change: TextChange) -> None:
        """Apply a change to the active adapter.

        Raises:
            AdapterUnavailableError: If no adapter is active
        """
        if self._active is None:
            raise AdapterUnavailableError('active', 'apply_change')
        self._active.apply_change(change)

    def apply_changes(self, changes: List[TextChange]) -> None:
        """Apply a batch of changes to the active adapter.

        Raises:
            AdapterUnavailableError: If no adapter is active
        """
        if self._active is None:
            raise AdapterUnavailableError('active', 'apply_changes')
        self._active.apply_changes(changes)

    def get_full_content(self) -> str:
        if self._active is None:
            return ''
        return self._active.get_text_content()

    def find_text(self, search_text: str, start_from: int = 0) -> Optional[TextRange]:
        if self._active is None or not search_text:
            return None

        index = self._active.get_text_content().find(search_text, start_from)
        if index == -1:
            return None
        return TextRange(index, index + len(search_text))

    def replace_text(self, search_text: str, replace_text: str, replace_all: bool = False) -> int:
        """Replace the first (or every) occurrence of a string.

        Searching resumes after each inserted replacement, so text that
        contains the search string is never replaced again.

        Returns:
            Number of replacements made
        """
        if self._active is None or not search_text:
            return 0

        replacements = 0
        search_from = 0
        while True:
            found = self.find_text(search_text, search_from)
            if found is None:
                break

            self.apply_change(TextChange(start=found.start, end=found.end, new_text=replace_text))
            replacements += 1
            search_from = found.start + len(replace_text)

            if not replace_all:
                break

        return replacements

    def get_content_stats(self) -> Optional[ContentStats]:
        if self._active is None:
            return None

        selection = self.get_current_selection()
        return ContentStats(
            word_count=self._active.get_word_count(),
            character_count=self._active.get_character_count(),
            estimated_tokens=self._active.estimate_tokens(),
            has_selection=selection is not None,
            selection_length=len(selection.text) if selection else 0,
        )

    # ----- Listeners -----

    def on_selection_change(self, listener: SelectionListener) -> Callable[[], None]:
        """Subscribe to selection changes of the active adapter.

        Returns:
            A callable that removes the listener
        """
        self._selection_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._selection_listeners:
                self._selection_listeners.remove(listener)

        return unsubscribe

    def on_context_change(self, listener: ContextListener) -> Callable[[], None]:
        """Subscribe to selection context changes of the active adapter.

        Returns:
            A callable that removes the listener
        """
        self._context_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._context_listeners:
                self._context_listeners.remove(listener)

        return unsubscribe

    def destroy(self) -> None:
        """Destroy every adapter and drop all listeners."""
        for adapter in list(self._adapters.values()):
            adapter.destroy()
        self._adapters.clear()
        self._active = None
        self._selection_listeners.clear()
        self._context_listeners.clear()

    # ----- Internals -----

    def _publish(self, selection: Optional[TextSelection], adapter: EditorAdapter) -> None:
        self._notify_selection_change(selection)
        if selection is not None:
            self._notify_context_change(self._create_selection_context(selection, adapter))
        else:
            self._notify_context_change(None)

    def _create_selection_context(
        self,
        selection: TextSelection,
        adapter: EditorAdapter,
        context_radius: Optional[int] = None,
    ) -> SelectionContext:
        radius = self.context_radius if context_radius is None else context_radius
        full_text = adapter.get_text_content()

        if isinstance(adapter, BaseEditorAdapter):
            # Windows in the adapter's own position space
            window = adapter.create_selection_context(selection, radius).context
            before_text, after_text = window.before, window.after
        else:
            before_start = max(0, selection.start - radius)
            after_end = min(len(full_text), selection.end + radius)
            before_text = full_text[before_start:selection.start]
            after_text = full_text[selection.end:after_end]

        return SelectionContext(
            selected_text=selection.text,
            before_text=before_text,
            after_text=after_text,
            full_text=full_text,
            selection_start=selection.start,
            selection_end=selection.end,
            context_radius=radius,
        )

    def _notify_selection_change(self, selection: Optional[TextSelection]) -> None:
        for listener in list(self._selection_listeners):
            try:
                listener(selection)
            except Exception:
                logger.exception("Error in selection change listener")

    def _notify_context_change(self, context: Optional[SelectionContext]) -> None:
        for listener in list(self._context_listeners):
            try:
                listener(context)
            except Exception:
                logger.exception("Error in context change listener")


_global_selection_manager: Optional[SelectionManager] = None


def get_global_selection_manager() -> SelectionManager:
    """Process-wide manager for hosts that want a single shared registry."""
    global _global_selection_manager
    if _global_selection_manager is None:
        _global_selection_manager = SelectionManager()
    return _global_selection_manager


def reset_global_selection_manager() -> None:
    """Destroy the shared manager; the next get creates a fresh one."""
    global _global_selection_manager
    if _global_selection_manager is not None:
        _global_selection_manager.destroy()
        _global_selection_manager = None
