"""Adapter construction and editor type detection.

Hosts should pass an explicit ``editor_type`` whenever they know what
they mounted. Detection exists as a diagnostic fallback for surfaces of
unknown origin (parsed HTML, loosely typed instances) and its choice is
always logged.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union

from bs4 import BeautifulSoup, Tag

from .config import EditorConfig
from .errors import UnsupportedEditorError
from .models import EditorAdapter, EditorType
from .novel_adapter import NovelAdapter
from .surfaces import TextBuffer
from .textarea_adapter import TextareaAdapter
from .tiptap_adapter import TiptapAdapter

logger = logging.getLogger(__name__)

# Markers a rich-text editor leaves on its mount element
TIPTAP_SELECTORS = (
    '.ProseMirror',
    '[data-tiptap]',
    '.tiptap',
    '[contenteditable="true"]',
)

# Elements that host an editor instance in create_multiple_adapters
TIPTAP_MOUNT_SELECTOR = '.ProseMirror, [data-tiptap]'


def _matches(element: Tag, selector: str) -> bool:
    """Check whether the element itself matches a CSS selector."""
    if isinstance(element, BeautifulSoup):
        return False
    return bool(element.css.match(selector))


@dataclass
class DetectionResult:
    """Outcome of editor type detection.

    Attributes:
        type: Detected backend type
        element: Parsed element the decision was based on, if any
        instance: Editor instance or surface to bind, if known
        confident: False when detection fell back to the default
    """

    type: EditorType
    element: Optional[Tag] = None
    instance: Any = None
    confident: bool = True


class EditorFactory:
    """Creates the adapter matching a surface."""

    @classmethod
    def create_adapter(
        cls,
        surface: Any,
        editor_type: Optional[Union[EditorType, str]] = None,
        config: Optional[EditorConfig] = None,
        instances: Optional[Mapping[str, Any]] = None,
    ) -> EditorAdapter:
        """Create an adapter for a surface.

        Args:
            surface: Editor instance, TextBuffer or parsed element
            editor_type: Explicit backend type; skips detection when given
            config: Poll intervals and context radius for the adapter
            instances: Editor instances keyed by element id, used to
                resolve rich-text editors mounted on parsed elements

        Returns:
            The adapter bound to the surface

        Raises:
            UnsupportedEditorError: If editor_type is not a known type
        """
        if editor_type is not None:
            resolved = cls._resolve_type(editor_type)
            if isinstance(surface, Tag):
                detection = DetectionResult(
                    type=resolved,
                    element=surface,
                    instance=cls._instance_for_element(resolved, surface, instances),
                )
            else:
                detection = DetectionResult(type=resolved, instance=surface)
        else:
            detection = cls.detect_editor_type(surface, instances)
            logger.info(
                f"Detected editor type '{detection.type.value}'"
                f"{'' if detection.confident else ' (fallback)'}"
            )

        return cls._create_adapter_by_type(detection.type, detection.instance, config)

    @classmethod
    def detect_editor_type(
        cls,
        surface: Any,
        instances: Optional[Mapping[str, Any]] = None,
    ) -> DetectionResult:
        """Work out which backend a surface belongs to."""
        if isinstance(surface, TextBuffer):
            return DetectionResult(type=EditorType.TEXTAREA, instance=surface)

        if isinstance(surface, Tag):
            return cls._detect_from_element(surface, instances)

        if cls._is_novel_instance(surface):
            return DetectionResult(
                type=EditorType.NOVEL,
                element=cls._dom_of(surface),
                instance=surface,
            )

        if cls._is_tiptap_instance(surface):
            return DetectionResult(
                type=EditorType.TIPTAP,
                element=cls._dom_of(surface),
                instance=surface,
            )

        logger.warning("Could not detect editor type, defaulting to textarea behavior")
        return DetectionResult(
            type=EditorType.TEXTAREA,
            instance=cls._as_text_surface(surface),
            confident=False,
        )

    @classmethod
    def get_supported_types(cls) -> List[str]:
        return [editor_type.value for editor_type in EditorType]

    @classmethod
    def is_type_supported(cls, name: str) -> bool:
        return name in cls.get_supported_types()

    @classmethod
    def create_multiple_adapters(
        cls,
        container: Tag,
        instances: Optional[Mapping[str, Any]] = None,
        config: Optional[EditorConfig] = None,
    ) -> List[EditorAdapter]:
        """Create one adapter per editor found inside a parsed container.

        Every <textarea> gets a TextareaAdapter over a TextBuffer seeded
        from the element. Rich-text mount points get a TiptapAdapter when
        their editor instance is found in ``instances``; the rest are
        skipped.
        """
        adapters: List[EditorAdapter] = []

        textareas = container.find_all('textarea')
        if container.name == 'textarea':
            textareas.insert(0, container)
        for textarea in textareas:
            adapters.append(
                cls._create_adapter_by_type(
                    EditorType.TEXTAREA, TextBuffer.from_element(textarea), config
                )
            )

        mounts = container.select(TIPTAP_MOUNT_SELECTOR)
        if _matches(container, TIPTAP_MOUNT_SELECTOR):
            mounts.insert(0, container)
        for element in mounts:
            instance = cls._lookup_instance(element, instances)
            if instance is None:
                logger.debug(f"No editor instance registered for element <{element.name}>, skipping")
                continue
            adapters.append(cls._create_adapter_by_type(EditorType.TIPTAP, instance, config))

        logger.info(f"Created {len(adapters)} adapter(s) from container")
        return adapters

    # ----- Internals -----

    @staticmethod
    def _resolve_type(editor_type: Union[EditorType, str]) -> EditorType:
        if isinstance(editor_type, EditorType):
            return editor_type
        try:
            return EditorType(editor_type)
        except ValueError:
            raise UnsupportedEditorError(str(editor_type))

    @classmethod
    def _create_adapter_by_type(
        cls,
        editor_type: EditorType,
        instance: Any,
        config: Optional[EditorConfig],
    ) -> EditorAdapter:
        config = config or EditorConfig()
        options = {
            'poll_interval': config.poll_interval_for(editor_type),
            'context_radius': config.context_radius,
        }

        if editor_type == EditorType.TEXTAREA:
            return TextareaAdapter(cls._as_text_surface(instance), **options)
        if editor_type == EditorType.TIPTAP:
            if instance is None:
                logger.warning("Creating tiptap adapter without an editor instance")
            return TiptapAdapter(instance, **options)
        if editor_type == EditorType.NOVEL:
            return NovelAdapter(instance, **options)

        raise UnsupportedEditorError(str(editor_type))

    @classmethod
    def _detect_from_element(
        cls,
        element: Tag,
        instances: Optional[Mapping[str, Any]],
    ) -> DetectionResult:
        if element.name == 'textarea':
            return DetectionResult(
                type=EditorType.TEXTAREA,
                element=element,
                instance=TextBuffer.from_element(element),
            )

        if cls._is_tiptap_element(element):
            return DetectionResult(
                type=EditorType.TIPTAP,
                element=element,
                instance=cls._lookup_instance(element, instances),
            )

        textarea = element.find('textarea')
        if textarea is not None:
            return DetectionResult(
                type=EditorType.TEXTAREA,
                element=textarea,
                instance=TextBuffer.from_element(textarea),
            )

        logger.warning(
            f"Could not detect editor type for <{element.name}>, defaulting to textarea behavior"
        )
        return DetectionResult(
            type=EditorType.TEXTAREA,
            element=element,
            instance=TextBuffer.from_element(element),
            confident=False,
        )

    @classmethod
    def _instance_for_element(
        cls,
        editor_type: EditorType,
        element: Tag,
        instances: Optional[Mapping[str, Any]],
    ) -> Any:
        if editor_type == EditorType.TEXTAREA:
            textarea = element if element.name == 'textarea' else element.find('textarea')
            return TextBuffer.from_element(textarea or element)
        return cls._lookup_instance(element, instances)

    @staticmethod
    def _is_tiptap_element(element: Tag) -> bool:
        return any(
            _matches(element, selector) or element.select_one(selector) is not None
            for selector in TIPTAP_SELECTORS
        )

    @staticmethod
    def _lookup_instance(element: Tag, instances: Optional[Mapping[str, Any]]) -> Any:
        """Find the editor instance registered for an element or one of
        its rich-text descendants."""
        if not instances:
            return None

        candidates = [element] + element.select(', '.join(TIPTAP_SELECTORS))
        for candidate in candidates:
            for key in (candidate.get('id'), candidate.get('data-editor-id')):
                if key and key in instances:
                    return instances[key]
        return None

    @staticmethod
    def _as_text_surface(obj: Any) -> Any:
        """Return obj when it behaves like a text surface, otherwise a
        TextBuffer seeded from its ``value`` attribute."""
        if all(
            callable(getattr(obj, name, None))
            for name in ('add_event_listener', 'remove_event_listener', 'set_selection_range')
        ):
            return obj

        value = getattr(obj, 'value', '')
        logger.warning(
            f"{type(obj).__name__} is not a text surface, using an in-memory buffer"
        )
        return TextBuffer(value if isinstance(value, str) else '')

    @staticmethod
    def _is_tiptap_instance(obj: Any) -> bool:
        return (
            obj is not None
            and hasattr(obj, 'state')
            and hasattr(obj, 'commands')
            and callable(getattr(obj, 'get_json', None))
        )

    @staticmethod
    def _is_novel_instance(obj: Any) -> bool:
        return (
            obj is not None
            and hasattr(obj, 'dom')
            and callable(getattr(obj, 'get_json', None))
            and callable(getattr(obj, 'set_content', None))
            and 'novel' in type(obj).__name__.lower()
        )

    @staticmethod
    def _dom_of(instance: Any) -> Optional[Tag]:
        dom = getattr(instance, 'dom', None)
        if dom is None:
            view = getattr(instance, 'view', None)
            dom = getattr(view, 'dom', None)
        return dom if isinstance(dom, Tag) else None
