"""Data models shared by every editor adapter.

This module defines the contracts exchanged between the selection manager,
the adapters and the content utilities: selections, changes, the universal
block document, capability flags, state snapshots and the EditorAdapter
interface itself. Nothing here holds editing logic.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from .errors import ConversionError


class EditorType(Enum):
    """Backend variants an adapter can be bound to."""

    TEXTAREA = "textarea"
    TIPTAP = "tiptap"
    NOVEL = "novel"


class BlockType(Enum):
    """Types of blocks in the universal structured document."""

    PARAGRAPH = "paragraph"
    HEADING = "heading"
    LIST = "list"
    CODE = "code"
    QUOTE = "quote"
    LINK = "link"
    IMAGE = "image"

    # Anything a backend produced that we do not recognise
    UNKNOWN = "unknown"


KNOWN_BLOCK_TYPES = {t.value for t in BlockType if t is not BlockType.UNKNOWN}


@dataclass
class SelectionWindow:
    """Text immediately before and after a selection."""

    before: str = ""
    after: str = ""


@dataclass
class TextSelection:
    """Plain-text projection of a selection.

    Offsets are always expressed in the owning adapter's own position
    space; they are never translated between adapters.

    Attributes:
        text: Selected text
        start: Start offset (inclusive)
        end: End offset (exclusive), start <= end
        context: Optional surrounding text window
    """

    text: str
    start: int
    end: int
    context: Optional[SelectionWindow] = None


@dataclass
class TextChange:
    """A replacement of the range [start, end) with new_text.

    Attributes:
        start: Start offset of the replaced range
        end: End offset of the replaced range
        new_text: Replacement text
        reasoning: Free-form explanation from the AI (informational only)
        preserve_formatting: Hint consumed by rich-text post-processing
    """

    start: int
    end: int
    new_text: str
    reasoning: Optional[str] = None
    preserve_formatting: bool = False


@dataclass
class ContentBlock:
    """One node of the structured document tree.

    Attributes:
        id: Identifier, unique within one document
        type: Block type name (see BlockType)
        content: Text content of the block
        attributes: Type-specific attributes (level, href, src, language...)
        children: Nested blocks, None when the block is a leaf
    """

    id: str
    type: str
    content: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)
    children: Optional[List["ContentBlock"]] = None

    @property
    def block_type(self) -> BlockType:
        """Get the BlockType enum value."""
        try:
            return BlockType(self.type)
        except ValueError:
            return BlockType.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        """Convert this block to a JSON-compatible dictionary."""
        result: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "content": self.content,
        }
        if self.attributes:
            result["attributes"] = dict(self.attributes)
        if self.children is not None:
            result["children"] = [child.to_dict() for child in self.children]
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentBlock":
        """Build a block (and its subtree) from a dictionary.

        Missing ids and types are tolerated so that validation can report
        them; wrong value types are not.

        Raises:
            ConversionError: If the data does not describe a block
        """
        if not isinstance(data, dict):
            raise ConversionError(
                f"Block must be a dictionary, got {type(data).__name__}"
            )

        content = data.get("content", "")
        if content is None:
            content = ""
        if not isinstance(content, str):
            raise ConversionError(
                f"Block content must be a string (block id: {data.get('id')})"
            )

        attributes = data.get("attributes") or {}
        if not isinstance(attributes, dict):
            raise ConversionError(
                f"Block attributes must be a dictionary (block id: {data.get('id')})"
            )

        children_data = data.get("children")
        children = None
        if children_data is not None:
            if not isinstance(children_data, list):
                raise ConversionError(
                    f"Block children must be a list (block id: {data.get('id')})"
                )
            children = [cls.from_dict(child) for child in children_data]

        return cls(
            id=data.get("id") or "",
            type=data.get("type") or "",
            content=content,
            attributes=dict(attributes),
            children=children,
        )


@dataclass
class StructuredContent:
    """The universal block document.

    Attributes:
        type: Always 'doc'
        content: Top-level blocks (possibly empty)
        version: Optional schema version string
    """

    type: str = "doc"
    content: List[ContentBlock] = field(default_factory=list)
    version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the document to a JSON-compatible dictionary."""
        result: Dict[str, Any] = {
            "type": self.type,
            "content": [block.to_dict() for block in self.content],
        }
        if self.version is not None:
            result["version"] = self.version
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredContent":
        """Build a document from a dictionary (parsed JSON).

        Raises:
            ConversionError: If the data is not a structured document
        """
        if not isinstance(data, dict):
            raise ConversionError(
                f"Structured content must be a dictionary, got {type(data).__name__}"
            )

        doc_type = data.get("type")
        if doc_type != "doc":
            raise ConversionError(f"Expected type 'doc', got '{doc_type}'")

        blocks = data.get("content", [])
        if not isinstance(blocks, list):
            raise ConversionError("Structured content 'content' must be a list")

        version = data.get("version")
        return cls(
            type="doc",
            content=[ContentBlock.from_dict(block) for block in blocks],
            version=str(version) if version is not None else None,
        )


Content = Union[str, StructuredContent]


def generate_block_id() -> str:
    """Generate a short random block id."""
    return uuid.uuid4().hex[:9]


def heading_level(value: Any) -> int:
    """Coerce a heading ``level`` attribute to an int in 1..6.

    Levels come from editor JSON and may be missing, strings or junk;
    anything that is not a number becomes 1.
    """
    try:
        level = int(value)
    except (TypeError, ValueError):
        return 1
    return max(1, min(level, 6))


@dataclass(frozen=True)
class EditorCapabilities:
    """Static capability flags declared per adapter type."""

    supports_rich_text: bool
    supports_structured_content: bool
    supports_undo: bool
    supports_selection: bool
    supports_formatting: bool
    supported_formats: tuple = ()


@dataclass
class EditorState:
    """Snapshot of an adapter, recomputed on every request."""

    content: Content
    selection: Optional[TextSelection]
    can_undo: bool
    can_redo: bool
    is_dirty: bool


@dataclass
class SelectionContext:
    """Selection plus its surroundings, as handed to the AI layer."""

    selected_text: str
    before_text: str
    after_text: str
    full_text: str
    selection_start: int
    selection_end: int
    context_radius: int


@dataclass
class ContentMetadata:
    """Heuristic metadata computed by ContentParser."""

    word_count: int = 0
    character_count: int = 0
    estimated_tokens: int = 0
    has_formatting: bool = False
    has_links: bool = False
    has_images: bool = False


@dataclass
class ContentParseResult:
    """Result of ContentParser.parse_content."""

    plain_text: str
    metadata: ContentMetadata
    structured_content: Optional[StructuredContent] = None


@dataclass
class EditorEventHandlers:
    """Callbacks an adapter invokes; each slot holds at most one handler."""

    on_content_change: Optional[Callable[[Content], None]] = None
    on_selection_change: Optional[Callable[[Optional[TextSelection]], None]] = None
    on_focus: Optional[Callable[[], None]] = None
    on_blur: Optional[Callable[[], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None


class EditorAdapter(ABC):
    """Common capability interface over every editing backend.

    Each implementation keeps its backend's native position space to
    itself; offsets passed in and out are only meaningful for the same
    adapter instance.
    """

    type: EditorType
    capabilities: EditorCapabilities

    @abstractmethod
    def get_content(self) -> Content:
        ...

    @abstractmethod
    def set_content(self, content: Content) -> None:
        ...

    @abstractmethod
    def get_text_content(self) -> str:
        ...

    @abstractmethod
    def get_selection(self) -> Optional[TextSelection]:
        ...

    @abstractmethod
    def set_selection(self, start: int, end: int) -> None:
        ...

    @abstractmethod
    def clear_selection(self) -> None:
        ...

    @abstractmethod
    def apply_change(self, change: TextChange) -> None:
        ...

    @abstractmethod
    def apply_changes(self, changes: List[TextChange]) -> None:
        ...

    @abstractmethod
    def get_state(self) -> EditorState:
        ...

    @abstractmethod
    def on_content_change(self, callback: Callable[[Content], None]) -> None:
        ...

    @abstractmethod
    def on_selection_change(
        self, callback: Callable[[Optional[TextSelection]], None]
    ) -> None:
        ...

    @abstractmethod
    def estimate_tokens(self) -> int:
        ...

    @abstractmethod
    def get_word_count(self) -> int:
        ...

    @abstractmethod
    def get_character_count(self) -> int:
        ...

    @abstractmethod
    def focus(self) -> None:
        ...

    @abstractmethod
    def blur(self) -> None:
        ...

    @abstractmethod
    def destroy(self) -> None:
        ...
