"""Block-level editing of structured documents.

StructuredContentHandler owns a private copy of one document (held in a
BlockStore) and applies plain-text changes and block operations to it.

Text changes use offsets into the handler's plain-text projection: each
top-level block contributes its content followed by its children's text
(single spaces between parts), and top-level blocks are separated by one
newline. This is the projection ContentParser.extract_plain_text produces
before its final strip.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .block_store import BlockStore
from .content_parser import ContentParser
from .models import KNOWN_BLOCK_TYPES, ContentBlock, StructuredContent, TextChange
from .rich_text_processor import RichTextProcessor

logger = logging.getLogger(__name__)


@dataclass
class BlockModification:
    """A block operation, either requested or recorded as applied.

    Attributes:
        block_id: Target block id
        operation: One of update, insert, delete, move
        content: Block fields (update: partial; insert: a full block with id)
        position: Insert index within the target sibling list
        target_position: New index for move
        parent_id: Parent block for insert, None for top level
    """

    block_id: str
    operation: str
    content: Optional[Dict[str, Any]] = None
    position: Optional[int] = None
    target_position: Optional[int] = None
    parent_id: Optional[str] = None


@dataclass
class ContentModificationResult:
    """Outcome of a batch of text changes or block modifications."""

    success: bool
    modified_content: StructuredContent
    applied_changes: List[BlockModification] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class ValidationReport:
    """Outcome of StructuredContentHandler.validate."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ContentStatistics:
    """Counts over the whole block tree."""

    block_count: int
    word_count: int
    character_count: int
    link_count: int
    image_count: int
    block_types: Dict[str, int] = field(default_factory=dict)


@dataclass
class BlockLink:
    block_id: str
    href: str
    text: str


@dataclass
class BlockImage:
    block_id: str
    src: str
    alt: str


class StructuredContentHandler:
    """Stateful editor for one structured document.

    The document passed in is copied; later changes to the caller's
    object do not affect the handler and vice versa.
    """

    def __init__(
        self,
        content: StructuredContent,
        preserve_links: bool = True,
        preserve_images: bool = True,
        preserve_formatting: bool = True,
        preserve_structure: bool = True,
    ):
        self._store = BlockStore.from_content(content)
        self.preservation_options = {
            'preserve_links': preserve_links,
            'preserve_images': preserve_images,
            'preserve_formatting': preserve_formatting,
            'preserve_structure': preserve_structure,
        }

    def get_content(self) -> StructuredContent:
        """Get a fresh copy of the current document."""
        return self._store.to_content()

    # ----- Text changes -----

    def apply_text_changes(self, changes: List[TextChange]) -> ContentModificationResult:
        """Apply plain-text changes to the blocks they fall in.

        Changes are applied from the highest start offset down. A change
        that touches several top-level blocks is split: the replacement
        text goes to the first block and the other blocks only lose their
        covered text. Blocks are never merged or split.
        """
        applied: List[BlockModification] = []
        warnings: List[str] = []
        errors: List[str] = []

        for change in sorted(changes, key=lambda c: c.start, reverse=True):
            try:
                applied.extend(self._apply_text_change(change, warnings, errors))
            except Exception as e:
                logger.exception(f"Failed to apply text change at {change.start}-{change.end}")
                errors.append(f"Failed to apply text changes: {e}")

        return ContentModificationResult(
            success=not errors,
            modified_content=self.get_content(),
            applied_changes=applied,
            warnings=warnings,
            errors=errors,
        )

    def _apply_text_change(
        self,
        change: TextChange,
        warnings: List[str],
        errors: List[str],
    ) -> List[BlockModification]:
        if change.start < 0 or change.start > change.end:
            errors.append(f"Invalid change range: start={change.start}, end={change.end}")
            return []

        targets = self._blocks_in_range(change.start, change.end)
        if not targets:
            warnings.append(
                f"Change at {change.start}-{change.end} does not fall inside any block"
            )
            return []

        if len(targets) > 1:
            first = self._store.get(targets[0][0])
            warnings.append(
                f"Change at {change.start}-{change.end} spans {len(targets)} blocks; "
                f"replacement text applied to block {first.id}"
            )

        modifications = []
        replacement = change.new_text
        for key, block_start, block_end in targets:
            local_start = max(0, change.start - block_start)
            local_end = min(block_end - block_start, change.end - block_start)
            self._splice_block(key, local_start, local_end, replacement)
            replacement = ''

            record = self._store.get(key)
            modifications.append(BlockModification(
                block_id=record.id,
                operation='update',
                content={'content': self._block_text(key)},
            ))
        return modifications

    def _blocks_in_range(self, start: int, end: int) -> List[Tuple[int, int, int]]:
        """Top-level blocks touched by [start, end), with their spans."""
        targets = []
        position = 0
        for key in self._store.roots:
            block_start = position
            block_end = position + len(self._block_text(key))
            position = block_end + 1  # newline between blocks

            if start == end:
                # Insertions land in the first block whose span holds the point
                if block_start <= start <= block_end:
                    return [(key, block_start, block_end)]
            elif start < block_end and end > block_start:
                targets.append((key, block_start, block_end))
        return targets

    def _segments(self, key: int) -> List[Tuple[Optional[int], int, int]]:
        """Spans of a block's own content (child None) and of each child."""
        record = self._store.get(key)
        segments: List[Tuple[Optional[int], int, int]] = []
        position = 0
        if record.content or not record.child_keys:
            segments.append((None, 0, len(record.content)))
            position = len(record.content) + 1
        for child in record.child_keys or []:
            length = len(self._block_text(child))
            segments.append((child, position, position + length))
            position += length + 1
        return segments

    def _splice_block(self, key: int, start: int, end: int, new_text: str) -> None:
        record = self._store.get(key)
        remaining = new_text
        for child, seg_start, seg_end in self._segments(key):
            if start == end:
                hit = seg_start <= start <= seg_end
            else:
                hit = start < seg_end and end > seg_start
            if not hit:
                continue

            local_start = max(0, start - seg_start)
            local_end = max(local_start, min(seg_end - seg_start, end - seg_start))
            if child is None:
                record.content = record.content[:local_start] + remaining + record.content[local_end:]
            else:
                self._splice_block(child, local_start, local_end, remaining)
            remaining = ''

            if start == end:
                break

    def _block_text(self, key: int) -> str:
        record = self._store.get(key)
        text = record.content
        if record.child_keys:
            child_text = ' '.join(self._block_text(child) for child in record.child_keys)
            text += (' ' if text else '') + child_text
        return text

    # ----- Block operations -----

    def apply_block_modifications(
        self, modifications: List[BlockModification]
    ) -> ContentModificationResult:
        applied: List[BlockModification] = []
        warnings: List[str] = []
        errors: List[str] = []

        for modification in modifications:
            try:
                if self._apply_block_modification(modification):
                    applied.append(modification)
                else:
                    warnings.append(
                        f"Failed to apply {modification.operation} to block {modification.block_id}"
                    )
            except Exception as e:
                logger.exception(f"Block modification failed for {modification.block_id}")
                errors.append(f"Failed to apply block modifications: {e}")

        return ContentModificationResult(
            success=not errors,
            modified_content=self.get_content(),
            applied_changes=applied,
            warnings=warnings,
            errors=errors,
        )

    def _apply_block_modification(self, modification: BlockModification) -> bool:
        operation = modification.operation
        if operation == 'update':
            if not modification.content:
                return False
            return self.update_block(modification.block_id, modification.content)
        if operation == 'insert':
            if not modification.content or not modification.content.get('id'):
                return False
            return self.insert_block(
                ContentBlock.from_dict(modification.content),
                modification.position,
                modification.parent_id,
            )
        if operation == 'delete':
            return self.delete_block(modification.block_id)
        if operation == 'move':
            if modification.target_position is None:
                return False
            return self.move_block(modification.block_id, modification.target_position)

        logger.warning(f"Unknown block operation: {operation}")
        return False

    def insert_block(
        self,
        block: ContentBlock,
        position: Optional[int] = None,
        parent_id: Optional[str] = None,
    ) -> bool:
        """Insert a copy of a block.

        Args:
            block: Block to insert (copied with its subtree)
            position: Index in the sibling list; appended when None
            parent_id: Parent block id, None for top level

        Returns:
            False when the parent does not exist
        """
        parent = None
        if parent_id is not None:
            parent = self._store.key_for(parent_id)
            if parent is None:
                logger.warning(f"Cannot insert block {block.id}: parent {parent_id} not found")
                return False

        if self._store.key_for(block.id) is not None:
            logger.warning(f"Inserting block with duplicate id {block.id}")

        self._store.add(block, parent=parent, position=position)
        return True

    def update_block(
        self, block_id: str, updates: Union[Dict[str, Any], ContentBlock]
    ) -> bool:
        """Update block fields in place; the id never changes."""
        key = self._store.key_for(block_id)
        if key is None:
            return False

        if isinstance(updates, ContentBlock):
            updates = updates.to_dict()

        record = self._store.get(key)
        for name, value in updates.items():
            if name == 'id':
                continue
            if name == 'type':
                record.type = value
            elif name == 'content':
                record.content = value or ''
            elif name == 'attributes':
                record.attributes = dict(value or {})
            elif name == 'children':
                self._replace_children(key, value)
            else:
                logger.warning(f"Ignoring unknown block field '{name}' for block {block_id}")
        return True

    def _replace_children(self, key: int, children: Optional[List[Any]]) -> None:
        record = self._store.get(key)
        for child in list(record.child_keys or []):
            self._store.remove(child)

        if children is None:
            record.child_keys = None
            return

        record.child_keys = []
        for child in children:
            if not isinstance(child, ContentBlock):
                child = ContentBlock.from_dict(child)
            self._store.add(child, parent=key)

    def delete_block(self, block_id: str) -> bool:
        key = self._store.key_for(block_id)
        if key is None:
            return False
        self._store.remove(key)
        return True

    def move_block(self, block_id: str, new_position: int) -> bool:
        """Move a block within its own sibling list."""
        key = self._store.key_for(block_id)
        if key is None:
            return False
        self._store.move(key, new_position)
        return True

    # ----- Queries -----

    def get_block(self, block_id: str) -> Optional[ContentBlock]:
        key = self._store.key_for(block_id)
        return self._store.to_block(key) if key is not None else None

    def find_blocks_by_type(self, block_type: str) -> List[ContentBlock]:
        return [
            self._store.to_block(key)
            for key in self._store.walk()
            if self._store.get(key).type == block_type
        ]

    def find_blocks_by_text(self, search_text: str, case_sensitive: bool = False) -> List[ContentBlock]:
        """Blocks whose own content contains the search text."""
        search = search_text if case_sensitive else search_text.lower()
        found = []
        for key in self._store.walk():
            content = self._store.get(key).content
            if search in (content if case_sensitive else content.lower()):
                found.append(self._store.to_block(key))
        return found

    def extract_links(self) -> List[BlockLink]:
        links = []
        for key in self._store.walk():
            record = self._store.get(key)
            if record.type == 'link' and record.attributes.get('href'):
                links.append(BlockLink(record.id, record.attributes['href'], record.content))
        return links

    def extract_images(self) -> List[BlockImage]:
        images = []
        for key in self._store.walk():
            record = self._store.get(key)
            if record.type == 'image' and record.attributes.get('src'):
                alt = record.attributes.get('alt') or record.content
                images.append(BlockImage(record.id, record.attributes['src'], alt))
        return images

    # ----- Formatting and conversion -----

    def preserve_formatting_in_text(self, original_text: str, modified_text: str) -> str:
        """Carry links, images and emphasis from the original into a rewrite."""
        if not self.preservation_options['preserve_formatting']:
            return modified_text

        processor = RichTextProcessor(**self.preservation_options)
        return processor.process_ai_response(original_text, modified_text).processed_text

    def to_html(self) -> str:
        return ContentParser.structured_to_html(self.get_content())

    def to_plain_text(self) -> str:
        return ContentParser.extract_plain_text(self.get_content())

    def to_markdown(self) -> str:
        return ContentParser.structured_to_markdown(self.get_content())

    def get_statistics(self) -> ContentStatistics:
        block_types: Dict[str, int] = {}
        block_count = 0
        for key in self._store.walk():
            block_count += 1
            block_type = self._store.get(key).type
            block_types[block_type] = block_types.get(block_type, 0) + 1

        plain_text = self.to_plain_text()
        return ContentStatistics(
            block_count=block_count,
            word_count=len(plain_text.split()),
            character_count=len(plain_text),
            link_count=len(self.extract_links()),
            image_count=len(self.extract_images()),
            block_types=block_types,
        )

    def validate(self) -> ValidationReport:
        errors: List[str] = []
        warnings: List[str] = []

        if not ContentParser.validate_structured_content(self.get_content()):
            errors.append('Invalid content structure')

        for key in self._store.walk():
            record = self._store.get(key)
            if not record.id:
                errors.append(f"Block missing ID (type: {record.type or 'unknown'})")
            if not record.type:
                errors.append(f"Block missing type: {record.id}")
            elif record.type not in KNOWN_BLOCK_TYPES:
                warnings.append(f"Unknown block type '{record.type}': {record.id}")
            if not record.content and not record.child_keys and record.type != 'image':
                warnings.append(f"Block has no content or children: {record.id}")

        for block_id in self._store.duplicate_ids():
            if block_id:
                warnings.append(f"Duplicate block id: {block_id}")

        return ValidationReport(is_valid=not errors, errors=errors, warnings=warnings)
