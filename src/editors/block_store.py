"""Arena storage for a block tree.

Blocks are held as flat records keyed by an integer handle. Children are
referenced by handle lists and every record knows its parent, so blocks
can be found, moved and removed without walking nested dataclasses. An
id index maps block ids to handles; ids are expected to be unique but
duplicates are tolerated (lookups resolve to the first block in document
order).
"""

import copy
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .models import ContentBlock, StructuredContent


@dataclass
class BlockRecord:
    """One block in the arena.

    Attributes:
        id: Block id
        type: Block type name
        content: Text content
        attributes: Type-specific attributes
        child_keys: Handles of the children, None for a leaf
        parent: Handle of the parent, None for a top-level block
    """

    id: str
    type: str
    content: str = ''
    attributes: Dict[str, Any] = field(default_factory=dict)
    child_keys: Optional[List[int]] = None
    parent: Optional[int] = None


class BlockStore:
    """Flat, handle-addressed representation of a structured document."""

    def __init__(self, version: Optional[str] = None):
        self.version = version
        self._records: Dict[int, BlockRecord] = {}
        self._roots: List[int] = []
        self._by_id: Dict[str, List[int]] = defaultdict(list)
        self._next_key = 0

    @classmethod
    def from_content(cls, content: StructuredContent) -> 'BlockStore':
        """Copy a document into a new store."""
        store = cls(version=content.version)
        for block in content.content:
            store.add(block)
        return store

    def to_content(self) -> StructuredContent:
        """Build a fresh document; callers never see the store's records."""
        return StructuredContent(
            content=[self.to_block(key) for key in self._roots],
            version=self.version,
        )

    def to_block(self, key: int) -> ContentBlock:
        record = self._records[key]
        return ContentBlock(
            id=record.id,
            type=record.type,
            content=record.content,
            attributes=copy.deepcopy(record.attributes),
            children=[self.to_block(child) for child in record.child_keys]
            if record.child_keys is not None else None,
        )

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: int) -> bool:
        return key in self._records

    @property
    def roots(self) -> List[int]:
        return self._roots

    def get(self, key: int) -> BlockRecord:
        return self._records[key]

    def add(
        self,
        block: ContentBlock,
        parent: Optional[int] = None,
        position: Optional[int] = None,
    ) -> int:
        """Copy a block (and its subtree) into the store.

        Args:
            block: Block to copy
            parent: Handle of the parent, None for top level
            position: Index in the sibling list; appended when None or
                out of range

        Returns:
            Handle of the new record
        """
        key = self._next_key
        self._next_key += 1

        self._records[key] = BlockRecord(
            id=block.id,
            type=block.type,
            content=block.content or '',
            attributes=copy.deepcopy(block.attributes or {}),
            parent=parent,
        )
        self._by_id[block.id].append(key)

        if parent is not None and self._records[parent].child_keys is None:
            self._records[parent].child_keys = []
        self._insert_key(self.siblings_of_parent(parent), key, position)

        if block.children is not None:
            self._records[key].child_keys = []
            for child in block.children:
                self.add(child, parent=key)

        return key

    def remove(self, key: int) -> None:
        """Remove a block and its whole subtree."""
        record = self._records[key]
        self.siblings_of_parent(record.parent).remove(key)
        self._drop_subtree(key)

    def move(self, key: int, position: int) -> None:
        """Move a block within its own sibling list (clamped)."""
        siblings = self.siblings(key)
        siblings.remove(key)
        position = max(0, min(position, len(siblings)))
        siblings.insert(position, key)

    def siblings(self, key: int) -> List[int]:
        """The sibling list containing a block."""
        return self.siblings_of_parent(self._records[key].parent)

    def siblings_of_parent(self, parent: Optional[int]) -> List[int]:
        if parent is None:
            return self._roots
        return self._records[parent].child_keys

    def key_for(self, block_id: str) -> Optional[int]:
        """Handle of the first block with an id, in document order."""
        keys = self._by_id.get(block_id)
        if not keys:
            return None
        if len(keys) == 1:
            return keys[0]
        candidates = set(keys)
        for key in self.walk():
            if key in candidates:
                return key
        return None

    def duplicate_ids(self) -> List[str]:
        return [block_id for block_id, keys in self._by_id.items() if len(keys) > 1]

    def walk(self) -> Iterator[int]:
        """Depth-first pre-order traversal of all handles."""
        stack = list(reversed(self._roots))
        while stack:
            key = stack.pop()
            yield key
            children = self._records[key].child_keys
            if children:
                stack.extend(reversed(children))

    def _insert_key(self, siblings: List[int], key: int, position: Optional[int]) -> None:
        if position is None or position >= len(siblings):
            siblings.append(key)
        else:
            siblings.insert(max(0, position), key)

    def _drop_subtree(self, key: int) -> None:
        record = self._records.pop(key)
        keys = self._by_id.get(record.id)
        if keys is not None:
            keys.remove(key)
            if not keys:
                del self._by_id[record.id]
        for child in record.child_keys or []:
            self._drop_subtree(child)
