"""Unit tests for editors.novel_adapter module."""

from unittest.mock import Mock

import pytest

from src.editors.errors import AdapterUnavailableError, EditorError
from src.editors.models import ContentBlock, EditorType, StructuredContent, TextChange
from src.editors.novel_adapter import NovelAdapter
from tests.helpers.fake_editors import FakeNovelEditor, novel_block


@pytest.fixture
def editor():
    return FakeNovelEditor([
        novel_block("a1", "Hello world"),
        novel_block("a2", "Title", "heading", level=2),
    ])


@pytest.fixture
def adapter(editor):
    adapter = NovelAdapter(editor)
    yield adapter
    adapter.destroy()


class TestNovelContent:
    """Test cases for reading and writing content."""

    def test_type(self, adapter):
        assert adapter.type == EditorType.NOVEL

    def test_get_content_converts_blocks(self, adapter):
        content = adapter.get_content()

        assert [block.id for block in content.content] == ["a1", "a2"]
        assert content.content[1].type == "heading"
        assert content.content[1].attributes == {"level": 2}
        assert content.version == "1.0"
        assert adapter.get_text_content() == "Hello world\nTitle"

    def test_missing_ids_get_positional_ids(self, adapter):
        doc = {"type": "doc", "blocks": [{"type": "paragraph", "content": "x"}]}

        assert adapter.convert_to_structured(doc).content[0].id == "nv-0"

    def test_set_text_content_one_paragraph_per_line(self, adapter, editor):
        adapter.set_content("First\n\nSecond")

        assert len(editor.blocks) == 2
        assert [block["type"] for block in editor.blocks] == ["paragraph", "paragraph"]
        assert adapter.get_text_content() == "First\nSecond"

    def test_set_structured_content(self, adapter, editor):
        content = StructuredContent(content=[
            ContentBlock(id="c1", type="code", content="print()", attributes={"language": "python"}),
        ])

        adapter.set_content(content)

        assert editor.blocks[0]["type"] == "codeBlock"
        assert editor.blocks[0]["props"] == {"language": "python"}

    def test_get_content_failure_reports_error_and_returns_empty(self, adapter, editor):
        handler = Mock()
        adapter.on_error(handler)
        editor.fail_on = "get_json"

        content = adapter.get_content()

        assert content == StructuredContent()
        assert isinstance(handler.call_args[0][0], EditorError)

    def test_without_editor(self):
        adapter = NovelAdapter(None)

        assert adapter.get_content() == StructuredContent()
        assert adapter.get_selection() is None
        with pytest.raises(AdapterUnavailableError):
            adapter.set_content("x")


class TestNovelSelection:
    """Test cases for selection and position translation."""

    def test_get_selection_clamps_to_text(self, adapter, editor):
        editor.selection = {"from": 6, "to": 500, "empty": False}

        selection = adapter.get_selection()

        assert (selection.start, selection.end) == (6, 17)
        assert selection.text == "world\nTitle"

    def test_empty_selection_is_none(self, adapter, editor):
        editor.selection = {"from": 3, "to": 3, "empty": True}

        assert adapter.get_selection() is None

    def test_set_selection_focuses(self, adapter, editor):
        adapter.set_selection(0, 5)

        assert editor.selection == {"from": 0, "to": 5, "empty": False}
        assert editor.focused is True

    def test_selection_update_event_notifies(self, adapter, editor):
        """Native selection events are reported through the callback."""
        callback = Mock()
        adapter.on_selection_change(callback)

        editor.set_selection(0, 5)

        callback.assert_called_once()
        assert callback.call_args[0][0].text == "Hello"

    def test_position_translation(self, adapter):
        assert adapter.text_positions_to_novel(3, 7) == (3, 7)
        assert adapter.novel_positions_to_text(-2, 4, 10) == (0, 4)
        assert adapter.novel_positions_to_text(8, 3, 10) == (8, 8)


class TestNovelChanges:
    """Test cases for text changes."""

    def test_apply_change(self, adapter, editor):
        callback = Mock()
        adapter.on_content_change(callback)

        adapter.apply_change(TextChange(start=6, end=11, new_text="there"))

        assert adapter.get_text_content() == "Hello there\nTitle"
        assert editor.selection["from"] == 11
        callback.assert_called_once()

    def test_apply_change_failure_reported(self, adapter, editor):
        handler = Mock()
        adapter.on_error(handler)
        editor.fail_on = "replace_range"

        adapter.apply_change(TextChange(start=0, end=5, new_text="Hi"))

        assert "replace_range failed" in str(handler.call_args[0][0])

    def test_apply_change_without_editor_raises(self):
        with pytest.raises(AdapterUnavailableError):
            NovelAdapter(None).apply_change(TextChange(start=0, end=0, new_text="x"))


class TestNovelBlocks:
    """Test cases for block operations."""

    def test_insert_block_appends_and_returns_id(self, adapter, editor):
        block_id = adapter.insert_block("paragraph", "New")

        assert editor.blocks[-1]["id"] == block_id
        assert adapter.get_text_content().endswith("New")

    def test_insert_block_at_position(self, adapter, editor):
        block_id = adapter.insert_block("quote", "Quoted", position=0)

        assert editor.blocks[0]["id"] == block_id
        assert editor.blocks[0]["type"] == "blockquote"

    def test_create_block_defaults(self, adapter):
        assert adapter.create_novel_block("heading")["props"] == {"level": 1}
        assert adapter.create_novel_block("code")["props"] == {"language": "text"}

    def test_unknown_block_type_becomes_paragraph(self, adapter, caplog):
        block = adapter.create_novel_block("table", "x")

        assert block["type"] == "paragraph"
        assert "Unknown block type" in caplog.text

    def test_update_block_translates_fields_and_keeps_id(self, adapter, editor):
        adapter.update_block("a1", {"id": "zzz", "content": "Updated", "attributes": {"align": "center"}})

        block = editor.blocks[0]
        assert block["id"] == "a1"
        assert block["content"] == [{"type": "text", "text": "Updated"}]
        assert block["props"] == {"align": "center"}

    def test_update_block_maps_type(self, adapter, editor):
        adapter.update_block("a1", {"type": "list"})

        assert editor.blocks[0]["type"] == "bulletListItem"

    def test_delete_block(self, adapter, editor):
        adapter.delete_block("a2")

        assert [block["id"] for block in editor.blocks] == ["a1"]

    @pytest.mark.parametrize("operation, args", [
        ("insert_block", ("paragraph",)),
        ("update_block", ("a1", {})),
        ("delete_block", ("a1",)),
    ])
    def test_block_operations_without_editor_raise(self, operation, args):
        adapter = NovelAdapter(None)

        with pytest.raises(AdapterUnavailableError):
            getattr(adapter, operation)(*args)


class TestNovelTeardown:
    """Test cases for destroy."""

    def test_destroy(self, editor):
        adapter = NovelAdapter(editor)

        adapter.destroy()

        assert all(not handlers for handlers in editor.listeners.values())
        assert editor.destroyed is True
