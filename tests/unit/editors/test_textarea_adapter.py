"""Unit tests for editors.textarea_adapter and shared BaseEditorAdapter behaviour."""

from unittest.mock import Mock

import pytest

from src.editors.errors import ValidationError
from src.editors.models import EditorType, StructuredContent, TextChange
from src.editors.surfaces import TextBuffer
from src.editors.textarea_adapter import TextareaAdapter


@pytest.fixture
def buffer():
    return TextBuffer("Hello world")


@pytest.fixture
def adapter(buffer):
    adapter = TextareaAdapter(buffer)
    yield adapter
    adapter.destroy()


class TestTextareaContent:
    """Test cases for reading and writing content."""

    def test_type_and_capabilities(self, adapter):
        assert adapter.type == EditorType.TEXTAREA
        assert adapter.capabilities.supports_rich_text is False
        assert adapter.capabilities.supported_formats == ("text/plain",)

    def test_set_content_then_get_text_content(self, adapter):
        """Text written is text read back."""
        adapter.set_content("New content")

        assert adapter.get_text_content() == "New content"
        assert adapter.get_content() == "New content"

    def test_set_content_rejects_structured(self, adapter):
        with pytest.raises(TypeError):
            adapter.set_content(StructuredContent())

    def test_set_content_notifies_and_marks_dirty(self, adapter):
        callback = Mock()
        adapter.on_content_change(callback)

        adapter.set_content("Changed")

        callback.assert_called_once_with("Changed")
        assert adapter.is_dirty is True

    def test_initial_content_is_not_a_change(self, adapter):
        """The content present at attach time is the baseline."""
        callback = Mock()
        adapter.on_content_change(callback)

        adapter.set_content("Hello world")

        callback.assert_not_called()
        assert adapter.is_dirty is False

    def test_user_typing_notifies(self, adapter, buffer):
        callback = Mock()
        adapter.on_content_change(callback)
        buffer.set_selection_range(11, 11)

        buffer.insert_text("!")

        callback.assert_called_once_with("Hello world!")

    def test_mark_clean(self, adapter):
        adapter.set_content("Changed")

        adapter.mark_clean()

        assert adapter.is_dirty is False


class TestTextareaSelection:
    """Test cases for selections."""

    def test_collapsed_selection_is_none(self, adapter, buffer):
        buffer.set_selection_range(3, 3)

        assert adapter.get_selection() is None

    def test_selection_with_context(self, adapter, buffer):
        buffer.set_selection_range(6, 11)

        selection = adapter.get_selection()

        assert selection.text == "world"
        assert (selection.start, selection.end) == (6, 11)
        assert selection.context.before == "Hello "
        assert selection.context.after == ""

    def test_context_radius_limits_window(self, buffer):
        adapter = TextareaAdapter(buffer, context_radius=2)
        buffer.set_selection_range(6, 8)

        selection = adapter.get_selection()

        assert selection.context.before == "o "
        assert selection.context.after == "rl"
        adapter.destroy()

    def test_set_selection_focuses(self, adapter, buffer):
        on_focus = Mock()
        adapter.on_focus(on_focus)

        adapter.set_selection(0, 5)

        assert adapter.get_selection().text == "Hello"
        assert buffer.has_focus is True
        on_focus.assert_called_once()

    def test_clear_selection_collapses_to_start(self, adapter, buffer):
        buffer.set_selection_range(6, 11)

        adapter.clear_selection()

        assert adapter.get_selection() is None
        assert buffer.selection_start == 6

    def test_check_selection_change_notifies_only_on_change(self, adapter, buffer):
        """Polling reports a selection once, then stays quiet."""
        callback = Mock()
        adapter.on_selection_change(callback)
        buffer.set_selection_range(0, 5)

        adapter.check_selection_change()
        adapter.check_selection_change()

        callback.assert_called_once()
        assert callback.call_args[0][0].text == "Hello"

    def test_check_selection_change_reports_clearing(self, adapter, buffer):
        callback = Mock()
        adapter.on_selection_change(callback)
        buffer.set_selection_range(0, 5)
        adapter.check_selection_change()

        buffer.set_selection_range(2, 2)
        adapter.check_selection_change()

        assert callback.call_args[0][0] is None


class TestTextareaChanges:
    """Test cases for applying changes."""

    def test_apply_change_replaces_range_and_moves_cursor(self, adapter, buffer):
        adapter.apply_change(TextChange(start=6, end=11, new_text="there"))

        assert buffer.value == "Hello there"
        assert buffer.selection_start == buffer.selection_end == 11

    def test_apply_change_out_of_range(self, adapter, buffer):
        """Changes past the end raise and leave the content untouched."""
        with pytest.raises(ValidationError):
            adapter.apply_change(TextChange(start=0, end=50, new_text="x"))

        assert buffer.value == "Hello world"

    def test_apply_change_inverted_range(self, adapter):
        with pytest.raises(ValidationError):
            adapter.apply_change(TextChange(start=5, end=2, new_text="x"))

    def test_apply_changes_is_order_independent(self, buffer):
        """Non-overlapping changes give the same result in any order."""
        changes = [
            TextChange(start=0, end=5, new_text="Goodbye"),
            TextChange(start=6, end=11, new_text="moon"),
        ]
        first = TextareaAdapter(TextBuffer("Hello world"))
        second = TextareaAdapter(TextBuffer("Hello world"))

        first.apply_changes(changes)
        second.apply_changes(list(reversed(changes)))

        assert first.get_text_content() == "Goodbye moon"
        assert second.get_text_content() == "Goodbye moon"
        first.destroy()
        second.destroy()


class TestTextareaMetrics:
    """Test cases for counts and state."""

    def test_counts(self, adapter):
        assert adapter.get_word_count() == 2
        assert adapter.get_character_count() == 11
        assert adapter.estimate_tokens() == 3

    def test_get_state(self, adapter):
        state = adapter.get_state()

        assert state.content == "Hello world"
        assert state.selection is None
        assert state.can_undo is True
        assert state.is_dirty is False


class TestTextareaTeardown:
    """Test cases for destroy."""

    def test_destroy_detaches_listeners(self, buffer):
        adapter = TextareaAdapter(buffer)
        assert buffer.listener_count("input") == 1

        adapter.destroy()

        assert buffer.listener_count("input") == 0
        assert buffer.listener_count("focus") == 0
        assert adapter.is_destroyed is True
        assert adapter.is_monitoring is False

    def test_destroy_twice_is_safe(self, buffer):
        adapter = TextareaAdapter(buffer)

        adapter.destroy()
        adapter.destroy()

        assert adapter.is_destroyed is True

    def test_destroy_logs_cleanup_failures(self, buffer, caplog):
        """A surface that fails during teardown does not raise."""
        adapter = TextareaAdapter(buffer)
        buffer.remove_event_listener = Mock(side_effect=RuntimeError("gone"))

        adapter.destroy()

        assert "Failed to remove textarea listeners" in caplog.text

    def test_error_without_handler_is_logged(self, adapter, caplog):
        adapter.notify_error(RuntimeError("broken"))

        assert "broken" in caplog.text

    def test_error_handler_receives_error(self, adapter):
        handler = Mock()
        adapter.on_error(handler)
        error = RuntimeError("broken")

        adapter.notify_error(error)

        handler.assert_called_once_with(error)
