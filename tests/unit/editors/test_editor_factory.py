"""Unit tests for editors.editor_factory module."""


import pytest
from bs4 import BeautifulSoup

from src.editors.config import EditorConfig
from src.editors.editor_factory import EditorFactory
from src.editors.errors import UnsupportedEditorError
from src.editors.models import EditorType
from src.editors.novel_adapter import NovelAdapter
from src.editors.surfaces import TextBuffer
from src.editors.textarea_adapter import TextareaAdapter
from src.editors.tiptap_adapter import TiptapAdapter
from tests.helpers.fake_editors import FakeNovelEditor, FakeTiptapEditor


def parse(html):
    return BeautifulSoup(html, "html.parser")


class TestCreateAdapterExplicit:
    """An explicit editor type always wins over detection."""

    def test_explicit_textarea(self):
        adapter = EditorFactory.create_adapter(TextBuffer("x"), EditorType.TEXTAREA)

        assert isinstance(adapter, TextareaAdapter)
        adapter.destroy()

    def test_explicit_type_by_name(self):
        adapter = EditorFactory.create_adapter(FakeNovelEditor(), "novel")

        assert isinstance(adapter, NovelAdapter)
        adapter.destroy()

    def test_explicit_type_overrides_detection(self):
        """A novel-looking instance is bound as tiptap when asked to."""
        adapter = EditorFactory.create_adapter(FakeNovelEditor(), EditorType.TIPTAP)

        assert isinstance(adapter, TiptapAdapter)
        adapter.destroy()

    def test_unknown_type_raises(self):
        with pytest.raises(UnsupportedEditorError) as exc_info:
            EditorFactory.create_adapter(TextBuffer(), "quill")

        assert exc_info.value.editor_type == "quill"

    def test_explicit_type_with_element_looks_up_instance(self):
        editor = FakeTiptapEditor("Hi")
        element = parse('<div class="ProseMirror" id="main"></div>').div

        adapter = EditorFactory.create_adapter(element, EditorType.TIPTAP, instances={"main": editor})

        assert adapter.editor is editor
        adapter.destroy()

    def test_config_applies_context_radius(self):
        adapter = EditorFactory.create_adapter(
            TextBuffer("x"), EditorType.TEXTAREA, config=EditorConfig(context_radius=7)
        )

        assert adapter.context_radius == 7
        adapter.destroy()


class TestDetectEditorType:
    """Test cases for detection."""

    def test_text_buffer(self):
        buffer = TextBuffer()

        result = EditorFactory.detect_editor_type(buffer)

        assert result.type == EditorType.TEXTAREA
        assert result.instance is buffer
        assert result.confident is True

    def test_textarea_element(self):
        result = EditorFactory.detect_editor_type(parse("<textarea>Draft</textarea>").textarea)

        assert result.type == EditorType.TEXTAREA
        assert result.instance.value == "Draft"

    @pytest.mark.parametrize("html", [
        '<div class="ProseMirror"></div>',
        '<div data-tiptap></div>',
        '<div class="tiptap"></div>',
        '<div contenteditable="true"></div>',
        '<section><div class="ProseMirror"></div></section>',
    ])
    def test_rich_text_markers(self, html):
        element = parse(html).find(["div", "section"])

        result = EditorFactory.detect_editor_type(element)

        assert result.type == EditorType.TIPTAP

    def test_container_with_textarea(self):
        element = parse("<form><textarea>Inner</textarea></form>").form

        result = EditorFactory.detect_editor_type(element)

        assert result.type == EditorType.TEXTAREA
        assert result.element.name == "textarea"

    def test_unknown_element_falls_back(self, caplog):
        element = parse("<div><p>Just text</p></div>").div

        result = EditorFactory.detect_editor_type(element)

        assert result.type == EditorType.TEXTAREA
        assert result.confident is False
        assert "defaulting to textarea" in caplog.text

    def test_novel_instance(self):
        editor = FakeNovelEditor()

        result = EditorFactory.detect_editor_type(editor)

        assert result.type == EditorType.NOVEL
        assert result.instance is editor

    def test_tiptap_instance(self):
        result = EditorFactory.detect_editor_type(FakeTiptapEditor())

        assert result.type == EditorType.TIPTAP

    def test_unrecognised_object_falls_back(self):
        result = EditorFactory.detect_editor_type(object())

        assert result.type == EditorType.TEXTAREA
        assert result.confident is False
        assert isinstance(result.instance, TextBuffer)

    def test_unrecognised_object_gets_working_textarea_adapter(self, caplog):
        """An arbitrary object is wrapped in a buffer seeded from its value."""
        class Widget:
            value = "Draft text"

        adapter = EditorFactory.create_adapter(Widget())

        assert isinstance(adapter, TextareaAdapter)
        assert adapter.get_content() == "Draft text"
        assert "not a text surface" in caplog.text
        adapter.destroy()

    def test_explicit_textarea_with_plain_object(self):
        adapter = EditorFactory.create_adapter(object(), EditorType.TEXTAREA)

        assert isinstance(adapter.element, TextBuffer)
        assert adapter.get_content() == ""
        adapter.destroy()

    def test_detected_adapter_creation_is_logged(self, caplog):
        caplog.set_level("INFO", logger="src.editors.editor_factory")

        adapter = EditorFactory.create_adapter(FakeTiptapEditor("x"))

        assert isinstance(adapter, TiptapAdapter)
        assert "Detected editor type 'tiptap'" in caplog.text
        adapter.destroy()


class TestSupportedTypes:
    def test_supported_types(self):
        assert EditorFactory.get_supported_types() == ["textarea", "tiptap", "novel"]

    def test_is_type_supported(self):
        assert EditorFactory.is_type_supported("novel") is True
        assert EditorFactory.is_type_supported("quill") is False


class TestCreateMultipleAdapters:
    """Test cases for create_multiple_adapters."""

    def test_textareas_and_registered_mounts(self):
        """Every textarea gets an adapter; mounts need a registered instance."""
        # Arrange
        container = parse(
            "<main>"
            '<textarea id="a">One</textarea>'
            '<textarea id="b">Two</textarea>'
            '<div class="ProseMirror" data-editor-id="rich"></div>'
            '<div class="ProseMirror" id="orphan"></div>'
            "</main>"
        ).main
        editor = FakeTiptapEditor("Rich")

        # Act
        adapters = EditorFactory.create_multiple_adapters(container, instances={"rich": editor})

        # Assert
        assert [type(adapter) for adapter in adapters] == [TextareaAdapter, TextareaAdapter, TiptapAdapter]
        assert adapters[0].get_text_content() == "One"
        assert adapters[2].editor is editor
        for adapter in adapters:
            adapter.destroy()

    def test_empty_container(self):
        assert EditorFactory.create_multiple_adapters(parse("<div></div>").div) == []
