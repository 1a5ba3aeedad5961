"""Unit tests for editors.errors module."""

import pytest

from src.editors.errors import (
    AdapterUnavailableError,
    ConfigError,
    ConfigFilesystemError,
    ConversionError,
    EditorError,
    UnsupportedEditorError,
    ValidationError,
)


class TestErrorHierarchy:
    """All editor errors share one base class."""

    @pytest.mark.parametrize("error", [
        ValidationError(0, 10, 5),
        AdapterUnavailableError("tiptap"),
        ConversionError("bad"),
        UnsupportedEditorError("quill"),
        ConfigError("bad"),
        ConfigFilesystemError("/x", "read"),
    ])
    def test_inherits_editor_error(self, error):
        assert isinstance(error, EditorError)


class TestErrorMessages:
    """Test cases for error messages and attributes."""

    def test_validation_error(self):
        error = ValidationError(3, 20, 10)

        assert str(error) == "Invalid text change positions: start=3, end=20, content length=10"
        assert (error.start, error.end, error.content_length) == (3, 20, 10)

    def test_adapter_unavailable_with_operation(self):
        error = AdapterUnavailableError("novel", "insert_block")

        assert str(error) == "novel editor not available (operation: insert_block)"

    def test_adapter_unavailable_without_operation(self):
        assert str(AdapterUnavailableError("tiptap")) == "tiptap editor not available"

    def test_unsupported_editor(self):
        assert str(UnsupportedEditorError("quill")) == "Unsupported editor type: quill"

    def test_config_error_with_field(self):
        error = ConfigError("must be positive", "polling.textarea")

        assert str(error) == "Configuration error in field 'polling.textarea': must be positive"
        assert error.original_message == "must be positive"

    def test_config_error_without_field(self):
        assert str(ConfigError("oops")) == "Configuration error: oops"

    def test_config_filesystem_error(self):
        error = ConfigFilesystemError("/etc/x.yaml", "read", "Permission denied")

        assert "read" in str(error)
        assert "/etc/x.yaml" in str(error)
        assert error.reason == "Permission denied"
