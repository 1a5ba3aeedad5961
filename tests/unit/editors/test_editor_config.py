"""Unit tests for editors.config module."""

import pytest
import yaml

from src.editors.config import ConfigLoader, EditorConfig
from src.editors.errors import ConfigError, ConfigFilesystemError
from src.editors.models import EditorType


class TestEditorConfig:
    """Test cases for EditorConfig defaults and helpers."""

    def test_defaults(self):
        config = EditorConfig()

        assert config.poll_interval_for(EditorType.TEXTAREA) == 0.1
        assert config.poll_interval_for(EditorType.TIPTAP) == 0.1
        assert config.poll_interval_for(EditorType.NOVEL) == 0.2
        assert config.context_radius == 100

    def test_preservation_options_match_processor_keywords(self):
        config = EditorConfig(preserve_images=False)

        assert config.preservation_options() == {
            "preserve_links": True,
            "preserve_images": False,
            "preserve_formatting": True,
            "preserve_structure": True,
        }


class TestConfigLoaderLoad:
    """Test cases for ConfigLoader.load."""

    def test_load_full_config(self, tmp_path):
        """All sections are read into the dataclass."""
        # Arrange
        config_file = tmp_path / "editor.yaml"
        config_file.write_text(
            "polling:\n"
            "  textarea: 0.5\n"
            "  novel: 1\n"
            "context_radius: 40\n"
            "preservation:\n"
            "  links: false\n",
            encoding="utf-8",
        )

        # Act
        config = ConfigLoader.load(str(config_file))

        # Assert
        assert config.textarea_poll_interval == 0.5
        assert config.novel_poll_interval == 1.0
        assert config.tiptap_poll_interval == 0.1
        assert config.context_radius == 40
        assert config.preserve_links is False
        assert config.preserve_images is True

    def test_load_empty_file_gives_defaults(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("", encoding="utf-8")

        assert ConfigLoader.load(str(config_file)) == EditorConfig()

    def test_load_missing_file_raises_filesystem_error(self, tmp_path):
        with pytest.raises(ConfigFilesystemError) as exc_info:
            ConfigLoader.load(str(tmp_path / "missing.yaml"))

        assert exc_info.value.reason == "Configuration file not found"

    def test_load_invalid_yaml_raises_config_error(self, tmp_path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("polling: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(str(config_file))

        assert "Invalid YAML syntax" in str(exc_info.value)

    def test_load_non_dict_raises_config_error(self, tmp_path):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            ConfigLoader.load(str(config_file))

    @pytest.mark.parametrize("content, field", [
        ("polling:\n  textarea: -1\n", "polling.textarea"),
        ("polling:\n  textarea: true\n", "polling.textarea"),
        ("polling:\n  quill: 0.1\n", "polling"),
        ("context_radius: -5\n", "context_radius"),
        ("context_radius: 1.5\n", "context_radius"),
        ("preservation:\n  links: 'yes'\n", "preservation.links"),
        ("preservation:\n  colors: true\n", "preservation"),
    ])
    def test_load_invalid_values(self, tmp_path, content, field):
        """Bad values raise ConfigError naming the field."""
        config_file = tmp_path / "invalid.yaml"
        config_file.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(str(config_file))

        assert exc_info.value.config_field == field

    def test_load_unknown_top_level_field(self, tmp_path):
        config_file = tmp_path / "unknown.yaml"
        config_file.write_text("theme: dark\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(str(config_file))

        assert "theme" in str(exc_info.value)


class TestConfigLoaderSave:
    """Test cases for ConfigLoader.save."""

    def test_save_then_load(self, tmp_path):
        """A saved config loads back unchanged."""
        config = EditorConfig(novel_poll_interval=0.5, context_radius=20, preserve_structure=False)
        config_path = tmp_path / "nested" / "editor.yaml"

        ConfigLoader.save(str(config_path), config)

        assert config_path.exists()
        assert ConfigLoader.load(str(config_path)) == config

    def test_save_writes_sectioned_yaml(self, tmp_path):
        config_path = tmp_path / "editor.yaml"

        ConfigLoader.save(str(config_path), EditorConfig())

        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        assert set(data) == {"polling", "context_radius", "preservation"}
        assert data["polling"]["novel"] == 0.2
