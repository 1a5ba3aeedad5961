"""YAML configuration loading and validation.

This module handles loading and saving editor bridge configuration from
YAML files. Every field is optional; missing fields fall back to the
defaults below.

Configuration file structure:
    polling:
      textarea: 0.1
      tiptap: 0.1
      novel: 0.2
    context_radius: 100
    preservation:
      links: true
      images: true
      formatting: true
      structure: true
"""

import os
from dataclasses import dataclass
from typing import Any, Dict

import yaml

from .errors import ConfigError, ConfigFilesystemError
from .models import EditorType

# Selection poll intervals in seconds, per backend
DEFAULT_POLL_INTERVALS = {
    EditorType.TEXTAREA: 0.1,
    EditorType.TIPTAP: 0.1,
    EditorType.NOVEL: 0.2,
}

DEFAULT_CONTEXT_RADIUS = 100


@dataclass
class EditorConfig:
    """Runtime settings for adapters, the selection manager and the
    rich-text processor.

    Attributes:
        textarea_poll_interval: Seconds between textarea selection polls
        tiptap_poll_interval: Seconds between rich-text selection polls
        novel_poll_interval: Seconds between block-editor selection polls
        context_radius: Characters of context around a selection
        preserve_links: Re-inject links into AI rewrites
        preserve_images: Re-inject images into AI rewrites
        preserve_formatting: Re-apply emphasis/code spans to AI rewrites
        preserve_structure: Keep block attributes when merging rewrites
    """

    textarea_poll_interval: float = DEFAULT_POLL_INTERVALS[EditorType.TEXTAREA]
    tiptap_poll_interval: float = DEFAULT_POLL_INTERVALS[EditorType.TIPTAP]
    novel_poll_interval: float = DEFAULT_POLL_INTERVALS[EditorType.NOVEL]
    context_radius: int = DEFAULT_CONTEXT_RADIUS
    preserve_links: bool = True
    preserve_images: bool = True
    preserve_formatting: bool = True
    preserve_structure: bool = True

    def poll_interval_for(self, editor_type: EditorType) -> float:
        """Get the selection poll interval for a backend type."""
        return {
            EditorType.TEXTAREA: self.textarea_poll_interval,
            EditorType.TIPTAP: self.tiptap_poll_interval,
            EditorType.NOVEL: self.novel_poll_interval,
        }[editor_type]

    def preservation_options(self) -> Dict[str, bool]:
        """Get the keyword arguments accepted by RichTextProcessor."""
        return {
            "preserve_links": self.preserve_links,
            "preserve_images": self.preserve_images,
            "preserve_formatting": self.preserve_formatting,
            "preserve_structure": self.preserve_structure,
        }


class ConfigLoader:
    """Handles configuration file loading, validation, and saving."""

    ALLOWED_TOP_LEVEL_FIELDS = {'polling', 'context_radius', 'preservation'}

    POLLING_FIELDS = {
        'textarea': 'textarea_poll_interval',
        'tiptap': 'tiptap_poll_interval',
        'novel': 'novel_poll_interval',
    }

    PRESERVATION_FIELDS = {
        'links': 'preserve_links',
        'images': 'preserve_images',
        'formatting': 'preserve_formatting',
        'structure': 'preserve_structure',
    }

    @classmethod
    def load(cls, config_path: str) -> EditorConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            EditorConfig object with parsed configuration

        Raises:
            ConfigFilesystemError: If file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise ConfigFilesystemError(
                config_path,
                'read',
                'Configuration file not found'
            )
        except PermissionError:
            raise ConfigFilesystemError(
                config_path,
                'read',
                'Permission denied'
            )
        except Exception as e:
            raise ConfigFilesystemError(
                config_path,
                'read',
                str(e)
            )

        # Empty file means "all defaults"
        if not content.strip():
            return EditorConfig()

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML syntax: {str(e)}"
            )

        if config_dict is None:
            return EditorConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def save(cls, config_path: str, config: EditorConfig) -> None:
        """Save configuration to a YAML file.

        Args:
            config_path: Path to the YAML configuration file
            config: EditorConfig object to save

        Raises:
            ConfigFilesystemError: If file cannot be written
        """
        config_dict = {
            'polling': {
                key: getattr(config, attr)
                for key, attr in cls.POLLING_FIELDS.items()
            },
            'context_radius': config.context_radius,
            'preservation': {
                key: getattr(config, attr)
                for key, attr in cls.PRESERVATION_FIELDS.items()
            },
        }

        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        if config_dir:
            try:
                os.makedirs(config_dir, exist_ok=True)
            except Exception as e:
                raise ConfigFilesystemError(
                    config_dir,
                    'create directory',
                    str(e)
                )

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise ConfigFilesystemError(
                config_path,
                'write',
                'Permission denied'
            )
        except Exception as e:
            raise ConfigFilesystemError(
                config_path,
                'write',
                str(e)
            )

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> EditorConfig:
        """Validate a parsed YAML dictionary and build an EditorConfig.

        Raises:
            ConfigError: If a field is unknown or has the wrong type
        """
        unknown = set(config_dict) - cls.ALLOWED_TOP_LEVEL_FIELDS
        if unknown:
            raise ConfigError(
                f"Unknown configuration field(s): {', '.join(sorted(unknown))}"
            )

        values: Dict[str, Any] = {}

        polling = config_dict.get('polling') or {}
        if not isinstance(polling, dict):
            raise ConfigError("must be a dictionary", 'polling')
        for key, value in polling.items():
            if key not in cls.POLLING_FIELDS:
                raise ConfigError(f"unknown editor type '{key}'", 'polling')
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(
                    f"must be a positive number of seconds, got {value!r}",
                    f'polling.{key}'
                )
            values[cls.POLLING_FIELDS[key]] = float(value)

        if 'context_radius' in config_dict:
            radius = config_dict['context_radius']
            if isinstance(radius, bool) or not isinstance(radius, int) or radius < 0:
                raise ConfigError(
                    f"must be a non-negative integer, got {radius!r}",
                    'context_radius'
                )
            values['context_radius'] = radius

        preservation = config_dict.get('preservation') or {}
        if not isinstance(preservation, dict):
            raise ConfigError("must be a dictionary", 'preservation')
        for key, value in preservation.items():
            if key not in cls.PRESERVATION_FIELDS:
                raise ConfigError(f"unknown option '{key}'", 'preservation')
            if not isinstance(value, bool):
                raise ConfigError(
                    f"must be true or false, got {value!r}",
                    f'preservation.{key}'
                )
            values[cls.PRESERVATION_FIELDS[key]] = value

        return EditorConfig(**values)
