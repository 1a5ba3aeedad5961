"""Unit tests for main CLI entry point (main.py).

Tests the Typer CLI application using CliRunner.
"""

import logging
from unittest.mock import MagicMock, Mock, patch

import pytest
from typer.testing import CliRunner

from src.cli.main import VERSION, _configure_logging, app
from src.cli.models import ExitCode, OutputFormat
from tests.fixtures.sample_documents import SAMPLE_TEXT_SIMPLE

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep CliRunner invocations from attaching handlers to the 'src' logger."""
    with patch('src.cli.main._configure_logging') as mock_configure:
        yield mock_configure


class TestConfigureLogging:
    """Test cases for _configure_logging function."""

    @pytest.mark.parametrize("verbosity, level", [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_verbosity_sets_level(self, verbosity, level):
        with patch('logging.getLogger') as mock_get_logger:
            mock_app_logger = MagicMock()
            mock_get_logger.return_value = mock_app_logger

            _configure_logging(verbosity)

            mock_get_logger.assert_called_with("src")
            mock_app_logger.setLevel.assert_called_with(level)

    def test_logdir_creates_timestamped_log_file(self, tmp_path):
        app_logger = logging.getLogger("src")
        handlers_before = list(app_logger.handlers)
        level_before = app_logger.level
        logdir = tmp_path / "logs"

        try:
            _configure_logging(1, str(logdir))

            log_files = list(logdir.glob("editor-bridge_*.log"))
            assert len(log_files) == 1
        finally:
            for handler in app_logger.handlers[:]:
                if handler not in handlers_before:
                    handler.close()
                    app_logger.removeHandler(handler)
            app_logger.setLevel(level_before)


class TestMainCommand:
    """Test cases for the main command."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"editor-bridge version {VERSION}" in result.output

    def test_missing_input(self):
        result = runner.invoke(app, ["--stats"])

        assert result.exit_code == ExitCode.GENERAL_ERROR

    @patch('src.cli.main.ConvertCommand')
    @patch('src.cli.main.OutputHandler')
    def test_options_are_passed_to_convert_command(self, mock_output, mock_convert_cmd, no_logging_setup):
        """All options reach ConvertCommand.run unchanged."""
        # Arrange
        mock_instance = Mock()
        mock_instance.run.return_value = ExitCode.SUCCESS
        mock_convert_cmd.return_value = mock_instance

        # Act
        result = runner.invoke(app, [
            "rewrite.txt", "--to", "MARKDOWN", "--stats", "--validate",
            "--original", "source.md", "--config", "editor.yaml", "-v", "2", "--no-color",
        ])

        # Assert
        assert result.exit_code == ExitCode.SUCCESS
        mock_convert_cmd.assert_called_once_with(config_path="editor.yaml", output_handler=mock_output.return_value)
        mock_instance.run.assert_called_once_with(
            input_path="rewrite.txt",
            output_format=OutputFormat.MARKDOWN,
            show_stats=True,
            validate=True,
            original_path="source.md",
        )
        mock_output.assert_called_once_with(verbosity=2, no_color=True)
        no_logging_setup.assert_called_once_with(2, None)

    @patch('src.cli.main.ConvertCommand')
    @patch('src.cli.main.OutputHandler')
    def test_exit_code_from_command(self, mock_output, mock_convert_cmd):
        mock_convert_cmd.return_value.run.return_value = ExitCode.VALIDATION_FAILED

        result = runner.invoke(app, ["doc.json", "--validate"])

        assert result.exit_code == ExitCode.VALIDATION_FAILED

    @patch('src.cli.main.ConvertCommand')
    @patch('src.cli.main.OutputHandler')
    def test_unexpected_error(self, mock_output, mock_convert_cmd):
        mock_convert_cmd.return_value.run.side_effect = RuntimeError("boom")

        result = runner.invoke(app, ["doc.json"])

        assert result.exit_code == ExitCode.GENERAL_ERROR
        mock_output.return_value.error.assert_called_once_with("Unexpected error: boom")

    def test_invalid_output_format(self):
        result = runner.invoke(app, ["doc.json", "--to", "pdf"])

        assert result.exit_code == 2


class TestEndToEnd:
    """Runs the real command against files on disk."""

    def test_text_to_html(self, tmp_path):
        input_file = tmp_path / "notes.txt"
        input_file.write_text(SAMPLE_TEXT_SIMPLE, encoding="utf-8")

        result = runner.invoke(app, [str(input_file), "--to", "html", "--no-color"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "<p>Hello world</p>" in result.output
        assert "<p>Second paragraph here.</p>" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, [str(tmp_path / "missing.txt"), "--no-color"])

        assert result.exit_code == ExitCode.INPUT_ERROR
        # Rich wraps long paths; compare with whitespace collapsed
        assert "File not found" in " ".join(result.output.split())
