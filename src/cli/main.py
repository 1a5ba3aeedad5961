"""Main CLI entry point for the editor-bridge command.

This module provides the Typer application that serves as the entry point
for the editor-bridge command-line tool. It uses options on the main command
rather than subcommands for a simpler user experience.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from src.cli.convert_command import ConvertCommand
from src.cli.models import ExitCode, OutputFormat
from src.cli.output import OutputHandler

app = typer.Typer(
    name="editor-bridge",
    help="""Convert, inspect and post-process documents for AI-assisted editing.

QUICK START:
  editor-bridge notes.html --to markdown                 # HTML -> markdown
  editor-bridge doc.json --to html --validate            # Structured JSON -> HTML
  editor-bridge draft.txt --stats                        # Word/token statistics
  editor-bridge rewrite.txt --original source.md         # Restore links and images""",
    add_completion=False,
    rich_markup_mode=None,  # Disable Rich markup to avoid compatibility issues
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:  # verbosity >= 2
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)

    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"editor-bridge_{timestamp}.log"

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt=date_format,
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


@app.command()
def main_command(
    input_file: Optional[str] = typer.Argument(
        None,
        help="Document to convert (.json structured content, .html, or plain text)",
        metavar="INPUT",
    ),
    to: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--to",
        "-t",
        help="Output format",
        case_sensitive=False,
    ),
    stats: bool = typer.Option(
        False,
        "--stats",
        help="Print word, character, token, link and image counts",
    ),
    validate: bool = typer.Option(
        False,
        "--validate",
        help="Validate the document structure (exit code 2 when invalid)",
    ),
    original: Optional[str] = typer.Option(
        None,
        "--original",
        help="Original document; INPUT is treated as an AI rewrite of it",
        metavar="PATH",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        help="Editor config YAML (preservation options)",
        metavar="PATH",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Convert, inspect and post-process documents for AI-assisted editing.

    \b
    EXAMPLES:
      editor-bridge notes.html --to markdown
      editor-bridge doc.json --to html --validate
      editor-bridge rewrite.txt --original source.md --to markdown
    """
    if version:
        typer.echo(f"editor-bridge version {VERSION}")
        raise typer.Exit()

    if input_file is None:
        typer.echo("Error: Missing argument 'INPUT'.", err=True)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        command = ConvertCommand(config_path=config, output_handler=output)
        exit_code = command.run(
            input_path=input_file,
            output_format=to,
            show_stats=stats,
            validate=validate,
            original_path=original,
        )
    except Exception as e:
        logger.exception("Unexpected error during conversion")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    raise typer.Exit(exit_code)


def main() -> None:
    """Main entry point for the CLI application."""
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
