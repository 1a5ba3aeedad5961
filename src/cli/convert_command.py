"""Convert command orchestration for CLI.

This module provides the ConvertCommand class behind editor-bridge. It
loads a text, HTML or structured JSON document, optionally post-processes
an AI rewrite of it against the original, and renders the result as HTML,
markdown, plain text or JSON, with optional statistics and validation.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from src.cli.errors import InputError
from src.cli.models import ConvertSummary, ExitCode, InputKind, LoadedDocument, OutputFormat
from src.cli.output import OutputHandler
from src.editors.config import ConfigLoader, EditorConfig
from src.editors.content_parser import ContentParser
from src.editors.errors import ConfigError, ConfigFilesystemError, ConversionError
from src.editors.models import StructuredContent
from src.editors.rich_text_processor import RichTextProcessor
from src.editors.structured_content_handler import StructuredContentHandler

logger = logging.getLogger(__name__)

HTML_EXTENSIONS = {'.html', '.htm'}
JSON_EXTENSIONS = {'.json'}


class ConvertCommand:
    """Orchestrates a single document conversion.

    The workflow:
        1. Load configuration (defaults when no config path is given)
        2. Load the input document, choosing the parser by file extension
        3. If an original is given, re-apply its links, images and inline
           formatting to the input, which is treated as an AI rewrite
        4. Validate and/or compute statistics when requested
        5. Render in the requested format and return an exit code

    Example:
        >>> output = OutputHandler(verbosity=1)
        >>> cmd = ConvertCommand(output_handler=output)
        >>> exit_code = cmd.run("notes.html", OutputFormat.MARKDOWN)
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        output_handler: Optional[OutputHandler] = None,
    ):
        """Initialize convert command.

        Args:
            config_path: Path to an editor YAML config file (optional)
            output_handler: OutputHandler for terminal output (optional)
        """
        self.config_path = config_path
        self.output_handler = output_handler or OutputHandler()

    def run(
        self,
        input_path: str,
        output_format: OutputFormat = OutputFormat.TEXT,
        show_stats: bool = False,
        validate: bool = False,
        original_path: Optional[str] = None,
    ) -> ExitCode:
        """Execute the conversion and print the result.

        Args:
            input_path: Document to convert
            output_format: Target format
            show_stats: Print document statistics after the output
            validate: Validate the structured form of the document
            original_path: Original document the input was rewritten from

        Returns:
            ExitCode describing the outcome
        """
        output = self.output_handler

        try:
            config = self._load_config()
        except (ConfigError, ConfigFilesystemError) as e:
            logger.error(f"Failed to load config: {e}")
            output.error(str(e))
            return ExitCode.GENERAL_ERROR

        try:
            document = self.load_document(input_path)
            original = self.load_document(original_path) if original_path else None
        except InputError as e:
            logger.error(str(e))
            output.error(str(e))
            return ExitCode.INPUT_ERROR

        logger.info(f"Loaded {document.kind.value} document {input_path} ({len(document.content.content)} block(s))")

        summary = self.convert(document, output_format, config, original=original, validate=validate)

        output.print_document(summary.output)

        if summary.preserved_count is not None:
            output.print_preservation_summary(summary.preserved_count, summary.warnings)

        if show_stats:
            handler = StructuredContentHandler(document.content, **config.preservation_options())
            metadata = ContentParser.parse_content(document.content).metadata
            output.print_stats(handler.get_statistics(), metadata)

        if summary.validation is not None:
            output.print_validation(summary.validation)
            if not summary.is_valid:
                return ExitCode.VALIDATION_FAILED

        return ExitCode.SUCCESS

    def convert(
        self,
        document: LoadedDocument,
        output_format: OutputFormat,
        config: EditorConfig,
        original: Optional[LoadedDocument] = None,
        validate: bool = False,
    ) -> ConvertSummary:
        """Render a loaded document, post-processing it first when an
        original is given.

        Args:
            document: Document to render
            output_format: Target format
            config: Editor configuration supplying preservation options
            original: Original the document was rewritten from (optional)
            validate: Collect validation errors and warnings

        Returns:
            ConvertSummary with the rendered output and diagnostics
        """
        warnings = []
        preserved_count = None

        if original is not None:
            processor = RichTextProcessor(**config.preservation_options())
            original_content = original.content if original.kind == InputKind.JSON else original.raw
            ai_text = ContentParser.extract_plain_text(document.content) if document.kind == InputKind.JSON else document.raw

            result = processor.process_ai_response(original_content, ai_text)
            for error in result.errors:
                logger.warning(f"Formatting preservation error: {error}")
            warnings.extend(result.warnings)
            preserved_count = len(result.preserved_elements)

            document = LoadedDocument(
                path=document.path,
                kind=InputKind.TEXT,
                raw=result.processed_text,
                content=ContentParser.text_to_structured(result.processed_text),
            )

        handler = StructuredContentHandler(document.content, **config.preservation_options())

        return ConvertSummary(
            output=self.render(document, handler, output_format),
            validation=handler.validate() if validate else None,
            warnings=warnings,
            preserved_count=preserved_count,
        )

    @staticmethod
    def render(document: LoadedDocument, handler: StructuredContentHandler, output_format: OutputFormat) -> str:
        """Render a document in the requested format.

        HTML input converted to markdown goes through the HTML converter so
        inline markup survives; every other combination uses the structured
        form.
        """
        if output_format == OutputFormat.HTML:
            return handler.to_html()

        if output_format == OutputFormat.MARKDOWN:
            if document.kind == InputKind.HTML:
                return ContentParser.html_to_markdown(document.raw)
            if document.kind == InputKind.TEXT:
                return document.raw.strip()
            return handler.to_markdown()

        if output_format == OutputFormat.JSON:
            return json.dumps(handler.get_content().to_dict(), indent=2)

        return handler.to_plain_text()

    @staticmethod
    def load_document(path: str) -> LoadedDocument:
        """Read a document and parse it by extension.

        Args:
            path: File to read (.json, .html/.htm, anything else is text)

        Returns:
            LoadedDocument with raw and structured content

        Raises:
            InputError: If the file cannot be read or parsed
        """
        try:
            raw = Path(path).read_text(encoding='utf-8')
        except FileNotFoundError:
            raise InputError(path, "File not found")
        except (OSError, UnicodeDecodeError) as e:
            raise InputError(path, str(e))

        suffix = Path(path).suffix.lower()

        if suffix in JSON_EXTENSIONS:
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                raise InputError(path, f"Invalid JSON: {e}")
            if not ContentParser.validate_structured_content(data):
                logger.warning(f"Structured content in {path} failed shape validation")
            try:
                content = StructuredContent.from_dict(data)
            except ConversionError as e:
                raise InputError(path, str(e))
            return LoadedDocument(path=path, kind=InputKind.JSON, raw=raw, content=content)

        if suffix in HTML_EXTENSIONS:
            return LoadedDocument(
                path=path,
                kind=InputKind.HTML,
                raw=raw,
                content=ContentParser.html_to_structured(raw),
            )

        return LoadedDocument(
            path=path,
            kind=InputKind.TEXT,
            raw=raw,
            content=ContentParser.text_to_structured(raw),
        )

    def _load_config(self) -> EditorConfig:
        if not self.config_path:
            return EditorConfig()
        return ConfigLoader.load(self.config_path)
