"""HTML to markdown conversion using markdownify.

Editor surfaces hand out HTML (rich-text editors, parsed pages) while the
AI layer and the rich-text processor work on markdown. This module turns
editor HTML into markdown with the same conventions the structured
content renderer uses: atx headings, '-' bullets and '*' emphasis.
"""

import logging
import re
from typing import Optional

from markdownify import MarkdownConverter as BaseMarkdownConverter

from ..editors.errors import ConversionError

logger = logging.getLogger(__name__)

_LANGUAGE_CLASS = re.compile(r'^(?:language|lang)-(.+)$')

# markdownify leaves runs of blank lines between blocks
_EXCESS_BLANK_LINES = re.compile(r'\n{3,}')


def _code_language(el) -> Optional[str]:
    """Read the fence language from a <pre><code class="language-x">."""
    code = el.find('code')
    classes = (code.get('class') if code is not None else None) or el.get('class') or []
    for css_class in classes:
        match = _LANGUAGE_CLASS.match(css_class)
        if match:
            return match.group(1)
    return None


class _CustomMarkdownConverter(BaseMarkdownConverter):
    """Custom markdownify converter with editor-friendly settings."""

    def __init__(self, **options):
        options.setdefault('heading_style', 'atx')  # Use # style headings
        options.setdefault('bullets', '-')  # Use - for bullets
        options.setdefault('strong_em_symbol', '*')  # Use * for bold/italic
        options.setdefault('code_language_callback', _code_language)
        super().__init__(**options)

    def convert_p(self, el, text, parent_tags):
        """Convert paragraph, folding paragraphs inside list items.

        Rich-text editors wrap every list item's text in a <p>, which would
        otherwise turn each item into a loose list entry.
        """
        text = text.strip()
        if not text:
            return ''

        if 'li' in parent_tags:
            return text + ' '
        if '_inline' in parent_tags:
            return ' ' + text + ' '
        return '\n\n%s\n\n' % text

    def convert_br(self, el, text, parent_tags):
        """Convert <br> tags, which editors emit for soft line breaks."""
        if '_inline' in parent_tags:
            return ' '
        if self.options['newline_style'].lower() == 'backslash':
            return '\\\n'
        return '  \n'


def _markdownify(html: str, **options) -> str:
    """Convert HTML to markdown using custom converter."""
    return _CustomMarkdownConverter(**options).convert(html)


class MarkdownConverter:
    """Converts editor HTML to markdown."""

    def html_to_markdown(self, html: str) -> str:
        """Convert HTML to markdown using markdownify.

        Args:
            html: HTML fragment or document produced by an editor

        Returns:
            Markdown string with normalised block spacing

        Raises:
            ConversionError: If markdownify fails on the input
        """
        if not html:
            return ""

        try:
            markdown = _markdownify(html)
        except Exception as e:
            raise ConversionError(f"Markdownify conversion failed: {e}") from e

        markdown = _EXCESS_BLANK_LINES.sub('\n\n', markdown).strip()
        logger.debug(f"Converted {len(html)} chars of HTML to {len(markdown)} chars of markdown")
        return markdown
