"""Content parsing and format conversion.

ContentParser converts between plain text, HTML, markdown and the
universal structured document, and computes heuristic metadata used to
size AI requests. All methods are pure: no state is kept between calls.
"""

import html
import logging
import math
import re
from typing import Any, Dict, List, Union

from bs4 import BeautifulSoup

from ..content_converter import markdown_converter
from .errors import ConversionError
from .models import (
    ContentBlock,
    ContentMetadata,
    ContentParseResult,
    StructuredContent,
    generate_block_id,
    heading_level,
)

logger = logging.getLogger(__name__)

STRUCTURED_VERSION = '1.0'

CHARS_PER_TOKEN = 4

FORMATTING_PATTERNS = [
    re.compile(r'\*\*.*?\*\*'),  # Bold
    re.compile(r'\*.*?\*'),  # Italic
    re.compile(r'`.*?`'),  # Code
    re.compile(r'^#+\s', re.MULTILINE),  # Headings
    re.compile(r'^\s*[-*+]\s', re.MULTILINE),  # Lists
    re.compile(r'^\s*\d+\.\s', re.MULTILINE),  # Numbered lists
]

LINK_PATTERNS = [
    re.compile(r'https?://\S+'),
    re.compile(r'\[.*?\]\(.*?\)'),  # Markdown links
    re.compile(r'<a\s+[^>]*href', re.IGNORECASE),  # HTML links
]

IMAGE_PATTERNS = [
    re.compile(r'!\[.*?\]\(.*?\)'),  # Markdown images
    re.compile(r'<img\s+[^>]*src', re.IGNORECASE),  # HTML images
]

HTML_BLOCK_TAGS = ['p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'li']

_TAG = re.compile(r'<[^>]*>')


class ContentParser:
    """Stateless conversions between content formats."""

    @classmethod
    def parse_content(
        cls, content: Union[str, StructuredContent, Dict[str, Any]]
    ) -> ContentParseResult:
        """Extract plain text and metadata from any supported content.

        Dictionaries are treated as serialised structured content. A
        malformed dictionary yields an empty result and a logged error.
        """
        if isinstance(content, str):
            return cls._parse_text_content(content)

        if isinstance(content, dict):
            try:
                content = StructuredContent.from_dict(content)
            except ConversionError as e:
                logger.error(f"Cannot parse structured content: {e}")
                return ContentParseResult(plain_text='', metadata=ContentMetadata())

        return cls._parse_structured_content(content)

    @classmethod
    def _parse_text_content(cls, text: str) -> ContentParseResult:
        return ContentParseResult(
            plain_text=text,
            metadata=ContentMetadata(
                word_count=cls.count_words(text),
                character_count=len(text),
                estimated_tokens=cls.estimate_tokens(text),
                has_formatting=any(p.search(text) for p in FORMATTING_PATTERNS),
                has_links=any(p.search(text) for p in LINK_PATTERNS),
                has_images=any(p.search(text) for p in IMAGE_PATTERNS),
            ),
        )

    @classmethod
    def _parse_structured_content(cls, content: StructuredContent) -> ContentParseResult:
        plain_text = cls.extract_plain_text(content)
        return ContentParseResult(
            plain_text=plain_text,
            structured_content=content,
            metadata=ContentMetadata(
                word_count=cls.count_words(plain_text),
                character_count=len(plain_text),
                estimated_tokens=cls.estimate_tokens(plain_text),
                has_formatting=cls._has_rich_formatting(content),
                has_links=bool(cls.find_blocks_of_type(content.content, 'link')),
                has_images=bool(cls.find_blocks_of_type(content.content, 'image')),
            ),
        )

    @classmethod
    def extract_plain_text(cls, content: StructuredContent) -> str:
        """Flatten a document: one line per top-level block.

        A block contributes its content followed by its children's text,
        separated by single spaces.
        """
        if not content.content:
            return ''
        return '\n'.join(cls.extract_block_text(block) for block in content.content).strip()

    @classmethod
    def extract_block_text(cls, block: ContentBlock) -> str:
        text = block.content or ''
        if block.children:
            child_text = ' '.join(cls.extract_block_text(child) for child in block.children)
            text += (' ' if text else '') + child_text
        return text

    @classmethod
    def text_to_structured(cls, text: str) -> StructuredContent:
        """One paragraph block per blank-line separated paragraph."""
        paragraphs = [p.strip() for p in text.split('\n\n') if p.strip()]
        return StructuredContent(
            content=[
                ContentBlock(id=generate_block_id(), type='paragraph', content=paragraph)
                for paragraph in paragraphs
            ],
            version=STRUCTURED_VERSION,
        )

    @classmethod
    def html_to_structured(cls, html_text: str) -> StructuredContent:
        """Build blocks from <p>, <h1>-<h6> and <li> elements.

        Elements are taken in document order. Paragraphs nested in a list
        item belong to that item, and empty elements are skipped. When no
        such element exists, the whole input becomes a single paragraph.
        """
        soup = BeautifulSoup(html_text or '', 'html.parser')
        blocks: List[ContentBlock] = []

        for element in soup.find_all(HTML_BLOCK_TAGS):
            if element.name == 'p' and element.find_parent('li') is not None:
                continue

            if element.name == 'li':
                text = element.get_text(' ', strip=True)
            else:
                text = element.get_text().strip()
            if not text:
                continue

            if element.name.startswith('h'):
                blocks.append(ContentBlock(
                    id=generate_block_id(),
                    type='heading',
                    content=text,
                    attributes={'level': int(element.name[1])},
                ))
            elif element.name == 'li':
                blocks.append(ContentBlock(id=generate_block_id(), type='list', content=text))
            else:
                blocks.append(ContentBlock(id=generate_block_id(), type='paragraph', content=text))

        if not blocks:
            blocks.append(ContentBlock(
                id=generate_block_id(),
                type='paragraph',
                content=cls.strip_html_tags(html_text or ''),
            ))

        return StructuredContent(content=blocks, version=STRUCTURED_VERSION)

    @classmethod
    def structured_to_html(cls, content: StructuredContent) -> str:
        if not content.content:
            return ''
        return '\n'.join(cls._block_to_html(block) for block in content.content)

    @classmethod
    def _block_to_html(cls, block: ContentBlock) -> str:
        text = cls.escape_html(block.content or '')
        attributes = block.attributes or {}

        if block.type == 'heading':
            level = heading_level(attributes.get('level'))
            return f"<h{level}>{text}</h{level}>"

        if block.type == 'list':
            items = [child.content for child in block.children or []]
            if not items and block.content:
                items = [block.content]
            list_items = '\n'.join(f"<li>{cls.escape_html(item or '')}</li>" for item in items)
            return f"<ul>\n{list_items}\n</ul>"

        if block.type == 'code':
            language = cls.escape_html(str(attributes.get('language') or ''))
            return f'<pre><code class="language-{language}">{text}</code></pre>'

        if block.type == 'quote':
            return f"<blockquote>{text}</blockquote>"

        if block.type == 'link':
            href = cls.escape_html(str(attributes.get('href') or '#'))
            return f'<a href="{href}">{text}</a>'

        if block.type == 'image':
            src = cls.escape_html(str(attributes.get('src') or ''))
            alt = cls.escape_html(str(attributes.get('alt') or block.content or ''))
            return f'<img src="{src}" alt="{alt}" />'

        return f"<p>{text}</p>"

    @classmethod
    def structured_to_markdown(cls, content: StructuredContent) -> str:
        if not content.content:
            return ''
        return '\n\n'.join(cls._block_to_markdown(block) for block in content.content)

    @classmethod
    def _block_to_markdown(cls, block: ContentBlock) -> str:
        text = block.content or ''
        attributes = block.attributes or {}

        if block.type == 'heading':
            return f"{'#' * heading_level(attributes.get('level'))} {text}"

        if block.type == 'list':
            items = [child.content for child in block.children or []]
            if not items and text:
                items = [text]
            return '\n'.join(f"- {item}" for item in items)

        if block.type == 'code':
            language = attributes.get('language') or ''
            return f"```{language}\n{text}\n```"

        if block.type == 'quote':
            return '\n'.join(f"> {line}" for line in text.split('\n'))

        if block.type == 'link':
            return f"[{text}]({attributes.get('href') or '#'})"

        if block.type == 'image':
            alt = attributes.get('alt') or text
            return f"![{alt}]({attributes.get('src') or ''})"

        return text

    @classmethod
    def html_to_markdown(cls, html_text: str) -> str:
        """Convert HTML to markdown; falls back to tag-stripped text."""
        try:
            return markdown_converter.MarkdownConverter().html_to_markdown(html_text)
        except ConversionError as e:
            logger.warning(f"HTML to markdown conversion failed, using plain text: {e}")
            return cls.strip_html_tags(html_text)

    @staticmethod
    def count_words(text: str) -> int:
        return len(text.split())

    @staticmethod
    def estimate_tokens(text: str) -> int:
        # Rough estimation: ~4 characters per token
        return math.ceil(len(text) / CHARS_PER_TOKEN)

    @classmethod
    def _has_rich_formatting(cls, content: StructuredContent) -> bool:
        return any(
            block.type != 'paragraph' or bool(block.attributes) or bool(block.children)
            for block in content.content
        )

    @classmethod
    def find_blocks_of_type(cls, blocks: List[ContentBlock], block_type: str) -> List[ContentBlock]:
        """Depth-first search for blocks of a type."""
        found: List[ContentBlock] = []
        for block in blocks or []:
            if block.type == block_type:
                found.append(block)
            if block.children:
                found.extend(cls.find_blocks_of_type(block.children, block_type))
        return found

    @staticmethod
    def strip_html_tags(text: str) -> str:
        return html.unescape(_TAG.sub('', text)).strip()

    @staticmethod
    def escape_html(text: str) -> str:
        return html.escape(text, quote=True)

    @classmethod
    def validate_structured_content(
        cls, content: Union[StructuredContent, Dict[str, Any]]
    ) -> bool:
        """Check document shape; never raises."""
        if isinstance(content, StructuredContent):
            content = content.to_dict()

        if not isinstance(content, dict):
            return False
        if content.get('type') != 'doc':
            return False
        if not isinstance(content.get('content'), list):
            return False
        return all(cls._validate_content_block(block) for block in content['content'])

    @classmethod
    def _validate_content_block(cls, block: Any) -> bool:
        if not isinstance(block, dict):
            return False
        if not block.get('id') or not isinstance(block['id'], str):
            return False
        if not block.get('type') or not isinstance(block['type'], str):
            return False
        if block.get('content') is not None and not isinstance(block['content'], str):
            return False

        children = block.get('children')
        if children is None:
            return True
        if not isinstance(children, list):
            return False
        return all(cls._validate_content_block(child) for child in children)
