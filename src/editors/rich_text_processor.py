"""Formatting preservation for AI rewrites.

When an AI rewrites a passage it usually returns plain prose: links,
images and emphasis from the original are gone. RichTextProcessor finds
those elements in the original (markdown, HTML or structured content)
and re-injects them into the rewrite where the same text still appears.

Matching is approximate by nature. Text is located by case-insensitive
substring search, falling back to the first meaningful word; anything
that cannot be placed is reported as a warning rather than guessed.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .content_parser import ContentParser
from .models import ContentBlock, StructuredContent

logger = logging.getLogger(__name__)

LINK_RE = re.compile(r'(?<!!)\[([^\]]+)\]\(([^)\s]+)(?:\s+"([^"]*)")?\)')
IMAGE_RE = re.compile(r'!\[([^\]]*)\]\(([^)\s]+)(?:\s+"([^"]*)")?\)')
BOLD_RE = re.compile(r'\*\*(.+?)\*\*')
ITALIC_RE = re.compile(r'(?<!\*)\*(?!\*)(.+?)(?<!\*)\*(?!\*)')
CODE_RE = re.compile(r'`([^`]+)`')

# Spans a reinserted link or image must not land inside
MARKUP_PATTERNS = (LINK_RE, IMAGE_RE, CODE_RE)
# Spans inline formatting must not be wrapped around again
INLINE_MARKUP_PATTERNS = MARKUP_PATTERNS + (BOLD_RE, ITALIC_RE)

INLINE_MARKERS = {
    'bold': '**',
    'italic': '*',
    'code': '`',
}

HTML_HINT = re.compile(
    r'<(a|img|p|h[1-6]|strong|em|b|i|code|ul|ol|li|br|div|span|blockquote|pre)\b',
    re.IGNORECASE,
)

IMAGE_REFERENCE_TERMS = ('image', 'picture', 'photo')

# Only words longer than this are used for approximate matching
MIN_MATCH_WORD_LENGTH = 3

SIMILAR_TEXT_WINDOW = 20

Content = Union[str, StructuredContent]


@dataclass
class RichTextElement:
    """An inline element found in content.

    Attributes:
        type: link, image, bold, italic or code
        start: Offset of the element markup
        end: End offset of the element markup
        content: Visible text (link text, alt text, emphasised text)
        attributes: href/title for links, src/alt/title for images
        raw: The markup exactly as it appears in the text
    """

    type: str
    start: int
    end: int
    content: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    raw: str = ''


@dataclass
class MediaElement:
    type: str
    src: str
    alt: Optional[str] = None
    title: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    position: int = 0


@dataclass
class LinkElement:
    href: str
    text: str
    title: Optional[str] = None
    position: int = 0
    length: int = 0


@dataclass
class SimilarText:
    """A located piece of text in a rewrite."""

    text: str
    position: int


@dataclass
class FormattingPreservationResult:
    processed_text: str
    preserved_elements: List[RichTextElement] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class ElementValidation:
    valid: List[RichTextElement] = field(default_factory=list)
    invalid: List[RichTextElement] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class RichTextProcessor:
    """Extracts rich-text elements and re-applies them to AI output.

    Attributes:
        preserve_links: Re-inject links into rewrites
        preserve_images: Re-inject images into rewrites
        preserve_formatting: Re-apply bold/italic/code spans
        preserve_structure: Keep original block attributes when merging blocks
    """

    def __init__(
        self,
        preserve_links: bool = True,
        preserve_images: bool = True,
        preserve_formatting: bool = True,
        preserve_structure: bool = True,
    ):
        self.preserve_links = preserve_links
        self.preserve_images = preserve_images
        self.preserve_formatting = preserve_formatting
        self.preserve_structure = preserve_structure

    # ----- Extraction -----

    def extract_rich_text_elements(self, content: Content) -> List[RichTextElement]:
        """Find links, images and emphasis, sorted by position.

        HTML strings are converted to markdown first, so positions refer
        to the markdown form.
        """
        if isinstance(content, StructuredContent):
            return self._extract_from_structured(content)
        return self._extract_from_text(self._normalize(content))

    def extract_links(self, content: Content) -> List[LinkElement]:
        return [
            LinkElement(
                href=element.attributes.get('href', ''),
                text=element.content,
                title=element.attributes.get('title'),
                position=element.start,
                length=element.end - element.start,
            )
            for element in self.extract_rich_text_elements(content)
            if element.type == 'link'
        ]

    def extract_media_elements(self, content: Content) -> List[MediaElement]:
        return [
            MediaElement(
                type='image',
                src=element.attributes.get('src', ''),
                alt=element.attributes.get('alt') or element.content,
                title=element.attributes.get('title'),
                attributes=dict(element.attributes),
                position=element.start,
            )
            for element in self.extract_rich_text_elements(content)
            if element.type == 'image'
        ]

    def _normalize(self, text: str) -> str:
        if text and HTML_HINT.search(text):
            return ContentParser.html_to_markdown(text)
        return text

    def _extract_from_text(self, text: str) -> List[RichTextElement]:
        elements: List[RichTextElement] = []

        for match in LINK_RE.finditer(text):
            attributes = {'href': match.group(2)}
            if match.group(3):
                attributes['title'] = match.group(3)
            elements.append(RichTextElement(
                type='link',
                start=match.start(),
                end=match.end(),
                content=match.group(1),
                attributes=attributes,
                raw=match.group(0),
            ))

        for match in IMAGE_RE.finditer(text):
            attributes = {'src': match.group(2), 'alt': match.group(1)}
            if match.group(3):
                attributes['title'] = match.group(3)
            elements.append(RichTextElement(
                type='image',
                start=match.start(),
                end=match.end(),
                content=match.group(1),
                attributes=attributes,
                raw=match.group(0),
            ))

        for element_type, pattern in (('bold', BOLD_RE), ('italic', ITALIC_RE), ('code', CODE_RE)):
            for match in pattern.finditer(text):
                elements.append(RichTextElement(
                    type=element_type,
                    start=match.start(),
                    end=match.end(),
                    content=match.group(1),
                    raw=match.group(0),
                ))

        return sorted(elements, key=lambda element: element.start)

    def _extract_from_structured(self, content: StructuredContent) -> List[RichTextElement]:
        elements: List[RichTextElement] = []
        position = 0
        for block in content.content:
            self._extract_from_block(block, position, elements)
            position += len(ContentParser.extract_block_text(block)) + 1  # newline
        return elements

    def _extract_from_block(self, block: ContentBlock, start: int, elements: List[RichTextElement]) -> None:
        attributes = block.attributes or {}
        if block.type == 'link' and attributes.get('href'):
            element_type = 'link'
        elif block.type == 'image' and attributes.get('src'):
            element_type = 'image'
        else:
            element_type = None

        if element_type:
            elements.append(RichTextElement(
                type=element_type,
                start=start,
                end=start + len(block.content),
                content=block.content,
                attributes=dict(attributes),
                raw=block.content,
            ))

        if block.children:
            child_position = start + len(block.content) + (1 if block.content else 0)
            for child in block.children:
                self._extract_from_block(child, child_position, elements)
                child_position += len(ContentParser.extract_block_text(child)) + 1

    # ----- Matching -----

    def find_similar_text(self, target_text: str, search_text: str) -> Optional[SimilarText]:
        """Locate target text (or its first meaningful word) in a rewrite.

        An exact case-insensitive match wins. Otherwise the first word
        longer than three characters is searched for, and a window of up to
        twenty characters on each side of it is returned.
        """
        if not target_text or not search_text:
            return None

        search_lower = search_text.lower()
        index = search_lower.find(target_text.lower())
        if index != -1:
            return SimilarText(search_text[index:index + len(target_text)], index)

        for word in target_text.lower().split():
            if len(word) <= MIN_MATCH_WORD_LENGTH:
                continue
            index = search_lower.find(word)
            if index == -1:
                continue
            start = max(0, index - SIMILAR_TEXT_WINDOW)
            end = min(len(search_text), index + len(word) + SIMILAR_TEXT_WINDOW)
            window = search_text[start:end]
            stripped = window.strip()
            return SimilarText(stripped, start + (len(window) - len(window.lstrip())))

        return None

    def find_image_reference(self, image: MediaElement, text: str) -> Optional[SimilarText]:
        """Find where a rewrite refers to an image (alt, title or a generic word)."""
        text_lower = text.lower()
        for term in (image.alt, image.title) + IMAGE_REFERENCE_TERMS:
            if not term:
                continue
            index = text_lower.find(term.lower())
            if index != -1:
                return SimilarText(text[index:index + len(term)], index)
        return None

    def find_best_image_position(self, text: str, image_alt: str) -> int:
        """Offset just after the first paragraph that mentions the alt text.

        Returns:
            Insert offset, or -1 when no paragraph mentions the image
        """
        if not image_alt:
            return -1

        alt_lower = image_alt.lower()
        paragraphs = text.split('\n\n')
        for index, paragraph in enumerate(paragraphs):
            if alt_lower in paragraph.lower():
                return len('\n\n'.join(paragraphs[:index + 1])) + 2
        return -1

    # ----- Re-injection -----

    def preserve_links_in_text(self, original_text: str, modified_text: str) -> str:
        if not self.preserve_links:
            return modified_text
        links = self.extract_links(original_text)
        if not links:
            return modified_text
        processed, _ = self.handle_links_in_ai_response(links, modified_text)
        return processed

    def preserve_images_in_text(self, original_text: str, modified_text: str) -> str:
        if not self.preserve_images:
            return modified_text
        media = self.extract_media_elements(original_text)
        if not media:
            return modified_text
        processed, _ = self.handle_media_in_ai_response(media, modified_text)
        return processed

    def handle_links_in_ai_response(
        self,
        original_links: List[LinkElement],
        ai_response: str,
    ) -> Tuple[str, List[LinkElement]]:
        """Wrap the first occurrence of each link's text in link markup.

        Returns:
            The processed response and the links that were placed
        """
        processed = ai_response
        preserved: List[LinkElement] = []

        for link in original_links:
            markup = self._link_markup(link.text, link.href, link.title)
            existing = processed.find(markup)
            if existing != -1:
                preserved.append(LinkElement(link.href, link.text, link.title, existing, len(markup)))
                continue

            similar = self.find_similar_text(link.text, processed)
            if similar is None or self._inside_markup(processed, similar.position, len(similar.text)):
                continue

            markup = self._link_markup(similar.text, link.href, link.title)
            processed = (
                processed[:similar.position]
                + markup
                + processed[similar.position + len(similar.text):]
            )
            preserved.append(LinkElement(link.href, similar.text, link.title, similar.position, len(markup)))

        return processed, preserved

    def handle_media_in_ai_response(
        self,
        original_media: List[MediaElement],
        ai_response: str,
    ) -> Tuple[str, List[MediaElement]]:
        """Put each image after the paragraph that refers to it.

        Images the response never mentions go after the paragraph that
        contains their alt text, or at the end.
        """
        processed = ai_response
        preserved: List[MediaElement] = []

        for media in original_media:
            if media.type != 'image':
                continue

            markup = self._image_markup(media.alt or '', media.src, media.title)
            if markup in processed:
                preserved.append(media)
                continue

            reference = self.find_image_reference(media, processed)
            if reference is not None:
                position = self._end_of_paragraph(processed, reference.position)
            else:
                position = self.find_best_image_position(processed, media.alt or '')

            processed, placed_at = self._insert_block_markup(processed, markup, position)
            preserved.append(MediaElement(
                type=media.type,
                src=media.src,
                alt=media.alt,
                title=media.title,
                attributes=dict(media.attributes),
                position=placed_at,
            ))

        return processed, preserved

    def reapply_inline_formatting(self, original_text: str, modified_text: str) -> str:
        """Re-wrap bold, italic and code spans whose text survived verbatim."""
        if not self.preserve_formatting:
            return modified_text

        processed = modified_text
        for element in self._extract_from_text(self._normalize(original_text)):
            marker = INLINE_MARKERS.get(element.type)
            if marker is None or not element.content.strip():
                continue
            if any(
                existing.type == element.type and existing.content == element.content
                for existing in self._extract_from_text(processed)
            ):
                continue

            index = self._find_unformatted(processed, element.content)
            if index == -1:
                continue

            processed = (
                processed[:index]
                + marker + element.content + marker
                + processed[index + len(element.content):]
            )
        return processed

    def preserve_formatting_in_structured(
        self,
        original_content: StructuredContent,
        modified_blocks: List[ContentBlock],
    ) -> List[ContentBlock]:
        """Carry block attributes from original blocks onto rewritten ones.

        Each rewritten block is matched to an original by id, then by
        index, then by type and similar length.
        """
        if not self.preserve_formatting or not self.preserve_structure:
            return list(modified_blocks)

        result = []
        for index, modified in enumerate(modified_blocks):
            original = self._find_corresponding_block(original_content, modified, index)
            if original is None:
                result.append(modified)
            else:
                result.append(self.merge_block_formatting(original, modified))
        return result

    @staticmethod
    def merge_block_formatting(original: ContentBlock, modified: ContentBlock) -> ContentBlock:
        """Rewritten block with the original attributes underneath its own."""
        return ContentBlock(
            id=modified.id,
            type=modified.type,
            content=modified.content,
            attributes={**(original.attributes or {}), **(modified.attributes or {})},
            children=modified.children,
        )

    # ----- Orchestration -----

    def process_ai_response(self, original_content: Content, ai_response: str) -> FormattingPreservationResult:
        """Re-inject the original's links, images and emphasis into an AI response.

        Never raises: failures are reported in ``errors`` and the response
        is returned unchanged.
        """
        try:
            return self._process(original_content, ai_response)
        except Exception as e:
            logger.exception("Failed to process AI response")
            return FormattingPreservationResult(
                processed_text=ai_response,
                errors=[f"Failed to process AI response: {e}"],
            )

    def _process(self, original_content: Content, ai_response: str) -> FormattingPreservationResult:
        if isinstance(original_content, StructuredContent):
            original_text = ContentParser.extract_plain_text(original_content)
        else:
            original_text = self._normalize(original_content)

        processed = ai_response
        warnings: List[str] = []
        placed_hrefs = set()
        placed_srcs = set()

        if self.preserve_links:
            links = self.extract_links(original_content)
            processed, preserved_links = self.handle_links_in_ai_response(links, processed)
            placed_hrefs = {link.href for link in preserved_links}
            for link in links:
                if link.href not in placed_hrefs:
                    warnings.append(f"Link '{link.text}' ({link.href}) could not be placed in the response")

        if self.preserve_images:
            media = self.extract_media_elements(original_content)
            processed, preserved_media = self.handle_media_in_ai_response(media, processed)
            placed_srcs = {item.src for item in preserved_media}

        formatting_before = set()
        if self.preserve_formatting:
            formatting_before = {
                element.raw for element in self._extract_from_text(processed)
                if element.type in INLINE_MARKERS
            }
            processed = self.reapply_inline_formatting(original_text, processed)

        preserved_elements = []
        for element in self._extract_from_text(processed):
            if element.type == 'link' and element.attributes.get('href') in placed_hrefs:
                preserved_elements.append(element)
            elif element.type == 'image' and element.attributes.get('src') in placed_srcs:
                preserved_elements.append(element)
            elif element.type in INLINE_MARKERS and self.preserve_formatting \
                    and element.raw not in formatting_before:
                preserved_elements.append(element)

        logger.debug(
            f"Preserved {len(preserved_elements)} element(s) in AI response "
            f"({len(warnings)} warning(s))"
        )
        return FormattingPreservationResult(
            processed_text=processed,
            preserved_elements=preserved_elements,
            warnings=warnings,
        )

    def validate_rich_text_elements(self, elements: List[RichTextElement], text: str) -> ElementValidation:
        """Check that elements still sit at their recorded positions."""
        result = ElementValidation()
        for element in elements:
            if element.start < 0 or element.end > len(text) or element.start > element.end:
                result.invalid.append(element)
                result.warnings.append(
                    f"Element position out of bounds: {element.start}-{element.end} "
                    f"in text of length {len(text)}"
                )
                continue

            expected = element.raw or element.content
            actual = text[element.start:element.end]
            if actual == expected:
                result.valid.append(element)
            else:
                result.invalid.append(element)
                result.warnings.append(f'Element content mismatch: expected "{expected}", got "{actual}"')
        return result

    # ----- Helpers -----

    @staticmethod
    def _link_markup(text: str, href: str, title: Optional[str] = None) -> str:
        if title:
            return f'[{text}]({href} "{title}")'
        return f'[{text}]({href})'

    @staticmethod
    def _image_markup(alt: str, src: str, title: Optional[str] = None) -> str:
        if title:
            return f'![{alt}]({src} "{title}")'
        return f'![{alt}]({src})'

    @staticmethod
    def _inside_markup(text: str, start: int, length: int, patterns=MARKUP_PATTERNS) -> bool:
        """True when [start, start+length) overlaps a match of any pattern."""
        end = start + length
        for pattern in patterns:
            for match in pattern.finditer(text):
                if start < match.end() and end > match.start():
                    return True
        return False

    def _find_unformatted(self, text: str, content: str) -> int:
        """First occurrence of content outside any markup, or -1."""
        index = text.find(content)
        while index != -1:
            if not self._inside_markup(text, index, len(content), INLINE_MARKUP_PATTERNS):
                return index
            index = text.find(content, index + 1)
        return -1

    @staticmethod
    def _end_of_paragraph(text: str, position: int) -> int:
        index = text.find('\n\n', position)
        return -1 if index == -1 else index + 2

    @staticmethod
    def _insert_block_markup(text: str, markup: str, position: int) -> Tuple[str, int]:
        """Insert markup as its own paragraph; -1 or past-the-end appends."""
        if position == -1 or position >= len(text):
            if not text:
                return markup, 0
            return text + '\n\n' + markup, len(text) + 2
        return text[:position] + markup + '\n\n' + text[position:], position

    def _find_corresponding_block(
        self,
        original: StructuredContent,
        modified: ContentBlock,
        index: int,
    ) -> Optional[ContentBlock]:
        if modified.id:
            found = self._find_block_by_id(original.content, modified.id)
            if found is not None:
                return found

        if index < len(original.content):
            return original.content[index]

        for block in original.content:
            if block.type == modified.type and abs(len(block.content) - len(modified.content)) < 50:
                return block
        return None

    def _find_block_by_id(self, blocks: List[ContentBlock], block_id: str) -> Optional[ContentBlock]:
        for block in blocks:
            if block.id == block_id:
                return block
            if block.children:
                found = self._find_block_by_id(block.children, block_id)
                if found is not None:
                    return found
        return None
