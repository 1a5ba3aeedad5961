"""Sample documents for testing.

These fixtures represent content used for:
- Parsing and converting between text, HTML, markdown and structured JSON
- Re-injecting links, images and emphasis into AI rewrites
- Driving the editor-bridge CLI end to end
"""

from src.editors.models import ContentBlock, StructuredContent

# Plain text with two paragraphs
SAMPLE_TEXT_SIMPLE = """Hello world

Second paragraph here."""

# Markdown with a link, an image and emphasis
SAMPLE_MARKDOWN_RICH = """Read the [project guide](https://example.com/guide) before you start.

![Architecture diagram](https://example.com/arch.png)

The **core** idea is simple."""

# HTML as a rich-text editor would serialise it
SAMPLE_HTML_SIMPLE = """<h1>Title</h1>
<p>First paragraph.</p>
<ul>
<li><p>Item one</p></li>
<li><p>Item two</p></li>
</ul>"""

# Structured JSON document (as stored on disk)
SAMPLE_STRUCTURED_DICT = {
    "type": "doc",
    "version": "1.0",
    "content": [
        {"id": "h1", "type": "heading", "content": "Title", "attributes": {"level": 1}},
        {"id": "p1", "type": "paragraph", "content": "Hello world"},
        {
            "id": "l1",
            "type": "list",
            "content": "",
            "children": [
                {"id": "i1", "type": "paragraph", "content": "One"},
                {"id": "i2", "type": "paragraph", "content": "Two"},
            ],
        },
    ],
}

# Structured JSON with a block missing its id
SAMPLE_STRUCTURED_INVALID_DICT = {
    "type": "doc",
    "content": [
        {"type": "paragraph", "content": "No id here"},
    ],
}


def get_sample_structured_content() -> StructuredContent:
    """Create the sample structured document.

    Returns:
        StructuredContent with a heading, a paragraph and a two-item list

    Example:
        >>> content = get_sample_structured_content()
        >>> assert len(content.content) == 3
    """
    return StructuredContent.from_dict(SAMPLE_STRUCTURED_DICT)


def get_paragraphs_content(*texts: str) -> StructuredContent:
    """Create a document with one paragraph per text, ids p1, p2, ..."""
    return StructuredContent(
        content=[
            ContentBlock(id=f"p{index}", type="paragraph", content=text)
            for index, text in enumerate(texts, start=1)
        ],
        version="1.0",
    )
