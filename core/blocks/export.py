"""
Export serializers for block documents.

to_html() produces a complete standalone HTML document, to_text() a plain
text transcript. Both convert block by block: a block that fails to convert
is replaced by an empty emission and logged, so one bad block never aborts
the whole document.
"""

import html
import logging
import re
from dataclasses import dataclass

from .media import to_embed_url
from .types import (
    Block,
    BlockData,
    BlockDocument,
    CodeData,
    DelimiterData,
    EmbedData,
    HeaderData,
    ImageData,
    ListData,
    ParagraphData,
    QuizData,
    QuoteData,
    TableData,
    TextData,
    UnknownData,
    VideoData,
    parse_block_data,
)

logger = logging.getLogger(__name__)


# Underline characters for text headers, indexed by level - 1
HEADER_UNDERLINES = ("=", "-", "~", "^", "+", "*")

_TAG_RE = re.compile(r"<[^>]+>")
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)

BASE_STYLES = """
  body { font-family: Georgia, "Times New Roman", serif; line-height: 1.6;
         max-width: 800px; margin: 0 auto; padding: 2rem; color: #111; }
  h1, h2, h3, h4, h5, h6 { page-break-after: avoid; }
  pre { background: #f5f5f5; border: 1px solid #ddd; padding: 1rem;
        white-space: pre-wrap; page-break-inside: avoid; }
  blockquote { border-left: 4px solid #999; margin: 1rem 0; padding-left: 1rem; }
  figure { text-align: center; margin: 1.5rem 0; page-break-inside: avoid; }
  img { max-width: 100%; height: auto; }
  table { border-collapse: collapse; width: 100%; }
  th, td { border: 1px solid #999; padding: 0.5rem; text-align: left; }
  .delimiter { text-align: center; letter-spacing: 0.5em; margin: 2rem 0; }
  .lesson-meta { border-bottom: 1px solid #ddd; margin-bottom: 2rem; }
  @media print { a { color: inherit; } iframe { display: none; } }
"""


@dataclass
class DocumentMeta:
    """Lesson metadata shown at the top of an export."""
    title: str
    duration: int | None = None  # Minutes
    order: int | None = None
    is_published: bool | None = None


def strip_tags(text: str) -> str:
    """Remove inline markup from a free-text field, keeping line breaks."""
    text = _BR_RE.sub("\n", text)
    return html.unescape(_TAG_RE.sub("", text)).strip()


def _meta_lines(meta: DocumentMeta) -> list[tuple[str, str]]:
    lines = []
    if meta.duration is not None:
        lines.append(("Duration", f"{meta.duration} minutes"))
    if meta.order is not None:
        lines.append(("Order", str(meta.order)))
    if meta.is_published is not None:
        lines.append(("Status", "Published" if meta.is_published else "Draft"))
    return lines


# =============================================================================
# HTML
# =============================================================================


def _html_comment(text: str) -> str:
    return f"<!-- {text.replace('--', '- -')} -->"


def block_to_html(data: BlockData) -> str:
    """Convert one typed block to an HTML fragment."""
    if isinstance(data, (ParagraphData, TextData)):
        return f"<p>{data.text}</p>"
    elif isinstance(data, HeaderData):
        return f"<h{data.level}>{data.text}</h{data.level}>"
    elif isinstance(data, ListData):
        tag = "ol" if data.style == "ordered" else "ul"
        items = "".join(f"<li>{item}</li>" for item in data.items)
        return f"<{tag}>{items}</{tag}>"
    elif isinstance(data, CodeData):
        language = f' class="language-{html.escape(data.language)}"' if data.language else ""
        return f"<pre><code{language}>{html.escape(data.code)}</code></pre>"
    elif isinstance(data, QuoteData):
        cite = f"<cite>{data.caption}</cite>" if data.caption else ""
        return f"<blockquote><p>{data.text}</p>{cite}</blockquote>"
    elif isinstance(data, ImageData):
        caption = f"<figcaption>{data.caption}</figcaption>" if data.caption else ""
        return (
            f'<figure><img src="{html.escape(data.url)}" alt="{html.escape(data.alt)}">'
            f"{caption}</figure>"
        )
    elif isinstance(data, VideoData):
        caption = f"<figcaption>{data.caption}</figcaption>" if data.caption else ""
        src = html.escape(to_embed_url(data.url))
        return (
            f'<figure class="video"><iframe src="{src}" width="640" height="360" '
            f'frameborder="0" allowfullscreen></iframe>{caption}</figure>'
        )
    elif isinstance(data, TableData):
        rows = []
        for i, row in enumerate(data.content):
            cell_tag = "th" if i == 0 and data.with_headings else "td"
            cells = "".join(f"<{cell_tag}>{cell}</{cell_tag}>" for cell in row)
            rows.append(f"<tr>{cells}</tr>")
        return f"<table>{''.join(rows)}</table>"
    elif isinstance(data, DelimiterData):
        return '<div class="delimiter">* * *</div>'
    elif isinstance(data, EmbedData):
        if data.embed.lstrip().startswith("<"):
            return data.embed
        caption = f"<figcaption>{data.caption}</figcaption>" if data.caption else ""
        width = f' width="{data.width}"' if data.width else ""
        height = f' height="{data.height}"' if data.height else ""
        return (
            f'<figure class="embed"><iframe src="{html.escape(data.embed)}"{width}{height} '
            f'frameborder="0" allowfullscreen></iframe>{caption}</figure>'
        )
    elif isinstance(data, QuizData):
        options = "".join(f"<li>{html.escape(option)}</li>" for option in data.options)
        return (
            f'<section class="quiz"><p class="quiz-question">{html.escape(data.question)}</p>'
            f'<ol type="A">{options}</ol></section>'
        )
    elif isinstance(data, UnknownData):
        return _html_comment(f"Unknown block type: {data.type}")
    else:
        raise TypeError(f"Unhandled block data: {type(data).__name__}")


def _convert_html(block: Block, position: int) -> str:
    try:
        return block_to_html(parse_block_data(block))
    except Exception:
        logger.warning(
            f"Could not convert {block.type} block at position {position} to HTML",
            exc_info=True,
        )
        return _html_comment(f"Block {position} ({block.type}) could not be converted")


def to_html(doc: BlockDocument, meta: DocumentMeta | None = None) -> str:
    """
    Convert a document to a standalone HTML page.

    Args:
        doc: The block document
        meta: Optional lesson metadata for the title and header block

    Returns:
        Complete HTML document as a string
    """
    title = html.escape(meta.title) if meta else "Lesson"

    header = ""
    if meta:
        details = "".join(
            f"<p><strong>{label}:</strong> {html.escape(value)}</p>"
            for label, value in _meta_lines(meta)
        )
        header = f'<header class="lesson-meta">\n<h1>{title}</h1>\n{details}\n</header>\n'

    body = "\n".join(_convert_html(block, i) for i, block in enumerate(doc.blocks))

    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1">\n'
        f"<title>{title}</title>\n"
        f"<style>{BASE_STYLES}</style>\n"
        "</head>\n"
        "<body>\n"
        "<article>\n"
        f"{header}"
        f"{body}\n"
        "</article>\n"
        "</body>\n"
        "</html>\n"
    )


# =============================================================================
# Plain text
# =============================================================================


def block_to_text(data: BlockData) -> str:
    """Convert one typed block to plain text, including its trailing blank line."""
    if isinstance(data, (ParagraphData, TextData)):
        return f"{strip_tags(data.text)}\n\n"
    elif isinstance(data, HeaderData):
        text = strip_tags(data.text)
        underline = HEADER_UNDERLINES[data.level - 1] * max(len(text), 3)
        return f"{text}\n{underline}\n\n"
    elif isinstance(data, ListData):
        if data.style == "ordered":
            lines = [f"{i}. {strip_tags(item)}" for i, item in enumerate(data.items, start=1)]
        else:
            lines = [f"• {strip_tags(item)}" for item in data.items]
        return "\n".join(lines) + "\n\n"
    elif isinstance(data, CodeData):
        return f"```\n{data.code}\n```\n\n"
    elif isinstance(data, QuoteData):
        caption = f"— {strip_tags(data.caption)}\n" if data.caption else ""
        quoted = "\n".join(f"> {line}" for line in strip_tags(data.text).split("\n"))
        return f"{quoted}\n{caption}\n"
    elif isinstance(data, ImageData):
        label = strip_tags(data.alt) or strip_tags(data.caption) or "Image"
        return f"[{label}]\n\n"
    elif isinstance(data, VideoData):
        caption = f" {strip_tags(data.caption)}" if data.caption else ""
        return f"[Video:{caption} {data.url}]\n\n"
    elif isinstance(data, TableData):
        lines = []
        for i, row in enumerate(data.content):
            lines.append(" | ".join(strip_tags(cell) for cell in row))
            if i == 0:
                lines.append("---")
        return "\n".join(lines) + "\n\n"
    elif isinstance(data, DelimiterData):
        return "* * *\n\n"
    elif isinstance(data, QuizData):
        lines = [f"Quiz: {data.question}"]
        for i, option in enumerate(data.options):
            lines.append(f"  {chr(ord('A') + i % 26)}. {option}")
        return "\n".join(lines) + "\n\n"
    elif isinstance(data, (EmbedData, UnknownData)):
        # No stable text representation
        return ""
    else:
        raise TypeError(f"Unhandled block data: {type(data).__name__}")


def _convert_text(block: Block, position: int) -> str:
    try:
        return block_to_text(parse_block_data(block))
    except Exception:
        logger.warning(
            f"Could not convert {block.type} block at position {position} to text",
            exc_info=True,
        )
        return ""


def to_text(doc: BlockDocument, meta: DocumentMeta | None = None) -> str:
    """
    Convert a document to a plain text transcript.

    With meta, the transcript starts with the underlined title and one line
    per metadata field.
    """
    parts = []
    if meta:
        parts.append(f"{meta.title}\n{'=' * max(len(meta.title), 3)}\n\n")
        meta_lines = [f"{label}: {value}" for label, value in _meta_lines(meta)]
        if meta_lines:
            parts.append("\n".join(meta_lines) + "\n\n")

    parts.extend(_convert_text(block, i) for i, block in enumerate(doc.blocks))
    return "".join(parts)
