"""
Read-only rendering of lesson content into a display tree.

Lesson content has been stored in several shapes over time. render_content()
sniffs the shape (there is no schema version field to dispatch on) and
produces a tree of RenderNode objects that a frontend turns into markup.

Shape precedence, first match wins:
1. content is a dict with sections or narrative fields (legacy tutorial page)
2. lessons is a non-empty list (multi-lesson page with typed blocks)
3. content is a string (oldest legacy shape: pre-rendered markup)
4. content is a BlockDocument dict or a bare list of blocks (single lesson)
Anything else renders a "no content" placeholder.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from .media import to_embed_url
from .quiz import correct_option_index
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
    document_from_dict,
    parse_block_data,
)

logger = logging.getLogger(__name__)

NO_CONTENT_MESSAGE = "No content available"
NARRATIVE_FIELDS = ("sections", "title", "introduction", "videoUrl")


@dataclass
class RenderNode:
    """One node of the display tree."""
    kind: str
    props: dict[str, Any] = field(default_factory=dict)
    children: list["RenderNode"] = field(default_factory=list)
    hidden: bool = False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"kind": self.kind, "props": self.props}
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        if self.hidden:
            result["hidden"] = True
        return result


def _text_lines(text: str) -> list[str]:
    # Some stored text has escaped newlines ("\\n") instead of real ones
    return text.replace("\\n", "\n").split("\n")


# =============================================================================
# Per-block rendering
# =============================================================================


def render_block_data(data: BlockData) -> RenderNode:
    """Render one typed block."""
    if isinstance(data, TextData):
        return RenderNode("text", {"lines": _text_lines(data.text)})
    elif isinstance(data, ParagraphData):
        return RenderNode("paragraph", {"html": data.text})
    elif isinstance(data, HeaderData):
        return RenderNode("heading", {"level": data.level, "html": data.text})
    elif isinstance(data, ListData):
        return RenderNode("list", {"ordered": data.style == "ordered", "items": data.items})
    elif isinstance(data, CodeData):
        return RenderNode("code", {
            "code": data.code,
            "language": data.language or "code",
            "caption": data.caption,
            "copyable": True,
        })
    elif isinstance(data, QuoteData):
        return RenderNode("quote", {"html": data.text, "caption": data.caption})
    elif isinstance(data, ImageData):
        return RenderNode("image", {
            "src": data.url,
            "alt": data.alt or "Lesson image",
            "caption": data.caption,
            "align": "center",
        })
    elif isinstance(data, VideoData):
        return RenderNode("video", {
            "src": to_embed_url(data.url),
            "title": data.caption or "Video content",
            "caption": data.caption,
            "aspect_ratio": "16:9",
        })
    elif isinstance(data, TableData):
        rows = data.content
        if data.with_headings and rows:
            return RenderNode("table", {"header": rows[0], "rows": rows[1:]})
        return RenderNode("table", {"header": None, "rows": rows})
    elif isinstance(data, DelimiterData):
        return RenderNode("delimiter")
    elif isinstance(data, EmbedData):
        return RenderNode("embed", {
            "service": data.service,
            "src": data.embed,
            "source": data.source,
            "caption": data.caption,
            "width": data.width,
            "height": data.height,
        })
    elif isinstance(data, QuizData):
        return RenderNode("quiz", {
            "question": data.question,
            "options": data.options,
            "correct_answer": correct_option_index(data),
            "interactive": True,
        })
    elif isinstance(data, UnknownData):
        return RenderNode("unsupported", {"type": data.type}, hidden=True)
    else:
        raise TypeError(f"Unhandled block data: {type(data).__name__}")


def render_block(block: Block, position: int = 0) -> RenderNode:
    """Render one block; a failure yields an error node instead of raising."""
    try:
        return render_block_data(parse_block_data(block))
    except Exception:
        logger.warning(f"Failed to render {block.type} block at position {position}", exc_info=True)
        return RenderNode("error", {"type": block.type, "message": "This block could not be displayed"})


def render_blocks(blocks: list[Block]) -> list[RenderNode]:
    return [render_block(block, i) for i, block in enumerate(blocks)]


def render_document(doc: BlockDocument) -> RenderNode:
    """Render a single BlockDocument."""
    if not doc.blocks:
        return RenderNode("placeholder", {"message": NO_CONTENT_MESSAGE})
    return RenderNode("document", children=render_blocks(doc.blocks))


# =============================================================================
# Legacy narrative shape
# =============================================================================


def _render_section(section: dict, index: int) -> RenderNode:
    title = section.get("title") or ""
    node = RenderNode("section", {"id": f"section-{index}", "title": title})

    if section.get("text"):
        for paragraph in str(section["text"]).split("\n\n"):
            node.children.append(RenderNode("paragraph", {"text": paragraph}))

    if section.get("videoUrl"):
        node.children.append(RenderNode("video", {
            "src": to_embed_url(section["videoUrl"]),
            "title": title,
            "aspect_ratio": "16:9",
        }))

    if section.get("code"):
        node.children.append(RenderNode("code", {
            "code": section["code"],
            "language": section.get("language") or "html",
            "title": section.get("codeTitle") or "Example",
            "line_numbers": True,
            "copyable": True,
        }))

    if section.get("output"):
        node.children.append(RenderNode("output", {"html": section["output"]}))

    if section.get("note"):
        node.children.append(RenderNode("note", {"text": section["note"]}))

    return node


def _render_narrative(content: dict) -> RenderNode:
    root = RenderNode("narrative", {"title": content.get("title") or ""})

    if content.get("introduction"):
        root.children.append(RenderNode("introduction", {"text": content["introduction"]}))

    if content.get("videoUrl"):
        root.children.append(RenderNode("video", {
            "src": to_embed_url(content["videoUrl"]),
            "title": content.get("title") or "",
            "aspect_ratio": "16:9",
        }))

    sections = [s for s in content.get("sections") or [] if isinstance(s, dict)]
    if sections:
        root.children.append(RenderNode("toc", {
            "entries": [
                {"id": f"section-{i}", "title": s.get("title") or ""}
                for i, s in enumerate(sections)
            ],
        }))

    for i, section in enumerate(sections):
        try:
            root.children.append(_render_section(section, i))
        except Exception:
            logger.warning(f"Failed to render legacy section {i}", exc_info=True)
            root.children.append(RenderNode("error", {"message": "This section could not be displayed"}))

    return root


# =============================================================================
# Multi-lesson shape
# =============================================================================


def _lesson_blocks(content: Any) -> list[Block]:
    if isinstance(content, dict):
        return document_from_dict(content).blocks
    if isinstance(content, list):
        return document_from_dict({"blocks": content}).blocks
    return []


def _render_lessons(lessons: list) -> RenderNode:
    root = RenderNode("lessons")
    for i, lesson in enumerate(lessons):
        if not isinstance(lesson, dict):
            continue
        node = RenderNode("lesson", {"index": i, "title": lesson.get("title") or ""})
        node.children.append(RenderNode("heading", {"level": 2, "html": lesson.get("title") or ""}))
        node.children.extend(render_blocks(_lesson_blocks(lesson.get("content"))))
        root.children.append(node)
    return root


def _is_narrative(content: Any) -> bool:
    if not isinstance(content, dict):
        return False
    return "sections" in content or any(content.get(f) for f in NARRATIVE_FIELDS)


def _is_block_document(content: Any) -> bool:
    return isinstance(content, dict) and isinstance(content.get("blocks"), list)


def render_content(payload: dict) -> RenderNode:
    """
    Render lesson content of any stored shape.

    Args:
        payload: Dict with a "content" and/or "lessons" field

    Returns:
        Root RenderNode; a placeholder node when nothing is renderable
    """
    content = payload.get("content")
    lessons = payload.get("lessons")

    if _is_narrative(content):
        return _render_narrative(content)
    if isinstance(lessons, list) and lessons:
        return _render_lessons(lessons)
    if isinstance(content, str) and content.strip():
        return RenderNode("raw_html", {"html": content})
    if _is_block_document(content):
        return render_document(document_from_dict(content))
    if isinstance(content, list):
        # Bare block array, as saved by the lesson editor
        return render_document(document_from_dict({"blocks": content}))

    return RenderNode("placeholder", {"message": NO_CONTENT_MESSAGE})
