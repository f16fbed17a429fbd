"""
Type definitions for block-structured lesson content.

A lesson's content is a BlockDocument: an ordered list of typed blocks in the
shape the editing widget saves (``{"time", "version", "blocks"}``). Blocks keep
their raw ``data`` dict so unknown types and unknown fields round-trip
untouched; typed views are produced on demand by ``parse_block_data``.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


# Format version written by the editing widget we ship with
CURRENT_VERSION = "2.28.2"

BLOCK_TYPES = frozenset({
    "paragraph",
    "header",
    "list",
    "code",
    "quote",
    "image",
    "video",
    "table",
    "delimiter",
    "embed",
    "quiz",
    "text",
})


@dataclass
class Block:
    """A single typed unit of lesson content."""
    type: str
    data: dict[str, Any] = field(default_factory=dict)
    id: str | None = None  # Widget-assigned block id, kept for round-trips
    # Stored payload of a malformed block, written back unchanged
    raw: Any = field(default=None, compare=False, repr=False)

    def to_dict(self) -> Any:
        if self.raw is not None:
            return self.raw
        result: dict[str, Any] = {"type": self.type, "data": self.data}
        if self.id is not None:
            result["id"] = self.id
        return result


@dataclass
class BlockDocument:
    """An ordered collection of blocks plus widget metadata."""
    time: int  # Epoch milliseconds
    version: str
    blocks: list[Block] = field(default_factory=list)


# =============================================================================
# Typed block data (tagged union)
# =============================================================================


@dataclass
class ParagraphData:
    text: str = ""


@dataclass
class HeaderData:
    text: str = ""
    level: int = 1


@dataclass
class ListData:
    style: str = "unordered"  # "ordered" | "unordered"
    items: list[str] = field(default_factory=list)


@dataclass
class CodeData:
    code: str = ""
    language: str = ""
    caption: str = ""


@dataclass
class QuoteData:
    text: str = ""
    caption: str = ""


@dataclass
class ImageData:
    url: str = ""
    alt: str = ""
    caption: str = ""


@dataclass
class VideoData:
    url: str = ""
    caption: str = ""


@dataclass
class TableData:
    content: list[list[str]] = field(default_factory=list)
    with_headings: bool = True


@dataclass
class DelimiterData:
    pass


@dataclass
class EmbedData:
    service: str = ""
    source: str = ""
    embed: str = ""
    caption: str = ""
    width: int | None = None
    height: int | None = None


@dataclass
class QuizData:
    question: str = ""
    options: list[str] = field(default_factory=list)
    correct_answer: int | str | None = None


@dataclass
class TextData:
    text: str = ""


@dataclass
class UnknownData:
    """Opaque data of a block whose type is not in BLOCK_TYPES."""
    type: str
    raw: dict[str, Any] = field(default_factory=dict)


BlockData = (
    ParagraphData
    | HeaderData
    | ListData
    | CodeData
    | QuoteData
    | ImageData
    | VideoData
    | TableData
    | DelimiterData
    | EmbedData
    | QuizData
    | TextData
    | UnknownData
)


# =============================================================================
# Model helpers
# =============================================================================


def now_ms() -> int:
    return int(time.time() * 1000)


def create_empty() -> BlockDocument:
    """Create a document with no blocks, stamped now."""
    return BlockDocument(time=now_ms(), version=CURRENT_VERSION, blocks=[])


def is_known_type(block_type: str) -> bool:
    return block_type in BLOCK_TYPES


def is_valid_block(block: Block | dict | Any) -> bool:
    """
    Check the minimal shape of a block.

    Unknown types are valid; only a missing type or non-dict data is not.
    """
    if isinstance(block, Block):
        block_type, data = block.type, block.data
    elif isinstance(block, dict):
        block_type, data = block.get("type"), block.get("data")
    else:
        return False

    return isinstance(block_type, str) and bool(block_type) and isinstance(data, dict)


def _str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _int_or_none(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _flatten_list_items(items: Any) -> list[str]:
    """Accept both plain string items and nested-list ``{content, items}`` dicts."""
    result = []
    for item in items or []:
        if isinstance(item, dict):
            result.append(_str(item.get("content") or item.get("text")))
            result.extend(_flatten_list_items(item.get("items")))
        else:
            result.append(_str(item))
    return result


def parse_block_data(block: Block) -> BlockData:
    """Parse a block's raw data into its typed view."""
    block_type = block.type
    data = block.data if isinstance(block.data, dict) else {}

    if block_type == "paragraph":
        return ParagraphData(text=_str(data.get("text")))
    elif block_type == "header":
        level = _int_or_none(data.get("level")) or 1
        return HeaderData(text=_str(data.get("text")), level=min(max(level, 1), 6))
    elif block_type == "list":
        return ListData(
            style=_str(data.get("style")) or "unordered",
            items=_flatten_list_items(data.get("items")),
        )
    elif block_type == "code":
        return CodeData(
            code=_str(data.get("code")),
            language=_str(data.get("language")),
            caption=_str(data.get("caption")),
        )
    elif block_type == "quote":
        return QuoteData(text=_str(data.get("text")), caption=_str(data.get("caption")))
    elif block_type == "image":
        # Image tool stores the URL under data.file.url; the authoring form uses data.url
        file_info = data.get("file") if isinstance(data.get("file"), dict) else {}
        return ImageData(
            url=_str(data.get("url") or file_info.get("url")),
            alt=_str(data.get("alt")),
            caption=_str(data.get("caption")),
        )
    elif block_type == "video":
        return VideoData(url=_str(data.get("url")), caption=_str(data.get("caption")))
    elif block_type == "table":
        rows = [
            [_str(cell) for cell in row]
            for row in data.get("content") or []
            if isinstance(row, list)
        ]
        return TableData(content=rows, with_headings=bool(data.get("withHeadings", True)))
    elif block_type == "delimiter":
        return DelimiterData()
    elif block_type == "embed":
        return EmbedData(
            service=_str(data.get("service")),
            source=_str(data.get("source")),
            embed=_str(data.get("embed")),
            caption=_str(data.get("caption")),
            width=_int_or_none(data.get("width")),
            height=_int_or_none(data.get("height")),
        )
    elif block_type == "quiz":
        return QuizData(
            question=_str(data.get("question")),
            options=[_str(option) for option in data.get("options") or []],
            correct_answer=data.get("correctAnswer"),
        )
    elif block_type == "text":
        return TextData(text=_str(data.get("text")))
    else:
        return UnknownData(type=block_type, raw=data)


# =============================================================================
# Conversion to and from the stored JSON shape
# =============================================================================


def _parse_block(raw: Any, position: int) -> Block:
    if not is_valid_block(raw):
        logger.warning(f"Invalid block at position {position}, keeping as placeholder")
        block_type = raw.get("type") if isinstance(raw, dict) else None
        return Block(type=_str(block_type) or "unknown", data={}, raw=raw)

    return Block(type=raw["type"], data=raw["data"], id=raw.get("id"))


def document_from_dict(raw: dict | None) -> BlockDocument:
    """
    Build a BlockDocument from its stored JSON shape.

    Args:
        raw: Dict with ``time``, ``version`` and ``blocks``, or None

    Returns:
        BlockDocument; an empty document when raw is None or empty
    """
    if not raw:
        return create_empty()

    blocks = [_parse_block(b, i) for i, b in enumerate(raw.get("blocks") or [])]

    return BlockDocument(
        time=_int_or_none(raw.get("time")) or now_ms(),
        version=_str(raw.get("version")) or CURRENT_VERSION,
        blocks=blocks,
    )


def document_to_dict(doc: BlockDocument) -> dict[str, Any]:
    """Convert a BlockDocument to its stored JSON shape."""
    return {
        "time": doc.time,
        "version": doc.version,
        "blocks": [block.to_dict() for block in doc.blocks],
    }
