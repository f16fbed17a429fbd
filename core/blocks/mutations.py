"""
Pure mutation operations over a BlockDocument.

Used by authoring UIs to add, remove, reorder and edit blocks. Every
operation returns a new document and leaves its input untouched; blocks
that are not affected are shared between the old and new documents.
"""

import copy
from dataclasses import replace
from typing import Any, Literal

from .types import Block, BlockDocument


class BlockIndexError(IndexError):
    """Raised when a block or option index is out of range."""
    pass


Direction = Literal["up", "down"]

# Default data for blocks added from the authoring UI's "add content" menu
DEFAULT_BLOCK_DATA: dict[str, dict[str, Any]] = {
    "paragraph": {"text": ""},
    "header": {"text": "", "level": 2},
    "list": {"style": "unordered", "items": []},
    "code": {"code": "", "language": "html", "caption": ""},
    "quote": {"text": "", "caption": ""},
    "image": {"url": "", "alt": "", "caption": ""},
    "video": {"url": "", "caption": ""},
    "table": {"withHeadings": True, "content": [["", ""], ["", ""]]},
    "delimiter": {},
    "embed": {"service": "", "source": "", "embed": "", "caption": ""},
    "quiz": {"question": "", "options": ["", ""], "correctAnswer": 0},
    "text": {"text": ""},
}


def _check_index(doc: BlockDocument, index: int) -> None:
    if not 0 <= index < len(doc.blocks):
        raise BlockIndexError(
            f"Block index {index} out of range for document with {len(doc.blocks)} blocks"
        )


def _with_blocks(doc: BlockDocument, blocks: list[Block]) -> BlockDocument:
    return replace(doc, blocks=blocks)


def new_block(block_type: str) -> Block:
    """Create a block with default data for its type."""
    if block_type not in DEFAULT_BLOCK_DATA:
        raise ValueError(f"Unknown block type: {block_type}")
    return Block(type=block_type, data=copy.deepcopy(DEFAULT_BLOCK_DATA[block_type]))


def append(doc: BlockDocument, block: Block) -> BlockDocument:
    """Return a document with block appended at the end."""
    return _with_blocks(doc, [*doc.blocks, block])


def remove_at(doc: BlockDocument, index: int) -> BlockDocument:
    """
    Return a document without the block at index.

    Raises:
        BlockIndexError: If index is out of range
    """
    _check_index(doc, index)
    return _with_blocks(doc, doc.blocks[:index] + doc.blocks[index + 1:])


def move_at(doc: BlockDocument, index: int, direction: Direction) -> BlockDocument:
    """
    Swap the block at index with its neighbour.

    Moving the first block up or the last block down returns an unchanged
    copy rather than raising, matching disabled buttons at the edges.

    Raises:
        BlockIndexError: If index is out of range
        ValueError: If direction is not "up" or "down"
    """
    if direction not in ("up", "down"):
        raise ValueError(f"Invalid direction: {direction}")
    _check_index(doc, index)

    target = index - 1 if direction == "up" else index + 1
    if not 0 <= target < len(doc.blocks):
        return replace(doc, blocks=list(doc.blocks))

    blocks = list(doc.blocks)
    blocks[index], blocks[target] = blocks[target], blocks[index]
    return _with_blocks(doc, blocks)


def _set_path(container: dict[str, Any] | list[Any], keys: list[str], value: Any) -> dict[str, Any] | list[Any]:
    """
    Copy-on-write assignment of value at keys inside container.

    Lists are indexed by position and never grow; missing dict keys along
    the path become new dicts.
    """
    key, rest = keys[0], keys[1:]

    if isinstance(container, list):
        try:
            slot: int | str = int(key)
        except ValueError:
            raise ValueError(f"List index expected, got {key!r}")
        if not 0 <= slot < len(container):
            raise BlockIndexError(f"Index {slot} out of range for list of {len(container)} items")
        updated: dict[str, Any] | list[Any] = list(container)
        child = container[slot]
    else:
        slot = key
        updated = dict(container)
        child = container.get(key)

    if not rest:
        updated[slot] = value
    elif isinstance(child, (dict, list)):
        updated[slot] = _set_path(child, rest, value)
    elif child is None:
        updated[slot] = _set_path({}, rest, value)
    else:
        raise ValueError(f"Cannot set {rest[0]!r} inside a {type(child).__name__} value")
    return updated


def update_field(doc: BlockDocument, index: int, path: str, value: Any) -> BlockDocument:
    """
    Return a document with one field of one block replaced.

    Args:
        doc: Source document
        index: Block index
        path: Dotted field reference, e.g. "type", "data.language", "data.file.url"
        value: New value

    Raises:
        BlockIndexError: If index, or a list position on the path, is out of range
        ValueError: If path is empty, not rooted at type, id or data, or
            walks into a scalar value
    """
    _check_index(doc, index)

    keys = [k for k in path.split(".") if k] if path else []
    if not keys:
        raise ValueError("Field path must not be empty")

    block = doc.blocks[index]
    root, rest = keys[0], keys[1:]

    # An edited block is written from its fields, not from any raw stored payload
    if root in ("type", "id") and not rest:
        updated = replace(block, **{root: value}, raw=None)
    elif root == "data" and rest:
        updated = replace(block, data=_set_path(block.data, rest, value), raw=None)
    elif root == "data":
        if not isinstance(value, dict):
            raise ValueError("Block data must be a dict")
        updated = replace(block, data=dict(value), raw=None)
    else:
        raise ValueError(f"Invalid field path: {path}")

    blocks = list(doc.blocks)
    blocks[index] = updated
    return _with_blocks(doc, blocks)


# =============================================================================
# Quiz options
# =============================================================================


def _quiz_block(doc: BlockDocument, block_index: int) -> Block:
    _check_index(doc, block_index)
    block = doc.blocks[block_index]
    if block.type != "quiz":
        raise ValueError(f"Block {block_index} is a {block.type} block, not a quiz")
    return block


def _replace_options(
    doc: BlockDocument, block_index: int, options: list[str], **extra: Any
) -> BlockDocument:
    block = doc.blocks[block_index]
    blocks = list(doc.blocks)
    blocks[block_index] = replace(block, data={**block.data, "options": options, **extra}, raw=None)
    return _with_blocks(doc, blocks)


def update_quiz_option(
    doc: BlockDocument, block_index: int, option_index: int, value: str
) -> BlockDocument:
    """
    Replace one existing option of a quiz block.

    The options list only grows through append_quiz_option; an option index
    past the end raises instead of creating a sparse list.
    """
    block = _quiz_block(doc, block_index)
    options = list(block.data.get("options") or [])
    if not 0 <= option_index < len(options):
        raise BlockIndexError(
            f"Option index {option_index} out of range for quiz with {len(options)} options"
        )
    options[option_index] = value
    return _replace_options(doc, block_index, options)


def append_quiz_option(doc: BlockDocument, block_index: int, value: str = "") -> BlockDocument:
    block = _quiz_block(doc, block_index)
    options = [*(block.data.get("options") or []), value]
    return _replace_options(doc, block_index, options)


def remove_quiz_option(doc: BlockDocument, block_index: int, option_index: int) -> BlockDocument:
    """
    Remove one option of a quiz block.

    An index-valued correctAnswer keeps pointing at the same option; it is
    cleared when the correct option itself is removed.
    """
    block = _quiz_block(doc, block_index)
    options = list(block.data.get("options") or [])
    if not 0 <= option_index < len(options):
        raise BlockIndexError(
            f"Option index {option_index} out of range for quiz with {len(options)} options"
        )
    removed = options.pop(option_index)

    correct = block.data.get("correctAnswer")
    if isinstance(correct, int) and not isinstance(correct, bool):
        if correct == option_index:
            correct = None
        elif correct > option_index:
            correct -= 1
    elif correct == removed:
        correct = None

    return _replace_options(doc, block_index, options, correctAnswer=correct)
