"""Block-structured lesson content: model, mutations, rendering and export."""

from .types import (
    BLOCK_TYPES,
    CURRENT_VERSION,
    Block,
    BlockDocument,
    create_empty,
    document_from_dict,
    document_to_dict,
    is_known_type,
    is_valid_block,
    parse_block_data,
)
from .mutations import (
    BlockIndexError,
    append,
    append_quiz_option,
    move_at,
    new_block,
    remove_at,
    remove_quiz_option,
    update_field,
    update_quiz_option,
)
from .export import DocumentMeta, to_html, to_text
from .render import RenderNode, render_content, render_document

__all__ = [
    "BLOCK_TYPES",
    "CURRENT_VERSION",
    "Block",
    "BlockDocument",
    "create_empty",
    "document_from_dict",
    "document_to_dict",
    "is_known_type",
    "is_valid_block",
    "parse_block_data",
    "BlockIndexError",
    "append",
    "append_quiz_option",
    "move_at",
    "new_block",
    "remove_at",
    "remove_quiz_option",
    "update_field",
    "update_quiz_option",
    "DocumentMeta",
    "to_html",
    "to_text",
    "RenderNode",
    "render_content",
    "render_document",
]
