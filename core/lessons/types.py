"""
Type definitions for stored lessons.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from core.blocks.export import DocumentMeta
from core.blocks.types import BlockDocument, create_empty, document_from_dict, document_to_dict


class LessonNotFoundError(Exception):
    """Raised when a lesson cannot be found."""
    pass


class LessonValidationError(ValueError):
    """Raised when lesson input is rejected before it reaches the store."""
    pass


class LessonStoreError(Exception):
    """Raised when the store cannot be reached or returns an unexpected error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _tutorial_id(payload: dict) -> str | None:
    # "tutorial" is either an id or an embedded tutorial object
    tutorial = payload.get("tutorial")
    if isinstance(tutorial, dict):
        tutorial = tutorial.get("_id") or tutorial.get("id")
    tutorial = tutorial or payload.get("tutorialId") or payload.get("tutorial_id")
    return str(tutorial) if tutorial else None


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_content(raw_content: Any) -> BlockDocument:
    # The lesson editor saves a bare block list; the widget saves a full document
    if isinstance(raw_content, dict):
        return document_from_dict(raw_content)
    if isinstance(raw_content, list):
        return document_from_dict({"blocks": raw_content})
    return create_empty()


def _timestamp(value: Any) -> str | None:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value) if value else None


@dataclass
class LessonRecord:
    """A lesson as held by the content store."""
    id: str
    tutorial_id: str | None
    title: str
    slug: str = ""
    order: int = 1
    duration: int = 1  # Minutes
    is_published: bool = False
    content: BlockDocument = field(default_factory=create_empty)
    raw_content: Any = None  # Content as stored, kept for shape-sniffing renderers
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_api(cls, payload: dict) -> "LessonRecord":
        """Parse a lesson from the API's camelCase JSON."""
        raw_content = payload.get("content")
        content = _parse_content(raw_content)

        return cls(
            id=str(payload.get("_id") or payload.get("id") or ""),
            tutorial_id=_tutorial_id(payload),
            title=payload.get("title") or "",
            slug=payload.get("slug") or "",
            order=_as_int(payload.get("order"), 1),
            duration=_as_int(payload.get("duration"), 1),
            is_published=bool(payload.get("isPublished", False)),
            content=content,
            raw_content=raw_content,
            created_at=_timestamp(payload.get("createdAt")),
            updated_at=_timestamp(payload.get("updatedAt")),
        )

    @classmethod
    def from_row(cls, row: dict) -> "LessonRecord":
        """Parse a lesson from a database row mapping."""
        raw_content = row.get("content")
        content = _parse_content(raw_content)

        return cls(
            id=str(row["lesson_id"]),
            tutorial_id=row.get("tutorial_id"),
            title=row.get("title") or "",
            slug=row.get("slug") or "",
            order=_as_int(row.get("order"), 1),
            duration=_as_int(row.get("duration"), 1),
            is_published=bool(row.get("is_published")),
            content=content,
            raw_content=raw_content,
            created_at=_timestamp(row.get("created_at")),
            updated_at=_timestamp(row.get("updated_at")),
        )

    def to_api(self) -> dict[str, Any]:
        """Serialize to the API's camelCase JSON."""
        return {
            "_id": self.id,
            "tutorial": self.tutorial_id,
            "title": self.title,
            "slug": self.slug,
            "order": self.order,
            "duration": self.duration,
            "isPublished": self.is_published,
            "content": self.content_for_storage(),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def content_for_storage(self) -> Any:
        """Block content as JSON in the shape it was stored in; other shapes are returned raw."""
        if self.raw_content is None or (isinstance(self.raw_content, dict) and "blocks" in self.raw_content):
            return document_to_dict(self.content)
        if isinstance(self.raw_content, list):
            return document_to_dict(self.content)["blocks"]
        return self.raw_content

    def to_meta(self) -> DocumentMeta:
        return DocumentMeta(
            title=self.title,
            duration=self.duration,
            order=self.order,
            is_published=self.is_published,
        )
