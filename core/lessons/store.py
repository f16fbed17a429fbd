"""
Lesson content stores.

LessonStore is the seam the export entry points and HTTP routes depend on.
Two implementations:
- ApiLessonStore: the remote lessons API over HTTP (httpx)
- DatabaseLessonStore: the local lessons table (SQLAlchemy async core)

Both validate input the same way before touching the backend and raise
LessonNotFoundError / LessonValidationError / LessonStoreError.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

import httpx

from core.blocks.types import BlockDocument, create_empty, document_to_dict
from core.config import get_lessons_api_timeout, get_lessons_api_url
from core.database import get_connection, get_transaction
from core.queries import lessons as lesson_queries

from .types import LessonNotFoundError, LessonRecord, LessonStoreError, LessonValidationError

logger = logging.getLogger(__name__)

COPY_SUFFIX = " (Copy)"


# =============================================================================
# Input validation
# =============================================================================


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def _content_json(content: Any) -> dict[str, Any]:
    if isinstance(content, BlockDocument):
        return document_to_dict(content)
    if not content:
        return document_to_dict(create_empty())
    return content


def validate_lesson_id(lesson_id: str | None) -> str:
    if lesson_id is None or not str(lesson_id).strip():
        raise LessonValidationError("Lesson ID is required")
    return str(lesson_id).strip()


def validate_new_lesson(tutorial_id: str | None, data: dict[str, Any] | None) -> dict[str, Any]:
    """
    Check a create payload and fill in defaults.

    Returns:
        Copy of data with content defaulted to an empty block document
    """
    if not tutorial_id:
        raise LessonValidationError("Tutorial ID is required")
    if not data:
        raise LessonValidationError("Lesson data is required")

    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        raise LessonValidationError("Lesson title is required")
    if not _is_positive_int(data.get("order")):
        raise LessonValidationError("Lesson order is required and must be positive")
    if not _is_positive_int(data.get("duration")):
        raise LessonValidationError("Lesson duration is required and must be positive")

    return {**data, "content": _content_json(data.get("content"))}


def validate_lesson_update(data: dict[str, Any] | None) -> dict[str, Any]:
    if not data:
        raise LessonValidationError("Lesson data is required")

    if "title" in data and (not isinstance(data["title"], str) or not data["title"].strip()):
        raise LessonValidationError("Lesson title cannot be empty")
    for field in ("order", "duration"):
        if field in data and not _is_positive_int(data[field]):
            raise LessonValidationError(f"Lesson {field} must be positive")
    if "isPublished" in data and not isinstance(data["isPublished"], bool):
        raise LessonValidationError("isPublished must be a boolean")

    if "content" in data:
        return {**data, "content": _content_json(data["content"])}
    return dict(data)


def validate_publish_flag(is_published: Any) -> bool:
    if not isinstance(is_published, bool):
        raise LessonValidationError("isPublished must be a boolean")
    return is_published


def slugify(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


# =============================================================================
# Store interface
# =============================================================================


class LessonStore(ABC):
    """Persistence for lessons and their block documents."""

    @abstractmethod
    async def get_lesson(self, lesson_id: str) -> LessonRecord:
        """Raises LessonNotFoundError if the lesson doesn't exist."""

    @abstractmethod
    async def list_by_tutorial(self, tutorial_id: str) -> list[LessonRecord]:
        """Lessons of a tutorial in display order."""

    @abstractmethod
    async def create_lesson(self, tutorial_id: str, data: dict[str, Any]) -> LessonRecord:
        ...

    @abstractmethod
    async def update_lesson(self, lesson_id: str, data: dict[str, Any]) -> LessonRecord:
        ...

    @abstractmethod
    async def update_content(self, lesson_id: str, content: BlockDocument) -> LessonRecord:
        ...

    @abstractmethod
    async def delete_lesson(self, lesson_id: str) -> None:
        ...

    @abstractmethod
    async def duplicate_lesson(self, lesson_id: str) -> LessonRecord:
        ...

    @abstractmethod
    async def toggle_publish(self, lesson_id: str, is_published: bool) -> LessonRecord:
        ...

    async def next_order(self, tutorial_id: str) -> int:
        """Order for a lesson appended to the end of a tutorial."""
        lessons = await self.list_by_tutorial(tutorial_id)
        return max((lesson.order for lesson in lessons), default=0) + 1

    async def aclose(self) -> None:
        pass


# =============================================================================
# Remote API
# =============================================================================


def _unwrap(payload: Any) -> Any:
    # Some endpoints wrap results as {"success": true, "data": ...}
    if isinstance(payload, dict) and "success" in payload and "data" in payload:
        return payload["data"]
    return payload


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or response.reason_phrase
    return response.reason_phrase


class ApiLessonStore(LessonStore):
    """
    Lessons API client.

    Args:
        base_url: API root, e.g. "https://example.com/api". Defaults to LESSONS_API_URL.
        timeout: Request timeout in seconds. Defaults to LESSONS_API_TIMEOUT.
        client: Pre-built httpx.AsyncClient (tests pass one with a MockTransport)
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or get_lessons_api_url()).rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else get_lessons_api_timeout(),
        )

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Lessons API {method} {path} failed: {e}")
            raise LessonStoreError(f"Lessons API request failed: {e}") from e

        if response.status_code == 404:
            raise LessonNotFoundError(_error_message(response))
        if response.status_code in (400, 422):
            raise LessonValidationError(_error_message(response))
        if response.is_error:
            logger.error(f"Lessons API {method} {path} returned {response.status_code}")
            raise LessonStoreError(_error_message(response), status_code=response.status_code)

        if not response.content:
            return None
        return _unwrap(response.json())

    async def get_lesson(self, lesson_id: str) -> LessonRecord:
        lesson_id = validate_lesson_id(lesson_id)
        payload = await self._request("GET", f"/lessons/{lesson_id}")
        if not payload:
            raise LessonNotFoundError(f"Lesson not found: {lesson_id}")
        return LessonRecord.from_api(payload)

    async def list_by_tutorial(self, tutorial_id: str) -> list[LessonRecord]:
        if not tutorial_id:
            raise LessonValidationError("Tutorial ID is required")
        payload = await self._request("GET", f"/tutorials/{tutorial_id}/lessons")
        if isinstance(payload, dict):
            payload = payload.get("lessons") or []
        return [LessonRecord.from_api(item) for item in payload or []]

    async def create_lesson(self, tutorial_id: str, data: dict[str, Any]) -> LessonRecord:
        body = validate_new_lesson(tutorial_id, data)
        payload = await self._request("POST", f"/tutorials/{tutorial_id}/lessons", json=body)
        lesson = LessonRecord.from_api(payload or {})
        logger.info(f"Created lesson {lesson.id} in tutorial {tutorial_id}")
        return lesson

    async def update_lesson(self, lesson_id: str, data: dict[str, Any]) -> LessonRecord:
        lesson_id = validate_lesson_id(lesson_id)
        body = validate_lesson_update(data)
        payload = await self._request("PUT", f"/lessons/{lesson_id}", json=body)
        return LessonRecord.from_api(payload)

    async def update_content(self, lesson_id: str, content: BlockDocument) -> LessonRecord:
        lesson_id = validate_lesson_id(lesson_id)
        if content is None:
            raise LessonValidationError("Content is required")
        payload = await self._request(
            "PUT", f"/lessons/{lesson_id}/content", json={"content": _content_json(content)}
        )
        return LessonRecord.from_api(payload)

    async def delete_lesson(self, lesson_id: str) -> None:
        lesson_id = validate_lesson_id(lesson_id)
        await self._request("DELETE", f"/lessons/{lesson_id}")
        logger.info(f"Deleted lesson {lesson_id}")

    async def duplicate_lesson(self, lesson_id: str) -> LessonRecord:
        lesson_id = validate_lesson_id(lesson_id)
        payload = await self._request("POST", f"/lessons/{lesson_id}/duplicate")
        return LessonRecord.from_api(payload)

    async def toggle_publish(self, lesson_id: str, is_published: bool) -> LessonRecord:
        lesson_id = validate_lesson_id(lesson_id)
        is_published = validate_publish_flag(is_published)
        payload = await self._request(
            "PUT", f"/lessons/{lesson_id}/toggle-publish", json={"isPublished": is_published}
        )
        return LessonRecord.from_api(payload)

    async def aclose(self) -> None:
        await self._client.aclose()


# =============================================================================
# Local database
# =============================================================================


def _parse_uuid(lesson_id: str) -> UUID:
    try:
        return UUID(validate_lesson_id(lesson_id))
    except ValueError:
        # Ids that aren't UUIDs can't exist in the table
        raise LessonNotFoundError(f"Lesson not found: {lesson_id}")


# camelCase request fields -> lessons table columns
_UPDATABLE_COLUMNS = {
    "title": "title",
    "order": "order",
    "duration": "duration",
    "isPublished": "is_published",
    "content": "content",
}


class DatabaseLessonStore(LessonStore):
    """Lessons kept in the local Postgres lessons table."""

    async def get_lesson(self, lesson_id: str) -> LessonRecord:
        uuid = _parse_uuid(lesson_id)
        async with get_connection() as conn:
            row = await lesson_queries.get_lesson(conn, uuid)
        if not row:
            raise LessonNotFoundError(f"Lesson not found: {lesson_id}")
        return LessonRecord.from_row(row)

    async def list_by_tutorial(self, tutorial_id: str) -> list[LessonRecord]:
        if not tutorial_id:
            raise LessonValidationError("Tutorial ID is required")
        async with get_connection() as conn:
            rows = await lesson_queries.list_lessons_for_tutorial(conn, tutorial_id)
        return [LessonRecord.from_row(row) for row in rows]

    async def next_order(self, tutorial_id: str) -> int:
        async with get_connection() as conn:
            return await lesson_queries.get_max_order(conn, tutorial_id) + 1

    async def create_lesson(self, tutorial_id: str, data: dict[str, Any]) -> LessonRecord:
        data = validate_new_lesson(tutorial_id, data)
        async with get_transaction() as conn:
            row = await lesson_queries.create_lesson(
                conn,
                tutorial_id=tutorial_id,
                title=data["title"].strip(),
                slug=slugify(data["title"]),
                order=data["order"],
                duration=data["duration"],
                is_published=bool(data.get("isPublished", False)),
                content=data["content"],
            )
        logger.info(f"Created lesson {row['lesson_id']} in tutorial {tutorial_id}")
        return LessonRecord.from_row(row)

    async def _update(self, lesson_id: str, values: dict[str, Any]) -> LessonRecord:
        uuid = _parse_uuid(lesson_id)
        async with get_transaction() as conn:
            row = await lesson_queries.update_lesson(conn, uuid, values)
        if not row:
            raise LessonNotFoundError(f"Lesson not found: {lesson_id}")
        return LessonRecord.from_row(row)

    async def update_lesson(self, lesson_id: str, data: dict[str, Any]) -> LessonRecord:
        data = validate_lesson_update(data)
        values = {
            column: data[field] for field, column in _UPDATABLE_COLUMNS.items() if field in data
        }
        if "title" in values:
            values["title"] = values["title"].strip()
            values["slug"] = slugify(values["title"])
        if not values:
            return await self.get_lesson(lesson_id)
        return await self._update(lesson_id, values)

    async def update_content(self, lesson_id: str, content: BlockDocument) -> LessonRecord:
        if content is None:
            raise LessonValidationError("Content is required")
        return await self._update(lesson_id, {"content": _content_json(content)})

    async def delete_lesson(self, lesson_id: str) -> None:
        uuid = _parse_uuid(lesson_id)
        async with get_transaction() as conn:
            deleted = await lesson_queries.delete_lesson(conn, uuid)
        if not deleted:
            raise LessonNotFoundError(f"Lesson not found: {lesson_id}")
        logger.info(f"Deleted lesson {lesson_id}")

    async def duplicate_lesson(self, lesson_id: str) -> LessonRecord:
        """Copy a lesson to the end of its tutorial, unpublished."""
        original = await self.get_lesson(lesson_id)
        title = f"{original.title}{COPY_SUFFIX}"
        order = await self.next_order(original.tutorial_id)

        async with get_transaction() as conn:
            row = await lesson_queries.create_lesson(
                conn,
                tutorial_id=original.tutorial_id,
                title=title,
                slug=slugify(title),
                order=order,
                duration=original.duration,
                is_published=False,
                content=original.content_for_storage(),
            )
        return LessonRecord.from_row(row)

    async def toggle_publish(self, lesson_id: str, is_published: bool) -> LessonRecord:
        is_published = validate_publish_flag(is_published)
        return await self._update(lesson_id, {"is_published": is_published})
