"""
Lesson API routes.

Endpoints:
- GET /api/tutorials/{tutorial_id}/lessons - List a tutorial's lessons
- POST /api/tutorials/{tutorial_id}/lessons - Create a lesson
- GET /api/lessons/{lesson_id} - Get a lesson
- PUT /api/lessons/{lesson_id} - Update lesson fields
- DELETE /api/lessons/{lesson_id} - Delete a lesson
- PUT /api/lessons/{lesson_id}/content - Replace the block document
- POST /api/lessons/{lesson_id}/duplicate - Copy a lesson
- PUT /api/lessons/{lesson_id}/toggle-publish - Publish or unpublish
- GET /api/lessons/{lesson_id}/export?format= - Download as json, html or text
- GET /api/lessons/{lesson_id}/render - Render tree for the lesson viewer
- POST /api/lessons/validate-media - Check an image or video URL
"""

import logging
from typing import Any, Literal

import sentry_sdk
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from core.blocks.media import InvalidMediaUrlError, to_embed_url, validate_image_url, youtube_video_id
from core.blocks.render import render_content
from core.blocks.types import document_from_dict
from core.config import uses_database_store
from core.lessons.export import ExportFailure, export_lesson
from core.lessons.store import ApiLessonStore, DatabaseLessonStore, LessonStore
from core.lessons.types import (
    LessonNotFoundError,
    LessonRecord,
    LessonStoreError,
    LessonValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["lessons"])

_store: LessonStore | None = None


def get_lesson_store() -> LessonStore:
    """Process-wide lesson store: the database when DATABASE_URL is set, otherwise the remote API."""
    global _store

    if _store is None:
        _store = DatabaseLessonStore() if uses_database_store() else ApiLessonStore()
        logger.info(f"Using {type(_store).__name__} for lessons")
    return _store


async def close_lesson_store() -> None:
    global _store

    if _store is not None:
        await _store.aclose()
        _store = None


class LessonCreate(BaseModel):
    """Request body for creating a lesson."""

    title: str
    order: int | None = None  # Appended to the end of the tutorial when omitted
    duration: int
    content: dict[str, Any] | None = None
    isPublished: bool = False


class LessonUpdate(BaseModel):
    """Request body for updating a lesson. Only fields that are sent are changed."""

    title: str | None = None
    order: int | None = None
    duration: int | None = None
    content: dict[str, Any] | None = None
    isPublished: bool | None = None


class ContentUpdate(BaseModel):
    content: dict[str, Any]


class PublishUpdate(BaseModel):
    isPublished: bool


class MediaValidationRequest(BaseModel):
    url: str
    type: Literal["image", "video"]


# Export failure -> HTTP status
_EXPORT_ERROR_STATUS = {
    "unsupported_format": 400,
    "invalid_request": 400,
    "not_found": 404,
    "store_error": 502,
    "conversion_failed": 500,
}


def _store_error(e: Exception) -> HTTPException:
    """Map a store exception to an HTTP error."""
    if isinstance(e, LessonNotFoundError):
        return HTTPException(404, str(e) or "Lesson not found")
    if isinstance(e, LessonValidationError):
        return HTTPException(400, str(e))
    logger.error(f"Lesson store error: {e}")
    sentry_sdk.capture_exception(e)
    return HTTPException(502, "Lesson store unavailable")


_STORE_ERRORS = (LessonNotFoundError, LessonValidationError, LessonStoreError)


def _lesson_response(lesson: LessonRecord) -> dict[str, Any]:
    return lesson.to_api()


@router.get("/tutorials/{tutorial_id}/lessons")
async def list_tutorial_lessons(
    tutorial_id: str,
    store: LessonStore = Depends(get_lesson_store),
) -> dict[str, Any]:
    try:
        lessons = await store.list_by_tutorial(tutorial_id)
    except _STORE_ERRORS as e:
        raise _store_error(e)

    return {"lessons": [_lesson_response(lesson) for lesson in lessons]}


@router.post("/tutorials/{tutorial_id}/lessons", status_code=201)
async def create_tutorial_lesson(
    tutorial_id: str,
    request: LessonCreate,
    store: LessonStore = Depends(get_lesson_store),
) -> dict[str, Any]:
    data = request.model_dump()

    try:
        if data["order"] is None:
            data["order"] = await store.next_order(tutorial_id)
        lesson = await store.create_lesson(tutorial_id, data)
    except _STORE_ERRORS as e:
        raise _store_error(e)

    return _lesson_response(lesson)


# Registered before /lessons/{lesson_id} routes so the literal path wins
@router.post("/lessons/validate-media")
async def validate_media(request: MediaValidationRequest) -> dict[str, Any]:
    """
    Check a media URL before it is put into an image or video block.

    Invalid URLs are a normal outcome, reported with valid=False.
    """
    if request.type == "image":
        try:
            url = validate_image_url(request.url)
        except InvalidMediaUrlError as e:
            return {"valid": False, "message": str(e)}
        return {"valid": True, "url": url}

    url = request.url.strip()
    if not url.startswith(("http://", "https://")):
        return {"valid": False, "message": f"Invalid URL: {request.url}"}

    return {
        "valid": True,
        "url": url,
        "embedUrl": to_embed_url(url),
        "provider": "youtube" if youtube_video_id(url) else "other",
    }


@router.get("/lessons/{lesson_id}")
async def get_lesson(
    lesson_id: str,
    store: LessonStore = Depends(get_lesson_store),
) -> dict[str, Any]:
    try:
        lesson = await store.get_lesson(lesson_id)
    except _STORE_ERRORS as e:
        raise _store_error(e)

    return _lesson_response(lesson)


@router.put("/lessons/{lesson_id}")
async def update_lesson(
    lesson_id: str,
    request: LessonUpdate,
    store: LessonStore = Depends(get_lesson_store),
) -> dict[str, Any]:
    data = request.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(400, "No fields to update")

    try:
        lesson = await store.update_lesson(lesson_id, data)
    except _STORE_ERRORS as e:
        raise _store_error(e)

    return _lesson_response(lesson)


@router.delete("/lessons/{lesson_id}")
async def delete_lesson(
    lesson_id: str,
    store: LessonStore = Depends(get_lesson_store),
) -> dict[str, str]:
    try:
        await store.delete_lesson(lesson_id)
    except _STORE_ERRORS as e:
        raise _store_error(e)

    return {"status": "deleted"}


@router.put("/lessons/{lesson_id}/content")
async def update_lesson_content(
    lesson_id: str,
    request: ContentUpdate,
    store: LessonStore = Depends(get_lesson_store),
) -> dict[str, Any]:
    # Normalise through the block model so malformed blocks become placeholders
    document = document_from_dict(request.content)

    try:
        lesson = await store.update_content(lesson_id, document)
    except _STORE_ERRORS as e:
        raise _store_error(e)

    return _lesson_response(lesson)


@router.post("/lessons/{lesson_id}/duplicate", status_code=201)
async def duplicate_lesson(
    lesson_id: str,
    store: LessonStore = Depends(get_lesson_store),
) -> dict[str, Any]:
    try:
        lesson = await store.duplicate_lesson(lesson_id)
    except _STORE_ERRORS as e:
        raise _store_error(e)

    return _lesson_response(lesson)


@router.put("/lessons/{lesson_id}/toggle-publish")
async def toggle_publish(
    lesson_id: str,
    request: PublishUpdate,
    store: LessonStore = Depends(get_lesson_store),
) -> dict[str, Any]:
    try:
        lesson = await store.toggle_publish(lesson_id, request.isPublished)
    except _STORE_ERRORS as e:
        raise _store_error(e)

    return _lesson_response(lesson)


@router.get("/lessons/{lesson_id}/export")
async def export_lesson_file(
    lesson_id: str,
    format: str = Query("json"),
    store: LessonStore = Depends(get_lesson_store),
) -> Response:
    """Download a lesson as an attachment."""
    result = await export_lesson(store, lesson_id, format)

    if isinstance(result, ExportFailure):
        raise HTTPException(
            _EXPORT_ERROR_STATUS.get(result.error, 500),
            {"error": result.error, "message": result.message},
        )

    return Response(
        content=result.data,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@router.get("/lessons/{lesson_id}/render")
async def render_lesson(
    lesson_id: str,
    store: LessonStore = Depends(get_lesson_store),
) -> dict[str, Any]:
    """Render tree for whatever content shape the lesson was stored in."""
    try:
        lesson = await store.get_lesson(lesson_id)
    except _STORE_ERRORS as e:
        raise _store_error(e)

    content = lesson.raw_content if lesson.raw_content is not None else lesson.content_for_storage()
    tree = render_content({"content": content})

    return {"lesson": {"_id": lesson.id, "title": lesson.title}, "tree": tree.to_dict()}
