"""
Lesson export entry point.

export_lesson() never raises for a missing lesson, an unknown format or a
conversion error; it returns an ExportFailure the caller can show instead.
"""

import json
import logging
import re
from dataclasses import dataclass

import sentry_sdk

from core.blocks.export import to_html, to_text

from .store import LessonStore
from .types import LessonNotFoundError, LessonRecord, LessonStoreError, LessonValidationError

logger = logging.getLogger(__name__)

# format -> (media type, file extension)
EXPORT_FORMATS = {
    "json": ("application/json", ".json"),
    "html": ("text/html", ".html"),
    "text": ("text/plain", ".txt"),
}


@dataclass
class ExportResult:
    data: str
    filename: str
    media_type: str


@dataclass
class ExportFailure:
    """Why an export could not be produced."""
    error: str  # unsupported_format, not_found, invalid_request, store_error, conversion_failed
    message: str


def export_filename(title: str, fmt: str) -> str:
    """Lesson title with each run of non-alphanumerics collapsed to "_", lower-cased."""
    base = re.sub(r"[^A-Za-z0-9]+", "_", title).lower() or "lesson"
    return f"{base}{EXPORT_FORMATS[fmt][1]}"


def convert_lesson(lesson: LessonRecord, fmt: str) -> str:
    """Serialize a lesson; raises on conversion errors."""
    if fmt == "json":
        return json.dumps(lesson.to_api(), indent=2, ensure_ascii=False)
    if fmt == "html":
        return to_html(lesson.content, lesson.to_meta())
    return to_text(lesson.content, lesson.to_meta())


async def export_lesson(store: LessonStore, lesson_id: str, fmt: str = "json") -> ExportResult | ExportFailure:
    """
    Export one lesson as JSON, HTML or plain text.

    Args:
        store: Where the lesson lives
        lesson_id: Lesson to export
        fmt: "json", "html" or "text"

    Returns:
        ExportResult with the serialized data and a download filename,
        or ExportFailure describing what went wrong
    """
    fmt = (fmt or "").lower()
    if fmt not in EXPORT_FORMATS:
        return ExportFailure(
            error="unsupported_format",
            message=f"Unsupported export format: {fmt or '(none)'}. Use one of: {', '.join(EXPORT_FORMATS)}",
        )

    try:
        lesson = await store.get_lesson(lesson_id)
    except LessonNotFoundError:
        return ExportFailure(error="not_found", message=f"Lesson not found: {lesson_id}")
    except LessonValidationError as e:
        return ExportFailure(error="invalid_request", message=str(e))
    except LessonStoreError as e:
        logger.error(f"Failed to load lesson {lesson_id} for export: {e}")
        return ExportFailure(error="store_error", message=str(e))

    try:
        data = convert_lesson(lesson, fmt)
    except Exception as e:
        logger.error(f"Failed to export lesson {lesson_id} as {fmt}: {e}")
        sentry_sdk.capture_exception(e)
        return ExportFailure(error="conversion_failed", message=f"Failed to export lesson: {e}")

    logger.info(f"Exported lesson {lesson_id} as {fmt}")
    return ExportResult(
        data=data,
        filename=export_filename(lesson.title, fmt),
        media_type=EXPORT_FORMATS[fmt][0],
    )
