"""Lesson storage and export."""

from .export import EXPORT_FORMATS, ExportFailure, ExportResult, export_filename, export_lesson
from .store import ApiLessonStore, DatabaseLessonStore, LessonStore
from .types import (
    LessonNotFoundError,
    LessonRecord,
    LessonStoreError,
    LessonValidationError,
)

__all__ = [
    "EXPORT_FORMATS",
    "ExportFailure",
    "ExportResult",
    "export_filename",
    "export_lesson",
    "ApiLessonStore",
    "DatabaseLessonStore",
    "LessonStore",
    "LessonNotFoundError",
    "LessonRecord",
    "LessonStoreError",
    "LessonValidationError",
]
