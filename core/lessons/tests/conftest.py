"""Pytest fixtures for lesson store and export tests."""

import pytest

from core.blocks.types import Block, BlockDocument
from core.lessons.store import LessonStore
from core.lessons.types import LessonNotFoundError, LessonRecord


class InMemoryLessonStore(LessonStore):
    """Dict-backed store for exercising code that depends on LessonStore."""

    def __init__(self, lessons: list[LessonRecord] | None = None):
        self.lessons = {lesson.id: lesson for lesson in lessons or []}

    async def get_lesson(self, lesson_id):
        if lesson_id not in self.lessons:
            raise LessonNotFoundError(f"Lesson not found: {lesson_id}")
        return self.lessons[lesson_id]

    async def list_by_tutorial(self, tutorial_id):
        found = [lesson for lesson in self.lessons.values() if lesson.tutorial_id == tutorial_id]
        return sorted(found, key=lambda lesson: lesson.order)

    async def create_lesson(self, tutorial_id, data):
        raise NotImplementedError

    async def update_lesson(self, lesson_id, data):
        raise NotImplementedError

    async def update_content(self, lesson_id, content):
        raise NotImplementedError

    async def delete_lesson(self, lesson_id):
        raise NotImplementedError

    async def duplicate_lesson(self, lesson_id):
        raise NotImplementedError

    async def toggle_publish(self, lesson_id, is_published):
        raise NotImplementedError


@pytest.fixture
def sample_lesson():
    return LessonRecord(
        id="665f1c2ab1e4a1d2c3b4a5f6",
        tutorial_id="tut-html",
        title="HTML: Forms & Inputs!",
        slug="html-forms-inputs",
        order=3,
        duration=20,
        is_published=True,
        content=BlockDocument(
            time=1700000000000,
            version="2.28.2",
            blocks=[
                Block("header", {"text": "Forms", "level": 2}),
                Block("paragraph", {"text": "Forms collect <b>input</b>."}),
                Block("code", {"code": "<input type=\"text\">", "language": "html"}),
            ],
        ),
    )


@pytest.fixture
def memory_store(sample_lesson):
    return InMemoryLessonStore([sample_lesson])
