# web_api/tests/conftest.py
"""Pytest fixtures for web API tests.

Replaces the lesson store with an AsyncMock-backed LessonStore so that API
tests run without the remote lessons API or a database.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from core.blocks.types import Block, BlockDocument
from core.lessons.store import LessonStore
from core.lessons.types import LessonRecord
from main import app
from web_api.routes.lessons import get_lesson_store


@pytest.fixture
def sample_lesson():
    return LessonRecord(
        id="665f1c2ab1e4a1d2c3b4a5f6",
        tutorial_id="tut-html",
        title="Intro to HTML",
        slug="intro-to-html",
        order=1,
        duration=15,
        is_published=False,
        content=BlockDocument(
            time=1700000000000,
            version="2.28.2",
            blocks=[
                Block("header", {"text": "Intro", "level": 2}),
                Block("code", {"code": "print(1)", "language": "python"}),
            ],
        ),
    )


@pytest.fixture
def mock_store(sample_lesson):
    store = MagicMock(spec=LessonStore)
    store.get_lesson = AsyncMock(return_value=sample_lesson)
    store.list_by_tutorial = AsyncMock(return_value=[sample_lesson])
    store.create_lesson = AsyncMock(return_value=sample_lesson)
    store.update_lesson = AsyncMock(return_value=sample_lesson)
    store.update_content = AsyncMock(return_value=sample_lesson)
    store.delete_lesson = AsyncMock(return_value=None)
    store.duplicate_lesson = AsyncMock(return_value=sample_lesson)
    store.toggle_publish = AsyncMock(return_value=sample_lesson)
    store.next_order = AsyncMock(return_value=2)

    app.dependency_overrides[get_lesson_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


@pytest.fixture
def client(mock_store):
    return TestClient(app)
