"""Lesson table queries."""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import lessons


async def get_lesson(conn: AsyncConnection, lesson_id: UUID) -> dict[str, Any] | None:
    result = await conn.execute(select(lessons).where(lessons.c.lesson_id == lesson_id))
    row = result.mappings().first()
    return dict(row) if row else None


async def list_lessons_for_tutorial(conn: AsyncConnection, tutorial_id: str) -> list[dict[str, Any]]:
    """All lessons of a tutorial in display order."""
    result = await conn.execute(
        select(lessons)
        .where(lessons.c.tutorial_id == tutorial_id)
        .order_by(lessons.c.order, lessons.c.created_at)
    )
    return [dict(row) for row in result.mappings()]


async def get_max_order(conn: AsyncConnection, tutorial_id: str) -> int:
    """Highest lesson order in a tutorial, 0 when it has none."""
    result = await conn.execute(
        select(func.coalesce(func.max(lessons.c.order), 0)).where(lessons.c.tutorial_id == tutorial_id)
    )
    return result.scalar() or 0


async def create_lesson(
    conn: AsyncConnection,
    *,
    tutorial_id: str,
    title: str,
    slug: str,
    order: int,
    duration: int,
    is_published: bool,
    content: dict[str, Any],
) -> dict[str, Any]:
    result = await conn.execute(
        insert(lessons)
        .values(
            tutorial_id=tutorial_id,
            title=title,
            slug=slug,
            order=order,
            duration=duration,
            is_published=is_published,
            content=content,
        )
        .returning(lessons)
    )
    return dict(result.mappings().first())


async def update_lesson(conn: AsyncConnection, lesson_id: UUID, values: dict[str, Any]) -> dict[str, Any] | None:
    """Update the given columns and bump updated_at. Returns None if the lesson doesn't exist."""
    result = await conn.execute(
        update(lessons)
        .where(lessons.c.lesson_id == lesson_id)
        .values(**values, updated_at=datetime.now(timezone.utc))
        .returning(lessons)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def delete_lesson(conn: AsyncConnection, lesson_id: UUID) -> bool:
    result = await conn.execute(delete(lessons).where(lessons.c.lesson_id == lesson_id))
    return result.rowcount > 0
