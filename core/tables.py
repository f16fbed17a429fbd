"""SQLAlchemy table definitions."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID

metadata = MetaData()


lessons = Table(
    "lessons",
    metadata,
    Column("lesson_id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column("tutorial_id", String(64), nullable=False),
    Column("title", Text, nullable=False),
    Column("slug", Text, nullable=False),
    Column("order", Integer, nullable=False),
    Column("duration", Integer, nullable=False),
    Column("is_published", Boolean, nullable=False, server_default=text("false")),
    # Block document: {"time", "version", "blocks"}
    Column("content", JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Index("idx_lessons_tutorial_order", "tutorial_id", "order"),
)
