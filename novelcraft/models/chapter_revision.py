"""ChapterRevision model: immutable snapshot of chapter content."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from novelcraft.models.base import Base


class ChapterRevision(Base):
    """Point-in-time copy of a chapter's content.

    Revisions are append-only. created_at is strictly increasing per chapter.

    Attributes:
        id: Unique identifier (UUID)
        chapter_id: Chapter the snapshot was taken from
        content: Chapter content at snapshot time
        note: Free-form note ("Autosave", "Before rewrite", ...)
        created_at: Snapshot timestamp
    """

    __tablename__ = "chapter_revision"
    __table_args__ = (
        Index("ix_chapter_revision_chapter_created", "chapter_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    chapter_id: Mapped[str] = mapped_column(String(36), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    note: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<ChapterRevision(id={self.id}, chapter_id={self.chapter_id}, note='{self.note}')>"
