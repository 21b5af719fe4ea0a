"""Chapter model for manuscript content."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from novelcraft.models.base import Base
from novelcraft.models.document import Document, DocumentType

CHAPTER_STATUSES = ("draft", "writing", "revision", "complete")


class Chapter(Base):
    """A chapter of the manuscript.

    Attributes:
        id: Unique identifier (UUID)
        project_id: Owning project
        title: Chapter title
        status: Workflow status, one of CHAPTER_STATUSES
        content: Chapter body text
        word_count: Word count of content, recomputed on every save
        sort_order: Position in the manuscript (1-based)
        created_at: Timestamp when chapter was created
        updated_at: Timestamp when chapter was last updated
    """

    __tablename__ = "chapter"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    project_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    word_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    def to_document(self) -> Document:
        """Convert to the shared Document view."""
        return Document(
            id=self.id,
            project_id=self.project_id,
            document_type=DocumentType.CHAPTER,
            title=self.title,
            body=self.content,
            updated_at=self.updated_at,
            sort_order=self.sort_order,
            word_count=self.word_count,
            status=self.status,
        )

    def __repr__(self) -> str:
        return f"<Chapter(id={self.id}, title='{self.title}', sort_order={self.sort_order})>"
