"""WikiPage model for lore entries (characters, locations, events)."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from novelcraft.models.base import Base
from novelcraft.models.document import Document, DocumentType


class WikiPage(Base):
    """A wiki page describing one entity of the story world.

    Attributes:
        id: Unique identifier (UUID)
        project_id: Owning project
        title: Page title
        slug: Normalized title, unique per project
        page_type: Kind of entity (character, location, event, ...)
        content: Page body text
        tags_json: Tag names as a JSON list
        created_at: Timestamp when page was created
        updated_at: Timestamp when page was last updated
    """

    __tablename__ = "wiki_page"
    __table_args__ = (UniqueConstraint("project_id", "slug", name="uq_wiki_page_project_slug"),)

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    project_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(500), nullable=False)
    page_type: Mapped[str] = mapped_column(String(50), nullable=False, default="other")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tags_json: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    @property
    def tags(self) -> list[str]:
        return sorted(set(self.tags_json or []))

    def to_document(self) -> Document:
        """Convert to the shared Document view."""
        return Document(
            id=self.id,
            project_id=self.project_id,
            document_type=DocumentType.WIKI_PAGE,
            title=self.title,
            body=self.content,
            updated_at=self.updated_at,
            slug=self.slug,
            tags=self.tags,
        )

    def __repr__(self) -> str:
        return f"<WikiPage(id={self.id}, slug='{self.slug}')>"
