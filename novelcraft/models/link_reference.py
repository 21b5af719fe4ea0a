"""LinkReference model: one directed edge of the cross-reference graph."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from novelcraft.models.base import Base


class LinkReference(Base):
    """Records that a source document's body links to a target document.

    Rows are derived state: they are replaced wholesale for a source whenever
    that source's body is persisted, so the table always mirrors current bodies.
    Several links to the same target inside one body collapse into one row.

    Attributes:
        id: Unique identifier (UUID)
        project_id: Project both documents belong to
        source_id: Document containing the link
        source_type: "chapter" or "wiki_page"
        target_id: Document the link resolved to
        target_type: "chapter" or "wiki_page"
        raw_target: Link text of the first occurrence that resolved to the target
        created_at: Timestamp when the edge was (re)written
    """

    __tablename__ = "link_reference"
    __table_args__ = (
        UniqueConstraint("source_id", "target_id", name="uq_link_reference_source_target"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    project_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    source_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    source_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    raw_target: Mapped[str] = mapped_column(String(500), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    @property
    def edge(self) -> tuple[str, str]:
        """(source_id, target_id) pair identifying this edge."""
        return self.source_id, self.target_id

    def __repr__(self) -> str:
        return (
            f"<LinkReference({self.source_type}:{self.source_id} -> "
            f"{self.target_type}:{self.target_id})>"
        )
