"""create_document_tables

Revision ID: 3b7e1c9a4d20
Revises:
Create Date: 2026-10-18 09:12:44.301522

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7e1c9a4d20"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "chapter",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("project_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("content", sa.Text, nullable=False, server_default=""),
        sa.Column("word_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("sort_order", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_chapter_project_id", "chapter", ["project_id"])

    op.create_table(
        "wiki_page",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("project_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("slug", sa.String(500), nullable=False),
        sa.Column("page_type", sa.String(50), nullable=False, server_default="other"),
        sa.Column("content", sa.Text, nullable=False, server_default=""),
        sa.Column("tags_json", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("project_id", "slug", name="uq_wiki_page_project_slug"),
    )
    op.create_index("ix_wiki_page_project_id", "wiki_page", ["project_id"])

    op.create_table(
        "link_reference",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("project_id", sa.String(36), nullable=False),
        sa.Column("source_id", sa.String(36), nullable=False),
        sa.Column("source_type", sa.String(20), nullable=False),
        sa.Column("target_id", sa.String(36), nullable=False),
        sa.Column("target_type", sa.String(20), nullable=False),
        sa.Column("raw_target", sa.String(500), nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("source_id", "target_id", name="uq_link_reference_source_target"),
    )
    # Edges are replaced per source and read per target
    op.create_index("ix_link_reference_project_id", "link_reference", ["project_id"])
    op.create_index("ix_link_reference_source_id", "link_reference", ["source_id"])
    op.create_index("ix_link_reference_target_id", "link_reference", ["target_id"])

    op.create_table(
        "chapter_revision",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("chapter_id", sa.String(36), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("note", sa.String(500), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_chapter_revision_chapter_created", "chapter_revision", ["chapter_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_chapter_revision_chapter_created", table_name="chapter_revision")
    op.drop_table("chapter_revision")
    op.drop_index("ix_link_reference_target_id", table_name="link_reference")
    op.drop_index("ix_link_reference_source_id", table_name="link_reference")
    op.drop_index("ix_link_reference_project_id", table_name="link_reference")
    op.drop_table("link_reference")
    op.drop_index("ix_wiki_page_project_id", table_name="wiki_page")
    op.drop_table("wiki_page")
    op.drop_index("ix_chapter_project_id", table_name="chapter")
    op.drop_table("chapter")
