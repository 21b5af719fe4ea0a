"""Payloads returned by the document service."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from novelcraft.models.document import DocumentType


class SaveResult(BaseModel):
    """Result of persisting document content."""

    document_id: str
    word_count: int
    changed: bool


class Backlink(BaseModel):
    """A document whose body links to the requested document."""

    model_config = ConfigDict(from_attributes=True)

    source_type: DocumentType
    source_id: str
    source_title: str
    raw_target: str
    created_at: datetime


class Mention(BaseModel):
    """A chapter whose body links to the requested wiki page."""

    chapter_id: str
    chapter_title: str
    created_at: datetime


class RevisionView(BaseModel):
    """A chapter revision together with its chapter's current title."""

    id: str
    chapter_id: str
    chapter_title: str
    content: str
    note: str
    created_at: datetime


class RestoreResult(BaseModel):
    """Content of a restored revision, to be fed back through the save path."""

    revision_id: str
    chapter_id: str
    content: str


class RebuildSummary(BaseModel):
    """Outcome of a project-wide link rebuild."""

    project_id: str
    documents_processed: int
    documents_failed: int
    edges: int
    duration_seconds: float
