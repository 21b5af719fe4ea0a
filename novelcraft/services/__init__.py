"""Application services consumed by the API layer and the CLI."""

from novelcraft.services.document_service import DocumentService, SessionSettings
from novelcraft.services.schemas import (
    Backlink,
    Mention,
    RebuildSummary,
    RestoreResult,
    RevisionView,
    SaveResult,
)

__all__ = [
    "Backlink",
    "DocumentService",
    "Mention",
    "RebuildSummary",
    "RestoreResult",
    "RevisionView",
    "SaveResult",
    "SessionSettings",
]
