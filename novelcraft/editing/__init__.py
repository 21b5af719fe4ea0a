"""Per-document editing: undo/redo history and debounced autosave."""

from novelcraft.editing.history import EditHistory
from novelcraft.editing.session import EditSessionController, SessionState

__all__ = ["EditHistory", "EditSessionController", "SessionState"]
