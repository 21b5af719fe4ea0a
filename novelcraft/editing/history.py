"""Bounded linear undo/redo history of document contents."""

DEFAULT_HISTORY_LIMIT = 100


class EditHistory:
    """Stack of content states with a cursor.

    The entry at the cursor is the current content. Recording a new state
    discards any redo branch beyond the cursor. When the stack exceeds its
    limit the oldest entries are dropped and the cursor shifts with them.

    Example:
        >>> history = EditHistory("a")
        >>> history.record("ab")
        >>> history.undo()
        'a'
        >>> history.redo()
        'ab'
    """

    def __init__(self, initial: str, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._entries: list[str] = [initial]
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> str:
        return self._entries[self._cursor]

    @property
    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def record(self, content: str) -> None:
        """Push a new state after the cursor, dropping the redo branch."""
        del self._entries[self._cursor + 1 :]
        self._entries.append(content)

        overflow = len(self._entries) - self.limit
        if overflow > 0:
            del self._entries[:overflow]
        self._cursor = len(self._entries) - 1

    def undo(self) -> str | None:
        """Move the cursor back one state. Returns the new current state, or None."""
        if not self.can_undo:
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def redo(self) -> str | None:
        """Move the cursor forward one state. Returns the new current state, or None."""
        if not self.can_redo:
            return None
        self._cursor += 1
        return self._entries[self._cursor]
