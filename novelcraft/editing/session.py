"""Per-document edit session: local history, debounced autosave, reconciliation."""

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

import structlog

from novelcraft.editing.history import DEFAULT_HISTORY_LIMIT, EditHistory
from novelcraft.utils.exceptions import EditSessionClosedError

logger = structlog.get_logger(__name__)

PersistFn = Callable[[str, str], Awaitable[Any]]
ReindexFn = Callable[[str], Awaitable[Any]]

DEFAULT_DEBOUNCE_SECONDS = 1.0
DEFAULT_RETRY_BASE_SECONDS = 1.0
DEFAULT_RETRY_MAX_SECONDS = 30.0


class SessionState(str, Enum):
    """Autosave state of an edit session."""

    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"
    SAVE_FAILED = "save_failed"


class EditSessionController:
    """Coordinates edits, undo/redo and autosave for one open document.

    State machine:
        CLEAN -> DIRTY        on an edit (debounce timer armed)
        DIRTY -> SAVING       when the timer fires and no save is in flight
        SAVING -> CLEAN       save succeeded and nothing changed meanwhile
        SAVING -> DIRTY       save succeeded but the user kept typing
        SAVING -> SAVE_FAILED save failed; a retry timer is armed with backoff

    Dirtiness is always ``live_content != last_persisted_content``; the
    latter only changes when a save succeeds, and then to the content that
    save carried. At most one save is in flight; a timer that fires during a
    save is deferred until that save resolves. Local content is never
    discarded because of a failure.

    Must be driven from a running asyncio event loop. A single task mutates
    the session; it is not thread-safe.
    """

    def __init__(
        self,
        document_id: str,
        initial_content: str,
        persist: PersistFn,
        reindex: ReindexFn | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        retry_base_seconds: float = DEFAULT_RETRY_BASE_SECONDS,
        retry_max_seconds: float = DEFAULT_RETRY_MAX_SECONDS,
    ) -> None:
        """Open a session on persisted content.

        Args:
            document_id: Document being edited
            initial_content: Content as currently persisted
            persist: Coroutine function saving (document_id, content)
            reindex: Coroutine function recomputing links for document_id after a save
            debounce_seconds: Quiet period after the last edit before saving
            history_limit: Maximum undo/redo states kept
            retry_base_seconds: First retry delay after a failed save
            retry_max_seconds: Upper bound for the retry delay
        """
        self.document_id = document_id
        self.debounce_seconds = debounce_seconds
        self.retry_base_seconds = retry_base_seconds
        self.retry_max_seconds = retry_max_seconds

        self._persist = persist
        self._reindex = reindex
        self._history = EditHistory(initial_content, history_limit)
        self._live = initial_content
        self._last_persisted = initial_content

        self._state = SessionState.CLEAN
        self._timer: asyncio.TimerHandle | None = None
        self._save_task: asyncio.Task[None] | None = None
        self._save_requested = False
        self._failed = False
        self._failures = 0
        self._closed = False
        self._background: set[asyncio.Task[None]] = set()

        self.logger = logger.bind(document_id=document_id)

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def live_content(self) -> str:
        return self._live

    @property
    def last_persisted_content(self) -> str:
        return self._last_persisted

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_dirty(self) -> bool:
        return self._live != self._last_persisted

    @property
    def is_saving(self) -> bool:
        return self._save_task is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def history(self) -> EditHistory:
        return self._history

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def edit(self, content: str) -> None:
        """Apply a user edit: record it in history and restart the debounce timer."""
        self._ensure_open()
        if content == self._live:
            return

        self._live = content
        self._history.record(content)
        self._failed = False
        self._arm_timer(self.debounce_seconds)
        self._refresh_state()

    def restore(self, content: str) -> None:
        """Load restored revision content as an ordinary, undoable edit."""
        self.logger.info("revision_content_loaded", content_length=len(content))
        self.edit(content)

    def undo(self) -> str | None:
        """Step back in history. Returns the new live content, or None at the oldest state."""
        self._ensure_open()
        content = self._history.undo()
        if content is None:
            return None
        self._move_to(content)
        return content

    def redo(self) -> str | None:
        """Step forward in history. Returns the new live content, or None at the newest state."""
        self._ensure_open()
        content = self._history.redo()
        if content is None:
            return None
        self._move_to(content)
        return content

    def _move_to(self, content: str) -> None:
        # Undo/redo never push history and leave an armed timer alone
        self._live = content
        if not self.is_saving:
            if not self.is_dirty:
                self._cancel_timer()
            elif self._timer is None:
                self._arm_timer(self.debounce_seconds)
        self._refresh_state()

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    async def flush(self) -> bool:
        """Save pending changes now instead of waiting for the timer.

        Returns:
            True if the session is clean afterwards
        """
        self._ensure_open()
        return await self._flush()

    async def _flush(self) -> bool:
        self._cancel_timer()
        while self._save_task is not None:
            await self._save_task
        self._cancel_timer()

        if self.is_dirty:
            await self._start_save()
        return not self.is_dirty

    async def close(self) -> bool:
        """Flush once if dirty, then tear the session down.

        The flush is best-effort: if it fails the unsaved content is lost with
        the session.

        Returns:
            True if everything was persisted
        """
        if self._closed:
            return not self.is_dirty

        try:
            flushed = await self._flush()
        finally:
            self._closed = True
            self._cancel_timer()

        await self.wait_idle()

        if flushed:
            self.logger.info("edit_session_closed")
        else:
            self.logger.warning(
                "edit_session_closed_with_unsaved_changes",
                unsaved_length=len(self._live),
                consecutive_failures=self._failures,
            )
        return flushed

    async def wait_idle(self) -> None:
        """Wait for the in-flight save and any post-save reindexing to finish."""
        while self._save_task is not None or self._background:
            pending: list[asyncio.Task[None]] = list(self._background)
            if self._save_task is not None:
                pending.append(self._save_task)
            await asyncio.gather(*pending, return_exceptions=True)

    def _arm_timer(self, delay: float) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if self._closed:
            return
        if self._save_task is not None:
            self._save_requested = True
            return
        if not self.is_dirty:
            self._refresh_state()
            return
        self._start_save()

    def _start_save(self) -> asyncio.Task[None]:
        content = self._live
        task = asyncio.get_running_loop().create_task(self._run_save(content))
        self._save_task = task
        self._refresh_state()
        return task

    async def _run_save(self, content: str) -> None:
        self.logger.debug("document_save_started", content_length=len(content))
        error: Exception | None = None
        try:
            await self._persist(self.document_id, content)
        except Exception as e:
            # Timeouts and every other failure are handled the same way
            error = e
        finally:
            self._save_task = None

        if error is None:
            self._handle_save_success(content)
        else:
            self._handle_save_failure(error)

    def _handle_save_success(self, content: str) -> None:
        self._last_persisted = content
        self._failures = 0
        self._failed = False
        self.logger.info("document_saved", content_length=len(content), still_dirty=self.is_dirty)

        if self._reindex is not None:
            self._schedule_reindex()

        rerun_now = self._save_requested
        self._save_requested = False

        if self._closed:
            self._refresh_state()
            return

        if not self.is_dirty:
            self._cancel_timer()
        elif rerun_now:
            self._start_save()
        elif self._timer is None:
            self._arm_timer(self.debounce_seconds)
        self._refresh_state()

    def _handle_save_failure(self, error: Exception) -> None:
        self._failures += 1
        self._failed = True
        self._save_requested = False
        delay = min(
            self.retry_base_seconds * (2 ** (self._failures - 1)),
            self.retry_max_seconds,
        )

        self.logger.warning(
            "document_save_failed",
            attempt=self._failures,
            retry_in_seconds=delay,
            error=str(error),
            error_type=type(error).__name__,
        )

        if not self._closed and self.is_dirty:
            self._arm_timer(delay)
        self._refresh_state()

    def _schedule_reindex(self) -> None:
        task = asyncio.get_running_loop().create_task(self._reindex_after_save())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _reindex_after_save(self) -> None:
        assert self._reindex is not None
        try:
            await self._reindex(self.document_id)
        except Exception as e:
            # The save stands; the index catches up on the next save or rebuild
            self.logger.error(
                "index_update_failed",
                error=str(e),
                error_type=type(e).__name__,
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _refresh_state(self) -> None:
        previous = self._state
        if self._save_task is not None:
            self._state = SessionState.SAVING
        elif not self.is_dirty:
            self._state = SessionState.CLEAN
        elif self._failed:
            self._state = SessionState.SAVE_FAILED
        else:
            self._state = SessionState.DIRTY

        if self._state is not previous:
            self.logger.debug(
                "edit_session_state_changed", previous=previous.value, state=self._state.value
            )

    def _ensure_open(self) -> None:
        if self._closed:
            raise EditSessionClosedError(f"Edit session for {self.document_id} is closed")
