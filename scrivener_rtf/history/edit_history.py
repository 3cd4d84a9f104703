"""Bounded undo/redo history of serialized document snapshots."""
from __future__ import annotations

from typing import Callable, List

from scrivener_rtf.errors import MalformedRtfError, SnapshotRestoreError
from scrivener_rtf.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 100

# Snapshots are complete RTF serializations of the document.
Snapshot = str
RestoreCallback = Callable[[Snapshot], None]


class EditHistory:
    """Undo and redo stacks of RTF snapshots.

    ``last_saved`` is the snapshot of the state currently shown. A recorded
    edit pushes it onto the undo stack and clears the redo stack. While a
    snapshot is being replayed ``is_replaying`` is set and :meth:`record`
    ignores the document-changed notifications the replay triggers.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT, initial: Snapshot = "") -> None:
        if limit < 1:
            raise ValueError(f"history limit must be at least 1, got {limit}")
        self._limit = limit
        self._undo_stack: List[Snapshot] = []
        self._redo_stack: List[Snapshot] = []
        self._last_saved = initial
        self._replaying = False

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def last_saved(self) -> Snapshot:
        return self._last_saved

    @property
    def is_replaying(self) -> bool:
        return self._replaying

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    @property
    def undo_depth(self) -> int:
        return len(self._undo_stack)

    @property
    def redo_depth(self) -> int:
        return len(self._redo_stack)

    def reset(self, snapshot: Snapshot) -> None:
        """Start a fresh history for a newly loaded document."""
        self.clear()
        self._last_saved = snapshot

    def clear(self) -> None:
        self._undo_stack.clear()
        self._redo_stack.clear()

    def record(self, snapshot: Snapshot) -> bool:
        """Record a user edit; returns ``False`` when nothing was pushed."""
        if self._replaying or snapshot == self._last_saved:
            return False
        self._push(self._undo_stack, self._last_saved)
        self._redo_stack.clear()
        self._last_saved = snapshot
        return True

    def undo(self, current: Snapshot, restore: RestoreCallback) -> bool:
        return self._step(self._undo_stack, self._redo_stack, current, restore, "undo")

    def redo(self, current: Snapshot, restore: RestoreCallback) -> bool:
        return self._step(self._redo_stack, self._undo_stack, current, restore, "redo")

    def _step(
        self,
        source: List[Snapshot],
        target: List[Snapshot],
        current: Snapshot,
        restore: RestoreCallback,
        action: str,
    ) -> bool:
        if not source:
            return False
        snapshot = source.pop()
        self._replaying = True
        try:
            restore(snapshot)
        except MalformedRtfError as exc:
            source.append(snapshot)
            LOGGER.error("Could not %s: snapshot is not valid RTF (%s)", action, exc)
            raise SnapshotRestoreError(f"Could not {action}: {exc}") from exc
        finally:
            self._replaying = False
        self._push(target, current)
        self._last_saved = snapshot
        LOGGER.debug("%s applied; undo depth %d, redo depth %d", action.capitalize(), self.undo_depth, self.redo_depth)
        return True

    def _push(self, stack: List[Snapshot], snapshot: Snapshot) -> None:
        stack.append(snapshot)
        if len(stack) > self._limit:
            stack.pop(0)
