"""Undo/redo log with debounced coalescing and a capacity bound."""

from __future__ import annotations

import logging
from typing import Callable

from pagecraft import config
from pagecraft.history.operations import apply_action
from pagecraft.history.scheduler import Scheduler, TimerHandle, default_scheduler
from pagecraft.materials import create_default_document
from pagecraft.perf import count_event
from pagecraft.schemas import Document, HistoryAction, UpdatePropsAction, UpdateStyleAction

logger = logging.getLogger(__name__)

# Variants that merge while pending, keyed to the field holding the pre-edit value.
_COALESCE_FIELDS: dict[type, str] = {
    UpdatePropsAction: "old_props",
    UpdateStyleAction: "old_style",
}


def coalesce_actions(pending: HistoryAction, incoming: HistoryAction) -> HistoryAction | None:
    """Merge two edits of the same field of the same node.

    Returns:
        ``incoming`` carrying ``pending``'s old value, or None when the two
        actions target different variants or nodes.
    """
    field = _COALESCE_FIELDS.get(type(incoming))
    if field is None or type(pending) is not type(incoming):
        return None
    if pending.node_id != incoming.node_id:
        return None
    return incoming.model_copy(update={field: getattr(pending, field)})


class HistoryManager:
    """Linear undo/redo log applied on top of a base snapshot.

    ``index`` points at the last applied action (-1 when none is applied).
    Documents are reconstructed by replaying ``actions[0..index]`` over
    ``base_snapshot``, so no action ever has to be inverted.

    Debounced records wait for a quiet period before they are committed.
    Timers that came due without firing, as with a clock-driven
    ``ManualScheduler``, are run before the next record.
    Only one action is pending at a time; edits of the same field of the same
    node coalesce while pending.

    Args:
        base_snapshot: Document the log applies to. A default empty document
            is created on first use when omitted.
        max_size: Retained actions. Older ones are folded into the base.
        debounce_ms: Quiet period for debounced records.
        scheduler: Timer source. Defaults to ``default_scheduler()``.
        on_commit: Called with every action after it is committed.
    """

    def __init__(
        self,
        base_snapshot: Document | None = None,
        *,
        max_size: int | None = None,
        debounce_ms: int | None = None,
        scheduler: Scheduler | None = None,
        on_commit: Callable[[HistoryAction], None] | None = None,
    ) -> None:
        self._max_size = config.PAGECRAFT_HISTORY_MAX_SIZE if max_size is None else max_size
        if self._max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {self._max_size}")
        delay_ms = config.PAGECRAFT_HISTORY_DEBOUNCE_MS if debounce_ms is None else debounce_ms
        self._debounce_s = max(delay_ms, 0) / 1000
        self._scheduler = scheduler or default_scheduler()
        self.on_commit = on_commit

        self._base = base_snapshot
        self._actions: list[HistoryAction] = []
        self._index = -1
        self._pending: HistoryAction | None = None
        self._timer: TimerHandle | None = None

    @property
    def actions(self) -> tuple[HistoryAction, ...]:
        return tuple(self._actions)

    @property
    def index(self) -> int:
        return self._index

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def base_snapshot(self) -> Document:
        if self._base is None:
            self._base = create_default_document()
        return self._base

    @property
    def pending(self) -> HistoryAction | None:
        return self._pending

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def record(self, action: HistoryAction, immediate: bool = False) -> None:
        """Record an applied edit.

        Args:
            action: The edit, already applied to the live document.
            immediate: Commit now, discarding any pending debounced action.
                Otherwise the action is held until the debounce timer fires.
        """
        self.poll()
        if immediate:
            dropped = self.cancel_pending()
            if dropped is not None:
                logger.debug("Discarded pending %s superseded by %s", dropped.type.value, action.type.value)
            self._commit(action)
            return

        if self._pending is not None:
            merged = coalesce_actions(self._pending, action)
            if merged is None:
                self.flush()
                merged = action
        else:
            merged = action

        self._cancel_timer()
        self._pending = merged
        self._timer = self._scheduler.call_later(self._debounce_s, self._on_timer)

    def flush(self) -> bool:
        """Commit the pending action now.

        Returns:
            True if an action was committed.
        """
        action = self.cancel_pending()
        if action is None:
            return False
        logger.debug("Flushing pending %s", action.type.value)
        self._commit(action)
        return True

    def poll(self) -> bool:
        """Commit the pending action if its quiet period has already elapsed.

        Returns:
            True if the debounce timer fired.
        """
        return self._scheduler.poll() > 0

    def cancel_pending(self) -> HistoryAction | None:
        """Drop the pending action and its timer, returning the action."""
        self._cancel_timer()
        action, self._pending = self._pending, None
        return action

    def can_undo(self) -> bool:
        return self._index >= 0

    def can_redo(self) -> bool:
        return self._index < len(self._actions) - 1

    def undo(self) -> Document | None:
        """Step back one action.

        Returns:
            The reconstructed document, or None when there is nothing to undo.
        """
        self.flush()
        if not self.can_undo():
            return None
        self._index -= 1
        logger.debug("Undo to index %d of %d", self._index, len(self._actions))
        return self.document_at(self._index)

    def redo(self) -> Document | None:
        """Step forward one action.

        Returns:
            The reconstructed document, or None when there is nothing to redo.
        """
        self.flush()
        if not self.can_redo():
            return None
        self._index += 1
        logger.debug("Redo to index %d of %d", self._index, len(self._actions))
        return self.document_at(self._index)

    def document_at(self, index: int) -> Document:
        """Replay ``actions[0..index]`` over the base snapshot.

        Raises:
            IndexError: If ``index`` is outside ``-1 .. len(actions) - 1``.
        """
        if not -1 <= index < len(self._actions):
            raise IndexError(f"History index {index} out of range for {len(self._actions)} actions")
        document = self.base_snapshot
        for action in self._actions[: index + 1]:
            document = apply_action(document, action)
        return document

    def current_document(self) -> Document:
        return self.document_at(self._index)

    def reset(self, base_snapshot: Document | None = None) -> None:
        """Forget every action and start over from ``base_snapshot``."""
        self.cancel_pending()
        self._actions = []
        self._index = -1
        self._base = base_snapshot

    def _on_timer(self) -> None:
        self._timer = None
        action, self._pending = self._pending, None
        if action is not None:
            self._commit(action)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _commit(self, action: HistoryAction) -> None:
        del self._actions[self._index + 1 :]
        self._actions.append(action)
        if len(self._actions) > self._max_size:
            self._fold(len(self._actions) - self._max_size)
        self._index = len(self._actions) - 1
        count_event("history_commit_count")
        logger.debug("Committed %s at index %d", action.type.value, self._index)
        if self.on_commit is not None:
            self.on_commit(action)

    def _fold(self, count: int) -> None:
        document = self.base_snapshot
        for action in self._actions[:count]:
            document = apply_action(document, action)
        self._base = document
        del self._actions[:count]
        logger.debug("Folded %d oldest actions into the base snapshot", count)
