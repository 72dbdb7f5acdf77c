"""Undo/redo history for document edits."""

from pagecraft.history.manager import HistoryManager, coalesce_actions
from pagecraft.history.operations import apply_action, invert_action, is_reversible, revert_action
from pagecraft.history.scheduler import AsyncioScheduler, ManualScheduler, Scheduler, default_scheduler

__all__ = [
    "AsyncioScheduler",
    "HistoryManager",
    "ManualScheduler",
    "Scheduler",
    "apply_action",
    "coalesce_actions",
    "default_scheduler",
    "invert_action",
    "is_reversible",
    "revert_action",
]
