"""Undoable history action models.

``HistoryAction`` is a tagged union discriminated on ``type``. Each variant
carries everything needed to apply it forward and to invert it without
consulting the document it came from.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from pagecraft.schemas.node import Document, Node


class HistoryActionType(str, Enum):
    """Discriminator values for history actions."""

    UPDATE_PROPS = "UPDATE_PROPS"
    UPDATE_STYLE = "UPDATE_STYLE"
    ADD_NODE = "ADD_NODE"
    DELETE_NODE = "DELETE_NODE"
    MOVE_NODE = "MOVE_NODE"
    TOGGLE_VISIBILITY = "TOGGLE_VISIBILITY"
    BATCH_UPDATE = "BATCH_UPDATE"
    FULL_SNAPSHOT = "FULL_SNAPSHOT"


class BaseHistoryAction(BaseModel):
    """Fields shared by every history action."""

    model_config = ConfigDict(frozen=True)

    timestamp: float = Field(default_factory=time.time)


class UpdatePropsAction(BaseHistoryAction):
    """Replace a node's props map; ``old_props`` restores it."""

    type: Literal[HistoryActionType.UPDATE_PROPS] = HistoryActionType.UPDATE_PROPS
    node_id: str
    old_props: dict[str, Any]
    new_props: dict[str, Any]


class UpdateStyleAction(BaseHistoryAction):
    """Replace a node's style map; ``old_style`` restores it."""

    type: Literal[HistoryActionType.UPDATE_STYLE] = HistoryActionType.UPDATE_STYLE
    node_id: str
    old_style: dict[str, Any]
    new_style: dict[str, Any]


class AddNodeAction(BaseHistoryAction):
    """Insert ``node`` (with its subtree) at ``index`` under ``parent_id``."""

    type: Literal[HistoryActionType.ADD_NODE] = HistoryActionType.ADD_NODE
    parent_id: str
    index: int
    node: Node


class DeleteNodeAction(BaseHistoryAction):
    """Remove ``node_id``; ``node`` and ``index`` restore the removed subtree."""

    type: Literal[HistoryActionType.DELETE_NODE] = HistoryActionType.DELETE_NODE
    node_id: str
    parent_id: str
    index: int
    node: Node


class MoveNodeAction(BaseHistoryAction):
    """Relocate a node; indices are positions within the destination after removal."""

    type: Literal[HistoryActionType.MOVE_NODE] = HistoryActionType.MOVE_NODE
    node_id: str
    old_parent_id: str
    old_index: int
    new_parent_id: str
    new_index: int


class ToggleVisibilityAction(BaseHistoryAction):
    type: Literal[HistoryActionType.TOGGLE_VISIBILITY] = HistoryActionType.TOGGLE_VISIBILITY
    node_id: str
    old_hidden: bool
    new_hidden: bool


class BatchUpdateAction(BaseHistoryAction):
    """Ordered sub-actions undone and redone as one unit."""

    type: Literal[HistoryActionType.BATCH_UPDATE] = HistoryActionType.BATCH_UPDATE
    actions: list[HistoryAction]


class FullSnapshotAction(BaseHistoryAction):
    """Replace the whole document. Not invertible on its own."""

    type: Literal[HistoryActionType.FULL_SNAPSHOT] = HistoryActionType.FULL_SNAPSHOT
    snapshot: Document


HistoryAction = Annotated[
    Union[
        UpdatePropsAction,
        UpdateStyleAction,
        AddNodeAction,
        DeleteNodeAction,
        MoveNodeAction,
        ToggleVisibilityAction,
        BatchUpdateAction,
        FullSnapshotAction,
    ],
    Field(discriminator="type"),
]

BatchUpdateAction.model_rebuild()

history_action_adapter: TypeAdapter[HistoryAction] = TypeAdapter(HistoryAction)


def parse_history_action(data: Any) -> HistoryAction:
    """Validate a serialized action (dict) into its concrete variant."""
    return history_action_adapter.validate_python(data)
