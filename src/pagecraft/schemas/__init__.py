"""Shared schemas for pagecraft."""

from pagecraft.schemas.history import (
    AddNodeAction,
    BatchUpdateAction,
    DeleteNodeAction,
    FullSnapshotAction,
    HistoryAction,
    HistoryActionType,
    MoveNodeAction,
    ToggleVisibilityAction,
    UpdatePropsAction,
    UpdateStyleAction,
    parse_history_action,
)
from pagecraft.schemas.material import MaterialMeta
from pagecraft.schemas.node import Document, DocumentMeta, Node

__all__ = [
    "AddNodeAction",
    "BatchUpdateAction",
    "DeleteNodeAction",
    "Document",
    "DocumentMeta",
    "FullSnapshotAction",
    "HistoryAction",
    "HistoryActionType",
    "MaterialMeta",
    "MoveNodeAction",
    "Node",
    "ToggleVisibilityAction",
    "UpdatePropsAction",
    "UpdateStyleAction",
    "parse_history_action",
]
