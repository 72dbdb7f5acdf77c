"""pagecraft: copy-on-write document tree editing with undo/redo."""

from pagecraft.exceptions import (
    InvalidMoveError,
    IrreversibleActionError,
    PagecraftError,
    TreeIntegrityError,
    UnknownMaterialError,
)
from pagecraft.history import HistoryManager, ManualScheduler
from pagecraft.materials import MaterialRegistry, create_default_document, create_node, default_registry
from pagecraft.node_map import build_node_map, update_node_map_incremental
from pagecraft.schemas import Document, DocumentMeta, MaterialMeta, Node
from pagecraft.selection import Selection, sync_selected_refs
from pagecraft.store import EditorStore

__all__ = [
    "Document",
    "DocumentMeta",
    "EditorStore",
    "HistoryManager",
    "InvalidMoveError",
    "IrreversibleActionError",
    "ManualScheduler",
    "MaterialMeta",
    "MaterialRegistry",
    "Node",
    "PagecraftError",
    "Selection",
    "TreeIntegrityError",
    "UnknownMaterialError",
    "build_node_map",
    "create_default_document",
    "create_node",
    "default_registry",
    "sync_selected_refs",
    "update_node_map_incremental",
]
