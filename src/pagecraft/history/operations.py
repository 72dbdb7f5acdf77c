"""Apply history actions forward and backward."""

from __future__ import annotations

from pagecraft.exceptions import IrreversibleActionError
from pagecraft.mutations import delete_node, insert_child, move_node, update_node
from pagecraft.schemas import (
    AddNodeAction,
    BatchUpdateAction,
    DeleteNodeAction,
    Document,
    FullSnapshotAction,
    HistoryAction,
    MoveNodeAction,
    ToggleVisibilityAction,
    UpdatePropsAction,
    UpdateStyleAction,
)


def apply_action(document: Document, action: HistoryAction) -> Document:
    """Return ``document`` with ``action`` applied forward."""
    root = document.root

    if isinstance(action, UpdatePropsAction):
        return document.with_root(update_node(root, action.node_id, props=dict(action.new_props)))
    if isinstance(action, UpdateStyleAction):
        return document.with_root(update_node(root, action.node_id, style=dict(action.new_style)))
    if isinstance(action, AddNodeAction):
        return document.with_root(insert_child(root, action.parent_id, action.index, action.node))
    if isinstance(action, DeleteNodeAction):
        return document.with_root(delete_node(root, action.node_id))
    if isinstance(action, MoveNodeAction):
        return document.with_root(move_node(root, action.node_id, action.new_parent_id, action.new_index))
    if isinstance(action, ToggleVisibilityAction):
        return document.with_root(update_node(root, action.node_id, hidden=action.new_hidden))
    if isinstance(action, BatchUpdateAction):
        for sub_action in action.actions:
            document = apply_action(document, sub_action)
        return document
    if isinstance(action, FullSnapshotAction):
        return action.snapshot
    raise TypeError(f"Unsupported history action: {type(action).__name__}")


def invert_action(action: HistoryAction) -> HistoryAction:
    """Build the action that undoes ``action``.

    Raises:
        IrreversibleActionError: For ``FULL_SNAPSHOT`` actions (directly or
            inside a batch), which do not record the document they replaced.
    """
    stamp = action.timestamp

    if isinstance(action, UpdatePropsAction):
        return UpdatePropsAction(
            node_id=action.node_id, old_props=action.new_props, new_props=action.old_props, timestamp=stamp
        )
    if isinstance(action, UpdateStyleAction):
        return UpdateStyleAction(
            node_id=action.node_id, old_style=action.new_style, new_style=action.old_style, timestamp=stamp
        )
    if isinstance(action, AddNodeAction):
        return DeleteNodeAction(
            node_id=action.node.id,
            parent_id=action.parent_id,
            index=action.index,
            node=action.node,
            timestamp=stamp,
        )
    if isinstance(action, DeleteNodeAction):
        return AddNodeAction(parent_id=action.parent_id, index=action.index, node=action.node, timestamp=stamp)
    if isinstance(action, MoveNodeAction):
        return MoveNodeAction(
            node_id=action.node_id,
            old_parent_id=action.new_parent_id,
            old_index=action.new_index,
            new_parent_id=action.old_parent_id,
            new_index=action.old_index,
            timestamp=stamp,
        )
    if isinstance(action, ToggleVisibilityAction):
        return ToggleVisibilityAction(
            node_id=action.node_id, old_hidden=action.new_hidden, new_hidden=action.old_hidden, timestamp=stamp
        )
    if isinstance(action, BatchUpdateAction):
        return BatchUpdateAction(
            actions=[invert_action(sub_action) for sub_action in reversed(action.actions)],
            timestamp=stamp,
        )
    if isinstance(action, FullSnapshotAction):
        raise IrreversibleActionError("FULL_SNAPSHOT actions cannot be inverted")
    raise TypeError(f"Unsupported history action: {type(action).__name__}")


def revert_action(document: Document, action: HistoryAction) -> Document:
    """Return ``document`` with ``action`` undone.

    Raises:
        IrreversibleActionError: If ``action`` is or contains a ``FULL_SNAPSHOT``.
    """
    return apply_action(document, invert_action(action))


def is_reversible(action: HistoryAction) -> bool:
    """Whether ``invert_action`` can handle ``action``."""
    if isinstance(action, FullSnapshotAction):
        return False
    if isinstance(action, BatchUpdateAction):
        return all(is_reversible(sub_action) for sub_action in action.actions)
    return True
