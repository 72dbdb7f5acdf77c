"""Editor state: live document, node map, selection, clipboard and history.

Every edit runs the same pipeline: compute the new tree with
``pagecraft.mutations``, swap it into the live document, refresh the node
map, re-point the selection at the new node objects and finally record a
history action. Prop and style edits are recorded debounced; structural
edits are committed immediately after flushing any pending leaf edit.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Literal

from pagecraft.exceptions import InvalidMoveError
from pagecraft.history import HistoryManager, Scheduler
from pagecraft.id_utils import IdFactory, new_node_id
from pagecraft.materials import MaterialRegistry, create_default_document, create_node, default_registry
from pagecraft.mutations import (
    clone_node,
    delete_node,
    find_node,
    index_in_parent,
    insert_after,
    insert_before,
    insert_child,
    move_node,
    update_node,
    update_node_props,
    update_node_style,
)
from pagecraft.node_map import NodeMap, build_node_map, update_node_map_incremental
from pagecraft.schemas import (
    AddNodeAction,
    BatchUpdateAction,
    DeleteNodeAction,
    Document,
    FullSnapshotAction,
    HistoryAction,
    MoveNodeAction,
    Node,
    ToggleVisibilityAction,
    UpdatePropsAction,
    UpdateStyleAction,
)
from pagecraft.selection import Selection, sync_selected_refs

logger = logging.getLogger(__name__)

MovePosition = Literal["before", "after", "inside"]


class EditorStore:
    """Single owner of the document being edited.

    Args:
        document: Initial document. Defaults to an empty page.
        registry: Materials available to ``add_node``.
        id_factory: Id generator for new and cloned nodes.
        scheduler: Timer source for debounced history commits.
        max_size: Retained history actions.
        debounce_ms: Quiet period before a prop/style edit is committed.
    """

    def __init__(
        self,
        document: Document | None = None,
        *,
        registry: MaterialRegistry | None = None,
        id_factory: IdFactory | None = None,
        scheduler: Scheduler | None = None,
        max_size: int | None = None,
        debounce_ms: int | None = None,
    ) -> None:
        self.registry = registry or default_registry()
        self._id_factory = id_factory or new_node_id
        self._document = document or create_default_document(self._id_factory)
        self.history = HistoryManager(
            self._document, max_size=max_size, debounce_ms=debounce_ms, scheduler=scheduler
        )
        self._node_map: NodeMap = build_node_map(self._document.root)
        self.selection = Selection()
        self.clipboard: list[Node] = []

    @property
    def document(self) -> Document:
        return self._document

    @property
    def root(self) -> Node:
        return self._document.root

    @property
    def node_map(self) -> NodeMap:
        return self._node_map

    def get_node(self, node_id: str) -> Node | None:
        """O(1) lookup of a node in the live tree."""
        return self._node_map.get(node_id)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _replace_root(self, root: Node, *changed_ids: str) -> bool:
        """Install ``root`` and bring the node map and selection up to date.

        With ``changed_ids`` the node map is patched one path at a time;
        without, it is rebuilt from scratch.

        Returns:
            False when ``root`` is the current root, i.e. nothing changed.
        """
        if root is self._document.root:
            return False
        self._document = self._document.with_root(root)
        if changed_ids:
            node_map = self._node_map
            for node_id in changed_ids:
                node_map = update_node_map_incremental(root, node_id, node_map)
            self._node_map = node_map
        else:
            self._node_map = build_node_map(root)
        sync_selected_refs(self.selection, self._node_map)
        return True

    def _replace_document(self, document: Document) -> None:
        self._document = document
        self._node_map = build_node_map(document.root)
        sync_selected_refs(self.selection, self._node_map)

    def _commit_structural(self, action: HistoryAction) -> None:
        self.history.flush()
        self.history.record(action, immediate=True)

    def _insert(self, new_root: Node, node: Node) -> Node | None:
        """Finish an insertion of ``node``: record it and select it."""
        if not self._replace_root(new_root, node.id):
            logger.debug("Insertion of %s was a no-op", node.id)
            return None
        parent, index = index_in_parent(self.root, node.id)
        inserted = self._node_map[node.id]
        self._commit_structural(AddNodeAction(parent_id=parent.id, index=index, node=inserted))
        self.selection.select(inserted)
        return inserted

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def add_node(
        self,
        material_type: str,
        parent_id: str | None = None,
        index: int | None = None,
        props: dict[str, Any] | None = None,
    ) -> Node | None:
        """Create a node of ``material_type`` and insert it.

        Args:
            material_type: Registered material type.
            parent_id: Container to insert into. Defaults to the root.
            index: Position among the parent's children. Defaults to last.
            props: Props merged over the material defaults.

        Returns:
            The inserted node, now selected, or None if ``parent_id`` is unknown.

        Raises:
            UnknownMaterialError: If ``material_type`` is not registered.
        """
        node = create_node(material_type, props, registry=self.registry, id_factory=self._id_factory)
        return self._insert(insert_child(self.root, parent_id or self.root.id, index, node), node)

    def add_node_from_schema(self, schema: Node, parent_id: str | None = None) -> Node | None:
        """Insert a fresh-id copy of a template subtree."""
        node = clone_node(schema, self._id_factory)
        return self._insert(insert_child(self.root, parent_id or self.root.id, None, node), node)

    def add_node_before(self, material_type: str, target_id: str) -> Node | None:
        node = create_node(material_type, registry=self.registry, id_factory=self._id_factory)
        return self._insert(insert_before(self.root, target_id, node), node)

    def add_node_after(self, material_type: str, target_id: str) -> Node | None:
        node = create_node(material_type, registry=self.registry, id_factory=self._id_factory)
        return self._insert(insert_after(self.root, target_id, node), node)

    def duplicate_node(self, node_id: str) -> Node | None:
        """Insert a fresh-id copy of ``node_id`` right after it and select the copy."""
        source = self._node_map.get(node_id)
        if source is None or node_id == self.root.id:
            logger.debug("Cannot duplicate %s", node_id)
            return None
        clone = clone_node(source, self._id_factory)
        return self._insert(insert_after(self.root, node_id, clone), clone)

    def duplicate_nodes(self, node_ids: Iterable[str]) -> list[Node]:
        """Duplicate several nodes as one undoable step; the copies become the selection."""
        root = self.root
        actions: list[HistoryAction] = []
        new_ids: list[str] = []
        for node_id in node_ids:
            source = find_node(root, node_id)
            if source is None or node_id == root.id:
                continue
            clone = clone_node(source, self._id_factory)
            root = insert_after(root, node_id, clone)
            parent, index = index_in_parent(root, clone.id)
            actions.append(AddNodeAction(parent_id=parent.id, index=index, node=parent.children[index]))
            new_ids.append(clone.id)
        return self._commit_batch(root, actions, new_ids)

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def delete_node(self, node_id: str) -> bool:
        """Remove a node and its subtree. The root cannot be deleted."""
        located = index_in_parent(self.root, node_id)
        if located is None:
            logger.debug("Cannot delete %s", node_id)
            return False
        parent, index = located
        removed = parent.children[index]
        self._replace_root(delete_node(self.root, node_id), node_id)
        self._commit_structural(
            DeleteNodeAction(node_id=node_id, parent_id=parent.id, index=index, node=removed)
        )
        return True

    def delete_nodes(self, node_ids: Iterable[str]) -> bool:
        """Delete several nodes as one undoable step and clear the selection."""
        root = self.root
        actions: list[HistoryAction] = []
        for node_id in node_ids:
            located = index_in_parent(root, node_id)
            if located is None:
                continue
            parent, index = located
            actions.append(
                DeleteNodeAction(node_id=node_id, parent_id=parent.id, index=index, node=parent.children[index])
            )
            root = delete_node(root, node_id)
        if not actions:
            return False
        self._commit_batch(root, actions, [])
        self.selection.clear()
        return True

    def _commit_batch(self, root: Node, actions: list[HistoryAction], select_ids: list[str]) -> list[Node]:
        if not actions:
            return []
        self._replace_root(root)
        self._commit_structural(BatchUpdateAction(actions=actions))
        selected = [self._node_map[node_id] for node_id in select_ids]
        if selected:
            self.selection.select_many(selected)
        return selected

    # ------------------------------------------------------------------
    # Leaf edits
    # ------------------------------------------------------------------

    def update_node_props(self, node_id: str, patch: dict[str, Any]) -> bool:
        """Shallow-merge ``patch`` into a node's props (debounced history)."""
        target = self._node_map.get(node_id)
        if target is None:
            logger.debug("Cannot update props of missing node %s", node_id)
            return False
        if all(key in target.props and target.props[key] == value for key, value in patch.items()):
            return False
        self._replace_root(update_node_props(self.root, node_id, patch), node_id)
        self.history.record(
            UpdatePropsAction(
                node_id=node_id, old_props=dict(target.props), new_props=dict(self._node_map[node_id].props)
            )
        )
        return True

    def update_node_style(self, node_id: str, patch: dict[str, Any]) -> bool:
        """Shallow-merge ``patch`` into a node's style (debounced history)."""
        target = self._node_map.get(node_id)
        if target is None:
            logger.debug("Cannot update style of missing node %s", node_id)
            return False
        if all(key in target.style and target.style[key] == value for key, value in patch.items()):
            return False
        self._replace_root(update_node_style(self.root, node_id, patch), node_id)
        self.history.record(
            UpdateStyleAction(
                node_id=node_id, old_style=dict(target.style), new_style=dict(self._node_map[node_id].style)
            )
        )
        return True

    def toggle_visibility(self, node_id: str) -> bool:
        """Flip a node's ``hidden`` flag. The root cannot be hidden."""
        target = self._node_map.get(node_id)
        if target is None or node_id == self.root.id:
            logger.debug("Cannot toggle visibility of %s", node_id)
            return False
        self._replace_root(update_node(self.root, node_id, hidden=not target.hidden), node_id)
        self._commit_structural(
            ToggleVisibilityAction(node_id=node_id, old_hidden=target.hidden, new_hidden=not target.hidden)
        )
        return True

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def move_node_to(self, node_id: str, target_id: str, position: MovePosition = "inside") -> bool:
        """Move a node next to or into ``target_id``.

        Args:
            node_id: Node to move, with its subtree.
            target_id: Reference node.
            position: "before"/"after" place the node beside ``target_id``;
                "inside" appends it to ``target_id``'s children.

        Returns:
            True if the tree changed. Moving a node onto itself, moving the
            root, or naming a missing node is a no-op.

        Raises:
            InvalidMoveError: If ``target_id`` lies inside the moved subtree.
            ValueError: If ``position`` is not one of the three above.
        """
        if position not in ("before", "after", "inside"):
            raise ValueError(f"Unknown move position: {position!r}")
        if node_id == target_id or node_id == self.root.id:
            return False
        moving = self._node_map.get(node_id)
        if moving is None or target_id not in self._node_map:
            logger.debug("Cannot move %s to %s", node_id, target_id)
            return False
        if find_node(moving, target_id) is not None:
            raise InvalidMoveError(f"Cannot move node {node_id!r} into its descendant {target_id!r}")

        detached = delete_node(self.root, node_id)
        if position == "inside":
            new_parent_id = target_id
            new_index = len(find_node(detached, target_id).children)
        else:
            located = index_in_parent(detached, target_id)
            if located is None:
                logger.debug("Cannot move %s beside the root", node_id)
                return False
            parent, target_index = located
            new_parent_id = parent.id
            new_index = target_index + (1 if position == "after" else 0)
        return self._move(node_id, new_parent_id, new_index)

    def move_node_up(self, node_id: str) -> bool:
        """Swap a node with its previous sibling."""
        located = index_in_parent(self.root, node_id)
        if located is None or located[1] == 0:
            return False
        parent, index = located
        return self._move(node_id, parent.id, index - 1)

    def move_node_down(self, node_id: str) -> bool:
        """Swap a node with its next sibling."""
        located = index_in_parent(self.root, node_id)
        if located is None or located[1] >= len(located[0].children) - 1:
            return False
        parent, index = located
        return self._move(node_id, parent.id, index + 1)

    def _move(self, node_id: str, new_parent_id: str, new_index: int) -> bool:
        old_parent, old_index = index_in_parent(self.root, node_id)
        if old_parent.id == new_parent_id and old_index == new_index:
            return False
        self._replace_root(move_node(self.root, node_id, new_parent_id, new_index), old_parent.id, node_id)
        self._commit_structural(
            MoveNodeAction(
                node_id=node_id,
                old_parent_id=old_parent.id,
                old_index=old_index,
                new_parent_id=new_parent_id,
                new_index=new_index,
            )
        )
        return True

    # ------------------------------------------------------------------
    # Clipboard
    # ------------------------------------------------------------------

    def copy_node(self, node_id: str) -> bool:
        return self.copy_nodes([node_id])

    def copy_nodes(self, node_ids: Iterable[str]) -> bool:
        """Put the named nodes on the clipboard. Unknown ids are skipped."""
        nodes = [self._node_map[node_id] for node_id in node_ids if node_id in self._node_map]
        if not nodes:
            return False
        self.clipboard = nodes
        return True

    def cut_node(self, node_id: str) -> bool:
        """Copy a node to the clipboard and delete it. The root cannot be cut."""
        if node_id == self.root.id or not self.copy_node(node_id):
            return False
        return self.delete_node(node_id)

    def paste_node(self, target_id: str | None = None) -> list[Node]:
        """Insert fresh-id copies of the clipboard.

        Copies go right after ``target_id`` in clipboard order, or at the end
        of the root when no target (or the root) is given. The pasted nodes
        become the selection.
        """
        if not self.clipboard:
            return []
        if target_id is not None and target_id not in self._node_map:
            logger.debug("Cannot paste after missing node %s", target_id)
            return []

        root = self.root
        anchor_id = None if target_id == root.id else target_id
        actions: list[HistoryAction] = []
        new_ids: list[str] = []
        for source in self.clipboard:
            clone = clone_node(source, self._id_factory)
            if anchor_id is None:
                root = insert_child(root, root.id, None, clone)
            else:
                root = insert_after(root, anchor_id, clone)
                anchor_id = clone.id
            parent, index = index_in_parent(root, clone.id)
            actions.append(AddNodeAction(parent_id=parent.id, index=index, node=parent.children[index]))
            new_ids.append(clone.id)

        if len(actions) == 1:
            pasted = self._insert(root, actions[0].node)
            return [pasted] if pasted is not None else []
        return self._commit_batch(root, actions, new_ids)

    # ------------------------------------------------------------------
    # Selection (never recorded in history)
    # ------------------------------------------------------------------

    def select_node(self, node_id: str, multi: bool = False) -> bool:
        node = self._node_map.get(node_id)
        if node is None:
            logger.debug("Cannot select missing node %s", node_id)
            return False
        self.selection.select(node, multi=multi)
        return True

    def select_nodes(self, node_ids: Iterable[str]) -> None:
        self.selection.select_many(self._node_map[node_id] for node_id in node_ids if node_id in self._node_map)

    def select_all(self) -> None:
        """Select every node except the root."""
        self.selection.select_many(node for node in self._node_map.values() if node is not self.root)

    def clear_selection(self) -> None:
        self.selection.clear()

    def set_hovered_node(self, node_id: str | None) -> None:
        self.selection.hovered_id = node_id if node_id in self._node_map else None

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        document = self.history.undo()
        if document is None:
            return False
        self._replace_document(document)
        return True

    def redo(self) -> bool:
        document = self.history.redo()
        if document is None:
            return False
        self._replace_document(document)
        return True

    def can_undo(self) -> bool:
        """Whether ``undo`` would change anything, counting a pending leaf edit."""
        self.history.poll()
        return self.history.has_pending or self.history.can_undo()

    def can_redo(self) -> bool:
        self.history.poll()
        return not self.history.has_pending and self.history.can_redo()

    def flush_history(self) -> bool:
        """Commit any pending debounced edit now."""
        return self.history.flush()

    # ------------------------------------------------------------------
    # Whole-document operations
    # ------------------------------------------------------------------

    def load_document(self, document: Document) -> None:
        """Replace the whole document as one undoable step."""
        self._replace_document(document)
        self._commit_structural(FullSnapshotAction(snapshot=document))

    def reset(self, document: Document | None = None) -> None:
        """Start a new editing session: new document, empty history and clipboard."""
        document = document or create_default_document(self._id_factory)
        self.history.reset(document)
        self.selection.clear()
        self.selection.hovered_id = None
        self.clipboard = []
        self._replace_document(document)
