"""Pure copy-on-write operations on node trees.

Every function takes a root and returns a root. Only the nodes on the path
from the root to the edited node are rebuilt; all other subtrees are shared
by reference with the input tree. When the addressed node does not exist the
input root itself is returned unchanged, so ``result is root`` tells a caller
that nothing happened.
"""

from __future__ import annotations

import copy
from typing import Any, Iterator

from pagecraft.exceptions import InvalidMoveError, TreeIntegrityError
from pagecraft.id_utils import IdFactory, new_node_id
from pagecraft.schemas import Node


def iter_nodes(root: Node) -> Iterator[Node]:
    """Yield every node of the tree in depth-first pre-order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def collect_ids(root: Node) -> set[str]:
    """Return the set of ids present in the tree."""
    return {node.id for node in iter_nodes(root)}


def find_path(root: Node, node_id: str) -> list[Node] | None:
    """Return the nodes from ``root`` down to ``node_id`` inclusive, or None."""
    trail: list[Node] = []

    def _search(node: Node) -> bool:
        trail.append(node)
        if node.id == node_id:
            return True
        for child in node.children:
            if _search(child):
                return True
        trail.pop()
        return False

    return trail if _search(root) else None


def find_node(root: Node, node_id: str) -> Node | None:
    """Find a node by id with an O(n) walk."""
    for node in iter_nodes(root):
        if node.id == node_id:
            return node
    return None


def find_parent(root: Node, node_id: str) -> Node | None:
    """Find the node whose ``children`` contain ``node_id``."""
    path = find_path(root, node_id)
    if path is None or len(path) < 2:
        return None
    return path[-2]


def index_in_parent(root: Node, node_id: str) -> tuple[Node, int] | None:
    """Return ``(parent, index)`` locating ``node_id``, or None for the root or a missing id."""
    path = find_path(root, node_id)
    if path is None or len(path) < 2:
        return None
    parent, target = path[-2], path[-1]
    return parent, _child_index(parent, target)


def check_tree(root: Node) -> None:
    """Verify id uniqueness and parent back-references.

    Raises:
        TreeIntegrityError: If an id repeats, the root carries a parent id, or
            a child's ``parent_id`` does not name its container.
    """
    if root.parent_id is not None:
        raise TreeIntegrityError(f"Root node {root.id!r} has parent_id {root.parent_id!r}")
    seen: set[str] = set()
    for node in iter_nodes(root):
        if node.id in seen:
            raise TreeIntegrityError(f"Duplicate node id {node.id!r}")
        seen.add(node.id)
        for child in node.children:
            if child.parent_id != node.id:
                raise TreeIntegrityError(
                    f"Node {child.id!r} has parent_id {child.parent_id!r}, expected {node.id!r}"
                )


def _child_index(parent: Node, child: Node) -> int:
    for index, candidate in enumerate(parent.children):
        if candidate is child:
            return index
    raise TreeIntegrityError(f"Node {child.id!r} is not a child of {parent.id!r}")


def _rebuild_path(path: list[Node], replacement: Node) -> Node:
    """Swap ``path[-1]`` for ``replacement`` and copy every ancestor on the path."""
    new_node = replacement
    for depth in range(len(path) - 2, -1, -1):
        parent = path[depth]
        children = list(parent.children)
        children[_child_index(parent, path[depth + 1])] = new_node
        new_node = parent.model_copy(update={"children": children})
    return new_node


def _stamped(node: Node, parent_id: str) -> Node:
    if node.parent_id == parent_id:
        return node
    return node.model_copy(update={"parent_id": parent_id})


def update_node(root: Node, node_id: str, **changes: Any) -> Node:
    """Replace fields on one node, e.g. ``update_node(root, id, hidden=True)``."""
    path = find_path(root, node_id)
    if path is None:
        return root
    return _rebuild_path(path, path[-1].model_copy(update=changes))


def update_node_props(root: Node, node_id: str, patch: dict[str, Any]) -> Node:
    """Shallow-merge ``patch`` into the target node's props."""
    path = find_path(root, node_id)
    if path is None:
        return root
    target = path[-1]
    return _rebuild_path(path, target.model_copy(update={"props": {**target.props, **patch}}))


def update_node_style(root: Node, node_id: str, patch: dict[str, Any]) -> Node:
    """Shallow-merge ``patch`` into the target node's style."""
    path = find_path(root, node_id)
    if path is None:
        return root
    target = path[-1]
    return _rebuild_path(path, target.model_copy(update={"style": {**target.style, **patch}}))


def insert_child(root: Node, parent_id: str, index: int | None, node: Node) -> Node:
    """Insert ``node`` into ``parent_id``'s children at ``index`` (clamped, None appends)."""
    path = find_path(root, parent_id)
    if path is None:
        return root
    parent = path[-1]
    children = list(parent.children)
    position = len(children) if index is None else max(0, min(index, len(children)))
    children.insert(position, _stamped(node, parent_id))
    return _rebuild_path(path, parent.model_copy(update={"children": children}))


def append_child(root: Node, parent_id: str, node: Node) -> Node:
    """Append ``node`` as the last child of ``parent_id``."""
    return insert_child(root, parent_id, None, node)


def _insert_beside(root: Node, target_id: str, node: Node, offset: int) -> Node:
    path = find_path(root, target_id)
    if path is None or len(path) < 2:
        return root
    parent = path[-2]
    children = list(parent.children)
    children.insert(_child_index(parent, path[-1]) + offset, _stamped(node, parent.id))
    return _rebuild_path(path[:-1], parent.model_copy(update={"children": children}))


def insert_before(root: Node, target_id: str, node: Node) -> Node:
    """Insert ``node`` as the sibling immediately before ``target_id``."""
    return _insert_beside(root, target_id, node, 0)


def insert_after(root: Node, target_id: str, node: Node) -> Node:
    """Insert ``node`` as the sibling immediately after ``target_id``."""
    return _insert_beside(root, target_id, node, 1)


def delete_node(root: Node, node_id: str) -> Node:
    """Remove a node and its whole subtree. The root itself cannot be deleted."""
    path = find_path(root, node_id)
    if path is None or len(path) < 2:
        return root
    parent = path[-2]
    children = list(parent.children)
    del children[_child_index(parent, path[-1])]
    return _rebuild_path(path[:-1], parent.model_copy(update={"children": children}))


def clone_node(node: Node, id_factory: IdFactory | None = None) -> Node:
    """Deep-copy a subtree, giving the node and every descendant a fresh id.

    Descendants are re-stamped with their cloned parent's id. The clone keeps
    ``node.parent_id`` until it is inserted somewhere.

    Raises:
        TreeIntegrityError: If ``id_factory`` returns an id already used by
            the source subtree or by an earlier clone.
    """
    make_id = id_factory or new_node_id
    used = collect_ids(node)

    def _mint() -> str:
        new_id = make_id()
        if new_id in used:
            raise TreeIntegrityError(f"Id factory produced a colliding id {new_id!r}")
        used.add(new_id)
        return new_id

    def _clone(source: Node, parent_id: str | None) -> Node:
        new_id = _mint()
        return source.model_copy(
            update={
                "id": new_id,
                "parent_id": parent_id,
                "props": copy.deepcopy(source.props),
                "style": copy.deepcopy(source.style),
                "children": [_clone(child, new_id) for child in source.children],
            }
        )

    return _clone(node, node.parent_id)


def move_node(root: Node, node_id: str, target_parent_id: str, position: int) -> Node:
    """Move a node, keeping its id and subtree, under ``target_parent_id``.

    ``position`` indexes the target's children after the node has been
    removed from its old place. A missing node or missing target parent is a
    no-op.

    Raises:
        InvalidMoveError: If the node is the root, or the target is the node
            itself or one of its descendants.
    """
    path = find_path(root, node_id)
    if path is None:
        return root
    if len(path) == 1:
        raise InvalidMoveError("Cannot move the root node")
    moving = path[-1]
    if find_node(moving, target_parent_id) is not None:
        raise InvalidMoveError(f"Cannot move node {node_id!r} into itself or its descendant {target_parent_id!r}")
    if find_node(root, target_parent_id) is None:
        return root
    return insert_child(delete_node(root, node_id), target_parent_id, position, moving)
