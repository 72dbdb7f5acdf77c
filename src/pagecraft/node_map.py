"""Id -> node lookup cache kept in step with copy-on-write edits."""

from __future__ import annotations

from pagecraft.mutations import find_path, iter_nodes
from pagecraft.perf import measure_perf
from pagecraft.schemas import Node

NodeMap = dict[str, Node]


@measure_perf("build_node_map_count", "BuildNodeMap")
def build_node_map(root: Node) -> NodeMap:
    """Map every id in the tree to its node with one full traversal."""
    return {node.id: node for node in iter_nodes(root)}


@measure_perf("incremental_update_count", "IncrementalUpdate")
def update_node_map_incremental(root: Node, changed_id: str, old_map: NodeMap) -> NodeMap:
    """Refresh a node map after a single-node edit.

    Copies ``old_map`` and overwrites only the entries on the path from
    ``root`` to ``changed_id``: after a copy-on-write edit those are the only
    new node objects. A node that did not exist before registers its whole
    subtree; a node that no longer exists is dropped with its subtree and its
    former parent's path is refreshed instead.

    A move touches two paths; refresh the old parent id and the moved id in
    turn.

    Args:
        root: Root of the tree after the edit.
        changed_id: Id of the edited, inserted, or removed node.
        old_map: Map built for the tree before the edit. Not modified.

    Returns:
        A new map content-equal to ``build_node_map(root)``.
    """
    new_map = dict(old_map)
    path = _locate(root, changed_id, old_map)

    if path is None:
        stale = old_map.get(changed_id)
        if stale is None:
            return new_map
        for node in iter_nodes(stale):
            new_map.pop(node.id, None)
        if stale.parent_id is None:
            return new_map
        path = _locate(root, stale.parent_id, old_map)
        if path is None:
            return new_map

    for node in path:
        new_map[node.id] = node

    if changed_id not in old_map:
        for node in iter_nodes(path[-1]):
            new_map[node.id] = node

    return new_map


def _locate(root: Node, node_id: str, hints: NodeMap) -> list[Node] | None:
    """Find the root -> node path, following ``parent_id`` hints before searching."""
    chain: list[str] = []
    current = hints.get(node_id)
    while current is not None:
        chain.append(current.id)
        if current.parent_id is None:
            break
        current = hints.get(current.parent_id)

    if chain and chain[-1] == root.id:
        path = [root]
        for step_id in reversed(chain[:-1]):
            step = next((child for child in path[-1].children if child.id == step_id), None)
            if step is None:
                break
            path.append(step)
        else:
            return path

    return find_path(root, node_id)
