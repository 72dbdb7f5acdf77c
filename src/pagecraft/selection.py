"""Selected-node references kept in step with the live tree."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Mapping

from pagecraft.schemas import Node

logger = logging.getLogger(__name__)


class Selection:
    """Ordered set of selected nodes plus the focused and hovered node.

    The held node objects are references into the live tree. After every
    tree edit they must be refreshed with ``sync_selected_refs`` so that
    ``selection.get(id) is node_map[id]`` for each selected id.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}
        self._focused_id: str | None = None
        self.hovered_id: str | None = None

    @property
    def ids(self) -> list[str]:
        return list(self._nodes)

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes.values())

    @property
    def focused(self) -> Node | None:
        """The most recently selected node still in the selection."""
        if self._focused_id is None:
            return None
        return self._nodes.get(self._focused_id)

    def get(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def select(self, node: Node, multi: bool = False) -> None:
        """Select ``node``.

        Args:
            node: Node to select.
            multi: Toggle ``node`` within the current selection instead of
                replacing it.
        """
        if not multi:
            self._nodes = {node.id: node}
            self._focused_id = node.id
            return

        if node.id in self._nodes:
            self.discard(node.id)
            return
        self._nodes[node.id] = node
        self._focused_id = node.id

    def select_many(self, nodes: Iterable[Node]) -> None:
        """Replace the selection with ``nodes``; the last one gains focus."""
        self._nodes = {node.id: node for node in nodes}
        self._focused_id = next(reversed(self._nodes), None)

    def discard(self, node_id: str) -> None:
        """Remove one id, moving focus to the last remaining node if needed."""
        if self._nodes.pop(node_id, None) is None:
            return
        if self._focused_id == node_id:
            self._focused_id = next(reversed(self._nodes), None)

    def clear(self) -> None:
        self._nodes = {}
        self._focused_id = None

    def resync(self, node_map: Mapping[str, Node]) -> None:
        """Swap every held reference for ``node_map``'s, dropping ids it lacks."""
        for node_id in list(self._nodes):
            current = node_map.get(node_id)
            if current is None:
                logger.debug("Dropping removed node %s from selection", node_id)
                self.discard(node_id)
            else:
                self._nodes[node_id] = current
        if self.hovered_id is not None and self.hovered_id not in node_map:
            self.hovered_id = None

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())


def sync_selected_refs(selection: Selection, node_map: Mapping[str, Node]) -> Selection:
    """Point every selected id at its node in ``node_map``.

    Ids missing from ``node_map`` are dropped and focus moves to the last
    remaining node. A hover over a removed node is cleared. Modifies
    ``selection`` in place.

    Returns:
        The same ``selection``, for chaining.
    """
    selection.resync(node_map)
    return selection
