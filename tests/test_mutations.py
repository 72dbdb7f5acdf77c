"""Tests for copy-on-write tree mutations."""

from __future__ import annotations

import itertools

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from pagecraft.exceptions import InvalidMoveError, TreeIntegrityError
from pagecraft.mutations import (
    append_child,
    check_tree,
    clone_node,
    collect_ids,
    delete_node,
    find_node,
    find_parent,
    find_path,
    index_in_parent,
    insert_after,
    insert_before,
    insert_child,
    iter_nodes,
    move_node,
    update_node,
    update_node_props,
    update_node_style,
)
from pagecraft.schemas import Node


def _child_ids(node: Node) -> list[str]:
    return [child.id for child in node.children]


class TestLookup:
    """Tests for find_node, find_parent, find_path and index_in_parent."""

    def test_iter_nodes_is_preorder(self, sample_root: Node) -> None:
        """A parent is yielded before its children, siblings in order."""
        assert [node.id for node in iter_nodes(sample_root)] == ["root", "a", "a1", "a2", "b"]

    def test_find_node_returns_nested_node(self, sample_root: Node) -> None:
        """Finds a grandchild by id."""
        assert find_node(sample_root, "a2").props == {"text": "two"}

    def test_find_node_missing(self, sample_root: Node) -> None:
        """Returns None for an unknown id."""
        assert find_node(sample_root, "zzz") is None

    def test_find_parent(self, sample_root: Node) -> None:
        """Returns the containing node, and None for the root."""
        assert find_parent(sample_root, "a1").id == "a"
        assert find_parent(sample_root, "root") is None

    def test_find_path(self, sample_root: Node) -> None:
        """Lists nodes from the root down to the target."""
        assert [node.id for node in find_path(sample_root, "a2")] == ["root", "a", "a2"]

    def test_index_in_parent(self, sample_root: Node) -> None:
        """Reports parent and position."""
        parent, index = index_in_parent(sample_root, "a2")
        assert parent.id == "a"
        assert index == 1
        assert index_in_parent(sample_root, "root") is None

    def test_collect_ids(self, sample_root: Node) -> None:
        """Collects every id."""
        assert collect_ids(sample_root) == {"root", "a", "a1", "a2", "b"}


class TestStructuralSharing:
    """Edits rebuild only the path to the edited node."""

    def test_update_props_shares_untouched_subtrees(self, sample_root: Node) -> None:
        """Siblings off the edited path keep their identity."""
        new_root = update_node_props(sample_root, "a1", {"text": "uno"})

        assert new_root is not sample_root
        assert new_root.children[0] is not sample_root.children[0]
        assert new_root.children[1] is sample_root.children[1]
        assert new_root.children[0].children[1] is sample_root.children[0].children[1]
        assert find_node(new_root, "a1").props == {"text": "uno"}
        assert find_node(sample_root, "a1").props == {"text": "one"}

    def test_props_patch_is_shallow_merge(self, sample_root: Node) -> None:
        """Existing keys not in the patch survive."""
        new_root = update_node_props(sample_root, "a1", {"bold": True})
        assert find_node(new_root, "a1").props == {"text": "one", "bold": True}

    def test_style_patch(self, sample_root: Node) -> None:
        """Style merges the same way as props."""
        new_root = update_node_style(sample_root, "b", {"fontSize": 12})
        assert find_node(new_root, "b").style == {"color": "red", "fontSize": 12}

    def test_update_node_fields(self, sample_root: Node) -> None:
        """Arbitrary fields can be replaced."""
        new_root = update_node(sample_root, "b", hidden=True)
        assert find_node(new_root, "b").hidden is True

    @pytest.mark.parametrize(
        "edit",
        [
            lambda root: update_node_props(root, "missing", {"x": 1}),
            lambda root: update_node_style(root, "missing", {"x": 1}),
            lambda root: update_node(root, "missing", hidden=True),
            lambda root: insert_child(root, "missing", 0, Node(id="new", type="text")),
            lambda root: insert_before(root, "missing", Node(id="new", type="text")),
            lambda root: insert_after(root, "missing", Node(id="new", type="text")),
            lambda root: delete_node(root, "missing"),
            lambda root: move_node(root, "missing", "a", 0),
            lambda root: move_node(root, "b", "missing", 0),
        ],
    )
    def test_missing_id_returns_identical_root(self, sample_root: Node, edit) -> None:
        """Unknown ids leave the tree untouched and return the same object."""
        assert edit(sample_root) is sample_root


class TestInsertion:
    """Tests for insert_child, append_child, insert_before and insert_after."""

    def test_append_stamps_parent_id(self, sample_root: Node) -> None:
        """Inserted nodes point back at their container."""
        new_root = append_child(sample_root, "a", Node(id="new", type="text"))

        assert _child_ids(find_node(new_root, "a")) == ["a1", "a2", "new"]
        assert find_node(new_root, "new").parent_id == "a"

    def test_insert_child_clamps_index(self, sample_root: Node) -> None:
        """Out-of-range indices clamp to the ends."""
        low = insert_child(sample_root, "a", -5, Node(id="x", type="text"))
        high = insert_child(sample_root, "a", 99, Node(id="y", type="text"))

        assert _child_ids(find_node(low, "a")) == ["x", "a1", "a2"]
        assert _child_ids(find_node(high, "a")) == ["a1", "a2", "y"]

    def test_insert_before_and_after(self, sample_root: Node) -> None:
        """Siblings land on either side of the target."""
        new_root = insert_before(sample_root, "a2", Node(id="x", type="text"))
        new_root = insert_after(new_root, "a2", Node(id="y", type="text"))
        assert _child_ids(find_node(new_root, "a")) == ["a1", "x", "a2", "y"]

    def test_insert_beside_root_is_noop(self, sample_root: Node) -> None:
        """The root has no siblings."""
        assert insert_after(sample_root, "root", Node(id="x", type="text")) is sample_root


class TestDelete:
    """Tests for delete_node."""

    def test_delete_removes_subtree(self, sample_root: Node) -> None:
        """Descendants go with the node."""
        new_root = delete_node(sample_root, "a")
        assert collect_ids(new_root) == {"root", "b"}

    def test_delete_root_is_noop(self, sample_root: Node) -> None:
        """The root cannot be deleted."""
        assert delete_node(sample_root, "root") is sample_root


class TestClone:
    """Tests for clone_node."""

    def test_clone_is_structurally_identical_with_fresh_ids(self, sample_root: Node) -> None:
        """Shape and content are kept while every id changes."""
        counter = itertools.count()
        source = find_node(sample_root, "a")
        clone = clone_node(source, lambda: f"c{next(counter)}")

        assert [n.type for n in iter_nodes(clone)] == [n.type for n in iter_nodes(source)]
        assert [n.props for n in iter_nodes(clone)] == [n.props for n in iter_nodes(source)]
        assert collect_ids(clone).isdisjoint(collect_ids(source))
        assert len(collect_ids(clone)) == 3
        assert clone.parent_id == "root"
        assert all(child.parent_id == clone.id for child in clone.children)

    def test_clone_props_are_independent(self) -> None:
        """Nested prop values are deep-copied."""
        source = Node(id="s", type="text", props={"items": [1, 2]})
        clone = clone_node(source)
        clone.props["items"].append(3)
        assert source.props == {"items": [1, 2]}

    def test_colliding_id_factory_raises(self, sample_root: Node) -> None:
        """An id factory that repeats ids is rejected."""
        with pytest.raises(TreeIntegrityError):
            clone_node(find_node(sample_root, "a"), lambda: "same")


class TestMove:
    """Tests for move_node."""

    def test_move_between_parents(self, sample_root: Node) -> None:
        """The node keeps its id and subtree in the new place."""
        new_root = move_node(sample_root, "b", "a", 1)

        assert _child_ids(new_root) == ["a"]
        assert _child_ids(find_node(new_root, "a")) == ["a1", "b", "a2"]
        assert find_node(new_root, "b").parent_id == "a"
        check_tree(new_root)

    def test_move_within_parent_uses_post_removal_index(self, sample_root: Node) -> None:
        """Position indexes the children after removal."""
        new_root = move_node(sample_root, "a1", "a", 1)
        assert _child_ids(find_node(new_root, "a")) == ["a2", "a1"]

    def test_move_into_descendant_raises(self, sample_root: Node) -> None:
        """A node cannot become its own descendant."""
        with pytest.raises(InvalidMoveError):
            move_node(sample_root, "a", "a1", 0)
        with pytest.raises(InvalidMoveError):
            move_node(sample_root, "a", "a", 0)

    def test_move_root_raises(self, sample_root: Node) -> None:
        """The root has nowhere to go."""
        with pytest.raises(InvalidMoveError):
            move_node(sample_root, "root", "a", 0)


class TestCheckTree:
    """Tests for check_tree."""

    def test_accepts_valid_tree(self, sample_root: Node) -> None:
        """The fixture tree is consistent."""
        check_tree(sample_root)

    def test_rejects_duplicate_ids(self) -> None:
        """Repeated ids are reported."""
        root = Node(
            id="r",
            type="page",
            children=[Node(id="x", type="text", parent_id="r"), Node(id="x", type="text", parent_id="r")],
        )
        with pytest.raises(TreeIntegrityError, match="Duplicate"):
            check_tree(root)

    def test_rejects_wrong_parent_id(self) -> None:
        """Back-references must name the container."""
        root = Node(id="r", type="page", children=[Node(id="x", type="text", parent_id="elsewhere")])
        with pytest.raises(TreeIntegrityError):
            check_tree(root)


_ids = itertools.count()


@composite
def trees(draw: st.DrawFn, depth: int = 3) -> Node:
    """Random well-formed trees with unique ids."""

    def build(level: int, parent_id: str | None) -> Node:
        node_id = f"t{next(_ids)}"
        width = draw(st.integers(min_value=0, max_value=3)) if level < depth else 0
        return Node(
            id=node_id,
            type=draw(st.sampled_from(["container", "text", "image"])),
            parent_id=parent_id,
            props={"v": draw(st.integers(0, 9))},
            children=[build(level + 1, node_id) for _ in range(width)],
        )

    return build(0, None)


class TestProperties:
    """Property-based checks over random trees."""

    @settings(max_examples=50)
    @given(root=trees(), data=st.data())
    def test_insert_then_find(self, root: Node, data: st.DataObject) -> None:
        """An appended node is found with its parent stamped."""
        parent_id = data.draw(st.sampled_from(sorted(collect_ids(root))))
        node = Node(id="inserted", type="text")

        new_root = append_child(root, parent_id, node)

        assert find_node(new_root, "inserted") == node.model_copy(update={"parent_id": parent_id})
        check_tree(new_root)

    @settings(max_examples=50)
    @given(root=trees(), data=st.data())
    def test_insert_then_delete_restores_ids(self, root: Node, data: st.DataObject) -> None:
        """Deleting what was appended gives back the original id set."""
        parent_id = data.draw(st.sampled_from(sorted(collect_ids(root))))
        new_root = delete_node(append_child(root, parent_id, Node(id="inserted", type="text")), "inserted")
        assert collect_ids(new_root) == collect_ids(root)

    @settings(max_examples=50)
    @given(root=trees())
    def test_clone_ids_fresh_and_distinct(self, root: Node) -> None:
        """Every cloned id is new and unique."""
        clone = clone_node(root)
        clone_ids = [n.id for n in iter_nodes(clone)]
        assert len(clone_ids) == len(set(clone_ids))
        assert set(clone_ids).isdisjoint(collect_ids(root))
        check_tree(clone)
