"""Document tree models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pagecraft.config import DEFAULT_DOCUMENT_VERSION


class Node(BaseModel):
    """One element of the edited document.

    Nodes are immutable values. Mutation functions build new nodes along the
    edited path and share every untouched subtree by reference, so callers may
    compare with ``is`` to skip unchanged branches.

    Attributes:
        id: Globally unique opaque identifier.
        type: Material type tag (e.g. "text", "container").
        props: Material properties.
        style: Presentation attributes.
        children: Ordered child nodes, exclusively owned by this node.
        parent_id: Id of the containing node. A lookup hint that every
            mutation re-stamps; ownership is the parent's ``children`` list.
        locked: Whether the node is locked against editing in the UI.
        hidden: Whether the node is hidden from rendering.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    type: str
    props: dict[str, Any] = Field(default_factory=dict)
    style: dict[str, Any] = Field(default_factory=dict)
    children: list[Node] = Field(default_factory=list)
    parent_id: str | None = Field(default=None, alias="parentId")
    locked: bool = False
    hidden: bool = False


class DocumentMeta(BaseModel):
    """Descriptive document metadata."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str | None = None
    description: str | None = None
    create_time: str | None = Field(default=None, alias="createTime")
    update_time: str | None = Field(default=None, alias="updateTime")


class Document(BaseModel):
    """The whole edited page: a node tree plus metadata."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str = DEFAULT_DOCUMENT_VERSION
    meta: DocumentMeta = Field(default_factory=DocumentMeta)
    root: Node

    def with_root(self, root: Node) -> Document:
        """Return a document sharing this one's metadata with a new root."""
        if root is self.root:
            return self
        return self.model_copy(update={"root": root})
