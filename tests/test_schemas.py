"""Tests for document schemas."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from pagecraft.schemas import Document, DocumentMeta, Node


class TestDocumentSerialization:
    """JSON hand-off format."""

    def test_round_trip_uses_camel_case(self, sample_document: Document) -> None:
        """Aliases are written and read back."""
        document = sample_document.model_copy(
            update={"meta": DocumentMeta(title="Home", create_time="2026-01-01T00:00:00+00:00")}
        )

        payload = document.model_dump_json(by_alias=True)
        data = json.loads(payload)

        assert data["root"]["children"][0]["parentId"] == "root"
        assert data["meta"]["createTime"] == "2026-01-01T00:00:00+00:00"
        assert Document.model_validate_json(payload) == document

    def test_accepts_field_names(self) -> None:
        """Snake-case input validates too."""
        node = Node.model_validate({"id": "x", "type": "text", "parent_id": "p"})
        assert node.parent_id == "p"

    def test_nodes_are_frozen(self) -> None:
        """Nodes cannot be mutated in place."""
        node = Node(id="x", type="text")
        with pytest.raises(ValidationError):
            node.hidden = True

    def test_with_root_keeps_identity_when_unchanged(self, sample_document: Document) -> None:
        """Swapping in the same root returns the same document."""
        assert sample_document.with_root(sample_document.root) is sample_document
        replaced = sample_document.with_root(Node(id="r2", type="page"))
        assert replaced.root.id == "r2"
        assert replaced.version == "1.0.0"
