"""Material metadata model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class MaterialMeta(BaseModel):
    """Registration record for one material type.

    Attributes:
        type: Unique material type tag.
        title: Display name.
        category: Grouping used by material palettes.
        description: Optional longer description.
        is_container: Whether nodes of this type may hold children.
        default_props: Props applied to newly created nodes.
        default_style: Style applied to newly created nodes.
    """

    type: str = Field(..., min_length=1)
    title: str
    category: str = "base"
    description: str | None = None
    is_container: bool = False
    default_props: dict[str, Any] = Field(default_factory=dict)
    default_style: dict[str, Any] = Field(default_factory=dict)
