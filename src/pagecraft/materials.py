"""Material registry and node/document factories."""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from pagecraft import config
from pagecraft.exceptions import UnknownMaterialError
from pagecraft.id_utils import IdFactory, new_node_id
from pagecraft.schemas import Document, DocumentMeta, MaterialMeta, Node

logger = logging.getLogger(__name__)


class MaterialRegistry:
    """Map material type tags to their ``MaterialMeta``.

    Registration order is preserved. Registering a type twice replaces the
    earlier entry.
    """

    def __init__(self, materials: Iterable[MaterialMeta] = ()) -> None:
        self._materials: dict[str, MaterialMeta] = {}
        self.register_all(materials)

    def register(self, material: MaterialMeta) -> None:
        if material.type in self._materials:
            logger.debug("Replacing registered material %s", material.type)
        self._materials[material.type] = material

    def register_all(self, materials: Iterable[MaterialMeta]) -> None:
        for material in materials:
            self.register(material)

    def get(self, material_type: str) -> MaterialMeta | None:
        return self._materials.get(material_type)

    def has(self, material_type: str) -> bool:
        return material_type in self._materials

    def get_all(self) -> list[MaterialMeta]:
        return list(self._materials.values())

    def get_by_category(self, category: str) -> list[MaterialMeta]:
        return [material for material in self._materials.values() if material.category == category]

    def categories(self) -> list[str]:
        """Distinct categories in first-registration order."""
        return list(dict.fromkeys(material.category for material in self._materials.values()))

    def __contains__(self, material_type: object) -> bool:
        return material_type in self._materials

    def __len__(self) -> int:
        return len(self._materials)


BASE_MATERIALS: tuple[MaterialMeta, ...] = (
    MaterialMeta(type="page", title="Page", category="layout", is_container=True),
    MaterialMeta(
        type="container",
        title="Container",
        category="layout",
        is_container=True,
        default_style={"padding": "16px"},
    ),
    MaterialMeta(
        type="row",
        title="Row",
        category="layout",
        is_container=True,
        default_props={"gap": 8, "align": "start"},
        default_style={"display": "flex", "flexDirection": "row"},
    ),
    MaterialMeta(
        type="grid",
        title="Grid",
        category="layout",
        is_container=True,
        default_props={"columns": 2, "gap": 8},
        default_style={"display": "grid"},
    ),
    MaterialMeta(type="text", title="Text", category="base", default_props={"text": "Text"}),
    MaterialMeta(type="heading", title="Heading", category="base", default_props={"text": "Heading", "level": 2}),
    MaterialMeta(type="image", title="Image", category="media", default_props={"src": "", "alt": ""}),
    MaterialMeta(type="link", title="Link", category="base", default_props={"text": "Link", "href": "#"}),
    MaterialMeta(type="divider", title="Divider", category="base", default_style={"margin": "8px 0"}),
    MaterialMeta(type="spacer", title="Spacer", category="layout", default_props={"height": 16}),
    MaterialMeta(type="badge", title="Badge", category="base", default_props={"text": "New", "variant": "default"}),
)


def default_registry() -> MaterialRegistry:
    """Return a fresh registry holding the base materials."""
    return MaterialRegistry(BASE_MATERIALS)


def create_node(
    material_type: str,
    props: dict[str, Any] | None = None,
    *,
    registry: MaterialRegistry | None = None,
    id_factory: IdFactory | None = None,
) -> Node:
    """Instantiate a detached node of a registered material.

    Args:
        material_type: Registered material type tag.
        props: Props merged over the material's defaults.
        registry: Registry to resolve the type in. Defaults to the base materials.
        id_factory: Id generator. Defaults to ``new_node_id``.

    Returns:
        A childless node with no parent.

    Raises:
        UnknownMaterialError: If ``material_type`` is not registered.
    """
    registry = registry or default_registry()
    material = registry.get(material_type)
    if material is None:
        raise UnknownMaterialError(f"Unknown material type: {material_type!r}")
    return Node(
        id=(id_factory or new_node_id)(),
        type=material_type,
        props={**copy.deepcopy(material.default_props), **(props or {})},
        style=copy.deepcopy(material.default_style),
    )


def create_default_document(id_factory: IdFactory | None = None) -> Document:
    """Return an empty document with a bare ``page`` root."""
    now = datetime.now(timezone.utc).isoformat()
    return Document(
        meta=DocumentMeta(title=config.PAGECRAFT_DOCUMENT_TITLE, create_time=now, update_time=now),
        root=Node(id=(id_factory or new_node_id)(), type=config.DEFAULT_ROOT_MATERIAL),
    )
