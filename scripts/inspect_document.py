"""Inspect a saved pagecraft document: material usage, depth and integrity."""

from __future__ import annotations

import argparse
from collections import Counter
from pathlib import Path

from pagecraft.exceptions import TreeIntegrityError
from pagecraft.materials import default_registry
from pagecraft.mutations import check_tree, iter_nodes
from pagecraft.schemas import Document, Node


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect material types, depth and props in a document JSON file.")
    parser.add_argument("file", help="Document JSON file path")
    parser.add_argument("--unknown-only", action="store_true", help="Show only unregistered material types")
    args = parser.parse_args()

    document = load_document(args.file)
    types, props, depth = collect_stats(document.root)
    registry = default_registry()

    print(f"Title: {document.meta.title or '(untitled)'}")
    print(f"Nodes: {sum(types.values())}  Max depth: {depth}")

    try:
        check_tree(document.root)
    except TreeIntegrityError as exc:
        print(f"Integrity: FAILED ({exc})")
    else:
        print("Integrity: ok")

    print("\nMaterials:")
    for name, count in types.most_common():
        if args.unknown_only and registry.has(name):
            continue
        marker = "" if registry.has(name) else " (unregistered)"
        print(f"{name}: {count}{marker}")

    print("\nProps:")
    for name, count in props.most_common():
        print(f"{name}: {count}")


def load_document(file_path: str) -> Document:
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"Document file not found: {path}")
    return Document.model_validate_json(path.read_text(encoding="utf-8"))


def collect_stats(root: Node) -> tuple[Counter, Counter, int]:
    types = Counter()
    props = Counter()
    for node in iter_nodes(root):
        types[node.type] += 1
        for key in node.props:
            props[key] += 1
    return types, props, _depth(root)


def _depth(node: Node) -> int:
    return 1 + max((_depth(child) for child in node.children), default=0)


if __name__ == "__main__":
    main()
