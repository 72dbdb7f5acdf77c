"""Test setup for pagecraft."""

from __future__ import annotations

import itertools
import sys
from pathlib import Path
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from pagecraft.history import ManualScheduler  # noqa: E402
from pagecraft.schemas import Document, Node  # noqa: E402
from pagecraft.store import EditorStore  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for pytest.

    Real-timer debounce tests sleep:
        pytest -m "not slow"  # skip them
    """
    config.addinivalue_line(
        "markers",
        "slow: marks tests that wait on real timers",
    )


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Deterministic ids: n1, n2, n3, ..."""
    counter = itertools.count(1)
    return lambda: f"n{next(counter)}"


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def sample_root() -> Node:
    """page(root) -> [container(a) -> [text(a1), text(a2)], text(b)]."""
    return Node(
        id="root",
        type="page",
        children=[
            Node(
                id="a",
                type="container",
                parent_id="root",
                children=[
                    Node(id="a1", type="text", parent_id="a", props={"text": "one"}),
                    Node(id="a2", type="text", parent_id="a", props={"text": "two"}),
                ],
            ),
            Node(id="b", type="text", parent_id="root", props={"text": "bee"}, style={"color": "red"}),
        ],
    )


@pytest.fixture
def sample_document(sample_root: Node) -> Document:
    return Document(root=sample_root)


@pytest.fixture
def store(
    sample_document: Document, scheduler: ManualScheduler, id_factory: Callable[[], str]
) -> EditorStore:
    """Store over the sample tree with a manual debounce clock (300 ms)."""
    return EditorStore(sample_document, scheduler=scheduler, id_factory=id_factory, debounce_ms=300)


@pytest.fixture
def empty_store(scheduler: ManualScheduler, id_factory: Callable[[], str]) -> EditorStore:
    """Store over a default empty page (root id "n1")."""
    return EditorStore(scheduler=scheduler, id_factory=id_factory, debounce_ms=300)
