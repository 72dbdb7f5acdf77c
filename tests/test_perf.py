"""Tests for performance counters."""

from __future__ import annotations

import logging
from typing import Iterator

import pytest

from pagecraft import config
from pagecraft.history import HistoryManager, ManualScheduler
from pagecraft.node_map import build_node_map, update_node_map_incremental
from pagecraft.perf import get_performance_stats, measure_perf, reset_performance_stats
from pagecraft.schemas import AddNodeAction, Document, Node


@pytest.fixture
def monitoring(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setattr(config, "PAGECRAFT_PERF_MONITORING", True)
    reset_performance_stats()
    yield
    reset_performance_stats()


class TestCounters:
    """Counting with monitoring on and off."""

    def test_disabled_by_default(self, sample_root: Node) -> None:
        """Nothing is counted unless monitoring is enabled."""
        reset_performance_stats()
        build_node_map(sample_root)
        assert get_performance_stats().build_node_map_count == 0

    def test_node_map_calls_are_counted(self, monitoring: None, sample_root: Node) -> None:
        """Builds and incremental updates each have a counter."""
        node_map = build_node_map(sample_root)
        build_node_map(sample_root)
        update_node_map_incremental(sample_root, "a1", node_map)

        stats = get_performance_stats()
        assert stats.build_node_map_count == 2
        assert stats.incremental_update_count == 1
        assert stats.avg_build_time_ms >= 0.0

    def test_history_commits_are_counted(self, monitoring: None, sample_document: Document) -> None:
        """Each commit bumps the history counter."""
        manager = HistoryManager(sample_document, scheduler=ManualScheduler())
        manager.record(AddNodeAction(parent_id="root", index=0, node=Node(id="x", type="text")), immediate=True)

        assert get_performance_stats().history_commit_count == 1

    def test_stats_are_a_snapshot(self, monitoring: None, sample_root: Node) -> None:
        """Returned stats do not change afterwards."""
        before = get_performance_stats()
        build_node_map(sample_root)
        assert before.build_node_map_count == 0


class TestSlowWarning:
    """Slow calls are logged."""

    def test_warns_above_threshold(
        self, monitoring: None, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A call slower than the threshold logs a warning."""
        monkeypatch.setattr(config, "PAGECRAFT_PERF_WARN_MS", -1.0)

        @measure_perf("build_node_map_count", "Probe")
        def probe() -> int:
            return 42

        with caplog.at_level(logging.WARNING, logger="pagecraft.perf"):
            assert probe() == 42
        assert "Probe took" in caplog.text
