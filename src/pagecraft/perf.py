"""Lightweight timing counters for hot editor paths."""

from __future__ import annotations

import functools
import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Literal, ParamSpec, TypeVar

from pagecraft import config

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

StatKey = Literal["build_node_map_count", "incremental_update_count", "history_commit_count"]

_AVERAGE_FIELDS: dict[str, str] = {
    "build_node_map_count": "avg_build_time_ms",
    "incremental_update_count": "avg_incremental_time_ms",
}


@dataclass
class PerfStats:
    """Counters and running averages (milliseconds)."""

    build_node_map_count: int = 0
    incremental_update_count: int = 0
    history_commit_count: int = 0
    avg_build_time_ms: float = 0.0
    avg_incremental_time_ms: float = 0.0


_stats = PerfStats()


def measure_perf(stat_key: StatKey, name: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Count calls and average duration of the wrapped function.

    Monitoring is checked per call so it can be toggled at runtime through
    ``pagecraft.config.PAGECRAFT_PERF_MONITORING``. Calls slower than
    ``PAGECRAFT_PERF_WARN_MS`` are logged as warnings.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            if not config.PAGECRAFT_PERF_MONITORING:
                return fn(*args, **kwargs)

            start = time.perf_counter()
            result = fn(*args, **kwargs)
            duration_ms = (time.perf_counter() - start) * 1000
            _record(stat_key, duration_ms)
            if duration_ms > config.PAGECRAFT_PERF_WARN_MS:
                logger.warning("%s took %.2fms", name, duration_ms)
            return result

        return wrapper

    return decorator


def _record(stat_key: StatKey, duration_ms: float) -> None:
    count = getattr(_stats, stat_key)
    avg_field = _AVERAGE_FIELDS.get(stat_key)
    if avg_field is not None:
        average = getattr(_stats, avg_field)
        setattr(_stats, avg_field, (average * count + duration_ms) / (count + 1))
    setattr(_stats, stat_key, count + 1)


def count_event(stat_key: StatKey) -> None:
    """Increment a counter without timing anything."""
    if config.PAGECRAFT_PERF_MONITORING:
        setattr(_stats, stat_key, getattr(_stats, stat_key) + 1)


def get_performance_stats() -> PerfStats:
    """Return a snapshot copy of the current counters."""
    return replace(_stats)


def reset_performance_stats() -> None:
    """Zero every counter."""
    global _stats
    _stats = PerfStats()
