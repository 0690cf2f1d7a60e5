"""Zero-impact in-memory search metrics.

All counters are plain Python integers manipulated inside the single-threaded
async event loop: no locks, no I/O.

``time.perf_counter_ns()`` is used for timing (monotonic, nanosecond
resolution, near-zero overhead).
"""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field


def _avg_ms(total_ns: int, count: int) -> float:
    return round(total_ns / count / 1_000_000, 1) if count else 0.0


@dataclass
class SourceStats:
    """Accumulated query statistics for a single source."""

    queries: int = 0
    successes: int = 0
    failures: int = 0
    total_results: int = 0
    total_duration_ns: int = 0
    errors: Counter[str] = field(default_factory=Counter)

    def snapshot(self) -> dict[str, object]:
        return {
            "queries": self.queries,
            "successes": self.successes,
            "failures": self.failures,
            "total_results": self.total_results,
            "avg_duration_ms": _avg_ms(self.total_duration_ns, self.queries),
            "errors": dict(self.errors),
        }


@dataclass
class SessionStats:
    """Fan-out session counters."""

    started: int = 0
    completed: int = 0
    cancelled: int = 0
    total_duration_ns: int = 0

    def snapshot(self) -> dict[str, object]:
        return {
            "started": self.started,
            "completed": self.completed,
            "cancelled": self.cancelled,
            "avg_duration_ms": _avg_ms(self.total_duration_ns, self.completed),
        }


@dataclass
class MetricsCollector:
    """Central in-memory metrics collector."""

    _sources: dict[str, SourceStats] = field(default_factory=dict)
    _sessions: SessionStats = field(default_factory=SessionStats)
    _start_ns: int = field(default_factory=time.perf_counter_ns)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_source_query(
        self,
        key: str,
        duration_ns: int,
        result_count: int,
        *,
        error_kind: str | None = None,
    ) -> None:
        """Record one per-source query; ``error_kind=None`` means success."""
        stats = self._sources.setdefault(key, SourceStats())
        stats.queries += 1
        stats.total_duration_ns += duration_ns
        if error_kind is None:
            stats.successes += 1
            stats.total_results += result_count
        else:
            stats.failures += 1
            stats.errors[error_kind] += 1

    def session_started(self) -> None:
        self._sessions.started += 1

    def session_finished(self, duration_ns: int, *, cancelled: bool) -> None:
        if cancelled:
            self._sessions.cancelled += 1
            return
        self._sessions.completed += 1
        self._sessions.total_duration_ns += duration_ns

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable snapshot of all metrics."""
        uptime_ns = time.perf_counter_ns() - self._start_ns
        return {
            "uptime_seconds": round(uptime_ns / 1_000_000_000, 1),
            "sources": {
                key: stats.snapshot() for key, stats in sorted(self._sources.items())
            },
            "sessions": self._sessions.snapshot(),
        }
