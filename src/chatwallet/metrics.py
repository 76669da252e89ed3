"""Lightweight observability metrics for the chat command flow.

This module provides in-process metrics collection without external dependencies.
Metrics are best-effort in multi-worker environments (each worker has its own state).
"""

import os
import threading
from dataclasses import dataclass, field
from typing import Any


@dataclass
class MetricsCollector:
    """In-memory metrics collector for observability.

    Thread-safe; each worker process maintains its own metrics state.
    """

    # Counters for intent kinds
    intent_counts: dict[str, int] = field(default_factory=dict)

    # Counters for reply status values (ok, needs_confirmation, error, silent)
    status_counts: dict[str, int] = field(default_factory=dict)

    # Counters for transfer outcomes (ok, failed, cancelled)
    transfer_outcomes: dict[str, int] = field(default_factory=dict)

    # Latency samples for handled messages (in milliseconds)
    handle_latencies: list[float] = field(default_factory=list)

    _lock: threading.Lock = field(default_factory=threading.Lock)

    def record_message(self, intent_kind: str, status: str, latency_ms: float) -> None:
        """Record metrics for one handled chat message.

        Args:
            intent_kind: Kind of the parsed intent (e.g., "send", "balance")
            status: Reply status (ok, needs_confirmation, error, silent)
            latency_ms: Latency in milliseconds
        """
        with self._lock:
            self.intent_counts[intent_kind] = self.intent_counts.get(intent_kind, 0) + 1
            self.status_counts[status] = self.status_counts.get(status, 0) + 1
            self.handle_latencies.append(latency_ms)

    def record_transfer(self, outcome: str) -> None:
        """Record the outcome of a pending transfer (ok, failed, cancelled)."""
        with self._lock:
            self.transfer_outcomes[outcome] = self.transfer_outcomes.get(outcome, 0) + 1

    def _calculate_percentile(self, sorted_values: list[float], percentile: float) -> float | None:
        """Calculate a percentile (0.0 to 1.0) from values sorted ascending."""
        if not sorted_values:
            return None

        n = len(sorted_values)
        idx = int(n * percentile)
        return sorted_values[min(idx, n - 1)]

    def get_snapshot(self) -> dict[str, Any]:
        """Get a snapshot of current metrics, including latency percentiles."""
        with self._lock:
            latency_p50 = None
            latency_p95 = None

            if self.handle_latencies:
                sorted_latencies = sorted(self.handle_latencies)
                latency_p50 = self._calculate_percentile(sorted_latencies, 0.5)
                latency_p95 = self._calculate_percentile(sorted_latencies, 0.95)

            return {
                "intent_counts": dict(self.intent_counts),
                "status_counts": dict(self.status_counts),
                "transfer_outcomes": dict(self.transfer_outcomes),
                "handle_latency_ms": {
                    "p50": latency_p50,
                    "p95": latency_p95,
                    "count": len(self.handle_latencies),
                },
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self.intent_counts.clear()
            self.status_counts.clear()
            self.transfer_outcomes.clear()
            self.handle_latencies.clear()


# Global metrics collector instance
_metrics_collector: MetricsCollector | None = None
_metrics_lock = threading.Lock()


def get_metrics_collector() -> MetricsCollector:
    """Get or create the global metrics collector instance."""
    global _metrics_collector
    with _metrics_lock:
        if _metrics_collector is None:
            _metrics_collector = MetricsCollector()
        return _metrics_collector


def is_metrics_enabled() -> bool:
    """Check if metrics collection is enabled via CHATWALLET_ENABLE_METRICS."""
    return os.getenv("CHATWALLET_ENABLE_METRICS", "false").lower() in ("true", "1", "yes")
