"""
Prometheus metrics for the access-control library.
"""

import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram


class AccessControlMetrics:
    """Collector for decision and synchronization metrics."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up the library metrics."""
        self._metrics["decisions_total"] = Counter(
            "access_control_decisions_total",
            "Total permission decisions",
            ["decision"],
            registry=self.registry
        )

        self._metrics["sync_reads_total"] = Counter(
            "access_control_sync_reads_total",
            "Total synchronizer reads",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["sync_updates_total"] = Counter(
            "access_control_sync_updates_total",
            "Total synchronizer updates",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["provider_read_seconds"] = Histogram(
            "access_control_provider_read_seconds",
            "Persistence provider read duration in seconds",
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_decision(self, granted: bool):
        """Record a permission decision."""
        self._metrics["decisions_total"].labels(decision="granted" if granted else "denied").inc()

    def record_sync_read(self, outcome: str):
        """Record a synchronizer read outcome."""
        self._metrics["sync_reads_total"].labels(outcome=outcome).inc()

    def record_sync_update(self, outcome: str):
        """Record a synchronizer update outcome."""
        self._metrics["sync_updates_total"].labels(outcome=outcome).inc()

    @contextmanager
    def time_provider_read(self):
        """Context manager timing a persistence provider read."""
        start_time = time.time()
        try:
            yield
        finally:
            self._metrics["provider_read_seconds"].observe(time.time() - start_time)

    def sample(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Return the current value of a sample, 0.0 when it was never recorded."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0


def get_metrics(registry: Optional[CollectorRegistry] = None) -> AccessControlMetrics:
    """Get a metrics collector."""
    return AccessControlMetrics(registry)
