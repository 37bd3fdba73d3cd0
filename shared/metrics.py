"""
Shared metrics configuration for the tier entitlements engine.
"""

from prometheus_client import Counter, Histogram, Info, CollectorRegistry
from typing import Dict, Any, Optional
import time
from contextlib import contextmanager


class MetricsCollector:
    """Centralized metrics collector for the engine."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the engine."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_entitlements_metrics()

    def _setup_entitlements_metrics(self):
        """Set up entitlements-specific metrics."""
        self._metrics["entitlement_checks_total"] = Counter(
            "entitlement_checks_total",
            "Total entitlement checks",
            ["decision"],
            registry=self.registry
        )

        self._metrics["entitlement_check_duration_seconds"] = Histogram(
            "entitlement_check_duration_seconds",
            "Entitlement check duration in seconds",
            registry=self.registry
        )

        self._metrics["tier_normalizations_total"] = Counter(
            "tier_normalizations_total",
            "Total tier normalizations by resolution path",
            ["source"],
            registry=self.registry
        )

        self._metrics["catalog_partitions_total"] = Counter(
            "catalog_partitions_total",
            "Total catalog partitions",
            ["policy"],
            registry=self.registry
        )

        self._metrics["ruleset_reloads_total"] = Counter(
            "ruleset_reloads_total",
            "Total ruleset reloads",
            ["status"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_decision(self, decision: str):
        """Record an entitlement decision (granted, denied or preview)."""
        self._metrics["entitlement_checks_total"].labels(decision=decision).inc()

    def record_normalization(self, source: str):
        """Record which path a tier normalization took."""
        self._metrics["tier_normalizations_total"].labels(source=source).inc()

    def record_partition(self, policy: str):
        """Record a catalog partition."""
        self._metrics["catalog_partitions_total"].labels(policy=policy).inc()

    def record_reload(self, status: str):
        """Record a ruleset reload attempt."""
        self._metrics["ruleset_reloads_total"].labels(status=status).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            metric = self._metrics.get(operation_name)
            if metric is not None:
                (metric.labels(**labels) if labels else metric).observe(duration)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
