"""
Metrics Collection
Prometheus metrics for pipeline performance tracking
"""

import time
from contextlib import contextmanager
from typing import Callable, Iterator

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, generate_latest


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics for the pipeline service.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.registry = registry

        # Request metrics
        self.requests_total = Counter(
            "uiforge_requests_total",
            "Total number of pipeline requests",
            ["operation", "status"],
            registry=registry,
        )
        self.request_duration = Histogram(
            "uiforge_request_duration_seconds",
            "Pipeline request duration in seconds",
            ["operation"],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
            registry=registry,
        )

        # Stage metrics
        self.stage_outcomes = Counter(
            "uiforge_stage_outcomes_total",
            "Stage state machine outcomes",
            ["stage", "outcome"],
            registry=registry,
        )

        # LLM metrics
        self.llm_calls_total = Counter(
            "uiforge_llm_calls_total",
            "Total number of completion API calls",
            ["model", "status"],
            registry=registry,
        )
        self.llm_duration = Histogram(
            "uiforge_llm_duration_seconds",
            "Completion API call duration in seconds",
            ["model"],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
            registry=registry,
        )

        # Markup metrics
        self.markup_failures = Counter(
            "uiforge_markup_validation_failures_total",
            "Markup validation failures by facet",
            ["facet"],
            registry=registry,
        )

        # Version metrics
        self.versions = Gauge(
            "uiforge_versions",
            "Number of committed versions",
            registry=registry,
        )

        # Error metrics
        self.errors_total = Counter(
            "uiforge_errors_total",
            "Total number of errors",
            ["error_type", "component"],
            registry=registry,
        )

        # System metrics
        self.uptime = Gauge(
            "uiforge_uptime_seconds",
            "Service uptime in seconds",
            registry=registry,
        )
        self.start_time = time.time()

    def record_request(self, operation: str, status: str, duration: float) -> None:
        """Record a pipeline request."""
        self.requests_total.labels(operation=operation, status=status).inc()
        self.request_duration.labels(operation=operation).observe(duration)

    def record_stage_outcome(self, stage: str, outcome: str) -> None:
        self.stage_outcomes.labels(stage=stage, outcome=outcome).inc()

    def record_llm_call(self, model: str, status: str, duration: float) -> None:
        """Record a completion API call."""
        self.llm_calls_total.labels(model=model, status=status).inc()
        self.llm_duration.labels(model=model).observe(duration)

    def record_markup_failure(self, component_check: bool, prop_check: bool) -> None:
        if not component_check:
            self.markup_failures.labels(facet="component").inc()
        if not prop_check:
            self.markup_failures.labels(facet="prop").inc()

    def set_version_count(self, count: int) -> None:
        self.versions.set(count)

    def record_error(self, error_type: str, component: str) -> None:
        """Record an error."""
        self.errors_total.labels(error_type=error_type, component=component).inc()

    def update_uptime(self) -> None:
        """Update the uptime metric."""
        self.uptime.set(time.time() - self.start_time)

    @contextmanager
    def measure_duration(self, callback: Callable[[float], None]) -> Iterator[None]:
        """Context manager to measure operation duration."""
        start = time.time()
        try:
            yield
        finally:
            duration = time.time() - start
            callback(duration)

    def get_metrics(self) -> bytes:
        """Get metrics in Prometheus format."""
        self.update_uptime()
        return generate_latest(self.registry)


# Global metrics collector instance
metrics_collector = MetricsCollector()
