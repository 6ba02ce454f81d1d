"""
Performance Monitoring
Prometheus-based metrics collection for the pipeline service
"""

from ..core.tracing import trace_operation, trace_operation_async
from .metrics import MetricsCollector, metrics_collector

__all__ = [
    "MetricsCollector",
    "metrics_collector",
    "trace_operation",
    "trace_operation_async",
]
