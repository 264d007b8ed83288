"""Prometheus metrics for the basechat cache handler.

Provides metrics collection and exposure:
- Cache metrics (hits, misses, errors, latency)
- Revalidation metrics (entries dropped by tag)
- Connection state gauge

Usage:
    from basechat_cache.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.cache_hits_total.inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import REGISTRY, Counter, Gauge, Histogram, generate_latest

from basechat_cache.config import Settings, settings

logger = logging.getLogger(__name__)

# Gauge values for basechat_cache_connection_state
CONNECTION_STATE_VALUES = {
    "disconnected": 0,
    "connecting": 1,
    "connected": 2,
    "disabled": 3,
}


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    # Cache metrics
    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_errors_total: Any = None
    cache_operation_duration_seconds: Any = None

    # Revalidation metrics
    cache_revalidated_keys_total: Any = None

    # Connection metrics
    connection_state: Any = None

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: Any = field(default=None, repr=False)

    def initialize(self, enabled: bool | None = None) -> None:
        """Initialize Prometheus metrics.

        Args:
            enabled: Register the metrics; defaults to process settings
        """
        if self._initialized:
            return

        if enabled is None:
            enabled = settings.enable_metrics
        if not enabled:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = REGISTRY

        self.cache_hits_total = Counter(
            "basechat_cache_hits_total",
            "Cache hits",
        )

        self.cache_misses_total = Counter(
            "basechat_cache_misses_total",
            "Cache misses",
        )

        self.cache_errors_total = Counter(
            "basechat_cache_errors_total",
            "Cache operations that failed open",
            ["operation"],
        )

        self.cache_operation_duration_seconds = Histogram(
            "basechat_cache_operation_duration_seconds",
            "Cache operation latency in seconds",
            ["operation"],
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0),
        )

        self.cache_revalidated_keys_total = Counter(
            "basechat_cache_revalidated_keys_total",
            "Cache entries deleted by tag revalidation",
        )

        self.connection_state = Gauge(
            "basechat_cache_connection_state",
            "Redis connection state (0 disconnected, 1 connecting, 2 connected, 3 disabled)",
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


def configure_metrics(app_settings: Settings) -> MetricsRegistry:
    """Initialize the global registry from ``app_settings``.

    Prometheus collectors are process-wide, so the first configuration wins;
    later calls return the registry unchanged.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize(enabled=app_settings.enable_metrics)
    return metrics_registry


def record_cache_hit() -> None:
    """Record cache hit."""
    metrics = get_metrics()
    if metrics.cache_hits_total:
        metrics.cache_hits_total.inc()


def record_cache_miss() -> None:
    """Record cache miss."""
    metrics = get_metrics()
    if metrics.cache_misses_total:
        metrics.cache_misses_total.inc()


def record_cache_error(operation: str) -> None:
    """Record a cache operation that failed open."""
    metrics = get_metrics()
    if metrics.cache_errors_total:
        metrics.cache_errors_total.labels(operation=operation).inc()


def record_cache_operation(operation: str, duration: float) -> None:
    """Record cache operation duration.

    Args:
        operation: Cache operation (get, set, revalidate_tag)
        duration: Operation duration in seconds
    """
    metrics = get_metrics()
    if metrics.cache_operation_duration_seconds:
        metrics.cache_operation_duration_seconds.labels(operation=operation).observe(duration)


def record_revalidated_keys(count: int) -> None:
    metrics = get_metrics()
    if metrics.cache_revalidated_keys_total and count:
        metrics.cache_revalidated_keys_total.inc(count)


def set_connection_state(state: str) -> None:
    """Publish the Redis connection state."""
    metrics = get_metrics()
    if metrics.connection_state:
        metrics.connection_state.set(CONNECTION_STATE_VALUES.get(state, 0))
