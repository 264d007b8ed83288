"""Observability module for the basechat cache handler.

Provides metrics and structured logging:
- Prometheus metrics for cache hits, misses, failures and connection state
- JSON structured logging with request and tenant context
"""

from basechat_cache.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    LogContext,
    configure_logging,
    request_id_var,
    tenant_id_var,
)
from basechat_cache.observability.metrics import (
    configure_metrics,
    get_metrics,
    metrics_registry,
)

__all__ = [
    # Logging
    "configure_logging",
    "ConsoleFormatter",
    "JsonFormatter",
    "LogContext",
    "request_id_var",
    "tenant_id_var",
    # Metrics
    "metrics_registry",
    "configure_metrics",
    "get_metrics",
]
