"""
Monitoring infrastructure for the royalty splitter.

This package provides:
- Operation metrics (counters, gauges, histograms)
- Structured logging with JSON output
- Request logging middleware for the HTTP API

Usage:
    from royalty_splitter.monitoring import metrics, get_logger

    metrics.increment("operations_total", labels={"operation": "distribute"})
    logger = get_logger(__name__)
"""

from .logging import LoggingContext, configure_logging, get_logger
from .metrics import MetricsCollector, metrics

__all__ = [
    "LoggingContext",
    "MetricsCollector",
    "configure_logging",
    "get_logger",
    "metrics",
]
