"""
Observability package - structured logging and Prometheus metrics.
"""

from .logging import OperatorLogger, setup_structured_logging
from .metrics import MetricsServer, metrics_collector

__all__ = [
    "OperatorLogger",
    "setup_structured_logging",
    "MetricsServer",
    "metrics_collector",
]
