"""Observability - Metrics, logging, and reporting."""

from .logger import LogContext, clear_all_context, configure_logging
from .metrics import LoggerBackend, MetricsCollector, get_global_collector
from .reporter import ImportReport, ReportGenerator

__all__ = [
    "MetricsCollector",
    "LoggerBackend",
    "get_global_collector",
    "ReportGenerator",
    "ImportReport",
    "configure_logging",
    "clear_all_context",
    "LogContext",
]
