"""Metrics collection for monitoring import performance."""

from abc import ABC, abstractmethod
from collections import Counter, defaultdict
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class MetricsBackend(ABC):
    """Abstract base class for metrics backends."""

    @abstractmethod
    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        pass

    @abstractmethod
    def timing(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        pass


class LoggerBackend(MetricsBackend):
    """
    In-memory metrics backend; the summary is logged at the end of a run.
    """

    def __init__(self) -> None:
        self.counters: Counter[str] = Counter()
        self.timings: dict[str, list[float]] = defaultdict(list)

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        """Increment a counter."""
        self.counters[self._format_key(name, tags)] += value

    def timing(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        """Record a timing."""
        self.timings[self._format_key(name, tags)].append(value)

    def _format_key(self, name: str, tags: dict[str, str] | None) -> str:
        if not tags:
            return name
        tag_str = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{name}[{tag_str}]"

    def get_summary(self) -> dict[str, Any]:
        """Return a summary of collected metrics."""
        summary: dict[str, Any] = {"counters": dict(self.counters), "timings": {}}

        for name, values in self.timings.items():
            if values:
                summary["timings"][name] = {
                    "count": len(values),
                    "avg": sum(values) / len(values),
                    "min": min(values),
                    "max": max(values),
                }
        return summary


class MetricsCollector:
    """
    Central collector for application metrics.
    """

    def __init__(self, backend: str = "logger") -> None:
        """
        Initialize Metrics Collector.

        Args:
            backend: Backend type to use. Only "logger" is supported.
        """
        self.backend: MetricsBackend

        if backend != "logger":
            logger.warning(f"Unknown metrics backend '{backend}', defaulting to 'logger'")
        self.backend = LoggerBackend()

    def count_api_call(self, method: str, status: str) -> None:
        """Record a Zabbix API call outcome."""
        self.backend.increment("zabbix_api_requests_total", tags={"method": method, "status": status})

    def record_api_latency(self, method: str, duration_ms: float) -> None:
        """Record Zabbix API call latency."""
        self.backend.timing("zabbix_api_latency_ms", duration_ms, tags={"method": method})

    def count_row(self, status: str) -> None:
        """Record a row outcome (created, failed, skipped, rejected)."""
        self.backend.increment("import_row_total", tags={"status": status})

    def count_reference(self, kind: str, outcome: str) -> None:
        """Record a reference resolution (group/proxy/template; found/created/missing/cached)."""
        self.backend.increment("reference_resolution_total", tags={"kind": kind, "outcome": outcome})

    def get_summary(self) -> dict[str, Any]:
        """Get summary from backend if supported."""
        if hasattr(self.backend, "get_summary"):
            return self.backend.get_summary()  # type: ignore
        return {}


# Singleton instance
_GLOBAL_COLLECTOR: MetricsCollector | None = None


def get_global_collector() -> MetricsCollector:
    """Get or create the global metrics collector."""
    global _GLOBAL_COLLECTOR
    if _GLOBAL_COLLECTOR is None:
        _GLOBAL_COLLECTOR = MetricsCollector()
    return _GLOBAL_COLLECTOR


def reset_global_collector() -> None:
    """Drop the global collector so the next run starts from zero."""
    global _GLOBAL_COLLECTOR
    _GLOBAL_COLLECTOR = None
