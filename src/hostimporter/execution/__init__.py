"""Execution engine for importing hosts into the inventory."""

from .orchestrator import ImportOrchestrator
from .runner import ImportRunner

__all__ = ["ImportOrchestrator", "ImportRunner"]
