"""Data models for the Zabbix CSV Host Importer."""

from .host import (
    HostDescriptor,
    HostTag,
    InterfaceSpec,
    InterfaceType,
    SNMPDetails,
    ValidatedHost,
)
from .results import HostImportResult, ImportSummary, ParseResult, TransformResult
from .schema import ColumnSpec, SchemaRegistry, default_registry

__all__ = [
    # Schema
    "ColumnSpec",
    "SchemaRegistry",
    "default_registry",
    # Hosts
    "ValidatedHost",
    "HostDescriptor",
    "HostTag",
    "InterfaceSpec",
    "InterfaceType",
    "SNMPDetails",
    # Results
    "ParseResult",
    "TransformResult",
    "HostImportResult",
    "ImportSummary",
]
