"""Host-inventory service interface."""

from .base import HostCreateRequest, InventoryService

__all__ = ["HostCreateRequest", "InventoryService"]
