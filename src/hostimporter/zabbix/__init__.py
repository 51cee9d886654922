"""Zabbix JSON-RPC API integration."""

from .client import ZabbixClient, normalize_api_url
from .methods import ZabbixMethods

__all__ = ["ZabbixClient", "ZabbixMethods", "normalize_api_url"]
