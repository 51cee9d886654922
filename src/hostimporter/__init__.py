"""Zabbix CSV Host Importer - create Zabbix hosts from a CSV file."""

from .cli import app
from .config import ImporterConfig
from .constants import VERSION

__version__ = VERSION
__all__ = ["app", "ImporterConfig"]
