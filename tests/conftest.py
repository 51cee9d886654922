"""Pytest configuration and shared fixtures.

Fixtures are organized by category:
- CSV fixtures: Sample host files written to a temp directory
- Mock fixtures: Pre-configured mock inventory service
- Config fixtures: Importer configuration objects
"""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from src.hostimporter.config import ImporterConfig, PolicyConfig, ZabbixConfig
from src.hostimporter.inventory.base import InventoryService
from src.hostimporter.models.host import HostDescriptor, ValidatedHost
from src.hostimporter.models.schema import default_registry
from src.hostimporter.observability.logger import clear_all_context
from src.hostimporter.observability.metrics import reset_global_collector

# =============================================================================
# CSV Fixtures
# =============================================================================

SIMPLE_CSV = "NAME;VISIBLE_NAME;HOST_GROUPS\nsrv1;Server One;Linux,Prod\n"

FULL_CSV = (
    "NAME;VISIBLE_NAME;HOST_GROUPS;HOST_TAGS;PROXY;TEMPLATES;AGENT_IP;AGENT_DNS;"
    "AGENT_PORT;SNMP_IP;SNMP_VERSION;DESCRIPTION\n"
    "web01;Web 01;Linux;env:prod,critical;;Linux by Zabbix agent;10.0.0.1;;;;;Frontend\n"
    "db01;DB 01;Linux,Databases;;proxy-eu;Linux by Zabbix agent,MySQL;;db01.example.com;"
    "10051;10.0.0.2;2;\n"
)


@pytest.fixture
def write_csv(tmp_path: Path):
    """Return a helper that writes CSV text to a file and returns its path."""

    def _write(content: str, name: str = "hosts.csv", encoding: str = "utf-8") -> Path:
        path = tmp_path / name
        path.write_bytes(content.encode(encoding))
        return path

    return _write


@pytest.fixture
def simple_csv(write_csv) -> Path:
    """One host with two groups."""
    return write_csv(SIMPLE_CSV)


@pytest.fixture
def full_csv(write_csv) -> Path:
    """Two hosts using tags, proxy, templates and interfaces."""
    return write_csv(FULL_CSV)


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def make_row():
    """Return a helper building a ValidatedHost with registry defaults filled in."""

    def _make(line_number: int = 2, **values: str) -> ValidatedHost:
        data = {column.name: column.default for column in default_registry()}
        data.update({"NAME": "srv1", "VISIBLE_NAME": "Server One"})
        data.update(values)
        return ValidatedHost(line_number=line_number, values=data)

    return _make


@pytest.fixture
def make_descriptor():
    """Return a helper building a HostDescriptor."""

    def _make(host: str = "srv1", line_number: int = 2, **kwargs) -> HostDescriptor:
        return HostDescriptor(line_number=line_number, host=host, **kwargs)

    return _make


# =============================================================================
# Mock Inventory Fixtures
# =============================================================================


@pytest.fixture
def mock_inventory() -> AsyncMock:
    """Create a pre-configured mock inventory service.

    Nothing exists yet: lookups return None, creates hand out increasing ids.
    Individual tests can override specific methods.

    Example:
        def test_something(mock_inventory):
            mock_inventory.find_group_by_name.return_value = "7"
    """
    service = AsyncMock(spec=InventoryService)
    counter = iter(range(100, 10_000))

    service.find_group_by_name.return_value = None
    service.find_proxy_by_name.return_value = None
    service.find_template_by_name.return_value = None
    service.create_group.side_effect = lambda name: str(next(counter))
    service.create_host.side_effect = lambda request: str(next(counter))
    return service


# =============================================================================
# Config Fixtures
# =============================================================================


@pytest.fixture
def policy() -> PolicyConfig:
    return PolicyConfig()


@pytest.fixture
def zabbix_config() -> ZabbixConfig:
    return ZabbixConfig(url="https://zabbix.example.com", api_token="secret-token")


@pytest.fixture
def importer_config(zabbix_config: ZabbixConfig) -> ImporterConfig:
    return ImporterConfig(zabbix=zabbix_config)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_observability():
    """Start every test with fresh metrics and no bound log context."""
    reset_global_collector()
    clear_all_context()
    yield
    reset_global_collector()
    clear_all_context()
