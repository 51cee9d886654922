"""Unit tests for host and result models."""

import pytest
from pydantic import ValidationError

from src.hostimporter.models.host import (
    HostDescriptor,
    HostTag,
    InterfaceSpec,
    InterfaceType,
    SNMPDetails,
    ValidatedHost,
)
from src.hostimporter.models.results import HostImportResult, ImportSummary
from src.hostimporter.utils.exceptions import RowError
from src.hostimporter.zabbix.response_models import CreateResult, JSONRPCError, JSONRPCResponse


class TestValidatedHost:
    """Test the validated row mapping."""

    def test_mapping_access(self):
        row = ValidatedHost(line_number=2, values={"NAME": "web01", "VISIBLE_NAME": "Web"})

        assert row["NAME"] == "web01"
        assert len(row) == 2
        assert list(row) == ["NAME", "VISIBLE_NAME"]
        assert row.name == "web01"

    def test_name_missing(self):
        assert ValidatedHost(line_number=2).name == ""


class TestHostTag:
    """Test tag serialization."""

    def test_with_value(self):
        assert HostTag(tag="env", value="prod").to_api() == {"tag": "env", "value": "prod"}

    def test_without_value(self):
        assert HostTag(tag="critical").to_api() == {"tag": "critical"}

    def test_empty_value_kept(self):
        assert HostTag(tag="env", value="").to_api() == {"tag": "env", "value": ""}


class TestSNMPDetails:
    """Test SNMP details validation."""

    def test_defaults(self):
        details = SNMPDetails()
        assert details.to_api() == {"version": 1, "bulk": 1, "community": "{$SNMP_COMMUNITY}"}

    def test_v3_has_no_community(self):
        assert "community" not in SNMPDetails(version=3).to_api()

    @pytest.mark.parametrize("version", [0, 4])
    def test_unsupported_version(self, version):
        with pytest.raises(ValidationError, match="unsupported SNMP version"):
            SNMPDetails(version=version)


class TestInterfaceSpec:
    """Test interface serialization."""

    def test_agent_by_ip(self):
        spec = InterfaceSpec(type=InterfaceType.AGENT, ip="10.0.0.1", useip=True, port=10050)

        assert spec.to_api() == {
            "type": 1,
            "main": 1,
            "useip": 1,
            "ip": "10.0.0.1",
            "dns": "",
            "port": "10050",
        }

    def test_snmp_by_dns(self):
        spec = InterfaceSpec(
            type=InterfaceType.SNMP,
            dns="sw1.example.com",
            useip=False,
            port=161,
            details=SNMPDetails(version=2),
        )

        data = spec.to_api()

        assert data["type"] == 2
        assert data["useip"] == 0
        assert data["details"]["version"] == 2

    @pytest.mark.parametrize("port", [0, 65536])
    def test_port_range(self, port):
        with pytest.raises(ValidationError):
            InterfaceSpec(type=InterfaceType.AGENT, ip="10.0.0.1", useip=True, port=port)


class TestHostDescriptor:
    """Test HostDescriptor constraints."""

    def test_at_most_three_interfaces(self):
        interface = InterfaceSpec(type=InterfaceType.AGENT, ip="10.0.0.1", useip=True, port=10050)

        with pytest.raises(ValidationError):
            HostDescriptor(line_number=2, host="web01", interfaces=[interface] * 4)

    def test_defaults(self):
        descriptor = HostDescriptor(line_number=2, host="web01")

        assert descriptor.group_names == []
        assert descriptor.proxy_name is None


class TestImportSummary:
    """Test summary counters."""

    @pytest.fixture
    def summary(self) -> ImportSummary:
        return ImportSummary(
            results=[
                HostImportResult(row_number=2, host="a", host_id="1", warnings=["w1", "w2"]),
                HostImportResult(row_number=3, host="b", error="Invalid params."),
                HostImportResult(row_number=4, host="c", error="import cancelled", skipped=True),
            ],
            row_errors=[RowError(5, 'empty required column "NAME"')],
        )

    def test_counts(self, summary):
        assert summary.succeeded == 1
        assert summary.failed == 2
        assert summary.skipped == 1
        assert summary.warnings == 2
        assert not summary.is_complete_success

    def test_get_summary(self, summary):
        assert summary.get_summary() == "1 created, 2 failed, 1 skipped, 2 warnings"

    def test_file_error(self):
        summary = ImportSummary(file_error="Empty CSV file.")

        assert not summary.is_complete_success
        assert summary.get_summary() == "Import aborted: Empty CSV file."

    def test_empty_import_is_success(self):
        assert ImportSummary().is_complete_success

    def test_result_success_requires_id(self):
        assert not HostImportResult(row_number=2, host="a").success
        assert not HostImportResult(row_number=2, host="a", host_id="1", error="x").success


class TestResponseModels:
    """Test JSON-RPC envelope models."""

    def test_error_full_message(self):
        error = JSONRPCError(code=-32602, message="Invalid params.", data='Host "x" already exists.')
        assert error.get_full_message() == 'Invalid params. Host "x" already exists.'

    def test_error_without_text(self):
        assert JSONRPCError(code=-32500).get_full_message() == "Zabbix API error -32500"

    def test_envelope_requires_result_or_error(self):
        with pytest.raises(ValidationError):
            JSONRPCResponse.model_validate({"jsonrpc": "2.0", "id": 1})

    def test_envelope_with_result(self):
        envelope = JSONRPCResponse.model_validate({"jsonrpc": "2.0", "result": [], "id": 1})
        assert envelope.result == []
        assert envelope.error is None

    def test_create_result_first_id(self):
        result = CreateResult.model_validate({"hostids": [10105]})
        assert result.first_id("hostids") == "10105"

    def test_create_result_missing_key(self):
        with pytest.raises(ValueError, match="no groupids"):
            CreateResult.model_validate({"hostids": ["1"]}).first_id("groupids")
