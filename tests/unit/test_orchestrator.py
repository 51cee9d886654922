"""Unit tests for the import orchestrator."""

import asyncio

import pytest

from src.hostimporter.config import PolicyConfig
from src.hostimporter.execution.orchestrator import CANCELLED_MESSAGE, ImportOrchestrator
from src.hostimporter.inventory.base import HostCreateRequest
from src.hostimporter.models.host import HostTag, InterfaceSpec, InterfaceType
from src.hostimporter.observability.metrics import get_global_collector
from src.hostimporter.utils.exceptions import (
    InventoryAPIError,
    InventoryConnectionError,
)


class TestImportHost:
    """Test single host import."""

    @pytest.mark.asyncio
    async def test_groups_created_before_host(self, mock_inventory, make_descriptor):
        """Two missing groups are created, then the host with both ids."""
        calls = []
        mock_inventory.create_group.side_effect = lambda name: calls.append(name) or f"g-{name}"
        mock_inventory.create_host.side_effect = lambda request: calls.append("host") or "500"

        orchestrator = ImportOrchestrator(mock_inventory)
        result = await orchestrator.import_host(
            make_descriptor(group_names=["Linux", "Prod"], visible_name="Server One")
        )

        assert calls == ["Linux", "Prod", "host"]
        assert result.success
        assert result.host_id == "500"
        assert result.warnings == []

        request = mock_inventory.create_host.await_args.args[0]
        assert isinstance(request, HostCreateRequest)
        assert request.host == "srv1"
        assert request.visible_name == "Server One"
        assert request.group_ids == ["g-Linux", "g-Prod"]

    @pytest.mark.asyncio
    async def test_all_fields_passed_through(self, mock_inventory, make_descriptor):
        mock_inventory.find_group_by_name.return_value = "2"
        mock_inventory.find_proxy_by_name.return_value = "11"
        mock_inventory.find_template_by_name.return_value = "10001"
        interface = InterfaceSpec(type=InterfaceType.AGENT, ip="10.0.0.1", useip=True, port=10050)

        await ImportOrchestrator(mock_inventory).import_host(
            make_descriptor(
                description="Frontend",
                group_names=["Linux"],
                tags=[HostTag(tag="env", value="prod")],
                proxy_name="proxy-eu",
                template_names=["Linux by Zabbix agent"],
                interfaces=[interface],
            )
        )

        request = mock_inventory.create_host.await_args.args[0]
        assert request.description == "Frontend"
        assert request.proxy_id == "11"
        assert request.template_ids == ["10001"]
        assert request.tags == [HostTag(tag="env", value="prod")]
        assert request.interfaces == [interface]

    @pytest.mark.asyncio
    async def test_missing_references_are_warnings(self, mock_inventory, make_descriptor):
        result = await ImportOrchestrator(mock_inventory).import_host(
            make_descriptor(host="web01", proxy_name="px", template_names=["T1", "T2"])
        )

        assert result.success
        assert result.warnings == [
            'Proxy "px" on host "web01" not found.',
            'Template "T1" on host "web01" not found.',
            'Template "T2" on host "web01" not found.',
        ]
        request = mock_inventory.create_host.await_args.args[0]
        assert request.proxy_id is None
        assert request.template_ids == []

    @pytest.mark.asyncio
    async def test_service_error_fails_row(self, mock_inventory, make_descriptor):
        mock_inventory.create_host.side_effect = InventoryAPIError(
            'Invalid params. Host with the same name "srv1" already exists.'
        )

        result = await ImportOrchestrator(mock_inventory).import_host(make_descriptor())

        assert not result.success
        assert result.host_id is None
        assert "already exists" in result.error
        assert result.duration_ms is not None

    @pytest.mark.asyncio
    async def test_warnings_kept_on_failure(self, mock_inventory, make_descriptor):
        mock_inventory.create_host.side_effect = InventoryConnectionError("unreachable")

        result = await ImportOrchestrator(mock_inventory).import_host(
            make_descriptor(template_names=["T1"])
        )

        assert result.error == "unreachable"
        assert len(result.warnings) == 1


class TestRun:
    """Test ImportOrchestrator.run."""

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_import(self, mock_inventory, make_descriptor):
        async def create_host(request):
            if request.host == "bad":
                raise InventoryAPIError("Invalid params.")
            return f"id-{request.host}"

        mock_inventory.create_host.side_effect = create_host
        descriptors = [
            make_descriptor("a", 2),
            make_descriptor("bad", 3),
            make_descriptor("c", 4),
        ]

        results = await ImportOrchestrator(mock_inventory).run(descriptors)

        assert [r.host for r in results] == ["a", "bad", "c"]
        assert [r.success for r in results] == [True, False, True]
        assert results[2].host_id == "id-c"

    @pytest.mark.asyncio
    async def test_unexpected_error_fails_row_only(self, mock_inventory, make_descriptor):
        """An error outside the inventory hierarchy still yields one result per row."""
        mock_inventory.find_group_by_name.side_effect = [KeyError("groupid"), "2"]
        descriptors = [
            make_descriptor("a", 2, group_names=["Linux"]),
            make_descriptor("b", 3, group_names=["Linux"]),
        ]

        results = await ImportOrchestrator(mock_inventory).run(descriptors)

        assert [r.success for r in results] == [False, True]
        assert results[0].error == "Unexpected error: KeyError: 'groupid'"
        assert results[0].duration_ms is not None
        assert results[1].host_id is not None
        counters = get_global_collector().get_summary()["counters"]
        assert counters["import_row_total[status=failed]"] == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_when_concurrent(self, mock_inventory, make_descriptor):
        async def create_host(request):
            if request.host == "bad":
                raise TypeError("'NoneType' object is not subscriptable")
            await asyncio.sleep(0.01)
            return f"id-{request.host}"

        mock_inventory.create_host.side_effect = create_host
        descriptors = [make_descriptor(name, i + 2) for i, name in enumerate(["a", "bad", "c"])]

        results = await ImportOrchestrator(
            mock_inventory, PolicyConfig(max_concurrent_rows=3)
        ).run(descriptors)

        assert [r.host_id for r in results] == ["id-a", None, "id-c"]
        assert results[1].error.startswith("Unexpected error: TypeError")

    @pytest.mark.asyncio
    async def test_callback_error_becomes_failed_result(self, mock_inventory, make_descriptor):
        def on_result(result):
            if result.host == "b":
                raise RuntimeError("progress display closed")

        orchestrator = ImportOrchestrator(mock_inventory, on_result=on_result)

        results = await orchestrator.run([make_descriptor("a", 2), make_descriptor("b", 3)])

        assert results[0].success
        assert results[1].row_number == 3
        assert results[1].error == "Unexpected error: RuntimeError: progress display closed"

    @pytest.mark.asyncio
    async def test_results_in_input_order_when_concurrent(self, mock_inventory, make_descriptor):
        async def create_host(request):
            # later rows finish first
            await asyncio.sleep(0.01 * (5 - int(request.host)))
            return request.host

        mock_inventory.create_host.side_effect = create_host
        descriptors = [make_descriptor(str(i), i + 2) for i in range(5)]

        results = await ImportOrchestrator(
            mock_inventory, PolicyConfig(max_concurrent_rows=5)
        ).run(descriptors)

        assert [r.host_id for r in results] == ["0", "1", "2", "3", "4"]
        assert [r.row_number for r in results] == [2, 3, 4, 5, 6]

    @pytest.mark.asyncio
    async def test_sequential_by_default(self, mock_inventory, make_descriptor):
        active = 0
        peak = 0

        async def create_host(request):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.005)
            active -= 1
            return "1"

        mock_inventory.create_host.side_effect = create_host
        await ImportOrchestrator(mock_inventory).run(
            [make_descriptor(str(i)) for i in range(4)]
        )

        assert peak == 1

    @pytest.mark.asyncio
    async def test_shared_group_created_once_across_rows(self, mock_inventory, make_descriptor):
        descriptors = [make_descriptor(str(i), group_names=["Linux"]) for i in range(3)]

        results = await ImportOrchestrator(
            mock_inventory, PolicyConfig(max_concurrent_rows=3)
        ).run(descriptors)

        assert all(r.success for r in results)
        mock_inventory.create_group.assert_awaited_once_with("Linux")

    @pytest.mark.asyncio
    async def test_on_result_called_per_row(self, mock_inventory, make_descriptor):
        seen = []
        orchestrator = ImportOrchestrator(mock_inventory, on_result=seen.append)

        await orchestrator.run([make_descriptor("a"), make_descriptor("b")])

        assert [r.host for r in seen] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_empty(self, mock_inventory):
        assert await ImportOrchestrator(mock_inventory).run([]) == []


class TestCancel:
    """Test cancellation."""

    @pytest.mark.asyncio
    async def test_cancel_skips_remaining_rows(self, mock_inventory, make_descriptor):
        orchestrator = ImportOrchestrator(mock_inventory)

        async def create_host(request):
            if request.host == "b":
                orchestrator.cancel()
            return f"id-{request.host}"

        mock_inventory.create_host.side_effect = create_host
        descriptors = [make_descriptor(h, i + 2) for i, h in enumerate("abcd")]

        results = await orchestrator.run(descriptors)

        assert [r.success for r in results] == [True, True, False, False]
        assert [r.skipped for r in results] == [False, False, True, True]
        assert results[2].error == CANCELLED_MESSAGE
        assert mock_inventory.create_host.await_count == 2

    @pytest.mark.asyncio
    async def test_cancel_before_run(self, mock_inventory, make_descriptor):
        orchestrator = ImportOrchestrator(mock_inventory)
        orchestrator.cancel()

        results = await orchestrator.run([make_descriptor()])

        assert orchestrator.cancelled
        assert results[0].skipped
        mock_inventory.create_host.assert_not_called()
