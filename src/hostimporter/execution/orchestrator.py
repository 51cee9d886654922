"""Import Orchestrator - submit host descriptors to the inventory service.

Each descriptor becomes one host:
1. Host groups are resolved by name and created when missing
2. The proxy is resolved; a missing proxy is a warning and is left out
3. Templates are resolved; missing templates are warnings and are left out
4. The host is created with the resolved references

A failure while processing one row never stops the import. Results are
returned in descriptor order regardless of concurrency.
"""

import asyncio
import time
from collections.abc import Callable

import structlog

from ..config import PolicyConfig
from ..core.resolver import ReferenceResolver
from ..inventory.base import HostCreateRequest, InventoryService
from ..models.host import HostDescriptor
from ..models.results import HostImportResult
from ..observability.logger import LogContext
from ..observability.metrics import get_global_collector
from ..utils.exceptions import InventoryAPIError

logger = structlog.get_logger(__name__)

CANCELLED_MESSAGE = "import cancelled"


class ImportOrchestrator:
    """
    Create hosts for a list of descriptors.

    Rows run concurrently up to policy.max_concurrent_rows; the default of 1
    submits them one after another in file order.
    """

    def __init__(
        self,
        service: InventoryService,
        policy: PolicyConfig | None = None,
        on_result: Callable[[HostImportResult], None] | None = None,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            service: Inventory service hosts are created in
            policy: Import policy
            on_result: Called once per finished row (progress reporting)
        """
        self.service = service
        self.policy = policy or PolicyConfig()
        self.on_result = on_result
        self.resolver = ReferenceResolver(service, self.policy)
        self.collector = get_global_collector()
        self._cancelled = asyncio.Event()

    def cancel(self) -> None:
        """Stop scheduling rows. Rows already submitted finish normally."""
        logger.info("Import cancellation requested")
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def run(self, descriptors: list[HostDescriptor]) -> list[HostImportResult]:
        """
        Import all descriptors.

        Args:
            descriptors: Hosts to create, in file order

        Returns:
            One result per descriptor, in the same order
        """
        logger.info(
            "Starting host import",
            hosts=len(descriptors),
            max_concurrent_rows=self.policy.max_concurrent_rows,
        )
        semaphore = asyncio.Semaphore(self.policy.max_concurrent_rows)

        async def run_one(descriptor: HostDescriptor) -> HostImportResult:
            async with semaphore:
                if self.cancelled:
                    result = HostImportResult(
                        row_number=descriptor.line_number,
                        host=descriptor.host,
                        error=CANCELLED_MESSAGE,
                        skipped=True,
                    )
                    self.collector.count_row("skipped")
                else:
                    result = await self.import_host(descriptor)
            if self.on_result:
                self.on_result(result)
            return result

        gathered = await asyncio.gather(
            *(run_one(d) for d in descriptors), return_exceptions=True
        )

        results: list[HostImportResult] = []
        for descriptor, outcome in zip(descriptors, gathered, strict=True):
            if isinstance(outcome, HostImportResult):
                results.append(outcome)
            elif isinstance(outcome, Exception):
                # Raised outside import_host, e.g. by the on_result callback
                logger.error(
                    "Row processing failed",
                    line=descriptor.line_number,
                    host=descriptor.host,
                    error=str(outcome),
                )
                self.collector.count_row("failed")
                results.append(self._failed(descriptor, _describe(outcome)))
            else:
                raise outcome

        logger.info(
            "Host import finished",
            created=sum(1 for r in results if r.success),
            failed=sum(1 for r in results if not r.success and not r.skipped),
            skipped=sum(1 for r in results if r.skipped),
            cache_hit_rate=round(self.resolver.stats.hit_rate(), 3),
        )
        return results

    async def import_host(self, descriptor: HostDescriptor) -> HostImportResult:
        """
        Resolve references for one descriptor and create the host.

        Service errors are captured on the result instead of raised.
        """
        start = time.monotonic()
        warnings: list[str] = []

        with LogContext(line=descriptor.line_number, host=descriptor.host):
            try:
                group_ids = await self.resolver.resolve_groups(descriptor.group_names)

                proxy_id = None
                if descriptor.proxy_name:
                    proxy_id, proxy_warnings = await self.resolver.resolve_proxy(
                        descriptor.proxy_name, descriptor.host
                    )
                    warnings.extend(proxy_warnings)

                template_ids, template_warnings = await self.resolver.resolve_templates(
                    descriptor.template_names, descriptor.host
                )
                warnings.extend(template_warnings)

                request = HostCreateRequest(
                    host=descriptor.host,
                    visible_name=descriptor.visible_name,
                    description=descriptor.description,
                    group_ids=group_ids,
                    tags=list(descriptor.tags),
                    proxy_id=proxy_id,
                    template_ids=template_ids,
                    interfaces=list(descriptor.interfaces),
                )
                host_id = await self.service.create_host(request)
            except InventoryAPIError as e:
                logger.error("Host creation failed", error=str(e))
                self.collector.count_row("failed")
                return self._failed(descriptor, str(e), warnings, start)
            except Exception as e:
                logger.error(
                    "Host creation failed unexpectedly", error=str(e), error_type=type(e).__name__
                )
                self.collector.count_row("failed")
                return self._failed(descriptor, _describe(e), warnings, start)

            logger.info("Host created", host_id=host_id, warnings=len(warnings))
            self.collector.count_row("created")
            return HostImportResult(
                row_number=descriptor.line_number,
                host=descriptor.host,
                host_id=host_id,
                warnings=warnings,
                duration_ms=(time.monotonic() - start) * 1000,
            )

    @staticmethod
    def _failed(
        descriptor: HostDescriptor,
        message: str,
        warnings: list[str] | None = None,
        start: float | None = None,
    ) -> HostImportResult:
        return HostImportResult(
            row_number=descriptor.line_number,
            host=descriptor.host,
            error=message,
            warnings=list(warnings or []),
            duration_ms=(time.monotonic() - start) * 1000 if start is not None else None,
        )


def _describe(error: Exception) -> str:
    """Message for an error outside the inventory error hierarchy."""
    return f"Unexpected error: {type(error).__name__}: {error}"
