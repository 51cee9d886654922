"""
Import Runner - drives one CSV file through the import pipeline.

Stages:
1. Upload: the file is staged (see core.upload)
2. Preview: parse and transform, nothing is sent to the inventory
3. Submit: parse and transform again, then create the hosts
The staged file is removed after submit, whether it succeeded or not.
"""

import uuid
from datetime import datetime
from pathlib import Path

import structlog
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from ..config import ImporterConfig
from ..core.parser import CSVParser
from ..core.transformer import RowTransformer
from ..core.upload import discard_upload
from ..inventory.base import InventoryService
from ..models.results import HostImportResult, ImportSummary, ParseResult, TransformResult
from ..observability.logger import LogContext
from ..observability.metrics import get_global_collector
from ..utils.exceptions import FileError, UnreadableFileError
from .orchestrator import ImportOrchestrator

logger = structlog.get_logger(__name__)

MISSING_STAGED_FILE = "Missing temporary host file."


class ImportRunner:
    """
    Executes an import from start to finish.
    """

    def __init__(self, config: ImporterConfig, console: Console | None = None) -> None:
        """
        Initialize ImportRunner.

        Args:
            config: Importer configuration
            console: Rich console; when set, submit shows a progress bar
        """
        self.config = config
        self.console = console
        self.parser = CSVParser.from_config(config.csv)
        self.transformer = RowTransformer(snmp_community=config.policy.snmp_community)
        self._orchestrator: ImportOrchestrator | None = None

    def preview(self, csv_file: Path) -> tuple[ParseResult, TransformResult]:
        """
        Parse and transform a file without contacting the inventory.

        Returns:
            (parse result, transform result)

        Raises:
            FileError: If the file as a whole can't be imported
        """
        parsed = self.parser.parse_file(csv_file)
        transformed = self.transformer.transform_all(parsed.hosts)
        logger.info(
            "Preview ready",
            csv_file=str(csv_file),
            hosts=len(transformed.descriptors),
            rejected=len(parsed.errors) + len(transformed.errors),
        )
        return parsed, transformed

    async def submit(
        self,
        csv_file: Path,
        service: InventoryService,
        remove_file: bool = True,
        import_id: str | None = None,
    ) -> ImportSummary:
        """
        Import every host of a file.

        File-level problems never raise here; they end up in
        ImportSummary.file_error and no host is submitted.

        Args:
            csv_file: Staged CSV file
            service: Inventory service to create hosts in
            remove_file: Delete csv_file afterwards
            import_id: Identifier bound to log lines (generated if omitted)

        Returns:
            ImportSummary with one result per submitted host
        """
        import_id = import_id or f"imp_{uuid.uuid4().hex[:8]}"
        summary = ImportSummary(started_at=datetime.now())

        with LogContext(import_id=import_id):
            logger.info("Import started", csv_file=str(csv_file))
            try:
                if not csv_file.exists():
                    raise UnreadableFileError(MISSING_STAGED_FILE)
                parsed, transformed = self.preview(csv_file)
                summary.row_errors = parsed.errors + transformed.errors
                summary.row_errors.sort(key=lambda e: e.line_number)
                summary.results = await self._run(transformed, service)
            except FileError as e:
                logger.error("Import aborted", error=str(e))
                summary.file_error = str(e)
            finally:
                self._orchestrator = None
                if remove_file:
                    discard_upload(csv_file)

            summary.completed_at = datetime.now()
            logger.info("Import finished", summary=summary.get_summary())
            logger.debug("Import metrics", metrics=get_global_collector().get_summary())
        return summary

    async def _run(
        self, transformed: TransformResult, service: InventoryService
    ) -> list[HostImportResult]:
        descriptors = transformed.descriptors
        if not descriptors:
            logger.warning("No hosts to import")
            return []

        if self.console is None:
            self._orchestrator = ImportOrchestrator(service, self.config.policy)
            return await self._orchestrator.run(descriptors)

        progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        with progress:
            task = progress.add_task("[cyan]Creating hosts...", total=len(descriptors))
            self._orchestrator = ImportOrchestrator(
                service,
                self.config.policy,
                on_result=lambda _: progress.advance(task),
            )
            return await self._orchestrator.run(descriptors)

    def cancel(self, csv_file: Path | None = None) -> bool:
        """
        Cancel the import.

        Stops a running submit from scheduling more rows and removes the
        staged file.

        Returns:
            True if a staged file was removed
        """
        if self._orchestrator is not None:
            self._orchestrator.cancel()
        if csv_file is None:
            return False
        return discard_upload(csv_file)
