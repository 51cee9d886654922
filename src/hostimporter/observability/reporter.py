"""Import Report Generator.

Turns an ImportSummary into a JSON document: counts, then one entry per
host in file order, then the rows rejected before submission.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, TextIO

import structlog

from ..models.results import ImportSummary

logger = structlog.get_logger(__name__)


@dataclass
class ImportReport:
    """
    Structured report data for one import.

    Attributes:
        import_id: Identifier bound to the run's log lines
        status: completed, partial, failed or aborted
        csv_file: Name of the imported file
        started_at: ISO timestamp
        completed_at: ISO timestamp
        duration_seconds: Wall time of the import
        file_error: Reason the whole file was rejected, if it was
        total_rows: Data rows seen (submitted plus rejected)
        created: Hosts created
        failed: Rows rejected by the parser/transformer or the service
        skipped: Rows not submitted because the import was cancelled
        warnings: Proxy/template references that could not be resolved
        results: Per-host outcome in file order
        row_errors: Rows rejected before submission
    """

    import_id: str | None
    status: str
    csv_file: str | None
    started_at: str | None
    completed_at: str | None
    duration_seconds: float
    file_error: str | None
    total_rows: int
    created: int
    failed: int
    skipped: int
    warnings: int
    results: list[dict[str, Any]] = field(default_factory=list)
    row_errors: list[dict[str, Any]] = field(default_factory=list)


class ReportGenerator:
    """Build import reports and write them as JSON."""

    def generate_report(
        self,
        summary: ImportSummary,
        csv_file: Path | str | None = None,
        import_id: str | None = None,
    ) -> ImportReport:
        """
        Build a report from an import summary.

        Args:
            summary: Outcome of the import
            csv_file: File that was imported
            import_id: Run identifier

        Returns:
            ImportReport object
        """
        duration = 0.0
        if summary.started_at and summary.completed_at:
            duration = (summary.completed_at - summary.started_at).total_seconds()

        if summary.file_error:
            status = "aborted"
        elif summary.is_complete_success:
            status = "completed"
        elif summary.succeeded > 0:
            status = "partial"
        else:
            status = "failed"

        results = [
            {
                "line": r.row_number,
                "host": r.host,
                "status": "skipped" if r.skipped else ("created" if r.success else "failed"),
                "host_id": r.host_id,
                "error": r.error,
                "warnings": list(r.warnings),
            }
            for r in summary.results
        ]
        row_errors = [{"line": e.line_number, "error": e.message} for e in summary.row_errors]

        return ImportReport(
            import_id=import_id,
            status=status,
            csv_file=str(csv_file) if csv_file else None,
            started_at=summary.started_at.isoformat() if summary.started_at else None,
            completed_at=summary.completed_at.isoformat() if summary.completed_at else None,
            duration_seconds=duration,
            file_error=summary.file_error,
            total_rows=len(summary.results) + len(summary.row_errors),
            created=summary.succeeded,
            failed=summary.failed,
            skipped=summary.skipped,
            warnings=summary.warnings,
            results=results,
            row_errors=row_errors,
        )

    def write_json(self, report: ImportReport | ImportSummary, sink: TextIO) -> None:
        """
        Write a report as JSON to a text stream.

        Args:
            report: Report, or a summary to build one from
            sink: Writable text stream
        """
        if isinstance(report, ImportSummary):
            report = self.generate_report(report)
        json.dump(asdict(report), sink, indent=2, ensure_ascii=False)
        sink.write("\n")

    def write_json_report(self, report: ImportReport, output_path: Path) -> None:
        """
        Write report as JSON file.

        Args:
            report: Import report
            output_path: Output file path
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            self.write_json(report, f)

        logger.info("JSON report written", path=str(output_path))
