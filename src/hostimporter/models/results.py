"""Result types for parsing and importing."""

from dataclasses import dataclass, field
from datetime import datetime

from ..utils.exceptions import RowError
from .host import HostDescriptor, ValidatedHost


@dataclass
class ParseResult:
    """
    Output of the CSV parser.

    Attributes:
        hosts: Validated rows in file order
        errors: Row-scoped problems; the affected rows are not in hosts
        header: Normalized header cells as read from the file
    """

    hosts: list[ValidatedHost] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    header: list[str] = field(default_factory=list)

    @property
    def rows_parsed(self) -> int:
        return len(self.hosts)


@dataclass
class TransformResult:
    """Host descriptors built from validated rows plus rows that failed conversion."""

    descriptors: list[HostDescriptor] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)


@dataclass
class HostImportResult:
    """
    Outcome of submitting one host.

    Attributes:
        row_number: CSV line of the host
        host: Technical host name
        host_id: Id assigned by the inventory service on success
        error: Service error message on failure
        warnings: Non-fatal reference problems (proxy/template not found)
        skipped: True if the row was never submitted (import cancelled)
        duration_ms: Time spent on this row
    """

    row_number: int
    host: str
    host_id: str | None = None
    error: str | None = None
    warnings: list[str] = field(default_factory=list)
    skipped: bool = False
    duration_ms: float | None = None

    @property
    def success(self) -> bool:
        return self.host_id is not None and self.error is None


@dataclass
class ImportSummary:
    """
    Overall result of one import attempt.

    file_error is set when the whole attempt was rejected; in that case no
    row was processed and results is empty.
    """

    results: list[HostImportResult] = field(default_factory=list)
    row_errors: list[RowError] = field(default_factory=list)
    file_error: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success and not r.skipped) + len(
            self.row_errors
        )

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def warnings(self) -> int:
        return sum(len(r.warnings) for r in self.results)

    @property
    def is_complete_success(self) -> bool:
        """
        Check if every row was imported.

        Returns:
            bool: True if there is no file error, no failed and no skipped row.
        """
        return self.file_error is None and self.failed == 0 and self.skipped == 0

    def get_summary(self) -> str:
        """
        Get a human-readable summary.

        Returns:
            str: Summary string with counts.
        """
        if self.file_error:
            return f"Import aborted: {self.file_error}"
        return (
            f"{self.succeeded} created, {self.failed} failed, "
            f"{self.skipped} skipped, {self.warnings} warnings"
        )
