"""Custom exceptions for the Zabbix CSV Host Importer.

Exception Hierarchy:
-------------------
ImporterError (base)
├── FileError                       # Whole import attempt is invalid, no row processed
│   ├── EmptyFileError              # Stream yields no header line
│   ├── MissingRequiredColumnError  # Required column absent from the header
│   ├── LineTooLongError            # Physical line exceeds the configured cap
│   ├── UnreadableFileError         # Staged file missing or not decodable
│   └── UploadError                 # Upload transport failed (carries UploadErrorCode)
├── RowError                        # Only one CSV line is affected
│   └── RowValidationError          # Field value rejected by the transformer
└── InventoryAPIError (service errors)
    ├── ResourceAlreadyExistsError  # Duplicate name on create
    ├── InventoryAuthenticationError
    └── InventoryConnectionError    # Network/timeout after retries

Usage Guidelines:
----------------
1. FileError is raised and aborts the import before any host is created.
   The runner surfaces its message verbatim to the caller.

2. RowError is never raised past the pipeline stage that produced it.
   Parser and transformer collect them, the import continues.

3. InventoryAPIError raised by the client fails the current row only.
   ResourceAlreadyExistsError on group creation is recovered by re-resolving.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.upload import UploadErrorCode


class ImporterError(Exception):
    """Base exception for all importer errors."""

    pass


class FileError(ImporterError):
    """Raised when the uploaded file as a whole cannot be imported."""

    pass


class EmptyFileError(FileError):
    """Raised when the CSV stream has no header line."""

    def __init__(self, message: str = "Empty CSV file.") -> None:
        super().__init__(message)


class MissingRequiredColumnError(FileError):
    """Raised when a required column is not part of the CSV header."""

    def __init__(self, column: str) -> None:
        """
        Initialize MissingRequiredColumnError.

        Args:
            column: Normalized name of the missing column.
        """
        super().__init__(f'Missing required column "{column}" in CSV file.')
        self.column = column


class LineTooLongError(FileError):
    """Raised when a physical line exceeds the maximum line length."""

    def __init__(self, line_number: int, max_length: int) -> None:
        """
        Initialize LineTooLongError.

        Args:
            line_number: Physical line number (header is line 1).
            max_length: Configured maximum line length in bytes.
        """
        super().__init__(
            f"Line {line_number} exceeds the maximum line length of {max_length} bytes."
        )
        self.line_number = line_number
        self.max_length = max_length


class UnreadableFileError(FileError):
    """Raised when the staged file cannot be opened or decoded."""

    pass


class UploadError(FileError):
    """Raised when the upload transport reports an error."""

    def __init__(self, code: "UploadErrorCode") -> None:
        super().__init__(code.message)
        self.code = code


class RowError(ImporterError):
    """A problem confined to a single CSV line."""

    def __init__(self, line_number: int, message: str) -> None:
        """
        Initialize RowError.

        Args:
            line_number: Physical line number of the offending row.
            message: Human-readable description.
        """
        super().__init__(message)
        self.line_number = line_number
        self.message = message

    def __str__(self) -> str:
        return f"Line {self.line_number}: {self.message}"


class RowValidationError(RowError):
    """Raised when a field value cannot be converted for the API payload."""

    def __init__(self, line_number: int, column: str, message: str) -> None:
        super().__init__(line_number, message)
        self.column = column


class InventoryAPIError(ImporterError):
    """Base exception for inventory service errors."""

    def __init__(
        self, message: str, code: int | None = None, data: str | None = None
    ) -> None:
        """
        Initialize InventoryAPIError.

        Args:
            message: Error message.
            code: Optional JSON-RPC or HTTP error code.
            data: Optional detail string returned by the service.
        """
        super().__init__(message)
        self.code = code
        self.data = data


class ResourceAlreadyExistsError(InventoryAPIError):
    """Raised when a create call is rejected because the name is taken."""

    pass


class InventoryAuthenticationError(InventoryAPIError):
    """Raised when the inventory service rejects the credentials."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class InventoryConnectionError(InventoryAPIError):
    """Raised when the inventory service cannot be reached."""

    pass
