"""CSV parser with schema validation.

Overview:
--------
The CSVParser reads a delimited host file from a byte stream and turns every
data line into a ValidatedHost: a mapping holding a value for each column of
the schema registry.

CSV Format:
----------
The first line is the header. Column order does not matter, header cells are
trimmed and upper-cased before lookup:
```
NAME;VISIBLE_NAME;HOST_GROUPS;AGENT_IP
srv1;Server One;Linux,Prod;10.0.0.1
```

Error Handling:
--------------
File-level problems raise and abort the whole import:
- EmptyFileError: no header line
- MissingRequiredColumnError: a required column is not in the header
- LineTooLongError: a physical line exceeds max_line_length bytes
- UnreadableFileError: the file cannot be opened or decoded

Row-level problems are collected in ParseResult.errors and the row is
skipped, parsing continues with the next record:
- fewer fields than the header
- empty value in a required column

Line Numbers:
------------
Physical line numbers are reported, the header is line 1 and the first data
row is line 2. A quoted field may span several lines; the record is reported
at the line it starts on. Blank lines are skipped but still counted.
"""

import csv
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

import structlog

from ..config import CSVConfig
from ..constants import DEFAULT_ENCODING, DEFAULT_MAX_LINE_LENGTH, DEFAULT_SEPARATOR
from ..models.host import ValidatedHost
from ..models.results import ParseResult
from ..models.schema import SchemaRegistry, default_registry, normalize_column_name
from ..utils.exceptions import (
    EmptyFileError,
    LineTooLongError,
    MissingRequiredColumnError,
    RowError,
    UnreadableFileError,
)

logger = structlog.get_logger(__name__)


class CSVParser:
    """
    Parse host CSV files into validated rows.

    Features:
    - Column order doesn't matter (lookup by normalized header name)
    - Columns unknown to the registry are ignored
    - Missing optional columns get their registry default
    - Surplus fields beyond the header are ignored
    - Whitespace is stripped from every value
    """

    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        separator: str = DEFAULT_SEPARATOR,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
        encoding: str = DEFAULT_ENCODING,
    ) -> None:
        """
        Initialize parser.

        Args:
            registry: Column definitions (defaults to the host schema)
            separator: Single field separator character
            max_line_length: Maximum physical line length in bytes
            encoding: Text encoding of the file
        """
        self.registry = registry or default_registry()
        self.separator = separator
        self.max_line_length = max_line_length
        self.encoding = encoding

    @classmethod
    def from_config(cls, config: CSVConfig) -> "CSVParser":
        """Create a parser from the CSV configuration section."""
        return cls(
            registry=config.registry(),
            separator=config.separator,
            max_line_length=config.max_line_length,
            encoding=config.encoding,
        )

    def parse_file(self, csv_path: Path) -> ParseResult:
        """
        Parse a CSV file from disk.

        Raises:
            UnreadableFileError: If the file doesn't exist or can't be opened
        """
        try:
            with open(csv_path, "rb") as stream:
                return self.parse(stream)
        except OSError as e:
            raise UnreadableFileError(f"Cannot read CSV file {csv_path}: {e}") from e

    def parse(self, stream: BinaryIO) -> ParseResult:
        """
        Parse a CSV byte stream into validated rows.

        Args:
            stream: Readable binary stream positioned at the start of the file

        Returns:
            ParseResult with validated rows in file order and row errors

        Raises:
            EmptyFileError: If the stream has no header line
            MissingRequiredColumnError: If a required column is absent from the header
            LineTooLongError: If a physical line exceeds max_line_length
            UnreadableFileError: If the content cannot be decoded
        """
        logger.info("Starting CSV parse", separator=self.separator)

        records = self._read_records(stream)
        result = ParseResult()

        header_record = next(records, None)
        if header_record is None:
            logger.warning("empty_csv", message="CSV file has no header line")
            raise EmptyFileError()

        _, header_fields = header_record
        result.header = [normalize_column_name(h) for h in header_fields]
        self._check_required_columns(result.header)
        logger.debug("CSV header read", header=result.header)

        for line_num, fields in records:
            try:
                host = self._parse_row(line_num, fields, result.header)
            except RowError as error:
                logger.warning("CSV row rejected (continuing)", line=line_num, error=error.message)
                result.errors.append(error)
                continue
            result.hosts.append(host)

        logger.info(
            "CSV parse complete",
            rows_parsed=result.rows_parsed,
            errors=len(result.errors),
        )
        return result

    def _read_lines(self, stream: BinaryIO) -> Iterator[tuple[int, str]]:
        """
        Yield (line_number, text) for every physical line, line ending kept.

        The read size is bounded so an overlong line is detected without
        loading it completely.
        """
        line_num = 0
        limit = self.max_line_length + 2  # room for \r\n
        while True:
            raw = stream.readline(limit)
            if not raw:
                return
            line_num += 1
            if len(raw.rstrip(b"\r\n")) > self.max_line_length:
                logger.error("CSV line too long", line=line_num, max_length=self.max_line_length)
                raise LineTooLongError(line_num, self.max_line_length)
            try:
                text = raw.decode(self.encoding)
            except UnicodeDecodeError as e:
                raise UnreadableFileError(
                    f"Line {line_num} is not valid {self.encoding} text: {e.reason}"
                ) from e
            yield line_num, text

    def _read_records(self, stream: BinaryIO) -> Iterator[tuple[int, list[str]]]:
        """
        Yield (line_number, fields) for every non-blank CSV record.

        One csv.reader consumes all lines, so a quoted field containing a
        line break continues on the next physical line. line_number is the
        line the record starts on.
        """
        last_line = 0

        def lines() -> Iterator[str]:
            nonlocal last_line
            for last_line, text in self._read_lines(stream):
                yield text

        reader = csv.reader(lines(), delimiter=self.separator)
        while True:
            start = last_line + 1
            try:
                fields = next(reader)
            except StopIteration:
                return
            except csv.Error as e:
                raise UnreadableFileError(f"Line {start}: {e}") from e
            if not fields or (len(fields) == 1 and not fields[0].strip()):
                continue
            yield start, fields

    def _check_required_columns(self, header: list[str]) -> None:
        present = set(header)
        for column in self.registry.required:
            if column.name not in present:
                logger.error("Missing required column", column=column.name)
                raise MissingRequiredColumnError(column.name)

    def _parse_row(self, line_num: int, fields: list[str], header: list[str]) -> ValidatedHost:
        """
        Validate a single data record.

        Raises:
            RowError: If the row is short or a required value is empty
        """
        if len(fields) < len(header):
            raise RowError(line_num, f'missing column "{header[len(fields)]}"')

        raw = {name: value.strip() for name, value in zip(header, fields)}

        values: dict[str, str] = {}
        for column in self.registry:
            if column.name in raw:
                value = raw[column.name]
                if column.required and value == "":
                    raise RowError(line_num, f'empty required column "{column.name}"')
                values[column.name] = value
            else:
                values[column.name] = column.default

        return ValidatedHost(line_number=line_num, values=values)
