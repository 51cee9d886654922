"""Schema registry: the columns a host CSV may carry.

Each column has a default that is filled in when the column is absent from
the file, and a required flag. Required columns must appear in the header
and must be non-empty on every data row.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from ..constants import DEFAULT_AGENT_PORT, DEFAULT_JMX_PORT, DEFAULT_SNMP_PORT


@dataclass(frozen=True)
class ColumnSpec:
    """
    Definition of a single CSV column.

    Attributes:
        name: Normalized (upper-case) column name
        default: Value used when the column is missing from the file
        required: Whether the column must be present and non-empty
    """

    name: str
    default: str = ""
    required: bool = False


class SchemaRegistry:
    """
    Ordered, uniquely keyed collection of ColumnSpec.

    Column names are normalized on registration. A name registered twice
    keeps its first position and takes the last definition.
    """

    def __init__(self, columns: Iterable[ColumnSpec]) -> None:
        self._columns: dict[str, ColumnSpec] = {}
        for column in columns:
            name = normalize_column_name(column.name)
            if name != column.name:
                column = ColumnSpec(name=name, default=column.default, required=column.required)
            self._columns[name] = column

    def __iter__(self) -> Iterator[ColumnSpec]:
        return iter(self._columns.values())

    def __len__(self) -> int:
        return len(self._columns)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_column_name(name) in self._columns

    def __getitem__(self, name: str) -> ColumnSpec:
        return self._columns[normalize_column_name(name)]

    @property
    def names(self) -> list[str]:
        """Column names in registration order."""
        return list(self._columns)

    @property
    def required(self) -> list[ColumnSpec]:
        """Columns that must be present and non-empty."""
        return [c for c in self._columns.values() if c.required]

    @classmethod
    def from_dicts(cls, entries: Iterable[dict]) -> "SchemaRegistry":
        """
        Build a registry from plain mappings, as found in a YAML config.

        Args:
            entries: Mappings with keys name, default (optional), required (optional)

        Returns:
            SchemaRegistry instance
        """
        return cls(
            ColumnSpec(
                name=str(entry["name"]),
                default=str(entry.get("default", "") or ""),
                required=bool(entry.get("required", False)),
            )
            for entry in entries
        )


def normalize_column_name(name: str) -> str:
    """Trim and upper-case a header cell."""
    return name.strip().upper()


# HOST_GROUPS appears twice, matching the column list operators already use.
# The registry collapses it into one entry.
DEFAULT_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("NAME", "", True),
    ColumnSpec("VISIBLE_NAME", "", True),
    ColumnSpec("HOST_GROUPS", "", False),
    ColumnSpec("HOST_TAGS", "", False),
    ColumnSpec("PROXY", "", False),
    ColumnSpec("TEMPLATES", "", False),
    ColumnSpec("AGENT_IP", "", False),
    ColumnSpec("AGENT_DNS", "", False),
    ColumnSpec("AGENT_PORT", str(DEFAULT_AGENT_PORT), False),
    ColumnSpec("SNMP_IP", "", False),
    ColumnSpec("SNMP_DNS", "", False),
    ColumnSpec("SNMP_PORT", str(DEFAULT_SNMP_PORT), False),
    ColumnSpec("SNMP_VERSION", "", False),
    ColumnSpec("DESCRIPTION", "", False),
    ColumnSpec("HOST_GROUPS", "", False),
    ColumnSpec("JMX_IP", "", False),
    ColumnSpec("JMX_DNS", "", False),
    ColumnSpec("JMX_PORT", str(DEFAULT_JMX_PORT), False),
)


def default_registry() -> SchemaRegistry:
    """Return the registry of host CSV columns."""
    return SchemaRegistry(DEFAULT_COLUMNS)
