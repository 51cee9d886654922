"""Row transformer: validated CSV rows to host descriptors.

The transformer is pure. It performs no lookups and no I/O; names of groups,
templates and the proxy are carried over unresolved.

Field Rules:
-----------
- HOST_GROUPS, TEMPLATES: split on ",", tokens trimmed, empty tokens dropped,
  order kept, duplicates kept
- HOST_TAGS: tokens split on the first ":" into tag and value. A token
  without ":" is a tag with no value
- Interfaces (agent, SNMP, JMX): built only when the IP or DNS column is
  non-empty. useip is set when the IP is non-empty, otherwise the DNS name
  is used. A blank port falls back to the interface default
- SNMP_VERSION: blank means 1; must be a supported version

Ports and SNMP versions that are not integers in range raise
RowValidationError instead of being coerced.
"""

from collections.abc import Iterable

import structlog
from pydantic import ValidationError

from ..constants import (
    DEFAULT_AGENT_PORT,
    DEFAULT_JMX_PORT,
    DEFAULT_SNMP_COMMUNITY,
    DEFAULT_SNMP_PORT,
    DEFAULT_SNMP_VERSION,
    LIST_SEPARATOR,
    MAX_PORT,
    MIN_PORT,
    SUPPORTED_SNMP_VERSIONS,
    TAG_VALUE_SEPARATOR,
)
from ..models.host import (
    HostDescriptor,
    HostTag,
    InterfaceSpec,
    InterfaceType,
    SNMPDetails,
    ValidatedHost,
)
from ..models.results import TransformResult
from ..utils.exceptions import RowError, RowValidationError

logger = structlog.get_logger(__name__)

# (type, column prefix, default port)
INTERFACE_COLUMNS: tuple[tuple[InterfaceType, str, int], ...] = (
    (InterfaceType.AGENT, "AGENT", DEFAULT_AGENT_PORT),
    (InterfaceType.SNMP, "SNMP", DEFAULT_SNMP_PORT),
    (InterfaceType.JMX, "JMX", DEFAULT_JMX_PORT),
)


def split_list(value: str, separator: str = LIST_SEPARATOR) -> list[str]:
    """
    Split a list-valued field.

    Examples:
        "Linux, Prod,,"  -> ["Linux", "Prod"]
        ""               -> []
    """
    return [token.strip() for token in value.split(separator) if token.strip()]


def parse_tags(value: str, line_number: int = 0) -> list[HostTag]:
    """
    Parse a HOST_TAGS field.

    Examples:
        "env:prod,critical" -> [HostTag(tag="env", value="prod"), HostTag(tag="critical")]
        "url:http://x"      -> [HostTag(tag="url", value="http://x")]

    Raises:
        RowValidationError: If a token has an empty tag name, e.g. ":prod"
    """
    tags = []
    for token in split_list(value):
        if TAG_VALUE_SEPARATOR in token:
            name, tag_value = token.split(TAG_VALUE_SEPARATOR, 1)
            if not name.strip():
                raise RowValidationError(
                    line_number, "HOST_TAGS", f'empty tag name in "{token}" in column "HOST_TAGS"'
                )
            tags.append(HostTag(tag=name.strip(), value=tag_value.strip()))
        else:
            tags.append(HostTag(tag=token))
    return tags


def parse_int_field(line_number: int, column: str, value: str, low: int, high: int) -> int:
    """
    Parse an integer column, rejecting text and out-of-range numbers.

    Raises:
        RowValidationError: If value is not an integer between low and high
    """
    # int() also takes signs and underscores; isdigit() alone takes non-ASCII digits
    if not (value.isascii() and value.isdigit()):
        raise RowValidationError(
            line_number, column, f'invalid integer "{value}" in column "{column}"'
        )
    number = int(value)
    if not low <= number <= high:
        raise RowValidationError(
            line_number,
            column,
            f'value {number} in column "{column}" is out of range {low}-{high}',
        )
    return number


class RowTransformer:
    """
    Convert ValidatedHost rows into HostDescriptor objects.

    Deterministic and side-effect free; the only state is configuration.
    """

    def __init__(self, snmp_community: str = DEFAULT_SNMP_COMMUNITY) -> None:
        """
        Initialize transformer.

        Args:
            snmp_community: Community string placed on SNMPv1/v2 interfaces
        """
        self.snmp_community = snmp_community

    def transform(self, row: ValidatedHost) -> HostDescriptor:
        """
        Build the host descriptor for one row.

        Args:
            row: Validated CSV row

        Returns:
            HostDescriptor

        Raises:
            RowValidationError: If a port or SNMP version is invalid
        """
        get = row.values.get
        return HostDescriptor(
            line_number=row.line_number,
            host=get("NAME", ""),
            visible_name=get("VISIBLE_NAME", "") or None,
            description=get("DESCRIPTION", "") or None,
            group_names=split_list(get("HOST_GROUPS", "")),
            tags=parse_tags(get("HOST_TAGS", ""), row.line_number),
            proxy_name=get("PROXY", "") or None,
            template_names=split_list(get("TEMPLATES", "")),
            interfaces=self._build_interfaces(row),
        )

    def transform_all(self, rows: Iterable[ValidatedHost]) -> TransformResult:
        """
        Transform every row, collecting rows that fail conversion.

        Returns:
            TransformResult with descriptors in input order
        """
        result = TransformResult()
        for row in rows:
            try:
                result.descriptors.append(self.transform(row))
            except RowError as error:
                logger.warning(
                    "Row transform failed (continuing)", line=row.line_number, error=error.message
                )
                result.errors.append(error)
        return result

    def _build_interfaces(self, row: ValidatedHost) -> list[InterfaceSpec]:
        interfaces = []
        for interface_type, prefix, default_port in INTERFACE_COLUMNS:
            ip = row.values.get(f"{prefix}_IP", "")
            dns = row.values.get(f"{prefix}_DNS", "")
            if not ip and not dns:
                continue

            port_column = f"{prefix}_PORT"
            port_value = row.values.get(port_column, "")
            port = (
                parse_int_field(row.line_number, port_column, port_value, MIN_PORT, MAX_PORT)
                if port_value
                else default_port
            )

            details = None
            if interface_type is InterfaceType.SNMP:
                details = self._build_snmp_details(row)

            try:
                interfaces.append(
                    InterfaceSpec(
                        type=interface_type,
                        ip=ip,
                        dns=dns,
                        useip=bool(ip),
                        port=port,
                        details=details,
                    )
                )
            except ValidationError as e:
                raise RowValidationError(
                    row.line_number, prefix, f"invalid {prefix} interface: {e.errors()[0]['msg']}"
                ) from e
        return interfaces

    def _build_snmp_details(self, row: ValidatedHost) -> SNMPDetails:
        value = row.values.get("SNMP_VERSION", "")
        if not value:
            version = DEFAULT_SNMP_VERSION
        else:
            version = parse_int_field(
                row.line_number,
                "SNMP_VERSION",
                value,
                min(SUPPORTED_SNMP_VERSIONS),
                max(SUPPORTED_SNMP_VERSIONS),
            )
        return SNMPDetails(version=version, community=self.snmp_community)
