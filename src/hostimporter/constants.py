"""Configuration constants for the Zabbix CSV Host Importer.

Named constants for the CSV format, the Zabbix interface model and the
JSON-RPC transport.
"""

VERSION: str = "0.1.0"

# -----------------------------------------------------------------------------
# CSV Format
# -----------------------------------------------------------------------------

# Character used to separate CSV fields
DEFAULT_SEPARATOR: str = ";"

# Maximum length of a single physical CSV line, in bytes
DEFAULT_MAX_LINE_LENGTH: int = 1024

# utf-8-sig strips a leading BOM written by spreadsheet exports
DEFAULT_ENCODING: str = "utf-8-sig"

# Separators inside list-valued and tag fields
LIST_SEPARATOR: str = ","
TAG_VALUE_SEPARATOR: str = ":"


# -----------------------------------------------------------------------------
# Host Interfaces
# -----------------------------------------------------------------------------

# Zabbix interface type codes
INTERFACE_TYPE_AGENT: int = 1
INTERFACE_TYPE_SNMP: int = 2
INTERFACE_TYPE_JMX: int = 4

DEFAULT_AGENT_PORT: int = 10050
DEFAULT_SNMP_PORT: int = 161
DEFAULT_JMX_PORT: int = 12345

MIN_PORT: int = 1
MAX_PORT: int = 65535

# SNMPv1, SNMPv2c, SNMPv3
SUPPORTED_SNMP_VERSIONS: frozenset[int] = frozenset({1, 2, 3})
DEFAULT_SNMP_VERSION: int = 1

# Resolved on the Zabbix server, so the CSV never carries the secret
DEFAULT_SNMP_COMMUNITY: str = "{$SNMP_COMMUNITY}"


# -----------------------------------------------------------------------------
# Zabbix JSON-RPC
# -----------------------------------------------------------------------------

JSONRPC_VERSION: str = "2.0"
JSONRPC_PATH: str = "api_jsonrpc.php"
JSONRPC_CONTENT_TYPE: str = "application/json-rpc"

# Fragment of the error data Zabbix returns for a duplicate name
ALREADY_EXISTS_MARKER: str = "already exists"

# Zabbix reports expired sessions and bad tokens with this data text
NOT_AUTHORIZED_MARKERS: tuple[str, ...] = (
    "Not authorised",
    "Not authorized",
    "Session terminated",
)
