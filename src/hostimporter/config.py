"""Configuration management for the Zabbix CSV Host Importer."""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .constants import (
    DEFAULT_ENCODING,
    DEFAULT_MAX_LINE_LENGTH,
    DEFAULT_SEPARATOR,
    DEFAULT_SNMP_COMMUNITY,
)
from .models.schema import SchemaRegistry, default_registry


@dataclass
class CSVConfig:
    """
    CSV format configuration.

    columns overrides the built-in schema registry when set. Each entry is a
    mapping with name, default and required keys.
    """

    separator: str = DEFAULT_SEPARATOR
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH
    encoding: str = DEFAULT_ENCODING
    columns: list[dict[str, Any]] | None = None

    def __post_init__(self) -> None:
        if len(self.separator) != 1:
            raise ValueError(f"CSV separator must be a single character, got {self.separator!r}")
        if self.max_line_length < 1:
            raise ValueError(f"max_line_length must be positive, got {self.max_line_length}")

    def registry(self) -> SchemaRegistry:
        """Return the configured schema registry."""
        if self.columns:
            return SchemaRegistry.from_dicts(self.columns)
        return default_registry()


@dataclass
class PolicyConfig:
    """
    Policy configuration for import runs.

    Controls group auto-creation, concurrency and SNMP defaults.
    """

    # Reference resolution
    create_missing_groups: bool = True
    cache_lookups: bool = True  # Reuse name -> id lookups across rows of one run

    # Execution
    max_concurrent_rows: int = 1  # 1 = rows submitted one after another
    max_concurrent_lookups: int = 5  # Template lookups within one row

    # Interfaces
    snmp_community: str = DEFAULT_SNMP_COMMUNITY

    def __post_init__(self) -> None:
        if self.max_concurrent_rows < 1:
            raise ValueError("max_concurrent_rows must be at least 1")
        if self.max_concurrent_lookups < 1:
            raise ValueError("max_concurrent_lookups must be at least 1")


@dataclass
class ZabbixConfig:
    """Zabbix API connection configuration."""

    url: str
    api_token: str | None = None
    username: str | None = None
    password: str | None = None
    timeout: int = 30
    verify_ssl: bool = True
    max_connections: int = 20
    # Zabbix 6.4+ accepts the token as a Bearer header; older servers need
    # it in the request body
    use_bearer_auth: bool = False
    # Zabbix 7.0 renamed proxy_hostid to proxyid and proxy.get's host to name
    proxy_field: str = "proxy_hostid"
    proxy_name_field: str = "host"

    def __post_init__(self) -> None:
        if not self.api_token and not (self.username and self.password):
            raise ValueError("Zabbix configuration needs api_token or username and password")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"
    file: Path | None = None


@dataclass
class ImporterConfig:
    """
    Complete configuration for the Zabbix CSV Host Importer.

    This combines all configuration sections.
    """

    zabbix: ZabbixConfig | None = None
    csv: CSVConfig = field(default_factory=CSVConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, config_path: Path) -> "ImporterConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            ImporterConfig instance

        Raises:
            ValueError: If the file is not valid YAML or not a mapping
        """
        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid configuration file structure in {config_path}: "
                f"expected dictionary, got {type(data).__name__}"
            )

        zabbix_data = data.get("zabbix")
        zabbix = ZabbixConfig(**zabbix_data) if zabbix_data else None

        csv_config = CSVConfig(**(data.get("csv") or {}))
        policy = PolicyConfig(**(data.get("policy") or {}))

        logging_data = dict(data.get("logging") or {})
        if logging_data.get("file"):
            logging_data["file"] = Path(logging_data["file"])
        logging = LoggingConfig(**logging_data)

        return cls(zabbix=zabbix, csv=csv_config, policy=policy, logging=logging)

    def to_file(self, config_path: Path) -> None:
        """
        Save configuration to YAML file.

        Args:
            config_path: Path to save config file
        """
        data = {
            "zabbix": asdict(self.zabbix) if self.zabbix else None,
            "csv": {k: v for k, v in asdict(self.csv).items() if v is not None},
            "policy": asdict(self.policy),
            "logging": {
                k: str(v) if isinstance(v, Path) else v
                for k, v in asdict(self.logging).items()
                if v is not None
            },
        }

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_env(cls) -> "ImporterConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            ZABBIX_URL: Zabbix frontend URL
            ZABBIX_API_TOKEN: API token (preferred)
            ZABBIX_USERNAME / ZABBIX_PASSWORD: Credentials for user.login
            ZABBIX_VERIFY_SSL: Set to 'false' to skip certificate checks
            CSV_SEPARATOR: Field separator (default: ;)
            CSV_MAX_LINE_LENGTH: Maximum line length in bytes (default: 1024)
            LOG_LEVEL: Logging level (default: INFO)
            LOG_FORMAT: console or json (default: console)

        Returns:
            ImporterConfig instance

        Raises:
            ValueError: If ZABBIX_URL is set but no credentials are
        """
        import os

        zabbix_config = None
        url = os.getenv("ZABBIX_URL")
        if url:
            token = os.environ.get("ZABBIX_API_TOKEN") or None
            username = os.environ.get("ZABBIX_USERNAME") or None
            password = os.environ.get("ZABBIX_PASSWORD") or None

            if not token and not (username and password):
                raise ValueError(
                    "ZABBIX_URL is set but no credentials were found. "
                    "Set ZABBIX_API_TOKEN, or ZABBIX_USERNAME and ZABBIX_PASSWORD."
                )

            verify_ssl_str = os.environ.get("ZABBIX_VERIFY_SSL", "true").lower()
            verify_ssl = verify_ssl_str not in ("false", "0", "no", "off")

            zabbix_config = ZabbixConfig(
                url=url,
                api_token=token,
                username=username,
                password=password,
                verify_ssl=verify_ssl,
                timeout=int(os.environ.get("ZABBIX_TIMEOUT", "30")),
            )

        csv_config = CSVConfig(
            separator=os.environ.get("CSV_SEPARATOR", DEFAULT_SEPARATOR),
            max_line_length=int(
                os.environ.get("CSV_MAX_LINE_LENGTH", str(DEFAULT_MAX_LINE_LENGTH))
            ),
        )

        logging_config = LoggingConfig(
            level=os.environ.get("LOG_LEVEL", "INFO"),
            format=os.environ.get("LOG_FORMAT", "console"),
        )

        return cls(
            zabbix=zabbix_config,
            csv=csv_config,
            policy=PolicyConfig(),
            logging=logging_config,
        )


def load_config(config_file: Path | None = None) -> ImporterConfig:
    """
    Load configuration from file or environment variables.

    Args:
        config_file: Optional path to YAML config file

    Returns:
        ImporterConfig instance

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
    """
    if config_file:
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        return ImporterConfig.from_file(config_file)
    return ImporterConfig.from_env()
