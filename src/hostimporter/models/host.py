"""Host models with Pydantic v2 validation."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import (
    DEFAULT_SNMP_COMMUNITY,
    DEFAULT_SNMP_VERSION,
    MAX_PORT,
    MIN_PORT,
    SUPPORTED_SNMP_VERSIONS,
)


@dataclass(frozen=True)
class ValidatedHost(Mapping[str, str]):
    """
    One CSV data row after validation.

    Every registry column is present (possibly empty) and every required
    column is non-empty.

    Attributes:
        line_number: Physical line the row was read from (header is line 1)
        values: Column name -> trimmed value
    """

    line_number: int
    values: dict[str, str] = field(default_factory=dict)

    def __getitem__(self, key: str) -> str:
        return self.values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def name(self) -> str:
        """Technical host name."""
        return self.values.get("NAME", "")


class InterfaceType(IntEnum):
    """Zabbix host interface types handled by the importer."""

    AGENT = 1
    SNMP = 2
    JMX = 4


class HostTag(BaseModel):
    """Host tag; value is None for tags written without a colon."""

    model_config = ConfigDict(frozen=True)

    tag: str
    value: str | None = None

    def to_api(self) -> dict[str, str]:
        """Return the tag in API form, omitting an absent value."""
        data = {"tag": self.tag}
        if self.value is not None:
            data["value"] = self.value
        return data


class SNMPDetails(BaseModel):
    """SNMP interface details."""

    model_config = ConfigDict(frozen=True)

    version: int = DEFAULT_SNMP_VERSION
    bulk: int = 1
    community: str = DEFAULT_SNMP_COMMUNITY

    @field_validator("version")
    @classmethod
    def check_version(cls, v: int) -> int:
        if v not in SUPPORTED_SNMP_VERSIONS:
            supported = ", ".join(str(s) for s in sorted(SUPPORTED_SNMP_VERSIONS))
            raise ValueError(f"unsupported SNMP version {v} (supported: {supported})")
        return v

    def to_api(self) -> dict[str, Any]:
        data: dict[str, Any] = {"version": self.version, "bulk": self.bulk}
        # SNMPv3 authenticates with a security name, not a community
        if self.version != 3:
            data["community"] = self.community
        return data


class InterfaceSpec(BaseModel):
    """
    A network endpoint attached to a host.

    useip is True when the interface is reached by IP, False when by DNS.
    """

    model_config = ConfigDict(frozen=True)

    type: InterfaceType
    ip: str = ""
    dns: str = ""
    useip: bool
    port: Annotated[int, Field(ge=MIN_PORT, le=MAX_PORT)]
    main: bool = True
    details: SNMPDetails | None = None

    def to_api(self) -> dict[str, Any]:
        """Return the interface in Zabbix host.create form."""
        data: dict[str, Any] = {
            "type": int(self.type),
            "main": 1 if self.main else 0,
            "useip": 1 if self.useip else 0,
            "ip": self.ip,
            "dns": self.dns,
            "port": str(self.port),
        }
        if self.details is not None:
            data["details"] = self.details.to_api()
        return data


class HostDescriptor(BaseModel):
    """
    API-ready description of a host built from one CSV row.

    Names of groups, templates and the proxy are still unresolved; the
    orchestrator translates them into inventory ids.
    """

    model_config = ConfigDict(frozen=True)

    line_number: int
    host: str
    visible_name: str | None = None
    description: str | None = None
    group_names: list[str] = Field(default_factory=list)
    tags: list[HostTag] = Field(default_factory=list)
    proxy_name: str | None = None
    template_names: list[str] = Field(default_factory=list)
    interfaces: list[InterfaceSpec] = Field(default_factory=list, max_length=3)
