"""Abstract interface to the host-inventory service.

The importer core only needs five operations. Implementations translate them
into their own transport; ids are opaque strings.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ..models.host import HostTag, InterfaceSpec


@dataclass
class HostCreateRequest:
    """
    Host creation request with every reference already resolved to an id.

    Attributes:
        host: Technical host name
        visible_name: Optional display name
        description: Optional description
        group_ids: Host group ids, in CSV order
        tags: Host tags
        proxy_id: Monitoring proxy id, None to monitor from the server
        template_ids: Linked template ids, in CSV order
        interfaces: Agent/SNMP/JMX interfaces
    """

    host: str
    visible_name: str | None = None
    description: str | None = None
    group_ids: list[str] = field(default_factory=list)
    tags: list[HostTag] = field(default_factory=list)
    proxy_id: str | None = None
    template_ids: list[str] = field(default_factory=list)
    interfaces: list[InterfaceSpec] = field(default_factory=list)


class InventoryService(ABC):
    """Operations the importer needs from the host inventory."""

    @abstractmethod
    async def find_group_by_name(self, name: str) -> str | None:
        """Return the id of the host group with exactly this name, or None."""

    @abstractmethod
    async def create_group(self, name: str) -> str:
        """
        Create a host group and return its id.

        Raises:
            ResourceAlreadyExistsError: If a group with this name exists
        """

    @abstractmethod
    async def find_proxy_by_name(self, name: str) -> str | None:
        """Return the id of the proxy with exactly this name, or None."""

    @abstractmethod
    async def find_template_by_name(self, name: str) -> str | None:
        """Return the id of the template with exactly this name, or None."""

    @abstractmethod
    async def create_host(self, request: HostCreateRequest) -> str:
        """
        Create a host and return its id.

        Raises:
            InventoryAPIError: If the service rejects the host
        """

    async def close(self) -> None:  # noqa: B027
        """Release transport resources."""

    async def __aenter__(self) -> "InventoryService":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
