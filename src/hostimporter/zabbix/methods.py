"""Zabbix JSON-RPC method names used by the importer.

Usage:
    from hostimporter.zabbix.methods import ZabbixMethods

    await client.call(ZabbixMethods.HOSTGROUP_GET, {...})
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ZabbixMethods:
    """Zabbix API method constants."""

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------
    API_VERSION: str = "apiinfo.version"
    USER_LOGIN: str = "user.login"
    USER_LOGOUT: str = "user.logout"

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------
    HOSTGROUP_GET: str = "hostgroup.get"
    PROXY_GET: str = "proxy.get"
    TEMPLATE_GET: str = "template.get"

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------
    HOSTGROUP_CREATE: str = "hostgroup.create"
    HOST_CREATE: str = "host.create"


# Methods that must be called without an auth token
UNAUTHENTICATED_METHODS: frozenset[str] = frozenset(
    {ZabbixMethods.API_VERSION, ZabbixMethods.USER_LOGIN}
)
