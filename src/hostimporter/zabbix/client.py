"""Zabbix JSON-RPC API Client.

Implements the InventoryService operations against a Zabbix server.

Architecture Overview:
---------------------
- Async HTTP communication via httpx
- Automatic retry with exponential backoff for network failures and timeouts
- JSON-RPC error objects mapped onto the importer exception hierarchy
- Response envelopes validated with Pydantic models

Authentication:
--------------
Two modes, selected by ZabbixConfig:
1. API token: used as-is, either in the request body ("auth") or, with
   use_bearer_auth, as an Authorization: Bearer header (Zabbix 6.4+)
2. Username/password: user.login returns a session id that is used like a
   token; user.logout is called on close

Request Format:
--------------
    POST {url}/api_jsonrpc.php
    {"jsonrpc": "2.0", "method": "hostgroup.get", "params": {...}, "auth": "...", "id": 7}

Errors are returned with HTTP 200 and an "error" member:
    {"jsonrpc": "2.0", "error": {"code": -32602, "message": "Invalid params.",
     "data": "Host group \\"Linux\\" already exists."}, "id": 7}
"""

import asyncio
import itertools
from typing import Any

import httpx
import structlog
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import ZabbixConfig
from ..constants import (
    ALREADY_EXISTS_MARKER,
    JSONRPC_CONTENT_TYPE,
    JSONRPC_PATH,
    JSONRPC_VERSION,
    NOT_AUTHORIZED_MARKERS,
)
from ..inventory.base import HostCreateRequest, InventoryService
from ..observability.metrics import get_global_collector
from ..utils.exceptions import (
    InventoryAPIError,
    InventoryAuthenticationError,
    InventoryConnectionError,
    ResourceAlreadyExistsError,
)
from .methods import UNAUTHENTICATED_METHODS, ZabbixMethods
from .response_models import CreateResult, JSONRPCError, JSONRPCResponse, LookupResult

logger = structlog.get_logger(__name__)

_TRANSIENT_ERRORS = (httpx.NetworkError, httpx.TimeoutException)


def normalize_api_url(url: str) -> str:
    """Append api_jsonrpc.php to a frontend URL unless already present."""
    url = url.strip()
    if url.endswith(JSONRPC_PATH):
        return url
    return f"{url.rstrip('/')}/{JSONRPC_PATH}"


class ZabbixClient(InventoryService):
    """
    Zabbix JSON-RPC API Client.

    Features:
    - API token or user.login authentication
    - Automatic retries with exponential backoff
    - One re-login when a session expires mid-import
    - Connection pooling via httpx.AsyncClient
    """

    def __init__(self, config: ZabbixConfig) -> None:
        """
        Initialize client.

        Args:
            config: Zabbix connection configuration
        """
        self.config = config
        self.url = normalize_api_url(config.url)

        # Token sent with each request; from config or from user.login
        self.auth_token: str | None = config.api_token
        self._logged_in = False

        self._client: httpx.AsyncClient | None = None  # Lazy-loaded
        self._request_ids = itertools.count(1)

        # Serializes user.login so concurrent rows that hit an expired
        # session trigger a single re-login
        self._auth_lock = asyncio.Lock()

        self.collector = get_global_collector()

    async def __aenter__(self) -> "ZabbixClient":
        """Context manager entry."""
        try:
            await self.authenticate()
        except BaseException:
            await self.close()
            raise
        return self

    async def close(self) -> None:
        """Log out a user.login session and close the HTTP client."""
        if self._logged_in:
            try:
                await self.call(ZabbixMethods.USER_LOGOUT, [])
            except InventoryAPIError as e:
                logger.warning("Zabbix logout failed", error=str(e))
            self._logged_in = False
            self.auth_token = self.config.api_token
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """
        Get HTTP client with lazy initialization.

        Connection Pool Configuration:
        - max_connections caps concurrent requests to the Zabbix frontend
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=self.config.verify_ssl,
                timeout=self.config.timeout,
                headers={"Content-Type": JSONRPC_CONTENT_TYPE},
                limits=httpx.Limits(max_connections=self.config.max_connections),
            )
        return self._client

    async def authenticate(self, force: bool = False) -> None:
        """
        Make sure a usable auth token is available.

        With an API token nothing is sent. With username/password, user.login
        is called once; concurrent callers wait on the lock and reuse the
        session (double-check pattern).

        Args:
            force: Log in again even if a session exists

        Raises:
            InventoryAuthenticationError: If the credentials are rejected
        """
        if self.config.api_token:
            self.auth_token = self.config.api_token
            return

        async with self._auth_lock:
            if self._logged_in and not force:
                logger.debug("Already authenticated, skipping")
                return

            logger.info("Logging in to Zabbix", url=self.url, username=self.config.username)
            try:
                session = await self.call(
                    ZabbixMethods.USER_LOGIN,
                    {"username": self.config.username, "password": self.config.password},
                )
            except InventoryAuthenticationError:
                raise
            except InventoryAPIError as e:
                raise InventoryAuthenticationError(f"Zabbix login failed: {e}") from e

            if not isinstance(session, str) or not session:
                raise InventoryAuthenticationError("Zabbix login returned no session id")

            self.auth_token = session
            self._logged_in = True
            logger.info("Authenticated with Zabbix")

    @retry(
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _post(self, payload: dict[str, Any], headers: dict[str, str]) -> httpx.Response:
        """POST one JSON-RPC payload; network errors and timeouts are retried."""
        return await self.client.post(self.url, json=payload, headers=headers)

    async def call(self, method: str, params: Any, _auth_retry: bool = False) -> Any:
        """
        Call a Zabbix API method.

        Args:
            method: JSON-RPC method, e.g. "hostgroup.get"
            params: Method parameters (dict or list)
            _auth_retry: Internal flag to prevent infinite re-login loops. DO NOT USE EXTERNALLY.

        Returns:
            The "result" member of the response

        Raises:
            ResourceAlreadyExistsError: For duplicate-name errors
            InventoryAuthenticationError: For rejected tokens or sessions
            InventoryConnectionError: When the server can't be reached after retries
            InventoryAPIError: For any other error
        """
        payload: dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "method": method,
            "params": params,
            "id": next(self._request_ids),
        }
        headers: dict[str, str] = {}
        if method not in UNAUTHENTICATED_METHODS and self.auth_token:
            if self.config.use_bearer_auth:
                headers["Authorization"] = f"Bearer {self.auth_token}"
            else:
                payload["auth"] = self.auth_token

        logger.debug("Zabbix API request", method=method, request_id=payload["id"])
        start_time = asyncio.get_running_loop().time()

        try:
            response = await self._post(payload, headers)
        except _TRANSIENT_ERRORS as e:
            self.collector.count_api_call(method, "unreachable")
            raise InventoryConnectionError(f"Zabbix API unreachable calling {method}: {e}") from e
        except httpx.HTTPError as e:
            self.collector.count_api_call(method, "error")
            raise InventoryAPIError(f"HTTP request failed calling {method}: {e}") from e

        duration = (asyncio.get_running_loop().time() - start_time) * 1000
        self.collector.record_api_latency(method, duration)

        if response.is_error:
            self.collector.count_api_call(method, "error")
            raise InventoryAPIError(
                f"API Error {response.status_code} calling {method}: {response.text[:200]}",
                code=response.status_code,
            )

        try:
            envelope = JSONRPCResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            self.collector.count_api_call(method, "error")
            raise InventoryAPIError(
                f"Invalid JSON-RPC response calling {method}: {response.text[:200]}"
            ) from e

        if envelope.error is None:
            self.collector.count_api_call(method, "ok")
            return envelope.result

        self.collector.count_api_call(method, "error")
        error = envelope.error

        if self._is_auth_error(error):
            # A user.login session may expire during long imports; log in
            # once more. Static API tokens can't be refreshed.
            if self.config.api_token or _auth_retry or method in UNAUTHENTICATED_METHODS:
                raise InventoryAuthenticationError(error.get_full_message())
            logger.info("Zabbix session expired, logging in again")
            await self.authenticate(force=True)
            return await self.call(method, params, _auth_retry=True)

        message = error.get_full_message()
        if ALREADY_EXISTS_MARKER in message:
            raise ResourceAlreadyExistsError(message, code=error.code, data=error.data)
        raise InventoryAPIError(message, code=error.code, data=error.data)

    @staticmethod
    def _is_auth_error(error: JSONRPCError) -> bool:
        text = error.get_full_message()
        return any(marker in text for marker in NOT_AUTHORIZED_MARKERS)

    # -------------------------------------------------------------------------
    # InventoryService
    # -------------------------------------------------------------------------

    async def _find_id(self, method: str, id_field: str, name_field: str, name: str) -> str | None:
        result = await self.call(
            method,
            {"output": [id_field], "filter": {name_field: [name]}, "limit": 1},
        )
        try:
            return LookupResult.model_validate(result).first_id(id_field)
        except (ValueError, ValidationError) as e:
            raise InventoryAPIError(f"Unexpected {method} result: {result!r}") from e

    async def find_group_by_name(self, name: str) -> str | None:
        """Look up a host group by exact name."""
        return await self._find_id(ZabbixMethods.HOSTGROUP_GET, "groupid", "name", name)

    async def create_group(self, name: str) -> str:
        """Create a host group and return its id."""
        logger.info("Creating host group", group=name)
        result = await self.call(ZabbixMethods.HOSTGROUP_CREATE, {"name": name})
        return self._created_id(ZabbixMethods.HOSTGROUP_CREATE, result, "groupids")

    async def find_proxy_by_name(self, name: str) -> str | None:
        """Look up a proxy by exact name."""
        return await self._find_id(
            ZabbixMethods.PROXY_GET, "proxyid", self.config.proxy_name_field, name
        )

    async def find_template_by_name(self, name: str) -> str | None:
        """Look up a template by exact visible name."""
        return await self._find_id(ZabbixMethods.TEMPLATE_GET, "templateid", "name", name)

    async def create_host(self, request: HostCreateRequest) -> str:
        """Create a host and return its id."""
        result = await self.call(ZabbixMethods.HOST_CREATE, self.build_host_params(request))
        return self._created_id(ZabbixMethods.HOST_CREATE, result, "hostids")

    @staticmethod
    def _created_id(method: str, result: Any, key: str) -> str:
        try:
            return CreateResult.model_validate(result).first_id(key)
        except (ValueError, ValidationError) as e:
            raise InventoryAPIError(f"Unexpected {method} result: {result!r}") from e

    def build_host_params(self, request: HostCreateRequest) -> dict[str, Any]:
        """
        Build host.create parameters.

        Optional members are left out entirely when empty so Zabbix applies
        its own defaults.
        """
        params: dict[str, Any] = {"host": request.host}
        if request.visible_name:
            params["name"] = request.visible_name
        if request.description:
            params["description"] = request.description
        if request.group_ids:
            params["groups"] = [{"groupid": group_id} for group_id in request.group_ids]
        if request.tags:
            params["tags"] = [tag.to_api() for tag in request.tags]
        if request.proxy_id:
            params[self.config.proxy_field] = request.proxy_id
        if request.template_ids:
            params["templates"] = [{"templateid": t} for t in request.template_ids]
        if request.interfaces:
            params["interfaces"] = [interface.to_api() for interface in request.interfaces]
        return params
