"""Name to id resolution for host groups, proxies and templates."""

import asyncio
from dataclasses import dataclass

import structlog

from ..config import PolicyConfig
from ..inventory.base import InventoryService
from ..observability.metrics import get_global_collector
from ..utils.exceptions import InventoryAPIError, ResourceAlreadyExistsError
from ..utils.locking import KeyedLock

logger = structlog.get_logger(__name__)

PROXY_NOT_FOUND = 'Proxy "{proxy}" on host "{host}" not found.'
TEMPLATE_NOT_FOUND = 'Template "{template}" on host "{host}" not found.'


@dataclass
class CacheStats:
    """Statistics for resolver cache performance."""

    cache_hits: int = 0
    cache_misses: int = 0

    def hit_rate(self) -> float:
        """
        Calculate cache hit rate.

        Returns:
            float: Hit rate as a decimal (0.0 to 1.0).
        """
        total = self.cache_hits + self.cache_misses
        if total == 0:
            return 0.0
        return self.cache_hits / total


class ReferenceResolver:
    """
    Translate host group, proxy and template names into inventory ids.

    One resolver lives for one import run. Lookups are cached per run so a
    group referenced by a thousand rows costs one API call. Missing groups
    are created; creation is serialized per group name so concurrent rows
    never create the same group twice.
    """

    def __init__(self, service: InventoryService, policy: PolicyConfig | None = None) -> None:
        """
        Initialize resolver.

        Args:
            service: Inventory service used for lookups and group creation
            policy: Import policy (group creation, caching, lookup concurrency)
        """
        self.service = service
        self.policy = policy or PolicyConfig()

        self._groups: dict[str, str] = {}
        self._proxies: dict[str, str | None] = {}
        self._templates: dict[str, str | None] = {}

        self._group_lock = KeyedLock()
        self._lookup_semaphore = asyncio.Semaphore(self.policy.max_concurrent_lookups)

        self.stats = CacheStats()
        self.collector = get_global_collector()

    def _cached(self, cache: dict, name: str) -> bool:
        if self.policy.cache_lookups and name in cache:
            self.stats.cache_hits += 1
            return True
        self.stats.cache_misses += 1
        return False

    async def resolve_group(self, name: str) -> str:
        """
        Return the id of a host group, creating it if needed.

        Args:
            name: Exact host group name

        Returns:
            Group id

        Raises:
            InventoryAPIError: If the group is missing and creation is
                disabled, or the service fails
        """
        async with self._group_lock(name):
            if self._cached(self._groups, name):
                self.collector.count_reference("group", "cached")
                return self._groups[name]

            group_id = await self.service.find_group_by_name(name)
            if group_id is not None:
                self.collector.count_reference("group", "found")
            else:
                if not self.policy.create_missing_groups:
                    self.collector.count_reference("group", "missing")
                    raise InventoryAPIError(f'Host group "{name}" not found.')
                group_id = await self._create_group(name)

            self._groups[name] = group_id
            return group_id

    async def _create_group(self, name: str) -> str:
        try:
            group_id = await self.service.create_group(name)
        except ResourceAlreadyExistsError:
            # Created by someone else since our lookup
            logger.debug("Host group appeared concurrently, resolving again", group=name)
            group_id = await self.service.find_group_by_name(name)
            if group_id is None:
                raise
            self.collector.count_reference("group", "found")
            return group_id

        logger.info("Created host group", group=name, group_id=group_id)
        self.collector.count_reference("group", "created")
        return group_id

    async def resolve_groups(self, names: list[str]) -> list[str]:
        """Resolve group names in order; the same name yields the same id."""
        return [await self.resolve_group(name) for name in names]

    async def resolve_proxy(self, name: str, host: str) -> tuple[str | None, list[str]]:
        """
        Look up a proxy.

        Returns:
            (proxy id or None, warnings)
        """
        if self._cached(self._proxies, name):
            proxy_id = self._proxies[name]
            self.collector.count_reference("proxy", "cached")
        else:
            proxy_id = await self.service.find_proxy_by_name(name)
            self._proxies[name] = proxy_id
            self.collector.count_reference("proxy", "found" if proxy_id else "missing")

        if proxy_id is None:
            warning = PROXY_NOT_FOUND.format(proxy=name, host=host)
            logger.warning(warning)
            return None, [warning]
        return proxy_id, []

    async def _lookup_template(self, name: str) -> str | None:
        if self._cached(self._templates, name):
            self.collector.count_reference("template", "cached")
            return self._templates[name]

        async with self._lookup_semaphore:
            template_id = await self.service.find_template_by_name(name)
        self._templates[name] = template_id
        self.collector.count_reference("template", "found" if template_id else "missing")
        return template_id

    async def resolve_templates(self, names: list[str], host: str) -> tuple[list[str], list[str]]:
        """
        Look up templates concurrently.

        Missing templates are left out and reported as warnings. Found ids
        keep the order of names.

        Returns:
            (template ids, warnings)
        """
        found = await asyncio.gather(*(self._lookup_template(name) for name in names))

        template_ids: list[str] = []
        warnings: list[str] = []
        for name, template_id in zip(names, found, strict=True):
            if template_id is None:
                warning = TEMPLATE_NOT_FOUND.format(template=name, host=host)
                logger.warning(warning)
                warnings.append(warning)
            else:
                template_ids.append(template_id)
        return template_ids, warnings
