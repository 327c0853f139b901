"""
Integration Manager - One entry point for all external APIs.

Owns the inventory, region and address clients, combines inventory and
region facts into a per-option availability decision, and runs a health
sweep across every configured service.

The availability check degrades instead of failing: when one upstream is
down its fields are simply left empty in every returned record.
"""

import asyncio
import logging
from collections.abc import Awaitable

import httpx

from integrations.clients.address import PROBE_POSTAL_CODE, AddressClient
from integrations.clients.inventory import InventoryClient
from integrations.clients.region import RegionClient
from integrations.config import IntegrationSettings, ManagerConfig, get_integration_settings
from integrations.errors import IntegrationError
from integrations.models import (
    HealthCheckResult,
    HealthStatus,
    OptionAvailability,
    OptionAvailabilityResult,
    ServiceHealth,
)

logger = logging.getLogger(__name__)

# Sentinel payloads for health probes
PROBE_OPTION_ID = "TEST"
PROBE_PREFECTURE = "東京都"
PROBE_CITY = "渋谷区"


class IntegrationManager:
    """
    Unified interface for the external API clients.

    Usage:
        manager = IntegrationManager(get_integration_settings().to_manager_config())
        async with manager:
            result = await manager.check_option_availability("東京都", "渋谷区", ["AA", "BB"])
            result.available_options()

    Clients are assigned once at construction; afterwards the manager holds
    no mutable state and may be shared by concurrent callers.
    """

    def __init__(
        self,
        config: ManagerConfig | None = None,
        inventory_client: InventoryClient | None = None,
        region_client: RegionClient | None = None,
        address_client: AddressClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        log: logging.Logger | None = None,
    ):
        """
        Build clients for every configured service.

        Args:
            config: Endpoint configs; services left as None are not built
            inventory_client: Pre-built client, overrides config.inventory_api;
                injected clients are not closed by aclose()
            region_client: Pre-built client, overrides config.region_api
            address_client: Pre-built client, overrides config.address_api
            transport: httpx transport shared by the clients built here
            log: Logger for the manager and the clients built here
        """
        config = config or ManagerConfig()
        self.logger = log or logger
        # Clients built here are closed by aclose(); injected ones stay with the caller
        self._owned: list[InventoryClient | RegionClient | AddressClient] = []

        if inventory_client is None and config.inventory_api is not None:
            inventory_client = InventoryClient(config.inventory_api, transport=transport, log=log)
            self._owned.append(inventory_client)
        if region_client is None and config.region_api is not None:
            region_client = RegionClient(config.region_api, transport=transport, log=log)
            self._owned.append(region_client)
        if address_client is None and config.address_api is not None:
            address_client = AddressClient(config.address_api, transport=transport, log=log)
            self._owned.append(address_client)

        self._inventory = inventory_client
        self._region = region_client
        self._address = address_client

        self.logger.info(
            "Integration manager initialized: inventory=%s region=%s address=%s",
            self._inventory is not None,
            self._region is not None,
            self._address is not None,
        )

    @classmethod
    def from_settings(cls, settings: IntegrationSettings | None = None, **kwargs) -> "IntegrationManager":
        """Build a manager from environment settings."""
        settings = settings or get_integration_settings()
        return cls(settings.to_manager_config(), **kwargs)

    @property
    def inventory_client(self) -> InventoryClient | None:
        return self._inventory

    @property
    def region_client(self) -> RegionClient | None:
        return self._region

    @property
    def address_client(self) -> AddressClient | None:
        return self._address

    # =========================================================================
    # Availability
    # =========================================================================

    async def check_option_availability(
        self,
        prefecture: str,
        city: str,
        option_ids: list[str],
        *,
        deadline: float | None = None,
    ) -> OptionAvailabilityResult:
        """
        Combine stock and region facts for each option.

        Inventory and region are queried concurrently. A failed or skipped
        upstream leaves its fields empty; it never fails the whole call.

        Args:
            prefecture: Prefecture of the delivery address (empty skips region)
            city: City of the delivery address (empty skips region)
            option_ids: Options to evaluate
            deadline: Seconds allowed for each upstream call

        Returns:
            OptionAvailabilityResult with exactly one record per requested id
        """
        result = OptionAvailabilityResult()
        if not option_ids:
            return result

        inventory_map, region_map = await asyncio.gather(
            self._fetch_inventory(option_ids, deadline),
            self._fetch_region(prefecture, city, option_ids, deadline),
        )

        for option_id in option_ids:
            stock = inventory_map.get(option_id) if inventory_map is not None else None
            is_region_allowed = region_map.get(option_id) if region_map is not None else None
            result.option_results[option_id] = OptionAvailability.combine(option_id, stock, is_region_allowed)

        return result

    async def _fetch_inventory(self, option_ids: list[str], deadline: float | None) -> dict[str, int] | None:
        if self._inventory is None:
            return None
        try:
            return await self._inventory.check_inventory(option_ids, deadline=deadline)
        except IntegrationError as e:
            self.logger.warning(
                "Failed to check inventory, continuing without inventory data: %s",
                e,
                extra={"service": "inventory", "option_ids": option_ids},
            )
            return None

    async def _fetch_region(
        self,
        prefecture: str,
        city: str,
        option_ids: list[str],
        deadline: float | None,
    ) -> dict[str, bool] | None:
        if self._region is None or not prefecture or not city:
            return None
        try:
            return await self._region.check_region_restrictions(prefecture, city, option_ids, deadline=deadline)
        except IntegrationError as e:
            self.logger.warning(
                "Failed to check region restrictions, continuing without region data: %s",
                e,
                extra={"service": "region", "prefecture": prefecture, "city": city, "option_ids": option_ids},
            )
            return None

    # =========================================================================
    # Health
    # =========================================================================

    async def health_check(self, *, deadline: float | None = None) -> HealthCheckResult:
        """
        Probe every configured service through its real call path.

        Returns:
            HealthCheckResult: DEGRADED if any configured service is unhealthy
        """
        probes: dict[str, Awaitable] = {}
        if self._inventory is not None:
            probes["inventory"] = self._inventory.check_inventory([PROBE_OPTION_ID], deadline=deadline)
        if self._region is not None:
            probes["region"] = self._region.check_region_restrictions(
                PROBE_PREFECTURE, PROBE_CITY, [PROBE_OPTION_ID], deadline=deadline
            )
        if self._address is not None:
            probes["address"] = self._address.search_by_postal_code(PROBE_POSTAL_CODE, deadline=deadline)

        services = await asyncio.gather(*(self._run_probe(name, probe) for name, probe in probes.items()))
        result = HealthCheckResult.from_services(list(services))

        if not result.is_healthy():
            self.logger.warning("External services degraded: %s", ", ".join(result.unhealthy_services()))
        return result

    async def _run_probe(self, name: str, probe: Awaitable) -> ServiceHealth:
        loop = asyncio.get_running_loop()
        start = loop.time()
        try:
            await probe
        except IntegrationError as e:
            return ServiceHealth(
                name=name,
                status=HealthStatus.UNHEALTHY,
                error=str(e),
                latency_ms=round((loop.time() - start) * 1000, 2),
            )
        return ServiceHealth(
            name=name,
            status=HealthStatus.HEALTHY,
            latency_ms=round((loop.time() - start) * 1000, 2),
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def aclose(self) -> None:
        """Close the clients this manager built. Injected clients are left open."""
        for client in self._owned:
            await client.aclose()

    async def __aenter__(self) -> "IntegrationManager":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
