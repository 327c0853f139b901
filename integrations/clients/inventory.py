"""
Inventory API client.

Asks the inventory service how many units of each option remain.
"""

import logging

import httpx

from integrations.clients.base import ResilientJSONClient
from integrations.config import ServiceEndpointConfig
from integrations.errors import InputValidationError, IntegrationError, UpstreamApplicationError
from integrations.models import InventoryInfo
from integrations.protocol import INVENTORY_CHECK_ENDPOINT, InventoryCheckRequest, InventoryCheckResponse

logger = logging.getLogger(__name__)

SERVICE_NAME = "inventory"


class InventoryClient:
    """
    Client for ``POST /api/inventory/check``.

    Usage:
        client = InventoryClient(ServiceEndpointConfig(base_url="http://inventory:8081"))
        stock = await client.check_inventory(["AA", "BB"])
        # {"AA": 15, "BB": 0}
    """

    def __init__(
        self,
        config: ServiceEndpointConfig | None = None,
        client: ResilientJSONClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        log: logging.Logger | None = None,
    ):
        if client is None:
            if config is None:
                raise ValueError("InventoryClient needs either a config or a client")
            client = ResilientJSONClient(config, SERVICE_NAME, transport=transport, log=log)
        self.client = client
        self.logger = log or logger

    async def check_inventory(self, option_ids: list[str], deadline: float | None = None) -> dict[str, int]:
        """
        Fetch stock for every requested option in one request.

        Options missing from the response are reported with stock 0, so an
        unknown option is never mistaken for one that is in stock.

        Args:
            option_ids: Option identifiers, at least one
            deadline: Seconds allowed for the whole call

        Returns:
            Mapping of every requested option id to its stock count

        Raises:
            InputValidationError: If option_ids is empty
            UpstreamApplicationError: If the service reported failure or no data
            UpstreamError: If the call itself failed
        """
        if not option_ids:
            raise InputValidationError("option IDs cannot be empty", field="option_ids", service=SERVICE_NAME)

        extra = {"service": SERVICE_NAME, "option_ids": option_ids}
        request = InventoryCheckRequest(option_ids=list(option_ids))
        try:
            response: InventoryCheckResponse = await self.client.post_json(
                INVENTORY_CHECK_ENDPOINT,
                request,
                response_model=InventoryCheckResponse,
                deadline=deadline,
            )
        except IntegrationError as e:
            self.logger.error("Failed to check inventory: %s", e, extra=extra)
            raise

        if not response.success:
            api_error = response.error or "unknown error"
            self.logger.error("Inventory API returned error: %s", api_error, extra=extra)
            raise UpstreamApplicationError(
                f"inventory API error: {api_error}",
                endpoint=INVENTORY_CHECK_ENDPOINT,
                upstream_error=api_error,
                service=SERVICE_NAME,
            )

        if response.data is None:
            self.logger.error("Inventory API returned no data", extra=extra)
            raise UpstreamApplicationError(
                "no inventory data received", endpoint=INVENTORY_CHECK_ENDPOINT, service=SERVICE_NAME
            )

        result: dict[str, int] = {}
        for option_id in option_ids:
            if option_id not in response.data:
                self.logger.warning(
                    "Option %s not found in inventory response; assuming no stock",
                    option_id,
                    extra={"service": SERVICE_NAME, "option_id": option_id},
                )
                result[option_id] = 0
            else:
                result[option_id] = response.data[option_id]

        self.logger.debug("Inventory check completed: %s", result, extra=extra)
        return result

    async def check_single_option_inventory(self, option_id: str, deadline: float | None = None) -> int:
        """Stock for one option."""
        if not option_id:
            raise InputValidationError("option ID cannot be empty", field="option_id", service=SERVICE_NAME)

        inventory = await self.check_inventory([option_id], deadline=deadline)
        return inventory[option_id]

    async def get_inventory_list(self, option_ids: list[str], deadline: float | None = None) -> list[InventoryInfo]:
        """Stock per option as a list sorted by option id."""
        inventory = await self.check_inventory(option_ids, deadline=deadline)
        return [InventoryInfo(option_id=oid, stock=stock) for oid, stock in sorted(inventory.items())]

    async def aclose(self) -> None:
        await self.client.aclose()
