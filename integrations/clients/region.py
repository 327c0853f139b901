"""
Region restriction API client.

Asks the region service whether each option may be offered in a given
prefecture and city.
"""

import logging

import httpx

from integrations.clients.base import ResilientJSONClient
from integrations.config import ServiceEndpointConfig
from integrations.errors import InputValidationError, IntegrationError, UpstreamApplicationError
from integrations.models import RegionRestrictionInfo
from integrations.protocol import REGION_CHECK_ENDPOINT, RegionCheckRequest, RegionCheckResponse

logger = logging.getLogger(__name__)

SERVICE_NAME = "region"


class RegionClient:
    """
    Client for ``POST /api/region/check``.

    An option the service does not mention is reported as not allowed: an
    unknown restriction is never assumed to be permissive.
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
                raise ValueError("RegionClient needs either a config or a client")
            client = ResilientJSONClient(config, SERVICE_NAME, transport=transport, log=log)
        self.client = client
        self.logger = log or logger

    async def check_region_restrictions(
        self,
        prefecture: str,
        city: str,
        option_ids: list[str],
        deadline: float | None = None,
    ) -> dict[str, bool]:
        """
        Check which options are allowed in a prefecture/city.

        Args:
            prefecture: Prefecture name, e.g. 東京都
            city: City or ward name, e.g. 渋谷区
            option_ids: Option identifiers, at least one
            deadline: Seconds allowed for the whole call

        Returns:
            Mapping of every requested option id to its allowed flag

        Raises:
            InputValidationError: If any argument is empty
            UpstreamApplicationError: If the service reported failure or no data
            UpstreamError: If the call itself failed
        """
        if not prefecture:
            raise InputValidationError("prefecture cannot be empty", field="prefecture", service=SERVICE_NAME)
        if not city:
            raise InputValidationError("city cannot be empty", field="city", service=SERVICE_NAME)
        if not option_ids:
            raise InputValidationError("option IDs cannot be empty", field="option_ids", service=SERVICE_NAME)

        extra = {"service": SERVICE_NAME, "prefecture": prefecture, "city": city, "option_ids": option_ids}
        request = RegionCheckRequest(prefecture=prefecture, city=city, option_ids=list(option_ids))
        try:
            response: RegionCheckResponse = await self.client.post_json(
                REGION_CHECK_ENDPOINT,
                request,
                response_model=RegionCheckResponse,
                deadline=deadline,
            )
        except IntegrationError as e:
            self.logger.error("Failed to check region restrictions: %s", e, extra=extra)
            raise

        if not response.success:
            api_error = response.error or "unknown error"
            self.logger.error("Region API returned error: %s", api_error, extra=extra)
            raise UpstreamApplicationError(
                f"region API error: {api_error}",
                endpoint=REGION_CHECK_ENDPOINT,
                upstream_error=api_error,
                service=SERVICE_NAME,
            )

        if response.data is None:
            self.logger.error("Region API returned no data", extra=extra)
            raise UpstreamApplicationError(
                "no region restriction data received", endpoint=REGION_CHECK_ENDPOINT, service=SERVICE_NAME
            )

        result: dict[str, bool] = {}
        for option_id in option_ids:
            if option_id not in response.data:
                self.logger.warning(
                    "Option %s not found in region restriction response; treating as not allowed",
                    option_id,
                    extra={"service": SERVICE_NAME, "option_id": option_id, "prefecture": prefecture, "city": city},
                )
                result[option_id] = False
            else:
                result[option_id] = response.data[option_id]

        self.logger.debug("Region restriction check completed: %s", result, extra=extra)
        return result

    async def check_single_option_region_restriction(
        self,
        prefecture: str,
        city: str,
        option_id: str,
        deadline: float | None = None,
    ) -> bool:
        """Allowed flag for one option."""
        if not option_id:
            raise InputValidationError("option ID cannot be empty", field="option_id", service=SERVICE_NAME)

        restrictions = await self.check_region_restrictions(prefecture, city, [option_id], deadline=deadline)
        return restrictions[option_id]

    async def get_region_restriction_list(
        self,
        prefecture: str,
        city: str,
        option_ids: list[str],
        deadline: float | None = None,
    ) -> list[RegionRestrictionInfo]:
        """Region decisions as a list sorted by option id."""
        restrictions = await self.check_region_restrictions(prefecture, city, option_ids, deadline=deadline)
        return [
            RegionRestrictionInfo(option_id=oid, is_allowed=allowed, prefecture=prefecture, city=city)
            for oid, allowed in sorted(restrictions.items())
        ]

    async def get_allowed_options(
        self,
        prefecture: str,
        city: str,
        option_ids: list[str],
        deadline: float | None = None,
    ) -> list[str]:
        """Sorted ids of the options allowed in the region."""
        restrictions = await self.check_region_restrictions(prefecture, city, option_ids, deadline=deadline)
        return sorted(oid for oid, allowed in restrictions.items() if allowed)

    async def get_restricted_options(
        self,
        prefecture: str,
        city: str,
        option_ids: list[str],
        deadline: float | None = None,
    ) -> list[str]:
        """Sorted ids of the options restricted in the region."""
        restrictions = await self.check_region_restrictions(prefecture, city, option_ids, deadline=deadline)
        return sorted(oid for oid, allowed in restrictions.items() if not allowed)

    async def aclose(self) -> None:
        await self.client.aclose()
