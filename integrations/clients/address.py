"""
Address search API client.

Resolves a Japanese postal code (``NNN-NNNN`` or ``NNNNNNN``) to a
prefecture, city and town.
"""

import logging
import re

import httpx

from integrations.clients.base import ResilientJSONClient
from integrations.config import ServiceEndpointConfig
from integrations.errors import InputValidationError, IntegrationError, UpstreamApplicationError
from integrations.models import AddressInfo
from integrations.protocol import (
    ADDRESS_SEARCH_ENDPOINT,
    AddressData,
    AddressSearchRequest,
    AddressSearchResponse,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "address"

# 3 digits + 4 digits, hyphen optional
POSTAL_CODE_PATTERN = re.compile(r"\d{3}-?\d{4}", re.ASCII)
DIGITS_PATTERN = re.compile(r"\d+", re.ASCII)

# Tokyo Station, used to probe the service
PROBE_POSTAL_CODE = "1000005"


def normalize_postal_code(postal_code: str) -> str:
    """Drop the hyphen of ``NNN-NNNN``; any other input is returned unchanged."""
    if len(postal_code) == 8 and postal_code[3] == "-":
        return postal_code[:3] + postal_code[4:]
    return postal_code


def build_full_address(data: AddressData) -> str:
    """prefecture + city (+ town)."""
    return data.prefecture + data.city + (data.town or "")


def validate_postal_code(postal_code: str) -> None:
    """Raise InputValidationError unless postal_code is NNN-NNNN or NNNNNNN."""
    if not postal_code:
        raise InputValidationError("postal code cannot be empty", field="postal_code", service=SERVICE_NAME)
    if not POSTAL_CODE_PATTERN.fullmatch(postal_code):
        raise InputValidationError(
            f"invalid postal code format: {postal_code} (expected format: XXX-XXXX or XXXXXXX)",
            field="postal_code",
            value=postal_code,
            service=SERVICE_NAME,
        )


def validate_postal_code_parts(postal_code_1: str, postal_code_2: str) -> None:
    """Raise InputValidationError unless the parts are 3 and 4 digits."""
    if not postal_code_1 or not postal_code_2:
        raise InputValidationError("postal code parts cannot be empty", field="postal_code", service=SERVICE_NAME)
    if len(postal_code_1) != 3:
        raise InputValidationError(
            f"postal code first part must be 3 digits: {postal_code_1}", field="postal_code_1", service=SERVICE_NAME
        )
    if len(postal_code_2) != 4:
        raise InputValidationError(
            f"postal code second part must be 4 digits: {postal_code_2}", field="postal_code_2", service=SERVICE_NAME
        )
    if not DIGITS_PATTERN.fullmatch(postal_code_1):
        raise InputValidationError(
            f"postal code first part must contain only digits: {postal_code_1}",
            field="postal_code_1",
            service=SERVICE_NAME,
        )
    if not DIGITS_PATTERN.fullmatch(postal_code_2):
        raise InputValidationError(
            f"postal code second part must contain only digits: {postal_code_2}",
            field="postal_code_2",
            service=SERVICE_NAME,
        )


class AddressClient:
    """
    Client for ``POST /api/address/search``.

    Malformed postal codes are rejected locally and never sent.
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
                raise ValueError("AddressClient needs either a config or a client")
            client = ResilientJSONClient(config, SERVICE_NAME, transport=transport, log=log)
        self.client = client
        self.logger = log or logger

    async def search_by_postal_code(self, postal_code: str, deadline: float | None = None) -> AddressInfo:
        """
        Look up the address of a postal code.

        Args:
            postal_code: ``NNN-NNNN`` or ``NNNNNNN``
            deadline: Seconds allowed for the whole call

        Returns:
            AddressInfo with the code split into 3 + 4 digits

        Raises:
            InputValidationError: If the postal code is malformed
            UpstreamApplicationError: If the service reported failure or no address
            UpstreamError: If the call itself failed
        """
        validate_postal_code(postal_code)
        normalized = normalize_postal_code(postal_code)
        extra = {"service": SERVICE_NAME, "postal_code": postal_code}

        try:
            response: AddressSearchResponse = await self.client.post_json(
                ADDRESS_SEARCH_ENDPOINT,
                AddressSearchRequest(postal_code=normalized),
                response_model=AddressSearchResponse,
                deadline=deadline,
            )
        except IntegrationError as e:
            self.logger.error("Failed to search address: %s", e, extra=extra)
            raise

        if not response.success:
            api_error = response.error or "unknown error"
            self.logger.error("Address API returned error: %s", api_error, extra=extra)
            raise UpstreamApplicationError(
                f"address API error: {api_error}",
                endpoint=ADDRESS_SEARCH_ENDPOINT,
                upstream_error=api_error,
                service=SERVICE_NAME,
            )

        if response.data is None:
            self.logger.error("Address API returned no data", extra=extra)
            raise UpstreamApplicationError(
                f"no address data found for postal code: {postal_code}",
                endpoint=ADDRESS_SEARCH_ENDPOINT,
                service=SERVICE_NAME,
            )

        address = AddressInfo(
            postal_code_1=normalized[:3],
            postal_code_2=normalized[3:],
            prefecture=response.data.prefecture,
            city=response.data.city,
            town=response.data.town or None,
            full_address=build_full_address(response.data),
        )
        self.logger.debug("Address search completed: %s", address.full_address, extra=extra)
        return address

    async def search_by_postal_code_parts(
        self,
        postal_code_1: str,
        postal_code_2: str,
        deadline: float | None = None,
    ) -> AddressInfo:
        """Look up an address from the 3-digit and 4-digit halves."""
        validate_postal_code_parts(postal_code_1, postal_code_2)
        return await self.search_by_postal_code(postal_code_1 + postal_code_2, deadline=deadline)

    async def is_address_available(self, deadline: float | None = None) -> bool:
        """True when a lookup of a known postal code succeeds."""
        try:
            await self.search_by_postal_code(PROBE_POSTAL_CODE, deadline=deadline)
        except IntegrationError:
            return False
        return True

    async def aclose(self) -> None:
        await self.client.aclose()
