"""
Unit Tests for InventoryClient

Tests input validation, the success-flag contract and the
missing-option safe default (stock 0).
"""

import logging

import httpx
import pytest

from integrations.clients.inventory import InventoryClient
from integrations.errors import (
    InputValidationError,
    UpstreamApplicationError,
    UpstreamRejectedError,
    UpstreamUnavailableError,
)
from integrations.models import InventoryInfo
from integrations.protocol import INVENTORY_CHECK_ENDPOINT


def inventory_handler(data: dict | None, success: bool = True, error: str | None = None, status: int = 200):
    body = {"success": success}
    if data is not None:
        body["data"] = data
    if error is not None:
        body["error"] = error
    return lambda request: httpx.Response(status, json=body)


class TestInventoryValidation:
    """Tests for validation that happens before any network call."""

    @pytest.mark.asyncio
    async def test_empty_option_ids_rejected(self, endpoint_config, make_transport):
        transport = make_transport(inventory_handler({}))
        client = InventoryClient(endpoint_config, transport=transport)

        with pytest.raises(InputValidationError) as exc_info:
            await client.check_inventory([])

        assert exc_info.value.field == "option_ids"
        assert transport.call_count == 0
        await client.aclose()

    @pytest.mark.asyncio
    async def test_empty_single_option_rejected(self, endpoint_config, make_transport):
        transport = make_transport(inventory_handler({}))
        client = InventoryClient(endpoint_config, transport=transport)

        with pytest.raises(InputValidationError):
            await client.check_single_option_inventory("")

        assert transport.call_count == 0
        await client.aclose()

    def test_requires_config_or_client(self):
        with pytest.raises(ValueError):
            InventoryClient()


class TestCheckInventory:
    """Tests for check_inventory."""

    @pytest.mark.asyncio
    async def test_sends_all_ids_in_one_request(self, endpoint_config, make_transport):
        transport = make_transport(inventory_handler({"AA": 15, "BB": 0, "AB": 5}))
        client = InventoryClient(endpoint_config, transport=transport)

        result = await client.check_inventory(["AA", "BB", "AB"])

        assert result == {"AA": 15, "BB": 0, "AB": 5}
        assert transport.call_count == 1
        assert transport.json_bodies(INVENTORY_CHECK_ENDPOINT) == [{"option_ids": ["AA", "BB", "AB"]}]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_missing_option_defaults_to_zero(self, endpoint_config, make_transport, caplog):
        caplog.set_level(logging.WARNING, logger="integrations.clients.inventory")
        transport = make_transport(inventory_handler({"AA": 10}))
        client = InventoryClient(endpoint_config, transport=transport)

        result = await client.check_inventory(["AA", "BB"])

        assert result == {"AA": 10, "BB": 0}
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert [r.option_id for r in warnings] == ["BB"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_extra_options_in_response_are_ignored(self, endpoint_config, make_transport):
        transport = make_transport(inventory_handler({"AA": 1, "ZZ": 99}))
        client = InventoryClient(endpoint_config, transport=transport)

        assert await client.check_inventory(["AA"]) == {"AA": 1}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_success_false_is_application_error(self, endpoint_config, make_transport):
        transport = make_transport(inventory_handler(None, success=False, error="maintenance"))
        client = InventoryClient(endpoint_config, transport=transport)

        with pytest.raises(UpstreamApplicationError) as exc_info:
            await client.check_inventory(["AA"])

        assert exc_info.value.upstream_error == "maintenance"
        assert "maintenance" in str(exc_info.value)
        # Application errors are not retried
        assert transport.call_count == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_success_false_without_text(self, endpoint_config, make_transport):
        transport = make_transport(inventory_handler(None, success=False))
        client = InventoryClient(endpoint_config, transport=transport)

        with pytest.raises(UpstreamApplicationError, match="unknown error"):
            await client.check_inventory(["AA"])
        await client.aclose()

    @pytest.mark.asyncio
    async def test_missing_data_is_application_error(self, endpoint_config, make_transport):
        transport = make_transport(inventory_handler(None, success=True))
        client = InventoryClient(endpoint_config, transport=transport)

        with pytest.raises(UpstreamApplicationError, match="no inventory data"):
            await client.check_inventory(["AA"])
        await client.aclose()

    @pytest.mark.asyncio
    async def test_4xx_propagates_after_one_call(self, endpoint_config, make_transport):
        transport = make_transport(inventory_handler(None, success=False, status=400))
        client = InventoryClient(endpoint_config, transport=transport)

        with pytest.raises(UpstreamRejectedError):
            await client.check_inventory(["AA"])

        assert transport.call_count == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unreachable_upstream_propagates(self, endpoint_config, make_transport):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        transport = make_transport(refuse)
        client = InventoryClient(endpoint_config, transport=transport)

        with pytest.raises(UpstreamUnavailableError):
            await client.check_inventory(["AA"])

        assert transport.call_count == 1 + endpoint_config.max_retries
        await client.aclose()


class TestInventoryHelpers:
    """Tests for the single-option and list helpers."""

    @pytest.mark.asyncio
    async def test_single_option(self, endpoint_config, make_transport):
        transport = make_transport(inventory_handler({"AB": 5}))
        client = InventoryClient(endpoint_config, transport=transport)

        assert await client.check_single_option_inventory("AB") == 5
        await client.aclose()

    @pytest.mark.asyncio
    async def test_single_option_missing_is_zero(self, endpoint_config, make_transport):
        transport = make_transport(inventory_handler({}))
        client = InventoryClient(endpoint_config, transport=transport)

        assert await client.check_single_option_inventory("AB") == 0
        await client.aclose()

    @pytest.mark.asyncio
    async def test_inventory_list_sorted(self, endpoint_config, make_transport):
        transport = make_transport(inventory_handler({"BB": 0, "AA": 15}))
        client = InventoryClient(endpoint_config, transport=transport)

        result = await client.get_inventory_list(["BB", "AA"])

        assert result == [InventoryInfo(option_id="AA", stock=15), InventoryInfo(option_id="BB", stock=0)]
        await client.aclose()
