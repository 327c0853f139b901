"""
Mock External API Server

FastAPI stand-in for the inventory, region and address services, used for
local development and end-to-end tests. Responses come from fixed tables so
results are reproducible; random 500s can be switched on per endpoint.

Run:
    python -m integrations.mock_server          # port from MOCK_PORT, default 8081
"""

import logging
import os
import random
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from integrations.protocol import (
    ADDRESS_SEARCH_ENDPOINT,
    INVENTORY_CHECK_ENDPOINT,
    REGION_CHECK_ENDPOINT,
    AddressData,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8081

# Percentage of requests answered with a simulated 500 when run as a dev server
DEV_FAILURE_RATES = {"inventory": 5, "region": 3, "address": 2}

MOCK_STOCK = {
    "AA": 15,  # Good stock
    "BB": 0,  # Out of stock
    "AB": 5,  # Low stock
    "TEST": 100,  # Health probes
}
DEFAULT_STOCK = 3

BB_RESTRICTED_PREFECTURES = {"東京都", "大阪府", "愛知県"}

MOCK_ADDRESSES = {
    "1000001": AddressData(postal_code="100-0001", prefecture="東京都", city="千代田区", town="千代田"),
    "1000005": AddressData(postal_code="100-0005", prefecture="東京都", city="千代田区", town="丸の内"),
    "1500002": AddressData(postal_code="150-0002", prefecture="東京都", city="渋谷区", town="渋谷"),
    "5410041": AddressData(postal_code="541-0041", prefecture="大阪府", city="大阪市中央区", town="北浜"),
    "2310023": AddressData(postal_code="231-0023", prefecture="神奈川県", city="横浜市中区", town="山下町"),
    "4600008": AddressData(postal_code="460-0008", prefecture="愛知県", city="名古屋市中区", town="栄"),
    "8100001": AddressData(postal_code="810-0001", prefecture="福岡県", city="福岡市中央区", town="天神"),
    "0600001": AddressData(postal_code="060-0001", prefecture="北海道", city="札幌市中央区", town="北一条西"),
    "9000006": AddressData(postal_code="900-0006", prefecture="沖縄県", city="那覇市", town="おもろまち"),
}


def is_region_allowed(prefecture: str, option_id: str) -> bool:
    """Fixture restriction rules keyed by option id."""
    if option_id == "AA":
        return prefecture != "北海道"
    if option_id == "BB":
        return prefecture not in BB_RESTRICTED_PREFECTURES
    if option_id in ("AB", "TEST"):
        return True
    return prefecture != "沖縄県"


def _envelope(status_code: int, success: bool, data: Any = None, error: str | None = None) -> JSONResponse:
    body: dict[str, Any] = {"success": success}
    if data is not None:
        body["data"] = data
    if error:
        body["error"] = error
    return JSONResponse(status_code=status_code, content=body)


async def _read_json_object(request: Request) -> dict[str, Any] | None:
    try:
        payload = await request.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def _string_list(value: Any) -> list[str] | None:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return None
    return value


def create_mock_app(
    failure_rates: dict[str, int] | None = None,
    rng: random.Random | None = None,
) -> FastAPI:
    """
    Build the mock server application.

    Args:
        failure_rates: Percentage of simulated 500s per service (inventory,
            region, address); missing services never fail
        rng: Random source for failure simulation

    Returns:
        FastAPI: Application serving the three check endpoints and /health
    """
    rates = dict(failure_rates or {})
    rng = rng or random.Random()
    app = FastAPI(title="Mock External API Server")

    def should_fail(service: str) -> bool:
        rate = rates.get(service, 0)
        if rate <= 0:
            return False
        return rng.randrange(100) < rate

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"status": "healthy", "service": "mock-api-server", "time": datetime.now(UTC).isoformat()}

    @app.post(INVENTORY_CHECK_ENDPOINT)
    async def inventory_check(request: Request) -> JSONResponse:
        payload = await _read_json_object(request)
        if payload is None:
            return _envelope(400, False, error="Invalid request format")
        option_ids = _string_list(payload.get("option_ids"))
        if not option_ids:
            return _envelope(400, False, error="Option IDs cannot be empty")

        if should_fail("inventory"):
            logger.info("Simulating inventory failure")
            return _envelope(500, False, error="Temporary inventory service unavailable")

        stock = {oid: MOCK_STOCK.get(oid, DEFAULT_STOCK) for oid in option_ids}
        return _envelope(200, True, data=stock)

    @app.post(REGION_CHECK_ENDPOINT)
    async def region_check(request: Request) -> JSONResponse:
        payload = await _read_json_object(request)
        if payload is None:
            return _envelope(400, False, error="Invalid request format")
        prefecture = payload.get("prefecture")
        city = payload.get("city")
        if not isinstance(prefecture, str) or not isinstance(city, str) or not prefecture or not city:
            return _envelope(400, False, error="Prefecture and city are required")
        option_ids = _string_list(payload.get("option_ids"))
        if not option_ids:
            return _envelope(400, False, error="Option IDs cannot be empty")

        if should_fail("region"):
            logger.info("Simulating region failure")
            return _envelope(500, False, error="Temporary region service unavailable")

        restrictions = {oid: is_region_allowed(prefecture, oid) for oid in option_ids}
        return _envelope(200, True, data=restrictions)

    @app.post(ADDRESS_SEARCH_ENDPOINT)
    async def address_search(request: Request) -> JSONResponse:
        payload = await _read_json_object(request)
        if payload is None:
            return _envelope(400, False, error="Invalid request format")
        postal_code = payload.get("postal_code")
        if not isinstance(postal_code, str) or len(postal_code) != 7:
            return _envelope(400, False, error="Postal code must be 7 digits")

        address = MOCK_ADDRESSES.get(postal_code)
        if address is None:
            return _envelope(200, False, error=f"Address not found for postal code: {postal_code}")

        if should_fail("address"):
            logger.info("Simulating address failure")
            return _envelope(500, False, error="Temporary address service unavailable")

        return _envelope(200, True, data=address.model_dump(exclude_none=True))

    return app


def main() -> None:
    import uvicorn

    from integrations.config import get_integration_settings
    from integrations.logging import setup_structured_logging

    settings = get_integration_settings()
    setup_structured_logging("mock-api-server", level=settings.log_level, fmt=settings.log_format)

    port = int(os.getenv("MOCK_PORT", str(DEFAULT_PORT)))
    logger.info("Mock API server starting on port %d", port)
    uvicorn.run(create_mock_app(DEV_FAILURE_RATES), host="0.0.0.0", port=port, log_level="info")


if __name__ == "__main__":
    main()
