"""
External API Protocol

Pydantic models for the JSON bodies exchanged with the inventory, region
and address services. All three responses share the same envelope:
``{"success": bool, "data": ..., "error": str}``.
"""

from pydantic import BaseModel, Field

# ============================================================================
# Endpoint paths
# ============================================================================

INVENTORY_CHECK_ENDPOINT = "/api/inventory/check"
REGION_CHECK_ENDPOINT = "/api/region/check"
ADDRESS_SEARCH_ENDPOINT = "/api/address/search"


# ============================================================================
# Inventory
# ============================================================================


class InventoryCheckRequest(BaseModel):
    """Ask for the remaining stock of each option."""

    option_ids: list[str] = Field(..., min_length=1, description="Option identifiers to check")


class InventoryCheckResponse(BaseModel):
    """Stock count per option id."""

    success: bool
    data: dict[str, int] | None = None
    error: str | None = None


# ============================================================================
# Region
# ============================================================================


class RegionCheckRequest(BaseModel):
    """Ask whether each option is permitted in a prefecture/city."""

    prefecture: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    option_ids: list[str] = Field(..., min_length=1)


class RegionCheckResponse(BaseModel):
    """Allowed flag per option id."""

    success: bool
    data: dict[str, bool] | None = None
    error: str | None = None


# ============================================================================
# Address
# ============================================================================


class AddressSearchRequest(BaseModel):
    """Resolve a 7-digit postal code (no hyphen)."""

    postal_code: str = Field(..., description="Normalized postal code, e.g. 1000005")


class AddressData(BaseModel):
    """Address payload returned by the address service."""

    postal_code: str
    prefecture: str
    city: str
    town: str | None = None


class AddressSearchResponse(BaseModel):
    """Envelope of an address search."""

    success: bool
    data: AddressData | None = None
    error: str | None = None
