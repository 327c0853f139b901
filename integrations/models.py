"""
Integration Result Models

Values produced by the clients and the manager. None of them are persisted;
each is built for one call and handed back to the caller.
"""

from enum import Enum

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


# ============================================================================
# Option availability
# ============================================================================


class OptionAvailability(BaseModel):
    """Combined stock and region facts for one option.

    Attributes:
        option_id: Option identifier.
        stock: Units remaining, None when inventory data was unavailable.
        has_stock: True only when stock is known and positive.
        is_region_allowed: Region decision, None when region data was unavailable.
        is_available: has_stock and the region does not forbid the option.
    """

    option_id: str
    stock: int | None = None
    has_stock: bool = False
    is_region_allowed: bool | None = None
    is_available: bool = False

    @classmethod
    def combine(cls, option_id: str, stock: int | None, is_region_allowed: bool | None) -> "OptionAvailability":
        """Build a record from raw facts, deriving has_stock and is_available.

        A missing region decision counts as "not restricted".
        """
        has_stock = stock is not None and stock > 0
        return cls(
            option_id=option_id,
            stock=stock,
            has_stock=has_stock,
            is_region_allowed=is_region_allowed,
            is_available=has_stock and (is_region_allowed is None or is_region_allowed),
        )


class OptionAvailabilityResult(BaseModel):
    """Availability records keyed by option id.

    The id lists returned by the helpers are sorted; the mapping itself
    carries no ordering guarantee.
    """

    option_results: dict[str, OptionAvailability] = Field(default_factory=dict)

    def available_options(self) -> list[str]:
        """Options that may be offered."""
        return sorted(oid for oid, a in self.option_results.items() if a.is_available)

    def unavailable_options(self) -> list[str]:
        """Options that may not be offered, for any reason."""
        return sorted(oid for oid, a in self.option_results.items() if not a.is_available)

    def out_of_stock_options(self) -> list[str]:
        """Options without known positive stock."""
        return sorted(oid for oid, a in self.option_results.items() if not a.has_stock)

    def region_restricted_options(self) -> list[str]:
        """Options explicitly forbidden in the requested region."""
        return sorted(oid for oid, a in self.option_results.items() if a.is_region_allowed is False)


class InventoryInfo(BaseModel):
    """Stock for a single option."""

    option_id: str
    stock: int


class RegionRestrictionInfo(BaseModel):
    """Region decision for a single option."""

    option_id: str
    is_allowed: bool
    prefecture: str
    city: str


# ============================================================================
# Address
# ============================================================================


class AddressInfo(BaseModel):
    """Resolved address for a postal code.

    Attributes:
        postal_code_1: First 3 digits.
        postal_code_2: Last 4 digits.
        prefecture: Prefecture name, e.g. 東京都.
        city: City or ward name.
        town: Town name, if the service returned one.
        full_address: prefecture + city + town.
    """

    postal_code_1: str
    postal_code_2: str
    prefecture: str
    city: str
    town: str | None = None
    full_address: str


# ============================================================================
# Health
# ============================================================================


class ServiceHealth(BaseModel):
    """Probe outcome for one backing service.

    Attributes:
        name: Service identifier (inventory, region, address).
        status: HEALTHY or UNHEALTHY.
        error: Error text captured from the failed probe.
        latency_ms: Probe duration in milliseconds.
    """

    name: str
    status: HealthStatus
    error: str | None = None
    latency_ms: float | None = None


class HealthCheckResult(BaseModel):
    """Aggregate of a health sweep over the configured services."""

    overall_status: HealthStatus = HealthStatus.HEALTHY
    services: dict[str, ServiceHealth] = Field(default_factory=dict)

    @classmethod
    def from_services(cls, services: list[ServiceHealth]) -> "HealthCheckResult":
        """Aggregate probes: DEGRADED as soon as one service is unhealthy."""
        if any(s.status != HealthStatus.HEALTHY for s in services):
            overall_status = HealthStatus.DEGRADED
        else:
            overall_status = HealthStatus.HEALTHY
        return cls(overall_status=overall_status, services={s.name: s for s in services})

    def is_healthy(self) -> bool:
        return self.overall_status == HealthStatus.HEALTHY

    def unhealthy_services(self) -> list[str]:
        return sorted(name for name, s in self.services.items() if s.status != HealthStatus.HEALTHY)
