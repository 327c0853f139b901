"""
External-service integrations for the application form.

Retrying JSON client, inventory / region / address clients, and the
IntegrationManager that combines them into per-option availability.
"""

from .clients import AddressClient, InventoryClient, RegionClient, ResilientJSONClient
from .config import IntegrationSettings, ManagerConfig, ServiceEndpointConfig, get_integration_settings
from .errors import (
    ErrorCode,
    InputValidationError,
    IntegrationError,
    UpstreamApplicationError,
    UpstreamError,
    UpstreamRejectedError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from .manager import IntegrationManager
from .models import (
    AddressInfo,
    HealthCheckResult,
    HealthStatus,
    OptionAvailability,
    OptionAvailabilityResult,
    ServiceHealth,
)

__all__ = [
    "AddressClient",
    "AddressInfo",
    "ErrorCode",
    "HealthCheckResult",
    "HealthStatus",
    "InputValidationError",
    "IntegrationError",
    "IntegrationManager",
    "IntegrationSettings",
    "InventoryClient",
    "ManagerConfig",
    "OptionAvailability",
    "OptionAvailabilityResult",
    "RegionClient",
    "ResilientJSONClient",
    "ServiceEndpointConfig",
    "ServiceHealth",
    "UpstreamApplicationError",
    "UpstreamError",
    "UpstreamRejectedError",
    "UpstreamTimeoutError",
    "UpstreamUnavailableError",
    "get_integration_settings",
]
