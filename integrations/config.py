"""
Integration Configuration

Per-service connection policy for the external APIs and the environment
settings they are loaded from.

Environment variables (all optional, `.env` supported):
    INVENTORY_API_URL / REGION_API_URL / ADDRESS_API_URL
    <SERVICE>_API_TIMEOUT       seconds, default 30
    <SERVICE>_API_MAX_RETRIES   default 3
    <SERVICE>_API_RETRY_DELAY   seconds, default 1
    LOG_LEVEL, LOG_FORMAT
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0


@dataclass(frozen=True)
class ServiceEndpointConfig:
    """Connection policy for one external service.

    Attributes:
        base_url: Scheme and host of the service, e.g. ``http://inventory:8081``.
        timeout: Per-attempt request timeout in seconds.
        max_retries: Retries after the first attempt.
        retry_delay: Fixed sleep before each retry, in seconds.
    """

    base_url: str
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url cannot be empty")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries cannot be negative, got {self.max_retries}")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay cannot be negative, got {self.retry_delay}")


@dataclass(frozen=True)
class ManagerConfig:
    """Endpoint configs for every service the manager may own.

    A service left as None is not configured: no client is built for it and
    it is skipped by availability checks and health sweeps.
    """

    inventory_api: ServiceEndpointConfig | None = None
    region_api: ServiceEndpointConfig | None = None
    address_api: ServiceEndpointConfig | None = None


class IntegrationSettings(BaseSettings):
    """External API configuration with Pydantic validation.

    Attributes:
        inventory_api_url: Base URL of the inventory service (empty disables it).
        region_api_url: Base URL of the region restriction service.
        address_api_url: Base URL of the address lookup service.
        log_level: Root log level.
        log_format: ``json`` for structured logs, ``text`` for plain lines.
    """

    inventory_api_url: str = ""
    inventory_api_timeout: float = DEFAULT_TIMEOUT
    inventory_api_max_retries: int = DEFAULT_MAX_RETRIES
    inventory_api_retry_delay: float = DEFAULT_RETRY_DELAY

    region_api_url: str = ""
    region_api_timeout: float = DEFAULT_TIMEOUT
    region_api_max_retries: int = DEFAULT_MAX_RETRIES
    region_api_retry_delay: float = DEFAULT_RETRY_DELAY

    address_api_url: str = ""
    address_api_timeout: float = DEFAULT_TIMEOUT
    address_api_max_retries: int = DEFAULT_MAX_RETRIES
    address_api_retry_delay: float = DEFAULT_RETRY_DELAY

    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def endpoint_config(self, service: str) -> ServiceEndpointConfig | None:
        """Build the endpoint config for ``service`` or None if it has no URL.

        Args:
            service: One of ``inventory``, ``region``, ``address``.
        """
        base_url = getattr(self, f"{service}_api_url").strip()
        if not base_url:
            logger.info("%s API URL not set; service disabled", service)
            return None
        return ServiceEndpointConfig(
            base_url=base_url,
            timeout=getattr(self, f"{service}_api_timeout"),
            max_retries=getattr(self, f"{service}_api_max_retries"),
            retry_delay=getattr(self, f"{service}_api_retry_delay"),
        )

    def to_manager_config(self) -> ManagerConfig:
        """Collect the endpoint configs of all three services."""
        return ManagerConfig(
            inventory_api=self.endpoint_config("inventory"),
            region_api=self.endpoint_config("region"),
            address_api=self.endpoint_config("address"),
        )


@lru_cache
def get_integration_settings() -> IntegrationSettings:
    """Factory for IntegrationSettings singleton.

    Returns:
        IntegrationSettings: Validated configuration instance.
    """
    return IntegrationSettings()
