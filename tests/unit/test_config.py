"""
Unit Tests for Integration Configuration

Tests endpoint validation and environment-driven settings.
"""

import pytest

from integrations.config import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    IntegrationSettings,
    ServiceEndpointConfig,
    get_integration_settings,
)

ENV_VARS = [
    f"{service}_API_{suffix}"
    for service in ("INVENTORY", "REGION", "ADDRESS")
    for suffix in ("URL", "TIMEOUT", "MAX_RETRIES", "RETRY_DELAY")
] + ["LOG_LEVEL", "LOG_FORMAT"]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every integration variable from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestServiceEndpointConfig:
    """Tests for ServiceEndpointConfig validation."""

    def test_defaults(self):
        config = ServiceEndpointConfig(base_url="http://inventory:8081")

        assert config.timeout == DEFAULT_TIMEOUT == 30.0
        assert config.max_retries == DEFAULT_MAX_RETRIES == 3
        assert config.retry_delay == DEFAULT_RETRY_DELAY == 1.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"base_url": ""},
            {"base_url": "http://x", "timeout": 0},
            {"base_url": "http://x", "max_retries": -1},
            {"base_url": "http://x", "retry_delay": -0.5},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            ServiceEndpointConfig(**kwargs)

    def test_zero_retries_allowed(self):
        assert ServiceEndpointConfig(base_url="http://x", max_retries=0).max_retries == 0

    def test_immutable(self):
        config = ServiceEndpointConfig(base_url="http://x")

        with pytest.raises(AttributeError):
            config.max_retries = 5


class TestIntegrationSettings:
    """Tests for IntegrationSettings loaded from the environment."""

    def test_nothing_configured(self, clean_env):
        settings = IntegrationSettings(_env_file=None)

        manager_config = settings.to_manager_config()

        assert manager_config.inventory_api is None
        assert manager_config.region_api is None
        assert manager_config.address_api is None
        assert settings.log_format == "json"

    def test_reads_service_variables(self, clean_env):
        clean_env.setenv("INVENTORY_API_URL", "http://inventory:8081")
        clean_env.setenv("INVENTORY_API_TIMEOUT", "5")
        clean_env.setenv("INVENTORY_API_MAX_RETRIES", "0")
        clean_env.setenv("INVENTORY_API_RETRY_DELAY", "0.25")
        clean_env.setenv("ADDRESS_API_URL", "http://address:8081")

        manager_config = IntegrationSettings(_env_file=None).to_manager_config()

        assert manager_config.inventory_api == ServiceEndpointConfig(
            base_url="http://inventory:8081", timeout=5.0, max_retries=0, retry_delay=0.25
        )
        assert manager_config.region_api is None
        assert manager_config.address_api.base_url == "http://address:8081"
        assert manager_config.address_api.max_retries == DEFAULT_MAX_RETRIES

    def test_blank_url_disables_service(self, clean_env):
        clean_env.setenv("REGION_API_URL", "   ")

        assert IntegrationSettings(_env_file=None).endpoint_config("region") is None

    def test_invalid_timeout_rejected(self, clean_env):
        clean_env.setenv("REGION_API_URL", "http://region:8081")
        clean_env.setenv("REGION_API_TIMEOUT", "0")

        with pytest.raises(ValueError):
            IntegrationSettings(_env_file=None).to_manager_config()

    def test_invalid_log_format_rejected(self, clean_env):
        clean_env.setenv("LOG_FORMAT", "xml")

        with pytest.raises(ValueError):
            IntegrationSettings(_env_file=None)

    def test_settings_are_cached(self, clean_env):
        get_integration_settings.cache_clear()
        try:
            assert get_integration_settings() is get_integration_settings()
        finally:
            get_integration_settings.cache_clear()
