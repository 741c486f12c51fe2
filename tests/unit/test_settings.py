"""
Unit Tests for Configuration
============================

Tests for environment loading, nested sections and validation.
"""

import pytest
from pydantic import ValidationError

from lufeed_parser.config.settings import (
    CacheSettings,
    LoggingSettings,
    LufeedSettings,
    ProxyEntry,
    ProxySettings,
    get_settings,
)
from lufeed_parser.utils.exceptions import ConfigurationError


class TestLufeedSettings:
    """Test cases for LufeedSettings."""

    def test_defaults(self):
        settings = LufeedSettings(logging=LoggingSettings(file_path=None))

        assert settings.proxy.proxies == []
        assert settings.cache.address is None
        assert settings.cache.item_ttl_hours == 24
        assert settings.parsing.max_items == 20
        assert settings.parsing.item_retries == 2

    def test_nested_environment_variables(self, monkeypatch):
        monkeypatch.setenv("LUFEED_CACHE__ADDRESS", "cache:6379")
        monkeypatch.setenv("LUFEED_PARSING__MAX_ITEMS", "5")
        monkeypatch.setenv(
            "LUFEED_PROXY__PROXIES",
            '[{"id": 1, "address": "10.0.0.1", "port": "3128", "username": "u", "password": "p"}]',
        )

        settings = LufeedSettings()

        assert settings.cache.address == "cache:6379"
        assert settings.parsing.max_items == 5
        assert settings.proxy.proxies[0].url == "http://u:p@10.0.0.1:3128"

    def test_debug_forces_debug_level(self):
        settings = LufeedSettings(debug=True, logging=LoggingSettings(file_path=None, level="WARNING"))
        assert settings.get_effective_log_level() == "DEBUG"

        settings = LufeedSettings(debug=False, logging=LoggingSettings(file_path=None, level="WARNING"))
        assert settings.get_effective_log_level() == "WARNING"

    def test_blank_cache_address_rejected(self):
        settings = LufeedSettings(cache=CacheSettings(address="  "), logging=LoggingSettings(file_path=None))
        with pytest.raises(ConfigurationError):
            settings.validate_configuration()

    def test_get_settings_is_cached(self):
        first = get_settings(reload=True)
        assert get_settings() is first


class TestProxySettings:

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValidationError):
            ProxySettings(proxies=[
                ProxyEntry(id=1, address="a", port="1"),
                ProxyEntry(id=1, address="b", port="2"),
            ])

    def test_direct_identity_is_reserved(self):
        with pytest.raises(ValidationError):
            ProxyEntry(id=0, address="a", port="1")

    def test_url_without_credentials(self):
        assert ProxyEntry(id=2, address="proxy.local", port="8080").url == "http://proxy.local:8080"
