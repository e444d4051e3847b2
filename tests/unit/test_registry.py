"""Unit tests for the OAuth provider registry"""

import pytest

from discord_auth_service.config.settings import Settings
from discord_auth_service.core.oauth import (
    ProviderConfigurationError,
    UnknownProviderError,
    available_providers,
    build_provider,
    register_provider,
)
from discord_auth_service.core.oauth.registry import unregister_provider
from discord_auth_service.providers import DiscordProvider

pytestmark = pytest.mark.unit

DISCORD_CONFIG = {
    "client_id": "cid",
    "client_secret": "csecret",
    "redirect": "https://app.example.com/cb",
}


class TestRegistry:
    """Test provider registration and construction"""

    def test_discord_is_registered(self):
        assert "discord" in available_providers()

    def test_build_returns_fresh_instances(self):
        first = build_provider("discord", DISCORD_CONFIG)
        second = build_provider("discord", DISCORD_CONFIG)

        assert isinstance(first, DiscordProvider)
        assert first is not second

        first.with_permissions("8").with_consent()
        assert second.permissions is None
        assert second.consent_suppressed is True

    def test_name_is_case_insensitive(self):
        assert isinstance(build_provider("Discord", DISCORD_CONFIG), DiscordProvider)

    def test_unknown_provider(self):
        with pytest.raises(UnknownProviderError, match="discord"):
            build_provider("myspace", DISCORD_CONFIG)

    def test_missing_config_keys(self):
        with pytest.raises(ProviderConfigurationError, match="client_secret, redirect"):
            build_provider("discord", {"client_id": "cid"})

    def test_register_custom_factory(self):
        calls = []

        def factory(config, http_client=None):
            calls.append(config)
            return "custom-provider"

        register_provider("Custom", factory)
        try:
            assert build_provider("custom", DISCORD_CONFIG) == "custom-provider"
            assert calls == [DISCORD_CONFIG]
        finally:
            unregister_provider("custom")

        assert "custom" not in available_providers()


class TestSettingsProviderConfig:
    """Test the registration mapping built from settings"""

    def test_discord_provider_config(self):
        settings = Settings(
            discord_client_id="cid",
            discord_client_secret="csecret",
            discord_redirect_uri="https://app.example.com/cb",
            http_timeout_seconds=3.5,
        )

        config = settings.provider_config("discord")

        assert config == {
            "client_id": "cid",
            "client_secret": "csecret",
            "redirect": "https://app.example.com/cb",
            "timeout": 3.5,
        }
        assert build_provider("discord", config).flow.timeout == 3.5
