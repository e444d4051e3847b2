"""Configuration Settings for Discord Auth Service

Manages environment variables and application configuration.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Service info
    service_name: str = "discord-auth-service"
    service_version: str = "1.0.0"
    environment: str = "development"

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Discord application
    discord_client_id: str = ""
    discord_client_secret: str = ""
    discord_redirect_uri: str = "http://localhost:8000/api/v1/auth/discord/callback"
    discord_scopes: list[str] = ["identify", "email"]
    discord_permissions: Optional[str] = None
    discord_consent_suppressed: bool = True  # Sends prompt=none

    # Outbound HTTP
    http_timeout_seconds: float = 10.0

    # CSRF state cookie
    state_cookie_name: str = "oauth_state"
    state_cookie_max_age: int = 600  # seconds
    state_cookie_secure: bool = False

    # CORS configuration
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    def provider_config(self, name: str) -> dict:
        """Registration mapping for a provider

        Args:
            name: Provider driver name

        Returns:
            Mapping with client_id, client_secret, redirect and timeout
        """
        prefix = name.lower()
        return {
            "client_id": getattr(self, f"{prefix}_client_id", ""),
            "client_secret": getattr(self, f"{prefix}_client_secret", ""),
            "redirect": getattr(self, f"{prefix}_redirect_uri", ""),
            "timeout": self.http_timeout_seconds,
        }

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance

    Returns:
        Settings instance
    """
    return Settings()
