"""
Pytest configuration and fixtures for the Discord auth service tests.

Provides fixtures for:
- Discord application credentials
- Sample /users/@me payloads
- A mocked Discord API (httpx MockTransport)
- Test HTTP client against the FastAPI app
"""

from typing import AsyncGenerator, Callable
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from discord_auth_service.api.routes.oauth import get_http_client
from discord_auth_service.config.settings import Settings, get_settings
from discord_auth_service.core.oauth import ClientCredentials
from discord_auth_service.main import app
from discord_auth_service.providers import DiscordProvider


@pytest.fixture
def credentials() -> ClientCredentials:
    """Discord application credentials for tests."""
    return ClientCredentials(
        client_id="client-123",
        client_secret="secret-456",
        redirect_uri="https://app.example.com/callback",
    )


@pytest.fixture
def discord_profile() -> dict:
    """Modern-username profile with an animated avatar."""
    return {
        "id": "100",
        "username": "alice",
        "discriminator": "0",
        "email": "a@x.com",
        "avatar": "a_abcd",
        "verified": True,
    }


@pytest.fixture
def token_payload() -> dict:
    """Discord token endpoint response."""
    return {
        "access_token": "access-abc",
        "token_type": "Bearer",
        "expires_in": 604800,
        "refresh_token": "refresh-xyz",
        "scope": "identify email",
    }


class DiscordAPI:
    """Records requests and answers like Discord's token and user endpoints."""

    def __init__(self, token_payload: dict, profile: dict):
        self.token_payload = token_payload
        self.profile = profile
        self.token_status = 200
        self.user_status = 200
        self.user_body = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/api/oauth2/token":
            return httpx.Response(self.token_status, json=self.token_payload)

        if request.url.path == "/api/users/@me":
            if request.headers.get("Authorization") != f"Bearer {self.token_payload['access_token']}":
                return httpx.Response(401, json={"message": "401: Unauthorized", "code": 0})
            if self.user_body is not None:
                return httpx.Response(self.user_status, content=self.user_body)
            return httpx.Response(self.user_status, json=self.profile)

        return httpx.Response(404, json={"message": "404: Not Found"})

    def token_form(self) -> dict:
        """Form fields of the last token request."""
        token_requests = [r for r in self.requests if r.url.path == "/api/oauth2/token"]
        body = parse_qs(token_requests[-1].content.decode())
        return {key: values[0] for key, values in body.items()}


@pytest.fixture
def discord_api(token_payload, discord_profile) -> DiscordAPI:
    """Mocked Discord API."""
    return DiscordAPI(token_payload, discord_profile)


@pytest_asyncio.fixture
async def discord_http(discord_api) -> AsyncGenerator[httpx.AsyncClient, None]:
    """httpx client routed to the mocked Discord API."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(discord_api.handler)) as client:
        yield client


@pytest.fixture
def make_provider(credentials) -> Callable[..., DiscordProvider]:
    """Factory for providers bound to an optional http client."""
    def _make(http_client=None) -> DiscordProvider:
        return DiscordProvider(credentials, http_client=http_client)
    return _make


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a configured Discord application."""
    return Settings(
        discord_client_id="client-123",
        discord_client_secret="secret-456",
        discord_redirect_uri="https://app.example.com/callback",
    )


@pytest_asyncio.fixture
async def client(test_settings, discord_http) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with settings and Discord transport overrides."""

    async def override_get_http_client():
        return discord_http

    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_http_client] = override_get_http_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
