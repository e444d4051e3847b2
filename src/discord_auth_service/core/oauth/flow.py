"""Generic OAuth 2.0 authorization code flow.

The flow owns the parts every provider shares: state generation, the base
authorization query, the base token request fields, HTTP transport and
error translation. Provider specifics are supplied as hooks, so an adapter
composes a flow instead of subclassing one.

Flow:
    1. redirect_url(state)  -> consent screen URL (hooks.auth_url)
    2. exchange_code(code)  -> TokenResponse      (hooks.token_fields)
    3. user_from_token(tok) -> OAuthUser          (hooks.fetch_user, hooks.map_user)
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional
from urllib.parse import quote, urlencode

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import MalformedResponse, TransportError, UpstreamError
from .user import OAuthUser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientCredentials:
    """OAuth 2.0 client registration.

    Attributes:
        client_id: OAuth 2.0 client ID
        client_secret: OAuth 2.0 client secret
        redirect_uri: Callback URL registered with the provider
    """
    client_id: str
    client_secret: str
    redirect_uri: str


class TokenResponse(BaseModel):
    """Access token response from the provider's token endpoint."""
    access_token: str
    token_type: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: list[str] = Field(default_factory=list)

    @field_validator("scope", mode="before")
    @classmethod
    def split_scope(cls, v):
        """Providers return granted scopes as one space separated string"""
        if v is None:
            return []
        if isinstance(v, str):
            return v.split()
        return v


@dataclass(frozen=True)
class OAuth2Hooks:
    """Provider specific steps plugged into OAuth2Flow.

    Attributes:
        auth_url: state -> authorization URL
        token_fields: code -> form fields for the token request
        fetch_user: access token -> raw profile mapping
        map_user: raw profile -> OAuthUser
    """
    auth_url: Callable[[str], str]
    token_fields: Callable[[str], Dict[str, str]]
    fetch_user: Callable[[str], Awaitable[Dict[str, Any]]]
    map_user: Callable[[Dict[str, Any]], OAuthUser]


def generate_state() -> str:
    """Generate an opaque CSRF state value."""
    return secrets.token_urlsafe(32)


def build_auth_url_from_base(
    url: str,
    state: str,
    credentials: ClientCredentials,
    scopes: Iterable[str],
    scope_separator: str = " ",
    parameters: Optional[Dict[str, str]] = None
) -> str:
    """Build the authorization URL from the provider's base endpoint.

    Args:
        url: Provider authorization endpoint
        state: CSRF protection state
        credentials: Client registration
        scopes: Scopes to request, in order
        scope_separator: Separator the provider expects between scopes
        parameters: Additional query parameters (optional)

    Returns:
        Authorization URL to redirect the user to
    """
    params = {
        "client_id": credentials.client_id,
        "redirect_uri": credentials.redirect_uri,
        "scope": scope_separator.join(scopes),
        "response_type": "code",
        "state": state,
    }
    if parameters:
        params.update(parameters)

    return f"{url}?{urlencode(params, quote_via=quote)}"


def base_token_fields(code: str, credentials: ClientCredentials) -> Dict[str, str]:
    """Form fields every authorization_code token request carries."""
    return {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": credentials.redirect_uri,
        "client_id": credentials.client_id,
        "client_secret": credentials.client_secret,
    }


class OAuth2Flow:
    """Authorization code flow driven by provider hooks.

    Args:
        credentials: Client registration
        token_url: Provider token endpoint
        hooks: Provider specific steps
        http_client: Shared httpx client (optional). When omitted a client is
            opened per request with ``timeout``.
        timeout: Request timeout in seconds for clients the flow opens itself
    """

    def __init__(
        self,
        credentials: ClientCredentials,
        token_url: str,
        hooks: OAuth2Hooks,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0
    ):
        self.credentials = credentials
        self.token_url = token_url
        self.hooks = hooks
        self.http_client = http_client
        self.timeout = timeout

    def redirect_url(self, state: Optional[str] = None) -> tuple[str, str]:
        """Build the consent screen URL.

        Args:
            state: CSRF state to embed (generated when omitted)

        Returns:
            Tuple of (authorization_url, state)
        """
        state = state or generate_state()
        return self.hooks.auth_url(state), state

    async def exchange_code(self, code: str) -> TokenResponse:
        """Exchange an authorization code for an access token.

        Raises:
            TransportError: Token endpoint unreachable
            UpstreamError: Token endpoint returned a non-2xx status
            MalformedResponse: Body is not JSON, has no access_token or has
                fields of the wrong type
        """
        fields = self.hooks.token_fields(code)
        data = await self.request_json(
            "POST",
            self.token_url,
            data=fields,
            headers={"Accept": "application/json"}
        )

        if not data.get("access_token"):
            logger.error("Token response did not include an access_token")
            raise MalformedResponse("Token response is missing access_token")

        try:
            return TokenResponse.model_validate(data)
        except ValidationError as e:
            logger.error(f"Token response has invalid fields: {e.error_count()} error(s)")
            raise MalformedResponse(f"Invalid token response: {e}") from e

    async def user_from_token(self, token: str) -> OAuthUser:
        """Fetch and normalize the profile belonging to an access token."""
        raw = await self.hooks.fetch_user(token)
        user = self.hooks.map_user(raw)
        return user.model_copy(update={"token": token})

    async def user(self, code: str) -> OAuthUser:
        """Run the exchange and return the normalized user with token data."""
        tokens = await self.exchange_code(code)
        user = await self.user_from_token(tokens.access_token)

        return user.model_copy(update={
            "refresh_token": tokens.refresh_token,
            "expires_in": tokens.expires_in,
            "approved_scopes": tokens.scope,
        })

    async def get_json(self, url: str, token: str) -> Dict[str, Any]:
        """GET a JSON object with a Bearer token."""
        return await self.request_json(
            "GET",
            url,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {token}",
            }
        )

    async def request_json(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        """Send a request and decode the JSON object in the response.

        Raises:
            TransportError: Network failure
            UpstreamError: Non-2xx response
            MalformedResponse: Body is not a JSON object
        """
        try:
            if self.http_client is not None:
                response = await self.http_client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise TransportError(f"Could not reach {url}: {e}") from e

        if not response.is_success:
            logger.warning(f"{method} {url} returned {response.status_code}: {response.text}")
            raise UpstreamError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"{method} {url} returned invalid JSON")
            raise MalformedResponse(f"Invalid JSON from {url}") from e

        if not isinstance(data, dict):
            raise MalformedResponse(f"Expected a JSON object from {url}")

        return data
