"""OAuth Login Routes

Drives the authorization code flow for registered providers.

Key Endpoints:
- GET /api/v1/auth/{provider}/redirect: Redirect to the provider consent screen
- GET /api/v1/auth/{provider}/callback: Exchange the code and return the identity

The CSRF state travels in a short-lived HttpOnly cookie between the two calls.
Nothing else is persisted: tokens are not stored and no session is created.
"""

import logging
import secrets
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from discord_auth_service.config.settings import Settings, get_settings
from discord_auth_service.core.oauth import (
    InvalidStateError,
    MalformedResponse,
    ProviderConfigurationError,
    TransportError,
    UnknownProviderError,
    UpstreamError,
    build_provider,
)
from discord_auth_service.providers import DiscordProvider

router = APIRouter(prefix="/api/v1/auth", tags=["oauth"])
logger = logging.getLogger(__name__)

STATE_COOKIE_PATH = "/api/v1/auth"


# ============================================================================
# Response Models
# ============================================================================

class IdentityResponse(BaseModel):
    """Normalized identity returned after a successful callback."""
    provider: str
    id: str
    nickname: str
    name: str
    email: Optional[str] = None
    avatar: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# Dependencies
# ============================================================================

async def get_http_client() -> Optional[httpx.AsyncClient]:
    """Shared outbound client (None lets the flow open one per request)."""
    return None


def configure_provider(provider, settings: Settings):
    """Apply deployment settings to a freshly built provider."""
    if isinstance(provider, DiscordProvider):
        provider.set_scopes(*settings.discord_scopes)
        if settings.discord_permissions:
            provider.with_permissions(settings.discord_permissions)
        if not settings.discord_consent_suppressed:
            provider.with_consent()
    return provider


async def get_oauth_provider(
    provider: str,
    settings: Settings = Depends(get_settings),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client)
):
    """Build a new provider instance for this request."""
    try:
        instance = build_provider(
            provider,
            settings.provider_config(provider),
            http_client=http_client
        )
    except UnknownProviderError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ProviderConfigurationError as e:
        logger.error(f"OAuth provider misconfigured: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Provider {provider} is not configured"
        )

    return configure_provider(instance, settings)


def verify_state(expected: Optional[str], received: Optional[str]) -> None:
    """Compare the callback state with the one issued at redirect.

    Raises:
        InvalidStateError: If either value is missing or they differ
    """
    if not expected or not received:
        raise InvalidStateError("Missing OAuth state")
    if not secrets.compare_digest(expected.encode(), received.encode()):
        raise InvalidStateError("OAuth state mismatch")


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/{provider}/redirect")
async def redirect_to_provider(
    provider: str,
    oauth_provider=Depends(get_oauth_provider),
    settings: Settings = Depends(get_settings)
):
    """Redirect the browser to the provider consent screen.

    Returns:
        307 redirect carrying the state cookie
    """
    authorization_url, state = oauth_provider.redirect_url()

    response = RedirectResponse(authorization_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    response.set_cookie(
        settings.state_cookie_name,
        state,
        max_age=settings.state_cookie_max_age,
        path=STATE_COOKIE_PATH,
        httponly=True,
        secure=settings.state_cookie_secure,
        samesite="lax",
    )

    logger.info(f"OAuth redirect issued: provider={provider}")
    return response


@router.get("/{provider}/callback", response_model=IdentityResponse)
async def provider_callback(
    provider: str,
    request: Request,
    response: Response,
    code: Optional[str] = Query(None, description="Authorization code"),
    state: Optional[str] = Query(None, description="CSRF state echoed by the provider"),
    error: Optional[str] = Query(None, description="Error reported by the provider"),
    oauth_provider=Depends(get_oauth_provider),
    settings: Settings = Depends(get_settings)
):
    """Handle the provider callback.

    Args:
        code: Authorization code from the provider
        state: State issued by the redirect endpoint

    Returns:
        Normalized identity (token material is not returned)

    Raises:
        HTTPException: 400 on state/consent problems, 502/503 on provider failures
    """
    if error:
        logger.warning(f"OAuth authorization denied: provider={provider}, error={error}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Authorization failed: {error}"
        )

    try:
        verify_state(request.cookies.get(settings.state_cookie_name), state)
    except InvalidStateError as e:
        logger.warning(f"OAuth callback rejected: provider={provider}, reason={e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing authorization code"
        )

    try:
        user = await oauth_provider.user(code)
    except UpstreamError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Provider returned HTTP {e.status_code}"
        )
    except MalformedResponse as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except TransportError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Provider is unreachable"
        )

    response.delete_cookie(settings.state_cookie_name, path=STATE_COOKIE_PATH)

    return IdentityResponse(provider=provider.lower(), **user.public_profile())
