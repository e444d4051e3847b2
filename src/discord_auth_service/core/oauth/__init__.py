"""Generic OAuth 2.0 authorization code flow.

Providers plug into the flow through hooks and register themselves with
the registry under a driver name.
"""

from .errors import (
    InvalidStateError,
    MalformedResponse,
    OAuthError,
    ProviderConfigurationError,
    TransportError,
    UnknownProviderError,
    UpstreamError,
)
from .flow import (
    ClientCredentials,
    OAuth2Flow,
    OAuth2Hooks,
    TokenResponse,
    base_token_fields,
    build_auth_url_from_base,
    generate_state,
)
from .registry import available_providers, build_provider, register_provider
from .user import OAuthUser

__all__ = [
    "ClientCredentials",
    "OAuth2Flow",
    "OAuth2Hooks",
    "OAuthUser",
    "TokenResponse",
    "base_token_fields",
    "build_auth_url_from_base",
    "generate_state",
    "available_providers",
    "build_provider",
    "register_provider",
    # Errors
    "OAuthError",
    "TransportError",
    "UpstreamError",
    "MalformedResponse",
    "InvalidStateError",
    "UnknownProviderError",
    "ProviderConfigurationError",
]
