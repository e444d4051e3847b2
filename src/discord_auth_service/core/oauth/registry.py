"""OAuth provider registry.

Providers register a factory under a driver name; callers build a fresh
provider instance per authorization attempt from a configuration mapping
holding ``client_id``, ``client_secret`` and ``redirect``.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from .errors import ProviderConfigurationError, UnknownProviderError

logger = logging.getLogger(__name__)

REQUIRED_CONFIG_KEYS = ("client_id", "client_secret", "redirect")

ProviderFactory = Callable[..., Any]

# Registered factories, keyed by lowercase driver name
_factories: Dict[str, ProviderFactory] = {}


def register_provider(name: str, factory: ProviderFactory) -> None:
    """Register a provider factory under a driver name.

    The factory is called as ``factory(config, http_client=...)`` and must
    return a new provider instance.

    Args:
        name: Driver name (case-insensitive)
        factory: Callable building the provider
    """
    key = name.lower()
    if key in _factories:
        logger.info(f"Replacing OAuth provider registration: {key}")
    _factories[key] = factory
    logger.debug(f"OAuth provider registered: {key}")


def available_providers() -> list[str]:
    """Names of all registered providers, sorted."""
    return sorted(_factories)


def build_provider(
    name: str,
    config: Mapping[str, Any],
    http_client: Optional[httpx.AsyncClient] = None
):
    """Build a new provider instance.

    Args:
        name: Driver name (case-insensitive)
        config: Mapping with client_id, client_secret and redirect
        http_client: Shared httpx client for the provider (optional)

    Returns:
        Freshly constructed provider

    Raises:
        UnknownProviderError: If nothing is registered under ``name``
        ProviderConfigurationError: If required config keys are missing
    """
    key = name.lower()
    factory = _factories.get(key)
    if factory is None:
        raise UnknownProviderError(
            f"Unknown OAuth provider: {name}. "
            f"Valid options: {', '.join(available_providers()) or 'none'}"
        )

    missing = [k for k in REQUIRED_CONFIG_KEYS if not config.get(k)]
    if missing:
        raise ProviderConfigurationError(
            f"{key} provider requires: {', '.join(missing)}"
        )

    return factory(config, http_client=http_client)


def unregister_provider(name: str) -> None:
    """Remove a provider registration (for testing)."""
    _factories.pop(name.lower(), None)
