"""OAuth provider adapters.

Importing this package registers every bundled provider:
- discord: Discord OAuth2 (identify, email, bot installs)
"""

from discord_auth_service.core.oauth import register_provider

from .discord import DiscordProvider, format_avatar, format_nickname

register_provider(DiscordProvider.name, DiscordProvider.from_config)

__all__ = [
    "DiscordProvider",
    "format_avatar",
    "format_nickname",
]
