"""Discord OAuth2 provider.

Supplies the Discord specific hooks for the generic authorization code flow:
authorization URL with optional bot permissions, token fields with silent
re-consent, the ``/users/@me`` profile fetch and the mapping to OAuthUser.

Example Configuration:
    DISCORD_CLIENT_ID=xxx
    DISCORD_CLIENT_SECRET=xxx
    DISCORD_REDIRECT_URI=https://example.com/api/v1/auth/discord/callback

See https://discord.com/developers/docs/topics/oauth2
"""

import logging
from typing import Any, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError

from discord_auth_service.core.oauth import (
    ClientCredentials,
    MalformedResponse,
    OAuth2Flow,
    OAuth2Hooks,
    OAuthUser,
    base_token_fields,
    build_auth_url_from_base,
)

logger = logging.getLogger(__name__)

DISCORD_AUTH_URL = "https://discord.com/api/oauth2/authorize"
DISCORD_TOKEN_URL = "https://discord.com/api/oauth2/token"
DISCORD_USER_URL = "https://discord.com/api/users/@me"
DISCORD_AVATAR_URL = "https://cdn.discordapp.com/avatars"

DEFAULT_SCOPES = ["identify", "email"]
SCOPE_SEPARATOR = " "

# Discriminator of accounts migrated to unique usernames
NO_DISCRIMINATOR = "0"


def format_nickname(user: Mapping[str, Any]) -> str:
    """Display handle: ``name#1234`` for legacy accounts, else the username."""
    username = user["username"]
    discriminator = user.get("discriminator") or NO_DISCRIMINATOR

    if discriminator != NO_DISCRIMINATOR:
        return f"{username}#{discriminator}"

    return username


def format_avatar(user: Mapping[str, Any]) -> Optional[str]:
    """CDN URL of the user's avatar, or None when they use the default one.

    Animated avatar hashes carry an ``a_`` prefix and are served as gif.
    """
    avatar = user.get("avatar")
    if not avatar:
        return None

    extension = "gif" if avatar.startswith("a_") else "png"
    return f"{DISCORD_AVATAR_URL}/{user['id']}/{avatar}.{extension}"


class DiscordProvider:
    """Discord OAuth2 provider.

    Configuration setters return the provider so they can be chained before
    the flow starts:

        provider.as_bot().with_permissions("8").redirect_url()

    Build one instance per authorization attempt; setters mutate the
    instance.

    Args:
        credentials: Discord application credentials
        http_client: Shared httpx client (optional)
        timeout: Request timeout for clients the flow opens itself
    """

    name = "discord"

    def __init__(
        self,
        credentials: ClientCredentials,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0
    ):
        self.credentials = credentials
        self.scopes = list(DEFAULT_SCOPES)
        self.permissions: Optional[str] = None
        self.consent_suppressed = True
        self.parameters: Dict[str, str] = {}

        self.flow = OAuth2Flow(
            credentials=credentials,
            token_url=DISCORD_TOKEN_URL,
            hooks=OAuth2Hooks(
                auth_url=self.get_auth_url,
                token_fields=self.get_token_fields,
                fetch_user=self.get_user_by_token,
                map_user=self.map_user_to_object,
            ),
            http_client=http_client,
            timeout=timeout,
        )

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0
    ) -> "DiscordProvider":
        """Build from a ``client_id``/``client_secret``/``redirect`` mapping."""
        return cls(
            ClientCredentials(
                client_id=config["client_id"],
                client_secret=config["client_secret"],
                redirect_uri=config["redirect"],
            ),
            http_client=http_client,
            timeout=config.get("timeout", timeout),
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def with_consent(self) -> "DiscordProvider":
        """Let Discord show the consent screen again instead of prompt=none."""
        self.consent_suppressed = False
        return self

    def with_permissions(self, permissions: str) -> "DiscordProvider":
        """Request bot permissions (decimal bitmask) on the authorization URL."""
        self.permissions = permissions
        return self

    def as_bot(self) -> "DiscordProvider":
        """Authorize a bot install instead of a user login."""
        self.scopes = ["bot"]
        return self

    def with_scopes(self, *scopes: str) -> "DiscordProvider":
        """Add scopes to the ones already requested."""
        self.scopes = list(dict.fromkeys([*self.scopes, *scopes]))
        return self

    def set_scopes(self, *scopes: str) -> "DiscordProvider":
        """Replace the requested scopes."""
        self.scopes = list(dict.fromkeys(scopes))
        return self

    def with_parameters(self, **parameters: str) -> "DiscordProvider":
        """Extra query parameters for the authorization URL."""
        self.parameters.update(parameters)
        return self

    # ------------------------------------------------------------------
    # Flow hooks
    # ------------------------------------------------------------------

    def get_auth_url(self, state: str) -> str:
        """Authorization URL, with ``&permissions=`` appended when set."""
        auth_url = build_auth_url_from_base(
            DISCORD_AUTH_URL,
            state,
            self.credentials,
            self.scopes,
            scope_separator=SCOPE_SEPARATOR,
            parameters=self.parameters,
        )

        # Permissions are a decimal bitmask and go on unescaped
        if self.permissions:
            auth_url = f"{auth_url}&permissions={self.permissions}"

        return auth_url

    def get_token_fields(self, code: str) -> Dict[str, str]:
        """Token request fields, with prompt=none unless consent was requested."""
        fields = base_token_fields(code, self.credentials)

        if self.consent_suppressed:
            fields["prompt"] = "none"

        return fields

    async def get_user_by_token(self, token: str) -> Dict[str, Any]:
        """Fetch the raw ``/users/@me`` profile."""
        return await self.flow.get_json(DISCORD_USER_URL, token)

    def map_user_to_object(self, user: Dict[str, Any]) -> OAuthUser:
        """Normalize a Discord profile.

        Raises:
            MalformedResponse: If the profile has no id or username, or a
                field has the wrong type
        """
        missing = [key for key in ("id", "username") if not user.get(key)]
        if missing:
            logger.error(f"Discord profile is missing required fields: {missing}")
            raise MalformedResponse(
                f"Discord profile is missing required fields: {', '.join(missing)}"
            )

        try:
            return OAuthUser(
                id=str(user["id"]),
                nickname=format_nickname(user),
                name=user["username"],
                email=user.get("email"),
                avatar=format_avatar(user),
                raw=user,
            )
        except (ValidationError, AttributeError) as e:
            logger.error(f"Discord profile has fields of the wrong type: {e}")
            raise MalformedResponse(f"Discord profile has invalid fields: {e}") from e

    # ------------------------------------------------------------------
    # Flow entry points
    # ------------------------------------------------------------------

    def redirect_url(self, state: Optional[str] = None) -> tuple[str, str]:
        """Consent screen URL and the state embedded in it."""
        return self.flow.redirect_url(state)

    async def user(self, code: str) -> OAuthUser:
        """Exchange a callback code and return the normalized user."""
        user = await self.flow.user(code)
        logger.info(f"Discord user authenticated: {user.nickname} ({user.id})")
        return user

    async def user_from_token(self, token: str) -> OAuthUser:
        """Normalized user for an access token obtained elsewhere."""
        return await self.flow.user_from_token(token)
