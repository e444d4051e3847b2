"""Canonical identity returned by OAuth providers."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class OAuthUser(BaseModel):
    """User identity normalized from a provider profile.

    Attributes:
        id: Provider user identifier
        nickname: Display-friendly handle
        name: Raw username
        email: Email address (only when the email scope was granted)
        avatar: Fully qualified avatar URL, None for the default avatar
        raw: Provider profile exactly as received
        token: Access token the profile was fetched with
        refresh_token: Refresh token from the code exchange (optional)
        expires_in: Access token lifetime in seconds (optional)
        approved_scopes: Scopes the provider actually granted
    """
    id: str
    nickname: str
    name: str
    email: Optional[str] = None
    avatar: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)

    token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    approved_scopes: list[str] = Field(default_factory=list)

    def public_profile(self) -> Dict[str, Any]:
        """Identity fields without token material."""
        return self.model_dump(
            exclude={"token", "refresh_token", "expires_in", "approved_scopes"}
        )
