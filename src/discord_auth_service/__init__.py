"""Discord OAuth2 authentication service."""

__version__ = "1.0.0"
