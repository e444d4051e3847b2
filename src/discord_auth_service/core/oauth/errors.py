"""OAuth2 flow errors.

Every failure in the flow surfaces as an OAuthError subclass. Nothing is
retried; the caller that initiated the login decides what to do.
"""


class OAuthError(Exception):
    """Base class for OAuth2 flow failures."""
    pass


class TransportError(OAuthError):
    """Network failure reaching a provider endpoint."""
    pass


class UpstreamError(OAuthError):
    """Provider answered with a non-2xx HTTP status.

    Attributes:
        status_code: HTTP status returned by the provider
        body: Raw response body text
    """

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Provider returned HTTP {status_code}")


class MalformedResponse(OAuthError):
    """Response body is not valid JSON or lacks required fields."""
    pass


class InvalidStateError(OAuthError):
    """Callback state does not match the one issued with the redirect."""
    pass


class UnknownProviderError(OAuthError):
    """No provider is registered under the requested name."""
    pass


class ProviderConfigurationError(OAuthError):
    """Provider configuration mapping is missing required keys."""
    pass
