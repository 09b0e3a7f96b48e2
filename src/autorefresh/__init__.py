"""autorefresh — HTTP requests with transparent bearer-token refresh."""

from autorefresh.auth import CredentialStore, SessionStore
from autorefresh.client import AuthClient
from autorefresh.core.exceptions import (
    REDIRECT,
    AutoRefreshError,
    ConfigurationError,
    MalformedAuthResponseError,
    RedirectRequiredError,
)
from autorefresh.core.models import AuthResponse, RequestDescriptor, Session
from autorefresh.transport import ClientConfig

__version__ = "0.1.0"

__all__ = [
    "REDIRECT",
    "AuthClient",
    "AuthResponse",
    "AutoRefreshError",
    "ClientConfig",
    "ConfigurationError",
    "CredentialStore",
    "MalformedAuthResponseError",
    "RedirectRequiredError",
    "RequestDescriptor",
    "Session",
    "SessionStore",
]
