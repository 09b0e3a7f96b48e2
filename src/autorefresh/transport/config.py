"""Client configuration.

A :class:`ClientConfig` is built once, either explicitly or from the
environment, and handed to :class:`~autorefresh.client.AuthClient`.  It is
immutable so the base address and endpoints cannot drift while requests are
in flight.
"""

import os
from dataclasses import dataclass

from autorefresh.core.exceptions import ConfigurationError

_ENV_BASE_URL = "AUTOREFRESH_BASE_URL"
_ENV_LOGIN_PATH = "AUTOREFRESH_LOGIN_PATH"
_ENV_REFRESH_PATH = "AUTOREFRESH_REFRESH_PATH"
_ENV_AUTH_HEADER = "AUTOREFRESH_AUTH_HEADER"
_ENV_AUTH_SCHEME = "AUTOREFRESH_AUTH_SCHEME"
_ENV_TIMEOUT = "AUTOREFRESH_TIMEOUT"

DEFAULT_USER_AGENT = "autorefresh/0.1"


@dataclass(frozen=True)
class ClientConfig:
    """Settings shared by every request an :class:`AuthClient` issues.

    Attributes:
        base_url: Base address every relative path is joined onto, e.g.
            ``"http://baseUrl.com/"``.
        login_path: Path of the login endpoint, relative to ``base_url``.
        refresh_path: Path of the refresh endpoint, relative to ``base_url``.
        auth_header: Name of the header that carries the main token.
        auth_scheme: Optional scheme prefixed to the token (e.g.
            ``"Bearer"``).  ``None`` sends the raw token value.
        timeout: Seconds before a single HTTP call gives up.
        user_agent: The User-Agent header value for all HTTP requests.
        single_flight: When ``True``, concurrent 401s share one refresh
            instead of each calling the refresh endpoint.
    """

    base_url: str
    login_path: str = "login"
    refresh_path: str = "refresh"
    auth_header: str = "Authorization"
    auth_scheme: str | None = None
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    single_flight: bool = True

    def __post_init__(self):
        if not self.base_url:
            raise ConfigurationError("base_url must not be empty.")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be a positive number.")

    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        """Build a configuration from ``AUTOREFRESH_*`` environment variables.

        Args:
            **overrides: Field values that take precedence over the
                environment (e.g. ``single_flight=False``).

        Returns:
            A :class:`ClientConfig` instance.

        Raises:
            ConfigurationError: If no base URL is configured or the timeout
                is not a number.
        """
        values: dict = {}
        base_url = os.getenv(_ENV_BASE_URL)
        if base_url:
            values["base_url"] = base_url
        for env, name in (
            (_ENV_LOGIN_PATH, "login_path"),
            (_ENV_REFRESH_PATH, "refresh_path"),
            (_ENV_AUTH_HEADER, "auth_header"),
            (_ENV_AUTH_SCHEME, "auth_scheme"),
        ):
            value = os.getenv(env)
            if value:
                values[name] = value
        timeout = os.getenv(_ENV_TIMEOUT)
        if timeout:
            try:
                values["timeout"] = float(timeout)
            except ValueError:
                raise ConfigurationError(
                    f"{_ENV_TIMEOUT} must be a number, got {timeout!r}."
                ) from None
        values.update(overrides)
        if not values.get("base_url"):
            raise ConfigurationError(
                f"No base URL configured. Set {_ENV_BASE_URL}."
            )
        return cls(**values)

    def format_token(self, token: str) -> str:
        """Return the header value that carries ``token``."""
        if self.auth_scheme:
            return f"{self.auth_scheme} {token}"
        return token
