"""Data model dataclasses shared across the client layers."""

from dataclasses import dataclass
from typing import Any

from autorefresh.core.exceptions import MalformedAuthResponseError


# ----------------------
# Session
# ----------------------


@dataclass(frozen=True)
class Session:
    """Snapshot of the credentials held by a session store."""

    main_token: str = ""
    """Short-lived token attached to every ordinary request."""

    refresh_token: str = ""
    """Longer-lived token exchanged for a new session on HTTP 401."""


# ----------------------
# Auth response
# ----------------------


@dataclass(frozen=True)
class AuthResponse:
    """Body returned by both the login and the refresh endpoints."""

    main_token: str
    refresh_token: str

    @classmethod
    def from_json(cls, data: Any) -> "AuthResponse":
        """Build an :class:`AuthResponse` from a decoded JSON body.

        Args:
            data: The decoded response body.  Expected to be an object
                with ``mainToken`` and ``refreshToken`` string fields.

        Returns:
            A populated :class:`AuthResponse`.

        Raises:
            MalformedAuthResponseError: If ``data`` is not an object or
                either token is missing or not a string.
        """
        if not isinstance(data, dict):
            raise MalformedAuthResponseError(
                "Auth response body is not a JSON object."
            )
        main_token = data.get("mainToken")
        refresh_token = data.get("refreshToken")
        if not isinstance(main_token, str) or not isinstance(
            refresh_token, str
        ):
            raise MalformedAuthResponseError(
                "Auth response must contain 'mainToken' and 'refreshToken'."
            )
        return cls(main_token=main_token, refresh_token=refresh_token)


# ----------------------
# Request
# ----------------------


@dataclass(frozen=True)
class RequestDescriptor:
    """A single caller request, immutable for the lifetime of the call."""

    method: str
    path: str
    """Path relative to the configured base URL, or an absolute URL."""

    body: Any = None
    """JSON-serialisable body, or ``None`` to send no body."""

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
