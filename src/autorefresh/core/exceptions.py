"""Domain exceptions for the autorefresh library."""

import requests

REDIRECT = "Redirect"
"""Message carried by :class:`RedirectRequiredError`.

Callers that only inspect the error message (rather than its type) compare
against this value to detect that the user must log in again.
"""


class AutoRefreshError(Exception):
    """Base class for all autorefresh library exceptions."""


class ConfigurationError(AutoRefreshError):
    """Raised when the client configuration is missing or invalid."""


class MalformedAuthResponseError(AutoRefreshError):
    """Raised when a login or refresh response does not carry both tokens."""


class RedirectRequiredError(AutoRefreshError, requests.HTTPError):
    """Raised when authentication is exhausted and cannot be recovered.

    The client raises this exception when a request returns HTTP 401 and
    either no refresh token is held or the refresh attempt itself fails.
    The session is cleared before it is raised.  The caller (CLI or
    application) is responsible for sending the user back to the login
    flow — the client itself never navigates anywhere.

    The message is always :data:`REDIRECT`.  ``response`` and ``request``
    are those of the original 401, and the original
    :class:`requests.HTTPError` is chained as ``__cause__``.
    """

    def __init__(self, error: requests.HTTPError):
        super().__init__(
            REDIRECT, response=error.response, request=error.request
        )
