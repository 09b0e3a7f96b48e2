"""Abstract interface for the credential store.

The client depends only on this contract so that the in-memory store can be
swapped for another holder (shared between clients, instrumented in tests)
without touching the refresh protocol.
"""

from abc import ABC, abstractmethod

from autorefresh.core.models import AuthResponse, Session


class CredentialStore(ABC):
    """Abstract holder of the main and refresh credentials.

    Implementations must make every update atomic: a concurrent reader sees
    either the old pair or the new pair, never a mix of both.

    Example usage::

        store = SessionStore()                         # concrete implementation
        client = AuthClient(config, store=store)       # injected into client
    """

    @abstractmethod
    def get(self) -> Session:
        """Return a read-only snapshot of the current credentials."""

    @abstractmethod
    def set_from_auth_response(self, main_token: str, refresh_token: str) -> None:
        """Overwrite both credentials in a single step.

        Args:
            main_token: The new main credential.
            refresh_token: The new refresh credential.
        """

    @abstractmethod
    def clear(self) -> None:
        """Reset both credentials to the empty string."""

    def update_auth(self, response: AuthResponse) -> None:
        """Store the tokens carried by a login or refresh response.

        Args:
            response: A parsed :class:`~autorefresh.core.models.AuthResponse`.
        """
        self.set_from_auth_response(response.main_token, response.refresh_token)

    def is_authenticated(self) -> bool:
        """Return ``True`` if a main credential is currently held.

        This method must not raise.
        """
        return bool(self.get().main_token)
