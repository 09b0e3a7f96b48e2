"""Client package."""

from autorefresh.client.auth_client import AuthClient

__all__ = ["AuthClient"]
