"""Authentication layer — credential store contract and implementation."""

from autorefresh.auth.interfaces import CredentialStore
from autorefresh.auth.session import SessionStore

__all__ = ["CredentialStore", "SessionStore"]
