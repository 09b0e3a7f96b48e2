"""In-memory credential store.

Credentials live only as long as the store object.  Nothing is written to
disk; a new process always starts logged out.
"""

import logging
import threading

from autorefresh.auth.interfaces import CredentialStore
from autorefresh.core.models import Session

logger = logging.getLogger(__name__)


class SessionStore(CredentialStore):
    """Thread-safe in-memory holder for a single session.

    The current credentials are kept as one immutable :class:`Session`
    value and replaced wholesale, so :meth:`get` never observes a main
    token from one response paired with a refresh token from another.
    """

    def __init__(self, main_token: str = "", refresh_token: str = ""):
        """Initialise the store.

        Args:
            main_token: Initial main credential.  Empty by default.
            refresh_token: Initial refresh credential.  Empty by default.
        """
        self._lock = threading.Lock()
        self._session = Session(main_token=main_token, refresh_token=refresh_token)

    def get(self) -> Session:
        with self._lock:
            return self._session

    def set_from_auth_response(self, main_token: str, refresh_token: str) -> None:
        with self._lock:
            self._session = Session(
                main_token=main_token, refresh_token=refresh_token
            )
        logger.debug("Session credentials updated")

    def clear(self) -> None:
        with self._lock:
            self._session = Session()
        logger.info("Session credentials cleared")
