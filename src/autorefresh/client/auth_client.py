"""Authenticated HTTP client with transparent token refresh."""

import logging
import threading
from typing import Any, Callable

import requests

from autorefresh.auth.interfaces import CredentialStore
from autorefresh.auth.session import SessionStore
from autorefresh.core.exceptions import (
    MalformedAuthResponseError,
    RedirectRequiredError,
)
from autorefresh.core.models import AuthResponse, RequestDescriptor, Session
from autorefresh.transport.config import ClientConfig
from autorefresh.transport.http import (
    InstrumentedTransport,
    RawTransport,
    build_session,
    decode_body,
)

logger = logging.getLogger(__name__)


class AuthClient:
    """Issues requests to a server without handling auth once logged in.

    After :meth:`login`, every :meth:`request` carries the current main
    token.  When the server answers HTTP 401, the client exchanges the
    refresh token for a new pair of tokens and retries the failed request
    exactly once.  When that is impossible (no refresh token, or the refresh
    itself is rejected) the session is cleared and
    :class:`~autorefresh.core.exceptions.RedirectRequiredError` is raised;
    sending the user back to a login screen is left to the caller.

    Usage::

        config = ClientConfig(base_url="http://baseUrl.com/")
        with AuthClient(config) as client:
            client.login("my-id", "my-secret")
            data = client.request("POST", "test", {})

    Credentials are held by an injected
    :class:`~autorefresh.auth.interfaces.CredentialStore` (a fresh
    :class:`~autorefresh.auth.session.SessionStore` by default), so several
    clients can run side by side with independent sessions.
    """

    def __init__(
        self,
        config: ClientConfig,
        store: CredentialStore | None = None,
        session_factory: Callable[[ClientConfig], requests.Session] = build_session,
    ):
        """Initialise the client.

        No network connection is made here; see :meth:`open`.

        Args:
            config: Base URL, endpoints and transport settings.
            store: Credential holder.  Defaults to an empty
                :class:`SessionStore`.
            session_factory: Builds the shared :class:`requests.Session`
                the transports send through.
        """
        self.config = config
        self.store = store if store is not None else SessionStore()
        self._session_factory = session_factory
        self._http: requests.Session | None = None
        self._raw: RawTransport | None = None
        self._instrumented: InstrumentedTransport | None = None
        self._open_lock = threading.Lock()
        self._refresh_lock = threading.Lock()

    # -------------------------
    # Lifecycle
    # -------------------------

    def open(self) -> "AuthClient":
        """Build the shared HTTP session and both transport roles.

        Idempotent.  :meth:`login` and :meth:`request` call it on demand,
        so calling it up front is optional.

        Returns:
            The client itself, for chaining.
        """
        self._open()
        return self

    def close(self) -> None:
        """Close the shared HTTP session.

        The next call to :meth:`login` or :meth:`request` opens a new one.
        The stored credentials are kept.
        """
        with self._open_lock:
            if self._http is not None:
                self._http.close()
                self._http = None
                self._raw = None
                self._instrumented = None
                logger.debug("Transport closed")

    def __enter__(self) -> "AuthClient":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------------
    # Public API
    # -------------------------

    @property
    def session(self) -> Session:
        """Snapshot of the credentials currently held."""
        return self.store.get()

    def login(self, client_id: str, client_secret: str) -> None:
        """Log the client in, saving the tokens for future requests.

        The login call goes through the raw transport: a 401 here means bad
        credentials, not an expired session, so no refresh is attempted.

        Args:
            client_id: The client identifier.
            client_secret: The client secret.

        Raises:
            requests.HTTPError: If the server rejects the credentials (the
                response, e.g. HTTP 401, is attached unchanged).
            requests.RequestException: On connection errors and timeouts.
            MalformedAuthResponseError: If the response lacks the tokens.
        """
        raw, _ = self._transports()
        response = raw.send(
            RequestDescriptor(
                "POST",
                self.config.login_path,
                {"clientId": client_id, "clientSecret": client_secret},
            )
        )
        self.store.update_auth(AuthResponse.from_json(decode_body(response)))
        logger.info("Logged in to %s", self.config.base_url)

    def logout(self) -> None:
        """Forget both tokens.  The next request needs a fresh :meth:`login`."""
        self.store.clear()

    def request(self, method: str, path: str, body: Any = None) -> Any:
        """Request ``path`` and handle the token refresh if possible.

        Args:
            method: The HTTP method (case-insensitive).
            path: The route's path on the server, relative to the base URL.
            body: Optional JSON-serialisable request body.

        Returns:
            The decoded response body: parsed JSON, plain text, or ``None``
            for an empty body.

        Raises:
            RedirectRequiredError: On HTTP 401 when the session cannot be
                refreshed.  The session has been cleared.
            requests.HTTPError: On any other non-2xx status, or when the
                retry after a successful refresh fails.
            requests.RequestException: On connection errors and timeouts.
        """
        _, instrumented = self._transports()
        response = instrumented.send(
            RequestDescriptor(method, path, body),
            headers=self._auth_headers(),
        )
        return decode_body(response)

    # -------------------------
    # Recovery
    # -------------------------

    def _handle_failure(
        self, error: requests.RequestException
    ) -> requests.Response:
        """Refresh the tokens and retry the failed request if possible.

        Args:
            error: The exception raised by the instrumented transport.

        Returns:
            The response of the retried request.

        Raises:
            requests.RequestException: ``error`` itself when it is not a 401.
            RedirectRequiredError: When the session cannot be refreshed.
        """
        response = error.response
        if response is None or response.status_code != 401:
            raise error

        # Retry the caller's request, not the last hop of a redirect chain.
        failed = (
            response.history[0].request if response.history else response.request
        )
        if self.config.single_flight:
            with self._refresh_lock:
                main_token = self._recover(error, failed)
        else:
            main_token = self._recover(error, failed)

        retry = failed.copy()
        retry.headers[self.config.auth_header] = self.config.format_token(
            main_token
        )
        raw, _ = self._transports()
        return raw.resend(retry)

    def _recover(
        self,
        error: requests.HTTPError,
        failed: requests.PreparedRequest,
    ) -> str:
        """Return a main token the failed request can be retried with."""
        current = self.store.get()

        if self.config.single_flight and current.main_token:
            sent = failed.headers.get(self.config.auth_header)
            if self.config.format_token(current.main_token) != sent:
                # Refreshed by a concurrent request while this one waited.
                logger.debug("Reusing credentials refreshed concurrently")
                return current.main_token

        if not current.refresh_token:
            logger.debug("HTTP 401 and no refresh token held")
            raise self._disconnect(error) from error

        try:
            return self._refresh(current.refresh_token).main_token
        except (requests.RequestException, MalformedAuthResponseError) as e:
            logger.warning("Token refresh failed: %s", e)
            raise self._disconnect(error) from error

    def _refresh(self, refresh_token: str) -> AuthResponse:
        """Exchange ``refresh_token`` for a new pair of tokens and store it."""
        raw, _ = self._transports()
        logger.debug("Refreshing session tokens")
        response = raw.send(
            RequestDescriptor(
                "POST",
                self.config.refresh_path,
                {"refreshToken": refresh_token},
            )
        )
        auth = AuthResponse.from_json(decode_body(response))
        self.store.update_auth(auth)
        return auth

    def _disconnect(self, error: requests.HTTPError) -> RedirectRequiredError:
        """Clear the session and build the redirect error for ``error``."""
        self.store.clear()
        return RedirectRequiredError(error)

    # -------------------------
    # Internal helpers
    # -------------------------

    def _open(self) -> tuple[RawTransport, InstrumentedTransport]:
        with self._open_lock:
            if self._http is None:
                http = self._session_factory(self.config)
                self._raw = RawTransport(http, self.config)
                self._instrumented = InstrumentedTransport(
                    http, self.config, self._handle_failure
                )
                self._http = http
                logger.debug("Transport opened for %s", self.config.base_url)
            return self._raw, self._instrumented

    def _transports(self) -> tuple[RawTransport, InstrumentedTransport]:
        return self._open()

    def _auth_headers(self) -> dict[str, str]:
        main_token = self.store.get().main_token
        if not main_token:
            return {}
        return {self.config.auth_header: self.config.format_token(main_token)}
