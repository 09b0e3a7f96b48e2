"""Raw and instrumented transports over a shared :class:`requests.Session`.

Both roles send through the same session (one connection pool, one set of
default headers) and apply the same success predicate: only 2xx responses
are returned, anything else is raised as :class:`requests.HTTPError`.

* :class:`RawTransport` stops there.  Login, refresh and the single retry
  after a refresh go through it, so they are never intercepted.
* :class:`InstrumentedTransport` hands every failure to a hook that may
  recover (and return a response) or re-raise.
"""

import logging
import re
from typing import Any, Callable

import requests

from autorefresh.core.models import RequestDescriptor
from autorefresh.transport.config import ClientConfig

logger = logging.getLogger(__name__)

_ABSOLUTE_URL = re.compile(r"^([a-z][a-z\d+\-.]*:)?//", re.IGNORECASE)

FailureHook = Callable[[requests.RequestException], requests.Response]


def is_success(status_code: int) -> bool:
    """Return ``True`` for 2xx status codes."""
    return 200 <= status_code < 300


def join_url(base_url: str, path: str) -> str:
    """Join ``path`` onto ``base_url`` with exactly one slash between them.

    Absolute URLs (``http://…`` or protocol-relative ``//…``) are returned
    unchanged.

    Args:
        base_url: The configured base address.
        path: A relative path or an absolute URL.

    Returns:
        The full request URL.
    """
    if _ABSOLUTE_URL.match(path):
        return path
    if not path:
        return base_url
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def decode_body(response: requests.Response) -> Any:
    """Return the decoded body of ``response``.

    Returns:
        The parsed JSON value, the raw text when the body is not JSON, or
        ``None`` when the body is empty.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except requests.JSONDecodeError:
        return response.text


def build_session(config: ClientConfig) -> requests.Session:
    """Create the shared HTTP session both transport roles send through."""
    session = requests.Session()
    session.headers.update({
        "User-Agent": config.user_agent,
        "Accept": "application/json",
    })
    return session


class RawTransport:
    """Sends requests and enforces the 2xx success predicate, nothing more."""

    def __init__(self, session: requests.Session, config: ClientConfig):
        """Initialise the transport.

        Args:
            session: The shared :class:`requests.Session`.
            config: Supplies the base URL and the per-call timeout.
        """
        self.session = session
        self._config = config

    def send(
        self,
        descriptor: RequestDescriptor,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """Send ``descriptor`` and return the response.

        Args:
            descriptor: Method, path and optional JSON body.
            headers: Extra headers for this call only.

        Returns:
            The 2xx :class:`requests.Response`.

        Raises:
            requests.HTTPError: If the server answers with a non-2xx status.
            requests.RequestException: On connection errors and timeouts.
        """
        url = join_url(self._config.base_url, descriptor.path)
        kwargs: dict[str, Any] = {}
        if descriptor.body is not None:
            kwargs["json"] = descriptor.body
        logger.debug("%s %s", descriptor.method, url)
        response = self.session.request(
            descriptor.method,
            url,
            headers=headers,
            timeout=self._config.timeout,
            **kwargs,
        )
        return self._validate(response)

    def resend(self, prepared: requests.PreparedRequest) -> requests.Response:
        """Send an already prepared request again.

        Raises:
            requests.HTTPError: If the server answers with a non-2xx status.
            requests.RequestException: On connection errors and timeouts.
        """
        logger.debug("%s %s (retry)", prepared.method, prepared.url)
        settings = self.session.merge_environment_settings(
            prepared.url, {}, None, None, None
        )
        response = self.session.send(
            prepared, timeout=self._config.timeout, **settings
        )
        return self._validate(response)

    @staticmethod
    def _validate(response: requests.Response) -> requests.Response:
        if is_success(response.status_code):
            return response
        if response.status_code >= 500:
            kind = "Server Error"
        elif response.status_code >= 400:
            kind = "Client Error"
        else:
            kind = "Unexpected Status"
        raise requests.HTTPError(
            f"{response.status_code} {kind}: {response.reason} "
            f"for url: {response.url}",
            response=response,
        )


class InstrumentedTransport(RawTransport):
    """A :class:`RawTransport` whose failures pass through a recovery hook.

    The hook receives the raised :class:`requests.RequestException` while it
    is being handled.  Whatever response it returns becomes the result of
    :meth:`send`; whatever it raises propagates to the caller.
    """

    def __init__(
        self,
        session: requests.Session,
        config: ClientConfig,
        on_failure: FailureHook,
    ):
        super().__init__(session, config)
        self._on_failure = on_failure

    def send(
        self,
        descriptor: RequestDescriptor,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        try:
            return super().send(descriptor, headers)
        except requests.RequestException as e:
            return self._on_failure(e)
