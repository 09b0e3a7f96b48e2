"""Shared fixtures.

HTTP is faked with :class:`FakeServer`, a :mod:`requests` transport adapter
mounted on the client's session, so no real network call is ever made.
"""

import io
import json
import threading
from http import HTTPStatus

import pytest
import requests
from requests.adapters import BaseAdapter

from autorefresh.client import AuthClient
from autorefresh.transport.config import ClientConfig
from autorefresh.transport.http import build_session

BASE_URL = "http://baseUrl.com/"
VALID_CLIENT_ID = "validClientId"
VALID_CLIENT_SECRET = "validClientSecret"
VALID_MAIN_TOKEN = "validMainToken"
VALID_REFRESH_TOKEN = "validRefreshToken"
TEST_PATH = "test"


def _url(path: str) -> str:
    # The transport lowercases the host name.
    if "://" in path:
        return path.lower()
    return (BASE_URL + path).lower()


class FakeServer(BaseAdapter):
    """In-process stand-in for the API server.

    Handlers receive the :class:`requests.PreparedRequest` and return a
    ``(status, body)`` or ``(status, body, headers)`` tuple; ``body`` is
    JSON-encoded unless it is ``None``.  Unknown routes answer 404.  Paths
    are relative to ``BASE_URL`` unless they are absolute URLs.
    """

    def __init__(self):
        super().__init__()
        self.routes = {}
        self.calls: list[requests.PreparedRequest] = []
        self.verify: list = []
        self._lock = threading.Lock()

    def route(self, method: str, path: str, handler) -> None:
        self.routes[(method, _url(path))] = handler

    def count(self, method: str, path: str) -> int:
        return len(self.requests_to(method, path))

    def requests_to(self, method: str, path: str) -> list:
        url = _url(path)
        return [
            r for r in self.calls
            if r.method == method and r.url.lower() == url
        ]

    def send(self, request, stream=False, timeout=None, verify=True,
             cert=None, proxies=None):
        with self._lock:
            self.calls.append(request)
            self.verify.append(verify)
        handler = self.routes.get((request.method, request.url.lower()))
        if handler is None:
            status, body, headers = 404, None, {}
        else:
            status, body, *rest = handler(request)
            headers = rest[0] if rest else {}

        response = requests.Response()
        response.status_code = status
        response.reason = HTTPStatus(status).phrase
        response.url = request.url
        response.request = request
        if isinstance(body, str):
            payload = body.encode("utf-8")
            response.headers["Content-Type"] = "text/plain"
        else:
            payload = b"" if body is None else json.dumps(body).encode("utf-8")
            response.headers["Content-Type"] = "application/json"
        response.headers.update(headers)
        response.raw = io.BytesIO(payload)
        response.encoding = "utf-8"
        return response

    def close(self):
        pass


def _json_body(request) -> dict:
    return json.loads(request.body) if request.body else {}


def _tokens():
    return 200, {"mainToken": VALID_MAIN_TOKEN, "refreshToken": VALID_REFRESH_TOKEN}


def login_handler(request):
    body = _json_body(request)
    if (
        body.get("clientId") == VALID_CLIENT_ID
        and body.get("clientSecret") == VALID_CLIENT_SECRET
    ):
        return _tokens()
    return 401, None


def refresh_handler(request):
    if _json_body(request).get("refreshToken") == VALID_REFRESH_TOKEN:
        return _tokens()
    return 401, None


def protected_handler(request):
    if request.headers.get("Authorization") == VALID_MAIN_TOKEN:
        return 200, True
    return 401, None


@pytest.fixture()
def server():
    """A fake API with login, refresh and one protected route."""
    fake = FakeServer()
    fake.route("POST", "login", login_handler)
    fake.route("POST", "refresh", refresh_handler)
    fake.route("POST", TEST_PATH, protected_handler)
    return fake


@pytest.fixture()
def make_client(server):
    """Return a factory building clients wired to ``server``."""
    clients = []

    def factory(**overrides) -> AuthClient:
        def session_factory(config):
            session = build_session(config)
            session.mount(BASE_URL, server)
            return session

        config = ClientConfig(base_url=BASE_URL, **overrides)
        client = AuthClient(config, session_factory=session_factory)
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


@pytest.fixture()
def client(make_client):
    return make_client()
