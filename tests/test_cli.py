"""Unit tests for CLI commands.

All tests use Typer's CliRunner and mock _get_client so that no real
HTTP requests are made.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests
from typer.testing import CliRunner

from autorefresh.core.exceptions import RedirectRequiredError
from autorefresh_cli.main import app

runner = CliRunner()

_CREDENTIALS = ["--client-id", "my-id", "--client-secret", "my-secret"]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _http_error(status: int, reason: str) -> requests.HTTPError:
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    return requests.HTTPError(f"{status} {reason}", response=response)


@pytest.fixture()
def mock_client():
    client = MagicMock()
    client.__enter__.return_value = client
    client.request.return_value = {"ok": True}
    return client


@pytest.fixture(autouse=True)
def no_credentials_env(monkeypatch):
    monkeypatch.delenv("AUTOREFRESH_CLIENT_ID", raising=False)
    monkeypatch.delenv("AUTOREFRESH_CLIENT_SECRET", raising=False)


# ---------------------------------------------------------------------------
# login command
# ---------------------------------------------------------------------------


def test_login_success(mock_client):
    with patch("autorefresh_cli.main._get_client", return_value=mock_client):
        result = runner.invoke(app, ["login", *_CREDENTIALS])
    assert result.exit_code == 0
    assert "Logged in" in result.output
    mock_client.login.assert_called_once_with("my-id", "my-secret")


def test_login_reads_credentials_from_env(mock_client, monkeypatch):
    monkeypatch.setenv("AUTOREFRESH_CLIENT_ID", "env-id")
    monkeypatch.setenv("AUTOREFRESH_CLIENT_SECRET", "env-secret")
    with patch("autorefresh_cli.main._get_client", return_value=mock_client):
        result = runner.invoke(app, ["login"])
    assert result.exit_code == 0
    mock_client.login.assert_called_once_with("env-id", "env-secret")


def test_login_rejected_credentials(mock_client):
    mock_client.login.side_effect = _http_error(401, "Unauthorized")
    with patch("autorefresh_cli.main._get_client", return_value=mock_client):
        result = runner.invoke(app, ["login", *_CREDENTIALS])
    assert result.exit_code == 1
    assert "HTTP 401" in result.output


def test_login_without_credentials(mock_client):
    with patch("autorefresh_cli.main._get_client", return_value=mock_client):
        result = runner.invoke(app, ["login"])
    assert result.exit_code == 1
    mock_client.login.assert_not_called()


def test_missing_base_url_exits(monkeypatch):
    monkeypatch.delenv("AUTOREFRESH_BASE_URL", raising=False)
    result = runner.invoke(app, ["login", *_CREDENTIALS])
    assert result.exit_code == 1
    assert "AUTOREFRESH_BASE_URL" in result.output


# ---------------------------------------------------------------------------
# request command
# ---------------------------------------------------------------------------


def test_request_json_output(mock_client):
    with patch("autorefresh_cli.main._get_client", return_value=mock_client):
        result = runner.invoke(
            app, ["request", "GET", "items", *_CREDENTIALS]
        )
    assert result.exit_code == 0
    assert json.loads(result.output) == {"ok": True}
    mock_client.request.assert_called_once_with("GET", "items", None)


def test_request_passes_json_body(mock_client):
    with patch("autorefresh_cli.main._get_client", return_value=mock_client):
        result = runner.invoke(
            app,
            ["request", "POST", "test", "--data", '{"a": 1}', *_CREDENTIALS],
        )
    assert result.exit_code == 0
    mock_client.request.assert_called_once_with("POST", "test", {"a": 1})


def test_request_raw_output(mock_client):
    mock_client.request.return_value = "plain text"
    with patch("autorefresh_cli.main._get_client", return_value=mock_client):
        result = runner.invoke(
            app,
            ["request", "GET", "motd", "--output", "raw", *_CREDENTIALS],
        )
    assert result.exit_code == 0
    assert result.output.strip() == "plain text"


def test_request_invalid_json_body(mock_client):
    with patch("autorefresh_cli.main._get_client", return_value=mock_client):
        result = runner.invoke(
            app,
            ["request", "POST", "test", "--data", "{nope", *_CREDENTIALS],
        )
    assert result.exit_code == 1
    mock_client.request.assert_not_called()


def test_request_redirect_asks_to_log_in(mock_client):
    mock_client.request.side_effect = RedirectRequiredError(
        _http_error(401, "Unauthorized")
    )
    with patch("autorefresh_cli.main._get_client", return_value=mock_client):
        result = runner.invoke(
            app, ["request", "POST", "test", *_CREDENTIALS]
        )
    assert result.exit_code == 1
    assert "Log in again" in result.output


def test_request_server_error(mock_client):
    mock_client.request.side_effect = _http_error(500, "Internal Server Error")
    with patch("autorefresh_cli.main._get_client", return_value=mock_client):
        result = runner.invoke(
            app, ["request", "GET", "test500", *_CREDENTIALS]
        )
    assert result.exit_code == 1
    assert "HTTP 500" in result.output
