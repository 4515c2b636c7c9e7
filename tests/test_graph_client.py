from unittest.mock import MagicMock, patch

import pytest
import requests

from entra_cli.exceptions import GraphAPIError, NotAuthenticatedError, TransportError
from entra_cli.graph_client import GraphClient


def _response(status=200, json_data=None, text="", headers=None):
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status
    resp.headers = headers or {}
    resp.text = text
    if json_data is None:
        resp.json.side_effect = ValueError("No JSON")
    else:
        resp.json.return_value = json_data
    return resp


def _client(*responses, **kwargs):
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    session.get.side_effect = list(responses)
    return GraphClient(token="tok", session=session, base_url="https://graph.example", **kwargs), session


def test_sets_accept_and_bearer_headers():
    client, session = _client()
    assert session.headers["Accept"] == "application/json"
    assert session.headers["Authorization"] == "Bearer tok"


def test_get_resolves_relative_path():
    client, session = _client(_response(json_data={"id": "x"}))

    assert client.get("servicePrincipals/x") == {"id": "x"}
    url = session.get.call_args.args[0]
    assert url == "https://graph.example/v1.0/servicePrincipals/x"
    assert session.get.call_args.kwargs["timeout"] == 30


def test_absolute_urls_pass_through():
    client, _ = _client()
    link = "https://graph.example/v1.0/servicePrincipals?$skiptoken=1"
    assert client.url_for(link) == link


def test_http_error_raises_graph_api_error():
    client, _ = _client(_response(status=404, text='{"error":{"code":"Request_ResourceNotFound"}}'))

    with pytest.raises(GraphAPIError) as exc:
        client.get("servicePrincipals/missing")

    assert exc.value.status_code == 404
    assert not exc.value.is_auth_error()


def test_forbidden_is_auth_error():
    client, _ = _client(_response(status=403, text="Authorization_RequestDenied"))

    with pytest.raises(GraphAPIError) as exc:
        client.get("servicePrincipals")

    assert exc.value.is_auth_error()
    assert isinstance(exc.value, TransportError)


@patch("entra_cli.graph_client.time.sleep")
def test_retries_transient_errors(mock_sleep):
    client, session = _client(
        _response(status=503, text="busy"),
        _response(status=200, json_data={"value": []}),
    )

    assert client.get("servicePrincipals") == {"value": []}
    assert session.get.call_count == 2
    mock_sleep.assert_called_once_with(3)


@patch("entra_cli.graph_client.time.sleep")
def test_retry_after_header_is_honoured(mock_sleep):
    client, _ = _client(
        _response(status=429, text="throttled", headers={"Retry-After": "7"}),
        _response(status=200, json_data={}),
    )

    client.get("servicePrincipals")

    mock_sleep.assert_called_once_with(7.0)


@patch("entra_cli.graph_client.time.sleep")
def test_gives_up_after_max_retries(mock_sleep):
    client, session = _client(*[_response(status=429, text="throttled") for _ in range(3)])

    with pytest.raises(GraphAPIError) as exc:
        client.get("servicePrincipals")

    assert exc.value.is_throttled()
    assert session.get.call_count == 3
    assert mock_sleep.call_count == 2


def test_connection_error_becomes_transport_error():
    client, _ = _client(requests.ConnectionError("refused"))

    with pytest.raises(TransportError, match="refused"):
        client.get("servicePrincipals")


def test_malformed_json_becomes_transport_error():
    client, _ = _client(_response(status=200, text="<html>"))

    with pytest.raises(TransportError, match="Malformed JSON"):
        client.get("servicePrincipals")


def test_get_all_follows_next_link():
    client, session = _client(
        _response(json_data={"value": [1, 2], "@odata.nextLink": "https://graph.example/v1.0/next"}),
        _response(json_data={"value": [3]}),
    )

    assert client.get_all("servicePrincipals") == [1, 2, 3]
    assert session.get.call_args.args[0] == "https://graph.example/v1.0/next"


# ── Credentials ──────────────────────────────────────────────────────────


def test_from_environment_uses_access_token(monkeypatch):
    monkeypatch.setenv("ENTRA_ACCESS_TOKEN", "pre-acquired")

    client = GraphClient.from_environment()

    assert client._session.headers["Authorization"] == "Bearer pre-acquired"


def test_from_environment_without_credentials(monkeypatch):
    for var in ("ENTRA_ACCESS_TOKEN", "ENTRA_CLIENT_ID", "ENTRA_CLIENT_SECRET", "ENTRA_TENANT_ID"):
        monkeypatch.delenv(var, raising=False)

    with pytest.raises(NotAuthenticatedError, match="No credentials configured"):
        GraphClient.from_environment()


def test_from_environment_secret_requires_tenant(monkeypatch):
    monkeypatch.delenv("ENTRA_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("ENTRA_TENANT_ID", raising=False)
    monkeypatch.setenv("ENTRA_CLIENT_ID", "cid")
    monkeypatch.setenv("ENTRA_CLIENT_SECRET", "secret")

    with pytest.raises(NotAuthenticatedError, match="ENTRA_TENANT_ID is required"):
        GraphClient.from_environment()


@patch("entra_cli.graph_client.msal.ConfidentialClientApplication")
def test_from_environment_client_credentials(mock_app_cls, monkeypatch):
    monkeypatch.delenv("ENTRA_ACCESS_TOKEN", raising=False)
    monkeypatch.setenv("ENTRA_TENANT_ID", "tid")
    monkeypatch.setenv("ENTRA_CLIENT_ID", "cid")
    monkeypatch.setenv("ENTRA_CLIENT_SECRET", "secret")
    mock_app_cls.return_value.acquire_token_for_client.return_value = {"access_token": "app-token"}

    client = GraphClient.from_environment()

    assert client._session.headers["Authorization"] == "Bearer app-token"
    assert mock_app_cls.call_args.kwargs["authority"] == "https://login.microsoftonline.com/tid"


@patch("entra_cli.graph_client.msal.ConfidentialClientApplication")
def test_client_credentials_failure(mock_app_cls, monkeypatch):
    monkeypatch.delenv("ENTRA_ACCESS_TOKEN", raising=False)
    monkeypatch.setenv("ENTRA_TENANT_ID", "tid")
    monkeypatch.setenv("ENTRA_CLIENT_ID", "cid")
    monkeypatch.setenv("ENTRA_CLIENT_SECRET", "bad")
    mock_app_cls.return_value.acquire_token_for_client.return_value = {
        "error": "invalid_client", "error_description": "AADSTS7000215: Invalid client secret",
    }

    with pytest.raises(NotAuthenticatedError, match="Invalid client secret"):
        GraphClient.from_environment()


@patch("entra_cli.graph_client.msal.PublicClientApplication")
def test_from_environment_device_code(mock_app_cls, monkeypatch):
    monkeypatch.delenv("ENTRA_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("ENTRA_CLIENT_SECRET", raising=False)
    monkeypatch.delenv("ENTRA_TENANT_ID", raising=False)
    monkeypatch.setenv("ENTRA_CLIENT_ID", "cid")
    app = mock_app_cls.return_value
    app.initiate_device_flow.return_value = {"user_code": "ABC", "message": "Go to https://microsoft.com/devicelogin"}
    app.acquire_token_by_device_flow.return_value = {"access_token": "user-token"}
    shown = []

    client = GraphClient.from_environment(device_code_callback=shown.append)

    assert client._session.headers["Authorization"] == "Bearer user-token"
    assert shown[0]["user_code"] == "ABC"
    assert mock_app_cls.call_args.kwargs["authority"] == "https://login.microsoftonline.com/organizations"
