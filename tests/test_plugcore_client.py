from __future__ import annotations

import logging

import pytest
import requests

from fakes import FakeHost, RecordingPlugin
from services.authorization import AuthorizationGate, AuthorizationResult
from services.plugcore_client import PlugCoreClient
from services.provider import ProviderAvailability, ProviderError


class FakeResponse:
    def __init__(self, payload=None, status=200, bad_json=False):
        self._payload = payload
        self.status_code = status
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    def __init__(self, responses):
        # url suffix -> FakeResponse or exception
        self.responses = responses
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, headers, timeout))
        for suffix, resp in self.responses.items():
            if url.endswith(suffix):
                if isinstance(resp, Exception):
                    raise resp
                return resp
        return FakeResponse(status=404)


def make_client(responses, token="secret"):
    session = FakeSession(responses)
    client = PlugCoreClient("https://auth.example.com/", "srv 1", token, timeout=3, session=session)
    return client, session


def test_link_state_request():
    client, session = make_client({"/servers/srv%201": FakeResponse({"linked": True})})

    assert client.is_server_linked() is True
    url, headers, timeout = session.calls[0]
    assert url == "https://auth.example.com/api/v1/servers/srv%201"
    assert headers["Authorization"] == "Bearer secret"
    assert timeout == 3


def test_no_token_sends_no_auth_header():
    client, session = make_client({"/servers/srv%201": FakeResponse({"linked": False})}, token="")

    assert client.is_server_linked() is False
    assert "Authorization" not in session.calls[0][1]


def test_authorization_query_resolves_on_worker_thread():
    client, session = make_client(
        {"/plugins/My%20Plugin": FakeResponse({"authorized": True})}
    )

    future = client.is_plugin_authorized("My Plugin")

    assert future.result(timeout=5) is True
    assert session.calls[0][0].endswith("/api/v1/servers/srv%201/plugins/My%20Plugin")


def test_timeout_becomes_provider_error():
    client, _ = make_client({"/servers/srv%201": requests.ConnectTimeout("timed out")})

    with pytest.raises(ProviderError, match="^timeout$"):
        client.is_server_linked()


def test_http_error_becomes_provider_error():
    client, _ = make_client({"/plugins/X": FakeResponse(status=500)})

    exc = client.is_plugin_authorized("X").exception(timeout=5)

    assert isinstance(exc, ProviderError)
    assert "500" in str(exc)


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(bad_json=True),
        FakeResponse(["linked"]),
        FakeResponse({"status": "ok"}),
        FakeResponse({"linked": "true"}),
    ],
)
def test_malformed_response(response):
    client, _ = make_client({"/servers/srv%201": response})

    with pytest.raises(ProviderError, match="malformed response"):
        client.is_server_linked()


def test_gate_reports_client_timeout(caplog):
    caplog.set_level(logging.INFO)
    client, _ = make_client(
        {
            "/servers/srv%201": FakeResponse({"linked": True}),
            "/plugins/RecordingPlugin": requests.ReadTimeout("read timed out"),
        }
    )
    availability = ProviderAvailability(provider=client, source="http:test")
    host = FakeHost(availability)
    plugin = RecordingPlugin()
    gate = AuthorizationGate(plugin.name, availability, host, plugin)

    result = gate.evaluate()

    assert result == AuthorizationResult.provider_error("timeout")
    assert "Authorization error: timeout" in caplog.text
