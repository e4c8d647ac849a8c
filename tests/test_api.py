from __future__ import annotations

import textwrap
import time
import uuid

import pytest
from fastapi.testclient import TestClient

from main import create_app
from services import settings

PLUGINS = """
from gated_plugin import GatedPlugin
from plugin_interface import HostPlugin


class Paid(GatedPlugin):
    name = "Paid"
    enable_delay_ticks = 0


class Free(HostPlugin):
    name = "Free"

    def on_enable(self, host):
        pass
"""

PROVIDER = """
from concurrent.futures import Future

from services.provider import AuthorizationProvider


class Provider(AuthorizationProvider):
    def is_server_linked(self):
        return True

    def is_plugin_authorized(self, consumer_id):
        f = Future()
        f.set_result(consumer_id == "Paid")
        return f


def get_provider():
    return Provider()
"""


@pytest.fixture
def plugins_dir(tmp_path, monkeypatch):
    path = tmp_path / "plugins"
    path.mkdir()
    (path / f"api_plugins_{uuid.uuid4().hex[:8]}.py").write_text(PLUGINS, encoding="utf-8")
    monkeypatch.setenv("PLUGHOST_PLUGINS_DIR", str(path))
    return path


@pytest.fixture
def provider_module(tmp_path, monkeypatch):
    name = f"api_provider_{uuid.uuid4().hex[:8]}"
    (tmp_path / f"{name}.py").write_text(textwrap.dedent(PROVIDER), encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    settings.set_provider(module=name)
    return name


def wait_for_state(client, name, state, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        info = client.get(f"/api/plugins/{name}").json()
        if info["state"] == state:
            return info
        time.sleep(0.02)
    raise AssertionError(f"{name} never reached {state}")


def test_health(plugins_dir):
    with TestClient(create_app()) as client:
        assert client.get("/api/health").json() == {"ok": True}


def test_missing_provider_disables_gated_plugin(plugins_dir):
    settings.set_provider(module="plughost_no_such_provider")

    with TestClient(create_app()) as client:
        info = client.get("/api/info").json()
        assert info["provider"]["available"] is False
        assert sorted(info["loaded_plugins"]) == ["Free", "Paid"]

        paid = wait_for_state(client, "Paid", "disabled")
        assert paid["outcome"] == "provider_missing"
        assert client.get("/api/plugins/Free").json()["state"] == "enabled"

        resp = client.get("/api/authorization/status")
        assert resp.status_code == 503
        assert "PlugCore not found" in resp.json()["detail"]


def test_authorized_plugin_stays_enabled(plugins_dir, provider_module):
    with TestClient(create_app()) as client:
        assert client.get("/api/info").json()["provider"]["source"] == f"module:{provider_module}"

        deadline = time.monotonic() + 3
        while client.get("/api/plugins/Paid").json()["gate"] != "enabled":
            assert time.monotonic() < deadline
            time.sleep(0.02)

        plugins = {p["name"]: p for p in client.get("/api/plugins").json()["plugins"]}
        assert plugins["Paid"]["state"] == "enabled"
        assert plugins["Paid"]["outcome"] == "authorized"

        assert client.get("/api/authorization/status").json()["linked"] is True
        assert client.get("/api/authorization/Paid").json()["authorized"] is True
        assert client.get("/api/authorization/Other").json()["authorized"] is False


def test_unknown_plugin_404(plugins_dir):
    with TestClient(create_app()) as client:
        assert client.get("/api/plugins/Nope").status_code == 404


def test_provider_settings_roundtrip(plugins_dir):
    with TestClient(create_app()) as client:
        bad = client.put("/api/settings/provider", json={"url": "ftp://auth"})
        assert bad.status_code == 400

        ok = client.put(
            "/api/settings/provider",
            json={"url": "https://auth.example.com/", "server_id": "srv-1", "token": "t0k"},
        )
        assert ok.json() == {"ok": True, "restart_required": True}

        data = client.get("/api/settings").json()
        assert data["provider_url"] == "https://auth.example.com"
        assert data["server_id"] == "srv-1"
        assert data["provider_token"] == "***"
        assert settings.get_provider_token() == "t0k"


def test_enable_delay_setting(plugins_dir):
    with TestClient(create_app()) as client:
        assert client.put("/api/settings/enable-delay", json={"ticks": -1}).status_code == 400
        assert client.put("/api/settings/enable-delay", json={"ticks": 20}).json()["ticks"] == 20


def test_recent_logs_endpoint(plugins_dir):
    from utils import log_buffer

    log_buffer.clear()
    log_buffer.append(0.0, "INFO plugins.Paid: Paid enabled and authorized.")

    with TestClient(create_app()) as client:
        logs = client.get("/api/debug/recent-logs").json()["logs"]

    assert "Paid enabled and authorized." in logs


FAULTY_PROVIDER = """
from services.provider import AuthorizationProvider, ProviderError


class Provider(AuthorizationProvider):
    def is_server_linked(self):
        raise ProviderError("provider offline")

    def is_plugin_authorized(self, consumer_id):
        raise ProviderError("provider offline")


def get_provider():
    return Provider()
"""


def test_provider_fault_is_502(plugins_dir, tmp_path, monkeypatch):
    name = f"api_faulty_{uuid.uuid4().hex[:8]}"
    (tmp_path / f"{name}.py").write_text(FAULTY_PROVIDER, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    settings.set_provider(module=name)

    with TestClient(create_app()) as client:
        status = client.get("/api/authorization/status")
        assert status.status_code == 502
        assert status.json()["detail"] == "Authorization error: provider offline"

        check = client.get("/api/authorization/Paid")
        assert check.status_code == 502
        assert "provider offline" in check.json()["detail"]

        paid = wait_for_state(client, "Paid", "disabled")
        assert paid["outcome"] == "provider_error"
