"""
HTTP client for a remote PlugCore provider.

Endpoints:
  GET {base}/api/v1/servers/{server_id}                        -> {"linked": bool}
  GET {base}/api/v1/servers/{server_id}/plugins/{consumer_id}  -> {"authorized": bool}
"""

import threading
from concurrent.futures import Future
from urllib.parse import quote

import requests

from config import REQUEST_TIMEOUT
from services.provider import AuthorizationProvider, ProviderError


class PlugCoreClient(AuthorizationProvider):
    def __init__(
        self,
        base_url: str,
        server_id: str,
        token: str = "",
        *,
        timeout: float = REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.server_id = server_id
        self.timeout = timeout
        self._token = token
        self._session = session or requests.Session()

    def _get(self, path: str) -> dict:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            resp = self._session.get(f"{self.base_url}{path}", headers=headers, timeout=self.timeout)
            resp.raise_for_status()
        except requests.Timeout:
            raise ProviderError("timeout")
        except requests.RequestException as exc:
            raise ProviderError(str(exc)) from exc
        try:
            data = resp.json()
        except ValueError:
            raise ProviderError("malformed response")
        if not isinstance(data, dict):
            raise ProviderError("malformed response")
        return data

    @staticmethod
    def _flag(data: dict, key: str) -> bool:
        value = data.get(key)
        if not isinstance(value, bool):
            raise ProviderError("malformed response")
        return value

    def is_server_linked(self) -> bool:
        data = self._get(f"/api/v1/servers/{quote(self.server_id, safe='')}")
        return self._flag(data, "linked")

    def is_plugin_authorized(self, consumer_id: str) -> "Future[bool]":
        future: Future = Future()
        path = (
            f"/api/v1/servers/{quote(self.server_id, safe='')}"
            f"/plugins/{quote(consumer_id, safe='')}"
        )

        def _worker():
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self._flag(self._get(path), "authorized"))
            except Exception as exc:
                future.set_exception(exc)

        t = threading.Thread(target=_worker, daemon=True)
        t.start()
        return future
