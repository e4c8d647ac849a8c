"""
Persistent host settings stored in %APPDATA%/PlugHost/settings.json.

Set PLUGHOST_HOME to keep settings somewhere else.

This module intentionally has no project imports besides config to avoid
circular dependencies (paths.py imports from here).
"""

import json
import os
from typing import Optional

from config import DEFAULT_ENABLE_DELAY_TICKS, DEFAULT_PROVIDER_MODULE

_SETTINGS_DIR = os.environ.get("PLUGHOST_HOME") or os.path.join(
    os.environ.get("APPDATA", os.path.expanduser("~")),
    "PlugHost",
)
_SETTINGS_FILE = os.path.join(_SETTINGS_DIR, "settings.json")

_cache: dict | None = None


def _load() -> dict:
    global _cache
    if os.path.isfile(_SETTINGS_FILE):
        with open(_SETTINGS_FILE, "r", encoding="utf-8") as f:
            _cache = json.load(f)
    else:
        _cache = {}
    return _cache


def _save(data: dict) -> None:
    global _cache
    os.makedirs(os.path.dirname(_SETTINGS_FILE), exist_ok=True)
    with open(_SETTINGS_FILE, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    _cache = data


def load() -> dict:
    if _cache is None:
        return _load()
    return _cache


def get_all() -> dict:
    """Return a copy of all settings with the provider token masked."""
    data = dict(load())
    if data.get("provider_token"):
        data["provider_token"] = "***"
    return data


# -- Authorization provider ---------------------------------------------------

def get_provider_module() -> str:
    """Importable module that exposes get_provider()."""
    return load().get("provider_module") or DEFAULT_PROVIDER_MODULE


def get_provider_url() -> str:
    """Base URL of a remote provider, or empty string to use the module."""
    return (load().get("provider_url") or "").strip()


def get_server_id() -> str:
    """Identity this host was linked under, or empty string."""
    return (load().get("server_id") or "").strip()


def get_provider_token() -> str:
    return (load().get("provider_token") or "").strip()


def set_provider(
    url: Optional[str] = None,
    server_id: Optional[str] = None,
    token: Optional[str] = None,
    module: Optional[str] = None,
) -> None:
    """Update provider settings. None leaves a value untouched. Takes effect on restart."""
    s = load()
    if url is not None:
        s["provider_url"] = url.strip().rstrip("/")
    if server_id is not None:
        s["server_id"] = server_id.strip()
    if token is not None:
        s["provider_token"] = token.strip()
    if module is not None:
        s["provider_module"] = module.strip()
    _save(s)


# -- Plugins ------------------------------------------------------------------

def get_enable_delay_ticks() -> int:
    """Ticks between a plugin's enable and its authorization check."""
    v = load().get("enable_delay_ticks")
    try:
        return max(0, int(v))
    except (ValueError, TypeError):
        return DEFAULT_ENABLE_DELAY_TICKS


def set_enable_delay_ticks(ticks: int) -> None:
    s = load()
    s["enable_delay_ticks"] = max(0, int(ticks))
    _save(s)


def get_plugins_dir() -> str:
    """Custom plugins folder, or empty string for the default next to the backend."""
    return load().get("plugins_dir", "")


def set_plugins_dir(path: str) -> None:
    s = load()
    s["plugins_dir"] = os.path.abspath(path) if path else ""
    _save(s)
