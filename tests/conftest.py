from __future__ import annotations

import pytest

from services import settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the settings file at a per-test location."""
    monkeypatch.setattr(settings, "_SETTINGS_FILE", str(tmp_path / "home" / "settings.json"))
    monkeypatch.setattr(settings, "_cache", None)
    return tmp_path / "home"
