"""
Centralised path helpers.

  - get_base_dir()        → folder next to the backend exe when frozen, else backend/
  - resolve_plugins_dir() → configured plugins folder, or <base>/plugins
"""

import os
import sys
from pathlib import Path

from services.settings import get_plugins_dir


def get_base_dir() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    # Running from source: backend/utils/paths.py -> backend/
    return Path(__file__).resolve().parent.parent


def resolve_plugins_dir() -> Path:
    """Return the folder scanned for plugins."""
    custom = get_plugins_dir()
    if custom:
        return Path(custom)
    return get_base_dir() / "plugins"


def ensure_dir(path: str) -> str:
    """Create *path* (and parents) if it doesn't exist.  Returns the path."""
    os.makedirs(path, exist_ok=True)
    return path
