"""
Load plugins from the plugins/ folder.

Every *.py, *.pyz and *.whl file in the folder is imported and each
concrete HostPlugin subclass defined in it is instantiated. A plugin that
fails to import is logged and skipped; the host runs without it.
"""

from __future__ import annotations

import importlib
import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from types import ModuleType

from plugin_interface import HostPlugin

logger = logging.getLogger(__name__)

_ARCHIVE_SUFFIXES = (".pyz", ".whl")

# Names of plugins found by the last load_plugins() call; read by /api/info
loaded_plugins: list[str] = []


def _find_plugin_files(plugins_dir: Path) -> list[Path]:
    """Return plugin candidates in *plugins_dir*, sorted by name."""
    if not plugins_dir.is_dir():
        return []
    return sorted(
        p for p in plugins_dir.iterdir()
        if p.is_file()
        and not p.name.startswith("_")
        and (p.suffix == ".py" or p.suffix in _ARCHIVE_SUFFIXES)
    )


def _archive_module_name(path: Path) -> str:
    # Wheels are named <dist>-<version>-...; the top-level package is <dist>
    if path.suffix == ".whl":
        return path.stem.split("-", 1)[0]
    return path.stem


def _import_plugin_module(path: Path) -> ModuleType:
    """
    Import a plugin file.

    .py files are loaded under a private "plughost_plugins." name. .whl and
    .pyz are zip archives: the file goes on sys.path and its top-level
    package is imported.
    """
    if path.suffix == ".py":
        module_name = f"plughost_plugins.{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load {path.name}")
        mod = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = mod
        try:
            spec.loader.exec_module(mod)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        return mod

    path_str = str(path.resolve())
    if path_str not in sys.path:
        sys.path.insert(0, path_str)
    return importlib.import_module(_archive_module_name(path))


def _plugin_classes(mod: ModuleType) -> list[type[HostPlugin]]:
    """Concrete HostPlugin subclasses defined in *mod* (imported bases are skipped)."""
    found = []
    for _, cls in inspect.getmembers(mod, inspect.isclass):
        if (
            issubclass(cls, HostPlugin)
            and cls.__module__ == mod.__name__
            and not inspect.isabstract(cls)
        ):
            found.append(cls)
    return found


def load_plugins(plugins_dir: Path) -> list[HostPlugin]:
    """Import every plugin file in *plugins_dir* and return plugin instances."""
    plugins: list[HostPlugin] = []
    for path in _find_plugin_files(plugins_dir):
        try:
            mod = _import_plugin_module(path)
            classes = _plugin_classes(mod)
        except Exception:
            logger.exception("Could not load plugin file %s", path.name)
            continue
        if not classes:
            logger.warning("%s defines no plugin", path.name)
            continue
        for cls in classes:
            try:
                plugins.append(cls())
            except Exception:
                logger.exception("Could not create plugin %s from %s", cls.__name__, path.name)

    loaded_plugins[:] = [p.name for p in plugins]
    logger.info("Loaded %d plugin(s) from %s", len(plugins), plugins_dir)
    return plugins
