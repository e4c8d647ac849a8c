"""
Plugin host – lifecycle and main-thread scheduling.

The host's main control thread is the thread running its asyncio loop.
Plugin lifecycle changes (enable / disable) happen only there; other
threads hand work over with schedule_on_main_thread().
"""

import asyncio
import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional

from config import TICK_SECONDS
from plugin_interface import HostPlugin, HostRuntime
from services.provider import ProviderAvailability

logger = logging.getLogger(__name__)


class PluginState(str, Enum):
    LOADED = "loaded"
    ENABLED = "enabled"
    DISABLED = "disabled"


class PluginHost(HostRuntime):
    """
    Runs plugins on *loop*. Must be constructed on the thread that runs
    (or will run) *loop*; that thread becomes the main thread.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, provider: ProviderAvailability):
        self._loop = loop
        self._provider = provider
        self._main_thread = threading.get_ident()
        self._plugins: dict[str, HostPlugin] = {}
        self._states: dict[str, PluginState] = {}
        self._lock = threading.Lock()
        self._closed = False

    @property
    def provider(self) -> ProviderAvailability:
        return self._provider

    @property
    def closed(self) -> bool:
        return self._closed

    def is_main_thread(self) -> bool:
        return threading.get_ident() == self._main_thread

    # -- Scheduling -----------------------------------------------------------

    def schedule_on_main_thread(self, task: Callable[[], Any], delay_ticks: int = 0) -> None:
        if self._closed:
            logger.debug("Host shut down; dropping task %r", task)
            return
        delay = max(0, delay_ticks) * TICK_SECONDS
        try:
            self._loop.call_soon_threadsafe(self._loop.call_later, delay, self._run_task, task)
        except RuntimeError:
            # Loop already closed
            logger.debug("Event loop closed; dropping task %r", task)

    def _run_task(self, task: Callable[[], Any]) -> None:
        if self._closed:
            return
        try:
            task()
        except Exception:
            logger.exception("Scheduled task %r failed", task)

    # -- Plugins --------------------------------------------------------------

    def register(self, plugin: HostPlugin) -> None:
        with self._lock:
            if plugin.name in self._plugins:
                raise ValueError(f"Plugin '{plugin.name}' is already registered")
            self._plugins[plugin.name] = plugin
            self._states[plugin.name] = PluginState.LOADED

    def get(self, name: str) -> Optional[HostPlugin]:
        with self._lock:
            return self._plugins.get(name)

    def state_of(self, name: str) -> Optional[PluginState]:
        with self._lock:
            return self._states.get(name)

    def _require_main_thread(self, action: str) -> None:
        if not self.is_main_thread():
            raise RuntimeError(f"{action} must be called from the host's main thread")

    def enable_plugin(self, plugin: HostPlugin) -> None:
        self._require_main_thread("enable_plugin")
        if self._closed:
            return
        with self._lock:
            if self._states.get(plugin.name) is PluginState.ENABLED:
                return
            self._plugins.setdefault(plugin.name, plugin)
            self._states[plugin.name] = PluginState.ENABLED
        logger.info("Enabling %s", plugin.name)
        try:
            plugin.on_enable(self)
        except Exception:
            logger.exception("Error enabling %s; disabling it", plugin.name)
            self.disable_feature(plugin)

    def enable_all(self) -> None:
        with self._lock:
            plugins = list(self._plugins.values())
        for plugin in plugins:
            self.enable_plugin(plugin)

    def disable_feature(self, feature: HostPlugin) -> None:
        self._require_main_thread("disable_feature")
        with self._lock:
            if self._states.get(feature.name) is not PluginState.ENABLED:
                return
            self._states[feature.name] = PluginState.DISABLED
        logger.info("Disabling %s", feature.name)
        try:
            feature.on_disable(self)
        except Exception:
            logger.exception("Error disabling %s", feature.name)

    def shutdown(self) -> None:
        """Disable every enabled plugin and stop accepting scheduled work."""
        if self._closed:
            return
        with self._lock:
            plugins = list(self._plugins.values())
        for plugin in reversed(plugins):
            self.disable_feature(plugin)
        self._closed = True

    def describe(self) -> list[dict]:
        with self._lock:
            items = [(p, self._states[name]) for name, p in self._plugins.items()]
        result = []
        for plugin, state in items:
            info = plugin.describe()
            info["state"] = state.value
            result.append(info)
        return result
