"""
Plugin and host interfaces.

Plugins implement HostPlugin and are driven by the host through
on_enable / on_disable. The host side is described by HostRuntime so
plugins (and the authorization gate) never depend on the concrete
PluginHost and can be exercised against a test double.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from services.provider import ProviderAvailability


class HostRuntime(ABC):
    """What a plugin may ask of the host that runs it."""

    @property
    @abstractmethod
    def provider(self) -> "ProviderAvailability":
        """Authorization provider resolved at host startup."""

    @abstractmethod
    def is_main_thread(self) -> bool:
        """True when called from the host's main control thread."""

    @abstractmethod
    def schedule_on_main_thread(self, task: Callable[[], Any], delay_ticks: int = 0) -> None:
        """Run *task* on the main thread after *delay_ticks*. Safe from any thread."""

    @abstractmethod
    def disable_feature(self, feature: "HostPlugin") -> None:
        """Disable *feature*. Must be called from the main thread."""


class HostPlugin(ABC):
    """
    A feature loaded and managed by the host.

    Subclasses set ``name`` (defaults to the class name) and implement
    on_enable. Lifecycle callbacks always run on the host's main thread.
    """

    name: str = ""

    def __init__(self) -> None:
        if not self.name:
            self.name = type(self).__name__
        self.logger = logging.getLogger(f"plugins.{self.name}")

    @abstractmethod
    def on_enable(self, host: HostRuntime) -> None:
        """Called once each time the host enables the plugin."""

    def on_disable(self, host: HostRuntime) -> None:
        """Called when the host disables the plugin or shuts down."""

    def describe(self) -> dict:
        return {"name": self.name}
