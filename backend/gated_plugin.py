"""
Base class for plugins that only run once PlugCore has authorized them.

Subclass GatedPlugin instead of HostPlugin and put startup work that
needs a license in on_authorized():

    class MyPlugin(GatedPlugin):
        name = "MyPlugin"

        def on_authorized(self):
            self.logger.info("Ready")
"""

from typing import Optional

from plugin_interface import HostPlugin, HostRuntime
from services import settings
from services.authorization import AuthorizationGate


class GatedPlugin(HostPlugin):
    # None -> use the enable_delay_ticks setting
    enable_delay_ticks: Optional[int] = None

    def __init__(self) -> None:
        super().__init__()
        self.gate: Optional[AuthorizationGate] = None

    @property
    def consumer_id(self) -> str:
        """Identity sent to the provider. Defaults to the plugin name."""
        return self.name

    def on_enable(self, host: HostRuntime) -> None:
        # Fresh gate per enable: a re-enable always queries the provider again.
        # A check still pending from an earlier enable must not decide this one.
        if self.gate is not None:
            self.gate.cancel()
        self.gate = AuthorizationGate(
            self.consumer_id,
            host.provider,
            host,
            self,
            logger=self.logger,
            on_authorized=self.on_authorized,
        )
        delay = self.enable_delay_ticks
        if delay is None:
            delay = settings.get_enable_delay_ticks()
        host.schedule_on_main_thread(self.gate.start, delay)
        self.logger.info("%s enabled - authorization check scheduled.", self.name)

    def on_authorized(self) -> None:
        """Runs on the main thread after a successful authorization."""

    def on_disable(self, host: HostRuntime) -> None:
        if self.gate is not None:
            self.gate.cancel()
        self.logger.info("%s disabled.", self.name)

    def describe(self) -> dict:
        info = super().describe()
        gate = self.gate
        info["gate"] = gate.state.value if gate else None
        result = gate.result if gate else None
        info["outcome"] = result.outcome.value if result else None
        info["detail"] = result.detail if result else ""
        return info
