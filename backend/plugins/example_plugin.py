"""
Example plugin: does nothing until PlugCore says this server may run it.
"""

from gated_plugin import GatedPlugin


class ExamplePlugin(GatedPlugin):
    name = "PlugCoreExamplePlugin"

    def on_authorized(self) -> None:
        self.logger.info("%s is ready.", self.name)
