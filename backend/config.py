"""
Application-wide constants and configuration.

Persistent, user-editable values live in services/settings.py.
This module only holds static constants.
"""

# ---------------------------------------------------------------------------
# Host metadata
# ---------------------------------------------------------------------------

APP_VERSION = "1.0.0"
APP_NAME = "PlugHost"
DEFAULT_PORT = 21342

# ---------------------------------------------------------------------------
# Authorization provider
# ---------------------------------------------------------------------------

PROVIDER_NAME = "PlugCore"
PROVIDER_URL = "https://plugcore.io"
DEFAULT_PROVIDER_MODULE = "plugcore"

# Seconds to wait for a single authorization query before treating it as a fault
QUERY_TIMEOUT = 15.0
# Per-request timeout for the HTTP provider client
REQUEST_TIMEOUT = 8

# ---------------------------------------------------------------------------
# Host scheduler
# ---------------------------------------------------------------------------

# 20 ticks per second
TICK_SECONDS = 0.05
# Authorization check runs 100 ticks (5 s) after a plugin is enabled
DEFAULT_ENABLE_DELAY_TICKS = 100
