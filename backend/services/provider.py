"""
Authorization provider contract and resolution.

The provider (PlugCore) holds licensing state for this host and answers
"is this server linked" / "is this plugin authorized" queries. It is an
external dependency: it may be installed as a Python module, reachable
over HTTP, or not present at all. resolve_provider() turns those cases
into a ProviderAvailability instead of letting an ImportError leak out.
"""

import importlib
import importlib.util
import logging
from abc import ABC, abstractmethod
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Optional

from services import settings

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Runtime fault while talking to the provider (network, timeout, bad data)."""


class AuthorizationProvider(ABC):
    @abstractmethod
    def is_server_linked(self) -> bool:
        """True if this host instance is linked to the provider."""

    @abstractmethod
    def is_plugin_authorized(self, consumer_id: str) -> "Future[bool]":
        """Start an authorization query for *consumer_id*; resolves to a bool."""

    def require_authorization(self, consumer_id: str, timeout: Optional[float] = None) -> bool:
        """Blocking link check + authorization query. False when not linked."""
        if not self.is_server_linked():
            return False
        return bool(self.is_plugin_authorized(consumer_id).result(timeout=timeout))


@dataclass(frozen=True)
class ProviderAvailability:
    provider: Optional[AuthorizationProvider]
    source: str = ""
    reason: str = ""

    @property
    def available(self) -> bool:
        return self.provider is not None

    @classmethod
    def missing(cls, reason: str) -> "ProviderAvailability":
        return cls(provider=None, reason=reason)

    def to_dict(self) -> dict:
        return {"available": self.available, "source": self.source, "reason": self.reason}


def _load_module_provider(module_name: str) -> ProviderAvailability:
    try:
        spec = importlib.util.find_spec(module_name)
    except (ImportError, ValueError):
        spec = None
    if spec is None:
        return ProviderAvailability.missing(f"module '{module_name}' is not installed")

    try:
        mod = importlib.import_module(module_name)
        factory = getattr(mod, "get_provider", None)
        if not callable(factory):
            return ProviderAvailability.missing(f"module '{module_name}' has no get_provider()")
        provider = factory()
    except Exception as exc:
        logger.warning("Loading provider module %s failed: %s", module_name, exc)
        return ProviderAvailability.missing(f"module '{module_name}' failed to load: {exc}")

    if not isinstance(provider, AuthorizationProvider):
        return ProviderAvailability.missing(
            f"module '{module_name}' returned {type(provider).__name__}, not a provider"
        )
    return ProviderAvailability(provider=provider, source=f"module:{module_name}")


def resolve_provider(
    module_name: Optional[str] = None,
    url: Optional[str] = None,
    server_id: Optional[str] = None,
    token: Optional[str] = None,
) -> ProviderAvailability:
    """
    Resolve the authorization provider once at host startup.

    A configured provider URL wins over the module lookup. Arguments left
    as None are read from settings.
    """
    url = settings.get_provider_url() if url is None else url.strip()
    if url:
        from services.plugcore_client import PlugCoreClient

        server_id = settings.get_server_id() if server_id is None else server_id
        if not server_id:
            return ProviderAvailability.missing("provider URL set but no server id configured")
        token = settings.get_provider_token() if token is None else token
        client = PlugCoreClient(url, server_id, token)
        return ProviderAvailability(provider=client, source=f"http:{client.base_url}")

    return _load_module_provider(module_name or settings.get_provider_module())
