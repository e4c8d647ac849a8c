"""
Authorization gate – decide once per enable whether a plugin may run.

Order of a check:
  1. provider missing            -> provider_missing
  2. server not linked           -> unauthorized ("not linked"), no query issued
  3. one is_plugin_authorized()  -> authorized / unauthorized ("not purchased")
     non-bool answer             -> provider_error ("malformed response")
  any exception along the way    -> provider_error(detail)

Every outcome other than authorized disables the plugin. The disable
request always reaches the host on its main thread: when the query
completes on a worker thread it is scheduled there instead of called.
"""

import inspect
import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from config import PROVIDER_NAME, PROVIDER_URL, QUERY_TIMEOUT
from plugin_interface import HostPlugin, HostRuntime
from services.provider import ProviderAvailability

NOT_LINKED = "not linked"
NOT_PURCHASED = "not purchased"
MALFORMED = "malformed response"


class Outcome(str, Enum):
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"
    PROVIDER_MISSING = "provider_missing"
    PROVIDER_ERROR = "provider_error"


class GateState(str, Enum):
    START = "start"
    CHECKING = "checking"
    ENABLED = "enabled"
    DISABLED = "disabled"


@dataclass(frozen=True)
class AuthorizationResult:
    outcome: Outcome
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.AUTHORIZED

    @classmethod
    def authorized(cls) -> "AuthorizationResult":
        return cls(Outcome.AUTHORIZED)

    @classmethod
    def unauthorized(cls, detail: str) -> "AuthorizationResult":
        return cls(Outcome.UNAUTHORIZED, detail)

    @classmethod
    def provider_missing(cls, detail: str = "") -> "AuthorizationResult":
        return cls(Outcome.PROVIDER_MISSING, detail)

    @classmethod
    def provider_error(cls, detail: str) -> "AuthorizationResult":
        return cls(Outcome.PROVIDER_ERROR, detail)

    def to_dict(self) -> dict:
        return {"outcome": self.outcome.value, "detail": self.detail}


def describe_error(exc: BaseException) -> str:
    """Short operator-facing text for a provider fault."""
    text = str(exc).strip()
    if text:
        return text
    if isinstance(exc, (TimeoutError, FutureTimeout)):
        return "timeout"
    return type(exc).__name__


class AuthorizationGate:
    """
    One authorization decision for one plugin enable.

    evaluate() and evaluate_async() may be called any number of times and
    query the provider on every call. start() drives the gate through
    start -> checking -> enabled/disabled exactly once.
    """

    def __init__(
        self,
        consumer_id: str,
        availability: ProviderAvailability,
        host: HostRuntime,
        feature: HostPlugin,
        *,
        logger: Optional[logging.Logger] = None,
        timeout: float = QUERY_TIMEOUT,
        on_authorized: Optional[Callable[[], None]] = None,
    ):
        self.consumer_id = consumer_id
        self.timeout = timeout
        self._availability = availability
        self._host = host
        self._feature = feature
        self._log = logger or logging.getLogger(__name__)
        self._on_authorized = on_authorized
        self._lock = threading.Lock()
        self._state = GateState.START
        self._result: Optional[AuthorizationResult] = None
        self._cancelled = False

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def result(self) -> Optional[AuthorizationResult]:
        return self._result

    # -- Evaluation -----------------------------------------------------------

    def _report(self, result: AuthorizationResult) -> AuthorizationResult:
        if result.ok:
            self._log.info("%s enabled and authorized.", self.consumer_id)
        elif result.outcome is Outcome.PROVIDER_MISSING:
            self._log.error("%s not found! Download from %s", PROVIDER_NAME, PROVIDER_URL)
        elif result.outcome is Outcome.PROVIDER_ERROR:
            self._log.error("Authorization error: %s", result.detail)
        elif result.detail == NOT_LINKED:
            self._log.error("Server not linked to %s! Link it at %s", PROVIDER_NAME, PROVIDER_URL)
        else:
            self._log.error(
                "Not authorized! %s must be purchased at %s", self.consumer_id, PROVIDER_URL
            )
        return result

    def _begin(self) -> Union[AuthorizationResult, Future]:
        """Link check then query. Returns a finished result or the pending query."""
        provider = self._availability.provider
        if provider is None:
            return AuthorizationResult.provider_missing(self._availability.reason)
        try:
            if not provider.is_server_linked():
                return AuthorizationResult.unauthorized(NOT_LINKED)
            query = provider.is_plugin_authorized(self.consumer_id)
        except Exception as exc:
            return AuthorizationResult.provider_error(describe_error(exc))
        if isinstance(query, Future):
            return query
        # synchronous providers answer directly
        return self._map(query)

    @staticmethod
    def _map(authorized) -> AuthorizationResult:
        if isinstance(authorized, bool):
            if authorized:
                return AuthorizationResult.authorized()
            return AuthorizationResult.unauthorized(NOT_PURCHASED)
        if inspect.iscoroutine(authorized):
            # async providers are not supported; never leave the coroutine pending
            authorized.close()
        return AuthorizationResult.provider_error(MALFORMED)

    def evaluate(self) -> AuthorizationResult:
        """Blocking check; waits up to ``timeout`` for the query."""
        pending = self._begin()
        if isinstance(pending, AuthorizationResult):
            return self._report(pending)
        try:
            result = self._map(pending.result(timeout=self.timeout))
        except Exception as exc:
            result = AuthorizationResult.provider_error(describe_error(exc))
        return self._report(result)

    def evaluate_async(self, on_done: Callable[[AuthorizationResult], None]) -> None:
        """
        Non-blocking check. *on_done* runs once, on the thread that finished
        the query (or on the caller's thread if no query was needed).
        """
        pending = self._begin()
        if isinstance(pending, AuthorizationResult):
            on_done(self._report(pending))
            return

        def _completed(fut: Future):
            try:
                result = self._map(fut.result())
            except Exception as exc:
                result = AuthorizationResult.provider_error(describe_error(exc))
            on_done(self._report(result))

        pending.add_done_callback(_completed)

    # -- Decision -------------------------------------------------------------

    def start(self) -> None:
        """Run the one decision for this enable."""
        with self._lock:
            if self._cancelled:
                return
            if self._state is not GateState.START:
                self._log.warning(
                    "Authorization check for %s already ran (%s)", self.consumer_id, self._state.value
                )
                return
            self._state = GateState.CHECKING
        self.evaluate_async(self.on_outcome)

    def cancel(self) -> None:
        """
        End this enable's gate without a decision. The plugin was disabled
        (or re-enabled with a new gate); a pending check or authorized hook
        must not act on it any more.
        """
        with self._lock:
            self._cancelled = True
            self._state = GateState.DISABLED

    def on_outcome(self, result: AuthorizationResult) -> None:
        with self._lock:
            if self._state in (GateState.ENABLED, GateState.DISABLED):
                return
            self._result = result
            self._state = GateState.ENABLED if result.ok else GateState.DISABLED

        if result.ok:
            if self._on_authorized is not None:
                self._on_main_thread(self._run_authorized)
            return
        self._on_main_thread(self._disable)

    def _run_authorized(self) -> None:
        with self._lock:
            if self._state is not GateState.ENABLED:
                return
        try:
            self._on_authorized()
        except Exception:
            self._log.exception("%s failed to start after authorization; disabling it", self.consumer_id)
            with self._lock:
                self._state = GateState.DISABLED
            self._on_main_thread(self._disable)

    def _disable(self) -> None:
        self._host.disable_feature(self._feature)

    def _on_main_thread(self, task: Callable[[], None]) -> None:
        if self._host.is_main_thread():
            task()
        else:
            self._host.schedule_on_main_thread(task, 0)
