"""
In-memory ring buffer for host logs. Lets operators read recent gate and
plugin messages over the API without access to the console.
"""

import logging
import threading
from collections import deque

_MAX_LINES = 500
_FORMAT = "%(levelname)s %(name)s: %(message)s"

_buffer: deque[tuple[float, str]] = deque(maxlen=_MAX_LINES)
_lock = threading.Lock()
_handler: logging.Handler | None = None


def append(created: float, msg: str) -> None:
    """Add a log line to the buffer."""
    with _lock:
        _buffer.append((created, msg))


def get_recent() -> str:
    """Return recent logs as a single string."""
    with _lock:
        lines = [f"[{t:.1f}] {m}" for t, m in _buffer]
    return "\n".join(lines) if lines else "(no logs)"


def clear() -> None:
    with _lock:
        _buffer.clear()


class BufferHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            append(record.created, self.format(record))
        except Exception:
            self.handleError(record)


def install(logger: logging.Logger | None = None) -> None:
    """Attach the buffer to *logger* (root by default). Idempotent."""
    global _handler
    if _handler is not None:
        return
    _handler = BufferHandler()
    _handler.setFormatter(logging.Formatter(_FORMAT))
    (logger or logging.getLogger()).addHandler(_handler)
