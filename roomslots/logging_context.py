"""Per-query correlation IDs for log output.

Each slot or calendar query starts a fresh request ID in a ContextVar.
``configure_logging`` installs a handler filter that stamps the ID onto
every record, and ``LOG_FORMAT`` prints it, so the source fetches and
engine steps of one query can be followed without repeating the ID in
each message.

Usage:
    from roomslots.logging_context import new_request_id

    new_request_id()
    logger.info("Evaluating slots")  # ... INFO [REQ-1a2b3c4d]: Evaluating slots
"""

import logging
import uuid
from contextvars import ContextVar

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s [%(request_id)s]: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_request_id: ContextVar[str] = ContextVar("request_id", default="-")


def set_request_id(request_id: str) -> None:
    _request_id.set(request_id)


def get_request_id() -> str:
    return _request_id.get()


def new_request_id() -> str:
    """Start a new query: generate an ID, make it current, and return it."""
    request_id = f"REQ-{uuid.uuid4().hex[:8]}"
    set_request_id(request_id)
    return request_id


class RequestIdFilter(logging.Filter):
    """Stamps the current request ID onto each record passing a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def install_request_id_filter(handler: logging.Handler) -> None:
    """Attach a ``RequestIdFilter`` to ``handler`` unless it already has one."""
    if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
        handler.addFilter(RequestIdFilter())


def configure_logging(level: int) -> None:
    """Configure root logging with request IDs in every line.

    The filter sits on the root handlers, so records from any logger
    carry a request ID.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in logging.getLogger().handlers:
        install_request_id_filter(handler)
