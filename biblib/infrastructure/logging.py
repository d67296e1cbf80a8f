"""Logging setup with a per-invocation correlation ID."""

import logging
import sys
import uuid
from contextvars import ContextVar

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s correlation_id=%(correlation_id)s %(message)s"

# pyzotero talks to the Zotero API through httpx
HTTP_LOGGERS = ("httpx", "httpcore", "httpcore.http11", "httpcore.connection", "urllib3")


def get_correlation_id() -> str:
    """
    Current correlation ID, created on first use.

    Returns:
        Correlation ID string (UUID4)
    """
    corr_id = correlation_id_var.get()
    if corr_id is None:
        corr_id = new_correlation_id()
    return corr_id


def set_correlation_id(corr_id: str) -> None:
    correlation_id_var.set(corr_id)


def new_correlation_id() -> str:
    """Start a new correlation scope (one per CLI command) and return its ID."""
    corr_id = str(uuid.uuid4())
    correlation_id_var.set(corr_id)
    return corr_id


class CorrelationIDFilter(logging.Filter):
    """Adds ``correlation_id`` to records that do not carry one in ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id()  # type: ignore[attr-defined]
        return True


def configure_logging(level: int = logging.INFO, verbose: bool = False) -> None:
    """
    Send log records to stderr with correlation IDs.

    Command output goes to stdout, so logs never mix with rendered
    citekeys or JSON.

    Args:
        level: Root logging level
        verbose: Show HTTP client logs at INFO; otherwise they stay at WARNING
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    handler.addFilter(CorrelationIDFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    http_level = logging.INFO if verbose else logging.WARNING
    for logger_name in HTTP_LOGGERS:
        logging.getLogger(logger_name).setLevel(http_level)
