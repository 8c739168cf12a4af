"""Logging configuration with request correlation ids."""

from __future__ import annotations

import logging

from asgi_correlation_id import CorrelationIdFilter

_HANDLER_NAME = "bizconfig"
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Attach a correlation-aware stream handler to the root logger.

    Safe to call more than once; the handler is only installed the first time.
    """
    root = logging.getLogger()
    root.setLevel(level if isinstance(level, int) else level.upper())
    if any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.addFilter(CorrelationIdFilter(uuid_length=32, default_value="-"))
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root.addHandler(handler)


__all__ = ["configure_logging"]
