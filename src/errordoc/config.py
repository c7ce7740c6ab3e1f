"""Logging configuration for ingestion services built on errordoc.

Configures structlog so that both structlog and stdlib records are
rendered as one JSON object per line with:

- ``timestamp``: ISO 8601 in UTC.
- ``service``: application name.
- ``level``: one of ``CRITICAL``, ``ERROR``, ``WARN``, ``INFO``, ``DEBUG``.
- ``message``: the log message.
- ``error``: the sparse error document, for records carrying ``exc_info``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import orjson
import structlog
from structlog.contextvars import merge_contextvars

from errordoc.capture import ErrorDocumentProcessor

_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_LEVEL_NAMES: dict[str, str] = {
    "debug": "DEBUG",
    "info": "INFO",
    "warning": "WARN",
    "warn": "WARN",
    "error": "ERROR",
    "exception": "ERROR",
    "critical": "CRITICAL",
    "fatal": "CRITICAL",
}


def _orjson_serializer(obj: object, **_kw: object) -> str:
    return orjson.dumps(obj, default=str).decode()


def _stream_isatty(stream: Any) -> bool:
    try:
        return bool(stream.isatty())
    except (AttributeError, ValueError):
        return False


def _to_logging_level(level_name: str) -> int:
    """Convert a level name to its :mod:`logging` constant."""
    try:
        return _LEVELS[level_name.upper()]
    except KeyError:
        msg = f"Unknown log level: {level_name!r}"
        raise ValueError(msg) from None


def normalize_level(
    _logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Normalize ``level`` to one of the canonical upper-case names."""
    raw_level = str(event_dict.get("level", method_name)).lower()
    event_dict["level"] = _LEVEL_NAMES.get(raw_level, raw_level.upper())
    return event_dict


def add_service(service: str) -> structlog.types.Processor:
    """Return a processor setting ``service`` unless already present."""

    def _processor(
        _logger: Any,
        _method_name: str,
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        event_dict.setdefault("service", service)
        return event_dict

    return _processor


def _build_shared_processors(service: str) -> list[structlog.types.Processor]:
    return [
        merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        normalize_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        add_service(service),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.EventRenamer("message"),
    ]


def configure_logging(
    *,
    service: str = "errordoc",
    level: str = "INFO",
    json_logs: bool = True,
    stream: Any = None,
) -> None:
    """Configure structlog and the root logger.

    Parameters
    ----------
    service:
        Service name added to every record.
    level:
        Minimum log level (e.g. ``"DEBUG"``).
    json_logs:
        ``True`` for JSON lines, ``False`` for console output.
    stream:
        Output stream.  Defaults to ``sys.stdout``.

    Raises
    ------
    ValueError
        If *level* is not a known level name.
    """
    if stream is None:
        stream = sys.stdout
    log_level = _to_logging_level(level)
    shared_processors = _build_shared_processors(service)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )

    final_processors: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if json_logs:
        final_processors += [
            ErrorDocumentProcessor(handled=True),
            structlog.processors.JSONRenderer(serializer=_orjson_serializer),
        ]
    else:
        final_processors.append(
            structlog.dev.ConsoleRenderer(colors=_stream_isatty(stream), event_key="message")
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=final_processors,
        foreign_pre_chain=shared_processors,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def setup_logging(*, service: str = "errordoc") -> None:
    """Configure logging from ``LOG_LEVEL`` and ``JSON_LOGS`` env variables."""
    configure_logging(
        service=service,
        level=os.environ.get("LOG_LEVEL", "INFO"),
        json_logs=os.environ.get("JSON_LOGS", "1") != "0",
    )
