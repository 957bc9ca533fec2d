# src/wallstore/core/logging.py
"""Structured logging setup for wallstore.

Modules log through `structlog.get_logger(__name__)`. configure_logging()
sends those events, and any stdlib `logging` records from libraries such
as SQLAlchemy, through one stderr handler, so CLI output on stdout stays
machine-readable.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

__all__ = ["configure_logging"]

# Library loggers held at WARNING or above whatever level is configured
_QUIET_LOGGERS: tuple[str, ...] = ("sqlalchemy", "sqlalchemy.engine", "sqlalchemy.pool")

# Handler installed by configure_logging, replaced on reconfiguration
_HANDLER_NAME = "wallstore"


def _drop_formatter_keys(logger: logging.Logger | None, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    # ProcessorFormatter always adds both keys
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _pre_chain() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
    ]


def _renderers(json_output: bool, stream: TextIO) -> list[Any]:
    if json_output:
        return [_drop_formatter_keys, structlog.processors.format_exc_info, structlog.processors.JSONRenderer(sort_keys=True)]
    colors = hasattr(stream, "isatty") and stream.isatty()
    return [_drop_formatter_keys, structlog.dev.ConsoleRenderer(colors=colors)]


def configure_logging(*, json_output: bool = False, level: str = "INFO", stream: TextIO | None = None) -> None:
    """Route structlog and stdlib logging through a single handler.

    Safe to call repeatedly (tests and the CLI callback both do); each call
    replaces the handler installed by the previous one and leaves other
    root handlers alone.

    Args:
        json_output: Render one JSON object per line instead of console text
        level: Root level name (DEBUG, INFO, WARNING, ERROR)
        stream: Destination, defaults to sys.stderr
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level}")
    target = stream if stream is not None else sys.stderr
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(target)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(ProcessorFormatter(processors=_renderers(json_output, target), foreign_pre_chain=pre_chain))

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
