"""Structured logging for the token engine.

structlog renders through stdlib logging handlers, one handler per
configured output, each with its own level and format (console or JSON).

Every hover/definition query runs inside ``query_scope``, which binds a
short query id (plus the query kind and document URI) into structlog's
context variables. Any event logged while the query is answered carries
them.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from tokenscope.config.models import LoggingConfig, LogOutputConfig

# Third-party loggers too chatty at the root level
QUIET_LOGGERS: dict[str, int] = {
    "watchfiles.main": logging.WARNING,
    "watchfiles.watcher": logging.WARNING,
}

_CONSOLE_DESTINATIONS = ("stderr", "stdout")


def _level(name: str | None, default: int) -> int:
    if name is None:
        return default
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def current_query_id() -> str | None:
    """Query id bound by the innermost active ``query_scope``, if any."""
    value = structlog.contextvars.get_contextvars().get("query_id")
    return value if isinstance(value, str) else None


@contextmanager
def query_scope(query: str, uri: str) -> Iterator[str]:
    """Bind a fresh query id for the duration of one query.

    Yields the id, e.g. ``with query_scope("hover", uri) as query_id:``.
    """
    query_id = uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(query_id=query_id, query=query, uri=uri):
        yield query_id


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
    ]


def _formatter(
    output: LogOutputConfig, shared: list[structlog.types.Processor]
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        renderer = structlog.dev.ConsoleRenderer(
            colors=output.destination in _CONSOLE_DESTINATIONS and stream.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)


def _handler(destination: str) -> logging.Handler:
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog and the root logger's handlers.

    Args:
        config: Full logging configuration; when given, the other
            arguments are ignored
        json_format: Single stderr output rendered as JSON
        level: Root level for the single-output setup
    """
    from tokenscope.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    root_level = _level(config.level, logging.INFO)
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration must take effect on existing loggers
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(root_level)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    for output in config.outputs:
        handler = _handler(output.destination)
        handler.setLevel(_level(output.level, root_level))
        handler.setFormatter(_formatter(output, shared))
        root_logger.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
