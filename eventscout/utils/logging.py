"""structlog configuration shared by the API server and the CLI.

Console output is coloured for a terminal; ``APP_ENV=production`` or
``json_output=True`` switches to one JSON object per line.  The stdlib
root logger is routed through the same processors, so uvicorn, httpx and
trafilatura records carry the same fields as ours.

Orchestrator runs wrap themselves in :func:`bind_search_context`, which
tags every record emitted during the run with its ``search_id``.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog

# Per-request INFO chatter from these is muted to WARNING.
_NOISY_LOGGERS = ("httpx", "httpcore", "trafilatura", "duckduckgo_search", "primp")

_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.dev.set_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _renderer(use_json: bool, out: Any) -> structlog.types.Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=out.isatty())


def _route_stdlib(level: str, out: Any, renderer: structlog.types.Processor) -> None:
    handler = logging.StreamHandler(out)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_PROCESSORS,
                renderer,
            ],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: Any = None,
) -> structlog.BoundLogger:
    """Set up structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR.
        json_output: Render JSON even outside production.
        stream: Destination, stdout by default.  The CLI logs to stderr so
                its result output can be piped.
    """
    level = log_level.upper()
    out = stream or sys.stdout
    renderer = _renderer(json_output or os.environ.get("APP_ENV") == "production", out)

    structlog.configure(
        processors=[*_PROCESSORS, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )
    _route_stdlib(level, out, renderer)
    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Named logger; configures defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)


@contextmanager
def bind_search_context(search_id: str, **extra: Any) -> Iterator[None]:
    """Tag log records with ``search_id`` (plus *extra*) until the block exits.

    The binding lives in ``structlog.contextvars`` and therefore follows
    the current asyncio task and the tasks it creates.
    """
    tokens = structlog.contextvars.bind_contextvars(search_id=search_id, **extra)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
