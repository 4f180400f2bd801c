"""Structured logging for aggregation runs.

structlog renders through stdlib logging onto stderr; stdout carries nothing
but the JSON report. Each run binds a short run id and the valued side into
contextvars, so every event logged while the run is in flight (engine,
transport, providers) can be correlated.
"""

import logging
import sys
import uuid
from typing import IO, Any

import structlog

#: Third-party loggers that emit transport chatter at DEBUG.
QUIET_LOGGERS = ("aiohttp", "ccxt", "asyncio")


def _renderer(log_format: str, stream: IO[str]) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    stream: IO[str] | None = None,
) -> None:
    """Route structlog through a single stdlib handler.

    Args:
        log_level: Root level name; unknown names fall back to INFO.
        log_format: "json" for one object per line, anything else for console.
        stream: Destination, stderr when None. Console colors only on a tty.
    """
    stream = stream if stream is not None else sys.stderr

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format.lower(), stream),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_run_context(**fields: Any) -> str:
    """Start a fresh logging context for one run.

    Clears anything bound by a previous run, then binds a new ``run_id``
    plus ``fields``.

    Returns:
        The generated run id.
    """
    run_id = uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(run_id=run_id, **fields)
    return run_id


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
