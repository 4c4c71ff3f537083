"""structlog configuration for bizpipe.

All bizpipe modules log through stdlib ``logging``; structlog's
``ProcessorFormatter`` renders those records and native structlog events
(``bizpipe.telemetry`` span records) through one handler on stderr,
either as console lines or as JSON lines.
"""

from __future__ import annotations

import logging
import sys

import structlog

PACKAGE_LOGGER = "bizpipe"
TELEMETRY_LOGGER = "bizpipe.telemetry"

# Dependencies that log per statement or per hook call at DEBUG.
_QUIET_LOGGERS = ("sqlalchemy", "asyncio", "pluggy")


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    telemetry: bool = False,
) -> None:
    """Route bizpipe and dependency logging to stderr.

    Args:
        verbose: DEBUG for every ``bizpipe.*`` logger. Otherwise WARNING+.
        log_json: One JSON object per line, tracebacks as structured dicts.
        telemetry: Emit ``span.complete`` records even when not verbose.

    Safe to call repeatedly; the root handler is replaced, not stacked.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_render_chain(log_json),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)
    # NOTSET inherits the package level.
    logging.getLogger(TELEMETRY_LOGGER).setLevel(logging.DEBUG if telemetry else logging.NOTSET)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _render_chain(log_json: bool) -> list[structlog.types.Processor]:
    if log_json:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]
