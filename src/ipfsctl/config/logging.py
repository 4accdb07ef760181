"""Route ipfsctl's stdlib and structlog records to one stderr handler.

``--log-json`` switches the console renderer for JSON lines.  ``--verbose``
opens the ``ipfsctl`` loggers to DEBUG; ``--debug`` opens every logger,
including the HTTP stack that is otherwise held at WARNING.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Chatty at DEBUG on every request; only shown under --debug.
HTTP_LOGGERS = ("httpx", "httpcore")


def _processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _stderr_handler(log_json: bool) -> logging.Handler:
    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_processors(),
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    debug: bool = False,
) -> None:
    """Install the ipfsctl handler on the root logger, replacing any other.

    Safe to call more than once; handlers never stack.
    """
    structlog.configure(
        processors=[*_processors(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_stderr_handler(log_json))
    root.setLevel(logging.DEBUG if debug else logging.WARNING)

    logging.getLogger("ipfsctl").setLevel(
        logging.DEBUG if (verbose or debug) else logging.WARNING
    )
    http_level = logging.NOTSET if debug else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)
