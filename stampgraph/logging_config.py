"""Structured logging for the stamp-graph CLI: structlog over a stdlib stderr handler."""

from __future__ import annotations

import logging
import os
import sys

import structlog

LOGGER_NAME = "stampgraph"


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(level: str | None = None) -> None:
    """Route ``stampgraph.*`` loggers to stderr through structlog.

    Reads from environment variables:
        STAMPGRAPH_LOG_LEVEL  - log level (default: WARNING)
        STAMPGRAPH_LOG_FORMAT - console | json (default: console)

    An explicit *level* (``--verbose``) wins over the environment. Calling
    this again replaces the handler rather than adding a second one.
    """
    log_level = (level or os.environ.get("STAMPGRAPH_LOG_LEVEL", "WARNING")).upper()
    log_format = os.environ.get("STAMPGRAPH_LOG_FORMAT", "console").lower()

    pre_chain: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    if log_format == "json":
        # ConsoleRenderer formats exceptions itself
        pre_chain += [
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
        ]

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers[:] = [handler]
    logger.setLevel(log_level)
    logger.propagate = False
