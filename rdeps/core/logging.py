"""Structured logging for the rdeps CLI: structlog rendered through stdlib logging."""

from __future__ import annotations

import logging.config
import os

import structlog

_PROCESSORS: list[structlog.types.Processor] = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.format_exc_info,
]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(level: str | None = None) -> None:
    """Route rdeps events to stderr.

    ``RDEPS_LOG_LEVEL`` (default INFO) sets the threshold unless *level* is
    given; ``RDEPS_LOG_FORMAT`` picks ``console`` (default) or ``json``.
    Stdout stays reserved for command output such as ``rdeps scan --json``.
    """
    log_level = (level or os.environ.get("RDEPS_LOG_LEVEL", "INFO")).upper()
    log_format = os.environ.get("RDEPS_LOG_FORMAT", "console").lower()

    structlog.configure(
        processors=[*_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "rdeps": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(log_format),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "rdeps",
                },
            },
            "root": {"handlers": ["stderr"], "level": log_level},
        }
    )
