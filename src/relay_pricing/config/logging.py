"""Structured logging for the pricing service.

Every record, whether from structlog, uvicorn or a library using the stdlib,
is rendered by one ProcessorFormatter and tagged with the service name and
version. The relay_pricing loggers follow the configured level; everything
else is held at WARNING apart from uvicorn's startup and access lines.
"""

import logging
import logging.config

import structlog

from relay_pricing import __version__

SERVICE_NAME = "relay-pricing"
APP_LOGGER = "relay_pricing"


def add_service_context(logger, method_name, event_dict):
    """Stamp each event with the service name and version."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


def configure_structlog(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog and route stdlib logging through it.

    Call before the first relay_pricing logger is used; loggers are cached on
    first use.

    Args:
        log_level: Level for the relay_pricing loggers ("DEBUG", "INFO", ...)
        json_logs: JSON lines when True, coloured console output otherwise
    """
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    # uvicorn's own handlers are replaced by the shared one
    server_logger = {"handlers": ["default"], "level": "INFO", "propagate": False}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.format_exc_info,
                    renderer,
                ],
                "foreign_pre_chain": shared_processors,
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["default"], "level": "WARNING"},
        "loggers": {
            APP_LOGGER: {"level": log_level.upper()},
            "uvicorn.error": dict(server_logger),
            "uvicorn.access": dict(server_logger),
        },
    })

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
