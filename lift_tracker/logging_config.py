import logging
import os
import sys

import structlog
from structlog.contextvars import merge_contextvars

DEFAULT_SERVICE_NAME = "lift-tracker-mcp"


def add_service_and_env(logger, method_name, event_dict):
    event_dict["service"] = os.getenv("SERVICE_NAME", DEFAULT_SERVICE_NAME)
    event_dict["env"] = os.getenv("APP_ENV", "local")
    return event_dict


def configure_logging() -> None:
    log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    app_env = os.getenv("APP_ENV", "local")
    is_dev = app_env in {"local", "dev"}

    shared_processors = [
        merge_contextvars,
        add_service_and_env,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    renderer = structlog.dev.ConsoleRenderer() if is_dev else structlog.processors.JSONRenderer()

    # stdio transport speaks MCP on stdout, so logs go to stderr.
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
        force=True,
    )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
