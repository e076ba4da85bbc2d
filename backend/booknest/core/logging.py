"""
Structured logging for BookNest, built on structlog.

Production writes one JSON object per line; development gets a colored
console. Every entry carries the app name and environment, plus whatever
the request middleware bound (request_id, method, path). Credentials never
reach the output: password and token fields are masked before rendering.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, WrappedLogger

from booknest.core.config import get_settings

_HANDLER_NAME = "booknest"

REDACTED = "***"
SENSITIVE_KEYS = frozenset({"password", "hashed_password", "access_token", "token", "authorization"})

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio")


def redact_sensitive(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def _app_context(app_name: str, environment: str):
    def add_app_context(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", app_name)
        event_dict.setdefault("env", environment)
        return event_dict
    return add_app_context


def setup_logging() -> None:
    settings = get_settings()
    production = settings.is_production

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        _app_context(settings.APP_NAME, settings.ENVIRONMENT),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive,
    ]
    if production:
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = structlog.processors.JSONRenderer() if production else structlog.dev.ConsoleRenderer(colors=True)
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            # Records from uvicorn/sqlalchemy get the same context and masking
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    # Lifespan may run more than once per process (tests, reloads)
    for existing in list(root_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    quiet_level = logging.INFO if settings.DB_ECHO else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(quiet_level)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
