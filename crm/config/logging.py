"""
Logging Configuration for the CRM Dashboard Service

All output goes through one stdout handler on the root logger. structlog
events and foreign stdlib records (uvicorn, SQLAlchemy) share the same
processor chain, and every event carries the service name and environment.
"""

import logging
import sys
from typing import Any, Callable, Dict, List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import ProcessorFormatter, add_log_level

from crm.config.settings import Settings, get_settings

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def add_service_context(app_name: str, app_env: str) -> Callable:
    """Processor stamping ``app`` and ``env`` on events that lack them."""

    def processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("app", app_name)
        event_dict.setdefault("env", app_env)
        return event_dict

    return processor


def build_processors(settings: Settings) -> List[Callable]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        add_service_context(settings.app_name, settings.app_env),
        TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def build_renderer(log_format: str) -> Callable:
    if log_format == "json":
        return JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(log_level: Optional[str] = None, settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for the API and the seeding CLI.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        settings: Settings to read format and service context from
    """
    settings = settings or get_settings()
    level = (log_level or settings.monitoring.log_level).upper()
    numeric_level = getattr(logging, level, logging.INFO)

    processors = build_processors(settings)
    structlog.configure(
        processors=processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ProcessorFormatter(
            processor=build_renderer(settings.monitoring.log_format),
            foreign_pre_chain=processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)

    # uvicorn's dictConfig gives these their own handlers and turns off
    # propagation; the root handler must be the only one that writes
    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True
        uvicorn_logger.setLevel(numeric_level)

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level,
        format=settings.monitoring.log_format,
    )


def get_logger(name: str):
    """Get a logger instance with the given name."""
    return structlog.get_logger(name)
