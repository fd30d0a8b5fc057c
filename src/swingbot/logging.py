"""Structured logging configuration using structlog with async context propagation."""

import logging
import os

import structlog

from swingbot.config import LogSettings


def setup_logging(log_level: str = "INFO", settings: LogSettings | None = None) -> None:
    """Configure structlog with JSON or console rendering.

    Uses structlog.contextvars for async context propagation (NOT threadlocal).
    Rendering format comes from LogSettings.format ("json" for production,
    "console" for development). In "files" mode every record goes to
    <dir>/<info_name> and ERROR and above also to <dir>/<error_name>.
    """
    if settings is None:
        settings = LogSettings()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=settings.mode == "console")

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handlers: list[logging.Handler] = []
    if settings.mode == "files":
        os.makedirs(settings.dir, exist_ok=True)
        info_handler = logging.FileHandler(os.path.join(settings.dir, settings.info_name))
        error_handler = logging.FileHandler(os.path.join(settings.dir, settings.error_name))
        error_handler.setLevel(logging.ERROR)
        handlers.extend([info_handler, error_handler])
    else:
        handlers.append(logging.StreamHandler())

    root_logger = logging.getLogger()
    for old in root_logger.handlers:
        old.close()
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
