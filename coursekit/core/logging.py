"""Structlog configuration for coursekit.

Every log line carries the operation context (request, user, course and
lesson ids) and the client identity. Bearer tokens and other credentials are
masked before rendering.

Output:
- stdout, colored console or JSON depending on ``log_format``
- optionally a rotating JSON file under ``log_dir``
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor

from coursekit.core.context import get_context


if TYPE_CHECKING:
    from coursekit.config.settings import Settings


_NOISY_LOGGERS = ("httpx", "httpcore")

# Minimum length for partial masking (show first 2 and last 2 chars)
_MIN_MASK_LENGTH = 4

_SENSITIVE_KEYS = frozenset(
    {"password", "secret", "token", "api_key", "authorization", "auth", "credentials"}
)


def add_context_processor(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add operation context; explicit keyword values win."""
    for key, value in get_context().items():
        event_dict.setdefault(key, value)
    return event_dict


def add_client_info_processor(settings: "Settings") -> Processor:
    """Build a processor tagging events with client name, version and environment."""
    info = {
        "client": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }

    def processor(
        logger: logging.Logger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        for key, value in info.items():
            event_dict.setdefault(key, value)
        return event_dict

    return processor


def _mask(key: str, value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _mask(k, v) for k, v in value.items()}
    if not isinstance(value, str):
        return value
    if not any(sensitive in key.lower() for sensitive in _SENSITIVE_KEYS):
        return value
    if len(value) <= _MIN_MASK_LENGTH:
        return "***"
    return value[:2] + "*" * (len(value) - _MIN_MASK_LENGTH) + value[-2:]


def filter_sensitive_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Mask bearer tokens and other credentials, including nested dicts."""
    return {key: _mask(key, value) for key, value in event_dict.items()}


def build_processors(settings: "Settings") -> list[Processor]:
    """Processor chain shared by structlog and foreign (stdlib) records."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_processor,
        add_client_info_processor(settings),
        filter_sensitive_data,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if settings.log_include_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            )
        )
    return processors


def _level(name: str) -> int:
    return logging.getLevelName(name.upper())


def _formatter(
    renderer: Processor, chain: list[Processor]
) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer, foreign_pre_chain=chain
    )


def setup_file_handler(settings: "Settings") -> RotatingFileHandler:
    """Rotating JSON log file ``<log_dir>/<app_name>.log``."""
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(log_dir / f"{settings.app_name}.log"),
        maxBytes=settings.log_file_max_bytes,
        backupCount=settings.log_file_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(_level(settings.log_level))
    return handler


def configure_structlog(settings: "Settings") -> None:
    """Configure structlog and route stdlib logging through it.

    Safe to call more than once; handlers installed by a previous call are
    replaced.

    Args:
        settings: Client settings.
    """
    level = _level(settings.log_level)
    chain = build_processors(settings)

    if settings.log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(_formatter(renderer, chain))
    handlers: list[logging.Handler] = [console]

    if settings.log_to_file:
        file_handler = setup_file_handler(settings)
        file_handler.setFormatter(
            _formatter(structlog.processors.JSONRenderer(), chain)
        )
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)

    structlog.configure(
        processors=[*chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)
