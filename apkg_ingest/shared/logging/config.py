"""Logger configuration.

Loguru-based structured logging configuration:
- Loguru for application logs (pretty format, colors, structured data)
- Intercept handler for stdlib logging used by the pipeline modules
- Trace ID correlation through the import context variable
"""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING, Any

from loguru import logger

from apkg_ingest.shared.context import trace_id_var

if TYPE_CHECKING:
    from apkg_ingest.core.config import Settings

# Default trace ID when no import is running
NO_TRACE = "0" * 32

# Loggers whose records are routed into Loguru
INTERCEPTED_LOGGERS = ("", "apkg_ingest")


def _get_settings() -> Settings:
    """Get settings lazily to avoid circular imports."""
    from apkg_ingest.core.config import get_settings

    return get_settings()


class InterceptHandler(logging.Handler):
    """Handler for intercepting standard logging and redirecting to Loguru.

    The pipeline modules log through ``logging.getLogger(__name__)``; this
    handler forwards those records so every log line shares one format.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """Process a single log record from standard logging.

        Args:
            record: Log record from standard logging with all information
                   (level, message, file, line, exception, etc.)
        """
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = str(record.levelno)

        frame = logging.currentframe()
        depth = 2

        if frame:
            while frame.f_code.co_filename == logging.__file__:
                if frame.f_back:
                    frame = frame.f_back
                    depth += 1
                else:
                    break

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _trace_patcher(record: dict[str, Any]) -> None:
    """Inject the current import trace ID into every log record."""
    record["extra"]["trace_id"] = trace_id_var.get() or NO_TRACE


def _build_log_entry(record: dict[str, Any], service_name: str) -> dict[str, Any]:
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "module": record["extra"].get("name", record["name"]),
        "function": record["function"],
        "line": record["line"],
        "trace_id": record["extra"].get("trace_id", NO_TRACE),
        "service": service_name,
    }

    excluded_keys = {"trace_id", "name"}
    for key, value in record["extra"].items():
        if key not in excluded_keys:
            log_entry[key] = value

    if record.get("exception"):
        exc = record["exception"]
        log_entry["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value) if exc.value else None,
        }

    return log_entry


def _create_json_sink(service_name: str) -> Any:
    """Create a JSON sink for stdout logging.

    Args:
        service_name: Name of the service for log entries

    Returns:
        Sink function for Loguru
    """

    def json_sink(message: Any) -> None:
        """Write JSON formatted log to stdout."""
        log_entry = _build_log_entry(message.record, service_name)
        sys.stdout.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
        sys.stdout.flush()

    return json_sink


def setup_logger(settings: Settings | None = None) -> None:
    """Configure Loguru logger.

    Sets up:
    - Console handler with colored output (dev) or JSON format (prod)
    - Trace ID correlation for the running import
    - Interception of the pipeline's stdlib loggers
    """
    settings = settings or _get_settings()

    logger.remove()
    logger.configure(patcher=_trace_patcher)

    is_prod = settings.logging.format.lower() == "json"

    if is_prod:
        logger.add(
            _create_json_sink(settings.app.name),
            level=settings.logging.level.upper(),
            backtrace=True,
            diagnose=False,
        )
    else:
        dev_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level> | "
            "<dim>trace_id={extra[trace_id]}</dim>"
        )
        logger.add(
            sys.stderr,
            format=dev_format,
            level=settings.logging.level.upper(),
            colorize=True,
            backtrace=True,
            diagnose=settings.app.debug,
        )

    configure_stdlib_loggers(settings)

    logger.info(
        "Logger configured",
        level=settings.logging.level,
        format="json" if is_prod else "console",
    )


def configure_stdlib_loggers(settings: Settings | None = None) -> None:
    """Route stdlib logging records into Loguru.

    The pipeline modules use ``logging.getLogger(__name__)`` so they stay
    usable without Loguru being configured; once this runs, their records
    end up in the same sinks as the structured events.
    """
    settings = settings or _get_settings()
    level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    for logger_name in INTERCEPTED_LOGGERS:
        logging_logger = logging.getLogger(logger_name)
        logging_logger.handlers.clear()
        logging_logger.addHandler(InterceptHandler())
        logging_logger.setLevel(level)
        if logger_name:
            logging_logger.propagate = False

    logger.debug("Stdlib loggers configured")


def get_logger(name: str):
    """Get a logger with the specified name.

    Args:
        name: Logger name (usually __name__ of the module)

    Returns:
        Configured Loguru logger with bound name
    """
    return logger.bind(name=name)
