"""Logging configuration using loguru.

The client logs every request at DEBUG and every failure at WARNING through
loguru's global logger. The package disables its own records on import;
`setup_logging` (or `setup_logging_from_settings`) re-enables them and picks
a sink format. Applications with their own loguru setup call
`logger.enable("extracalc")` instead.
"""

import json
import sys
from datetime import UTC, datetime

from loguru import logger

from extracalc.config import Settings


def _json_formatter(record: dict) -> str:
    """Format log record as a single JSON line."""
    log_entry = {
        "timestamp": datetime.now(UTC).isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    if record.get("extra"):
        for key, value in record["extra"].items():
            if key not in log_entry:
                log_entry[key] = value

    if record["exception"]:
        exc_type = record["exception"].type
        exc_value = record["exception"].value
        log_entry["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "value": str(exc_value) if exc_value else None,
        }

    # Escape braces: loguru treats the returned string as a format template
    line = json.dumps(log_entry, default=str)
    return line.replace("{", "{{").replace("}", "}}") + "\n"


def _dev_formatter(_record: dict) -> str:
    """Format log record for development (human-readable)."""
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>\n"
        "{exception}"
    )


def setup_logging(json_logs: bool = False, log_level: str = "INFO") -> None:
    """Configure loguru for the application.

    Args:
        json_logs: If True, output one JSON object per line
        log_level: Minimum log level to output
    """
    logger.remove()
    logger.enable("extracalc")

    if json_logs:
        logger.add(
            sys.stderr,
            format=_json_formatter,
            level=log_level,
            serialize=False,
        )
    else:
        logger.add(
            sys.stderr,
            format=_dev_formatter,
            level=log_level,
            colorize=True,
        )


def setup_logging_from_settings(settings: Settings) -> None:
    setup_logging(json_logs=settings.json_logs, log_level=settings.log_level)


__all__ = [
    "logger",
    "setup_logging",
    "setup_logging_from_settings",
]
