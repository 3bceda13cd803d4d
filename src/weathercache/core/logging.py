"""
Logging infrastructure for weathercache.

Provides:
- Structured JSON logging for file output
- Rich console output for terminal
- Contextual logging bound to an upstream URL and cache key
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson

if TYPE_CHECKING:
    from rich.console import Console


# Record attributes copied into JSON log lines when present
CONTEXT_FIELDS = (
    "url",
    "cache_key",
    "status_code",
    "attempt",
    "delay_seconds",
    "stale_age_seconds",
    "source",
    "error",
)


def json_dumps(obj: Any) -> str:
    return orjson.dumps(obj, default=str).decode("utf-8")


# =============================================================================
# JSON Formatter for File Logging
# =============================================================================


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json_dumps(log_data)


# =============================================================================
# Rich Console Handler
# =============================================================================


class RichConsoleHandler(logging.Handler):
    """Handler that outputs to a Rich console with level colouring."""

    STYLES = {
        logging.DEBUG: "dim",
        logging.INFO: "default",
        logging.WARNING: "yellow",
        logging.ERROR: "red",
        logging.CRITICAL: "bold red",
    }

    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            style = self.STYLES.get(record.levelno, "default")

            prefix = ""
            if hasattr(record, "cache_key"):
                prefix = f"[cyan][{record.cache_key[-8:]}][/cyan] "

            self.console.print(f"{prefix}[{style}]{message}[/{style}]", markup=True, highlight=False)

            if record.exc_info:
                self.console.print_exception()

        except Exception:
            self.handleError(record)


# =============================================================================
# Logger Configuration
# =============================================================================


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
    console_output: bool = True,
) -> logging.Logger:
    """Set up logging for weathercache.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path to log file (optional)
        json_format: Use JSON format for file logs
        rich_console: Use Rich for console output
        console_output: Attach a console handler at all

    Returns:
        Root logger for weathercache
    """
    logger = logging.getLogger("weathercache")
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    if console_output:
        if rich_console:
            console_handler: logging.Handler = RichConsoleHandler()
            console_handler.setFormatter(logging.Formatter("%(message)s"))
        else:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
            )
        console_handler.setLevel(getattr(logging, level.upper()))
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)

        if json_format:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )

        logger.addHandler(file_handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (will be prefixed with 'weathercache.')

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"weathercache.{name}")
    return logging.getLogger("weathercache")


# =============================================================================
# Contextual Logging Adapter
# =============================================================================


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that stamps the upstream URL and cache key on records."""

    def __init__(
        self,
        logger: logging.Logger,
        url: str | None = None,
        cache_key: str | None = None,
    ):
        super().__init__(logger, {})
        self.url = url
        self.cache_key = cache_key

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})

        if self.url:
            extra.setdefault("url", self.url)
        if self.cache_key:
            extra.setdefault("cache_key", self.cache_key)

        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(
        self,
        url: str | None = None,
        cache_key: str | None = None,
    ) -> "ContextualLogger":
        """Create a new logger with additional context."""
        return ContextualLogger(
            self.logger,
            url=url or self.url,
            cache_key=cache_key or self.cache_key,
        )


def get_contextual_logger(
    name: str | None = None,
    url: str | None = None,
    cache_key: str | None = None,
) -> ContextualLogger:
    """Get a contextual logger bound to a request.

    Args:
        name: Logger name
        url: Upstream URL for context
        cache_key: Cache key for context

    Returns:
        ContextualLogger instance
    """
    return ContextualLogger(get_logger(name), url=url, cache_key=cache_key)
