"""
Structured logging for dep-injector.

Emits one JSON object per event so cache hits, downloads and injections
can be followed by machines as well as people.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED_ATTRS = frozenset(
    [
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "exc_info",
        "exc_text",
        "stack_info",
    ]
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class EventLogger:
    """Structured logger for pipeline events."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(f"dep_injector.{name}")
        self._setup_logger()

    def _setup_logger(self) -> None:
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False
            self.logger.setLevel(logging.WARNING)

    def _log(self, level: int, event_type: str, **kwargs: Any) -> None:
        self.logger.log(level, event_type, extra={"event_type": event_type, **kwargs})

    def info(self, event_type: str, **kwargs: Any) -> None:
        self._log(logging.INFO, event_type, **kwargs)

    def warning(self, event_type: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, event_type, **kwargs)

    def error(self, event_type: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, event_type, **kwargs)

    def debug(self, event_type: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, event_type, **kwargs)


_resolver_logger = EventLogger("resolver")
_cache_logger = EventLogger("cache")
_injector_logger = EventLogger("injector")


def get_resolver_logger() -> EventLogger:
    """Get the download logger."""
    return _resolver_logger


def get_cache_logger() -> EventLogger:
    """Get the cache lookup logger."""
    return _cache_logger


def get_injector_logger() -> EventLogger:
    """Get the injection logger."""
    return _injector_logger


def log_cache_hit(dependency_name: str, path: str) -> None:
    get_cache_logger().debug("cache_hit", dependency=dependency_name, path=path)


def log_download_start(dependency_name: str, url: str) -> None:
    get_resolver_logger().info("download_started", dependency=dependency_name, url=url)


def log_download_complete(
    dependency_name: str,
    path: str,
    size_bytes: int,
    duration_ms: Optional[int] = None,
) -> None:
    """Log a finished download."""
    log_data: Dict[str, Any] = {
        "dependency": dependency_name,
        "path": path,
        "size_bytes": size_bytes,
    }
    if duration_ms is not None:
        log_data["duration_ms"] = duration_ms

    get_resolver_logger().info("download_completed", **log_data)


def log_download_failed(dependency_name: str, url: Optional[str], reason: str) -> None:
    get_resolver_logger().warning(
        "download_failed", dependency=dependency_name, url=url, reason=reason
    )


def log_injection(dependency_name: str, path: str, target: str) -> None:
    get_injector_logger().info(
        "dependency_injected", dependency=dependency_name, path=path, target=target
    )


def configure_logging(log_level: str = "WARNING") -> None:
    """Set the level of every dep-injector event logger."""
    level = getattr(logging, log_level.upper(), logging.WARNING)
    for event_logger in [_resolver_logger, _cache_logger, _injector_logger]:
        event_logger.logger.setLevel(level)
