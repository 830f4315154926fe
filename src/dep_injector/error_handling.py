"""
Centralized error reporting for dep-injector.

Failures are always raised as typed exceptions (see ``exceptions``); this
module records them first, with structured context, sanitized messages and
optional callbacks, so embedding applications can observe resolution and
injection problems without wrapping every call.
"""

import logging
import re
import sys
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse


class ErrorLevel(Enum):
    """Error severity levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCategory(Enum):
    """Which stage of the resolution pipeline failed."""

    CONFIGURATION = "CONFIGURATION"
    PARSING = "PARSING"
    NETWORK = "NETWORK"
    FILESYSTEM = "FILESYSTEM"
    INJECTION = "INJECTION"


@dataclass
class ErrorContext:
    """Structured error context information."""

    level: ErrorLevel
    category: ErrorCategory
    message: str
    module: str
    function: str
    details: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[BaseException] = None
    traceback_info: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error context to dictionary for logging."""
        return {
            "level": self.level.value,
            "category": self.category.value,
            "message": self.message,
            "module": self.module,
            "function": self.function,
            "details": self.details,
            "exception_type": type(self.exception).__name__ if self.exception else None,
            "exception_message": str(self.exception) if self.exception else None,
            "traceback": self.traceback_info,
            "suggestions": self.suggestions,
        }


# Repository URLs may embed basic-auth credentials or tokens
_SENSITIVE_PATTERNS = [
    (re.compile(r"(https?://[^@\s/]+:)[^@\s/]+@", re.IGNORECASE), r"\1[REDACTED]@"),
    (
        re.compile(r'token["\s]*[:=]["\s]*([a-zA-Z0-9_\-+=/.]{8,})', re.IGNORECASE),
        'token="[REDACTED]"',
    ),
    (
        re.compile(r'password["\s]*[:=]["\s]*([^\s"\']+)', re.IGNORECASE),
        'password="[REDACTED]"',
    ),
]

_SENSITIVE_KEYS = {"token", "password", "secret", "credential", "auth"}


def sanitize_message(message: str) -> str:
    """Remove credentials from a free-form message."""
    sanitized = message
    for pattern, replacement in _SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def sanitize_url(url: str) -> str:
    """
    Reduce a URL to scheme, host, port and path.

    Args:
        url: URL that may contain credentials or a query string

    Returns:
        str: URL safe for logging
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return "[REDACTED_URL]"

    if not parsed.scheme or not parsed.hostname:
        return sanitize_message(url)

    sanitized = f"{parsed.scheme}://{parsed.hostname}"
    if parsed.port:
        sanitized += f":{parsed.port}"
    return sanitized + parsed.path


class SecureLogger:
    """Logger wrapper that strips credentials before anything is emitted."""

    def __init__(self, name: str, level: int = logging.WARNING):
        """
        Initialize secure logger.

        Args:
            name: Logger name
            level: Logging level
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            self.logger.addHandler(handler)

    def log_error_context(self, context: ErrorContext) -> None:
        """
        Log error context with appropriate level.

        Args:
            context: Error context to log
        """
        log_data: Dict[str, Any] = {
            "category": context.category.value,
            "module": context.module,
            "function": context.function,
            "details": self._sanitize_dict(context.details),
        }

        if context.exception:
            log_data["exception"] = type(context.exception).__name__

        if context.suggestions:
            log_data["suggestions"] = context.suggestions

        level = getattr(logging, context.level.value)
        self.logger.log(level, f"{sanitize_message(context.message)} | {log_data}")

    def _sanitize_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        sanitized = {}
        for key, value in data.items():
            if any(sensitive in key.lower() for sensitive in _SENSITIVE_KEYS):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_dict(value)
            elif isinstance(value, str):
                sanitized[key] = sanitize_message(value)
            else:
                sanitized[key] = value
        return sanitized


ErrorCallback = Callable[[ErrorContext], None]


class ErrorHandler:
    """
    Centralized error handler.

    Records failures with structured logging, per-category statistics and
    registered callbacks. It never swallows anything: callers raise the
    corresponding typed exception right after reporting.
    """

    def __init__(
        self,
        logger_name: str = "dep_injector",
        log_level: int = logging.WARNING,
        enable_callbacks: bool = True,
    ):
        self.logger = SecureLogger(logger_name, log_level)
        self.enable_callbacks = enable_callbacks
        self.error_callbacks: Dict[ErrorCategory, List[ErrorCallback]] = {}
        self.global_callbacks: List[ErrorCallback] = []
        self.error_stats: Dict[str, int] = {}

    def register_callback(
        self, callback: ErrorCallback, category: Optional[ErrorCategory] = None
    ) -> None:
        """
        Register error callback.

        Args:
            callback: Function to call on errors
            category: Error category to filter, None for all errors
        """
        if not self.enable_callbacks:
            return

        if category is None:
            self.global_callbacks.append(callback)
        else:
            self.error_callbacks.setdefault(category, []).append(callback)

    def handle_error(
        self,
        level: ErrorLevel,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        exception: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ) -> ErrorContext:
        """
        Record an error with structured logging and callbacks.

        Returns:
            ErrorContext: The created error context
        """
        traceback_info = None
        if exception is not None:
            traceback_info = "".join(
                traceback.format_exception(
                    type(exception), exception, exception.__traceback__
                )
            )

        context = ErrorContext(
            level=level,
            category=category,
            message=message,
            module=module,
            function=function,
            details=details or {},
            exception=exception,
            traceback_info=traceback_info,
            suggestions=suggestions or [],
        )

        stat_key = f"{category.value}_{level.value}"
        self.error_stats[stat_key] = self.error_stats.get(stat_key, 0) + 1

        self.logger.log_error_context(context)

        if self.enable_callbacks:
            callbacks = self.error_callbacks.get(category, []) + self.global_callbacks
            for callback in callbacks:
                try:
                    callback(context)
                except Exception as cb_error:
                    # A broken observer must not mask the original failure
                    self.logger.logger.error(f"Error in callback: {cb_error}")

        return context

    def warning(
        self, category: ErrorCategory, message: str, module: str, function: str, **kwargs
    ) -> ErrorContext:
        """Handle warning level error."""
        return self.handle_error(
            ErrorLevel.WARNING, category, message, module, function, **kwargs
        )

    def error(
        self, category: ErrorCategory, message: str, module: str, function: str, **kwargs
    ) -> ErrorContext:
        """Handle error level error."""
        return self.handle_error(
            ErrorLevel.ERROR, category, message, module, function, **kwargs
        )

    def get_error_stats(self) -> Dict[str, int]:
        """Get error statistics."""
        return self.error_stats.copy()

    def reset_stats(self) -> None:
        """Reset error statistics."""
        self.error_stats.clear()


_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """
    Get the global error handler instance.

    Returns:
        ErrorHandler: Global error handler
    """
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler


def setup_error_handling(
    log_level: int = logging.WARNING,
    enable_callbacks: bool = True,
    logger_name: str = "dep_injector",
) -> ErrorHandler:
    """
    Replace the global error handler.

    Returns:
        ErrorHandler: Configured error handler
    """
    global _global_error_handler
    _global_error_handler = ErrorHandler(logger_name, log_level, enable_callbacks)
    return _global_error_handler


def log_network_error(
    message: str,
    module: str,
    function: str,
    url: Optional[str] = None,
    status_code: Optional[int] = None,
    dependency_name: Optional[str] = None,
    exception: Optional[BaseException] = None,
) -> ErrorContext:
    """
    Record a failed artifact download.

    Args:
        message: Error message
        module: Module name
        function: Function name
        url: URL that failed (reduced to scheme, host and path)
        status_code: HTTP status code, when a response was received
        dependency_name: ``artifact-version`` of the dependency
        exception: Underlying exception
    """
    details: Dict[str, Any] = {}
    if url is not None:
        details["url"] = sanitize_url(url)
    if status_code is not None:
        details["status_code"] = status_code
    if dependency_name is not None:
        details["dependency"] = dependency_name

    return get_error_handler().error(
        ErrorCategory.NETWORK,
        message,
        module,
        function,
        details=details,
        exception=exception,
        suggestions=[
            "Check network connectivity",
            "Verify the repository URL and the artifact coordinates",
        ],
    )


def log_filesystem_error(
    message: str,
    module: str,
    function: str,
    path: Optional[str] = None,
    dependency_name: Optional[str] = None,
    exception: Optional[BaseException] = None,
) -> ErrorContext:
    """Record a cache directory or file failure."""
    details: Dict[str, Any] = {}
    if path is not None:
        details["path"] = path
    if dependency_name is not None:
        details["dependency"] = dependency_name

    return get_error_handler().error(
        ErrorCategory.FILESYSTEM,
        message,
        module,
        function,
        details=details,
        exception=exception,
        suggestions=["Check that the cache root is writable"],
    )


def log_injection_error(
    message: str,
    module: str,
    function: str,
    target: Any = None,
    dependency_name: Optional[str] = None,
    exception: Optional[BaseException] = None,
) -> ErrorContext:
    """Record a failure to attach an artifact to an injection target."""
    details: Dict[str, Any] = {"target_type": type(target).__name__}
    if dependency_name is not None:
        details["dependency"] = dependency_name

    return get_error_handler().error(
        ErrorCategory.INJECTION,
        message,
        module,
        function,
        details=details,
        exception=exception,
        suggestions=["Pass a target exposing add_path(path), such as SysPathTarget"],
    )
