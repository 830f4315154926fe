"""
Exception types raised by dep-injector.

Every failure of a public operation surfaces as exactly one of the
subclasses of DependencyInjectorError below.
"""

from typing import Optional


class DependencyInjectorError(Exception):
    """Base class for all dep-injector errors."""


class InvalidConfigurationError(DependencyInjectorError, ValueError):
    """Raised when a required argument is absent or empty."""


class MalformedDescriptorError(DependencyInjectorError, ValueError):
    """Raised for a bad compact notation or an ill-formed download URL."""


class DependencyDownloadError(DependencyInjectorError):
    """Raised when an artifact could not be materialized in the cache."""

    def __init__(self, dependency_name: str, message: Optional[str] = None) -> None:
        self.dependency_name = dependency_name
        if message is None:
            message = f"Unable to download dependency '{dependency_name}'"
        super().__init__(message)


class DependencyInjectionError(DependencyInjectorError):
    """Raised when a cached artifact could not be attached to a target."""

    def __init__(self, dependency_name: str, message: Optional[str] = None) -> None:
        self.dependency_name = dependency_name
        if message is None:
            message = f"Unable to inject dependency '{dependency_name}'"
        super().__init__(message)
