"""
dep-injector: resolve ``group:artifact:version`` artifacts from remote
repositories into a local cache and attach them to a running interpreter.
"""

from .cache_store import CachedArtifact, CacheStore
from .dependency import Dependency
from .exceptions import (
    DependencyDownloadError,
    DependencyInjectionError,
    DependencyInjectorError,
    InvalidConfigurationError,
    MalformedDescriptorError,
)
from .injector import (
    InjectionTarget,
    Injector,
    SysPathTarget,
    get_injector,
    inject_dependencies,
    inject_dependency,
)
from .repository import MAVEN_CENTRAL, SONATYPE_SNAPSHOTS, Repository, resolve_repository

__version__ = "1.0.0"

__all__ = [
    "CachedArtifact",
    "CacheStore",
    "Dependency",
    "DependencyDownloadError",
    "DependencyInjectionError",
    "DependencyInjectorError",
    "InjectionTarget",
    "Injector",
    "InvalidConfigurationError",
    "MalformedDescriptorError",
    "MAVEN_CENTRAL",
    "Repository",
    "SONATYPE_SNAPSHOTS",
    "SysPathTarget",
    "get_injector",
    "inject_dependencies",
    "inject_dependency",
    "resolve_repository",
]
