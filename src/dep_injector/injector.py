"""
Attach cached artifacts to a running interpreter.

An injection target is any object exposing ``add_path(path)``. The stock
target, SysPathTarget, appends zip-format archives to ``sys.path`` so the
import system can load modules from them through zipimport without a
restart.
"""

import importlib
import sys
from pathlib import Path
from typing import Iterable, List, MutableSequence, Optional, Protocol, Union, runtime_checkable

from .cache_store import CacheStore, PathLike
from .config import InjectorConfig, get_config
from .dependency import Dependency, RepositoryLike, as_dependency
from .error_handling import log_injection_error
from .exceptions import DependencyInjectionError, InvalidConfigurationError
from .structured_logging import log_injection

DependencyLike = Union[Dependency, str]


@runtime_checkable
class InjectionTarget(Protocol):
    """Capability to extend an execution environment's code search path."""

    def add_path(self, path: Path) -> None:
        ...


class SysPathTarget:
    """
    Injection target backed by an import search path list.

    Entries are only ever appended: an archive already on the path is left
    where it is, and nothing is removed or reordered.
    """

    def __init__(self, search_path: Optional[MutableSequence[str]] = None):
        self.search_path = sys.path if search_path is None else search_path

    def add_path(self, path: Path) -> None:
        entry = str(path)
        if entry not in self.search_path:
            self.search_path.append(entry)
        importlib.invalidate_caches()

    def __contains__(self, path: object) -> bool:
        return str(path) in self.search_path

    def __repr__(self) -> str:
        kind = "sys.path" if self.search_path is sys.path else "custom"
        return f"SysPathTarget({kind})"


class Injector:
    """Resolves dependencies through a CacheStore and injects them."""

    def __init__(
        self,
        cache_store: Optional[CacheStore] = None,
        config: Optional[InjectorConfig] = None,
    ):
        self.config = config or get_config()
        self.cache_store = cache_store or CacheStore(config=self.config)

    def inject(
        self,
        path: PathLike,
        target: Optional[InjectionTarget],
        name: Optional[str] = None,
    ) -> None:
        """
        Append a local artifact to a target's code search path.

        Args:
            path: Local artifact file
            target: Object exposing ``add_path``
            name: Display name for errors, defaults to the file stem

        Raises:
            DependencyInjectionError: If the target is missing, lacks the
                capability, or the call raises
        """
        path = Path(path)
        name = name or path.stem

        if target is None:
            log_injection_error(
                "No injection target given", "injector", "inject", target, name
            )
            raise DependencyInjectionError(
                name, f"Unable to inject dependency '{name}': no target given"
            )

        add_path = getattr(target, "add_path", None)
        if not callable(add_path):
            log_injection_error(
                "Target cannot extend its search path", "injector", "inject", target, name
            )
            raise DependencyInjectionError(
                name,
                f"Unable to inject dependency '{name}': "
                f"{type(target).__name__} has no add_path capability",
            )

        try:
            add_path(path)
        except Exception as e:
            log_injection_error(
                f"Could not inject dependency '{name}'",
                "injector",
                "inject",
                target,
                name,
                exception=e,
            )
            raise DependencyInjectionError(
                name, f"Unable to inject dependency '{name}': {e}"
            ) from e

        log_injection(name, str(path), repr(target))

    def inject_dependency(
        self,
        dependency: DependencyLike,
        target: Optional[InjectionTarget],
        cache_root: Optional[PathLike] = None,
        repository: Optional[RepositoryLike] = None,
    ) -> Path:
        """
        Resolve one dependency into the cache and inject it.

        Args:
            dependency: A Dependency or ``group:artifact:version`` notation
            target: Object exposing ``add_path``
            cache_root: Cache root directory, defaults to the configured one
            repository: Repository for notation strings

        Returns:
            Path: The injected local artifact

        Raises:
            DependencyDownloadError: If the artifact could not be cached
            DependencyInjectionError: If the target rejected it
        """
        dependency = as_dependency(dependency, repository)
        local_path = self.cache_store.ensure_local(dependency, cache_root)
        self.inject(local_path, target, dependency.name)
        return local_path

    def inject_dependencies(
        self,
        dependencies: Iterable[DependencyLike],
        target: Optional[InjectionTarget],
        cache_root: Optional[PathLike] = None,
        repository: Optional[RepositoryLike] = None,
    ) -> List[Path]:
        """
        Inject dependencies in order, stopping at the first failure.

        Artifacts injected before a failure stay injected.

        Returns:
            List[Path]: The injected local artifacts, in order
        """
        if dependencies is None:
            raise InvalidConfigurationError("dependencies must not be None")

        injected = []
        for dependency in dependencies:
            injected.append(self.inject_dependency(dependency, target, cache_root, repository))
        return injected


_global_injector: Optional[Injector] = None


def get_injector() -> Injector:
    """
    Get the global injector instance.

    Returns:
        Global Injector instance
    """
    global _global_injector
    if _global_injector is None:
        _global_injector = Injector()
    return _global_injector


def reset_injector() -> None:
    """Reset the global injector (useful for testing)."""
    global _global_injector
    _global_injector = None


def inject_dependency(
    dependency: DependencyLike,
    target: Optional[InjectionTarget] = None,
    cache_root: Optional[PathLike] = None,
    repository: Optional[RepositoryLike] = None,
) -> Path:
    """Inject one dependency, into ``sys.path`` unless a target is given."""
    return get_injector().inject_dependency(
        dependency, target if target is not None else SysPathTarget(), cache_root, repository
    )


def inject_dependencies(
    dependencies: Iterable[DependencyLike],
    target: Optional[InjectionTarget] = None,
    cache_root: Optional[PathLike] = None,
    repository: Optional[RepositoryLike] = None,
) -> List[Path]:
    """Inject several dependencies, into ``sys.path`` unless a target is given."""
    return get_injector().inject_dependencies(
        dependencies, target if target is not None else SysPathTarget(), cache_root, repository
    )
