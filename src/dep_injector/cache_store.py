"""
Local artifact cache backed by remote repositories.

Artifacts live under a cache root using the conventional layout
``group/as/dirs/artifact/version/artifact-version.ext``. The presence of a
file at that path is the only record that an artifact has been resolved;
no checksum or metadata file is consulted.
"""

import os
import shutil
import stat
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Union

import httpx

from .config import InjectorConfig, get_config
from .dependency import Dependency
from .error_handling import log_filesystem_error, log_network_error
from .exceptions import DependencyDownloadError
from .structured_logging import (
    log_cache_hit,
    log_download_complete,
    log_download_failed,
    log_download_start,
)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class CachedArtifact:
    """An artifact found on disk under a cache root."""

    group: str
    artifact: str
    version: str
    path: Path
    size_bytes: int

    @property
    def notation(self) -> str:
        return f"{self.group}:{self.artifact}:{self.version}"


class CacheStats:
    """Cache statistics."""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.downloads = 0
        self.failures = 0
        self.bytes_downloaded = 0
        self._lock = Lock()

    def record_hit(self) -> None:
        with self._lock:
            self.hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self.misses += 1

    def record_download(self, size_bytes: int) -> None:
        with self._lock:
            self.downloads += 1
            self.bytes_downloaded += size_bytes

    def record_failure(self) -> None:
        with self._lock:
            self.failures += 1

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self.hits + self.misses
            return {
                "hits": self.hits,
                "misses": self.misses,
                "downloads": self.downloads,
                "failures": self.failures,
                "bytes_downloaded": self.bytes_downloaded,
                "total_requests": total,
                "hit_rate_percent": (self.hits / total) * 100.0 if total else 0.0,
            }

    def reset(self) -> None:
        with self._lock:
            self.hits = 0
            self.misses = 0
            self.downloads = 0
            self.failures = 0
            self.bytes_downloaded = 0


def _remove_readonly(func, path, excinfo) -> None:
    os.chmod(path, stat.S_IWUSR)
    func(path)


class CacheStore:
    """
    Maps dependencies to local files, downloading on a cache miss.

    All work happens synchronously on the calling thread. Concurrent calls
    for the same dependency and cache root are not coordinated.

    Use as a context manager to share one HTTP client across several
    downloads; otherwise a client is opened and closed per download.
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        config: Optional[InjectorConfig] = None,
    ):
        """
        Initialize the cache store.

        Args:
            client: HTTP client to download with; never closed by the store
            config: Configuration, defaults to the global one
        """
        self.config = config or get_config()
        self._client = client
        self._owns_client = False
        self._stats = CacheStats()

    def __enter__(self) -> "CacheStore":
        if self._client is None:
            self._client = self._build_client()
            self._owns_client = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None
            self._owns_client = False

    def _build_client(self) -> httpx.Client:
        network = self.config.network
        timeout = httpx.Timeout(
            connect=network.connect_timeout,
            read=network.read_timeout,
            write=network.write_timeout,
            pool=network.pool_timeout,
        )
        return httpx.Client(
            timeout=timeout,
            headers={"User-Agent": network.user_agent},
            follow_redirects=network.follow_redirects,
        )

    def resolve_root(self, cache_root: Optional[PathLike] = None) -> Path:
        return Path(cache_root if cache_root is not None else self.config.cache.cache_root)

    def is_cached(self, dependency: Dependency, cache_root: Optional[PathLike] = None) -> bool:
        """
        Check whether the dependency is present in the cache.

        Any regular file at the cache path counts, whatever its content,
        unless atomic writes are enabled, in which case it must also be
        non-empty.
        """
        destination = dependency.cache_path(self.resolve_root(cache_root))
        if self.config.cache.atomic_writes:
            return destination.is_file() and destination.stat().st_size > 0
        return destination.is_file()

    def ensure_local(
        self, dependency: Dependency, cache_root: Optional[PathLike] = None
    ) -> Path:
        """
        Return the local path of a dependency, downloading it if missing.

        Args:
            dependency: Dependency to resolve
            cache_root: Cache root directory, defaults to the configured one

        Returns:
            Path: Location of the artifact under the cache root

        Raises:
            DependencyDownloadError: If the artifact could not be fetched or
                written, or is still missing afterwards
        """
        destination = dependency.cache_path(self.resolve_root(cache_root))

        if self.is_cached(dependency, cache_root):
            self._stats.record_hit()
            log_cache_hit(dependency.name, str(destination))
            return destination

        self._stats.record_miss()
        self._download(dependency, destination)

        if not destination.is_file():
            self._stats.record_failure()
            log_filesystem_error(
                "Artifact missing after download",
                "cache_store",
                "ensure_local",
                path=str(destination),
                dependency_name=dependency.name,
            )
            raise DependencyDownloadError(dependency.name)

        return destination

    def _download(self, dependency: Dependency, destination: Path) -> None:
        url: Optional[str] = None
        start_time = time.time()
        try:
            url = dependency.download_url()
            destination.parent.mkdir(parents=True, exist_ok=True)
            log_download_start(dependency.name, url)

            if self._client is not None:
                size = self._stream_to_file(self._client, url, destination)
            else:
                with self._build_client() as client:
                    size = self._stream_to_file(client, url, destination)

        except Exception as e:
            self._stats.record_failure()
            log_download_failed(dependency.name, url, str(e))
            if isinstance(e, OSError):
                log_filesystem_error(
                    f"Could not write dependency '{dependency.name}'",
                    "cache_store",
                    "_download",
                    path=str(destination),
                    dependency_name=dependency.name,
                    exception=e,
                )
            else:
                status_code = None
                if isinstance(e, httpx.HTTPStatusError):
                    status_code = e.response.status_code
                log_network_error(
                    f"Could not download dependency '{dependency.name}'",
                    "cache_store",
                    "_download",
                    url=url,
                    status_code=status_code,
                    dependency_name=dependency.name,
                    exception=e,
                )
            raise DependencyDownloadError(
                dependency.name, f"Unable to download dependency '{dependency.name}': {e}"
            ) from e

        self._stats.record_download(size)
        log_download_complete(
            dependency.name,
            str(destination),
            size,
            duration_ms=int((time.time() - start_time) * 1000),
        )

    def _stream_to_file(self, client: httpx.Client, url: str, destination: Path) -> int:
        atomic = self.config.cache.atomic_writes

        with client.stream("GET", url) as response:
            response.raise_for_status()

            if atomic:
                fd, temp_name = tempfile.mkstemp(
                    dir=destination.parent, prefix=f".{destination.name}.", suffix=".part"
                )
                target = Path(temp_name)
                handle = os.fdopen(fd, "wb")
            else:
                target = destination
                handle = open(destination, "xb")

            written = 0
            try:
                with handle:
                    for chunk in response.iter_bytes(self.config.network.chunk_size):
                        handle.write(chunk)
                        written += len(chunk)

                if atomic:
                    if written == 0:
                        raise ValueError(f"Empty response body from {url}")
                    os.replace(target, destination)
            except BaseException:
                # Never leave a partial file that a later call would treat as a hit
                target.unlink(missing_ok=True)
                raise

        return written

    def entries(self, cache_root: Optional[PathLike] = None) -> List[CachedArtifact]:
        """
        List artifacts present under a cache root.

        Files that do not follow the cache layout are ignored.
        """
        root = self.resolve_root(cache_root)
        if not root.is_dir():
            return []

        artifacts = []
        for path in sorted(root.rglob("*")):
            if not path.is_file():
                continue
            parts = path.relative_to(root).parts
            if len(parts) < 4:
                continue
            *group_parts, artifact, version, file_name = parts
            if not file_name.startswith(f"{artifact}-{version}."):
                continue
            artifacts.append(
                CachedArtifact(
                    group=".".join(group_parts),
                    artifact=artifact,
                    version=version,
                    path=path,
                    size_bytes=path.stat().st_size,
                )
            )
        return artifacts

    def remove(self, dependency: Dependency, cache_root: Optional[PathLike] = None) -> bool:
        """
        Remove one artifact and any directories left empty by it.

        Returns:
            True if a file was removed, False if it was not cached
        """
        root = self.resolve_root(cache_root)
        destination = dependency.cache_path(root)
        if not destination.is_file():
            return False

        destination.unlink()
        parent = destination.parent
        while parent != root and root in parent.parents:
            try:
                parent.rmdir()
            except OSError:
                break
            parent = parent.parent
        return True

    def clear(self, cache_root: Optional[PathLike] = None) -> int:
        """
        Delete the whole cache root.

        Returns:
            Number of artifacts that were removed
        """
        root = self.resolve_root(cache_root)
        if not root.exists():
            return 0

        count = len(self.entries(root))
        try:
            shutil.rmtree(root)
        except PermissionError:
            shutil.rmtree(root, onerror=_remove_readonly)
        return count

    def get_stats(self) -> Dict[str, Any]:
        return self._stats.get_stats()

    def reset_stats(self) -> None:
        self._stats.reset()
