"""
Remote artifact repositories.

A repository is nothing more than a base URL under which artifacts are
laid out by the conventional ``group/artifact/version`` path.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from .config import get_config
from .exceptions import InvalidConfigurationError


@dataclass(frozen=True)
class Repository:
    """A named remote base location for artifacts."""

    url: str
    name: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if not self.url or not isinstance(self.url, str) or not self.url.strip():
            raise InvalidConfigurationError("Repository url must be a non-empty string")

        # Exactly one trailing slash before artifact paths are appended
        object.__setattr__(self, "url", self.url.strip().rstrip("/") + "/")

    @classmethod
    def create(cls, url: str, name: Optional[str] = None) -> "Repository":
        return cls(url, name)

    def __str__(self) -> str:
        return self.url


MAVEN_CENTRAL = Repository("https://repo1.maven.org/maven2/", "central")
SONATYPE_SNAPSHOTS = Repository(
    "https://oss.sonatype.org/content/repositories/snapshots/", "snapshots"
)

_WELL_KNOWN = {
    MAVEN_CENTRAL.name: MAVEN_CENTRAL,
    SONATYPE_SNAPSHOTS.name: SONATYPE_SNAPSHOTS,
}


def resolve_repository(value: Union[Repository, str, None]) -> Repository:
    """
    Turn a repository reference into a Repository.

    Args:
        value: A Repository, a configured repository name (``central``,
            ``snapshots`` or any name from the ``network.repositories``
            table), or a raw base URL

    Returns:
        Repository: The resolved repository

    Raises:
        InvalidConfigurationError: If value is absent or empty
    """
    if isinstance(value, Repository):
        return value
    if value is None or not isinstance(value, str) or not value.strip():
        raise InvalidConfigurationError("repository must be a Repository, a name or a URL")

    configured = get_config().network.repositories
    if value in configured:
        return Repository(configured[value], value)
    if value in _WELL_KNOWN:
        return _WELL_KNOWN[value]
    return Repository(value)
