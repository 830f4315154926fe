"""Dependency coordinates and the paths and URLs derived from them."""

from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Optional, Union

import httpx

from .config import DEFAULT_EXTENSION, get_config
from .exceptions import InvalidConfigurationError, MalformedDescriptorError
from .repository import MAVEN_CENTRAL, Repository, resolve_repository

NOTATION_SEPARATOR = ":"

RepositoryLike = Union[Repository, str]


def _validate_field(field_name: str, value: str) -> None:
    if value is None or not isinstance(value, str) or not value.strip():
        raise InvalidConfigurationError(f"{field_name} must be a non-empty string")
    if "/" in value or "\\" in value or value in (".", ".."):
        raise InvalidConfigurationError(f"{field_name} must not contain path components: {value!r}")


def _configured_extension(extension: Optional[str]) -> str:
    return extension if extension is not None else get_config().cache.default_extension


@dataclass(frozen=True)
class Dependency:
    """
    A single artifact identified by group, artifact and version.

    Instances are immutable and compare structurally, so they can be used
    directly as dictionary keys or set members.

    The constructor defaults the extension to ``jar``; ``create`` and
    ``parse`` default it to the configured ``cache.default_extension``.
    """

    group: str
    artifact: str
    version: str
    repository: Repository = MAVEN_CENTRAL
    extension: str = DEFAULT_EXTENSION

    def __post_init__(self):
        _validate_field("group", self.group)
        _validate_field("artifact", self.artifact)
        _validate_field("version", self.version)
        if any(not part for part in self.group.split(".")):
            raise InvalidConfigurationError(f"group has an empty segment: {self.group!r}")

        if self.repository is None:
            raise InvalidConfigurationError("repository must not be None")
        if not isinstance(self.repository, Repository):
            object.__setattr__(self, "repository", resolve_repository(self.repository))

        extension = DEFAULT_EXTENSION if self.extension is None else self.extension
        _validate_field("extension", extension)
        object.__setattr__(self, "extension", extension.lstrip("."))

    @classmethod
    def create(
        cls,
        group: str,
        artifact: str,
        version: str,
        repository: RepositoryLike = MAVEN_CENTRAL,
        extension: Optional[str] = None,
    ) -> "Dependency":
        """
        Build a dependency from its three coordinates.

        Raises:
            InvalidConfigurationError: If any argument is absent or empty
        """
        return cls(group, artifact, version, repository, _configured_extension(extension))

    @classmethod
    def parse(
        cls,
        notation: str,
        repository: RepositoryLike = MAVEN_CENTRAL,
        extension: Optional[str] = None,
    ) -> "Dependency":
        """
        Parse ``group:artifact:version`` notation.

        Args:
            notation: Compact notation with exactly two separators
            repository: Repository holding the artifact
            extension: Packaging extension, defaults to the configured one

        Returns:
            Dependency: The parsed dependency

        Raises:
            InvalidConfigurationError: If repository is absent
            MalformedDescriptorError: If notation does not split into
                exactly three non-empty fields
        """
        if repository is None:
            raise InvalidConfigurationError("repository must not be None")
        if not isinstance(notation, str):
            raise MalformedDescriptorError("Notation must be a string")

        data = notation.split(NOTATION_SEPARATOR)
        if len(data) != 3 or any(not part.strip() for part in data):
            raise MalformedDescriptorError(
                f"Notation must have only group, artifact and version separated by "
                f"'{NOTATION_SEPARATOR}': {notation!r}"
            )

        group, artifact, version = (part.strip() for part in data)
        return cls(group, artifact, version, repository, _configured_extension(extension))

    @property
    def name(self) -> str:
        """Human readable ``artifact-version`` name."""
        return f"{self.artifact}-{self.version}"

    @property
    def file_name(self) -> str:
        return f"{self.name}.{self.extension}"

    @property
    def notation(self) -> str:
        return NOTATION_SEPARATOR.join((self.group, self.artifact, self.version))

    def relative_path(self) -> PurePath:
        """Path of the artifact relative to a cache root."""
        return PurePath(*self.group.split("."), self.artifact, self.version, self.file_name)

    def cache_path(self, cache_root: Union[str, Path]) -> Path:
        return Path(cache_root).joinpath(self.relative_path())

    def download_url(self) -> str:
        """
        Compose the remote download URL.

        Raises:
            MalformedDescriptorError: If the composed URL is not a valid
                http(s) URL
        """
        raw = (
            f"{self.repository.url}{self.group.replace('.', '/')}/{self.artifact}/"
            f"{self.version}/{self.file_name}"
        )
        try:
            url = httpx.URL(raw)
        except (httpx.InvalidURL, ValueError, TypeError) as e:
            raise MalformedDescriptorError(f"Invalid download URL for '{self.name}': {e}") from e

        if url.scheme not in ("http", "https") or not url.host:
            raise MalformedDescriptorError(f"Invalid download URL for '{self.name}': {raw}")
        return raw

    def __str__(self) -> str:
        return f"{self.notation} ({self.repository.url})"


def as_dependency(
    value: Union[Dependency, str], repository: Optional[RepositoryLike] = None
) -> Dependency:
    """
    Accept a Dependency or a compact notation string.

    ``repository`` only applies to notation strings; a Dependency already
    carries its repository.
    """
    if isinstance(value, Dependency):
        return value
    if isinstance(value, str):
        return Dependency.parse(value, repository if repository is not None else MAVEN_CENTRAL)
    raise InvalidConfigurationError(
        f"Expected a Dependency or notation string, got {type(value).__name__}"
    )
