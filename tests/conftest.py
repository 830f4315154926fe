"""
Shared fixtures for dep-injector tests.

Network access is simulated with httpx.MockTransport; nothing in the test
suite talks to a real repository.
"""

import io
import zipfile
from pathlib import Path

import httpx
import pytest

from dep_injector.cache_store import CacheStore
from dep_injector.config import InjectorConfig, reset_config, set_config
from dep_injector.error_handling import setup_error_handling
from dep_injector.injector import reset_injector

PROBE_MODULE = "dep_injector_probe_mod"


class FakeRepository:
    """In-memory artifact repository served through httpx.MockTransport."""

    def __init__(self):
        self.artifacts = {}
        self.requests = []

    def publish(self, dependency, content: bytes) -> None:
        self.artifacts[dependency.download_url()] = content

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url not in self.artifacts:
            return httpx.Response(404, text="Not Found")
        return httpx.Response(200, content=self.artifacts[url])

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


class RecordingTarget:
    """Injection target that remembers what it was given."""

    def __init__(self):
        self.paths = []

    def add_path(self, path: Path) -> None:
        self.paths.append(path)


@pytest.fixture(autouse=True)
def isolated_globals():
    """Give every test default configuration and fresh global singletons."""
    set_config(InjectorConfig())
    reset_injector()
    setup_error_handling()
    yield
    reset_config()
    reset_injector()


@pytest.fixture
def temp_dir(tmp_path):
    return tmp_path


@pytest.fixture
def cache_root(tmp_path):
    return tmp_path / ".dependencies"


@pytest.fixture
def fake_repository():
    return FakeRepository()


@pytest.fixture
def cache_store(fake_repository):
    client = fake_repository.client()
    yield CacheStore(client=client)
    client.close()


@pytest.fixture
def recording_target():
    return RecordingTarget()


@pytest.fixture
def module_archive() -> bytes:
    """A zip archive holding one importable module."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr(f"{PROBE_MODULE}.py", 'GREETING = "hello from the cache"\n')
    return buffer.getvalue()
