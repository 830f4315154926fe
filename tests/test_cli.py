"""
CLI interface tests for dep-injector.
Tests the command-line interface and its subcommands.
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from dep_injector.cache_store import CacheStore
from dep_injector.dependency import Dependency
from dep_injector.main import cli

LIB = Dependency("org.example", "lib", "1.0.0")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def seeded_cache(cache_root):
    """A cache root holding two artifacts."""
    for notation in ("org.example:lib:1.0.0", "com.acme:tool:2.0"):
        path = Dependency.parse(notation).cache_path(cache_root)
        path.parent.mkdir(parents=True)
        path.write_bytes(b"archive")
    return cache_root


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self, runner):
        """Test CLI help message."""
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "dep-injector" in result.output.lower()

    def test_cli_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_info_command(self, runner):
        result = runner.invoke(cli, ["info"])

        assert result.exit_code == 0
        assert "dep-injector" in result.output.lower()
        assert "central" in result.output


class TestUrlCommand:
    """Test download URL derivation from the command line."""

    def test_default_repository(self, runner):
        result = runner.invoke(cli, ["url", "org.example:lib:1.0.0"])

        assert result.exit_code == 0
        assert result.output.strip() == "https://repo1.maven.org/maven2/org/example/lib/1.0.0/lib-1.0.0.jar"

    def test_named_repository_and_extension(self, runner):
        result = runner.invoke(cli, ["url", "org.example:lib:1.0-SNAPSHOT", "-r", "snapshots", "-e", "zip"])

        assert result.exit_code == 0
        assert result.output.strip() == (
            "https://oss.sonatype.org/content/repositories/snapshots/"
            "org/example/lib/1.0-SNAPSHOT/lib-1.0-SNAPSHOT.zip"
        )

    def test_malformed_notation(self, runner):
        result = runner.invoke(cli, ["url", "org.example:lib"])

        assert result.exit_code != 0
        assert "Error" in result.output

    def test_malformed_repository(self, runner):
        result = runner.invoke(cli, ["url", "org.example:lib:1.0.0", "-r", "ftp://repo.example.com"])

        assert result.exit_code != 0


class TestResolveCommand:
    """Test resolving into the cache."""

    def test_resolve_downloads_and_prints_path(self, runner, fake_repository, cache_root):
        fake_repository.publish(LIB, b"archive")
        client = fake_repository.client()

        with patch("dep_injector.main.CacheStore", lambda: CacheStore(client=client)):
            result = runner.invoke(cli, ["resolve", "org.example:lib:1.0.0", "--cache-root", str(cache_root)])

        assert result.exit_code == 0
        assert "downloaded" in result.output
        assert str(LIB.cache_path(cache_root)) in result.output
        assert LIB.cache_path(cache_root).read_bytes() == b"archive"

    def test_resolve_reports_cache_hit(self, runner, fake_repository, seeded_cache):
        client = fake_repository.client()

        with patch("dep_injector.main.CacheStore", lambda: CacheStore(client=client)):
            result = runner.invoke(cli, ["resolve", "org.example:lib:1.0.0", "--cache-root", str(seeded_cache)])

        assert result.exit_code == 0
        assert "cached" in result.output
        assert fake_repository.requests == []

    def test_resolve_missing_artifact(self, runner, fake_repository, cache_root):
        client = fake_repository.client()

        with patch("dep_injector.main.CacheStore", lambda: CacheStore(client=client)):
            result = runner.invoke(cli, ["resolve", "org.example:lib:1.0.0", "--cache-root", str(cache_root)])

        assert result.exit_code != 0
        assert "lib-1.0.0" in result.output
        assert not LIB.cache_path(cache_root).exists()


class TestCacheCommands:
    """Test cache management commands."""

    def test_list(self, runner, seeded_cache):
        result = runner.invoke(cli, ["cache", "list", "--cache-root", str(seeded_cache)])

        assert result.exit_code == 0
        assert "org.example" in result.output
        assert "tool" in result.output

    def test_list_empty(self, runner, cache_root):
        result = runner.invoke(cli, ["cache", "list", "--cache-root", str(cache_root)])

        assert result.exit_code == 0
        assert "empty" in result.output

    def test_stats(self, runner, seeded_cache):
        result = runner.invoke(cli, ["cache", "stats", "--cache-root", str(seeded_cache)])

        assert result.exit_code == 0
        assert "Artifacts: 2" in result.output

    def test_remove(self, runner, seeded_cache):
        result = runner.invoke(cli, ["cache", "remove", "org.example:lib:1.0.0", "--cache-root", str(seeded_cache)])

        assert result.exit_code == 0
        assert "Removed" in result.output
        assert not LIB.cache_path(seeded_cache).exists()

    def test_remove_missing(self, runner, cache_root):
        result = runner.invoke(cli, ["cache", "remove", "org.example:lib:1.0.0", "--cache-root", str(cache_root)])

        assert result.exit_code == 0
        assert "not found" in result.output

    def test_clear_requires_confirmation(self, runner, seeded_cache):
        result = runner.invoke(cli, ["cache", "clear", "--cache-root", str(seeded_cache)], input="n\n")

        assert "cancelled" in result.output
        assert seeded_cache.exists()

    def test_clear_confirmed(self, runner, seeded_cache):
        result = runner.invoke(cli, ["cache", "clear", "--confirm", "--cache-root", str(seeded_cache)])

        assert result.exit_code == 0
        assert "Cleared 2" in result.output
        assert not seeded_cache.exists()


class TestConfigCommands:
    """Test configuration commands."""

    def test_config_init(self, runner, temp_dir):
        config_path = temp_dir / "config.json"

        result = runner.invoke(cli, ["config", "init", "--path", str(config_path)])

        assert result.exit_code == 0
        assert json.loads(config_path.read_text())["cache"]["cache_root"] == ".dependencies"

    def test_config_init_keeps_existing(self, runner, temp_dir):
        config_path = temp_dir / "config.json"
        config_path.write_text("{}")

        result = runner.invoke(cli, ["config", "init", "--path", str(config_path)])

        assert result.exit_code == 0
        assert "already exists" in result.output
        assert config_path.read_text() == "{}"

    def test_config_show(self, runner):
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "Cache Root: .dependencies" in result.output
