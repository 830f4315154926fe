"""
Configuration management for dep-injector.

Settings come from built-in defaults, an optional JSON or YAML file and
``DEP_INJECTOR_*`` environment variables, in that order. Core operations
always accept explicit arguments; configuration only supplies defaults.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional

from rich.console import Console

try:
    import yaml

    HAS_YAML = True
except ImportError:
    HAS_YAML = False

console = Console(stderr=True)

DEFAULT_CACHE_ROOT = ".dependencies"
DEFAULT_EXTENSION = "jar"


@dataclass
class CacheConfig:
    """Local artifact cache settings."""

    cache_root: str = DEFAULT_CACHE_ROOT
    default_extension: str = DEFAULT_EXTENSION
    atomic_writes: bool = False


@dataclass
class NetworkConfig:
    """HTTP client and repository settings."""

    user_agent: str = "dep-injector/1.0.0"
    repositories: Dict[str, str] = field(
        default_factory=lambda: {
            "central": "https://repo1.maven.org/maven2/",
            "snapshots": "https://oss.sonatype.org/content/repositories/snapshots/",
        }
    )
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    write_timeout: float = 60.0
    pool_timeout: float = 5.0
    follow_redirects: bool = True
    chunk_size: int = 64 * 1024


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "WARNING"


@dataclass
class InjectorConfig:
    """Main configuration containing all subsections."""

    cache: CacheConfig = field(default_factory=CacheConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_global_config: Optional[InjectorConfig] = None

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigProblem(NamedTuple):
    """An invalid setting and where it lives."""

    section: str
    key: str
    message: str
    # Repository name, for a bad entry of the repositories table
    item: Optional[str] = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def find_config_problems(config: InjectorConfig) -> List[ConfigProblem]:
    """
    Check every setting for type and range.

    Args:
        config: Configuration to validate

    Returns:
        List[ConfigProblem]: Invalid settings (empty if valid)
    """
    problems = []

    cache = config.cache
    if not _is_text(cache.cache_root):
        problems.append(
            ConfigProblem("cache", "cache_root", "cache.cache_root must be a non-empty path")
        )
    extension = cache.default_extension
    if not _is_text(extension) or not extension.lstrip(".") or "/" in extension or "\\" in extension:
        problems.append(
            ConfigProblem(
                "cache", "default_extension", "cache.default_extension must be a bare file extension"
            )
        )
    if not isinstance(cache.atomic_writes, bool):
        problems.append(
            ConfigProblem("cache", "atomic_writes", "cache.atomic_writes must be true or false")
        )

    network = config.network
    if not _is_text(network.user_agent):
        problems.append(
            ConfigProblem("network", "user_agent", "network.user_agent must be a non-empty string")
        )
    for timeout_name in ("connect_timeout", "read_timeout", "write_timeout", "pool_timeout"):
        value = getattr(network, timeout_name)
        if not _is_number(value) or value <= 0:
            problems.append(
                ConfigProblem("network", timeout_name, f"network.{timeout_name} must be a positive number")
            )
    if not isinstance(network.chunk_size, int) or isinstance(network.chunk_size, bool) or network.chunk_size <= 0:
        problems.append(
            ConfigProblem("network", "chunk_size", "network.chunk_size must be a positive integer")
        )
    if not isinstance(network.follow_redirects, bool):
        problems.append(
            ConfigProblem("network", "follow_redirects", "network.follow_redirects must be true or false")
        )
    if not isinstance(network.repositories, dict):
        problems.append(
            ConfigProblem("network", "repositories", "network.repositories must be a name to URL mapping")
        )
    else:
        for name, url in network.repositories.items():
            if not _is_text(url):
                problems.append(
                    ConfigProblem(
                        "network",
                        "repositories",
                        f"network.repositories[{name!r}] must be a non-empty URL",
                        item=name,
                    )
                )

    log_level = config.logging.log_level
    if not isinstance(log_level, str) or log_level.upper() not in _LOG_LEVELS:
        problems.append(
            ConfigProblem(
                "logging", "log_level", f"logging.log_level must be one of {sorted(_LOG_LEVELS)}"
            )
        )

    return problems


def validate_config_values(config: InjectorConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    return [problem.message for problem in find_config_problems(config)]


def load_config_file(config_path: Path) -> Optional[Any]:
    """Load config from file, or None if it is missing or unreadable."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            if config_path.suffix.lower() in [".yaml", ".yml"]:
                if HAS_YAML:
                    return yaml.safe_load(f)
                console.print("⚠️  PyYAML not installed, skipping YAML config", style="yellow")
                return None
            elif config_path.suffix.lower() == ".json":
                return json.load(f)
    except Exception as e:
        console.print(f"⚠️  Error loading config from {config_path}: {e}", style="yellow")

    return None


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".dep-injector.json",
        Path.cwd() / ".dep-injector.yaml",
        Path.cwd() / ".dep-injector.yml",
        Path.home() / ".config" / "dep-injector" / "config.json",
        Path.home() / ".config" / "dep-injector" / "config.yaml",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: InjectorConfig) -> None:
    """Apply ``DEP_INJECTOR_*`` environment variables."""

    def get_env_bool(key: str, default: bool) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    def get_env_float(key: str) -> Optional[float]:
        try:
            return float(os.environ[key]) if key in os.environ else None
        except ValueError:
            console.print(f"⚠️  Invalid float value for {key}, using default", style="yellow")
            return None

    if cache_root := os.environ.get("DEP_INJECTOR_CACHE_ROOT"):
        config.cache.cache_root = cache_root
    if extension := os.environ.get("DEP_INJECTOR_DEFAULT_EXTENSION"):
        config.cache.default_extension = extension.lstrip(".")
    config.cache.atomic_writes = get_env_bool(
        "DEP_INJECTOR_ATOMIC_WRITES", config.cache.atomic_writes
    )

    if user_agent := os.environ.get("DEP_INJECTOR_USER_AGENT"):
        config.network.user_agent = user_agent
    if connect_timeout := get_env_float("DEP_INJECTOR_CONNECT_TIMEOUT"):
        config.network.connect_timeout = connect_timeout
    if read_timeout := get_env_float("DEP_INJECTOR_READ_TIMEOUT"):
        config.network.read_timeout = read_timeout
    config.network.follow_redirects = get_env_bool(
        "DEP_INJECTOR_FOLLOW_REDIRECTS", config.network.follow_redirects
    )

    if log_level := os.environ.get("DEP_INJECTOR_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()


def apply_config_section(config: Any, section_data: Dict[str, Any], section_name: str) -> None:
    """Apply configuration from dictionary to config section."""
    for key, value in section_data.items():
        if hasattr(config, key):
            if isinstance(getattr(config, key), dict) and isinstance(value, dict):
                getattr(config, key).update(value)
            else:
                setattr(config, key, value)
        else:
            console.print(f"⚠️  Unknown config key in {section_name}: {key}", style="yellow")


def load_config(config_path: Optional[Path] = None) -> InjectorConfig:
    """Build a configuration from file and environment."""
    config = InjectorConfig()

    config_file = config_path or find_config_file()
    if config_file:
        file_config = load_config_file(config_file)
        if file_config is not None and not isinstance(file_config, dict):
            console.print(
                f"⚠️  Ignoring {config_file}: top level must be a mapping", style="yellow"
            )
        elif file_config:
            for section in ("cache", "network", "logging"):
                if isinstance(file_config.get(section), dict):
                    apply_config_section(getattr(config, section), file_config[section], section)

    load_environment_overrides(config)

    problems = find_config_problems(config)
    if problems:
        console.print("⚠️  Configuration validation errors:", style="red")
        for problem in problems:
            console.print(f"  • {problem.message}", style="red")
        console.print("Using default values for invalid settings.", style="yellow")
        config = _with_defaults_for_invalid(config, problems)

    return config


def _with_defaults_for_invalid(
    config: InjectorConfig, problems: List[ConfigProblem]
) -> InjectorConfig:
    defaults = InjectorConfig()
    for problem in problems:
        section = getattr(config, problem.section)
        if problem.item is not None:
            section.repositories.pop(problem.item, None)
        else:
            setattr(section, problem.key, getattr(getattr(defaults, problem.section), problem.key))
    return config


def get_config() -> InjectorConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def set_config(config: InjectorConfig) -> None:
    """Install a configuration as the global instance."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Generate a sample configuration file."""
    defaults = InjectorConfig()
    sample_config = {
        "cache": {
            "cache_root": defaults.cache.cache_root,
            "default_extension": defaults.cache.default_extension,
            "atomic_writes": defaults.cache.atomic_writes,
        },
        "network": {
            "user_agent": defaults.network.user_agent,
            "repositories": defaults.network.repositories,
            "connect_timeout": defaults.network.connect_timeout,
            "read_timeout": defaults.network.read_timeout,
            "write_timeout": defaults.network.write_timeout,
            "pool_timeout": defaults.network.pool_timeout,
            "follow_redirects": defaults.network.follow_redirects,
            "chunk_size": defaults.network.chunk_size,
        },
        "logging": {
            "log_level": defaults.logging.log_level,
        },
    }

    return json.dumps(sample_config, indent=2)
