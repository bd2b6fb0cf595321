"""
Configuration management for taskbar-lyrics.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml. Every section is
optional: a missing default config file simply yields the defaults.

The configuration file contains:
    - Cache directory for the per-provider lyric cache files
    - Network settings shared by all providers (timeout, user agent,
      fuzzy search parallelism)
    - Which official platform providers are enabled
    - Log directory and console log level

Environment Overrides:
    A .env file in the current directory is loaded first (python-dotenv).
    The following variables override values from config.yaml:
        TASKBAR_LYRICS_CACHE_DIR   -> cache.directory
        TASKBAR_LYRICS_LOG_LEVEL   -> logging.level
        TASKBAR_LYRICS_TIMEOUT     -> network.timeout_seconds

Example config.yaml:
    cache:
      directory: "~/.local/share/TaskbarLyrics/cache"

    network:
      timeout_seconds: 8
      user_agent: "TaskbarLyrics/1.0"
      search_parallelism: 3

    providers:
      enable_netease: true
      enable_qqmusic: true

    logging:
      directory: null  # Defaults to <cache dir parent>/logs
      level: INFO
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from taskbar_lyrics.core.exceptions import ConfigError


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

APP_DIR_NAME = "TaskbarLyrics"

DEFAULT_TIMEOUT_SECONDS = 8.0
DEFAULT_USER_AGENT = "TaskbarLyrics/1.0"
DEFAULT_SEARCH_PARALLELISM = 3
DEFAULT_LOG_LEVEL = "INFO"

ENV_CACHE_DIR = "TASKBAR_LYRICS_CACHE_DIR"
ENV_LOG_LEVEL = "TASKBAR_LYRICS_LOG_LEVEL"
ENV_TIMEOUT = "TASKBAR_LYRICS_TIMEOUT"


def default_cache_directory() -> Path:
    """
    Return the application cache directory.

    Uses %APPDATA% when it is set (Windows), otherwise ~/.local/share.
    """
    base = os.environ.get("APPDATA")
    root = Path(base) if base else Path.home() / ".local" / "share"
    return root / APP_DIR_NAME / "cache"


@dataclass(frozen=True)
class CacheConfig:
    """
    Lyric cache configuration.

    Attributes:
        directory: Directory holding one JSON file per cache namespace.
                   Created on first write, not at load time.
    """
    directory: Path


@dataclass(frozen=True)
class NetworkConfig:
    """
    Outbound HTTP configuration shared by every provider.

    Attributes:
        timeout_seconds: Total timeout for a single request. Kept short so
                         one slow upstream cannot stall the provider chain.
        user_agent: User-Agent header sent with every request.
        search_parallelism: Maximum simultaneous in-flight requests during
                            the fuzzy search stage.
    """
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT
    search_parallelism: int = DEFAULT_SEARCH_PARALLELISM


@dataclass(frozen=True)
class ProvidersConfig:
    """
    Official platform provider switches.

    A disabled provider is not registered, so its entries in a route are
    skipped and resolution moves on to the next source.
    """
    enable_netease: bool = True
    enable_qqmusic: bool = True


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging configuration.

    Attributes:
        directory: Directory where the per-run log files are written.
        level: Console log level name (DEBUG, INFO, WARNING, ERROR).
    """
    directory: Path
    level: str = DEFAULT_LOG_LEVEL


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() (or Config.default()) and treated as immutable.

    Example:
        config = load_config()
        print(f"Cache files in: {config.cache.directory}")
        print(f"Timeout: {config.network.timeout_seconds}s")
    """
    cache: CacheConfig
    network: NetworkConfig
    providers: ProvidersConfig
    logging: LoggingConfig

    @classmethod
    def default(cls) -> "Config":
        """Build a configuration made only of defaults."""
        cache_dir = default_cache_directory()
        return cls(
            cache=CacheConfig(directory=cache_dir),
            network=NetworkConfig(),
            providers=ProvidersConfig(),
            logging=LoggingConfig(directory=cache_dir.parent / "logs"),
        )


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml and the environment.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory
                     and falls back to defaults when it is absent.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config file is not found, the YAML is
                     invalid, a section is not a mapping, or a field has an
                     invalid value. The error message names the field.

    Behavior:
        1. Load .env into the process environment
        2. Locate config file (explicit path or CWD/config.yaml)
        3. Read and parse YAML content (empty file means defaults)
        4. Parse each section with defaults applied
        5. Apply environment overrides
        6. Create and return frozen Config object
    """
    load_dotenv()

    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    raw_config: dict[str, Any] = {}
    if config_path.exists():
        raw_config = _read_yaml(config_path)
    elif explicit:
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    cache_config = _parse_cache_config(_section(raw_config, "cache"))
    network_config = _parse_network_config(_section(raw_config, "network"))
    providers_config = _parse_providers_config(_section(raw_config, "providers"))
    logging_config = _parse_logging_config(
        _section(raw_config, "logging"),
        cache_config.directory
    )

    return Config(
        cache=cache_config,
        network=network_config,
        providers=providers_config,
        logging=logging_config
    )


def _read_yaml(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return raw_config


def _section(raw_config: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a config section, {} when absent, ConfigError when not a mapping."""
    section = raw_config.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _parse_cache_config(cache_section: dict[str, Any]) -> CacheConfig:
    directory = os.environ.get(ENV_CACHE_DIR) or cache_section.get("directory")

    if directory is None:
        return CacheConfig(directory=default_cache_directory())

    if not isinstance(directory, str) or not directory.strip():
        raise ConfigError(
            "'cache.directory' must be a non-empty string",
            details={"field": "cache.directory"}
        )

    return CacheConfig(directory=Path(directory.strip()).expanduser().resolve())


def _parse_network_config(network_section: dict[str, Any]) -> NetworkConfig:
    """
    Parse and validate the network configuration section.

    Raises:
        ConfigError: If timeout is not a positive number, the user agent is
                     blank, or parallelism is not a positive integer.
    """
    timeout = network_section.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)
    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        try:
            timeout = float(env_timeout)
        except ValueError as e:
            raise ConfigError(
                f"{ENV_TIMEOUT} must be a number",
                details={"field": ENV_TIMEOUT, "value": env_timeout}
            ) from e

    # bool is an int subclass, reject it explicitly
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError(
            "'network.timeout_seconds' must be a positive number",
            details={"field": "network.timeout_seconds", "value": timeout}
        )

    user_agent = network_section.get("user_agent", DEFAULT_USER_AGENT)
    if not isinstance(user_agent, str) or not user_agent.strip():
        raise ConfigError(
            "'network.user_agent' must be a non-empty string",
            details={"field": "network.user_agent"}
        )

    parallelism = network_section.get("search_parallelism", DEFAULT_SEARCH_PARALLELISM)
    if isinstance(parallelism, bool) or not isinstance(parallelism, int) or parallelism < 1:
        raise ConfigError(
            "'network.search_parallelism' must be a positive integer",
            details={"field": "network.search_parallelism", "value": parallelism}
        )

    return NetworkConfig(
        timeout_seconds=float(timeout),
        user_agent=user_agent.strip(),
        search_parallelism=parallelism
    )


def _parse_providers_config(providers_section: dict[str, Any]) -> ProvidersConfig:
    flags = {}
    for field in ("enable_netease", "enable_qqmusic"):
        value = providers_section.get(field, True)
        if not isinstance(value, bool):
            raise ConfigError(
                f"'providers.{field}' must be true or false",
                details={"field": f"providers.{field}", "value": value}
            )
        flags[field] = value

    return ProvidersConfig(**flags)


def _parse_logging_config(logging_section: dict[str, Any], cache_dir: Path) -> LoggingConfig:
    directory = logging_section.get("directory")
    if directory is None:
        log_dir = cache_dir.parent / "logs"
    elif isinstance(directory, str) and directory.strip():
        log_dir = Path(directory.strip()).expanduser().resolve()
    else:
        raise ConfigError(
            "'logging.directory' must be a non-empty string or null",
            details={"field": "logging.directory"}
        )

    level = os.environ.get(ENV_LOG_LEVEL) or logging_section.get("level", DEFAULT_LOG_LEVEL)
    if not isinstance(level, str) or not isinstance(logging.getLevelName(level.upper()), int):
        raise ConfigError(
            f"'logging.level' must be a logging level name, got {level!r}",
            details={"field": "logging.level", "value": level}
        )

    return LoggingConfig(directory=log_dir, level=level.upper())
