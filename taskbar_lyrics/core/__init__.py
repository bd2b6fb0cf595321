"""
Core module for taskbar-lyrics.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with console and file outputs

Usage:
    from taskbar_lyrics.core import (
        Config, load_config,
        setup_logging, get_logger,
        TaskbarLyricsError, ConfigError, CacheError
    )
"""

from taskbar_lyrics.core.config import (
    CacheConfig,
    Config,
    LoggingConfig,
    NetworkConfig,
    ProvidersConfig,
    load_config,
)
from taskbar_lyrics.core.exceptions import (
    CacheError,
    ConfigError,
    ProviderError,
    TaskbarLyricsError,
)
from taskbar_lyrics.core.logger import (
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "CacheConfig",
    "NetworkConfig",
    "ProvidersConfig",
    "LoggingConfig",
    "load_config",
    # Exceptions
    "TaskbarLyricsError",
    "ConfigError",
    "CacheError",
    "ProviderError",
    # Logging
    "setup_logging",
    "shutdown_logging",
    "get_logger",
]
