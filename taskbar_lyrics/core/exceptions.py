"""
Exception classes for taskbar-lyrics.

Lyrics are an optional enhancement, so very little in this package is
allowed to raise: providers, the parser and the cache store all degrade
to "no result" instead. The exceptions below exist for the places where a
failure has to stop something - loading configuration and wiring providers
together at startup - and for internal signalling inside the cache store.

Exception Hierarchy:
    TaskbarLyricsError (base)
        ConfigError - Configuration file issues
        CacheError - Lyric cache file issues (always caught internally)
        ProviderError - Provider composition issues
"""


class TaskbarLyricsError(Exception):
    """
    Base exception for all taskbar-lyrics errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., file path, field).

    Example:
        try:
            config = load_config(path)
        except TaskbarLyricsError as e:
            logger.error(f"Startup failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'file_path': File involved in the error
                     - 'field': Configuration field that failed validation
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(TaskbarLyricsError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - An explicitly requested config file does not exist
        - config.yaml has invalid YAML syntax
        - A section is not a mapping
        - Invalid field values (e.g., non-positive timeout)

    Example:
        raise ConfigError(
            "'network.timeout_seconds' must be a positive number",
            details={'field': 'network.timeout_seconds', 'value': -1}
        )
    """
    pass


class CacheError(TaskbarLyricsError):
    """
    Raised by the low-level cache file reader and writer.

    This is NEVER surfaced to callers. The cache store catches it, logs it
    at DEBUG level and carries on with the in-memory map, because a lyric
    cache that cannot be persisted only costs a repeat network lookup.

    Common causes:
        - Cache file is not valid JSON
        - Cache file does not contain a JSON object
        - Permission denied or disk full while writing

    Example:
        raise CacheError(
            "Cache file is not a JSON object",
            details={'file_path': '/path/to/lrclib-lyrics.json'}
        )
    """
    pass


class ProviderError(TaskbarLyricsError):
    """
    Raised when lyric providers are wired together incorrectly.

    Only raised while building a registry, never while resolving lyrics.

    Common causes:
        - Two providers registered under the same source key
        - A provider registered with a blank source key
    """
    pass
