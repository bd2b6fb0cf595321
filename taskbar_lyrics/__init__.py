"""
taskbar-lyrics: time-synchronised lyrics for the playing track.

Resolves lyrics for whatever the desktop media session reports as playing,
querying several lyric sources in an order that depends on the playing
application, and follows playback to tell a lyric surface which line to
show.

Architecture:
    A resolution walks the track's route until one provider produces lines:

    lyrics/routing.py: Source application -> ordered provider keys
        - QQ Music sessions try QQMusic first, Netease sessions Netease
        - Spotify borrows the Chinese platforms' catalogues
        - Every route ends with the wildcard provider "*"

    lyrics/providers/: One provider per source
        - Cache probe (two tiers: memory map and one JSON file per namespace)
        - Official platform search (QQ Music, Netease)
        - Exact and fuzzy LRCLIB lookups, scored against the target track
        - LRC / plain text parsing into a LyricDocument

    sync/: Playback following
        - LyricSyncService resolves in the background on track change and
          computes a LyricDisplayFrame on every poll
        - Timeline strategies compensate for sources that report position
          in bursts

Modules:
    core/       - Configuration, logging, exceptions
    lyrics/     - Models, cache, matching, parser, HTTP, providers, routing, registry
    sync/       - Playback snapshots, sync service, timeline strategies, demo session
    cli.py      - Command-line interface

Usage:
    Command Line:
        taskbar-lyrics resolve --title "Song" --artist "Artist" --source Spotify
        taskbar-lyrics route --source cloudmusic.exe
        taskbar-lyrics demo

    Python API:
        from taskbar_lyrics.core import load_config, setup_logging
        from taskbar_lyrics.lyrics import CacheService, HttpClient, create_default_registry
        from taskbar_lyrics.sync import LyricSyncService

        config = load_config()
        setup_logging(config.logging.directory, config.logging.level)

        async with HttpClient(config.network.timeout_seconds) as http:
            registry = create_default_registry(config, http, CacheService(config.cache.directory))
            service = LyricSyncService(registry)
            frame = await service.get_display_frame(snapshot)

Configuration:
    Optional config.yaml in the current directory:

        cache:
          directory: "~/.local/share/TaskbarLyrics/cache"

        network:
          timeout_seconds: 8
          search_parallelism: 3

        providers:
          enable_netease: true
          enable_qqmusic: true

Dependencies:
    - aiohttp: Async HTTP client for the lyric endpoints
    - click / rich-click: CLI framework and colours
    - tqdm: Progress bar and tqdm-safe console logging
    - colorama: Coloured console log levels
    - pyyaml: Configuration file parsing
    - python-dotenv: .env support for environment overrides
"""

__version__ = "0.1.0"
__author__ = "taskbar-lyrics"
__license__ = "MIT"

# Convenience imports for common usage
from taskbar_lyrics.core import (
    CacheError,
    Config,
    ConfigError,
    ProviderError,
    TaskbarLyricsError,
    get_logger,
    load_config,
    setup_logging,
)
from taskbar_lyrics.lyrics import (
    LyricDocument,
    LyricLine,
    LyricResolveResult,
    TrackInfo,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "TaskbarLyricsError",
    "ConfigError",
    "CacheError",
    "ProviderError",
    # Models
    "TrackInfo",
    "LyricLine",
    "LyricDocument",
    "LyricResolveResult",
]
