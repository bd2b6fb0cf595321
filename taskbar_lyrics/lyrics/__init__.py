"""
Lyric resolution for taskbar-lyrics.

Submodules:
    models: TrackInfo, LyricLine, LyricDocument, LyricResolveResult, CachedPayload
    cache: Two-tier per-namespace cache (memory map + JSON file)
    matching: Text normalisation, query generation and scoring
    parser: LRC and plain text parsing
    http: aiohttp transport returning FetchResult values
    providers: LRCLIB, wildcard, Netease and QQ Music providers
    routing: Source application -> provider route
    registry: Resolution through the route
"""

from taskbar_lyrics.lyrics.cache import CacheService, LyricCache, build_cache_key
from taskbar_lyrics.lyrics.http import FetchResult, HttpClient
from taskbar_lyrics.lyrics.models import (
    CachedPayload,
    LyricDocument,
    LyricLine,
    LyricResolveResult,
    TrackInfo,
)
from taskbar_lyrics.lyrics.parser import parse_lrc, parse_payload, parse_plain
from taskbar_lyrics.lyrics.registry import (
    BUILTIN_PROVIDERS,
    ProviderRegistry,
    create_default_registry,
)
from taskbar_lyrics.lyrics.routing import build_route

__all__ = [
    # Models
    "TrackInfo",
    "LyricLine",
    "LyricDocument",
    "LyricResolveResult",
    "CachedPayload",
    # Cache
    "CacheService",
    "LyricCache",
    "build_cache_key",
    # Transport
    "HttpClient",
    "FetchResult",
    # Parsing
    "parse_lrc",
    "parse_plain",
    "parse_payload",
    # Resolution
    "BUILTIN_PROVIDERS",
    "ProviderRegistry",
    "create_default_registry",
    "build_route",
]
