"""
LRCLIB-backed providers.

LRCLIB (https://lrclib.net) is a free, cross-platform lyric database, so
these two providers have no official stage: they go straight from the cache
probe to exact lookups and fuzzy search.

    LrcLibProvider      key "LrcLib", strict source match
    GenericLyricProvider key "*", accepts a track from any application and
                         is always the last entry of a route
"""

from taskbar_lyrics.lyrics.providers.base import WILDCARD_SOURCE, LyricProvider


class LrcLibProvider(LyricProvider):
    """Generic lyrics-database provider."""

    source_app = "LrcLib"
    cache_namespace = "lrclib-lyrics.json"


class GenericLyricProvider(LyricProvider):
    """Catch-all provider that answers for any source application."""

    source_app = WILDCARD_SOURCE
    cache_namespace = "smtc-generic-lyrics.json"
    strict_source_match = False
