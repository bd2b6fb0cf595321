"""
Lyric providers.

    LrcLibProvider        "LrcLib"   LRCLIB exact get + fuzzy search
    GenericLyricProvider  "*"        Same pipeline, accepts any source
    NeteaseProvider       "Netease"  Netease official API, then LRCLIB
    QQMusicProvider       "QQMusic"  QQ Music official API, then LRCLIB
"""

from taskbar_lyrics.lyrics.providers.base import (
    UNKNOWN_TITLE,
    WILDCARD_SOURCE,
    LyricProvider,
    OfficialApiProvider,
    OfficialSongCandidate,
)
from taskbar_lyrics.lyrics.providers.lrclib import GenericLyricProvider, LrcLibProvider
from taskbar_lyrics.lyrics.providers.netease import NeteaseProvider
from taskbar_lyrics.lyrics.providers.qqmusic import QQMusicProvider

__all__ = [
    "UNKNOWN_TITLE",
    "WILDCARD_SOURCE",
    "LyricProvider",
    "OfficialApiProvider",
    "OfficialSongCandidate",
    "LrcLibProvider",
    "GenericLyricProvider",
    "NeteaseProvider",
    "QQMusicProvider",
]
