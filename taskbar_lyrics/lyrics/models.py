"""
Data models for lyric resolution.

All models are frozen dataclasses with value equality. A LyricDocument is
built once per successful resolution and never mutated afterwards; the sync
service drops it when the active track changes.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any


@dataclass(frozen=True)
class TrackInfo:
    """
    Identity of the track currently playing.

    Attributes:
        id: Composite identifier used for change detection. Two snapshots with
            the same id are the same track even if other fields differ.
        title: Track title as reported by the playing application.
        artist: Artist string as reported (may list several artists).
        source_app: Free-form identifier of the playing application,
                    e.g. "QQMusic", "Spotify", "cloudmusic.exe".
    """

    id: str
    title: str
    artist: str
    source_app: str

    @property
    def display_name(self) -> str:
        """Return 'Title - Artist' for log messages."""
        if self.artist:
            return f"{self.title} - {self.artist}"
        return self.title


@dataclass(frozen=True)
class LyricLine:
    """One renderable lyric line at a point of the track timeline."""

    timestamp: timedelta
    text: str


@dataclass(frozen=True)
class LyricDocument:
    """
    Ordered sequence of lyric lines.

    Lines are stably sorted by timestamp on construction, so the order of
    the input only matters between lines sharing a timestamp (simultaneous
    lines, e.g. original and translation).
    """

    lines: tuple[LyricLine, ...] = ()

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.lines, key=lambda line: line.timestamp))
        object.__setattr__(self, "lines", ordered)

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    def __getitem__(self, index: int) -> LyricLine:
        return self.lines[index]

    @property
    def is_empty(self) -> bool:
        return not self.lines


@dataclass(frozen=True)
class LyricResolveResult:
    """
    Outcome of one registry resolution.

    Attributes:
        document: The parsed document, or None when no provider in the
                  route produced any line.
        source_app: Source key of the provider that produced the document
                    (e.g. "QQMusic", "LrcLib", "*"), None when unresolved.
    """

    document: LyricDocument | None = None
    source_app: str | None = None

    @property
    def found(self) -> bool:
        return self.document is not None and not self.document.is_empty

    @classmethod
    def not_found(cls) -> "LyricResolveResult":
        return cls(document=None, source_app=None)


# Keys of the on-disk cache entry, shared by every cache namespace file
SYNCED_KEY = "SyncedLyrics"
PLAIN_KEY = "PlainLyrics"


@dataclass(frozen=True)
class CachedPayload:
    """
    Raw lyric text as returned by a provider, before parsing.

    This is the provider-agnostic form that is cached. Parsing is cheap
    compared to a network round trip, so the raw text is what gets stored.

    Attributes:
        synced_lyrics: LRC text with [mm:ss.xx] tags, if any.
        plain_lyrics: Untimed text (or a translation for official APIs).
    """

    synced_lyrics: str | None = None
    plain_lyrics: str | None = None

    @property
    def has_lyrics(self) -> bool:
        """True when either field holds non-blank text."""
        return bool(
            (self.synced_lyrics and self.synced_lyrics.strip())
            or (self.plain_lyrics and self.plain_lyrics.strip())
        )

    def to_dict(self) -> dict[str, str | None]:
        return {SYNCED_KEY: self.synced_lyrics, PLAIN_KEY: self.plain_lyrics}

    @classmethod
    def from_dict(cls, data: Any) -> "CachedPayload | None":
        """
        Build a payload from a cache file entry.

        Returns None for entries that are not objects. Non-string field
        values are treated as missing.
        """
        if not isinstance(data, dict):
            return None

        synced = data.get(SYNCED_KEY)
        plain = data.get(PLAIN_KEY)
        return cls(
            synced_lyrics=synced if isinstance(synced, str) else None,
            plain_lyrics=plain if isinstance(plain, str) else None,
        )
