"""
Data models for playback synchronisation.

PlaybackSnapshot is what a session collaborator reports on every poll,
LyricDisplayFrame is what the sync service answers with, and
TimelineDiagnostics carries the position estimates the timeline strategies
choose between.
"""

from dataclasses import dataclass
from datetime import timedelta

from taskbar_lyrics.lyrics.models import TrackInfo


@dataclass(frozen=True)
class PlaybackSnapshot:
    """
    State of the playing session at one poll.

    Attributes:
        is_playing: Whether playback is running (False when paused).
        position: Position to synchronise lyrics against. Sessions with a
                  timeline strategy report the estimate the strategy chose.
        track: The playing track, or None when nothing is playing.
        raw_position: Position exactly as the player last reported it.
        extrapolated_position: raw_position advanced by the time since that
                               report.
    """

    is_playing: bool
    position: timedelta
    track: TrackInfo | None = None
    raw_position: timedelta | None = None
    extrapolated_position: timedelta | None = None


@dataclass(frozen=True)
class LyricDisplayFrame:
    """
    What the lyric surface should render at one tick.

    Attributes:
        current_line: Text of the line being sung.
        next_line: Text of the line after it, "" when there is none.
        line_progress: Fraction of the current line's segment already
                       played, in [0.0, 1.0].
        current_line_index: Index of current_line in the document, -1 when
                            the current text is not a document line.
    """

    current_line: str
    next_line: str
    line_progress: float = 0.0
    current_line_index: int = -1

    @classmethod
    def empty(cls) -> "LyricDisplayFrame":
        return cls(current_line="", next_line="")


@dataclass(frozen=True)
class TimelineDiagnostics:
    """
    Position estimates for one session sample.

    Attributes:
        source_identity: Raw identifier of the reporting application.
        normalized_source: The identifier after normalisation (e.g. the
                           executable name without path and extension).
        resolved_source: The lyric source the identifier was mapped to.
        is_playing: Whether playback is running.
        raw_position: Position as last reported by the session.
        last_update_age: Time elapsed since the session last reported a
                         position. Negative when clocks disagree.
        extrapolated_position: raw_position + last_update_age.
    """

    source_identity: str
    is_playing: bool
    raw_position: timedelta
    last_update_age: timedelta
    extrapolated_position: timedelta
    normalized_source: str = ""
    resolved_source: str = ""

    @classmethod
    def from_sample(
        cls,
        source_identity: str,
        is_playing: bool,
        raw_position: timedelta,
        last_update_age: timedelta,
        normalized_source: str = "",
        resolved_source: str = ""
    ) -> "TimelineDiagnostics":
        """Build diagnostics, deriving the extrapolated position."""
        return cls(
            source_identity=source_identity,
            is_playing=is_playing,
            raw_position=raw_position,
            last_update_age=last_update_age,
            extrapolated_position=raw_position + last_update_age,
            normalized_source=normalized_source,
            resolved_source=resolved_source,
        )
