"""
Mock playback session.

Stands in for the operating system's media session so the sync service can
be driven without a real player: one demo track, always playing, looping
every DEMO_LOOP_SECONDS.

Like a real session, each snapshot carries the raw and extrapolated
positions next to the position chosen by the timeline strategies. With a
report_interval the mock player only reports its position that often, the
way bursty players do, so the extrapolation has something to catch up on.
"""

import math
import time
from datetime import timedelta
from typing import Callable

from taskbar_lyrics.lyrics.models import TrackInfo
from taskbar_lyrics.sync.models import PlaybackSnapshot, TimelineDiagnostics
from taskbar_lyrics.sync.timeline import TimelineStrategyRegistry


DEMO_TRACK = TrackInfo(
    id="netease-demo-001",
    title="MVP Demo",
    artist="TaskbarLyrics",
    source_app="Netease",
)

DEMO_LOOP_SECONDS = 25.0


class MockSessionProvider:
    """
    Reports DEMO_TRACK at a position that loops over the demo timeline.

    Args:
        track: Track to report.
        loop_seconds: Length of the looping timeline.
        clock: Monotonic clock in seconds; injectable for tests.
        report_interval: Seconds between two position reports of the mock
                         player. 0 reports continuously.
        strategies: Timeline strategies choosing the snapshot position.

    Attributes:
        last_strategy: Name of the strategy that chose the last position.
    """

    def __init__(
        self,
        track: TrackInfo = DEMO_TRACK,
        loop_seconds: float = DEMO_LOOP_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        report_interval: float = 0.0,
        strategies: TimelineStrategyRegistry | None = None
    ) -> None:
        self._track = track
        self._loop_seconds = loop_seconds
        self._clock = clock
        self._report_interval = report_interval
        self._strategies = strategies or TimelineStrategyRegistry.create_default()
        self._started_at = clock()
        self.last_strategy = ""

    async def get_current(self) -> PlaybackSnapshot:
        elapsed = self._clock() - self._started_at

        reported_at = elapsed
        if self._report_interval > 0:
            reported_at = math.floor(elapsed / self._report_interval) * self._report_interval

        diagnostics = TimelineDiagnostics.from_sample(
            source_identity=self._track.source_app,
            is_playing=True,
            raw_position=timedelta(seconds=reported_at % self._loop_seconds),
            last_update_age=timedelta(seconds=elapsed - reported_at),
        )
        self.last_strategy, position = self._strategies.select(diagnostics)

        return PlaybackSnapshot(
            is_playing=True,
            position=position,
            track=self._track,
            raw_position=diagnostics.raw_position,
            extrapolated_position=diagnostics.extrapolated_position,
        )
