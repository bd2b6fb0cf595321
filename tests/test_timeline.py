# tests/test_timeline.py
"""Test timeline position strategies and the mock session"""

from datetime import timedelta

import pytest

from taskbar_lyrics.lyrics.models import TrackInfo
from taskbar_lyrics.sync.models import TimelineDiagnostics
from taskbar_lyrics.sync.session import DEMO_TRACK, MockSessionProvider
from taskbar_lyrics.sync.timeline import (
    BurstySourceStrategy,
    DefaultRawStrategy,
    TimelineStrategyRegistry,
)


def diagnostics(source="Spotify", playing=True, raw=10.0, age=2.0, **identity):
    return TimelineDiagnostics.from_sample(
        source_identity=source,
        is_playing=playing,
        raw_position=timedelta(seconds=raw),
        last_update_age=timedelta(seconds=age),
        **identity,
    )


class TestTimelineStrategyRegistry:
    """Test strategy selection"""

    def setup_method(self):
        self.registry = TimelineStrategyRegistry.create_default()

    def test_spotify_extrapolates(self):
        """Test a fresh Spotify sample uses raw + age"""
        assert self.registry.select(diagnostics()) == (
            "extrapolated-for-bursty-sources", timedelta(seconds=12)
        )

    def test_stale_sample_uses_raw(self):
        """Test an update older than 8 s is not extrapolated"""
        assert self.registry.select(diagnostics(age=9.0)) == (
            "extrapolated-for-bursty-sources", timedelta(seconds=10)
        )

    def test_boundaries(self):
        """Test ages of exactly 0 s and 8 s still extrapolate"""
        assert self.registry.select(diagnostics(age=0.0))[1] == timedelta(seconds=10)
        assert self.registry.select(diagnostics(age=8.0))[1] == timedelta(seconds=18)

    def test_negative_age_uses_raw(self):
        """Test a sample from the future is not trusted"""
        assert self.registry.select(diagnostics(age=-1.0))[1] == timedelta(seconds=10)

    def test_paused_uses_raw(self):
        """Test a paused session keeps its raw position"""
        assert self.registry.select(diagnostics(playing=False))[1] == timedelta(seconds=10)

    @pytest.mark.parametrize("identity", [
        {"source": "cloudmusic.exe"},
        {"source": "Unknown", "normalized_source": "spotify"},
        {"source": "Unknown", "resolved_source": "Netease"},
    ])
    def test_bursty_identities(self, identity):
        """Test any identity field can select the bursty strategy"""
        name, position = self.registry.select(diagnostics(**identity))
        assert name == BurstySourceStrategy.name
        assert position == timedelta(seconds=12)

    def test_other_sources_use_raw(self):
        """Test the default strategy answers for everything else"""
        assert self.registry.select(diagnostics(source="QQMusic")) == (
            DefaultRawStrategy.name, timedelta(seconds=10)
        )

    def test_empty_registry_falls_back(self):
        """Test a registry without strategies uses the default"""
        registry = TimelineStrategyRegistry([])
        assert registry.select(diagnostics())[0] == "DefaultRaw"


class TestMockSessionProvider:
    """Test the looping demo session"""

    @pytest.mark.asyncio
    async def test_loops(self):
        """Test the position wraps around every loop"""
        now = [100.0]
        session = MockSessionProvider(clock=lambda: now[0])

        now[0] = 107.5
        first = await session.get_current()
        now[0] = 100.0 + 25 + 3
        second = await session.get_current()

        assert first.track == DEMO_TRACK
        assert first.is_playing
        assert first.position == timedelta(seconds=7.5)
        assert second.position == timedelta(seconds=3)

    def test_demo_track(self):
        """Test the demo track identity"""
        assert DEMO_TRACK.id == "netease-demo-001"
        assert DEMO_TRACK.source_app == "Netease"

    @pytest.mark.asyncio
    async def test_bursty_reports_are_extrapolated(self):
        """Test a player reporting once a second is caught up by extrapolation"""
        now = [100.0]
        session = MockSessionProvider(clock=lambda: now[0], report_interval=1.0)

        now[0] = 103.5
        snapshot = await session.get_current()

        assert snapshot.raw_position == timedelta(seconds=3)
        assert snapshot.extrapolated_position == timedelta(seconds=3.5)
        assert snapshot.position == timedelta(seconds=3.5)
        assert session.last_strategy == "extrapolated-for-bursty-sources"

    @pytest.mark.asyncio
    async def test_raw_strategy_for_other_sources(self):
        """Test a non-bursty source keeps the raw report as its position"""
        now = [100.0]
        track = TrackInfo(id="t", title="Hello", artist="Adele", source_app="foobar2000")
        session = MockSessionProvider(track=track, clock=lambda: now[0], report_interval=1.0)

        now[0] = 103.5
        snapshot = await session.get_current()

        assert snapshot.position == timedelta(seconds=3)
        assert snapshot.extrapolated_position == timedelta(seconds=3.5)
        assert session.last_strategy == "DefaultRaw"
