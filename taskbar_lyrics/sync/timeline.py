"""
Timeline position strategies.

Some players report their position in bursts instead of continuously, so
the last reported position can lag behind the audio by seconds. A strategy
decides which estimate to trust for a given source:

    DefaultRawStrategy          always applies, trusts the raw position
    BurstySourceStrategy        Spotify and Netease family sources; trusts
                                the extrapolated position while playing and
                                the last update is at most 8 seconds old

TimelineStrategyRegistry tries its strategies in order and falls back to the
default strategy when none applies.

Usage:
    registry = TimelineStrategyRegistry.create_default()
    name, position = registry.select(diagnostics)
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Sequence

from taskbar_lyrics.lyrics.routing import is_netease_family, is_spotify_family
from taskbar_lyrics.sync.models import TimelineDiagnostics


# Extrapolation stops being trusted once updates are older than this
MAX_EXTRAPOLATION_AGE = timedelta(seconds=8)


class TimelineStrategy(ABC):
    """A way of picking one position estimate out of TimelineDiagnostics."""

    name: str = ""

    @abstractmethod
    def can_apply(self, diagnostics: TimelineDiagnostics) -> bool:
        ...

    @abstractmethod
    def select_position(self, diagnostics: TimelineDiagnostics) -> timedelta:
        ...


class DefaultRawStrategy(TimelineStrategy):
    name = "DefaultRaw"

    def can_apply(self, diagnostics: TimelineDiagnostics) -> bool:
        return True

    def select_position(self, diagnostics: TimelineDiagnostics) -> timedelta:
        return diagnostics.raw_position


class BurstySourceStrategy(TimelineStrategy):
    """
    Extrapolate the position for sources that report in bursts.

    Applies when any of the three identity fields belongs to the Spotify or
    Netease family. The extrapolated position is used only while playing and
    only for update ages in [0, MAX_EXTRAPOLATION_AGE].
    """

    name = "extrapolated-for-bursty-sources"

    def can_apply(self, diagnostics: TimelineDiagnostics) -> bool:
        identities = (
            diagnostics.source_identity,
            diagnostics.normalized_source,
            diagnostics.resolved_source,
        )
        return any(
            is_spotify_family(identity) or is_netease_family(identity)
            for identity in identities
        )

    def select_position(self, diagnostics: TimelineDiagnostics) -> timedelta:
        if not diagnostics.is_playing:
            return diagnostics.raw_position

        age = diagnostics.last_update_age
        if age < timedelta(0) or age > MAX_EXTRAPOLATION_AGE:
            return diagnostics.raw_position

        return diagnostics.extrapolated_position


class TimelineStrategyRegistry:
    """
    Ordered strategies with a final fallback.

    Attributes:
        _strategies: Strategies tested in order; the first that applies wins.
        _default: Used when no strategy applies.
    """

    def __init__(
        self,
        strategies: Sequence[TimelineStrategy],
        default: TimelineStrategy | None = None
    ) -> None:
        self._strategies = list(strategies)
        self._default = default or DefaultRawStrategy()

    def select(self, diagnostics: TimelineDiagnostics) -> tuple[str, timedelta]:
        """Return (strategy name, position) for one sample."""
        for strategy in self._strategies:
            if strategy.can_apply(diagnostics):
                return strategy.name, strategy.select_position(diagnostics)

        return self._default.name, self._default.select_position(diagnostics)

    @classmethod
    def create_default(cls) -> "TimelineStrategyRegistry":
        return cls([BurstySourceStrategy()], DefaultRawStrategy())
