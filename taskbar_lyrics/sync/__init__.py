"""
Playback synchronisation for taskbar-lyrics.

Submodules:
    models: PlaybackSnapshot, LyricDisplayFrame, TimelineDiagnostics
    service: LyricSyncService (background resolution, frame computation)
    timeline: Position strategies for sources with bursty timelines
    session: Looping mock session used by the demo command
"""

from taskbar_lyrics.sync.models import LyricDisplayFrame, PlaybackSnapshot, TimelineDiagnostics
from taskbar_lyrics.sync.service import (
    FALLBACK_SOURCE,
    WAITING_TEXT,
    LyricSyncService,
    SyncState,
    compute_frame,
    line_switch_lead,
)
from taskbar_lyrics.sync.session import DEMO_TRACK, MockSessionProvider
from taskbar_lyrics.sync.timeline import (
    BurstySourceStrategy,
    DefaultRawStrategy,
    TimelineStrategy,
    TimelineStrategyRegistry,
)

__all__ = [
    # Models
    "PlaybackSnapshot",
    "LyricDisplayFrame",
    "TimelineDiagnostics",
    # Service
    "LyricSyncService",
    "SyncState",
    "WAITING_TEXT",
    "FALLBACK_SOURCE",
    "compute_frame",
    "line_switch_lead",
    # Timeline
    "TimelineStrategy",
    "DefaultRawStrategy",
    "BurstySourceStrategy",
    "TimelineStrategyRegistry",
    # Session
    "DEMO_TRACK",
    "MockSessionProvider",
]
