"""
Lyric sync service.

Turns playback snapshots into display frames. The service never waits for
the network: a track change starts a background resolution and the frames
show WAITING_TEXT until a later poll finds it finished.

State Machine:
    IDLE     no track
    LOADING  track changed, document cleared, resolution in flight
    READY    a document is held (resolved, or the "no lyrics" placeholder)

Per Poll:
    1. No track                  -> IDLE, empty frame
    2. Track id changed          -> LOADING, start resolving the new track
    3. A resolution has finished -> adopt it if it was started for the
                                    current track id, otherwise discard it
    4. Compute the frame from the held document

A track switch does not cancel the previous resolution; its result is
dropped by the id check in step 3 when it eventually completes.

Usage:
    service = LyricSyncService(registry)
    while True:
        snapshot = await session.get_current()
        frame = await service.get_display_frame(snapshot)
        render(frame)
        await asyncio.sleep(0.1)
"""

import asyncio
from datetime import timedelta
from enum import Enum

from taskbar_lyrics.core.logger import get_logger
from taskbar_lyrics.lyrics.models import LyricDocument, LyricResolveResult, TrackInfo
from taskbar_lyrics.lyrics.parser import parse_plain
from taskbar_lyrics.lyrics.registry import ProviderRegistry
from taskbar_lyrics.lyrics.routing import is_netease_family, is_qq_family, is_spotify_family
from taskbar_lyrics.sync.models import LyricDisplayFrame, PlaybackSnapshot

logger = get_logger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

WAITING_TEXT = "Waiting for lyrics..."

NO_LYRICS_TEXT = "No lyrics found"

# Source annotation of the placeholder document
FALLBACK_SOURCE = "adapter fallback"

# Added to the playback position before choosing the current line
QQMUSIC_LINE_SWITCH_LEAD = timedelta(milliseconds=500)
NETEASE_LINE_SWITCH_LEAD = timedelta(milliseconds=300)
SPOTIFY_LINE_SWITCH_LEAD = timedelta(milliseconds=300)
DEFAULT_LINE_SWITCH_LEAD = timedelta(milliseconds=300)


class SyncState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


def line_switch_lead(source_app: str | None) -> timedelta:
    """Return the line-switch lead for the application playing the track."""
    if is_qq_family(source_app):
        return QQMUSIC_LINE_SWITCH_LEAD
    if is_netease_family(source_app):
        return NETEASE_LINE_SWITCH_LEAD
    if is_spotify_family(source_app):
        return SPOTIFY_LINE_SWITCH_LEAD
    return DEFAULT_LINE_SWITCH_LEAD


def build_placeholder_document(track: TrackInfo) -> LyricDocument:
    """Two plain lines telling the user nothing was found for the track."""
    text = f"{NO_LYRICS_TEXT}\n{track.title} - {track.artist}"
    return LyricDocument(lines=tuple(parse_plain(text)))


def compute_frame(
    document: LyricDocument,
    position: timedelta,
    lead: timedelta = timedelta(0)
) -> LyricDisplayFrame:
    """
    Compute the frame for a document at a playback position.

    The current line is the last one whose timestamp is at or before
    position + lead. Progress through it is measured from that same
    adjusted position towards the next line's timestamp.

    Args:
        document: Document to follow; an empty one gives an empty frame.
        position: Snapshot position, before the lead is added.
        lead: Line-switch lead of the playing source.

    Example:
        Lines at 0s "A", 5s "B", 10s "C", lead 500ms, position 4.6s:
        adjusted 5.1s -> current "B", next "C", progress 0.02
    """
    lines = document.lines
    if not lines:
        return LyricDisplayFrame.empty()

    adjusted = position + lead

    index = -1
    for i, line in enumerate(lines):
        if line.timestamp > adjusted:
            break
        index = i

    if index < 0:
        if lines[0].timestamp > position:
            # Before the first line
            return LyricDisplayFrame(
                current_line=WAITING_TEXT,
                next_line=lines[0].text,
                line_progress=0.0,
                current_line_index=-1,
            )
        return LyricDisplayFrame(
            current_line=lines[0].text,
            next_line=lines[1].text if len(lines) > 1 else "",
            line_progress=0.0,
            current_line_index=0,
        )

    current = lines[index]
    if index + 1 >= len(lines):
        return LyricDisplayFrame(
            current_line=current.text,
            next_line="",
            line_progress=0.0,
            current_line_index=index,
        )

    following = lines[index + 1]
    segment = following.timestamp - current.timestamp
    progress = 0.0
    if segment > timedelta(0):
        progress = (adjusted - current.timestamp) / segment
        progress = min(max(progress, 0.0), 1.0)

    return LyricDisplayFrame(
        current_line=current.text,
        next_line=following.text,
        line_progress=progress,
        current_line_index=index,
    )


class LyricSyncService:
    """
    Holds the active track's document and answers display frames.

    Must be polled from inside a running event loop; resolutions run as
    tasks on that loop.

    Attributes:
        _registry: Resolves tracks to documents.
        _track: Track currently tracked, None when idle.
        _document: Held document, None while loading.
        _source: Source key the held document came from.
        _in_flight: Resolution tasks not yet adopted or discarded, mapped to
                    the track id that started them.
    """

    def __init__(self, registry: ProviderRegistry) -> None:
        self._registry = registry
        self._track: TrackInfo | None = None
        self._document: LyricDocument | None = None
        self._source: str | None = None
        self._in_flight: dict[asyncio.Task, str] = {}

    @property
    def state(self) -> SyncState:
        if self._track is None:
            return SyncState.IDLE
        if self._document is None:
            return SyncState.LOADING
        return SyncState.READY

    @property
    def current_source(self) -> str | None:
        """Source key of the held document, FALLBACK_SOURCE for the placeholder."""
        return self._source

    @property
    def current_document(self) -> LyricDocument | None:
        return self._document

    async def resolve_lyrics(self, track: TrackInfo) -> LyricResolveResult:
        """One-shot resolution, independent of the tracked state."""
        return await self._registry.resolve_lyrics(track)

    async def get_display_frame(self, snapshot: PlaybackSnapshot) -> LyricDisplayFrame:
        """
        Return the frame for one poll. Never waits on a resolution.
        """
        track = snapshot.track
        if track is None:
            if self._track is not None:
                logger.debug("Track cleared, sync service idle")
            self._reset()
            return LyricDisplayFrame.empty()

        if self._track is None or self._track.id != track.id:
            self._start_resolution(track)

        self._adopt_finished()

        if self._document is None or self._document.is_empty:
            return LyricDisplayFrame(current_line=WAITING_TEXT, next_line="")

        return compute_frame(
            self._document,
            snapshot.position,
            line_switch_lead(track.source_app),
        )

    async def wait_for_resolution(self) -> None:
        """
        Wait until every in-flight resolution has finished and adopt the
        current track's result.
        """
        if self._in_flight:
            await asyncio.wait(list(self._in_flight))
        self._adopt_finished()

    def _reset(self) -> None:
        self._track = None
        self._document = None
        self._source = None

    def _start_resolution(self, track: TrackInfo) -> None:
        logger.debug(f"Track changed to {track.display_name} ({track.id}), resolving")
        self._track = track
        self._document = None
        self._source = None

        task = asyncio.get_running_loop().create_task(self._registry.resolve_lyrics(track))
        self._in_flight[task] = track.id

    def _adopt_finished(self) -> None:
        for task, track_id in list(self._in_flight.items()):
            if not task.done():
                continue
            del self._in_flight[task]

            result = _task_result(task)
            if self._track is None or self._track.id != track_id or self._document is not None:
                logger.debug(f"Discarding late lyric result for track {track_id}")
                continue

            if result.found:
                self._document = result.document
                self._source = result.source_app
            else:
                self._document = build_placeholder_document(self._track)
                self._source = FALLBACK_SOURCE
            logger.debug(f"Sync service ready for {track_id} (source: {self._source})")


def _task_result(task: asyncio.Task) -> LyricResolveResult:
    if task.cancelled():
        return LyricResolveResult.not_found()

    error = task.exception()
    if error is not None:
        logger.debug(f"Lyric resolution failed: {error}")
        return LyricResolveResult.not_found()

    return task.result()
