"""
Base classes for lyric providers.

A provider resolves one track to a parsed LyricDocument, or None. Transport
failures, malformed responses and cache I/O problems all end in "no result",
and the registry moves on to the next source in the route. Cancellation is
the one thing that passes through: the registry catches it and stops the
route walk.

Resolution Pipeline (first success wins):
    1. Cache probe by normalized key - a hit never touches the network
    2. Official search (OfficialApiProvider subclasses only)
    3. Exact lookups against LRCLIB for each (title, artist) candidate
    4. Fuzzy search against LRCLIB: one request per generated query, at most
       `search_parallelism` in flight, best-scoring item across all queries
    5. Store the payload under the cache key
    6. Parse synced text, else plain text

Stages run strictly in this order and each one short-circuits the rest.

LRCLIB API:
    GET https://lrclib.net/api/get?track_name=...&artist_name=...  -> object
    GET https://lrclib.net/api/search?q=...                        -> array
    Both carry {"syncedLyrics": ..., "plainLyrics": ...} per item.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Hashable

from taskbar_lyrics.core.config import DEFAULT_SEARCH_PARALLELISM
from taskbar_lyrics.core.logger import get_logger
from taskbar_lyrics.lyrics.cache import CacheService, build_cache_key
from taskbar_lyrics.lyrics.http import HttpClient
from taskbar_lyrics.lyrics.matching import (
    build_get_candidates,
    build_search_queries,
    score_search_result,
)
from taskbar_lyrics.lyrics.models import CachedPayload, LyricDocument, TrackInfo
from taskbar_lyrics.lyrics.parser import ScriptNormalizer, parse_payload

logger = get_logger(__name__)


# Title reported by players that could not identify the track
UNKNOWN_TITLE = "Unknown Title"

# Source key of the provider that accepts tracks from any application
WILDCARD_SOURCE = "*"

LRCLIB_GET_URL = "https://lrclib.net/api/get"
LRCLIB_SEARCH_URL = "https://lrclib.net/api/search"

# Field names seen in LRCLIB search items (and mirrors of it)
TITLE_FIELDS = ("trackName", "track_name", "name", "title")
ARTIST_FIELDS = ("artistName", "artist_name", "artist")

# Official search only issues the first few generated queries
OFFICIAL_QUERY_LIMIT = 4

# Official candidates fetched for lyrics, best score first
OFFICIAL_CANDIDATE_LIMIT = 8


@dataclass(frozen=True)
class SearchResult:
    """Best-scoring payload of one fuzzy search query."""

    score: int
    payload: CachedPayload


@dataclass(frozen=True)
class OfficialSongCandidate:
    """A song found by a platform search endpoint, scored against the target."""

    song_id: Hashable
    score: int


def get_string(data: Any, *names: str) -> str | None:
    """Return the first of `names` in `data` whose value is a string."""
    if not isinstance(data, dict):
        return None
    for name in names:
        value = data.get(name)
        if isinstance(value, str):
            return value
    return None


def extract_payload(item: Any) -> CachedPayload | None:
    """Extract {syncedLyrics, plainLyrics} from an LRCLIB object."""
    if not isinstance(item, dict):
        return None
    return CachedPayload(
        synced_lyrics=get_string(item, "syncedLyrics"),
        plain_lyrics=get_string(item, "plainLyrics"),
    )


def has_lyrics(payload: CachedPayload | None) -> bool:
    return payload is not None and payload.has_lyrics


class LyricProvider:
    """
    Provider backed by LRCLIB, with an optional official stage.

    Subclasses set the class attributes below. Instances share HTTP and
    cache infrastructure handed in by the composition root.

    Class Attributes:
        source_app: Key under which the registry finds this provider.
        cache_namespace: File name of this provider's cache namespace.
        strict_source_match: When True, only tracks whose source_app equals
                             source_app (case-insensitive) are handled.

    Attributes:
        _http: Shared HttpClient.
        _cache: This provider's cache namespace handle.
        _search_parallelism: Fuzzy search concurrency limit.
        _script_normalizer: Optional per-line text transform for the parser.
    """

    source_app: str = ""
    cache_namespace: str = ""
    strict_source_match: bool = True

    def __init__(
        self,
        http: HttpClient,
        cache_service: CacheService,
        search_parallelism: int = DEFAULT_SEARCH_PARALLELISM,
        script_normalizer: ScriptNormalizer | None = None
    ) -> None:
        self._http = http
        self._cache = cache_service.namespace(self.cache_namespace)
        self._search_parallelism = search_parallelism
        self._script_normalizer = script_normalizer

    def can_handle(self, track: TrackInfo) -> bool:
        if not self.strict_source_match or self.source_app == WILDCARD_SOURCE:
            return True
        return (track.source_app or "").casefold() == self.source_app.casefold()

    async def resolve(self, track: TrackInfo) -> LyricDocument | None:
        """
        Resolve a track to a document.

        Returns:
            LyricDocument with at least one line, or None. Only cancellation
            propagates.

        Behavior:
            1. Reject tracks of another source (strict providers only)
            2. Reject the "Unknown Title" placeholder without any lookup
            3. Fetch the raw payload (cache, then network stages)
            4. Parse synced text first, then plain text
        """
        if not self.can_handle(track):
            return None

        if (track.title or "").casefold() == UNKNOWN_TITLE.casefold():
            logger.debug(f"[{self.source_app}] Skipping unidentified track")
            return None

        payload = await self.fetch_payload(track)
        return parse_payload(payload, self._script_normalizer)

    async def fetch_payload(self, track: TrackInfo) -> CachedPayload | None:
        """Run the cache probe and the network stages in order."""
        title = track.title or ""
        artist = track.artist or ""
        cache_key = build_cache_key(track.source_app, title, artist)

        cached = self._cache.get(cache_key)
        if has_lyrics(cached):
            logger.debug(f"[{self.source_app}] Cache hit: {cache_key}")
            return cached

        official = await self.fetch_official_payload(title, artist)
        if has_lyrics(official):
            logger.debug(f"[{self.source_app}] Official API hit for {track.display_name}")
            await self._store(cache_key, official)
            return official

        for candidate_title, candidate_artist in build_get_candidates(title, artist):
            exact = await self.fetch_exact_payload(candidate_title, candidate_artist)
            if not has_lyrics(exact):
                continue

            logger.debug(
                f"[{self.source_app}] Exact hit: {candidate_title!r} / {candidate_artist!r}"
            )
            await self._store(cache_key, exact)
            return exact

        searched = await self.search_payload(title, artist)
        if has_lyrics(searched):
            logger.debug(f"[{self.source_app}] Fuzzy search hit for {track.display_name}")
            await self._store(cache_key, searched)
            return searched

        logger.debug(f"[{self.source_app}] No lyrics for {track.display_name}")
        return None

    async def _store(self, cache_key: str, payload: CachedPayload) -> None:
        # The namespace file is rewritten on every store; keep that off the loop
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._cache.store, cache_key, payload)

    async def fetch_official_payload(self, title: str, artist: str) -> CachedPayload | None:
        """Official platform stage. Providers without a platform API have none."""
        return None

    async def fetch_exact_payload(self, title: str, artist: str) -> CachedPayload | None:
        """LRCLIB exact get for one (title, artist) pair."""
        result = await self._http.get(
            LRCLIB_GET_URL,
            params={"track_name": title, "artist_name": artist},
        )
        return extract_payload(result.json())

    async def search_payload(self, title: str, artist: str) -> CachedPayload | None:
        """
        Fuzzy search stage.

        Every generated query is issued; at most `_search_parallelism`
        requests are in flight at once. All queries are awaited because the
        best match may come from any of them.
        """
        queries = build_search_queries(title, artist)
        if not queries:
            return None

        semaphore = asyncio.Semaphore(self._search_parallelism)

        async def run(query: str) -> SearchResult | None:
            async with semaphore:
                return await self.search_single_query(query, title, artist)

        results = await asyncio.gather(*(run(query) for query in queries))

        best: SearchResult | None = None
        for result in results:
            if result is not None and (best is None or result.score > best.score):
                best = result

        return best.payload if best is not None else None

    async def search_single_query(
        self,
        query: str,
        target_title: str,
        target_artist: str
    ) -> SearchResult | None:
        """Return the best-scoring item with lyrics for one LRCLIB search query."""
        result = await self._http.get(LRCLIB_SEARCH_URL, params={"q": query})
        items = result.json()
        if not isinstance(items, list):
            return None

        best: SearchResult | None = None
        for item in items:
            payload = extract_payload(item)
            if not has_lyrics(payload):
                continue

            score = score_search_result(
                target_title,
                target_artist,
                get_string(item, *TITLE_FIELDS),
                get_string(item, *ARTIST_FIELDS),
            )
            if best is None or score > best.score:
                best = SearchResult(score=score, payload=payload)

        return best

    def clear_cache(self) -> None:
        """Wipe this provider's cache namespace."""
        self._cache.clear()


class OfficialApiProvider(LyricProvider, ABC):
    """
    Provider that first searches a music platform's own API.

    Official Search Flow:
        1. Issue the first OFFICIAL_QUERY_LIMIT generated queries, one after
           another, scoring every returned song against the target
        2. Merge all candidates, keep the highest score per song id
        3. Sort by score (descending, stable) and keep OFFICIAL_CANDIDATE_LIMIT
        4. Fetch lyrics for each candidate in order; first with text wins

    Subclasses implement the two platform calls.
    """

    # Extra headers sent to the platform endpoints
    official_headers: dict[str, str] = {}

    async def fetch_official_payload(self, title: str, artist: str) -> CachedPayload | None:
        candidates = await self.search_official_candidates(title, artist)
        for candidate in candidates:
            if not self.is_valid_song_id(candidate.song_id):
                continue

            payload = await self.fetch_official_lyrics(candidate.song_id)
            if has_lyrics(payload):
                return payload

        return None

    async def search_official_candidates(self, title: str, artist: str) -> list[OfficialSongCandidate]:
        queries = build_search_queries(title, artist)[:OFFICIAL_QUERY_LIMIT]

        best_by_id: dict[Hashable, OfficialSongCandidate] = {}
        for query in queries:
            for candidate in await self.search_official_single_query(query, title, artist):
                key = self.song_id_key(candidate.song_id)
                existing = best_by_id.get(key)
                if existing is None or candidate.score > existing.score:
                    best_by_id[key] = candidate

        ranked = sorted(best_by_id.values(), key=lambda c: c.score, reverse=True)
        return ranked[:OFFICIAL_CANDIDATE_LIMIT]

    def song_id_key(self, song_id: Hashable) -> Hashable:
        """Key used to merge candidates returned by different queries."""
        return song_id

    def is_valid_song_id(self, song_id: Hashable) -> bool:
        return bool(song_id)

    @abstractmethod
    async def search_official_single_query(
        self,
        query: str,
        target_title: str,
        target_artist: str
    ) -> list[OfficialSongCandidate]:
        """Search the platform for one query; [] on any failure."""

    @abstractmethod
    async def fetch_official_lyrics(self, song_id: Hashable) -> CachedPayload | None:
        """Fetch lyrics for one platform song id; None on any failure."""
