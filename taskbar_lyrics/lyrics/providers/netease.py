"""
Netease Cloud Music provider.

Searches Netease's public web API before falling back to LRCLIB.

Endpoints:
    Search: GET https://music.163.com/api/search/get?s=<q>&type=1&limit=20&offset=0
        {"result": {"songs": [{"id": 186016, "name": "...",
                               "artists": [{"name": "..."}]}]}}

    Lyrics: GET https://music.163.com/api/song/lyric?id=<id>&lv=1&kv=1&tv=-1
        {"lrc": {"lyric": "[00:01.00]..."}, "tlyric": {"lyric": "..."}}

The translation (tlyric) is kept as the plain text; when there is none the
original LRC text doubles as plain text.
"""

from typing import Any, Hashable

from taskbar_lyrics.core.logger import get_logger
from taskbar_lyrics.lyrics.matching import score_search_result
from taskbar_lyrics.lyrics.models import CachedPayload
from taskbar_lyrics.lyrics.providers.base import (
    OfficialApiProvider,
    OfficialSongCandidate,
    get_string,
)

logger = get_logger(__name__)


NETEASE_SEARCH_URL = "https://music.163.com/api/search/get"
NETEASE_LYRIC_URL = "https://music.163.com/api/song/lyric"

NETEASE_HEADERS = {
    "Referer": "https://music.163.com/",
    "Origin": "https://music.163.com",
}

# Songs returned per search query
SEARCH_PAGE_SIZE = 20


class NeteaseProvider(OfficialApiProvider):
    """Netease Cloud Music official API first, LRCLIB after."""

    source_app = "Netease"
    cache_namespace = "netease-lyrics.json"
    official_headers = NETEASE_HEADERS

    def is_valid_song_id(self, song_id: Hashable) -> bool:
        return isinstance(song_id, int) and song_id > 0

    async def search_official_single_query(
        self,
        query: str,
        target_title: str,
        target_artist: str
    ) -> list[OfficialSongCandidate]:
        result = await self._http.get(
            NETEASE_SEARCH_URL,
            params={"s": query, "type": 1, "limit": SEARCH_PAGE_SIZE, "offset": 0},
            headers=self.official_headers,
        )

        candidates = []
        for song in _song_list(result.json()):
            song_id = _song_id(song)
            if song_id is None:
                continue

            score = score_search_result(
                target_title,
                target_artist,
                get_string(song, "name", "songName"),
                _artist_names(song),
            )
            candidates.append(OfficialSongCandidate(song_id=song_id, score=score))

        logger.debug(f"[Netease] {len(candidates)} candidates for {query!r}")
        return candidates

    async def fetch_official_lyrics(self, song_id: Hashable) -> CachedPayload | None:
        result = await self._http.get(
            NETEASE_LYRIC_URL,
            params={"id": str(song_id), "lv": 1, "kv": 1, "tv": -1},
            headers=self.official_headers,
        )
        data = result.json()
        if not isinstance(data, dict):
            return None

        synced = get_string(data.get("lrc"), "lyric")
        plain = get_string(data.get("tlyric"), "lyric")
        if not plain or not plain.strip():
            plain = synced

        return CachedPayload(synced_lyrics=synced, plain_lyrics=plain)


def _song_list(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, dict):
        return []
    result = data.get("result")
    if not isinstance(result, dict):
        return []
    songs = result.get("songs")
    if not isinstance(songs, list):
        return []
    return [song for song in songs if isinstance(song, dict)]


def _song_id(song: dict[str, Any]) -> int | None:
    song_id = song.get("id")
    # bool is an int subclass
    if isinstance(song_id, bool) or not isinstance(song_id, int):
        return None
    return song_id


def _artist_names(song: dict[str, Any]) -> str:
    artists = song.get("artists")
    if not isinstance(artists, list):
        return ""

    names = []
    for artist in artists:
        name = get_string(artist, "name")
        if name and name.strip():
            names.append(name.strip())
    return " / ".join(names)
