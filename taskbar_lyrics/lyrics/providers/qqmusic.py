"""
QQ Music provider.

Searches QQ Music's public endpoints before falling back to LRCLIB.

Endpoints:
    Search: GET https://c.y.qq.com/soso/fcgi-bin/client_search_cp?w=<q>&n=20&p=1&format=json
        {"data": {"song": {"list": [{"songmid": "...", "songname": "...",
                                     "singer": [{"name": "..."}]}]}}}
        Older mirrors answer {"song": {"list": [...]}} at the top level.

    Lyrics: GET https://c.y.qq.com/lyric/fcgi-bin/fcg_query_lyric_new.fcg
                ?songmid=<mid>&format=json&nobase64=1
        {"lyric": "[00:01.00]...", "trans": "..."}

Both endpoints may answer JSONP (callback({...})) despite format=json, and
the lyric fields may still be base64 encoded despite nobase64=1, so both are
unwrapped when present.
"""

import base64
import binascii
from typing import Any, Hashable

from taskbar_lyrics.core.logger import get_logger
from taskbar_lyrics.lyrics.http import parse_json
from taskbar_lyrics.lyrics.matching import score_search_result
from taskbar_lyrics.lyrics.models import CachedPayload
from taskbar_lyrics.lyrics.providers.base import (
    OfficialApiProvider,
    OfficialSongCandidate,
    get_string,
)

logger = get_logger(__name__)


QQ_SEARCH_URL = "https://c.y.qq.com/soso/fcgi-bin/client_search_cp"
QQ_LYRIC_URL = "https://c.y.qq.com/lyric/fcgi-bin/fcg_query_lyric_new.fcg"

QQ_HEADERS = {
    "Referer": "https://y.qq.com/",
    "Origin": "https://y.qq.com",
}

SEARCH_PAGE_SIZE = 20

SONG_ID_FIELDS = ("songmid", "songMid", "mid")
SONG_NAME_FIELDS = ("songname", "songName", "title", "name")
LYRIC_FIELDS = ("lyric", "lrc", "lyricContent")
TRANSLATION_FIELDS = ("trans", "transLyric", "trans_lyric")


class QQMusicProvider(OfficialApiProvider):
    """QQ Music official API first, LRCLIB after."""

    source_app = "QQMusic"
    cache_namespace = "qqmusic-lyrics.json"
    official_headers = QQ_HEADERS

    def song_id_key(self, song_id: Hashable) -> Hashable:
        # song mids compare case-insensitively
        return str(song_id).casefold()

    def is_valid_song_id(self, song_id: Hashable) -> bool:
        return isinstance(song_id, str) and bool(song_id.strip())

    async def search_official_single_query(
        self,
        query: str,
        target_title: str,
        target_artist: str
    ) -> list[OfficialSongCandidate]:
        result = await self._http.get(
            QQ_SEARCH_URL,
            params={"w": query, "n": SEARCH_PAGE_SIZE, "p": 1, "format": "json"},
            headers=self.official_headers,
        )
        if not result.ok:
            return []

        candidates = []
        for song in _song_list(parse_json(unwrap_jsonp(result.text))):
            song_mid = get_string(song, *SONG_ID_FIELDS)
            if not song_mid or not song_mid.strip():
                continue

            score = score_search_result(
                target_title,
                target_artist,
                get_string(song, *SONG_NAME_FIELDS),
                _singer_names(song),
            )
            candidates.append(OfficialSongCandidate(song_id=song_mid, score=score))

        logger.debug(f"[QQMusic] {len(candidates)} candidates for {query!r}")
        return candidates

    async def fetch_official_lyrics(self, song_id: Hashable) -> CachedPayload | None:
        result = await self._http.get(
            QQ_LYRIC_URL,
            params={"songmid": str(song_id), "format": "json", "nobase64": 1},
            headers=self.official_headers,
        )
        if not result.ok:
            return None

        data = parse_json(unwrap_jsonp(result.text))
        if not isinstance(data, dict):
            return None

        lyric_text = decode_if_base64(get_string(data, *LYRIC_FIELDS))
        trans_text = decode_if_base64(get_string(data, *TRANSLATION_FIELDS))

        synced = lyric_text if looks_like_timed_lyric(lyric_text) else None
        plain = lyric_text if synced is None else trans_text
        return CachedPayload(synced_lyrics=synced, plain_lyrics=plain)


def unwrap_jsonp(raw: str | None) -> str:
    """
    Return the JSON text of a possibly JSONP-wrapped response.

    Examples:
        '{"a": 1}' -> '{"a": 1}'
        'MusicJsonCallback({"a": 1})' -> '{"a": 1}'
        'garbage' -> ''
    """
    if not raw or not raw.strip():
        return ""

    trimmed = raw.strip()
    if trimmed.startswith("{") or trimmed.startswith("["):
        return trimmed

    open_index = trimmed.find("(")
    close_index = trimmed.rfind(")")
    if open_index >= 0 and close_index > open_index:
        return trimmed[open_index + 1:close_index].strip()

    return ""


def looks_like_timed_lyric(value: str | None) -> bool:
    return bool(value and value.strip() and "[" in value and ":" in value)


def decode_if_base64(raw: str | None) -> str | None:
    """
    Decode a base64 lyric field, leaving readable text untouched.

    Text that already looks like LRC is returned as is, as is anything that
    does not decode to non-blank UTF-8.
    """
    if not raw or not raw.strip():
        return raw

    if looks_like_timed_lyric(raw):
        return raw

    try:
        decoded = base64.b64decode(raw, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return raw

    return decoded if decoded.strip() else raw


def _song_list(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, dict):
        return []

    containers = []
    nested = data.get("data")
    if isinstance(nested, dict):
        containers.append(nested.get("song"))
    containers.append(data.get("song"))

    for container in containers:
        if isinstance(container, dict) and isinstance(container.get("list"), list):
            return [song for song in container["list"] if isinstance(song, dict)]

    return []


def _singer_names(song: dict[str, Any]) -> str:
    singers = song.get("singer")
    if not isinstance(singers, list):
        return ""

    names = []
    for singer in singers:
        name = get_string(singer, "name", "singerName")
        if name and name.strip():
            names.append(name.strip())
    return " / ".join(names)
