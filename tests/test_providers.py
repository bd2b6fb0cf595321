# tests/test_providers.py
"""Test the provider pipeline against a fake HTTP client"""

import asyncio
import base64
import json
import threading
from unittest.mock import patch

import pytest

from taskbar_lyrics.lyrics.cache import build_cache_key
from taskbar_lyrics.lyrics.matching import build_search_queries
from taskbar_lyrics.lyrics.models import CachedPayload, TrackInfo
from taskbar_lyrics.lyrics.providers.base import (
    LRCLIB_GET_URL,
    LRCLIB_SEARCH_URL,
    OfficialApiProvider,
    OfficialSongCandidate,
)
from taskbar_lyrics.lyrics.providers.lrclib import GenericLyricProvider, LrcLibProvider
from taskbar_lyrics.lyrics.providers.netease import (
    NETEASE_LYRIC_URL,
    NETEASE_SEARCH_URL,
    NeteaseProvider,
)
from taskbar_lyrics.lyrics.providers.qqmusic import (
    QQ_LYRIC_URL,
    QQ_SEARCH_URL,
    QQMusicProvider,
    decode_if_base64,
    unwrap_jsonp,
)

from conftest import FakeHttpClient


LRC_TEXT = "[00:01.00]First\n[00:03.00]Second"


def lrclib_item(title, artist, synced=LRC_TEXT, plain=None):
    return {"trackName": title, "artistName": artist, "syncedLyrics": synced, "plainLyrics": plain}


class TestLrcLibProvider:
    """Test the LRCLIB stages"""

    @pytest.mark.asyncio
    async def test_exact_hit(self, cache_service, sample_track):
        """Test an exact lookup hit is parsed and no search is issued"""
        http = FakeHttpClient(
            lambda url, params: lrclib_item("Hello", "Adele") if url == LRCLIB_GET_URL else None
        )
        provider = LrcLibProvider(http, cache_service)

        document = await provider.resolve(sample_track)

        assert [line.text for line in document] == ["First", "Second"]
        assert LRCLIB_SEARCH_URL not in http.urls()
        assert http.calls[0][1] == {"track_name": "Hello", "artist_name": "Adele"}

    @pytest.mark.asyncio
    async def test_cache_hit_skips_network(self, cache_service, sample_track):
        """Test a second resolution is served from the cache"""
        http = FakeHttpClient(lambda url, params: lrclib_item("Hello", "Adele"))
        provider = LrcLibProvider(http, cache_service)
        await provider.resolve(sample_track)
        calls = len(http.calls)

        document = await LrcLibProvider(http, cache_service).resolve(sample_track)

        assert document is not None
        assert len(http.calls) == calls

    @pytest.mark.asyncio
    async def test_cache_write_runs_off_the_loop(self, cache_service, sample_track):
        """Test the cache file is written from a worker thread"""
        http = FakeHttpClient(lambda url, params: lrclib_item("Hello", "Adele"))
        provider = LrcLibProvider(http, cache_service)
        writer_threads = []

        with patch.object(
            provider._cache, "store",
            side_effect=lambda key, payload: writer_threads.append(threading.get_ident())
        ):
            await provider.resolve(sample_track)

        assert len(writer_threads) == 1
        assert writer_threads[0] != threading.get_ident()

    @pytest.mark.asyncio
    async def test_stored_under_normalized_key(self, cache_service, sample_track):
        """Test the payload is cached under source|title|artist"""
        http = FakeHttpClient(lambda url, params: lrclib_item("Hello", "Adele"))
        await LrcLibProvider(http, cache_service).resolve(sample_track)

        cache = cache_service.namespace(LrcLibProvider.cache_namespace)
        assert cache.get(build_cache_key("LrcLib", "Hello", "Adele")) == CachedPayload(
            synced_lyrics=LRC_TEXT, plain_lyrics=None
        )

    @pytest.mark.asyncio
    async def test_plain_fallback(self, cache_service, sample_track):
        """Test plain lyrics are used when there is no synced text"""
        http = FakeHttpClient(
            lambda url, params: lrclib_item("Hello", "Adele", synced=None, plain="one\ntwo")
        )
        document = await LrcLibProvider(http, cache_service).resolve(sample_track)
        assert [line.text for line in document] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_search_picks_best_score(self, cache_service, sample_track):
        """Test fuzzy search keeps the highest scoring item over all queries"""
        def handler(url, params):
            if url != LRCLIB_SEARCH_URL:
                return None
            return [
                lrclib_item("Hello World", "Someone", synced="[00:01.00]Wrong"),
                lrclib_item("Hello", "Adele", synced="[00:01.00]Right"),
                lrclib_item("Hello", "Adele", synced=None, plain=None),
            ]

        http = FakeHttpClient(handler)
        document = await LrcLibProvider(http, cache_service).resolve(sample_track)
        assert [line.text for line in document] == ["Right"]

    @pytest.mark.asyncio
    async def test_search_concurrency_is_bounded(self, cache_service):
        """Test no more than 3 search requests are in flight and every query is issued"""
        track = TrackInfo(
            id="t", title="Song (Live) - Part Two feat. X", artist="A / B & C", source_app="LrcLib"
        )
        queries = build_search_queries(track.title, track.artist)
        assert len(queries) > 3

        http = FakeHttpClient(lambda url, params: [] if url == LRCLIB_SEARCH_URL else None, delay=0.01)
        document = await LrcLibProvider(http, cache_service).resolve(track)

        assert document is None
        search_calls = [params["q"] for url, params in http.calls if url == LRCLIB_SEARCH_URL]
        assert sorted(search_calls) == sorted(queries)
        assert http.max_in_flight <= 3

    @pytest.mark.asyncio
    async def test_custom_parallelism(self, cache_service, sample_track):
        """Test the concurrency limit follows search_parallelism"""
        http = FakeHttpClient(lambda url, params: [], delay=0.01)
        await LrcLibProvider(http, cache_service, search_parallelism=1).resolve(sample_track)
        assert http.max_in_flight == 1

    @pytest.mark.asyncio
    async def test_strict_source(self, cache_service, fake_http):
        """Test a track from another source is not handled"""
        track = TrackInfo(id="t", title="Hello", artist="Adele", source_app="Spotify")
        assert await LrcLibProvider(fake_http, cache_service).resolve(track) is None
        assert fake_http.calls == []

    @pytest.mark.asyncio
    async def test_wildcard_accepts_any_source(self, cache_service):
        """Test the generic provider handles every source"""
        http = FakeHttpClient(lambda url, params: lrclib_item("Hello", "Adele"))
        track = TrackInfo(id="t", title="Hello", artist="Adele", source_app="Spotify")
        assert await GenericLyricProvider(http, cache_service).resolve(track) is not None

    @pytest.mark.asyncio
    async def test_unknown_title(self, cache_service, fake_http):
        """Test the unidentified placeholder title triggers no lookup"""
        track = TrackInfo(id="t", title="Unknown Title", artist="", source_app="LrcLib")
        assert await LrcLibProvider(fake_http, cache_service).resolve(track) is None
        assert fake_http.calls == []

    @pytest.mark.asyncio
    async def test_cancellation_passes_through(self, cache_service, sample_track):
        """Test cancellation reaches the caller and stops the remaining stages"""
        def handler(url, params):
            raise asyncio.CancelledError()

        http = FakeHttpClient(handler)
        with pytest.raises(asyncio.CancelledError):
            await LrcLibProvider(http, cache_service).resolve(sample_track)
        assert len(http.calls) == 1

    @pytest.mark.asyncio
    async def test_malformed_json(self, cache_service, sample_track):
        """Test invalid bodies are treated as misses"""
        http = FakeHttpClient(lambda url, params: "<html>oops</html>")
        assert await LrcLibProvider(http, cache_service).resolve(sample_track) is None


def netease_search(songs):
    return {"result": {"songs": songs}}


def netease_song(song_id, name, artist):
    return {"id": song_id, "name": name, "artists": [{"name": artist}]}


class TestNeteaseProvider:
    """Test the Netease official stage"""

    @pytest.mark.asyncio
    async def test_official_hit(self, cache_service):
        """Test the best candidate's lyrics are used and LRCLIB is not queried"""
        def handler(url, params):
            if url == NETEASE_SEARCH_URL:
                return netease_search([
                    netease_song(2, "Other", "Someone"),
                    netease_song(1, "Hello", "Adele"),
                ])
            if url == NETEASE_LYRIC_URL and params["id"] == "1":
                return {"lrc": {"lyric": "[00:01.00]Hello it's me"}, "tlyric": {"lyric": ""}}
            return None

        http = FakeHttpClient(handler)
        track = TrackInfo(id="t", title="Hello", artist="Adele", source_app="Netease")
        document = await NeteaseProvider(http, cache_service).resolve(track)

        assert [line.text for line in document] == ["Hello it's me"]
        lyric_ids = [params["id"] for url, params in http.calls if url == NETEASE_LYRIC_URL]
        assert lyric_ids == ["1"]
        assert LRCLIB_GET_URL not in http.urls()

    @pytest.mark.asyncio
    async def test_invalid_ids_skipped(self, cache_service):
        """Test non-positive and non-integer ids are never fetched"""
        def handler(url, params):
            if url == NETEASE_SEARCH_URL:
                return netease_search([
                    {"id": 0, "name": "Hello", "artists": [{"name": "Adele"}]},
                    {"id": True, "name": "Hello", "artists": [{"name": "Adele"}]},
                    {"id": "5", "name": "Hello", "artists": [{"name": "Adele"}]},
                ])
            return None

        http = FakeHttpClient(handler)
        track = TrackInfo(id="t", title="Hello", artist="Adele", source_app="Netease")
        assert await NeteaseProvider(http, cache_service).resolve(track) is None
        assert NETEASE_LYRIC_URL not in http.urls()

    @pytest.mark.asyncio
    async def test_falls_back_to_lrclib(self, cache_service):
        """Test a failed official search continues with LRCLIB"""
        http = FakeHttpClient(
            lambda url, params: lrclib_item("Hello", "Adele") if url == LRCLIB_GET_URL else None
        )
        track = TrackInfo(id="t", title="Hello", artist="Adele", source_app="Netease")
        document = await NeteaseProvider(http, cache_service).resolve(track)

        assert document is not None
        assert http.urls().index(NETEASE_SEARCH_URL) < http.urls().index(LRCLIB_GET_URL)

    @pytest.mark.asyncio
    async def test_sends_platform_headers(self, cache_service):
        """Test Referer and Origin are sent to the platform"""
        seen = []

        class RecordingHttp(FakeHttpClient):
            async def get(self, url, params=None, headers=None):
                seen.append((url, headers))
                return await super().get(url, params, headers)

        track = TrackInfo(id="t", title="Hello", artist="Adele", source_app="Netease")
        await NeteaseProvider(RecordingHttp(), cache_service).resolve(track)

        headers = [h for url, h in seen if url == NETEASE_SEARCH_URL][0]
        assert headers["Referer"] == "https://music.163.com/"
        assert headers["Origin"] == "https://music.163.com"


class ScriptedOfficialProvider(OfficialApiProvider):
    """Official provider answering each search query from a script"""

    source_app = "Scripted"
    cache_namespace = "scripted-lyrics.json"

    def __init__(self, http, cache_service, answers, lyrics):
        super().__init__(http, cache_service)
        self.answers = answers
        self.lyrics = lyrics
        self.queries = []
        self.fetched = []

    async def search_official_single_query(self, query, target_title, target_artist):
        self.queries.append(query)
        index = len(self.queries) - 1
        return list(self.answers[index]) if index < len(self.answers) else []

    async def fetch_official_lyrics(self, song_id):
        self.fetched.append(song_id)
        return self.lyrics.get(song_id)


def candidates(*pairs):
    return [OfficialSongCandidate(song_id=song_id, score=score) for song_id, score in pairs]


# Ten songs from the first query, duplicates and newcomers from the next
# three, and a fifth query's best match that must never be asked for
OFFICIAL_ANSWERS = [
    candidates(*[(song_id, song_id * 10) for song_id in range(1, 11)]),
    candidates((3, 500), (1, 5)),
    candidates((11, 95)),
    candidates((12, 1)),
    candidates((99, 1000)),
]


class TestOfficialSearch:
    """Test the official search merge, ranking and fetch order"""

    @pytest.mark.asyncio
    async def test_first_fetch_with_text_wins(self, cache_service, fake_http):
        """Test candidates are fetched best first until one has lyrics"""
        provider = ScriptedOfficialProvider(fake_http, cache_service, OFFICIAL_ANSWERS, {
            3: CachedPayload(synced_lyrics=None, plain_lyrics=None),
            10: CachedPayload(synced_lyrics="", plain_lyrics="   "),
            11: CachedPayload(synced_lyrics="[00:01.00]Found", plain_lyrics=None),
            9: CachedPayload(synced_lyrics="[00:01.00]Too late", plain_lyrics=None),
        })

        payload = await provider.fetch_official_payload("Hello - Live", "Adele")

        assert payload.synced_lyrics == "[00:01.00]Found"
        assert provider.fetched == [3, 10, 11]

    @pytest.mark.asyncio
    async def test_query_cap_dedup_and_top_eight(self, cache_service, fake_http):
        """Test four queries, one fetch per song id and only the eight best"""
        assert len(build_search_queries("Hello - Live", "Adele")) > 4
        provider = ScriptedOfficialProvider(fake_http, cache_service, OFFICIAL_ANSWERS, {})

        assert await provider.fetch_official_payload("Hello - Live", "Adele") is None

        assert len(provider.queries) == 4
        assert provider.queries == build_search_queries("Hello - Live", "Adele")[:4]
        assert provider.fetched == [3, 10, 11, 9, 8, 7, 6, 5]
        assert 99 not in provider.fetched

    @pytest.mark.asyncio
    async def test_qq_mids_merge_case_insensitively(self, cache_service):
        """Test the same QQ song mid in different case is fetched once"""
        def handler(url, params):
            if url == QQ_SEARCH_URL:
                return {"data": {"song": {"list": [
                    {"songmid": "AbC123", "songname": "Hello", "singer": [{"name": "Adele"}]},
                    {"songmid": "abc123", "songname": "Hello", "singer": [{"name": "Adele"}]},
                ]}}}
            return None

        http = FakeHttpClient(handler)
        provider = QQMusicProvider(http, cache_service)

        assert await provider.fetch_official_payload("Hello", "Adele") is None

        searches = [url for url in http.urls() if url == QQ_SEARCH_URL]
        fetched = [params["songmid"] for url, params in http.calls if url == QQ_LYRIC_URL]
        assert len(searches) == len(build_search_queries("Hello", "Adele")[:4])
        assert fetched == ["AbC123"]


class TestQQMusicProvider:
    """Test the QQ Music official stage"""

    @pytest.mark.asyncio
    async def test_jsonp_and_base64(self, cache_service):
        """Test JSONP bodies and base64 lyric fields are unwrapped"""
        encoded = base64.b64encode("[00:01.00]晴天".encode("utf-8")).decode("ascii")

        def handler(url, params):
            if url == QQ_SEARCH_URL:
                body = {"data": {"song": {"list": [
                    {"songmid": "003OUlho2HcRHC", "songname": "晴天", "singer": [{"name": "周杰伦"}]},
                ]}}}
                return f"callback({json.dumps(body)})"
            if url == QQ_LYRIC_URL:
                return f"MusicJsonCallback({json.dumps({'lyric': encoded, 'trans': ''})})"
            return None

        http = FakeHttpClient(handler)
        track = TrackInfo(id="t", title="晴天", artist="周杰伦", source_app="QQMusic")
        document = await QQMusicProvider(http, cache_service).resolve(track)

        assert [line.text for line in document] == ["晴天"]
        assert LRCLIB_GET_URL not in http.urls()

    @pytest.mark.asyncio
    async def test_top_level_song_list(self, cache_service):
        """Test the older top-level song.list shape is accepted"""
        def handler(url, params):
            if url == QQ_SEARCH_URL:
                return {"song": {"list": [{"songmid": "abc", "songname": "Hello", "singer": []}]}}
            if url == QQ_LYRIC_URL and params["songmid"] == "abc":
                return {"lyric": "[00:02.00]Hi"}
            return None

        http = FakeHttpClient(handler)
        track = TrackInfo(id="t", title="Hello", artist="", source_app="QQMusic")
        document = await QQMusicProvider(http, cache_service).resolve(track)
        assert [line.text for line in document] == ["Hi"]

    def test_unwrap_jsonp(self):
        """Test JSONP unwrapping"""
        assert unwrap_jsonp('{"a": 1}') == '{"a": 1}'
        assert unwrap_jsonp('cb({"a": 1})') == '{"a": 1}'
        assert unwrap_jsonp("garbage") == ""
        assert unwrap_jsonp(None) == ""

    def test_decode_if_base64(self):
        """Test base64 decoding leaves readable text alone"""
        encoded = base64.b64encode("hello lyrics".encode("utf-8")).decode("ascii")
        assert decode_if_base64(encoded) == "hello lyrics"
        assert decode_if_base64("[00:01.00]plain") == "[00:01.00]plain"
        assert decode_if_base64("not base64!") == "not base64!"
        assert decode_if_base64(None) is None
