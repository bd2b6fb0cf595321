"""Test configuration and fixtures"""

import asyncio
import json
import tempfile
from pathlib import Path
from typing import Any, Callable

import pytest

from taskbar_lyrics.lyrics.cache import CacheService
from taskbar_lyrics.lyrics.http import FetchResult
from taskbar_lyrics.lyrics.models import TrackInfo


class FakeHttpClient:
    """
    Stand-in for HttpClient.

    `handler(url, params)` returns the response for a request: a FetchResult,
    a dict/list (sent as a JSON body), a str body, or None for a 404.
    Every call is recorded, and the number of requests in flight is tracked
    so tests can check concurrency limits.
    """

    def __init__(self, handler: Callable[[str, dict], Any] | None = None, delay: float = 0.0):
        self.handler = handler or (lambda url, params: None)
        self.delay = delay
        self.calls: list[tuple[str, dict]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get(self, url, params=None, headers=None) -> FetchResult:
        params = dict(params or {})
        self.calls.append((url, params))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            response = self.handler(url, params)
        finally:
            self.in_flight -= 1

        if isinstance(response, FetchResult):
            return response
        if response is None:
            return FetchResult.failure("HTTP 404", status=404)
        if isinstance(response, str):
            return FetchResult.success(200, response)
        return FetchResult.success(200, json.dumps(response))

    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]

    async def close(self) -> None:
        pass


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def cache_service(temp_dir):
    """Cache service writing into the temporary directory"""
    return CacheService(temp_dir / "cache")


@pytest.fixture
def fake_http():
    """Fake HTTP client answering 404 to everything"""
    return FakeHttpClient()


@pytest.fixture
def sample_track():
    """A track reported by a generic player"""
    return TrackInfo(id="track-1", title="Hello", artist="Adele", source_app="LrcLib")


@pytest.fixture
def sample_lrc():
    """Small LRC document with out-of-order lines"""
    return "\n".join([
        "[ti:Hello]",
        "[00:10.00]Third",
        "[00:00.50]First",
        "[00:05.25]Second",
    ])
