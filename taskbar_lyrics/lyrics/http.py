"""
HTTP transport for lyric providers.

Every outbound request goes through HttpClient.get(), which never raises
for transport problems. Instead it returns a FetchResult:

    result = await http.get(url, params={"q": query})
    if not result.ok:
        return None          # timeout, non-2xx, connection error ...
    data = result.json()     # None when the body is not valid JSON

This keeps the "a provider never raises" contract visible in the types:
a provider only ever branches on result.ok / a None JSON body.

The client owns one aiohttp.ClientSession, created lazily inside the
running event loop, with a fixed total timeout and a User-Agent header.
Providers add their own Referer/Origin headers per request.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Mapping

import aiohttp

from taskbar_lyrics.core.config import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT
from taskbar_lyrics.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """
    Outcome of one HTTP request.

    Attributes:
        ok: True for a 2xx response whose body was read.
        status: HTTP status, None when no response was received.
        text: Response body (only when ok).
        error: Short failure description (only when not ok).
    """

    ok: bool
    status: int | None = None
    text: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, status: int, text: str) -> "FetchResult":
        return cls(ok=True, status=status, text=text)

    @classmethod
    def failure(cls, error: str, status: int | None = None) -> "FetchResult":
        return cls(ok=False, status=status, error=error)

    def json(self) -> Any | None:
        """Decode the body as JSON, None when not ok or malformed."""
        if not self.ok or not self.text:
            return None
        return parse_json(self.text)


def parse_json(text: str | None) -> Any | None:
    """json.loads that returns None instead of raising."""
    if not text or not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


class HttpClient:
    """
    Shared aiohttp wrapper used by every provider.

    Attributes:
        timeout_seconds: Total timeout applied to each request.
        user_agent: User-Agent header sent with each request.

    Example:
        async with HttpClient(timeout_seconds=8) as http:
            result = await http.get("https://lrclib.net/api/search", params={"q": "song"})
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        session: aiohttp.ClientSession | None = None
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                headers={"User-Agent": self.user_agent},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get(
        self,
        url: str,
        params: Mapping[str, str | int] | None = None,
        headers: Mapping[str, str] | None = None
    ) -> FetchResult:
        """
        Issue a GET request and return its outcome.

        Args:
            url: Endpoint URL without query string.
            params: Query parameters (URL-encoded by aiohttp).
            headers: Extra headers for this request.

        Returns:
            FetchResult. Non-2xx statuses, timeouts and client errors are
            failures; this method does not raise for them.
        """
        try:
            session = self._get_session()
            async with session.get(url, params=params, headers=headers) as response:
                if response.status < 200 or response.status >= 300:
                    logger.debug(f"GET {url} returned HTTP {response.status}")
                    return FetchResult.failure(f"HTTP {response.status}", status=response.status)

                body = await response.text(errors="replace")
                return FetchResult.success(response.status, body)
        except asyncio.TimeoutError:
            logger.debug(f"GET {url} timed out after {self.timeout_seconds}s")
            return FetchResult.failure("timeout")
        except aiohttp.ClientError as e:
            logger.debug(f"GET {url} failed: {e}")
            return FetchResult.failure(str(e) or type(e).__name__)
