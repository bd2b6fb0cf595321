"""
Lyric provider registry.

The registry owns the set of providers, keyed case-insensitively by their
source key, and resolves a track by walking its route (see routing.py):

    route = build_route(track.source_app)
    for key in route:
        provider = registered provider for key (unknown keys are skipped)
        document = await provider.resolve(track re-tagged with key)
        if document has lines: return LyricResolveResult(document, key)

Re-tagging the track's source_app with the provider's key lets strict
providers accept routed calls: a Spotify track reaching the QQMusic entry is
handed to QQMusicProvider as a QQMusic lookup (and cached under that
namespace). The wildcard provider receives the track unchanged.

Usage:
    async with HttpClient(timeout_seconds=8) as http:
        registry = create_default_registry(config, http, CacheService(cache_dir))
        result = await registry.resolve_lyrics(track)
        if result.found:
            print(f"{len(result.document)} lines from {result.source_app}")
"""

import asyncio
from dataclasses import replace
from typing import Iterable

from taskbar_lyrics.core.config import Config
from taskbar_lyrics.core.exceptions import ProviderError
from taskbar_lyrics.core.logger import get_logger
from taskbar_lyrics.lyrics.cache import CacheService
from taskbar_lyrics.lyrics.http import HttpClient
from taskbar_lyrics.lyrics.models import LyricResolveResult, TrackInfo
from taskbar_lyrics.lyrics.parser import ScriptNormalizer
from taskbar_lyrics.lyrics.providers.base import UNKNOWN_TITLE, WILDCARD_SOURCE, LyricProvider
from taskbar_lyrics.lyrics.providers.lrclib import GenericLyricProvider, LrcLibProvider
from taskbar_lyrics.lyrics.providers.netease import NeteaseProvider
from taskbar_lyrics.lyrics.providers.qqmusic import QQMusicProvider
from taskbar_lyrics.lyrics.routing import build_route

logger = get_logger(__name__)


# Every provider shipped with the package, in registration order
BUILTIN_PROVIDERS: tuple[type[LyricProvider], ...] = (
    LrcLibProvider,
    GenericLyricProvider,
    NeteaseProvider,
    QQMusicProvider,
)


class ProviderRegistry:
    """
    Resolves tracks by trying registered providers in route order.

    Attributes:
        _providers: Providers keyed by case-folded source key.

    Raises:
        ProviderError: At construction, if a provider has a blank key or two
                       providers share a key.
    """

    def __init__(self, providers: Iterable[LyricProvider]) -> None:
        self._providers: dict[str, LyricProvider] = {}
        for provider in providers:
            key = (provider.source_app or "").strip()
            if not key:
                raise ProviderError(
                    f"Provider {type(provider).__name__} has no source key",
                    details={"provider": type(provider).__name__}
                )
            if key.casefold() in self._providers:
                raise ProviderError(
                    f"Duplicate provider for source '{key}'",
                    details={"source_app": key}
                )
            self._providers[key.casefold()] = provider

    @property
    def sources(self) -> list[str]:
        """Registered source keys, in registration order."""
        return [provider.source_app for provider in self._providers.values()]

    def get(self, source_app: str) -> LyricProvider | None:
        return self._providers.get((source_app or "").strip().casefold())

    async def resolve_lyrics(self, track: TrackInfo) -> LyricResolveResult:
        """
        Resolve a track through its route.

        Returns:
            LyricResolveResult with the first non-empty document and the key
            of the provider that produced it, or LyricResolveResult.not_found().
            Never raises; a cancelled resolution ends as not found without
            asking the remaining providers.
        """
        if (track.title or "").casefold() == UNKNOWN_TITLE.casefold():
            logger.debug("Skipping resolution of unidentified track")
            return LyricResolveResult.not_found()

        route = build_route(track.source_app)
        logger.debug(f"Route for {track.source_app!r}: {route}")

        for key in route:
            provider = self.get(key)
            if provider is None:
                continue

            if provider.source_app == WILDCARD_SOURCE:
                routed = track
            else:
                routed = replace(track, source_app=provider.source_app)

            try:
                document = await provider.resolve(routed)
            except asyncio.CancelledError:
                # Cancelled: no later provider is asked
                logger.debug(f"Resolution of {track.display_name} cancelled at {provider.source_app}")
                return LyricResolveResult.not_found()

            if document is not None and not document.is_empty:
                logger.info(
                    f"Lyrics for {track.display_name} from {provider.source_app} "
                    f"({len(document)} lines)"
                )
                return LyricResolveResult(document=document, source_app=provider.source_app)

        logger.info(f"No lyrics found for {track.display_name}")
        return LyricResolveResult.not_found()

    def clear_cache(self, namespace: str | None = None) -> list[str]:
        """
        Clear provider caches.

        Args:
            namespace: Cache file name to clear (e.g. "lrclib-lyrics.json").
                       None clears every registered provider's namespace.

        Returns:
            The namespaces that were cleared.
        """
        cleared = []
        for provider in self._providers.values():
            if namespace is not None and provider.cache_namespace != namespace:
                continue
            provider.clear_cache()
            cleared.append(provider.cache_namespace)

        logger.debug(f"Cleared lyric caches: {cleared}")
        return cleared


def create_default_registry(
    config: Config,
    http: HttpClient,
    cache_service: CacheService,
    script_normalizer: ScriptNormalizer | None = None
) -> ProviderRegistry:
    """
    Build the registry with every built-in provider.

    Netease and QQ Music are only registered when enabled in config.providers.
    """
    provider_classes: list[type[LyricProvider]] = [LrcLibProvider, GenericLyricProvider]
    if config.providers.enable_netease:
        provider_classes.append(NeteaseProvider)
    if config.providers.enable_qqmusic:
        provider_classes.append(QQMusicProvider)

    providers = [
        provider_class(
            http,
            cache_service,
            search_parallelism=config.network.search_parallelism,
            script_normalizer=script_normalizer,
        )
        for provider_class in provider_classes
    ]
    return ProviderRegistry(providers)
