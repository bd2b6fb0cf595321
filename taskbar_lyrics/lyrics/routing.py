"""
Provider routing policy.

Maps the free-form identifier of the playing application to the ordered
list of provider source keys to try. The identifier is classified into a
family by case-insensitive substring containment:

    Family     Matches                                         Route after the exact source
    QQ         "qqmusic", "qq"                                 QQMusic, LrcLib, locals
    Netease    "netease", "cloudmusic", "163music",            Netease, LrcLib, locals
               "music.163", "wyy"
    Spotify    "spotify"                                       QQMusic, Kugou, Netease, LrcLib, locals
    Kugou      "kugou"                                         Kugou, LrcLib, locals
    Kuwo       "kuwo"                                          Kuwo, LrcLib, locals
    Apple      "apple"                                         AppleMusic, LrcLib, locals
    unknown                                                    LrcLib, locals, QQMusic, Netease,
                                                               Kugou, Kuwo, AppleMusic

Every route starts with the exact (trimmed) source identifier and ends with
the wildcard provider "*". A blank identifier routes to LrcLib and "*"
only. Keys are de-duplicated case-insensitively, and
blank keys are dropped. Spotify has no lyric API of its own, so its route
borrows the Chinese platforms' catalogues first.

"locals" are reserved keys for local file providers (embedded tags, .lrc,
.eslrc, .ttml files). No provider is registered for them here; the registry
skips keys it does not know.
"""

from taskbar_lyrics.lyrics.providers.base import WILDCARD_SOURCE


LRCLIB_SOURCE = "LrcLib"
QQMUSIC_SOURCE = "QQMusic"
NETEASE_SOURCE = "Netease"
KUGOU_SOURCE = "Kugou"
KUWO_SOURCE = "Kuwo"
APPLE_MUSIC_SOURCE = "AppleMusic"

LOCAL_PROVIDERS = (
    "LocalMusicFile",
    "LocalLrcFile",
    "LocalEslrcFile",
    "LocalTtmlFile",
)

QQ_MARKERS = ("qqmusic", "qq")
NETEASE_MARKERS = ("netease", "cloudmusic", "163music", "music.163", "wyy")
SPOTIFY_MARKERS = ("spotify",)


def _contains_any(value: str | None, markers: tuple[str, ...]) -> bool:
    if not value or not value.strip():
        return False
    folded = value.casefold()
    return any(marker in folded for marker in markers)


def is_qq_family(source: str | None) -> bool:
    return _contains_any(source, QQ_MARKERS)


def is_netease_family(source: str | None) -> bool:
    return _contains_any(source, NETEASE_MARKERS)


def is_spotify_family(source: str | None) -> bool:
    return _contains_any(source, SPOTIFY_MARKERS)


def build_route(source_app: str | None) -> list[str]:
    """
    Build the ordered provider route for a source application.

    Args:
        source_app: Identifier of the playing application. None or blank
                    yields only the generic database and the wildcard.

    Returns:
        Ordered source keys, exact source first and "*" last, without
        case-insensitive duplicates.

    Example:
        build_route("Spotify")
        # ['Spotify', 'QQMusic', 'Kugou', 'Netease', 'LrcLib',
        #  'LocalMusicFile', 'LocalLrcFile', 'LocalEslrcFile', 'LocalTtmlFile', '*']
    """
    source = (source_app or "").strip()
    route: list[str] = []
    seen: set[str] = set()

    def add(*keys: str) -> None:
        for key in keys:
            folded = key.strip().casefold()
            if folded and folded not in seen:
                seen.add(folded)
                route.append(key.strip())

    if not source:
        # Nothing to classify: generic database, then anything
        add(LRCLIB_SOURCE, WILDCARD_SOURCE)
        return route

    add(source)

    if is_qq_family(source):
        add(QQMUSIC_SOURCE, LRCLIB_SOURCE, *LOCAL_PROVIDERS)
    elif is_netease_family(source):
        add(NETEASE_SOURCE, LRCLIB_SOURCE, *LOCAL_PROVIDERS)
    elif is_spotify_family(source):
        add(QQMUSIC_SOURCE, KUGOU_SOURCE, NETEASE_SOURCE, LRCLIB_SOURCE, *LOCAL_PROVIDERS)
    elif _contains_any(source, ("kugou",)):
        add(KUGOU_SOURCE, LRCLIB_SOURCE, *LOCAL_PROVIDERS)
    elif _contains_any(source, ("kuwo",)):
        add(KUWO_SOURCE, LRCLIB_SOURCE, *LOCAL_PROVIDERS)
    elif _contains_any(source, ("apple",)):
        add(APPLE_MUSIC_SOURCE, LRCLIB_SOURCE, *LOCAL_PROVIDERS)
    else:
        add(LRCLIB_SOURCE, *LOCAL_PROVIDERS)
        add(QQMUSIC_SOURCE, NETEASE_SOURCE, KUGOU_SOURCE, KUWO_SOURCE, APPLE_MUSIC_SOURCE)

    add(WILDCARD_SOURCE)
    return route
