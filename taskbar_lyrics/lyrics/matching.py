"""
Text normalization, query building and result scoring.

Track metadata reported by players is inconsistent: titles carry
"(Live)", "[Remastered]" or "feat." suffixes, artist fields list several
artists with a variety of separators, and some players put "Artist - Title"
in the title field. Every provider uses the helpers below to turn one
(title, artist) pair into a list of search queries and exact-lookup
candidates, and to score what comes back.

Scoring:
    Both sides are reduced with normalize() (lower-case, alphanumeric only)
    and each field is graded:

        field       exact   contains   prefix overlap >= 2
        title       100     60         30
        artist      60      35         15

    A flat EXACT_MATCH_BONUS is added when title and artist both match
    exactly. Best-candidate selection elsewhere uses a strict '>' so the
    first result seen wins ties.
"""

import re


# =============================================================================
# SCORING WEIGHTS
# =============================================================================

# (exact, contains, overlap) points per field
TITLE_WEIGHTS = (100, 60, 30)
ARTIST_WEIGHTS = (60, 35, 15)

# Bonus when both normalized title and artist are identical
EXACT_MATCH_BONUS = 80

# Shortest common prefix that still counts as an overlap
MIN_PREFIX_OVERLAP = 2


# =============================================================================
# TITLE / ARTIST CLEANUP
# =============================================================================

# "(Live)", "[Remastered 2011]", "（伴奏）", "【MV】" ...
BRACKET_SUFFIX_REGEX = re.compile(r"\s*[\(\[\{（【].*?[\)\]\}）】]\s*")

# "Song feat. Someone", "Song ft Someone", "Song with Someone"
FEATURE_SUFFIX_REGEX = re.compile(r"\s+(feat\.?|ft\.?|with)\s+.*$", re.IGNORECASE)

# Checked in this order; the first one found past position 0 wins
ARTIST_SEPARATORS = (
    "、", "/", ",", "，", "&",
    " x ", " X ",
    " feat. ", " feat ", " ft. ", " ft ",
)

# Spaced variants first so "A - B" is not split on a hyphenated word
DASH_SEPARATORS = (" - ", " – ", " — ", "-", "–", "—")


def normalize(value: str | None) -> str:
    """
    Reduce text to lower-case alphanumeric characters.

    Used for scoring and cache keys. Idempotent.

    Examples:
        "Hello, World!" -> "helloworld"
        "  周杰伦 / Jay " -> "周杰伦jay"
        None -> ""
    """
    if not value or not value.strip():
        return ""
    return "".join(ch for ch in value.strip().lower() if ch.isalnum())


def collapse_whitespace(value: str) -> str:
    return " ".join(value.split())


def normalize_title_for_query(title: str | None) -> str:
    """
    Strip bracketed suffixes and featuring clauses from a title.

    Examples:
        "Song (Live)" -> "Song"
        "Song [Remaster] feat. Other" -> "Song"
    """
    if not title or not title.strip():
        return ""

    value = BRACKET_SUFFIX_REGEX.sub(" ", title)
    value = FEATURE_SUFFIX_REGEX.sub("", value)
    return collapse_whitespace(value)


def get_primary_artist(artist: str | None) -> str:
    """
    Return the first artist of a multi-artist string.

    The separators in ARTIST_SEPARATORS are tried in order (case-insensitive)
    and the text before the first one found past position 0 is kept.

    Examples:
        "A / B" -> "A"
        "A feat. B" -> "A"
        "/A" -> "/A"
    """
    if not artist or not artist.strip():
        return ""

    lowered = artist.lower()
    for separator in ARTIST_SEPARATORS:
        index = lowered.find(separator.lower())
        if index > 0:
            return collapse_whitespace(artist[:index])

    return collapse_whitespace(artist)


def split_by_dash(value: str | None) -> list[str]:
    """
    Split a title on the first dash-like separator that yields several parts.

    Returns [] when no separator splits the value.

    Example:
        "Artist - Title" -> ["Artist", "Title"]
    """
    if not value or not value.strip():
        return []

    for separator in DASH_SEPARATORS:
        parts = [part.strip() for part in value.split(separator)]
        parts = [part for part in parts if part]
        if len(parts) > 1:
            return parts

    return []


# =============================================================================
# QUERY AND CANDIDATE BUILDERS
# =============================================================================

def build_search_queries(title: str | None, artist: str | None) -> list[str]:
    """
    Build de-duplicated (case-insensitive) free-text search queries.

    Order:
        1. "title artist"
        2. normalized title + primary artist
        3. title
        4. normalized title
        5. title + primary artist, normalized title + primary artist (artist given)
        6. per dash segment: "segment artist", then "segment"

    Official-API search only uses the first four.
    """
    title = title or ""
    artist = artist or ""
    queries: list[str] = []
    seen: set[str] = set()

    def add(value: str) -> None:
        trimmed = value.strip()
        if not trimmed:
            return
        folded = trimmed.casefold()
        if folded not in seen:
            seen.add(folded)
            queries.append(trimmed)

    normalized_title = normalize_title_for_query(title)
    primary_artist = get_primary_artist(artist)

    add(f"{title} {artist}")
    add(f"{normalized_title} {primary_artist}")
    add(title)
    add(normalized_title)

    if artist.strip():
        add(f"{title} {primary_artist}")
        add(f"{normalized_title} {primary_artist}")

    for segment in split_by_dash(title):
        add(f"{segment} {artist}")
        add(segment)

    return queries


def build_get_candidates(title: str | None, artist: str | None) -> list[tuple[str, str]]:
    """
    Build (title, artist) pairs for exact lookups.

    Pairs are de-duplicated case-insensitively and pairs with a blank
    title are dropped.
    """
    title = title or ""
    artist = artist or ""
    candidates: list[tuple[str, str]] = []
    seen: set[tuple[str, str]] = set()

    def add(candidate_title: str, candidate_artist: str) -> None:
        key = (candidate_title.casefold(), candidate_artist.casefold())
        if key not in seen:
            seen.add(key)
            candidates.append((candidate_title, candidate_artist))

    normalized_title = normalize_title_for_query(title)
    primary_artist = get_primary_artist(artist)

    add(title, artist)
    add(normalized_title, artist)
    add(title, primary_artist)
    add(normalized_title, primary_artist)

    for segment in split_by_dash(title):
        add(segment, artist)
        add(segment, primary_artist)

    return [(t, a) for t, a in candidates if t.strip()]


# =============================================================================
# SCORING
# =============================================================================

def score_field(target: str, result: str, exact: int, contains: int, overlap: int) -> int:
    """
    Grade one already-normalized field.

    Returns 0 if either side is empty, `exact` if equal, `contains` if either
    contains the other, `overlap` if they share a prefix of at least
    MIN_PREFIX_OVERLAP characters, else 0.
    """
    if not target or not result:
        return 0

    if target == result:
        return exact

    if result in target or target in result:
        return contains

    common_prefix = 0
    for target_char, result_char in zip(target, result):
        if target_char != result_char:
            break
        common_prefix += 1

    return overlap if common_prefix >= MIN_PREFIX_OVERLAP else 0


def score_search_result(
    target_title: str | None,
    target_artist: str | None,
    result_title: str | None,
    result_artist: str | None
) -> int:
    """
    Score a search result against the track being resolved.

    Example:
        score_search_result("Hello", "Adele", "Hello", "Adele")  # 100 + 60 + 80
    """
    title_target = normalize(target_title)
    artist_target = normalize(target_artist)
    title_result = normalize(result_title)
    artist_result = normalize(result_artist)

    score = score_field(title_target, title_result, *TITLE_WEIGHTS)
    score += score_field(artist_target, artist_result, *ARTIST_WEIGHTS)

    if (
        title_target and artist_target
        and title_target == title_result
        and artist_target == artist_result
    ):
        score += EXACT_MATCH_BONUS

    return score
