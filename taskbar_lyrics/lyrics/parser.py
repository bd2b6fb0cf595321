"""
LRC and plain-text lyric parsing.

Synced lyrics use LRC format, one line per lyric with one or more leading
timestamp tags:

    [00:15.00]First line of the song
    [00:18.5]Second line
    [01:02.120][02:10.050]A refrain sung twice

Accepted tags are [m:ss], [mm:ss], and the same followed by a 1-3 digit
fraction after '.' or ':'. Full-width colon and period glyphs (as produced
by some Chinese lyric sources) are accepted too. A line carrying several
tags produces one LyricLine per tag, all with the same text.

Lines without a tag (metadata like [ar:Artist], blank lines) are skipped,
as are lines whose text is blank after removing BOM and zero-width spaces.

Plain lyrics have no timing at all; each non-blank line is given a
synthetic timestamp PLAIN_LINE_INTERVAL apart, starting at 0.

Nothing in this module raises on malformed input: bad lines are dropped
and the rest of the document is still parsed.
"""

import re
from datetime import timedelta
from typing import Callable

from taskbar_lyrics.lyrics.models import CachedPayload, LyricDocument, LyricLine


# Timestamp tag: minutes, seconds, optional fraction
LRC_TAG_REGEX = re.compile(r"\[(\d{1,2})[:\uFF1A](\d{2})(?:[.\uFF0E:\uFF1A](\d{1,3}))?\]")

# Characters removed from lyric text before the blank check
INVISIBLE_CHARACTERS = ("\uFEFF", "\u200B")

PLAIN_LINE_INTERVAL = timedelta(seconds=3)

# Optional text transform applied to every extracted line, e.g. a
# traditional -> simplified Chinese converter supplied by the host platform.
ScriptNormalizer = Callable[[str], str]


def parse_millisecond(fraction: str | None) -> int:
    """
    Convert an LRC fraction to milliseconds.

    Examples:
        "5" -> 500
        "50" -> 500
        "500" -> 500
        "" -> 0
    """
    if not fraction or not fraction.strip():
        return 0

    fraction = fraction.strip()
    try:
        if len(fraction) == 1:
            return int(fraction) * 100
        if len(fraction) == 2:
            return int(fraction) * 10
        return int(fraction[:3])
    except ValueError:
        return 0


def normalize_lyric_text(text: str, script_normalizer: ScriptNormalizer | None = None) -> str:
    """Remove invisible characters, trim, and apply the optional script normalizer."""
    for char in INVISIBLE_CHARACTERS:
        text = text.replace(char, "")
    text = text.strip()

    if script_normalizer is not None and text:
        text = script_normalizer(text)
    return text


def _split_lines(text: str) -> list[str]:
    lines = (line.strip() for line in text.replace("\r\n", "\n").split("\n"))
    return [line for line in lines if line]


def parse_lrc(text: str | None, script_normalizer: ScriptNormalizer | None = None) -> list[LyricLine]:
    """
    Parse LRC text into lines stably sorted by timestamp.

    Args:
        text: Raw LRC text. None or blank gives [].
        script_normalizer: Optional transform applied to each line's text.

    Returns:
        List of LyricLine, ascending by timestamp. Lines that share a
        timestamp keep their order of appearance.
    """
    if not text or not text.strip():
        return []

    result: list[LyricLine] = []
    for raw_line in _split_lines(text):
        tags = list(LRC_TAG_REGEX.finditer(raw_line))
        if not tags:
            continue

        line_text = normalize_lyric_text(raw_line[tags[-1].end():], script_normalizer)
        if not line_text:
            continue

        for tag in tags:
            minutes = int(tag.group(1))
            seconds = int(tag.group(2))
            milliseconds = parse_millisecond(tag.group(3))
            timestamp = timedelta(minutes=minutes, seconds=seconds, milliseconds=milliseconds)
            result.append(LyricLine(timestamp=timestamp, text=line_text))

    result.sort(key=lambda line: line.timestamp)
    return result


def parse_plain(text: str | None, script_normalizer: ScriptNormalizer | None = None) -> list[LyricLine]:
    """Give every non-blank line a synthetic timestamp PLAIN_LINE_INTERVAL apart."""
    if not text or not text.strip():
        return []

    result: list[LyricLine] = []
    for raw_line in _split_lines(text):
        line_text = normalize_lyric_text(raw_line, script_normalizer)
        if not line_text:
            continue
        result.append(LyricLine(timestamp=PLAIN_LINE_INTERVAL * len(result), text=line_text))

    return result


def parse_payload(
    payload: CachedPayload | None,
    script_normalizer: ScriptNormalizer | None = None
) -> LyricDocument | None:
    """
    Turn a cached payload into a document.

    Synced text is tried first; when it yields no timed line the plain text
    is used. Returns None when neither produces a line.
    """
    if payload is None:
        return None

    timed = parse_lrc(payload.synced_lyrics, script_normalizer)
    if timed:
        return LyricDocument(tuple(timed))

    plain = parse_plain(payload.plain_lyrics, script_normalizer)
    if plain:
        return LyricDocument(tuple(plain))

    return None
