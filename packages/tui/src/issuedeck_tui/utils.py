"""
Terminal text measurement.

Provides:
- visible_width(): terminal column width of a plain string
- segment_graphemes(): split text into grapheme clusters
- truncate_to_width(): cut text to a column budget, optionally with ellipsis
- split_at_width(): split text into a head that fits a column budget and a tail

All text handled here is plain; styling lives in Span objects, never inline.
"""
from __future__ import annotations

import re
import unicodedata

from wcwidth import wcwidth as _wcwidth

# ─────────────────────────────────────────────────────────────────────────────
# Width cache (bounded, oldest entry evicted first)
# ─────────────────────────────────────────────────────────────────────────────
_WIDTH_CACHE_SIZE = 512
_width_cache: dict[str, int] = {}

_JOINERS = (0x200D, 0xFE0F, 0x20E3)


def _could_be_emoji(cp: int, segment: str) -> bool:
    return (
        (0x1f000 <= cp <= 0x1fbff) or
        (0x2600 <= cp <= 0x27bf) or
        (0x2b50 <= cp <= 0x2b55) or
        "\ufe0f" in segment
    )


def grapheme_width(segment: str) -> int:
    """Terminal width of a single grapheme cluster."""
    if not segment:
        return 0
    if segment == "\t":
        return 3

    cp = ord(segment[0])
    if all(unicodedata.category(c) in ("Mn", "Me", "Cf", "Cc", "Cs") for c in segment):
        return 0

    if _could_be_emoji(cp, segment):
        # ZWJ sequences, flags and skin tones occupy two columns
        if len(segment) > 1:
            return 2
        if _wcwidth(segment[0]) == 2 or 0x1f000 <= cp <= 0x1fbff:
            return 2

    w = _wcwidth(segment[0])
    return 0 if w < 0 else w


def segment_graphemes(text: str) -> list[str]:
    """Segment text into grapheme clusters (base char plus combining marks)."""
    clusters: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        cluster = text[i]
        i += 1
        while i < n:
            ch = text[i]
            if unicodedata.category(ch) in ("Mn", "Me", "Cf") or ord(ch) in _JOINERS:
                cluster += ch
                i += 1
                # a ZWJ glues the following base character into the cluster
                if ord(ch) == 0x200D and i < n:
                    cluster += text[i]
                    i += 1
            else:
                break
        clusters.append(cluster)
    return clusters


def visible_width(s: str) -> int:
    """
    Calculate the visible terminal column width of a string.
    Handles wide chars, emoji, combining marks and tabs.
    """
    if not s:
        return 0

    if s.isascii() and s.isprintable():
        return len(s)

    cached = _width_cache.get(s)
    if cached is not None:
        return cached

    width = sum(grapheme_width(g) for g in segment_graphemes(s))

    if len(_width_cache) >= _WIDTH_CACHE_SIZE:
        _width_cache.pop(next(iter(_width_cache)))
    _width_cache[s] = width
    return width


def split_at_width(text: str, max_width: int) -> tuple[str, str]:
    """
    Split text so the head is at most max_width columns wide.
    Never splits a grapheme; a single glyph wider than max_width still
    goes into the head so callers always make progress.
    """
    if visible_width(text) <= max_width:
        return text, ""
    head: list[str] = []
    used = 0
    graphemes = segment_graphemes(text)
    for idx, g in enumerate(graphemes):
        gw = grapheme_width(g)
        if used + gw > max_width:
            if not head:
                return g, "".join(graphemes[idx + 1:])
            return "".join(head), "".join(graphemes[idx:])
        head.append(g)
        used += gw
    return "".join(head), ""


def truncate_to_width(
    text: str,
    max_width: int,
    ellipsis: str = "…",
    pad: bool = False,
) -> str:
    """Truncate text to max_width columns, adding ellipsis if it was cut."""
    if max_width <= 0:
        return ""
    text_visible = visible_width(text)
    if text_visible <= max_width:
        if pad:
            return text + " " * (max_width - text_visible)
        return text

    target_width = max_width - visible_width(ellipsis)
    if target_width <= 0:
        return ellipsis[:max_width]

    result = ""
    current_width = 0
    for g in segment_graphemes(text):
        gw = grapheme_width(g)
        if current_width + gw > target_width:
            break
        result += g
        current_width += gw

    truncated = result + ellipsis
    if pad:
        return truncated + " " * max(0, max_width - visible_width(truncated))
    return truncated


# ─────────────────────────────────────────────────────────────────────────────
# Character classes (used by editor word motions)
# ─────────────────────────────────────────────────────────────────────────────

_PUNCTUATION_RE = re.compile(r"[(){}\[\]<>.,;:'\"!?+\-=*/\\|&%^$#@~`]")


def is_whitespace_char(ch: str) -> bool:
    return ch.isspace()


def is_punctuation_char(ch: str) -> bool:
    return bool(_PUNCTUATION_RE.match(ch))
