"""
Small text and time helpers shared by the cogs.
"""

from __future__ import annotations

import re
import time

DESCRIPTION_LIMIT = 4096
FIELD_LIMIT = 1024

_LINK_RE = re.compile(r'<a\s+href="([^"]+)">([^<]+)</a>')
_LEFTOVER_TAG_RE = re.compile(r"</?(?:p|span|div|center|img)[^>]*>")

_REPLACEMENTS = [
    ("<i>", "_"), ("</i>", "_"), ("<em>", "_"), ("</em>", "_"),
    ("<strong>", "**"), ("</strong>", "**"), ("<b>", "**"), ("</b>", "**"),
    ("<del>", "~~"), ("</del>", "~~"), ("<strike>", "~~"), ("</strike>", "~~"),
    ("<blockquote>", "> "), ("</blockquote>", "> "),
    ("&mdash;", "—"), ("&quot;", '"'), ("&amp;", "&"), ("&#039;", "'"),
]

_HEADERS = [(f"<h{i}>", "#" * i + " ") for i in range(1, 7)] + [(f"</h{i}>", " ") for i in range(1, 7)]


def now_ts() -> int:
    return int(time.time())


def anilist_to_discord_markdown(value: str | None) -> str:
    """Convert the HTML-ish markup AniList returns into Discord markdown."""
    if not value:
        return ""
    out = value
    for old, new in _REPLACEMENTS:
        out = out.replace(old, new)
    out = _LEFTOVER_TAG_RE.sub("", out)
    out = _LINK_RE.sub(r"[\2](\1)", out)
    out = out.replace("`", "\\`")
    out = out.replace("<br>", "\n").replace("<br/>", "\n").replace("<br />", "\n")
    out = out.replace("~!", "||").replace("!~", "||")
    for old, new in _HEADERS:
        out = out.replace(old, new)
    return out


def trim(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    """Cut text to `limit` chars with an ellipsis, keeping spoiler bars balanced."""
    if len(text) <= limit:
        return text
    cut = text[: limit - 3] + "..."
    if cut.count("||") % 2 != 0:
        cut = text[: limit - 5] + "||..."
    return cut


def trim_plain(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    return text[:limit]


def media_name(title: dict | None) -> str:
    """'english / romaji', or whichever one exists."""
    title = title or {}
    en = title.get("english")
    rj = title.get("romaji")
    if en and rj:
        return f"{en} / {rj}"
    return en or rj or title.get("native") or "Unknown"


def fuzzy_date(date: dict | None) -> str:
    """AniList FuzzyDate -> 'dd/mm/yyyy' with missing parts dropped."""
    if not date:
        return "?"
    parts = []
    if date.get("day"):
        parts.append(f"{date['day']:02d}")
    if date.get("month"):
        parts.append(f"{date['month']:02d}")
    if date.get("year"):
        parts.append(f"{date['year']:04d}")
    return "/".join(parts) if parts else "?"


def fmt(n: int) -> str:
    return f"{n:,}"
