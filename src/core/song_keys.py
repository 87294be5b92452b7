import re
import urllib.parse

CHORDIFY_SEARCH_URL = "https://chordify.net/search/"

_WHITESPACE_RE = re.compile(r"\s+")


def dedup_key(title, artist) -> str:
    """
    Canonical key for deciding whether two track references denote the same song.

    Both fields are trimmed and lowercased; internal whitespace is left as-is.
    """
    t = str(title or "").strip().lower()
    a = str(artist or "").strip().lower()
    return f"{t}|{a}"


def build_chord_chart_url(title, artist) -> str:
    """Chordify search URL for "<artist> <title>" with whitespace collapsed."""
    query = _WHITESPACE_RE.sub(" ", f"{artist or ''} {title or ''}").strip()
    return CHORDIFY_SEARCH_URL + urllib.parse.quote(query, safe="")
