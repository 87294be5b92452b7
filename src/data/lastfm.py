import logging
from typing import Dict, List, Optional

import requests

from config import settings
from src.core.errors import NotConfigured, UpstreamError

logger = logging.getLogger(__name__)

# Last.fm in-body error for unknown artist/track.
LASTFM_ERROR_INVALID_PARAMS = 6

_IMAGE_SIZE_PREFERENCE = ("extralarge", "large", "medium")


def extract_image_url(images) -> Optional[str]:
    """Pick the best image from a Last.fm image list, largest preferred."""
    if not images:
        return None
    for size in _IMAGE_SIZE_PREFERENCE:
        for img in images:
            if isinstance(img, dict) and img.get("size") == size and img.get("#text"):
                return img["#text"]
    last = images[-1]
    return (last.get("#text") if isinstance(last, dict) else None) or None


def _as_list(value) -> List:
    # Last.fm collapses single-element lists into a bare object.
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]
    return []


def _artist_name(value) -> str:
    if isinstance(value, dict):
        return str(value.get("name") or value.get("#text") or "")
    return str(value or "")


def _score(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class LastFMClient:
    # Initialize class state.
    def __init__(self, api_key=None, timeout_sec=None, session=None):
        self.api_key = str(settings.LASTFM_API_KEY if api_key is None else api_key).strip()
        self.base_url = "https://ws.audioscrobbler.com/2.0/"
        self.timeout_sec = float(timeout_sec or settings.LASTFM_TIMEOUT_SEC)
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def ensure_configured(self):
        if not self.enabled:
            raise NotConfigured(
                "Last.fm API key is not configured. Set LASTFM_API_KEY to enable recommendations."
            )

    def _call(self, method: str, **params) -> Dict:
        self.ensure_configured()
        query = {
            "method": method,
            "api_key": self.api_key,
            "format": "json",
            "autocorrect": "1",
        }
        query.update({k: str(v) for k, v in params.items()})
        try:
            response = self.session.get(self.base_url, params=query, timeout=self.timeout_sec)
        except requests.RequestException as exc:
            raise UpstreamError(f"Failed to reach Last.fm: {exc}") from exc
        if response.status_code != 200:
            raise UpstreamError(
                f"Last.fm API error: {response.status_code}", upstream_status=response.status_code
            )
        data = response.json()
        if isinstance(data, dict) and "error" in data:
            if int(data.get("error") or 0) == LASTFM_ERROR_INVALID_PARAMS:
                logger.debug("Last.fm %s found nothing for %s", method, params)
                return {}
            raise UpstreamError(
                f"Last.fm error {data.get('error')}: {data.get('message', '')}",
                upstream_status=response.status_code,
            )
        return data if isinstance(data, dict) else {}

    def top_tracks(self, artist: str, limit: int = 3) -> List[Dict]:
        """Get an artist's most popular tracks."""
        data = self._call("artist.getTopTracks", artist=artist, limit=limit)
        tracks = _as_list((data.get("toptracks") or {}).get("track"))
        return [
            {"title": str(t.get("name") or ""), "artist": _artist_name(t.get("artist"))}
            for t in tracks[:limit]
            if isinstance(t, dict)
        ]

    def similar_tracks(self, title: str, artist: str, limit: int = 10) -> List[Dict]:
        """Get tracks similar to one track, each with a 0..1 match score."""
        data = self._call("track.getSimilar", track=title, artist=artist, limit=limit)
        tracks = _as_list((data.get("similartracks") or {}).get("track"))
        return [
            {
                "title": str(t.get("name") or ""),
                "artist": _artist_name(t.get("artist")),
                "image_url": extract_image_url(t.get("image")),
                "source_url": t.get("url") or None,
                "score": _score(t.get("match")),
            }
            for t in tracks[:limit]
            if isinstance(t, dict)
        ]

    def similar_artists(self, artist: str, limit: int = 5) -> List[Dict]:
        """Get artists similar to one artist."""
        data = self._call("artist.getSimilar", artist=artist, limit=limit)
        artists = _as_list((data.get("similarartists") or {}).get("artist"))
        return [
            {"name": str(a.get("name") or ""), "score": _score(a.get("match"))}
            for a in artists[:limit]
            if isinstance(a, dict)
        ]
