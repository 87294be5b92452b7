import logging
import re
import urllib.parse
from typing import Dict, List, Optional

import requests

from config import settings
from src.core.errors import InvalidReference, NotConfigured, NotFound, UpstreamError
from src.core.token_cache import ExpiringTokenCache

logger = logging.getLogger(__name__)

SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_BASE = "https://api.spotify.com/v1"
SPOTIFY_WEB_HOST = "open.spotify.com"

PLAYLIST_FIELDS = (
    "name,description,images,"
    "tracks(items(track(id,name,artists(name),album(name,images),external_urls)),next,total)"
)

_URI_RE = re.compile(r"^spotify:playlist:([A-Za-z0-9]+)$")
_ID_RE = re.compile(r"^[A-Za-z0-9]+$")
_BARE_ID_RE = re.compile(r"^[A-Za-z0-9]{15,}$")


def parse_playlist_reference(reference) -> str:
    """
    Extract a playlist id from a Spotify URI, an open.spotify.com URL or a raw id.

    Raises InvalidReference when none of the forms match.
    """
    text = str(reference or "").strip()

    match = _URI_RE.match(text)
    if match:
        return match.group(1)

    parsed = urllib.parse.urlparse(text)
    if parsed.scheme in {"http", "https"} and parsed.hostname == SPOTIFY_WEB_HOST:
        parts = parsed.path.split("/")
        if "playlist" in parts:
            idx = parts.index("playlist")
            candidate = parts[idx + 1] if idx + 1 < len(parts) else ""
            if _ID_RE.match(candidate):
                return candidate

    if _BARE_ID_RE.match(text):
        return text

    raise InvalidReference(
        "Invalid Spotify playlist URL. Provide a link like https://open.spotify.com/playlist/..."
    )


class SpotifyCatalog:
    """Resolves public playlists through the Spotify Web API (client credentials flow)."""

    # Initialize class state.
    def __init__(self, client_id=None, client_secret=None, timeout_sec=None, session=None):
        self.client_id = str(
            settings.SPOTIFY_CLIENT_ID if client_id is None else client_id
        ).strip()
        self.client_secret = str(
            settings.SPOTIFY_CLIENT_SECRET if client_secret is None else client_secret
        ).strip()
        self.timeout_sec = float(timeout_sec or settings.SPOTIFY_TIMEOUT_SEC)
        self.session = session or requests.Session()
        self.token_cache = ExpiringTokenCache(self._request_access_token)

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _request_access_token(self):
        if not self.enabled:
            raise NotConfigured(
                "Spotify integration is not configured. Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET."
            )
        try:
            response = self.session.post(
                SPOTIFY_TOKEN_URL,
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout_sec,
            )
        except requests.RequestException as exc:
            logger.warning("Spotify unreachable: %s", exc)
            raise NotFound("Playlist not found or not public") from exc
        if response.status_code != 200:
            raise UpstreamError(
                f"Failed to get Spotify access token: {response.status_code}",
                upstream_status=response.status_code,
            )
        payload = response.json()
        return payload["access_token"], int(payload.get("expires_in") or 3600)

    def _get(self, url, params=None) -> Dict:
        token = self.token_cache.get()
        try:
            response = self.session.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout_sec,
            )
        except requests.RequestException as exc:
            logger.warning("Spotify unreachable: %s", exc)
            raise NotFound("Playlist not found or not public") from exc
        if response.status_code == 404:
            raise NotFound("Playlist not found or not public")
        if response.status_code == 401:
            self.token_cache.invalidate()
        if response.status_code != 200:
            raise UpstreamError(
                f"Spotify API error: {response.status_code}",
                upstream_status=response.status_code,
            )
        return response.json()

    @staticmethod
    def _cover_art(album) -> Optional[str]:
        images = (album or {}).get("images") or []
        for img in images:
            if isinstance(img, dict) and img.get("width") == 300 and img.get("url"):
                return img["url"]
        if images and isinstance(images[0], dict):
            return images[0].get("url") or None
        return None

    def _parse_items(self, items) -> List[Dict]:
        tracks = []
        for item in items or []:
            track = (item or {}).get("track")
            # Removed or unavailable tracks come back as null.
            if not track:
                continue
            album = track.get("album") or {}
            tracks.append(
                {
                    "title": str(track.get("name") or ""),
                    "artist": ", ".join(
                        str(a.get("name") or "") for a in (track.get("artists") or []) if isinstance(a, dict)
                    ),
                    "album": album.get("name") or None,
                    "spotify_id": track.get("id"),
                    "spotify_url": (track.get("external_urls") or {}).get("spotify"),
                    "cover_art_url": self._cover_art(album),
                }
            )
        return tracks

    def resolve_playlist(self, playlist_id) -> Dict:
        """
        Fetch playlist metadata and every track, following pagination.

        A failed page fails the whole call; callers never see a truncated list.
        """
        pid = str(playlist_id or "")
        if not _ID_RE.match(pid):
            raise InvalidReference("Invalid playlist ID")

        data = self._get(f"{SPOTIFY_API_BASE}/playlists/{pid}", params={"fields": PLAYLIST_FIELDS})
        page = data.get("tracks") or {}
        images = data.get("images") or []
        total = int(page.get("total") or 0)
        tracks = self._parse_items(page.get("items"))

        next_url = page.get("next")
        pages = 1
        while next_url:
            if not str(next_url).startswith(SPOTIFY_API_BASE + "/"):
                raise UpstreamError("Unexpected Spotify pagination URL")
            try:
                page = self._get(next_url)
            except NotFound as exc:
                raise UpstreamError(
                    "Spotify playlist page disappeared during sync", upstream_status=404
                ) from exc
            tracks.extend(self._parse_items(page.get("items")))
            next_url = page.get("next")
            pages += 1

        logger.info("Resolved Spotify playlist %s: %d tracks over %d page(s)", pid, len(tracks), pages)
        return {
            "name": data.get("name") or "",
            "description": data.get("description") or None,
            "track_count": total or len(tracks),
            "image_url": (images[0].get("url") if images and isinstance(images[0], dict) else None),
            "tracks": tracks,
        }
