import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from src.core.song_keys import build_chord_chart_url, dedup_key
from src.data.spotify import parse_playlist_reference
from src.songs.validation import DEFAULT_STATUS

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    playlist_name: str
    added: int = 0
    skipped: int = 0
    total: int = 0
    songs: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "playlist_name": self.playlist_name,
            "added": self.added,
            "skipped": self.skipped,
            "total": self.total,
            "songs": list(self.songs),
        }


class PlaylistImporter:
    """Copies a public playlist into the song collection without creating duplicates."""

    def __init__(self, store, catalog):
        self.store = store
        self.catalog = catalog

    @staticmethod
    def _song_fields(track: Dict, added_by: Optional[str]) -> Dict:
        title = str(track.get("title") or "").strip()
        artist = str(track.get("artist") or "").strip()
        return {
            "title": title,
            "artist": artist,
            "album": track.get("album") or None,
            "status": DEFAULT_STATUS,
            "spotify_id": track.get("spotify_id") or None,
            "spotify_url": track.get("spotify_url") or None,
            "cover_art_url": track.get("cover_art_url") or None,
            "chord_chart_url": track.get("chord_chart_url") or build_chord_chart_url(title, artist),
            "added_by": added_by or None,
        }

    def sync(self, reference, added_by=None) -> SyncResult:
        """
        Import every track of the referenced playlist that is not already present.

        Tracks are processed in playlist order; a repeated title/artist within the
        same playlist is skipped like an existing song, and so is an item missing
        its title or artist.
        """
        playlist_id = parse_playlist_reference(reference)
        playlist = self.catalog.resolve_playlist(playlist_id)
        tracks = playlist.get("tracks") or []

        existing = {dedup_key(s["title"], s["artist"]) for s in self.store.list_all()}
        result = SyncResult(playlist_name=str(playlist.get("name") or ""), total=len(tracks))

        for track in tracks:
            # Episodes and local files can arrive without a name or artist.
            if not str(track.get("title") or "").strip() or not str(track.get("artist") or "").strip():
                logger.debug("Skipping playlist item without title or artist: %s", track.get("spotify_id"))
                result.skipped += 1
                continue
            key = dedup_key(track.get("title"), track.get("artist"))
            if key in existing:
                result.skipped += 1
                continue
            existing.add(key)
            song = self.store.insert(self._song_fields(track, added_by))
            result.songs.append(song)

        result.added = len(result.songs)
        logger.info(
            "Synced playlist %s (%s): added=%d skipped=%d total=%d",
            playlist_id,
            result.playlist_name,
            result.added,
            result.skipped,
            result.total,
        )
        return result
