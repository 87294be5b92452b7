import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from config import settings
from src.core.song_keys import dedup_key

logger = logging.getLogger(__name__)

EMPTY_COLLECTION_MESSAGE = "Add some songs to your jam list first to get recommendations!"

TOP_TRACKS_PER_SEED = 2
SIMILAR_ARTISTS_PER_SEED = 3
TOP_TRACKS_PER_SIMILAR_ARTIST = 2


@dataclass
class Recommendation:
    title: str
    artist: str
    image_url: Optional[str]
    source_url: Optional[str]
    seed_artist: str
    match: float = 0.0

    def to_dict(self) -> Dict:
        return asdict(self)


def seed_artists(songs: Iterable[Dict]) -> List[str]:
    """
    Distinct artists in collection order, compared case-insensitively.

    The first spelling seen for an artist is the one kept for display.
    """
    by_key: Dict[str, str] = {}
    for song in songs:
        artist = str(song.get("artist") or "").strip()
        key = artist.lower()
        if artist and key not in by_key:
            by_key[key] = artist
    return list(by_key.values())


def rank_candidates(candidates: List[Recommendation], limit: int) -> List[Recommendation]:
    # sorted() is stable, so equal scores keep discovery order.
    return sorted(candidates, key=lambda rec: rec.match, reverse=True)[: max(0, int(limit))]


class RecommendationEngine:
    """Suggests new songs per seed artist from a similar-tracks/similar-artists source."""

    def __init__(
        self,
        store,
        source,
        max_seed_artists=None,
        max_workers=None,
    ):
        self.store = store
        self.source = source
        self.max_seed_artists = int(max_seed_artists or settings.RECO_MAX_SEED_ARTISTS)
        self.max_workers = int(max_workers or settings.RECO_MAX_WORKERS)

    def _collect_for_seed(
        self, seed: str, existing: Set[str], max_per_artist: int
    ) -> List[Recommendation]:
        top_tracks = self.source.top_tracks(seed, TOP_TRACKS_PER_SEED)

        with ThreadPoolExecutor(max_workers=len(top_tracks) + 1) as executor:
            similar_artists_future = executor.submit(
                self.source.similar_artists, seed, SIMILAR_ARTISTS_PER_SEED
            )
            similar_track_futures = [
                executor.submit(self.source.similar_tracks, t["title"], t["artist"], max_per_artist)
                for t in top_tracks
            ]
            similar_tracks = [f.result() for f in similar_track_futures]
            similar_artists = similar_artists_future.result()

        artist_tracks = [
            self.source.top_tracks(a["name"], TOP_TRACKS_PER_SIMILAR_ARTIST)
            for a in similar_artists
            if a.get("name")
        ]

        seen: Set[str] = set()
        candidates: List[Recommendation] = []

        def _add(track, image_url=None, source_url=None, score=0.0):
            key = dedup_key(track["title"], track["artist"])
            if key in seen or key in existing:
                return
            seen.add(key)
            candidates.append(
                Recommendation(
                    title=track["title"],
                    artist=track["artist"],
                    image_url=image_url,
                    source_url=source_url,
                    seed_artist=seed,
                    match=float(score or 0.0),
                )
            )

        for tracks in similar_tracks:
            for track in tracks:
                _add(track, track.get("image_url"), track.get("source_url"), track.get("score"))
        for tracks in artist_tracks:
            for track in tracks:
                _add(track)

        return rank_candidates(candidates, max_per_artist)

    def _safe_collect(self, seed, existing, max_per_artist) -> Tuple[str, List[Recommendation]]:
        try:
            return seed, self._collect_for_seed(seed, existing, max_per_artist)
        except Exception:
            logger.exception("Error fetching recommendations for %s", seed)
            return seed, []

    def recommend(self, max_per_artist=None) -> Tuple[Dict[str, List[Dict]], Optional[str]]:
        """
        Build suggestions grouped by seed artist.

        Returns ``(recommendations, message)``. ``message`` is only set when the
        collection is empty. Seed artists that yield nothing, or whose lookups
        fail, are left out of the mapping.
        """
        limit = int(max_per_artist or settings.RECO_MAX_PER_ARTIST)
        self.source.ensure_configured()

        songs = self.store.list_all()
        if not songs:
            return {}, EMPTY_COLLECTION_MESSAGE

        existing = {dedup_key(s["title"], s["artist"]) for s in songs}
        seeds = seed_artists(songs)[: self.max_seed_artists]

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(seeds)) or 1) as executor:
            futures = [executor.submit(self._safe_collect, seed, existing, limit) for seed in seeds]
            results = [f.result() for f in futures]

        recommendations = {
            seed: [rec.to_dict() for rec in recs] for seed, recs in results if recs
        }
        logger.info(
            "Recommendations for %d seed artist(s): %d with results",
            len(seeds),
            len(recommendations),
        )
        return recommendations, None
