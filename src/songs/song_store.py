import sqlite3
import time
import uuid
from pathlib import Path

from config import settings
from src.core.errors import NotFound
from src.songs.validation import (
    DEFAULT_STATUS,
    SONG_FIELDS,
    UPDATABLE_FIELDS,
    validate_sort_field,
    validate_status,
)

_COLUMNS = ", ".join(SONG_FIELDS)


class SongStore:
    """sqlite-backed collection of songs. Uniqueness of (title, artist) is not enforced."""

    # Initialize class state.
    def __init__(self, db_path=None):
        self.db_path = str(db_path or settings.SONGS_DB_PATH)
        self._init_db()

    # Internal helper to init db.
    def _init_db(self):
        """
        Initialize db.

        Creates the songs table and its lookup indexes when missing.
        """
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS songs (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                artist TEXT NOT NULL,
                album TEXT,
                status TEXT NOT NULL DEFAULT 'want_to_jam',
                bass_difficulty TEXT,
                drums_difficulty TEXT,
                spotify_id TEXT,
                spotify_url TEXT,
                youtube_url TEXT,
                cover_art_url TEXT,
                songsterr_url TEXT,
                songsterr_bass_id INTEGER,
                songsterr_drum_id INTEGER,
                genius_url TEXT,
                chord_chart_url TEXT,
                notes TEXT,
                added_by TEXT,
                created_at REAL NOT NULL,
                updated_at REAL NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_songs_artist ON songs(artist)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_songs_status ON songs(status)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_songs_created_at ON songs(created_at)")
        conn.commit()
        conn.close()

    # Internal helper to conn.
    def _conn(self):
        return sqlite3.connect(self.db_path)

    @staticmethod
    def generate_song_id():
        return str(uuid.uuid4())

    @staticmethod
    def _row_to_song(row):
        return dict(zip(SONG_FIELDS, row))

    # List songs, optionally filtered by status.
    def list_all(self, status=None, sort_by="created_at", descending=False):
        """
        List songs.

        Ordering is by ``sort_by`` with insertion order (rowid) as tiebreaker, so
        ascending ``created_at`` is creation order even for identical timestamps.
        """
        column = validate_sort_field(sort_by)
        direction = "DESC" if descending else "ASC"
        sql = f"SELECT {_COLUMNS} FROM songs"
        params = []
        if status:
            sql += " WHERE status=?"
            params.append(validate_status(status))
        sql += f" ORDER BY {column} {direction}, rowid {direction}"
        conn = self._conn()
        rows = conn.execute(sql, tuple(params)).fetchall()
        conn.close()
        return [self._row_to_song(row) for row in rows]

    # Fetch one song by id.
    def get(self, song_id):
        sid = str(song_id or "").strip()
        conn = self._conn()
        row = conn.execute(f"SELECT {_COLUMNS} FROM songs WHERE id=?", (sid,)).fetchone()
        conn.close()
        if not row:
            raise NotFound("Song not found")
        return self._row_to_song(row)

    # Insert a new song.
    def insert(self, fields):
        """
        Insert a song built from already-validated ``fields``.

        Generates the id and both timestamps; returns the stored song.
        """
        now = time.time()
        song = {name: None for name in SONG_FIELDS}
        song.update({k: v for k, v in (fields or {}).items() if k in SONG_FIELDS})
        song["id"] = self.generate_song_id()
        song["status"] = song.get("status") or DEFAULT_STATUS
        song["created_at"] = now
        song["updated_at"] = now
        placeholders = ", ".join("?" for _ in SONG_FIELDS)
        conn = self._conn()
        conn.execute(
            f"INSERT INTO songs ({_COLUMNS}) VALUES ({placeholders})",
            tuple(song[name] for name in SONG_FIELDS),
        )
        conn.commit()
        conn.close()
        return song

    # Apply a partial update.
    def update(self, song_id, changes):
        """
        Update song.

        Only status, notes, difficulties and link fields are written; anything
        else in ``changes`` is ignored. ``updated_at`` always moves forward.
        """
        sid = str(song_id or "").strip()
        allowed = {k: v for k, v in (changes or {}).items() if k in UPDATABLE_FIELDS}
        allowed["updated_at"] = time.time()
        assignments = ", ".join(f"{name}=?" for name in allowed)
        conn = self._conn()
        cur = conn.execute(
            f"UPDATE songs SET {assignments} WHERE id=?",
            tuple(allowed.values()) + (sid,),
        )
        updated = cur.rowcount > 0
        conn.commit()
        conn.close()
        if not updated:
            raise NotFound("Song not found")
        return self.get(sid)

    # Remove a song.
    def delete(self, song_id):
        sid = str(song_id or "").strip()
        conn = self._conn()
        cur = conn.execute("DELETE FROM songs WHERE id=?", (sid,))
        deleted = cur.rowcount > 0
        conn.commit()
        conn.close()
        if not deleted:
            raise NotFound("Song not found")
