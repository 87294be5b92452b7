import os
import tempfile

# Settings are read at import time; point them at throwaway values first.
_TMP_DIR = tempfile.mkdtemp(prefix="jammy-tests-")
os.environ["SONGS_DB_PATH"] = os.path.join(_TMP_DIR, "songs.db")
os.environ["SPOTIFY_CLIENT_ID"] = ""
os.environ["SPOTIFY_CLIENT_SECRET"] = ""
os.environ["LASTFM_API_KEY"] = ""
os.environ["JAM_PIN"] = ""

import pytest

from src.songs.song_store import SongStore


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}

    def json(self):
        return self._payload


class FakeSession:
    """Stands in for requests.Session; replies are matched by URL prefix in order."""

    def __init__(self, routes=None, token_payload=None, token_error=None):
        self.routes = list(routes or [])
        self.token_error = token_error
        self.token_payload = token_payload or {"access_token": "tok", "expires_in": 3600}
        self.get_calls = []
        self.post_calls = []

    def post(self, url, data=None, auth=None, timeout=None):
        self.post_calls.append({"url": url, "data": data, "auth": auth})
        if self.token_error:
            raise self.token_error
        return FakeResponse(200, self.token_payload)

    def get(self, url, params=None, headers=None, timeout=None):
        self.get_calls.append({"url": url, "params": dict(params or {}), "headers": headers})
        for idx, (prefix, response) in enumerate(self.routes):
            if url.startswith(prefix):
                self.routes.pop(idx)
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError(f"unexpected GET {url}")


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def store(tmp_path):
    return SongStore(db_path=tmp_path / "songs.db")


@pytest.fixture
def add_song(store):
    def _add(title, artist, **extra):
        fields = {"title": title, "artist": artist}
        fields.update(extra)
        return store.insert(fields)

    return _add
