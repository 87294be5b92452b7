import pytest

from src.core.errors import NotConfigured, UpstreamError
from src.importer.playlist_sync import PlaylistImporter
from src.recommendation.recommendation_engine import RecommendationEngine
from src.web_api import web_app


class StubCatalog:
    enabled = True

    def __init__(self, tracks=None, error=None):
        self.tracks = tracks or []
        self.error = error

    def resolve_playlist(self, playlist_id):
        if self.error:
            raise self.error
        return {"name": "Practice", "tracks": list(self.tracks)}


class StubSource:
    enabled = True

    def __init__(self, configured=True):
        self.configured = configured

    def ensure_configured(self):
        if not self.configured:
            raise NotConfigured("Last.fm API key is not configured.")

    def top_tracks(self, artist, limit):
        return [{"title": "Creep", "artist": artist}]

    def similar_tracks(self, title, artist, limit):
        return [{"title": "Lucky", "artist": artist, "image_url": None, "source_url": None, "score": 0.6}]

    def similar_artists(self, artist, limit):
        return []


@pytest.fixture
def client(store, monkeypatch):
    catalog = StubCatalog(tracks=[{"title": "Creep", "artist": "Radiohead"}])
    monkeypatch.setattr(web_app, "song_store", store)
    monkeypatch.setattr(web_app, "spotify_catalog", catalog)
    monkeypatch.setattr(web_app, "lastfm_client", StubSource())
    monkeypatch.setattr(web_app, "playlist_importer", PlaylistImporter(store, catalog))
    monkeypatch.setattr(web_app, "recommendation_engine", RecommendationEngine(store, StubSource()))
    monkeypatch.setitem(web_app.app.config, "JAM_PIN", "")
    web_app.app.config["TESTING"] = True
    with web_app.app.test_client() as test_client:
        yield test_client


def test_health(client):
    body = client.get("/health").get_json()
    assert body["status"] == "healthy"
    assert body["pin_required"] is False


def test_song_crud_flow(client):
    created = client.post("/api/songs", json={"title": "Creep", "artist": "Radiohead"})
    assert created.status_code == 201
    song = created.get_json()
    assert song["status"] == "want_to_jam"

    fetched = client.get(f"/api/songs/{song['id']}")
    assert fetched.get_json()["title"] == "Creep"

    patched = client.patch(
        f"/api/songs/{song['id']}",
        json={"status": "learning", "bass_difficulty": "medium", "title": "Ignored"},
    )
    assert patched.status_code == 200
    assert patched.get_json()["status"] == "learning"
    assert patched.get_json()["title"] == "Creep"

    assert client.delete(f"/api/songs/{song['id']}").status_code == 204
    assert client.get(f"/api/songs/{song['id']}").status_code == 404


def test_create_song_validation(client):
    missing = client.post("/api/songs", json={"title": "Creep"})
    assert missing.status_code == 400
    assert "title and artist" in missing.get_json()["error"]
    assert client.post("/api/songs", json={"title": "A", "artist": "B", "status": "x"}).status_code == 400
    assert client.post("/api/songs", data="nope", content_type="text/plain").status_code == 400


def test_list_songs_newest_first_with_filter(client):
    client.post("/api/songs", json={"title": "Old", "artist": "A"})
    client.post("/api/songs", json={"title": "New", "artist": "B", "status": "can_play"})

    titles = [s["title"] for s in client.get("/api/songs").get_json()]
    assert titles == ["New", "Old"]
    filtered = client.get("/api/songs?status=can_play").get_json()
    assert [s["title"] for s in filtered] == ["New"]
    assert client.get("/api/songs?status=bogus").status_code == 400
    assert client.get("/api/songs?sort_by=bogus").status_code == 400


def test_patch_missing_song(client):
    assert client.patch("/api/songs/missing", json={"status": "learning"}).status_code == 404


def test_spotify_sync(client):
    resp = client.post("/api/spotify/sync", json={"playlist_url": "spotify:playlist:37i9dQZF1DXcBWIGoYBM5M"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["playlist_name"] == "Practice"
    assert (body["added"], body["skipped"], body["total"]) == (1, 0, 1)

    again = client.post("/api/spotify/sync", json={"playlist_url": "37i9dQZF1DXcBWIGoYBM5M"}).get_json()
    assert (again["added"], again["skipped"]) == (0, 1)


def test_spotify_sync_errors(client, store, monkeypatch):
    assert client.post("/api/spotify/sync", json={}).status_code == 400
    assert client.post("/api/spotify/sync", json={"playlist_url": "short"}).status_code == 400

    failing = StubCatalog(error=UpstreamError("Spotify API error: 500", upstream_status=500))
    monkeypatch.setattr(web_app, "playlist_importer", PlaylistImporter(store, failing))
    resp = client.post("/api/spotify/sync", json={"playlist_url": "37i9dQZF1DXcBWIGoYBM5M"})
    assert resp.status_code == 502
    assert resp.get_json()["upstream_status"] == 500

    unconfigured = StubCatalog(error=NotConfigured("Spotify integration is not configured."))
    monkeypatch.setattr(web_app, "playlist_importer", PlaylistImporter(store, unconfigured))
    assert client.post("/api/spotify/sync", json={"playlist_url": "37i9dQZF1DXcBWIGoYBM5M"}).status_code == 503


def test_discover(client):
    empty = client.get("/api/discover").get_json()
    assert empty["recommendations"] == {}
    assert empty["message"]

    client.post("/api/songs", json={"title": "Creep", "artist": "Radiohead"})
    body = client.get("/api/discover").get_json()
    assert "message" not in body
    assert body["recommendations"]["Radiohead"][0]["title"] == "Lucky"
    assert client.get("/api/discover?max_per_artist=0").status_code == 400
    assert client.get("/api/discover?max_per_artist=abc").status_code == 400


def test_discover_not_configured(client, store, monkeypatch):
    monkeypatch.setattr(
        web_app, "recommendation_engine", RecommendationEngine(store, StubSource(configured=False))
    )
    assert client.get("/api/discover").status_code == 503


def test_pin_gate(client, monkeypatch):
    monkeypatch.setitem(web_app.app.config, "JAM_PIN", "4321")
    assert client.get("/api/songs").status_code == 401
    assert client.get("/health").status_code == 200
    assert client.post("/api/auth", json={}).status_code == 400
    assert client.post("/api/auth", json={"pin": "0000"}).status_code == 401
    assert client.post("/api/auth", json={"pin": "4321"}).status_code == 200
    assert client.get("/api/songs").status_code == 200
    client.post("/api/auth/logout")
    assert client.get("/api/songs").status_code == 401
