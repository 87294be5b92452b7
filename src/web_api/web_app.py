import hmac
import logging
from datetime import timedelta

from flask import Flask, jsonify, request, session

from config import settings
from src.core.errors import BadInput, JamError
from src.data.lastfm import LastFMClient
from src.data.spotify import SpotifyCatalog
from src.importer.playlist_sync import PlaylistImporter
from src.recommendation.recommendation_engine import RecommendationEngine
from src.songs.song_store import SongStore
from src.songs.validation import validate_new_song, validate_song_update, validate_sort_field

logger = logging.getLogger(__name__)

_MAX_PER_ARTIST_LIMIT = 20

app = Flask(__name__)
app.secret_key = settings.FLASK_SECRET_KEY
app.permanent_session_lifetime = timedelta(days=30)
app.config["SESSION_COOKIE_HTTPONLY"] = True
app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
app.config["SESSION_COOKIE_SECURE"] = settings.SESSION_COOKIE_SECURE
app.config["JAM_PIN"] = settings.JAM_PIN


song_store = SongStore()
spotify_catalog = SpotifyCatalog()
lastfm_client = LastFMClient()
playlist_importer = PlaylistImporter(song_store, spotify_catalog)
recommendation_engine = RecommendationEngine(song_store, lastfm_client)


def _json_body():
    """
    Parse the request body as a JSON object.

    Raises BadInput for a missing or malformed body so routes stay free of I/O
    on bad requests.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadInput("Request body must be a JSON object")
    return data


def _pin_required():
    return bool(str(app.config.get("JAM_PIN") or "").strip())


def _is_authenticated():
    return bool(session.get("jam_authenticated"))


@app.before_request
def _require_session():
    if not _pin_required():
        return None
    path = request.path or ""
    if not path.startswith("/api/") or path.startswith("/api/auth"):
        return None
    if _is_authenticated():
        return None
    return (jsonify({"error": "Authentication required"}), 401)


@app.after_request
def _set_referrer_policy_header(response):
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    return response


@app.errorhandler(JamError)
def _handle_jam_error(exc):
    if exc.status_code >= 500:
        logger.warning("%s: %s", type(exc).__name__, exc.message)
    return (jsonify(exc.to_dict()), exc.status_code)


# Check this operation.
@app.route("/health", methods=["GET"])
def health():
    return jsonify(
        {
            "status": "healthy",
            "spotify_enabled": bool(spotify_catalog.enabled),
            "lastfm_enabled": bool(lastfm_client.enabled),
            "pin_required": _pin_required(),
        }
    )


@app.route("/api/auth", methods=["POST"])
def auth_login():
    """
    Unlock the API for this browser session with the shared PIN.
    """
    data = request.get_json(silent=True) or {}
    pin = data.get("pin")
    if not pin or not isinstance(pin, str):
        return (jsonify({"error": "PIN is required"}), 400)
    expected = str(app.config.get("JAM_PIN") or "")
    if not expected:
        return (jsonify({"error": "PIN login is not configured"}), 503)
    if not hmac.compare_digest(pin.encode("utf-8"), expected.encode("utf-8")):
        return (jsonify({"error": "Invalid PIN"}), 401)
    session["jam_authenticated"] = True
    session.permanent = True
    return jsonify({"success": True, "message": "Authentication successful"})


@app.route("/api/auth/logout", methods=["POST"])
def auth_logout():
    session.pop("jam_authenticated", None)
    return jsonify({"status": "logged_out"})


# List songs.
@app.route("/api/songs", methods=["GET"])
def list_songs():
    """
    List songs, newest first by default.

    Query params: ``status`` (filter) and ``sort_by`` (created_at, artist, title).
    """
    status = str(request.args.get("status", "") or "").strip()
    sort_by = validate_sort_field(request.args.get("sort_by") or "created_at")
    try:
        songs = song_store.list_all(status=status or None, sort_by=sort_by, descending=True)
    except JamError:
        raise
    except Exception:
        logger.exception("Error fetching songs")
        return (jsonify({"error": "Failed to fetch songs"}), 500)
    return jsonify(songs)


# Create a song.
@app.route("/api/songs", methods=["POST"])
def create_song():
    fields = validate_new_song(_json_body())
    try:
        song = song_store.insert(fields)
    except Exception:
        logger.exception("Error creating song")
        return (jsonify({"error": "Failed to create song"}), 500)
    return (jsonify(song), 201)


@app.route("/api/songs/<song_id>", methods=["GET"])
def get_song(song_id):
    return jsonify(song_store.get(song_id))


@app.route("/api/songs/<song_id>", methods=["PATCH"])
def update_song(song_id):
    """
    Partially update a song.

    Title and artist are never changed; unknown keys are dropped silently.
    """
    changes = validate_song_update(_json_body())
    return jsonify(song_store.update(song_id, changes))


@app.route("/api/songs/<song_id>", methods=["DELETE"])
def delete_song(song_id):
    song_store.delete(song_id)
    return ("", 204)


# Import a Spotify playlist.
@app.route("/api/spotify/sync", methods=["POST"])
def spotify_sync():
    """
    Sync a public Spotify playlist into the jam list.

    Body: ``{"playlist_url": str, "added_by": str?}``.
    """
    data = _json_body()
    reference = str(data.get("playlist_url") or "").strip()
    if not reference:
        raise BadInput("playlist_url is required")
    added_by = str(data.get("added_by") or "").strip() or None
    try:
        result = playlist_importer.sync(reference, added_by=added_by)
    except JamError:
        raise
    except Exception:
        logger.exception("Error syncing Spotify playlist")
        return (jsonify({"error": "Failed to sync playlist"}), 500)
    return jsonify(result.to_dict())


# Recommend songs.
@app.route("/api/discover", methods=["GET"])
def discover():
    raw_limit = request.args.get("max_per_artist")
    max_per_artist = settings.RECO_MAX_PER_ARTIST
    if raw_limit:
        try:
            max_per_artist = int(raw_limit)
        except ValueError:
            raise BadInput("max_per_artist must be an integer")
        if not 1 <= max_per_artist <= _MAX_PER_ARTIST_LIMIT:
            raise BadInput(f"max_per_artist must be between 1 and {_MAX_PER_ARTIST_LIMIT}")
    try:
        recommendations, message = recommendation_engine.recommend(max_per_artist=max_per_artist)
    except JamError:
        raise
    except Exception:
        logger.exception("Error fetching recommendations")
        return (jsonify({"error": "Failed to fetch recommendations"}), 500)
    payload = {"recommendations": recommendations}
    if message:
        payload["message"] = message
    return jsonify(payload)
