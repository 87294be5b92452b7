import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).parent.parent
DATA_DIR = BASE_DIR / "data"

SONGS_DB_PATH = Path(os.getenv("SONGS_DB_PATH", str(DATA_DIR / "jammy.db")))

SPOTIFY_CLIENT_ID = str(os.getenv("SPOTIFY_CLIENT_ID", "") or "").strip()
SPOTIFY_CLIENT_SECRET = str(os.getenv("SPOTIFY_CLIENT_SECRET", "") or "").strip()
SPOTIFY_TIMEOUT_SEC = max(1.0, float(os.getenv("SPOTIFY_TIMEOUT_SEC", "10.0") or 10.0))

LASTFM_API_KEY = str(os.getenv("LASTFM_API_KEY", "") or "").strip()
LASTFM_TIMEOUT_SEC = max(1.0, float(os.getenv("LASTFM_TIMEOUT_SEC", "10.0") or 10.0))

# Outbound call volume per discover request.
RECO_MAX_SEED_ARTISTS = max(1, int(os.getenv("RECO_MAX_SEED_ARTISTS", "5") or 5))
RECO_MAX_PER_ARTIST = max(1, int(os.getenv("RECO_MAX_PER_ARTIST", "6") or 6))
RECO_MAX_WORKERS = max(1, int(os.getenv("RECO_MAX_WORKERS", "5") or 5))

JAM_PIN = str(os.getenv("JAM_PIN", "") or "").strip()
FLASK_SECRET_KEY = str(os.getenv("FLASK_SECRET_KEY", "jammy-dev-secret-change-me") or "").strip()
SESSION_COOKIE_SECURE = str(os.getenv("SESSION_COOKIE_SECURE", "0") or "0").strip().lower() in {
    "1",
    "true",
    "yes",
    "y",
    "on",
}

API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", 5000))
