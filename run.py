import logging

from config import settings
from src.web_api.web_app import app, lastfm_client, spotify_catalog


def report_integrations() -> None:
    """Print which outbound integrations are configured before serving."""
    print(f"[startup] Spotify sync {'enabled' if spotify_catalog.enabled else 'disabled'}.", flush=True)
    print(f"[startup] Last.fm discover {'enabled' if lastfm_client.enabled else 'disabled'}.", flush=True)
    print(f"[startup] Jammy ready at http://127.0.0.1:{settings.API_PORT}", flush=True)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="[%(levelname)s] %(asctime)s %(message)s",
    )
    logging.getLogger("werkzeug").setLevel(logging.ERROR)
    report_integrations()
    app.run(debug=False, use_reloader=False, port=settings.API_PORT, host=settings.API_HOST)
