import threading
import time
from typing import Callable, Optional, Tuple


class ExpiringTokenCache:
    """
    Holds one access token and refreshes it on demand once it has expired.

    ``fetch`` returns ``(token, expires_in_seconds)``. The token is treated as
    expired ``early_expiry_sec`` before the upstream deadline.
    """

    # Initialize class state.
    def __init__(
        self,
        fetch: Callable[[], Tuple[str, float]],
        early_expiry_sec: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        self._fetch = fetch
        self._early_expiry_sec = float(early_expiry_sec)
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at = 0.0
        self._lock = threading.Lock()

    # Handle is valid.
    @property
    def is_valid(self) -> bool:
        return bool(self._token) and self._clock() < self._expires_at

    # Return the cached token, refreshing when stale.
    def get(self) -> str:
        if not self.is_valid:
            with self._lock:
                if not self.is_valid:
                    token, expires_in = self._fetch()
                    self._token = str(token or "")
                    self._expires_at = self._clock() + float(expires_in) - self._early_expiry_sec
        return self._token or ""

    def invalidate(self):
        with self._lock:
            self._token = None
            self._expires_at = 0.0
