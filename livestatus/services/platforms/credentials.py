"""Cached bearer token with proactive refresh. One refresh in flight at a time."""
import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)

# Refresh this long before the provider's stated expiry
DEFAULT_SAFETY_MARGIN_SECONDS = 60.0


class TokenCache:
    """
    Holds one access token and its expiry. fetch_token() returns (access_token, expires_in_seconds).
    Callers that see an expired token while another thread is refreshing wait for that refresh
    and reuse its result instead of requesting a second token.
    """

    def __init__(
        self,
        fetch_token: Callable[[], tuple[str, float]],
        *,
        clock: Callable[[], float] = time.monotonic,
        safety_margin_seconds: float = DEFAULT_SAFETY_MARGIN_SECONDS,
    ) -> None:
        self._fetch_token = fetch_token
        self._clock = clock
        self._safety_margin = safety_margin_seconds
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = threading.Lock()
        self.refresh_count = 0

    def _valid_token(self) -> str | None:
        if self._token and self._clock() < self._expires_at:
            return self._token
        return None

    def get_token(self) -> str:
        token = self._valid_token()
        if token:
            return token
        with self._lock:
            # Another caller may have refreshed while we waited on the lock
            token = self._valid_token()
            if token:
                return token
            access_token, expires_in = self._fetch_token()
            self._token = access_token
            self._expires_at = self._clock() + max(0.0, float(expires_in) - self._safety_margin)
            self.refresh_count += 1
            logger.info("Access token refreshed; valid for %.0fs", max(0.0, float(expires_in) - self._safety_margin))
            return access_token

    def invalidate(self, token: str | None = None) -> None:
        """
        Drop the cached token (e.g. after a 401) so the next caller refreshes. With token given,
        only drop it if it is still the cached one; a newer token from another refresh is kept.
        """
        with self._lock:
            if token is not None and token != self._token:
                return
            self._token = None
            self._expires_at = 0.0
