import logging
import threading
import time
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)

# (access_token, expires_in_seconds)
TokenFetcher = Callable[[], Tuple[str, float]]


class TokenCache:
    """
    Holds one reusable bearer token for the telecom provider.

    The token is valid while ``now < expires_at_ms``; ``expires_at_ms`` is set
    ``safety_buffer_seconds`` before the provider's literal expiry. Refresh is
    single-flight: concurrent callers arriving in an expired window block on
    the same lock and reuse the token fetched by the first one.
    """

    def __init__(
        self,
        fetcher: TokenFetcher,
        safety_buffer_seconds: float = 60,
        clock: Callable[[], float] = time.time,
    ):
        self._fetcher = fetcher
        self._buffer_ms = int(safety_buffer_seconds * 1000)
        self._clock = clock
        self._lock = threading.Lock()
        self.access_token: Optional[str] = None
        self.expires_at_ms: int = 0

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _current(self) -> Optional[str]:
        token = self.access_token
        if token is not None and self._now_ms() < self.expires_at_ms:
            return token
        return None

    def is_valid(self) -> bool:
        return self._current() is not None

    def get_access_token(self) -> str:
        token = self._current()
        if token is not None:
            return token

        with self._lock:
            # another caller may have refreshed while we waited
            token = self._current()
            if token is not None:
                return token

            token, expires_in = self._fetcher()
            self.access_token = token
            self.expires_at_ms = self._now_ms() + int(float(expires_in) * 1000) - self._buffer_ms
            logger.info("Provider access token refreshed, valid for %.0fs", expires_in)
            return token

    def invalidate(self) -> None:
        with self._lock:
            self.access_token = None
            self.expires_at_ms = 0
