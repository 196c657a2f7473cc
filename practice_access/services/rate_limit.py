import threading
import time
from collections import deque


class LoginRateLimiter:
    """Sliding-window attempt counter keyed by client address and account."""

    def __init__(self, max_attempts: int, window_seconds: int = 60) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._lock = threading.Lock()
        self._attempts: dict[str, deque[float]] = {}
        self._last_sweep = 0.0

    def _prune(self, bucket: deque[float], now: float) -> None:
        while bucket and bucket[0] <= now - self.window_seconds:
            bucket.popleft()

    def _sweep(self, now: float) -> None:
        # Keys that stop retrying would otherwise stay in the map forever.
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for key in list(self._attempts):
            bucket = self._attempts[key]
            self._prune(bucket, now)
            if not bucket:
                del self._attempts[key]

    def hit(self, key: str, now: float | None = None) -> bool:
        """Count an attempt; False once the window is full."""
        now = now if now is not None else time.monotonic()
        with self._lock:
            self._sweep(now)
            bucket = self._attempts.setdefault(key, deque())
            self._prune(bucket, now)
            if len(bucket) >= self.max_attempts:
                return False
            bucket.append(now)
            return True

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._attempts.clear()
            else:
                self._attempts.pop(key, None)
