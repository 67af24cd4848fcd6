import time
from threading import Lock
from typing import Any, Mapping, Optional

TOO_MANY_REQUESTS = 429
DEFAULT_PENALTY = 60.0


def _header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None:
        value = headers.get(name.lower())
    return None if value is None else str(value)


def _as_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class RateLimiter:
    """Thread-safe pacing shared by every request of one client.

    Todoist answers an exhausted quota with 429 and ``Retry-After``; the
    ``X-RateLimit-*`` pair is honoured when a proxy supplies it.
    """

    def __init__(self, clock=time.time, sleep=time.sleep) -> None:
        self._lock = Lock()
        self._clock = clock
        self._sleep = sleep
        self._next_ts = 0.0
        self.last_remaining: Optional[int] = None
        self.last_wait: float = 0.0

    def acquire(self) -> None:
        while True:
            with self._lock:
                wait = self._next_ts - self._clock()
            if wait <= 0:
                return
            self._sleep(min(wait, 2.0))

    def update(self, headers: Mapping[str, Any], status_code: Optional[int] = None) -> None:
        retry_after = _as_float(_header(headers, "Retry-After"))
        remaining = _as_float(_header(headers, "X-RateLimit-Remaining"))
        reset = _as_float(_header(headers, "X-RateLimit-Reset"))
        with self._lock:
            now = self._clock()
            if retry_after is not None:
                self._next_ts = max(self._next_ts, now + retry_after)
            elif status_code == TOO_MANY_REQUESTS:
                self._next_ts = max(self._next_ts, now + DEFAULT_PENALTY)
            if remaining is not None:
                self.last_remaining = int(remaining)
                if remaining <= 1:
                    # reset is either an epoch or a delay in seconds
                    if reset is None:
                        target = now + DEFAULT_PENALTY
                    elif reset > now:
                        target = reset
                    else:
                        target = now + reset
                    self._next_ts = max(self._next_ts, target)
            self.last_wait = max(0.0, self._next_ts - now)
