import threading
from collections import defaultdict, deque
from datetime import datetime, timedelta
from typing import Callable

from session_auth.auth.models import utcnow


class LoginGuard:
    """Locks a login key out after repeated failures inside a sliding window.

    Keys whose failures have all aged out, and locks that have expired, are swept at
    most once per ``sweep_seconds`` so attacker-chosen keys cannot pile up.
    """

    def __init__(
        self,
        max_failures: int = 5,
        window_seconds: int = 15 * 60,
        lock_seconds: int = 15 * 60,
        sweep_seconds: int = 60,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.max_failures = max_failures
        self.window_seconds = window_seconds
        self.lock_seconds = lock_seconds
        self.sweep_seconds = sweep_seconds
        self._clock = clock
        self._failures: defaultdict[str, deque] = defaultdict(deque)
        self._locked_until: dict[str, datetime] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def _prune(self, key: str, now: datetime) -> None:
        q = self._failures.get(key)
        if q is None:
            return
        cutoff = now - timedelta(seconds=self.window_seconds)
        while q and q[0] < cutoff:
            q.popleft()
        if not q:
            del self._failures[key]

    def _sweep(self, now: datetime) -> None:
        if now - self._last_sweep < timedelta(seconds=self.sweep_seconds):
            return
        self._last_sweep = now
        for key in list(self._failures):
            self._prune(key, now)
        for key, locked_until in list(self._locked_until.items()):
            if locked_until <= now:
                del self._locked_until[key]

    def is_locked(self, key: str) -> datetime | None:
        now = self._clock()
        with self._lock:
            locked_until = self._locked_until.get(key)
            if not locked_until:
                return None
            if locked_until <= now:
                self._locked_until.pop(key, None)
                return None
            return locked_until

    def register_failure(self, key: str) -> datetime | None:
        now = self._clock()
        with self._lock:
            self._sweep(now)
            self._prune(key, now)

            q = self._failures[key]
            q.append(now)

            if len(q) >= self.max_failures:
                locked_until = now + timedelta(seconds=self.lock_seconds)
                self._locked_until[key] = locked_until
                del self._failures[key]
                return locked_until

        return None

    def clear_failures(self, key: str) -> None:
        with self._lock:
            self._failures.pop(key, None)
            self._locked_until.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._failures) + len(self._locked_until)
