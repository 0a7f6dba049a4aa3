"""Fixed-window request limiter for the chat endpoint."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

from config import ScoutConfig


@dataclass
class _Window:
    count: int
    started_at: float


class FixedWindowRateLimiter:
    def __init__(
        self,
        max_requests: int = ScoutConfig.RATE_LIMIT_MAX_REQUESTS,
        window_seconds: float = ScoutConfig.RATE_LIMIT_WINDOW_SECONDS,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def allow(self, key: str, now: Optional[float] = None) -> bool:
        now = time.monotonic() if now is None else now
        with self._lock:
            window = self._windows.get(key)
            if window is None or now - window.started_at > self.window_seconds:
                self._windows[key] = _Window(count=1, started_at=now)
                return True
            if window.count >= self.max_requests:
                return False
            window.count += 1
            return True

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
