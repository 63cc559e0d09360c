"""
Rate Limiting pro Client-IP.

Gleitendes Fenster im Speicher des Prozesses, getrennt nach Routengruppe:
- /retell/public/*: RATE_LIMIT_PUBLIC_MAX Anfragen pro Fenster
- /retell/tool/*:   RATE_LIMIT_TOOL_MAX Anfragen pro Fenster

Wird als Router-Dependency eingehängt. Bei Überschreitung 429 mit
Retry-After und RateLimit-Headern.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable

from fastapi import HTTPException, Request, Response

from hotel_agent.core.config import settings

logger = logging.getLogger(__name__)


class SlidingWindowLimiter:
    """Zählt Zeitstempel pro Schlüssel innerhalb des Fensters."""

    def __init__(
        self,
        name: str,
        max_requests: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def _recent(self, key: str, now: float) -> list[float]:
        timestamps = [t for t in self._hits.get(key, []) if now - t < self.window_seconds]
        if timestamps:
            self._hits[key] = timestamps
        else:
            self._hits.pop(key, None)
        return timestamps

    def hit(self, key: str) -> bool:
        """True, wenn die Anfrage erlaubt ist (und gezählt wird)."""
        now = self._clock()
        with self._lock:
            timestamps = self._recent(key, now)
            if len(timestamps) >= self.max_requests:
                return False
            timestamps.append(now)
            self._hits[key] = timestamps
            return True

    def remaining(self, key: str) -> int:
        with self._lock:
            return max(0, self.max_requests - len(self._recent(key, self._clock())))

    def retry_after(self, key: str) -> int:
        """Sekunden, bis der älteste Eintrag aus dem Fenster fällt."""
        now = self._clock()
        with self._lock:
            timestamps = self._recent(key, now)
            if len(timestamps) < self.max_requests:
                return 0
            return max(1, math.ceil(timestamps[0] + self.window_seconds - now))

    def reset(self):
        with self._lock:
            self._hits.clear()


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limit(limiter: SlidingWindowLimiter):
    """
    Dependency-Fabrik für eine Routengruppe.

    Raises:
        HTTPException: 429 mit Retry-After, wenn das Fenster voll ist
    """

    async def dependency(request: Request, response: Response):
        if not settings.RATE_LIMIT_ENABLED:
            return
        key = client_key(request)
        allowed = limiter.hit(key)
        headers = {
            "RateLimit-Limit": str(limiter.max_requests),
            "RateLimit-Remaining": str(limiter.remaining(key)),
        }
        if not allowed:
            logger.warning(f"🚦 Rate Limit {limiter.name} erreicht für {key}")
            headers["Retry-After"] = str(limiter.retry_after(key))
            raise HTTPException(status_code=429, detail="rate_limited", headers=headers)
        response.headers.update(headers)

    return dependency


# Globale Instanzen
public_limiter = SlidingWindowLimiter("public", settings.RATE_LIMIT_PUBLIC_MAX, settings.RATE_LIMIT_WINDOW_SECONDS)
tool_limiter = SlidingWindowLimiter("tool", settings.RATE_LIMIT_TOOL_MAX, settings.RATE_LIMIT_WINDOW_SECONDS)
