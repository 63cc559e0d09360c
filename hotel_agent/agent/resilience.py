"""
Resilienz-Bausteine für ausgehende Aufrufe: TTL-Cache und Circuit Breaker.

Beide sind prozesslokal. Die Uhr ist injizierbar (Tests).
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


class TTLCache(Generic[T]):
    """
    Dict-Cache mit Ablaufzeit pro Eintrag.

    Einträge werden beim Lesen geprüft und ggf. entfernt; `max_size`
    begrenzt den Speicher, bei Überlauf fliegt der älteste Eintrag.
    """

    def __init__(self, ttl_seconds: float, max_size: int = 1024, clock: Clock = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._data: dict[str, tuple[T, float]] = {}  # key -> (value, expires_at)

    def get(self, key: str) -> Optional[T]:
        hit = self._data.get(key)
        if hit is None:
            return None
        value, expires_at = hit
        if self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def set(self, key: str, value: T) -> None:
        if key not in self._data and len(self._data) >= self.max_size:
            oldest = min(self._data, key=lambda k: self._data[k][1])
            del self._data[oldest]
        self._data[key] = (value, self._clock() + self.ttl_seconds)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


class CircuitBreaker:
    """
    Circuit Breaker mit drei Zuständen.

    closed    → Aufrufe erlaubt, Fehler werden gezählt
    open      → nach `threshold` Fehlern in Folge; Aufrufe gesperrt
    half_open → nach `cooldown_seconds` ist genau ein Probeaufruf erlaubt;
                Erfolg schließt, Fehler öffnet erneut
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, name: str, threshold: int = 3, cooldown_seconds: float = 30.0, clock: Clock = time.monotonic):
        self.name = name
        self.threshold = threshold
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._failures = 0
        self._opened_at: Optional[float] = None
        self._trial_in_flight = False

    @property
    def state(self) -> str:
        if self._opened_at is None:
            return self.CLOSED
        if self._clock() - self._opened_at >= self.cooldown_seconds:
            return self.HALF_OPEN
        return self.OPEN

    def allow(self) -> bool:
        """Darf ein Aufruf stattfinden? Im half_open-Zustand nur einer."""
        state = self.state
        if state == self.CLOSED:
            return True
        if state == self.HALF_OPEN and not self._trial_in_flight:
            self._trial_in_flight = True
            logger.info(f"🔌 {self.name}: half-open, Probeaufruf")
            return True
        return False

    def record_success(self) -> None:
        if self._opened_at is not None:
            logger.info(f"✅ {self.name}: Circuit geschlossen")
        self._failures = 0
        self._opened_at = None
        self._trial_in_flight = False

    def record_failure(self) -> None:
        self._failures += 1
        self._trial_in_flight = False
        if self._opened_at is not None or self._failures >= self.threshold:
            self._opened_at = self._clock()
            logger.warning(f"⚠️ {self.name}: Circuit offen nach {self._failures} Fehlern")
