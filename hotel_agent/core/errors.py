"""
Fehlertaxonomie des Hotel-Agenten.

Jeder Fehler trägt einen maschinenlesbaren Code und einen deutschen Satz
(`spoken`), den der Voice-Agent vorlesen kann. Der Kern wirft diese Fehler,
die API-Schicht übersetzt sie in HTTP-Antworten (siehe `hotel_agent.main`).
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Maschinenlesbare Fehlercodes."""

    # Eingabe nicht erkannt
    DATE_PARSE_ERROR = "date_parse_error"

    # Strukturell ungültige Eingabe
    INVALID_EMAIL = "invalid_email"
    INVALID_DATES = "invalid_dates"
    VALIDATION_ERROR = "validation_error"
    UNKNOWN_TOOL = "unknown_tool"

    # Geschäftsregeln
    MISSING_DATES = "MISSING_DATES"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    MAX_NIGHTS_EXCEEDED = "MAX_NIGHTS_EXCEEDED"
    CHECKIN_IN_PAST = "CHECKIN_IN_PAST"
    NO_ROOMS_AVAILABLE = "NO_ROOMS_AVAILABLE"

    # Externe Dienste
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"

    INTERNAL_ERROR = "internal_error"


TECHNICAL_PROBLEM_SPOKEN = (
    "Es gab leider ein technisches Problem. Bitte versuchen Sie es gleich noch einmal."
)


class HotelAgentError(Exception):
    """Basisklasse aller fachlichen Fehler."""

    default_spoken = TECHNICAL_PROBLEM_SPOKEN

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        spoken: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.spoken = spoken or self.default_spoken
        self.details = details or {}


class DateParseError(HotelAgentError):
    """Datum nicht erkannt. Der Anrufer kann es umformulieren."""

    def __init__(self, raw: Any, kind: str = "Datum"):
        self.raw = raw
        self.kind = kind
        spoken = (
            f"Das {kind}-Datum habe ich leider nicht verstanden. "
            "Sie können zum Beispiel sagen: morgen, nächsten Freitag, "
            "22. Oktober oder 22.10.2025."
        )
        super().__init__(
            ErrorCode.DATE_PARSE_ERROR,
            f"could not parse {kind} date: {raw!r}",
            spoken=spoken,
            details={"raw": raw, "type": kind},
        )


class ValidationError(HotelAgentError):
    """Strukturell ungültige Eingabe (4xx). Ohne Korrektur nicht wiederholbar."""

    default_spoken = "Einige Angaben fehlen oder sind ungültig. Können Sie sie bitte noch einmal nennen?"


class BusinessRuleViolation(HotelAgentError):
    """Wohlgeformte, aber fachlich unzulässige Anfrage."""


class UpstreamUnavailable(HotelAgentError):
    """HotelRunner oder LLM-Orakel nicht erreichbar. Es gibt immer einen lokalen Fallback."""

    def __init__(self, upstream: str, message: str):
        self.upstream = upstream
        super().__init__(
            ErrorCode.UPSTREAM_UNAVAILABLE,
            f"{upstream}: {message}",
            details={"upstream": upstream},
        )
