"""
Regelbasierter Parser für gesprochene deutsche Datumsangaben.

Reihenfolge der Regeln (der erste Treffer gewinnt):
1. Relative Tage: heute / morgen / übermorgen
2. "in N Tagen" (N = 1..364), "in N Wochen"
3. Wochentage: "nächsten Freitag", "am Montag", "Freitag"
4. ISO: 2025-10-22
5. Europäisch numerisch: 22.10., 22.10.25, 22/10/2025, 22-10-2025
6. Langform: "22. Oktober 2025", "3 okt"
7. Wortform: "zweiter Oktober", "dritten zehnten"
8. Fallback: dateutil
9. DateParseError

Wo geraten wurde, ist needs_confirmation=True und notes nennt den Grund,
damit der Agent beim Anrufer nachfragt.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional, Union

from dateutil import parser as dtparser

from hotel_agent.agent.lexicon import (
    MONTHS,
    RELATIVE_DAYS,
    WEEKDAY_ABBREVIATIONS,
    WEEKDAY_PREFIXES,
    WEEKDAYS,
    word_to_number,
)
from hotel_agent.agent.normalize import normalize_text
from hotel_agent.core.config import settings
from hotel_agent.core.errors import DateParseError
from hotel_agent.models.domain import ParsedDate

logger = logging.getLogger(__name__)

# Diagnose-Tags
NOTE_YEAR_ROLLED = "year_rolled_forward"
NOTE_WEEKDAY = "weekday_inferred"
NOTE_WORD_FORMAT = "ordinal_or_word_format"
NOTE_FALLBACK = "fallback_date_parse"

MAX_RELATIVE_DAYS = 364

# ==================== REGEX ====================

_GREETING = re.compile(r"\bguten morgen\b")

_RELATIVE = re.compile(
    r"\b(" + "|".join(sorted(RELATIVE_DAYS, key=len, reverse=True)) + r")\b"
)

_IN_DAYS = re.compile(r"\bin\s+(\d{1,3}|[a-z]+)\s+(tag|tage|tagen|woche|wochen)\b")

# Abkürzungen nur mit Punkt oder am Textende ("am so schnell" ist kein Sonntag)
_WEEKDAY_WITH_PREFIX = re.compile(
    r"\b(?:" + "|".join(WEEKDAY_PREFIXES) + r")\s+("
    + "|".join(WEEKDAYS) + r")\b"
    + r"|\b(?:" + "|".join(WEEKDAY_PREFIXES) + r")\s+("
    + "|".join(WEEKDAY_ABBREVIATIONS) + r")(?:\.|$)"
)

_ISO = re.compile(r"(?<!\d)(\d{4})-(\d{2})-(\d{2})(?!\d)")

_NUMERIC = re.compile(r"(?<!\d)(\d{1,2})\s*([./-])\s*(\d{1,2})(?:\2(\d{4}|\d{2})(?!\d))?(?!\d)")

_LONG_FORM = re.compile(r"(?<!\d)(\d{1,2})\.?\s*([a-z]+)\.?(?:\s+(\d{4})(?!\d))?")

# Familien für die Sammlung aller Daten im Freitext
_DOTTED = re.compile(r"(?<!\d)(\d{1,2})\.(\d{1,2})(?:\.(\d{4}|\d{2})(?!\d))?(?!\d)")
_SLASHED = re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})(?:/(\d{4}|\d{2})(?!\d))?(?!\d)")

_TOKEN = re.compile(r"[a-z0-9]+\.?")
_MONTH_FILLERS = {"des", "im", "vom", "von"}

DateInput = Union[str, date, None]


# ==================== HILFSFUNKTIONEN ====================

def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    """Kalendervalidierung über die Konstruktion (kein 30. Februar)."""
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _expand_year(raw: Optional[str]) -> Optional[int]:
    if not raw:
        return None
    year = int(raw)
    return year + 2000 if year < 100 else year


def _resolve_day_month(
    day: int,
    month: int,
    year: Optional[int],
    base: date,
    notes: Optional[list[str]] = None,
    needs_confirmation: bool = False,
) -> Optional[ParsedDate]:
    """
    Baut ein Datum aus Tag/Monat/(Jahr).

    Ohne Jahr wird das Basisjahr genommen; liegt das Datum dann vor dem
    Basisdatum, rollt es ins Folgejahr und muss bestätigt werden.
    """
    notes = list(notes or [])
    if year is not None:
        d = _safe_date(year, month, day)
        if d is None:
            return None
        return ParsedDate.from_date(d, needs_confirmation, notes)

    d = _safe_date(base.year, month, day)
    if d is None:
        return None
    if d < base:
        rolled = _safe_date(base.year + 1, month, day)
        if rolled is None:
            return None
        notes.append(NOTE_YEAR_ROLLED)
        return ParsedDate.from_date(rolled, True, notes)
    return ParsedDate.from_date(d, needs_confirmation, notes)


def next_weekday(base: date, weekday: int) -> date:
    """Nächstes Vorkommen des Wochentags, immer 1-7 Tage nach base."""
    delta = (weekday - base.weekday()) % 7
    return base + timedelta(days=delta or 7)


def is_iso_date(value: Any) -> bool:
    """Exakt YYYY-MM-DD und kalendarisch gültig."""
    if not isinstance(value, str):
        return False
    value = value.strip()
    if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        return False
    y, m, d = (int(p) for p in value.split("-"))
    return _safe_date(y, m, d) is not None


def to_date(value: DateInput) -> Optional[date]:
    """ISO-String oder date → date, sonst None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if is_iso_date(value):
        return date.fromisoformat(value.strip())
    return None


def nights_between(check_in: DateInput, check_out: DateInput) -> int:
    """
    Anzahl Nächte zwischen zwei Daten.

    Reine Kalendertage (keine Uhrzeiten, keine Sommerzeit), nie negativ,
    0 bei ungültigen Eingaben.
    """
    a = to_date(check_in)
    b = to_date(check_out)
    if a is None or b is None:
        return 0
    return max(0, (b - a).days)


# ==================== REGELN ====================

def _match_relative(s: str, base: date) -> Optional[ParsedDate]:
    match = _RELATIVE.search(_GREETING.sub(" ", s))
    if not match:
        return None
    offset = RELATIVE_DAYS[match.group(1)]
    return ParsedDate.from_date(base + timedelta(days=offset))


def _match_in_days(s: str, base: date) -> Optional[ParsedDate]:
    match = _IN_DAYS.search(s)
    if not match:
        return None
    n = word_to_number(match.group(1))
    if n is None:
        return None
    days = n * 7 if match.group(2).startswith("woche") else n
    if not 1 <= days <= MAX_RELATIVE_DAYS:
        logger.debug(f"Relativer Versatz verworfen: {days} Tage")
        return None
    return ParsedDate.from_date(base + timedelta(days=days))


def _match_weekday(s: str, base: date) -> Optional[ParsedDate]:
    target: Optional[int] = None

    match = _WEEKDAY_WITH_PREFIX.search(s)
    if match:
        if match.group(1):
            target = WEEKDAYS[match.group(1)]
        else:
            target = WEEKDAY_ABBREVIATIONS[match.group(2)]
    else:
        bare = s.strip(" .,!?")
        target = WEEKDAYS.get(bare, WEEKDAY_ABBREVIATIONS.get(bare))

    if target is None:
        return None
    return ParsedDate.from_date(next_weekday(base, target), True, [NOTE_WEEKDAY])


def _match_iso(s: str, raw: Any, kind: str) -> Optional[ParsedDate]:
    match = _ISO.search(s)
    if not match:
        return None
    d = _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    if d is None:
        # Formal ISO, kalendarisch unmöglich (2025-02-30): kein Raten
        raise DateParseError(raw, kind)
    return ParsedDate.from_date(d)


def _match_numeric(s: str, base: date) -> Optional[ParsedDate]:
    for match in _NUMERIC.finditer(s):
        day, month = int(match.group(1)), int(match.group(3))
        parsed = _resolve_day_month(day, month, _expand_year(match.group(4)), base)
        if parsed:
            return parsed
    return None


def _match_long_form(s: str, base: date) -> Optional[ParsedDate]:
    for match in _LONG_FORM.finditer(s):
        month = MONTHS.get(match.group(2))
        if not month:
            continue
        parsed = _resolve_day_month(int(match.group(1)), month, _expand_year(match.group(3)), base)
        if parsed:
            return parsed
    return None


def _match_word_form(s: str, base: date) -> Optional[ParsedDate]:
    """
    Tag als Zahl-/Ordinalwort, Monat als Name oder ebenfalls als Zahlwort.

    "zweiter oktober" → 2.10.; "dritten zehnten" → 3.10. (Monat als Zahlwort
    ist mehrdeutig und wird immer zur Bestätigung markiert).
    """
    tokens = [t.rstrip(".") for t in _TOKEN.findall(s)]
    for i, token in enumerate(tokens[:-1]):
        day = word_to_number(token)
        if day is None or not 1 <= day <= 31:
            continue

        j = i + 1
        if tokens[j] in _MONTH_FILLERS and j + 1 < len(tokens):
            j += 1
        month_token = tokens[j]

        month = MONTHS.get(month_token)
        if month is None:
            if month_token.isdigit():
                continue
            month = word_to_number(month_token)
            if month is None or not 1 <= month <= 12:
                continue
        elif token.isdigit():
            # "22 oktober" ist Langform, nicht Wortform
            continue

        year = None
        if j + 1 < len(tokens) and re.fullmatch(r"\d{4}", tokens[j + 1]):
            year = int(tokens[j + 1])

        parsed = _resolve_day_month(day, month, year, base, [NOTE_WORD_FORMAT], needs_confirmation=True)
        if parsed:
            return parsed
    return None


def _match_fallback(raw: str, base: date) -> Optional[ParsedDate]:
    if not any(ch.isdigit() for ch in raw):
        return None
    try:
        parsed = dtparser.parse(
            raw,
            dayfirst=True,
            default=datetime(base.year, base.month, base.day),
        )
    except (ValueError, OverflowError):
        return None
    if parsed.year <= settings.FALLBACK_MIN_YEAR:
        return None
    return ParsedDate.from_date(parsed.date(), True, [NOTE_FALLBACK])


# ==================== ÖFFENTLICHE API ====================

def parse_date(text: Any, kind: str = "check-in", base_date: Optional[date] = None) -> ParsedDate:
    """
    Wandelt eine gesprochene Datumsangabe in ein ParsedDate um.

    Args:
        text: Rohtext des Anrufers (beliebiger Typ, Nicht-Strings scheitern sauber)
        kind: Bezeichnung für Fehlermeldungen ("check-in", "check-out")
        base_date: Bezugsdatum, Standard heute

    Returns:
        ParsedDate mit needs_confirmation und notes

    Raises:
        DateParseError: wenn keine Regel greift
    """
    base = base_date or date.today()
    if isinstance(text, date):
        return ParsedDate.from_date(text if not isinstance(text, datetime) else text.date())
    s = normalize_text(text)
    if not s:
        raise DateParseError(text, kind)

    result = (
        _match_relative(s, base)
        or _match_in_days(s, base)
        or _match_weekday(s, base)
        or _match_iso(s, text, kind)
        or _match_numeric(s, base)
        or _match_long_form(s, base)
        or _match_word_form(s, base)
        or _match_fallback(s, base)
    )
    if result is None:
        logger.info(f"📅 Datum nicht erkannt ({kind}): {text!r}")
        raise DateParseError(text, kind)

    logger.debug(f"📅 {kind}: {text!r} → {result.value} notes={result.notes}")
    return result


def try_parse_date(text: Any, kind: str = "check-in", base_date: Optional[date] = None) -> Optional[ParsedDate]:
    """Wie parse_date, aber None statt Exception."""
    try:
        return parse_date(text, kind, base_date)
    except DateParseError:
        return None


def resolve_date_input(
    value: Any, kind: str, base_date: Optional[date] = None
) -> tuple[ParsedDate, bool]:
    """
    Datum aus einer Tool-Eingabe, die ISO oder Freitext sein kann.

    Returns:
        (ParsedDate, was_iso)

    Raises:
        DateParseError: Freitext nicht erkennbar oder Wert fehlt
    """
    if isinstance(value, date):
        return ParsedDate.from_date(to_date(value)), True
    if is_iso_date(value):
        return ParsedDate(value=value.strip()), True
    return parse_date(value, kind, base_date), False


def _candidates(s: str, base: date) -> Iterable[ParsedDate]:
    for pattern in (_DOTTED, _SLASHED):
        for match in pattern.finditer(s):
            parsed = _resolve_day_month(
                int(match.group(1)), int(match.group(2)), _expand_year(match.group(3)), base
            )
            if parsed:
                yield parsed

    for match in _LONG_FORM.finditer(s):
        month = MONTHS.get(match.group(2))
        if month:
            parsed = _resolve_day_month(int(match.group(1)), month, _expand_year(match.group(3)), base)
            if parsed:
                yield parsed

    for match in _ISO.finditer(s):
        d = _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if d:
            yield ParsedDate.from_date(d)


def collect_dates(text: Any, base_date: Optional[date] = None) -> list[ParsedDate]:
    """
    Sammelt alle Datumsangaben im Freitext, dedupliziert und sortiert.

    Heuristik: die zwei frühesten verschiedenen Daten gelten als An- und
    Abreise. Weitere Daten (z. B. ein Geburtstag im selben Satz) lassen sich
    damit nicht unterscheiden.
    """
    base = base_date or date.today()
    s = normalize_text(text)
    if not s:
        return []

    found: dict[str, ParsedDate] = {}
    for parsed in _candidates(s, base):
        found.setdefault(parsed.value, parsed)
    return [found[key] for key in sorted(found)]
