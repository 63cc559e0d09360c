"""
Statische Nachschlagetabellen für deutsches Datums- und Zahlenvokabular.

Alle Schlüssel liegen in normalisierter Form vor (siehe
`hotel_agent.agent.normalize`). Die Tabellen werden beim Import einmal
aufgebaut und sind danach schreibgeschützt (MappingProxyType).
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

# ==================== RELATIVE TAGE ====================

# Längster Schlüssel zuerst: "uebermorgen" enthält "morgen"
RELATIVE_DAYS: Mapping[str, int] = MappingProxyType({
    "uebermorgen": 2,
    "heute": 0,
    "morgen": 1,
})

# ==================== MONATE ====================

MONTHS: Mapping[str, int] = MappingProxyType({
    "januar": 1, "jan": 1, "jaenner": 1, "jaen": 1,
    "februar": 2, "feb": 2, "feber": 2,
    "maerz": 3, "maer": 3, "mrz": 3, "mar": 3,
    "april": 4, "apr": 4,
    "mai": 5,
    "juni": 6, "jun": 6,
    "juli": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "oktober": 10, "okt": 10,
    "november": 11, "nov": 11,
    "dezember": 12, "dez": 12, "december": 12,
})

# Für gesprochene Ausgaben ("22. Oktober 2025")
MONTH_NAMES_DE = (
    "Januar", "Februar", "März", "April", "Mai", "Juni",
    "Juli", "August", "September", "Oktober", "November", "Dezember",
)

# ==================== WOCHENTAGE ====================

# date.weekday(): Montag = 0
WEEKDAYS: Mapping[str, int] = MappingProxyType({
    "montag": 0, "dienstag": 1, "mittwoch": 2, "donnerstag": 3,
    "freitag": 4, "samstag": 5, "sonnabend": 5, "sonntag": 6,
})

# Abkürzungen nur mit Präfix ("am Fr.") oder als alleinstehendes Token,
# sonst kollidieren "so", "do", "mi" mit normalen Wörtern
WEEKDAY_ABBREVIATIONS: Mapping[str, int] = MappingProxyType({
    "mo": 0, "di": 1, "mi": 2, "do": 3, "fr": 4, "sa": 5, "so": 6,
})

WEEKDAY_PREFIXES = (
    "naechsten", "naechster", "naechste", "kommenden", "kommender",
    "kommende", "diesen", "dieser", "am", "ab",
)

# ==================== ZAHLWÖRTER ====================

_UNITS = {
    1: "ein", 2: "zwei", 3: "drei", 4: "vier", 5: "fuenf",
    6: "sechs", 7: "sieben", 8: "acht", 9: "neun",
}


def _build_cardinals() -> dict[str, int]:
    words = {name: n for n, name in _UNITS.items()}
    words.update({
        "eins": 1, "eine": 1, "einen": 1, "einem": 1, "einer": 1, "zwo": 2,
        "zehn": 10, "elf": 11, "zwoelf": 12, "dreizehn": 13, "vierzehn": 14,
        "fuenfzehn": 15, "sechzehn": 16, "siebzehn": 17, "achtzehn": 18,
        "neunzehn": 19, "zwanzig": 20, "dreissig": 30, "einunddreissig": 31,
    })
    for n, name in _UNITS.items():
        words[f"{name}undzwanzig"] = 20 + n
    return words


CARDINALS: Mapping[str, int] = MappingProxyType(_build_cardinals())

# Unregelmäßige Ordinalstämme nach Abschneiden der Endung
_ORDINAL_STEMS = {"er": 1, "ers": 1, "drit": 3, "sieb": 7, "ach": 8}

# Längste Endung zuerst
ORDINAL_SUFFIXES = ("sten", "ster", "stes", "stem", "ste", "ten", "ter", "tes", "tem", "te")


def word_to_number(token: str) -> Optional[int]:
    """
    Zahl aus einem (normalisierten) Zahl- oder Ordinalwort.

    "zwei" → 2, "zweiten" → 2, "dritter" → 3, "einundzwanzigsten" → 21.
    Ziffern ("22", "22.") werden ebenfalls akzeptiert.
    """
    token = token.strip(" .")
    if not token:
        return None
    if token.isdigit():
        return int(token)
    if token in CARDINALS:
        return CARDINALS[token]
    for suffix in ORDINAL_SUFFIXES:
        if token.endswith(suffix) and len(token) > len(suffix):
            stem = token[: -len(suffix)]
            if stem in CARDINALS:
                return CARDINALS[stem]
            if stem in _ORDINAL_STEMS:
                return _ORDINAL_STEMS[stem]
    return None
