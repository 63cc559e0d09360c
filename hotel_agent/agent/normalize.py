"""
Textnormalisierung für alle Lookups.

Reihenfolge (fest, überall gleich):
    1. NFC (zerlegte Umlaute wie "u" + U+0308 werden zu "ü" zusammengesetzt)
    2. lowercase
    3. Umlaut-Expansion ä→ae, ö→oe, ü→ue, ß→ss
    4. NFKD + Entfernen kombinierender Zeichen (é→e, ñ→n)
    5. Leerraum zusammenfassen

Damit treffen "Übermorgen", "uebermorgen" und "Übermorgen" denselben
Schlüssel "uebermorgen".
"""
from __future__ import annotations

import re
import unicodedata
from typing import Any

_UMLAUTS = str.maketrans({"ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss"})
_WHITESPACE = re.compile(r"\s+")


def normalize_text(value: Any) -> str:
    """
    Normalisiert Freitext für Tabellen-Lookups.

    Args:
        value: Beliebige Eingabe, Nicht-Strings ergeben ""

    Returns:
        Normalisierter ASCII-naher Text
    """
    if not value or not isinstance(value, str):
        return ""
    text = unicodedata.normalize("NFC", value).lower()
    text = text.translate(_UMLAUTS)
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", text).strip()
