"""
Zimmerkatalog und Verpflegungstarife.

Referenzdaten, beim Import einmal aufgebaut und danach nur gelesen.
Zimmernamen, wie der Anrufer sie ausspricht ("die Delux-Wohnung"), werden
per Fuzzy Matching (thefuzz) einem Katalogeintrag zugeordnet.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional

from thefuzz import fuzz, process

from hotel_agent.agent.normalize import normalize_text
from hotel_agent.core.config import settings
from hotel_agent.models.domain import RoomType

logger = logging.getLogger(__name__)

# ==================== ZIMMER ====================

ROOM_CATALOG: tuple[RoomType, ...] = (
    RoomType(
        code="STD",
        name="Standard Apartment",
        nightly_rate=Decimal("80"),
        max_guests=2,
        description="Apartment mit Kochnische und Balkon",
        amenities=frozenset({"balkon", "kochnische", "wlan"}),
    ),
    RoomType(
        code="DLX",
        name="Deluxe Apartment",
        nightly_rate=Decimal("110"),
        max_guests=4,
        description="Größeres Apartment mit Meerblick",
        amenities=frozenset({"balkon", "kueche", "meerblick", "wlan"}),
    ),
    RoomType(
        code="STE",
        name="Suite",
        nightly_rate=Decimal("150"),
        max_guests=6,
        description="Suite mit zwei Schlafzimmern",
        amenities=frozenset({"kueche", "meerblick", "terrasse", "wlan"}),
    ),
    RoomType(
        code="VIL",
        name="Garten-Villa",
        nightly_rate=Decimal("260"),
        max_guests=10,
        description="Villa mit eigenem Garten für große Familien und Gruppen",
        amenities=frozenset({"garten", "kueche", "pool", "wlan"}),
    ),
)

ROOMS_BY_CODE: Mapping[str, RoomType] = MappingProxyType({room.code: room for room in ROOM_CATALOG})

# Normalisierter Name → Code, für das Fuzzy Matching
_ROOM_CHOICES: Mapping[str, str] = MappingProxyType({normalize_text(room.name): room.code for room in ROOM_CATALOG})

# ==================== VERPFLEGUNG ====================

# Aufpreis pro Nacht und Zimmer, Schlüssel normalisiert
BOARD_RATES: Mapping[str, Decimal] = MappingProxyType({
    "ohne verpflegung": Decimal("0"),
    "fruehstueck": Decimal("8"),
    "halbpension": Decimal("18"),
    "vollpension": Decimal("28"),
})

# Synonyme, wie Agent oder Anrufer sie liefern
BOARD_ALIASES: Mapping[str, str] = MappingProxyType({
    "ohne": "ohne verpflegung",
    "nur zimmer": "ohne verpflegung",
    "nur uebernachtung": "ohne verpflegung",
    "room only": "ohne verpflegung",
    "ro": "ohne verpflegung",
    "mit fruehstueck": "fruehstueck",
    "breakfast": "fruehstueck",
    "bb": "fruehstueck",
    "hp": "halbpension",
    "hb": "halbpension",
    "half board": "halbpension",
    "vp": "vollpension",
    "fb": "vollpension",
    "full board": "vollpension",
})

BOARD_LABELS: Mapping[str, str] = MappingProxyType({
    "ohne verpflegung": "ohne Verpflegung",
    "fruehstueck": "Frühstück",
    "halbpension": "Halbpension",
    "vollpension": "Vollpension",
})


def resolve_board(board_type: Optional[str]) -> tuple[str, Decimal]:
    """
    Verpflegungsart und Aufpreis pro Nacht.

    Leere Angabe → Standard (Frühstück). Unbekannte Angaben behalten ihren
    Namen, kosten aber wie Frühstück.

    Returns:
        (normalisierter Schlüssel, Aufpreis)
    """
    key = normalize_text(board_type) or settings.DEFAULT_BOARD
    key = BOARD_ALIASES.get(key, key)
    if key in BOARD_RATES:
        return key, BOARD_RATES[key]
    logger.info(f"🍽️ Unbekannte Verpflegung '{board_type}', Standardtarif")
    return key, BOARD_RATES[settings.DEFAULT_BOARD]


def board_label(key: str) -> str:
    return BOARD_LABELS.get(key, key)


# ==================== ZIMMERSUCHE ====================

def list_rooms() -> list[RoomType]:
    """Alle Zimmer, günstigstes zuerst."""
    return sorted(ROOM_CATALOG, key=lambda room: room.nightly_rate)


def rooms_for_guests(total_guests: int) -> list[RoomType]:
    """Zimmer mit ausreichender Kapazität, günstigstes zuerst."""
    return [room for room in list_rooms() if room.max_guests >= total_guests]


def get_room(code: Optional[str]) -> Optional[RoomType]:
    if not code:
        return None
    return ROOMS_BY_CODE.get(code.strip().upper())


def find_room(query: Optional[str], threshold: int = 80) -> Optional[RoomType]:
    """
    Zimmer aus gesprochenem Namen.

    Reihenfolge:
    1. Code ("DLX")
    2. Exakter oder Teil-Name ("suite", "deluxe")
    3. Fuzzy (>= threshold): "delux apartmen" → Deluxe Apartment

    Args:
        query: Zimmername, wie der Anrufer ihn sagt
        threshold: Mindestscore für fuzz.ratio

    Returns:
        RoomType oder None
    """
    room = get_room(query)
    if room:
        return room

    name = normalize_text(query)
    if not name:
        return None

    if name in _ROOM_CHOICES:
        return ROOMS_BY_CODE[_ROOM_CHOICES[name]]

    for choice, code in _ROOM_CHOICES.items():
        if (len(name) >= 4 and name in choice) or choice in name:
            logger.info(f"   🛏️ Zimmer '{query}' → teilweise: '{choice}'")
            return ROOMS_BY_CODE[code]

    choices = list(_ROOM_CHOICES)
    result = process.extractOne(name, choices, scorer=fuzz.ratio)
    if result and result[1] >= threshold:
        logger.info(f"   🛏️ Zimmer '{query}' → fuzzy ({result[1]}%): '{result[0]}'")
        return ROOMS_BY_CODE[_ROOM_CHOICES[result[0]]]

    # partial_ratio für längere Umschreibungen mit Tippfehlern
    result = process.extractOne(name, choices, scorer=fuzz.partial_ratio)
    if result and result[1] >= 90:
        logger.info(f"   🛏️ Zimmer '{query}' → fuzzy partial ({result[1]}%): '{result[0]}'")
        return ROOMS_BY_CODE[_ROOM_CHOICES[result[0]]]

    logger.info(f"   ⚠️ Zimmer '{query}' nicht im Katalog")
    return None
