"""
Slot Extractor für den Hotel-Voice-Agenten.

Extrahiert Buchungsparameter aus einer Äußerung des Anrufers:
An-/Abreise, Erwachsene, Kinder.

Methoden:
1. Regex: alle Datumsangaben im Text sammeln, früheste = Anreise
2. Einzeldatum-Parser: relative Angaben ("morgen", "nächsten Freitag")
3. Nächte: "für drei Nächte" ergänzt die Abreise
"""
from __future__ import annotations

import logging
import re
from datetime import date, timedelta
from typing import Any, Optional

from hotel_agent.agent.date_parser import collect_dates, try_parse_date
from hotel_agent.agent.lexicon import word_to_number
from hotel_agent.agent.normalize import normalize_text
from hotel_agent.core.guardrails import coerce_utterance
from hotel_agent.models.domain import BookingSlots, ParsedDate

logger = logging.getLogger(__name__)

NOTE_CHECKOUT_FROM_NIGHTS = "checkout_from_nights"

MAX_COUNT = 99


# ==================== REGEX ====================

# "2 Erwachsene", "zwei Personen", "ein Erwachsener"
ADULTS_PATTERN = re.compile(
    r"\b(\d{1,2}|[a-z]+)\s+(?:erwachsene[rn]?|personen|person|leute|gaeste|gast)\b"
)

# "1 Kind", "zwei Kinder", "mit drei Kindern"
CHILDREN_PATTERN = re.compile(r"\b(\d{1,2}|[a-z]+)\s+(?:kind|kinder|kindern)\b")

CHILDREN_NEGATION = re.compile(r"\b(?:keine|keinen|kein|ohne)\s+kind(?:er|ern)?\b")

# "für 3 Nächte", "fünf Übernachtungen"
NIGHTS_PATTERN = re.compile(r"\b(\d{1,2}|[a-z]+)\s+(?:naechte|nacht|uebernachtungen|uebernachtung)\b")

# "alleine", "zu zweit"
TOGETHER_MAP = {
    "alleine": 1,
    "allein": 1,
    "zu zweit": 2,
    "zu dritt": 3,
    "zu viert": 4,
    "zu fuenft": 5,
}


def parse_count(token: str) -> Optional[int]:
    """Zahl aus Ziffern oder Zahlwort, None wenn unlesbar oder unplausibel."""
    n = word_to_number(token)
    if n is None or n > MAX_COUNT:
        return None
    return n


# ==================== EXTRAKTOR ====================

class SlotExtractor:
    """
    Extrahiert Buchungsslots aus Freitext.

    Zustandslos: das Bezugsdatum wird pro Aufruf übergeben, damit
    Ergebnisse reproduzierbar sind.
    """

    def extract(self, text: Any, base_date: Optional[date] = None) -> BookingSlots:
        """
        Extrahiert alle Slots aus einer Äußerung.

        Args:
            text: Äußerung des Anrufers (wird über die Guardrails bereinigt)
            base_date: Bezugsdatum für relative Angaben, Standard heute

        Returns:
            BookingSlots (Daten können fehlen, Erwachsene mindestens 1)
        """
        base = base_date or date.today()
        utterance = coerce_utterance(text)
        normalized = normalize_text(utterance)

        check_in, check_out = self._extract_dates(utterance, normalized, base)
        adults = self._extract_adults(normalized)
        children = self._extract_children(normalized)

        slots = BookingSlots(check_in=check_in, check_out=check_out, adults=adults, children=children)
        logger.info(
            f"🔍 Slots: in={slots.check_in.value if slots.check_in else None} "
            f"out={slots.check_out.value if slots.check_out else None} "
            f"adults={slots.adults} children={slots.children}"
        )
        return slots

    def _extract_dates(
        self, utterance: str, normalized: str, base: date
    ) -> tuple[Optional[ParsedDate], Optional[ParsedDate]]:
        dates = collect_dates(normalized, base)
        check_in = dates[0] if dates else None
        check_out = dates[1] if len(dates) > 1 else None

        # Keine expliziten Daten: relative Angabe im ganzen Satz
        if check_in is None and utterance:
            check_in = try_parse_date(utterance, "check-in", base)

        if check_in is not None and check_out is None:
            nights = self._extract_nights(normalized)
            if nights:
                check_out = ParsedDate.from_date(
                    check_in.as_date + timedelta(days=nights),
                    check_in.needs_confirmation,
                    [*check_in.notes, NOTE_CHECKOUT_FROM_NIGHTS],
                )
        return check_in, check_out

    def _first_count(self, pattern: re.Pattern, text: str, minimum: int) -> Optional[int]:
        """Erster lesbarer Zähler; "pro Person" u. Ä. werden übersprungen."""
        for match in pattern.finditer(text):
            n = parse_count(match.group(1))
            if n is not None and n >= minimum:
                return n
        return None

    def _extract_adults(self, text: str) -> int:
        """Erwachsene, Default 1."""
        n = self._first_count(ADULTS_PATTERN, text, minimum=1)
        if n is not None:
            return n

        for phrase, count in TOGETHER_MAP.items():
            if re.search(rf"\b{phrase}\b", text):
                return count
        return 1

    def _extract_children(self, text: str) -> int:
        """Kinder, Default 0. Verneinungen ("keine Kinder") haben Vorrang."""
        if CHILDREN_NEGATION.search(text):
            return 0
        n = self._first_count(CHILDREN_PATTERN, text, minimum=0)
        return n if n is not None else 0

    def _extract_nights(self, text: str) -> Optional[int]:
        return self._first_count(NIGHTS_PATTERN, text, minimum=1)


# Globale Instanz
slot_extractor = SlotExtractor()
