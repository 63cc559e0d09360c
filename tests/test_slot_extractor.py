"""
Tests für den SlotExtractor.

Prüft:
1. Vollständige Buchungsäußerung (Daten, Erwachsene, Kinder)
2. Personenzahlen als Wort, Verneinung von Kindern, Defaults
3. Abreise aus "für N Nächte"
4. Jahreswechsel und Bestätigungsbedarf
"""
import os
import sys
from datetime import date

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hotel_agent.agent.date_parser import NOTE_YEAR_ROLLED
from hotel_agent.agent.slot_extractor import NOTE_CHECKOUT_FROM_NIGHTS, SlotExtractor, parse_count

BASE = date(2025, 6, 1)


@pytest.fixture
def extractor():
    return SlotExtractor()


# ==================== TEST 1: Vollständige Äußerung ====================

class TestFullUtterance:

    def test_booking_sentence(self, extractor):
        """Daten, Erwachsene und Kinder in einem Satz"""
        slots = extractor.extract(
            "Ich möchte vom 22.10. bis 24.10. für 2 Erwachsene und 1 Kind buchen",
            date(2025, 10, 1),
        )
        assert slots.check_in.value == "2025-10-22"
        assert slots.check_out.value == "2025-10-24"
        assert slots.adults == 2
        assert slots.children == 1
        assert slots.needs_confirmation is False

    def test_to_output_shape(self, extractor):
        out = extractor.extract("vom 22.10.2025 bis 24.10.2025 zu zweit", BASE).to_output()
        assert out == {
            "check_in": "2025-10-22",
            "check_out": "2025-10-24",
            "adults": 2,
            "children": 0,
            "needs_confirmation": False,
            "notes": [],
        }

    def test_dates_in_reverse_order_are_sorted(self, extractor):
        slots = extractor.extract("Abreise 24.10., Anreise 22.10.", date(2025, 10, 1))
        assert slots.check_in.value == "2025-10-22"
        assert slots.check_out.value == "2025-10-24"


# ==================== TEST 2: Personen ====================

class TestGuests:

    @pytest.mark.parametrize("text,adults,children", [
        ("zwei Erwachsene, keine Kinder", 2, 0),
        ("Eine Person", 1, 0),
        ("drei Personen mit zwei Kindern", 3, 2),
        ("wir kommen zu zweit", 2, 0),
        ("ich reise alleine", 1, 0),
        ("4 Erwachsene ohne Kinder", 4, 0),
        ("ein Erwachsener und drei Kinder", 1, 3),
        ("Was kostet es pro Person für 2 Erwachsene?", 2, 0),
        ("Preis pro Kind für zwei Erwachsene und zwei Kinder", 2, 2),
    ])
    def test_counts(self, extractor, text, adults, children):
        slots = extractor.extract(text, BASE)
        assert (slots.adults, slots.children) == (adults, children), text

    def test_defaults(self, extractor):
        """Ohne Angaben: 1 Erwachsener, 0 Kinder, keine Daten"""
        slots = extractor.extract("Hallo, ich hätte gern ein Zimmer", BASE)
        assert slots.check_in is None
        assert slots.check_out is None
        assert slots.adults == 1
        assert slots.children == 0

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_non_text_input(self, extractor, value):
        slots = extractor.extract(value, BASE)
        assert slots.adults == 1
        assert slots.check_in is None

    def test_parse_count_limits(self):
        assert parse_count("zwoelf") == 12
        assert parse_count("150") is None
        assert parse_count("viele") is None


# ==================== TEST 3: Nächte ====================

class TestNights:

    def test_checkout_from_nights(self, extractor):
        slots = extractor.extract("morgen für drei Nächte", BASE)
        assert slots.check_in.value == "2025-06-02"
        assert slots.check_out.value == "2025-06-05"
        assert NOTE_CHECKOUT_FROM_NIGHTS in slots.notes

    def test_explicit_checkout_wins(self, extractor):
        slots = extractor.extract("vom 22.10. bis 24.10., also 5 Nächte", date(2025, 10, 1))
        assert slots.check_out.value == "2025-10-24"

    def test_per_night_phrase_is_skipped(self, extractor):
        """Die Angabe "pro Nacht" ist keine Anzahl, die spätere zählt"""
        slots = extractor.extract("morgen, wie teuer ist es pro Nacht für 3 Nächte?", BASE)
        assert slots.check_in.value == "2025-06-02"
        assert slots.check_out.value == "2025-06-05"


# ==================== TEST 4: Jahreswechsel ====================

class TestYearRollover:

    def test_dates_before_base_roll_forward(self, extractor):
        slots = extractor.extract("vom 15.03 bis 20.03", BASE)
        assert slots.check_in.value == "2026-03-15"
        assert slots.check_out.value == "2026-03-20"
        assert slots.needs_confirmation is True
        assert NOTE_YEAR_ROLLED in slots.notes
        assert slots.notes.count(NOTE_YEAR_ROLLED) == 1, "Notizen doppelt"

    def test_weekday_needs_confirmation(self, extractor):
        slots = extractor.extract("nächsten Freitag für 2 Nächte", BASE)
        assert slots.check_in.value == "2025-06-06"
        assert slots.check_out.value == "2025-06-08"
        assert slots.needs_confirmation is True
