"""
Tests für die Preisberechnung.

Prüft:
1. Referenzfall: 2 Nächte Vollpension = 236.00 EUR / 11328 TRY
2. Verpflegung, Zusatzpaket, Zimmer
3. Ungültige Daten
4. Satz zum Vorlesen
"""
import os
import sys
from datetime import date
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hotel_agent.core.errors import ErrorCode, ValidationError
from hotel_agent.services.quote import compute_quote, quote_spoken, round2


# ==================== TEST 1: Referenzfall ====================

class TestReferenceQuote:

    def test_full_board_two_nights(self):
        quote = compute_quote("2025-10-20", "2025-10-22", 2, 0, "Vollpension", False)
        assert quote.total_primary == Decimal("236.00")
        assert quote.total_secondary == 11328
        assert quote.nights == 2
        assert quote.breakdown.board_type == "vollpension"
        assert quote.breakdown.board_add == Decimal("28")
        assert quote.breakdown.addon_add == Decimal("0")

    def test_deterministic(self):
        args = ("2025-10-22", "2025-10-24", 2, 1, "Halbpension", True)
        assert compute_quote(*args).model_dump() == compute_quote(*args).model_dump()

    def test_json_amounts_are_numbers(self):
        data = compute_quote("2025-10-22", "2025-10-24", 2, 0, "Vollpension").model_dump(mode="json")
        assert data["total_primary"] == 236.0
        assert data["exchange_rate"] == 48.0
        assert data["total_secondary"] == 11328


# ==================== TEST 2: Verpflegung und Extras ====================

class TestBoardAndExtras:

    @pytest.mark.parametrize("board,expected_key,expected_total", [
        (None, "fruehstueck", Decimal("196.00")),
        ("", "fruehstueck", Decimal("196.00")),
        ("Frühstück", "fruehstueck", Decimal("196.00")),
        ("HP", "halbpension", Decimal("216.00")),
        ("ohne Verpflegung", "ohne verpflegung", Decimal("180.00")),
        ("all inclusive", "all inclusive", Decimal("196.00")),
    ])
    def test_board_types(self, board, expected_key, expected_total):
        quote = compute_quote("2025-10-22", "2025-10-24", board_type=board)
        assert quote.breakdown.board_type == expected_key
        assert quote.total_primary == expected_total

    def test_addon(self):
        quote = compute_quote("2025-10-22", "2025-10-24", 2, 0, "Vollpension", True)
        assert quote.total_primary == Decimal("456.00")
        assert quote.total_secondary == 21888
        assert quote.breakdown.addon_add == Decimal("220")

    @pytest.mark.parametrize("room", ["STE", "suite", "Suite"])
    def test_room_rate_replaces_base(self, room):
        quote = compute_quote("2025-10-22", "2025-10-24", board_type="Vollpension", room_code=room)
        assert quote.total_primary == Decimal("356.00")
        assert quote.breakdown.room_code == "STE"

    def test_unknown_room(self):
        with pytest.raises(ValidationError) as exc_info:
            compute_quote("2025-10-22", "2025-10-24", room_code="Penthouse")
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    def test_breakdown_counts(self):
        quote = compute_quote("2025-10-22", "2025-10-24", "0", "-2")
        assert quote.breakdown.adults == 1
        assert quote.breakdown.children == 0


# ==================== TEST 3: Ungültige Daten ====================

class TestInvalidDates:

    @pytest.mark.parametrize("check_in,check_out", [
        (None, "2025-10-24"),
        ("2025-10-24", "2025-10-22"),
        ("2025-10-22", "2025-10-22"),
        ("irgendwann", "2025-10-24"),
    ])
    def test_invalid_dates(self, check_in, check_out):
        with pytest.raises(ValidationError) as exc_info:
            compute_quote(check_in, check_out)
        assert exc_info.value.code == ErrorCode.INVALID_DATES
        assert exc_info.value.message == "invalid_dates"

    def test_free_text_dates(self):
        quote = compute_quote("22.10.", "24.10.", base_date=date(2025, 10, 1))
        assert quote.nights == 2


# ==================== TEST 4: Satz ====================

class TestSpoken:

    def test_quote_sentence(self):
        spoken = quote_spoken(compute_quote("2025-10-22", "2025-10-24", 2, 0, "Vollpension"))
        assert spoken == (
            "Für 2 Nächte mit Vollpension beträgt der Gesamtpreis 236 Euro, "
            "das sind ungefähr 11.328 Lira."
        )

    def test_room_only_sentence(self):
        spoken = quote_spoken(compute_quote("2025-10-22", "2025-10-23", board_type="ohne"))
        assert spoken.startswith("Für 1 Nacht ohne Verpflegung beträgt")

    def test_addon_sentence(self):
        spoken = quote_spoken(compute_quote("2025-10-22", "2025-10-24", addon=True))
        assert "Club-Care" in spoken


def test_round2_half_up():
    assert round2(Decimal("0.125")) == Decimal("0.13")
    assert round2(Decimal("2.675")) == Decimal("2.68")
