"""
Tests für den deutschen Datumsparser.

Prüft:
1. Relative Angaben (heute, morgen, übermorgen, in N Tagen)
2. Wochentage immer strikt nach dem Bezugsdatum
3. Numerische Formate und Jahreswechsel
4. Langform und Wortform
5. Fallback und Fehlerfälle
6. nights_between und collect_dates
"""
import os
import sys
from datetime import date

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hotel_agent.agent.date_parser import (
    NOTE_FALLBACK,
    NOTE_WEEKDAY,
    NOTE_WORD_FORMAT,
    NOTE_YEAR_ROLLED,
    collect_dates,
    is_iso_date,
    next_weekday,
    nights_between,
    parse_date,
    resolve_date_input,
    try_parse_date,
)
from hotel_agent.core.errors import DateParseError, ErrorCode

# Sonntag
BASE = date(2025, 6, 1)


# ==================== TEST 1: Relative Angaben ====================

class TestRelativeDates:
    """heute / morgen / übermorgen / in N Tagen"""

    @pytest.mark.parametrize("text,expected", [
        ("heute", "2025-06-01"),
        ("morgen", "2025-06-02"),
        ("übermorgen", "2025-06-03"),
        ("Uebermorgen", "2025-06-03"),
        ("Ab morgen bitte", "2025-06-02"),
    ])
    def test_relative_days(self, text, expected):
        result = parse_date(text, base_date=BASE)
        assert result.value == expected
        assert result.needs_confirmation is False
        assert result.notes == []

    def test_greeting_is_not_tomorrow(self):
        """'Guten Morgen' ist eine Begrüßung, kein Datum"""
        result = parse_date("Guten Morgen, ich komme heute", base_date=BASE)
        assert result.value == "2025-06-01", f"Begrüßung als Datum gelesen: {result.value}"

    @pytest.mark.parametrize("text,expected", [
        ("in 3 Tagen", "2025-06-04"),
        ("in drei Tagen", "2025-06-04"),
        ("in einem Tag", "2025-06-02"),
        ("in zwei Wochen", "2025-06-15"),
    ])
    def test_in_n_days(self, text, expected):
        assert parse_date(text, base_date=BASE).value == expected

    def test_in_days_out_of_range(self):
        with pytest.raises(DateParseError):
            parse_date("in 400 Tagen", base_date=BASE)


# ==================== TEST 2: Wochentage ====================

class TestWeekdays:
    """Wochentage liegen 1 bis 7 Tage nach dem Bezugsdatum"""

    def test_next_friday(self):
        result = parse_date("nächsten Freitag", base_date=BASE)
        assert result.value == "2025-06-06"
        assert result.needs_confirmation is True
        assert result.notes == [NOTE_WEEKDAY]

    def test_same_weekday_is_next_week(self):
        """Sonntag am Sonntag ist der nächste Sonntag, nicht heute"""
        result = parse_date("Sonntag", base_date=BASE)
        assert result.value == "2025-06-08"

    def test_abbreviation_with_prefix(self):
        assert parse_date("am Mo.", base_date=BASE).value == "2025-06-02"

    def test_abbreviation_inside_sentence_is_ignored(self):
        assert try_parse_date("am so schnell wie möglich", base_date=BASE) is None

    @pytest.mark.parametrize("weekday", range(7))
    def test_next_weekday_strictly_after_base(self, weekday):
        result = next_weekday(BASE, weekday)
        assert 1 <= (result - BASE).days <= 7
        assert result.weekday() == weekday


# ==================== TEST 3: Numerische Formate ====================

class TestNumericDates:

    @pytest.mark.parametrize("text", [
        "22.10.2025",
        "22.10.25",
        "22/10/2025",
        "22-10-2025",
        "22.10.",
        "am 22.10",
    ])
    def test_european_formats(self, text):
        result = parse_date(text, base_date=BASE)
        assert result.value == "2025-10-22", f"{text!r} → {result.value}"
        assert result.needs_confirmation is False

    def test_iso_is_kept(self):
        result = parse_date("2025-10-22", base_date=BASE)
        assert result.value == "2025-10-22"
        assert result.notes == []

    @pytest.mark.parametrize("text", ["2025-10-22", "22.10.2025", "morgen", "nächsten Freitag"])
    def test_parsing_is_idempotent(self, text):
        """Ein geparstes Datum ergibt erneut geparst denselben Wert"""
        first = parse_date(text, base_date=BASE)
        assert parse_date(first.value, base_date=BASE).value == first.value

    def test_invalid_iso_is_error(self):
        """2025-02-30 ist formal ISO, aber kein Kalenderdatum"""
        with pytest.raises(DateParseError):
            parse_date("2025-02-30", base_date=BASE)

    def test_year_rolls_forward(self):
        result = parse_date("15.03", base_date=BASE)
        assert result.value == "2026-03-15"
        assert result.needs_confirmation is True
        assert NOTE_YEAR_ROLLED in result.notes

    def test_base_day_itself_does_not_roll(self):
        result = parse_date("01.06.", base_date=BASE)
        assert result.value == "2025-06-01"
        assert result.needs_confirmation is False


# ==================== TEST 4: Langform und Wortform ====================

class TestSpokenForms:
    """'22. Oktober 2025', 'zweiter Oktober', 'dritten zehnten'"""

    def test_long_form_with_year(self):
        result = parse_date("22. Oktober 2025", base_date=BASE)
        assert result.value == "2025-10-22"
        assert result.needs_confirmation is False

    def test_long_form_abbreviated_month(self):
        assert parse_date("1 okt", base_date=BASE).value == "2025-10-01"

    def test_long_form_rolls_forward(self):
        result = parse_date("3. März", base_date=BASE)
        assert result.value == "2026-03-03"
        assert NOTE_YEAR_ROLLED in result.notes

    def test_ordinal_word_and_month_name(self):
        result = parse_date("zweiter Oktober", base_date=BASE)
        assert result.value == "2025-10-02"
        assert result.needs_confirmation is True
        assert result.notes == [NOTE_WORD_FORMAT]

    def test_ordinal_day_and_ordinal_month(self):
        result = parse_date("dritten zehnten", base_date=BASE)
        assert result.value == "2025-10-03"
        assert result.needs_confirmation is True

    def test_word_form_rolls_forward(self):
        result = parse_date("am ersten Mai", base_date=BASE)
        assert result.value == "2026-05-01"
        assert result.notes == [NOTE_WORD_FORMAT, NOTE_YEAR_ROLLED]


# ==================== TEST 5: Fallback und Fehler ====================

class TestFallbackAndErrors:

    def test_dateutil_fallback(self):
        result = parse_date("October 22, 2025", base_date=BASE)
        assert result.value == "2025-10-22"
        assert result.needs_confirmation is True
        assert result.notes == [NOTE_FALLBACK]

    def test_fallback_sees_normalized_text(self):
        """Der Fallback bekommt denselben normalisierten Text wie die Regeln"""
        result = parse_date("  OCTOBER\t22,\n 2025 ", base_date=BASE)
        assert result.value == "2025-10-22"
        assert result.notes == [NOTE_FALLBACK]

    @pytest.mark.parametrize("text", ["irgendwann", "", "   ", None, 12345, ["morgen"]])
    def test_unparseable_raises(self, text):
        with pytest.raises(DateParseError) as exc_info:
            parse_date(text, "check-out", base_date=BASE)
        assert exc_info.value.code == ErrorCode.DATE_PARSE_ERROR
        assert exc_info.value.kind == "check-out"
        assert exc_info.value.spoken

    def test_try_parse_date_returns_none(self):
        assert try_parse_date("irgendwann", base_date=BASE) is None

    def test_resolve_date_input_reports_origin(self):
        parsed, was_iso = resolve_date_input("2025-10-22", "check-in", BASE)
        assert (parsed.value, was_iso) == ("2025-10-22", True)

        parsed, was_iso = resolve_date_input("22.10.", "check-in", BASE)
        assert (parsed.value, was_iso) == ("2025-10-22", False)

    def test_is_iso_date(self):
        assert is_iso_date("2025-10-22")
        assert not is_iso_date("2025-02-30")
        assert not is_iso_date("22.10.2025")
        assert not is_iso_date(None)


# ==================== TEST 6: Nächte und Datumssammlung ====================

class TestNightsAndCollect:

    @pytest.mark.parametrize("check_in,check_out,expected", [
        ("2025-10-22", "2025-10-24", 2),
        ("2025-10-20", "2025-10-22", 2),
        ("2025-10-24", "2025-10-22", 0),
        ("2025-10-22", "2025-10-22", 0),
        ("2025-03-29", "2025-03-31", 2),
        ("kaputt", "2025-10-22", 0),
        (None, None, 0),
    ])
    def test_nights_between_never_negative(self, check_in, check_out, expected):
        assert nights_between(check_in, check_out) == expected

    def test_collect_dotted_range(self):
        found = collect_dates("vom 22.10. bis 24.10.", date(2025, 10, 1))
        assert [d.value for d in found] == ["2025-10-22", "2025-10-24"]

    def test_collect_dedupes_and_sorts(self):
        found = collect_dates("bis 24.10., ab 22.10., also ab 22.10.", date(2025, 10, 1))
        assert [d.value for d in found] == ["2025-10-22", "2025-10-24"]

    def test_collect_month_names(self):
        found = collect_dates("vom 3. März bis 10. März 2026", BASE)
        assert [d.value for d in found] == ["2026-03-03", "2026-03-10"]

    def test_collect_nothing(self):
        assert collect_dates("Hallo, ich hätte eine Frage", BASE) == []


@pytest.mark.parametrize("y,m,d", [(1900, 1, 1), (2000, 2, 29), (2024, 12, 31), (2100, 6, 15)])
def test_iso_round_trip(y, m, d):
    value = date(y, m, d).isoformat()
    result = parse_date(value, base_date=BASE)
    assert date.fromisoformat(result.value) == date(y, m, d)
    assert result.needs_confirmation is False
