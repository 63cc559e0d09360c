"""
Preisberechnung.

total_primary   = round2(nights × (Basispreis + Verpflegung) + Zusatzpaket)
total_secondary = round(total_primary × Wechselkurs), ganzzahlig

Basispreis ist BASE_RATE oder, mit room_code, der Nachtpreis des Zimmers.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from hotel_agent.agent.date_parser import nights_between, to_date, try_parse_date
from hotel_agent.core.config import Settings, settings
from hotel_agent.core.errors import ErrorCode, ValidationError
from hotel_agent.models.domain import Quote, QuoteBreakdown, coerce_int
from hotel_agent.services.catalog import board_label, find_room, resolve_board
from hotel_agent.services.spoken import format_euro, format_lira, nights_phrase

logger = logging.getLogger(__name__)

INVALID_DATES_SPOKEN = (
    "Für ein Angebot brauche ich ein gültiges An- und Abreisedatum. "
    "Die Abreise muss nach der Anreise liegen."
)


def round2(amount: Decimal) -> Decimal:
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _quote_date(value: Any, kind: str, base_date: Optional[date]) -> Optional[date]:
    d = to_date(value)
    if d is None and isinstance(value, str) and value.strip():
        parsed = try_parse_date(value, kind, base_date)
        d = parsed.as_date if parsed else None
    return d


def compute_quote(
    check_in: Any,
    check_out: Any,
    adults: Any = 1,
    children: Any = 0,
    board_type: Optional[str] = None,
    addon: bool = False,
    *,
    room_code: Optional[str] = None,
    base_date: Optional[date] = None,
    config: Settings = settings,
) -> Quote:
    """
    Berechnet ein Angebot.

    Args:
        check_in: Anreise (ISO, date oder Freitext)
        check_out: Abreise
        adults: Erwachsene, nur informativ im Breakdown
        children: Kinder, nur informativ im Breakdown
        board_type: Verpflegung, leer → Frühstück
        addon: Zusatzpaket (Club Care) gebucht
        room_code: Zimmercode oder -name; dessen Nachtpreis ersetzt BASE_RATE

    Returns:
        Quote

    Raises:
        ValidationError: invalid_dates bei fehlendem Datum oder nights <= 0,
            validation_error bei unbekanntem Zimmer
    """
    d_in = _quote_date(check_in, "Anreise", base_date)
    d_out = _quote_date(check_out, "Abreise", base_date)
    nights = nights_between(d_in, d_out)
    if d_in is None or d_out is None or nights <= 0:
        raise ValidationError(
            ErrorCode.INVALID_DATES,
            "invalid_dates",
            spoken=INVALID_DATES_SPOKEN,
            details={"check_in": check_in, "check_out": check_out},
        )

    base_rate = config.BASE_RATE
    resolved_code = None
    if room_code:
        room = find_room(room_code)
        if room is None:
            raise ValidationError(
                ErrorCode.VALIDATION_ERROR,
                f"unknown room: {room_code!r}",
                spoken="Dieses Zimmer kenne ich leider nicht. Wir haben Standard Apartment, "
                       "Deluxe Apartment, Suite und Garten-Villa.",
                details={"room_code": room_code},
            )
        base_rate = room.nightly_rate
        resolved_code = room.code

    board_key, surcharge = resolve_board(board_type)
    addon_amount = config.ADDON_RATE if addon else Decimal("0")

    total_primary = round2(Decimal(nights) * (base_rate + surcharge) + addon_amount)
    total_secondary = int((total_primary * config.EXCHANGE_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    logger.info(f"💶 Angebot: {nights} N, {board_key}, addon={addon} → {total_primary} EUR / {total_secondary} TRY")

    return Quote(
        total_primary=total_primary,
        total_secondary=total_secondary,
        exchange_rate=config.EXCHANGE_RATE,
        nights=nights,
        breakdown=QuoteBreakdown(
            base_per_night=base_rate,
            board_add=surcharge,
            addon_add=addon_amount,
            board_type=board_key,
            adults=max(1, coerce_int(adults, 1)),
            children=coerce_int(children, 0),
            room_code=resolved_code,
        ),
    )


def quote_spoken(quote: Quote) -> str:
    """Satz zum Vorlesen eines Angebots."""
    board = board_label(quote.breakdown.board_type)
    if not board.startswith("ohne"):
        board = f"mit {board}"
    sentence = (
        f"Für {nights_phrase(quote.nights)} {board} "
        f"beträgt der Gesamtpreis {format_euro(quote.total_primary)}, "
        f"das sind ungefähr {format_lira(quote.total_secondary)}."
    )
    if quote.breakdown.addon_add:
        sentence += " Das Club-Care-Paket ist enthalten."
    return sentence
