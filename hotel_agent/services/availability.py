"""
Verfügbarkeitsprüfung.

Prüfreihenfolge (erster Verstoß gewinnt):
1. MISSING_DATES       : An- oder Abreise fehlt bzw. nicht erkennbar
2. INVALID_DATE_RANGE  : Abreise nicht nach Anreise
3. MAX_NIGHTS_EXCEEDED : mehr als MAX_NIGHTS Nächte
4. CHECKIN_IN_PAST     : Anreise vor heute
5. NO_ROOMS_AVAILABLE  : Gästelimit überschritten oder kein Zimmer groß genug

Danach Zimmer filtern, Preise berechnen, Satz für den Agenten bauen.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from hotel_agent.agent.date_parser import nights_between, resolve_date_input
from hotel_agent.core.config import Settings, settings
from hotel_agent.core.errors import BusinessRuleViolation, DateParseError, ErrorCode
from hotel_agent.models.domain import AvailabilityMeta, AvailabilityResult, ParsedDate, RoomOffer, RoomType, coerce_int
from hotel_agent.services.catalog import rooms_for_guests
from hotel_agent.services.spoken import (
    format_date_de,
    format_euro,
    guests_phrase,
    nights_phrase,
    party_phrase,
    rooms_phrase,
)

logger = logging.getLogger(__name__)

MISSING_DATES_SPOKEN = (
    "Damit ich die Verfügbarkeit prüfen kann, brauche ich sowohl An- als auch Abreisedatum."
)
INVALID_RANGE_SPOKEN = "Das Abreisedatum muss nach dem Anreisedatum liegen."
PAST_CHECKIN_SPOKEN = "Das Anreisedatum darf nicht in der Vergangenheit liegen."

_CENT = Decimal("0.01")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _resolve(value: Any, field: str, kind: str, base: date, meta: AvailabilityMeta) -> ParsedDate:
    """Ein Datum auflösen und seine Herkunft in meta vermerken."""
    try:
        parsed, was_iso = resolve_date_input(value, kind, base)
    except DateParseError as e:
        raise BusinessRuleViolation(
            ErrorCode.MISSING_DATES,
            f"{field} not recognized: {value!r}",
            spoken=e.spoken,
            details={"field": field, "raw": e.raw},
        ) from e

    (meta.iso_fields if was_iso else meta.parsed_fields).append(field)
    if parsed.needs_confirmation:
        meta.needs_confirmation = True
    for note in parsed.notes:
        if note not in meta.notes:
            meta.notes.append(note)
    return parsed


def price_room(room: RoomType, nights: int, config: Settings = settings) -> RoomOffer:
    """
    Preis eines Zimmers für den Aufenthalt.

    Langzeitrabatt nur, wenn LONG_STAY_DISCOUNT_ENABLED gesetzt ist.
    """
    total = room.nightly_rate * nights
    discounted = config.LONG_STAY_DISCOUNT_ENABLED and nights >= config.LONG_STAY_MIN_NIGHTS
    if discounted:
        total = total * (Decimal(100) - config.LONG_STAY_DISCOUNT_PERCENT) / Decimal(100)
    return RoomOffer(
        code=room.code,
        name=room.name,
        max_guests=room.max_guests,
        price_per_night=room.nightly_rate,
        total_price=total.quantize(_CENT, rounding=ROUND_HALF_UP),
        discount_applied=discounted,
    )


def _spoken_available(
    check_in: str, check_out: str, nights: int, adults: int, children: int, offers: list[RoomOffer]
) -> str:
    total_guests = adults + children
    cheapest = offers[0]
    sentence = (
        f"Vom {format_date_de(check_in)} bis {format_date_de(check_out)}, also {nights_phrase(nights)}, "
        f"haben wir {rooms_phrase(len(offers))} für {guests_phrase(total_guests)} "
        f"({party_phrase(adults, children)}). "
        f"Am günstigsten ist \"{cheapest.name}\" für insgesamt {format_euro(cheapest.total_price)}."
    )
    if cheapest.discount_applied:
        sentence += " Der Langzeitrabatt ist bereits eingerechnet."
    return sentence


def check_availability(
    check_in: Any,
    check_out: Any,
    adults: Any = 1,
    children: Any = 0,
    *,
    today: Optional[date] = None,
    base_date: Optional[date] = None,
    config: Settings = settings,
) -> AvailabilityResult:
    """
    Prüft einen Aufenthalt gegen die Geschäftsregeln und den Zimmerkatalog.

    Args:
        check_in: Anreise als ISO-String, date oder gesprochener Text
        check_out: Abreise, wie check_in
        adults: Erwachsene (unlesbar → 1, mindestens 1)
        children: Kinder (unlesbar → 0)
        today: Stichtag für CHECKIN_IN_PAST, Standard heute
        base_date: Bezugsdatum für Freitext, Standard today

    Returns:
        AvailabilityResult mit passenden Zimmern, günstigstes zuerst

    Raises:
        BusinessRuleViolation: bei einem Regelverstoß (siehe Modul-Docstring)
    """
    today = today or date.today()
    base = base_date or today
    meta = AvailabilityMeta()

    if _is_blank(check_in) or _is_blank(check_out):
        raise BusinessRuleViolation(
            ErrorCode.MISSING_DATES,
            "check_in and check_out are required",
            spoken=MISSING_DATES_SPOKEN,
            details={"check_in": check_in, "check_out": check_out},
        )

    parsed_in = _resolve(check_in, "check_in", "Anreise", base, meta)
    parsed_out = _resolve(check_out, "check_out", "Abreise", base, meta)
    nights = nights_between(parsed_in.value, parsed_out.value)

    if nights <= 0:
        raise BusinessRuleViolation(
            ErrorCode.INVALID_DATE_RANGE,
            "checkout must be after checkin",
            spoken=INVALID_RANGE_SPOKEN,
            details={"check_in": parsed_in.value, "check_out": parsed_out.value},
        )

    if nights > config.MAX_NIGHTS:
        raise BusinessRuleViolation(
            ErrorCode.MAX_NIGHTS_EXCEEDED,
            f"stay of {nights} nights exceeds {config.MAX_NIGHTS}",
            spoken=f"Ein Aufenthalt kann höchstens {nights_phrase(config.MAX_NIGHTS)} dauern. "
                   f"Sie haben {nights_phrase(nights)} angefragt.",
            details={"nights": nights, "max_nights": config.MAX_NIGHTS},
        )

    if parsed_in.as_date < today:
        raise BusinessRuleViolation(
            ErrorCode.CHECKIN_IN_PAST,
            f"check_in {parsed_in.value} is before {today.isoformat()}",
            spoken=PAST_CHECKIN_SPOKEN,
            details={"check_in": parsed_in.value, "today": today.isoformat()},
        )

    n_adults = max(1, coerce_int(adults, 1))
    n_children = coerce_int(children, 0)
    total_guests = n_adults + n_children

    if total_guests > config.MAX_GUESTS:
        raise BusinessRuleViolation(
            ErrorCode.NO_ROOMS_AVAILABLE,
            f"{total_guests} guests exceed limit of {config.MAX_GUESTS}",
            spoken=f"Für {guests_phrase(total_guests)} können wir leider keine Unterkunft anbieten. "
                   f"Maximum sind {guests_phrase(config.MAX_GUESTS)}.",
            details={"reason": "guest_limit", "total_guests": total_guests, "max_guests": config.MAX_GUESTS},
        )

    rooms = rooms_for_guests(total_guests)
    if not rooms:
        raise BusinessRuleViolation(
            ErrorCode.NO_ROOMS_AVAILABLE,
            f"no room fits {total_guests} guests",
            spoken=f"Für {guests_phrase(total_guests)} haben wir leider kein passendes Zimmer.",
            details={"reason": "capacity", "total_guests": total_guests},
        )

    offers = sorted((price_room(room, nights, config) for room in rooms), key=lambda o: o.total_price)
    logger.info(
        f"🏨 Verfügbar: {parsed_in.value} → {parsed_out.value} ({nights} N), "
        f"{total_guests} Gäste, {len(offers)} Zimmer"
    )

    return AvailabilityResult(
        available=True,
        nights=nights,
        total_guests=total_guests,
        check_in=parsed_in.value,
        check_out=parsed_out.value,
        adults=n_adults,
        children=n_children,
        matching_rooms=offers,
        spoken=_spoken_available(parsed_in.value, parsed_out.value, nights, n_adults, n_children, offers),
        meta=meta,
    )
