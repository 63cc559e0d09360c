"""
Buchungsabschluss und Angebotsversand.

Persistenz und Mailversand sind Protokolle (BookingStore, OfferSender).
Die Standard-Implementierungen speichern nichts und verschicken nichts,
sie protokollieren nur.
"""
from __future__ import annotations

import logging
import secrets
import string
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Protocol

from hotel_agent.agent.date_parser import to_date
from hotel_agent.core.config import settings
from hotel_agent.core.errors import ErrorCode, UpstreamUnavailable, ValidationError
from hotel_agent.models.domain import Booking, DeliveryReceipt, Offer, coerce_int
from hotel_agent.services.catalog import resolve_board
from hotel_agent.services.hotelrunner import hotelrunner_client
from hotel_agent.services.spoken import format_amount

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase

INVALID_EMAIL_SPOKEN = (
    "Die E-Mail-Adresse habe ich leider nicht richtig verstanden. "
    "Können Sie sie bitte noch einmal buchstabieren?"
)


# ==================== PROTOKOLLE ====================

class BookingStore(Protocol):
    def save(self, booking: Booking) -> str: ...


class ReservationChannel(Protocol):
    @property
    def enabled(self) -> bool: ...

    async def create_reservation(self, booking: Booking) -> Optional[str]: ...


class OfferSender(Protocol):
    async def send(self, offer: Offer) -> DeliveryReceipt: ...


class EphemeralBookingStore:
    """Speichert nichts; die Buchungsnummer ist nur für das Gespräch gültig."""

    def save(self, booking: Booking) -> str:
        logger.info(f"📝 Buchung {booking.booking_id} ({booking.source}) für {booking.email}")
        return booking.booking_id


class LoggingOfferSender:
    """Baut Betreff und Vorschau, versendet aber keine E-Mail."""

    def __init__(self, hotel_name: Optional[str] = None):
        self.hotel_name = hotel_name or settings.HOTEL_NAME

    async def send(self, offer: Offer) -> DeliveryReceipt:
        primary = format_amount(offer.total_primary) if offer.total_primary is not None else "-"
        secondary = offer.total_secondary if offer.total_secondary is not None else "-"
        receipt = DeliveryReceipt(
            sent=True,
            to=offer.email,
            subject=f"Ihr persönliches Angebot – {self.hotel_name}",
            preview=f"Gesamtpreis: €{primary} (ca. ₺{secondary})",
            details=offer.details,
            sent_at=datetime.now(timezone.utc),
        )
        logger.info(f"📧 Angebot an {receipt.to}: {receipt.preview}")
        return receipt


# ==================== HILFSFUNKTIONEN ====================

def generate_booking_id(now_ms: Optional[int] = None) -> str:
    """bk_<Epoch-Millisekunden>_<8 Zeichen Base36>."""
    ms = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(8))
    return f"bk_{ms}_{suffix}"


def validate_email(email: Any) -> str:
    """
    Minimalprüfung: ein "@" muss enthalten sein.

    Returns:
        E-Mail in Kleinbuchstaben, ohne Leerraum außen

    Raises:
        ValidationError: invalid_email
    """
    if not isinstance(email, str) or "@" not in email:
        raise ValidationError(
            ErrorCode.INVALID_EMAIL,
            "invalid_email",
            spoken=INVALID_EMAIL_SPOKEN,
            details={"email": email if isinstance(email, str) else None},
        )
    return email.strip().lower()


def _iso_or_raw(value: Any) -> Optional[str]:
    d = to_date(value)
    if d is not None:
        return d.isoformat()
    return str(value) if value else None


# ==================== BUCHUNG ====================

async def commit_booking(
    email: Any,
    check_in: Any = None,
    check_out: Any = None,
    adults: Any = 1,
    children: Any = 0,
    board_type: Optional[str] = None,
    addon: bool = False,
    *,
    store: Optional[BookingStore] = None,
    channel: Optional[ReservationChannel] = None,
) -> Booking:
    """
    Schließt eine Buchung ab.

    Der Channel-Manager wird best-effort angefragt: liefert er eine
    Reservierungsnummer, ersetzt sie die lokale. Fällt er aus, bleibt es bei
    der lokalen Nummer.

    Raises:
        ValidationError: invalid_email
    """
    store = store or EphemeralBookingStore()
    channel = channel or hotelrunner_client
    email = validate_email(email)

    board_key, _ = resolve_board(board_type)
    booking = Booking(
        booking_id=generate_booking_id(),
        email=email,
        check_in=_iso_or_raw(check_in),
        check_out=_iso_or_raw(check_out),
        adults=max(1, coerce_int(adults, 1)),
        children=coerce_int(children, 0),
        board_type=board_key,
        addon=bool(addon),
        created_at=datetime.now(timezone.utc),
        source="local",
    )

    if channel.enabled:
        try:
            reservation_id = await channel.create_reservation(booking)
        except UpstreamUnavailable as e:
            logger.warning(f"⚠️ HotelRunner nicht verfügbar, lokale Buchungsnummer: {e.message}")
        else:
            if reservation_id:
                booking = booking.model_copy(update={"booking_id": reservation_id, "source": "hotelrunner"})

    store.save(booking)
    return booking


async def send_offer(
    email: Any,
    total_primary: Optional[Decimal | float] = None,
    total_secondary: Optional[int] = None,
    exchange_rate: Optional[Decimal | float] = None,
    details: Optional[dict[str, Any]] = None,
    *,
    sender: Optional[OfferSender] = None,
) -> DeliveryReceipt:
    """
    Verschickt ein Angebot per E-Mail.

    Raises:
        ValidationError: invalid_email
    """
    sender = sender or LoggingOfferSender()
    offer = Offer(
        email=validate_email(email),
        total_primary=Decimal(str(total_primary)) if total_primary is not None else None,
        total_secondary=total_secondary,
        exchange_rate=Decimal(str(exchange_rate)) if exchange_rate is not None else None,
        details=details,
    )
    return await sender.send(offer)
