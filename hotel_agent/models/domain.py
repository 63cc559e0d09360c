"""
Domänenmodelle des Hotel-Agenten.

Geschäftslogik:
- Erwachsene mindestens 1, Kinder nie negativ
- Datumswerte immer als YYYY-MM-DD
- Zimmerkatalog ist unveränderliche Referenz (frozen)
- Beträge als Decimal, in JSON als Zahl
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

# Decimal intern, float in JSON-Antworten
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def coerce_int(value: Any, default: int = 0) -> int:
    """
    Ganzzahl aus beliebiger Eingabe, nie negativ.

    Leere oder unlesbare Werte ergeben `default`.
    """
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        n = int(str(value).strip())
    except ValueError:
        try:
            n = int(float(str(value).strip().replace(",", ".")))
        except ValueError:
            return default
    return max(0, n)


class ParsedDate(BaseModel):
    """
    Normalisiertes Kalenderdatum.

    Attributes:
        value: Datum als YYYY-MM-DD
        needs_confirmation: Parser musste raten (Wochentag, Jahreswechsel, ...)
        notes: Diagnose-Tags in Erkennungsreihenfolge
    """

    value: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$", description="Datum YYYY-MM-DD")
    needs_confirmation: bool = False
    notes: list[str] = Field(default_factory=list)

    @classmethod
    def from_date(cls, d: date, needs_confirmation: bool = False, notes: Optional[list[str]] = None) -> ParsedDate:
        return cls(value=d.isoformat(), needs_confirmation=needs_confirmation, notes=list(notes or []))

    @property
    def as_date(self) -> date:
        return date.fromisoformat(self.value)


class BookingSlots(BaseModel):
    """
    Extrahierte Buchungsparameter.

    Invariante: adults >= 1 (Default 1), children >= 0 (Default 0).
    """

    check_in: Optional[ParsedDate] = None
    check_out: Optional[ParsedDate] = None
    adults: int = 1
    children: int = 0

    @field_validator("adults", mode="before")
    @classmethod
    def _adults_at_least_one(cls, v: Any) -> int:
        return max(1, coerce_int(v, 1))

    @field_validator("children", mode="before")
    @classmethod
    def _children_not_negative(cls, v: Any) -> int:
        return coerce_int(v, 0)

    @property
    def needs_confirmation(self) -> bool:
        return any(d.needs_confirmation for d in (self.check_in, self.check_out) if d)

    @property
    def notes(self) -> list[str]:
        """Notizen beider Daten, ohne Duplikate, Reihenfolge bleibt erhalten."""
        seen: list[str] = []
        for d in (self.check_in, self.check_out):
            for note in (d.notes if d else []):
                if note not in seen:
                    seen.append(note)
        return seen

    def to_output(self) -> dict[str, Any]:
        """Flache Form für die Tool-Antwort."""
        return {
            "check_in": self.check_in.value if self.check_in else None,
            "check_out": self.check_out.value if self.check_out else None,
            "adults": self.adults,
            "children": self.children,
            "needs_confirmation": self.needs_confirmation,
            "notes": self.notes,
        }


class RoomType(BaseModel):
    """Eintrag im Zimmerkatalog (Referenzdaten, unveränderlich)."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    nightly_rate: Money
    max_guests: int = Field(ge=1)
    description: str = ""
    amenities: frozenset[str] = frozenset()


class RoomOffer(BaseModel):
    """Zimmer mit Preis für einen konkreten Aufenthalt."""

    code: str
    name: str
    max_guests: int
    price_per_night: Money
    total_price: Money
    discount_applied: bool = False


class AvailabilityMeta(BaseModel):
    """Herkunft der Eingaben einer Verfügbarkeitsprüfung."""

    parsed_fields: list[str] = Field(default_factory=list, description="Aus Freitext erkannt")
    iso_fields: list[str] = Field(default_factory=list, description="Bereits als ISO geliefert")
    needs_confirmation: bool = False
    notes: list[str] = Field(default_factory=list)


class AvailabilityResult(BaseModel):
    """Ergebnis der Verfügbarkeitsprüfung."""

    available: bool
    nights: int
    total_guests: int
    check_in: str
    check_out: str
    adults: int
    children: int
    matching_rooms: list[RoomOffer] = Field(default_factory=list)
    spoken: str
    meta: AvailabilityMeta = Field(default_factory=AvailabilityMeta)


class QuoteBreakdown(BaseModel):
    base_per_night: Money
    board_add: Money
    addon_add: Money
    board_type: str
    adults: int
    children: int
    room_code: Optional[str] = None


class Quote(BaseModel):
    """Preisangebot in Primär- (EUR) und Sekundärwährung (TRY)."""

    total_primary: Money
    total_secondary: int
    exchange_rate: Money
    nights: int
    breakdown: QuoteBreakdown


class Booking(BaseModel):
    """Buchungsdatensatz (flüchtig, keine Persistenz)."""

    booking_id: str
    email: str
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    adults: int = 1
    children: int = 0
    board_type: str
    addon: bool = False
    created_at: datetime
    source: str = Field(description="hotelrunner oder local")


class Offer(BaseModel):
    """Angebot, das per E-Mail an den Gast geht."""

    email: str
    total_primary: Optional[Money] = None
    total_secondary: Optional[int] = None
    exchange_rate: Optional[Money] = None
    details: Optional[dict[str, Any]] = None


class DeliveryReceipt(BaseModel):
    sent: bool
    to: str
    subject: str
    preview: str
    details: Optional[dict[str, Any]] = None
    sent_at: datetime
