"""
API-Schemas für die Retell-Tool-Routen.

Retell und ältere Agent-Versionen schicken dieselben Felder unter
verschiedenen Namen (from_date/check_in, board/board_type, club_care/addon,
quote_eur/total_primary). Die Aliase werden hier gebündelt.
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

_TRUTHY = {"1", "true", "yes", "ja", "y", "j", "on"}


def _coerce_flag(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if v is None:
        return False
    if isinstance(v, (int, float)):
        return v != 0
    return str(v).strip().lower() in _TRUTHY


class _ToolRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ParseDateRequest(_ToolRequest):
    """Ein einzelnes Datum aus Freitext."""

    text: Any = Field(default=None, validation_alias=AliasChoices("text", "date", "value", "utterance"))
    type: str = Field(default="check-in", validation_alias=AliasChoices("type", "kind"))


class AvailabilityRequest(_ToolRequest):
    """
    Verfügbarkeitsanfrage.

    Daten dürfen als ISO-String oder als gesprochener Freitext kommen.
    """

    check_in: Any = Field(
        default=None,
        validation_alias=AliasChoices("check_in", "from_date", "start", "checkin_raw", "checkin"),
    )
    check_out: Any = Field(
        default=None,
        validation_alias=AliasChoices("check_out", "to_date", "end", "checkout_raw", "checkout"),
    )
    adults: Any = Field(default=None, validation_alias=AliasChoices("adults", "guests"))
    children: Any = Field(default=None, validation_alias=AliasChoices("children", "kids"))


class QuoteRequest(_ToolRequest):
    """Preisanfrage."""

    check_in: Any = Field(default=None, validation_alias=AliasChoices("check_in", "from_date", "start"))
    check_out: Any = Field(default=None, validation_alias=AliasChoices("check_out", "to_date", "end"))
    adults: Any = None
    children: Any = None
    board_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("board_type", "board"))
    addon: bool = Field(default=False, validation_alias=AliasChoices("addon", "club_care"))
    room_code: Optional[str] = None

    @field_validator("addon", mode="before")
    @classmethod
    def _addon_flag(cls, v: Any) -> bool:
        return _coerce_flag(v)


class CommitRequest(QuoteRequest):
    """Buchung abschließen."""

    email: Optional[str] = None


class SendOfferRequest(_ToolRequest):
    """Angebot per E-Mail verschicken."""

    email: Optional[str] = None
    total_primary: Optional[float] = Field(default=None, validation_alias=AliasChoices("total_primary", "quote_eur"))
    total_secondary: Optional[int] = Field(default=None, validation_alias=AliasChoices("total_secondary", "quote_try"))
    exchange_rate: Optional[float] = Field(default=None, validation_alias=AliasChoices("exchange_rate", "fx"))
    details: Optional[dict[str, Any]] = None


class ListRoomsRequest(_ToolRequest):
    """Zimmerliste, optional mit gesprochenem Zimmernamen."""

    query: Optional[str] = Field(default=None, validation_alias=AliasChoices("query", "room", "room_name"))


class ToolCallRequest(_ToolRequest):
    """Generischer Dispatcher: {"name": "...", "arguments": {...}}."""

    name: Optional[str] = None
    arguments: dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("arguments", "args"))


class HealthResponse(BaseModel):
    """Antwort des Health-Checks."""

    ok: bool = Field(description="Dienst läuft")
    service: str = Field(description="Name des Dienstes")
    version: str = Field(description="Version")
    environment: str
    timestamp: str
    uptime_seconds: int
    config: dict[str, Any]


class ErrorResponse(BaseModel):
    """Fehlerantwort mit vorlesbarem Satz."""

    ok: bool = False
    error: str = Field(description="Fehlercode")
    message: Optional[str] = Field(default=None, description="Technische Beschreibung")
    spoken: str = Field(description="Deutscher Satz für den Voice-Agenten")
