"""
Deutsche Sätze für den Voice-Agenten: Pluralformen, Datums- und Preisangaben.
"""
from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from hotel_agent.agent.lexicon import MONTH_NAMES_DE


def pluralize(n: int, singular: str, plural: str) -> str:
    """Zahl mit passender Form: 1 Nacht, 2 Nächte, 0 Nächte."""
    return f"{n} {singular if n == 1 else plural}"


def nights_phrase(n: int) -> str:
    return pluralize(n, "Nacht", "Nächte")


def guests_phrase(n: int) -> str:
    return pluralize(n, "Gast", "Gäste")


def adults_phrase(n: int) -> str:
    return pluralize(n, "Erwachsener", "Erwachsene")


def children_phrase(n: int) -> str:
    return pluralize(n, "Kind", "Kinder")


def party_phrase(adults: int, children: int) -> str:
    """Reisegruppe, z. B. "2 Erwachsene und 1 Kind". Ohne Kinder nur die Erwachsenen."""
    if children:
        return f"{adults_phrase(adults)} und {children_phrase(children)}"
    return adults_phrase(adults)


def rooms_phrase(n: int) -> str:
    return "1 passendes Zimmer" if n == 1 else f"{n} passende Zimmer"


def format_date_de(value: Union[str, date]) -> str:
    """2025-10-22 → "22. Oktober 2025"."""
    d = date.fromisoformat(value) if isinstance(value, str) else value
    return f"{d.day}. {MONTH_NAMES_DE[d.month - 1]} {d.year}"


def format_amount(amount: Decimal) -> str:
    """Betrag mit zwei Nachkommastellen, Punkt als Trenner ("236.00")."""
    return str(Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_euro(amount: Decimal) -> str:
    """
    Betrag zum Vorlesen.

    Ganze Beträge ohne Cent ("236 Euro"), sonst mit Komma ("236,50 Euro").
    """
    value = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if value == value.to_integral_value():
        return f"{int(value)} Euro"
    return f"{value}".replace(".", ",") + " Euro"


def format_lira(amount: int) -> str:
    """11328 → "11.328 Lira" (deutscher Tausenderpunkt)."""
    return f"{amount:,}".replace(",", ".") + " Lira"
