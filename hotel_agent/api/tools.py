"""
Tool-Implementierungen für den Voice-Agenten.

Jedes Tool bekommt die (entpackten) Argumente als dict und liefert ein
JSON-fähiges dict. Fachfehler werden geworfen und von den
Exception-Handlern in `hotel_agent.core.exceptions` übersetzt.

Die Registry TOOLS wird von den Einzelrouten und vom generischen
Dispatcher POST /retell/tool gemeinsam genutzt.
"""
from __future__ import annotations

import logging
import time
from datetime import date
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from hotel_agent.agent.date_parser import parse_date, to_date
from hotel_agent.agent.llm import extract_with_oracle
from hotel_agent.agent.slot_extractor import slot_extractor
from hotel_agent.core.errors import ErrorCode, HotelAgentError, ValidationError
from hotel_agent.core.guardrails import coerce_utterance, pick_utterance, unwrap_tool_args
from hotel_agent.core.trace_logger import trace_logger
from hotel_agent.models.domain import RoomType
from hotel_agent.models.schemas import (
    AvailabilityRequest,
    CommitRequest,
    ListRoomsRequest,
    ParseDateRequest,
    QuoteRequest,
    SendOfferRequest,
)
from hotel_agent.services.availability import check_availability
from hotel_agent.services.booking import commit_booking, send_offer
from hotel_agent.services.catalog import find_room, list_rooms
from hotel_agent.services.quote import compute_quote, quote_spoken

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
ToolHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


# ==================== HILFSFUNKTIONEN ====================

async def read_tool_args(request: Request) -> dict[str, Any]:
    """JSON-Body lesen und Retell-Verschachtelung (args/arguments) auflösen."""
    try:
        body = await request.json()
    except ValueError:
        body = {}
    return unwrap_tool_args(body)


def validate_args(model: Type[M], args: dict[str, Any]) -> M:
    try:
        return model.model_validate(args)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ()))
        raise ValidationError(
            ErrorCode.VALIDATION_ERROR,
            f"{field}: {first.get('msg')}",
            details={"field": field},
        ) from e


def _base_date(args: dict[str, Any]) -> Optional[date]:
    """Optionales Bezugsdatum für relative Angaben (ISO)."""
    return to_date(args.get("base_date"))


def _empty_slots(source: str) -> dict[str, Any]:
    return {
        "ok": True,
        "check_in": None,
        "check_out": None,
        "adults": 1,
        "children": 0,
        "needs_confirmation": False,
        "notes": [],
        "raw": None,
        "source": source,
    }


def _room_out(room: RoomType) -> dict[str, Any]:
    data = room.model_dump(mode="json")
    data["amenities"] = sorted(room.amenities)
    return data


def _names_sentence(names: list[str]) -> str:
    if len(names) == 1:
        return names[0]
    return ", ".join(names[:-1]) + " und " + names[-1]


# ==================== TOOLS ====================

async def tool_extract_core(args: dict[str, Any]) -> dict[str, Any]:
    """Regeln, optional mit LLM-Orakel."""
    utterance = pick_utterance(args)
    if not utterance:
        return _empty_slots("empty")
    slots, source = await extract_with_oracle(utterance, _base_date(args))
    return {"ok": True, **slots.to_output(), "raw": utterance, "source": source}


async def tool_extract_rules(args: dict[str, Any]) -> dict[str, Any]:
    """Nur Regeln (öffentliche Route)."""
    utterance = pick_utterance(args)
    if not utterance:
        return _empty_slots("empty")
    slots = slot_extractor.extract(utterance, _base_date(args))
    return {"ok": True, **slots.to_output(), "raw": utterance, "source": "rules"}


async def tool_parse_date(args: dict[str, Any]) -> dict[str, Any]:
    req = validate_args(ParseDateRequest, args)
    parsed = parse_date(coerce_utterance(req.text), req.type, _base_date(args))
    return {
        "ok": True,
        "date": parsed.value,
        "type": req.type,
        "needs_confirmation": parsed.needs_confirmation,
        "notes": parsed.notes,
    }


async def tool_check_availability(args: dict[str, Any]) -> dict[str, Any]:
    req = validate_args(AvailabilityRequest, args)
    result = check_availability(
        req.check_in,
        req.check_out,
        req.adults,
        req.children,
        base_date=_base_date(args),
    )
    payload = result.model_dump(mode="json")
    rooms = [
        {key: room[key] for key in ("code", "name", "price_per_night", "total_price")}
        for room in payload["matching_rooms"]
    ]
    return {"ok": True, "availability_ok": result.available, **payload, "rooms": rooms}


async def tool_quote(args: dict[str, Any]) -> dict[str, Any]:
    req = validate_args(QuoteRequest, args)
    quote = compute_quote(
        req.check_in,
        req.check_out,
        req.adults,
        req.children,
        req.board_type,
        req.addon,
        room_code=req.room_code,
        base_date=_base_date(args),
    )
    return {"ok": True, "data": quote.model_dump(mode="json"), "spoken": quote_spoken(quote)}


async def tool_list_rooms(args: dict[str, Any]) -> dict[str, Any]:
    req = validate_args(ListRoomsRequest, args)
    rooms = list_rooms()
    names = _names_sentence([room.name for room in rooms])

    if req.query:
        room = find_room(req.query)
        if room is None:
            return {
                "ok": True,
                "count": 0,
                "rooms": [],
                "spoken": f"Ein Zimmer mit diesem Namen haben wir leider nicht. Wir haben {names}.",
            }
        return {
            "ok": True,
            "count": 1,
            "rooms": [_room_out(room)],
            "spoken": f"{room.name}: {room.description}, für bis zu {room.max_guests} Personen.",
        }

    return {
        "ok": True,
        "count": len(rooms),
        "rooms": [_room_out(room) for room in rooms],
        "spoken": f"Wir haben {len(rooms)} Zimmerkategorien: {names}.",
    }


async def tool_commit_booking(args: dict[str, Any]) -> dict[str, Any]:
    req = validate_args(CommitRequest, args)
    booking = await commit_booking(
        req.email,
        req.check_in,
        req.check_out,
        req.adults,
        req.children,
        req.board_type,
        req.addon,
    )
    return {
        "ok": True,
        "data": booking.model_dump(mode="json"),
        "spoken": f"Vielen Dank, Ihre Buchung ist eingegangen. Die Bestätigung geht an {booking.email}.",
    }


async def tool_send_offer(args: dict[str, Any]) -> dict[str, Any]:
    req = validate_args(SendOfferRequest, args)
    receipt = await send_offer(
        req.email,
        req.total_primary,
        req.total_secondary,
        req.exchange_rate,
        req.details,
    )
    return {
        "ok": True,
        "data": receipt.model_dump(mode="json"),
        "spoken": f"Ich habe Ihnen das Angebot an {receipt.to} geschickt.",
    }


TOOLS: dict[str, ToolHandler] = {
    "extract_core": tool_extract_core,
    "parse_date": tool_parse_date,
    "check_availability": tool_check_availability,
    "quote": tool_quote,
    "list_rooms": tool_list_rooms,
    "commit_booking": tool_commit_booking,
    "send_offer": tool_send_offer,
}


async def run_tool(request: Request, tool: str, args: dict[str, Any], handler: Optional[ToolHandler] = None) -> dict[str, Any]:
    """
    Führt ein Tool aus und protokolliert den Aufruf im JSONL-Trace.

    Raises:
        ValidationError: unknown_tool
        HotelAgentError: Fachfehler des Tools (unverändert weitergereicht)
    """
    handler = handler or TOOLS.get(tool)
    if handler is None:
        raise ValidationError(
            ErrorCode.UNKNOWN_TOOL,
            f"unknown tool: {tool!r}",
            spoken="Diese Funktion kenne ich leider nicht.",
            details={"tool": tool, "available": sorted(TOOLS)},
        )

    request_id = getattr(request.state, "request_id", None)
    started = time.perf_counter()
    try:
        result = await handler(args)
    except HotelAgentError as e:
        elapsed_ms = (time.perf_counter() - started) * 1000
        trace_logger.log_tool_call(tool, request_id, args, ok=False, elapsed_ms=elapsed_ms, code=e.code.value)
        raise

    elapsed_ms = (time.perf_counter() - started) * 1000
    trace_logger.log_tool_call(tool, request_id, args, ok=True, elapsed_ms=elapsed_ms)
    logger.info(f"🔧 {tool} ok ({elapsed_ms:.0f} ms)")
    return result
