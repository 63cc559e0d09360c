"""
Tool-Routen für Retell (/retell/tool/*).

Alle Routen verlangen das Tool-Secret (Bearer, tool-secret oder
x-tool-secret). Der Body darf flach oder unter "args"/"arguments" kommen.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from hotel_agent.api.tools import read_tool_args, run_tool, validate_args
from hotel_agent.core.config import settings
from hotel_agent.core.rate_limit import rate_limit, tool_limiter
from hotel_agent.core.security import require_tool_secret
from hotel_agent.models.schemas import ErrorResponse, ToolCallRequest

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/retell/tool",
    tags=["tool"],
    dependencies=[Depends(rate_limit(tool_limiter)), Depends(require_tool_secret)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


@router.get("/whoami")
async def whoami():
    """Konfigurationsecho für die Einrichtung des Agenten (ohne Secrets)."""
    return {
        "ok": True,
        "service": settings.APP_NAME,
        "authenticated": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "config": {
            "environment": settings.ENVIRONMENT,
            "llmEnabled": settings.LLM_ENABLED,
            "model": settings.LLM_MODEL,
            "hotelRunnerEnabled": settings.HOTELRUNNER_ENABLED,
        },
    }


@router.post("/extract_core")
async def extract_core(request: Request):
    """Slots aus der Äußerung: Regeln, optional ergänzt durch das LLM-Orakel."""
    return await run_tool(request, "extract_core", await read_tool_args(request))


@router.post("/parse_date")
async def parse_date_route(request: Request):
    """Ein einzelnes Datum ({text, type})."""
    return await run_tool(request, "parse_date", await read_tool_args(request))


@router.post("/check_availability")
async def check_availability_route(request: Request):
    return await run_tool(request, "check_availability", await read_tool_args(request))


@router.post("/quote")
async def quote_route(request: Request):
    return await run_tool(request, "quote", await read_tool_args(request))


@router.post("/list_rooms")
async def list_rooms_route(request: Request):
    return await run_tool(request, "list_rooms", await read_tool_args(request))


@router.post("/commit_booking")
async def commit_booking_route(request: Request):
    return await run_tool(request, "commit_booking", await read_tool_args(request))


@router.post("/send_offer")
async def send_offer_route(request: Request):
    return await run_tool(request, "send_offer", await read_tool_args(request))


@router.post("")
async def dispatch(request: Request):
    """
    Generischer Dispatcher.

    Body: {"name": "<tool>", "arguments": {...}} (oder "args").
    """
    try:
        body = await request.json()
    except ValueError:
        body = {}
    call = validate_args(ToolCallRequest, body if isinstance(body, dict) else {})
    return await run_tool(request, call.name or "", call.arguments)
