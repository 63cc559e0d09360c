"""
Öffentliche Routen (/retell/public/*), ohne Tool-Secret.

Nur regelbasierte Extraktion und Preisberechnung, kein Zugriff auf
Upstreams.
"""
from __future__ import annotations

import time

from fastapi import APIRouter, Depends, Request

from hotel_agent.api.tools import read_tool_args, run_tool, tool_extract_rules
from hotel_agent.core.rate_limit import public_limiter, rate_limit
from hotel_agent.models.schemas import ErrorResponse

router = APIRouter(
    prefix="/retell/public",
    tags=["public"],
    dependencies=[Depends(rate_limit(public_limiter))],
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)


@router.get("/ping")
async def ping():
    return {"ok": True, "pong": True, "ts": int(time.time() * 1000)}


@router.post("/echo")
async def echo(request: Request):
    """Gibt den empfangenen Body zurück (Diagnose der Retell-Anbindung)."""
    try:
        body = await request.json()
    except ValueError:
        body = None
    return {"ok": True, "you_sent": body}


@router.post("/extract_core")
async def extract_core_public(request: Request):
    return await run_tool(request, "extract_core_public", await read_tool_args(request), tool_extract_rules)


@router.post("/quote")
async def quote_public(request: Request):
    return await run_tool(request, "quote", await read_tool_args(request))
