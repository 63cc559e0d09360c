"""
FastAPI-Exception-Handler.

Jede Fehlerantwort hat ok=false und einen deutschen `spoken`-Satz.

| Fehler                 | HTTP |
|------------------------|------|
| DateParseError         | 200  |
| BusinessRuleViolation  | 200  |
| ValidationError        | 400  |
| HTTPException          | wie gesetzt |
| RequestValidationError | 400  |
| alles andere           | 500  |
"""
from __future__ import annotations

import logging

from fastapi import Request
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse

from hotel_agent.core.config import settings
from hotel_agent.core.errors import (
    TECHNICAL_PROBLEM_SPOKEN,
    BusinessRuleViolation,
    DateParseError,
    ErrorCode,
    HotelAgentError,
    ValidationError,
)
from hotel_agent.core.guardrails import safe_spoken

logger = logging.getLogger(__name__)

ROUTE_NOT_FOUND_SPOKEN = "Diese Funktion gibt es leider nicht."
UNAUTHORIZED_SPOKEN = "Ich habe gerade keinen Zugriff auf das Buchungssystem."
RATE_LIMITED_SPOKEN = "Im Moment kommen sehr viele Anfragen an. Bitte versuchen Sie es gleich noch einmal."

AVAILABLE_ENDPOINTS = [
    "GET  /healthz",
    "GET  /metrics",
    "GET  /retell/public/ping",
    "POST /retell/public/echo",
    "GET  /retell/tool/whoami",
    "POST /retell/public/extract_core",
    "POST /retell/public/quote",
    "POST /retell/tool/extract_core",
    "POST /retell/tool/parse_date",
    "POST /retell/tool/check_availability",
    "POST /retell/tool/quote",
    "POST /retell/tool/list_rooms",
    "POST /retell/tool/commit_booking",
    "POST /retell/tool/send_offer",
    "POST /retell/tool",
]


async def date_parse_error_handler(request: Request, exc: DateParseError):
    return JSONResponse(
        status_code=200,
        content={
            "ok": False,
            "error": exc.code.value,
            "raw": exc.raw if isinstance(exc.raw, (str, int, float)) else None,
            "type": exc.kind,
            "spoken": safe_spoken(exc),
        },
    )


async def business_rule_handler(request: Request, exc: BusinessRuleViolation):
    logger.info(f"📋 {exc.code.value}: {exc.message}")
    return JSONResponse(
        status_code=200,
        content={
            "ok": False,
            "code": exc.code.value,
            "spoken": safe_spoken(exc),
            "details": exc.details,
        },
        headers={"X-Error-Code": exc.code.value},
    )


async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info(f"⚠️ {exc.code.value}: {exc.message}")
    return JSONResponse(
        status_code=400,
        content={
            "ok": False,
            "error": exc.code.value,
            "message": exc.message,
            "spoken": safe_spoken(exc),
        },
    )


async def hotel_agent_error_handler(request: Request, exc: HotelAgentError):
    logger.error(f"❌ Unbehandelter Fachfehler {exc.code.value}: {exc.message}")
    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": exc.code.value, "spoken": safe_spoken(exc)},
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={
                "ok": False,
                "error": "route_not_found",
                "path": request.url.path,
                "available_endpoints": AVAILABLE_ENDPOINTS,
                "spoken": ROUTE_NOT_FOUND_SPOKEN,
            },
        )
    if exc.status_code in (401, 503):
        spoken = UNAUTHORIZED_SPOKEN
    elif exc.status_code == 429:
        spoken = RATE_LIMITED_SPOKEN
    else:
        spoken = TECHNICAL_PROBLEM_SPOKEN
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": str(exc.detail), "spoken": spoken},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "ok": False,
            "error": ErrorCode.VALIDATION_ERROR.value,
            "message": "; ".join(
                f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
            ),
            "spoken": ValidationError.default_spoken,
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"💥 Unbehandelter Fehler auf {request.url.path}: {type(exc).__name__}")
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": ErrorCode.INTERNAL_ERROR.value,
            "message": str(exc) if settings.ENVIRONMENT == "dev" else "An error occurred",
            "spoken": TECHNICAL_PROBLEM_SPOKEN,
        },
    )
