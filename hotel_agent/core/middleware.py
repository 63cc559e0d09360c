"""
HTTP-Middleware der Anwendung.

- RequestContextMiddleware: X-Request-ID pro Anfrage (übernommen oder neu),
  Dauer im Debug-Log
- RequestTimeoutMiddleware: bricht Anfragen nach REQUEST_TIMEOUT_SECONDS ab
  und antwortet mit 408
"""
import asyncio
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from hotel_agent.core.config import settings

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SPOKEN = "Das hat leider zu lange gedauert. Bitte versuchen Sie es gleich noch einmal."


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
        return response


class RequestTimeoutMiddleware:
    """
    Zeitlimit für die gesamte Anfrage.

    Reine ASGI-Middleware, damit der Abbruch die Route selbst trifft. Hat die
    Antwort schon begonnen, wird der Timeout weitergereicht statt eine
    zweite Antwort zu senden.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http" or settings.REQUEST_TIMEOUT_SECONDS <= 0:
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message):
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(
                self.app(scope, receive, send_wrapper),
                timeout=settings.REQUEST_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            if response_started:
                raise
            logger.warning(f"⏱️ Timeout nach {settings.REQUEST_TIMEOUT_SECONDS}s: {scope.get('path')}")
            response = JSONResponse(
                status_code=408,
                content={"ok": False, "error": "request_timeout", "spoken": REQUEST_TIMEOUT_SPOKEN},
            )
            await response(scope, receive, send)
