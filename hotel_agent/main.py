"""
Retell Hotel Agent: Einstiegspunkt der FastAPI-Anwendung.

Start:
    uvicorn hotel_agent.main:app --reload

Oder:
    python -m hotel_agent.main
"""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from hotel_agent.agent.llm import llm_oracle
from hotel_agent.api.endpoints.public import router as public_router
from hotel_agent.api.endpoints.tool import router as tool_router
from hotel_agent.core.config import settings
from hotel_agent.core.errors import BusinessRuleViolation, DateParseError, HotelAgentError, ValidationError
from hotel_agent.core.exceptions import (
    business_rule_handler,
    date_parse_error_handler,
    hotel_agent_error_handler,
    http_exception_handler,
    request_validation_handler,
    unhandled_exception_handler,
    validation_error_handler,
)
from hotel_agent.core.metrics import MetricsMiddleware, render_metrics
from hotel_agent.core.middleware import RequestContextMiddleware, RequestTimeoutMiddleware
from hotel_agent.models.schemas import HealthResponse
from hotel_agent.services.hotelrunner import hotelrunner_client

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle der Anwendung.

    Startup: Konfiguration protokollieren
    Shutdown: HTTP-Clients schließen
    """
    logger.info(f"🚀 Start {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")
    logger.info(f"📍 Server: http://{settings.HOST}:{settings.PORT}")
    logger.info(
        f"⚙️ toolSecret={'ja' if settings.TOOL_SECRET else 'nein'} "
        f"llm={settings.llm_configured} hotelrunner={settings.hotelrunner_configured}"
    )

    yield

    await llm_oracle.close()
    await hotelrunner_client.close()
    logger.info("👋 Server gestoppt")


app = FastAPI(
    title=settings.APP_NAME,
    description="""
## Tool-Backend für einen deutschsprachigen Hotel-Voice-Agenten (Retell + HotelRunner)

### Funktionen:
- 📅 **Slot-Extraktion** aus gesprochenem Deutsch (Daten, Erwachsene, Kinder)
- 🏨 **Verfügbarkeit** mit Geschäftsregeln und Zimmerkatalog
- 💶 **Angebot** in EUR und TRY
- 📝 **Buchung** mit HotelRunner-Anbindung
    """,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Reihenfolge von innen nach außen: Timeout, Metriken, Request-ID, CORS
app.add_middleware(RequestTimeoutMiddleware)
if settings.METRICS_ENABLED:
    app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Fehler → JSON mit spoken-Satz (siehe core/exceptions.py)
app.add_exception_handler(DateParseError, date_parse_error_handler)
app.add_exception_handler(BusinessRuleViolation, business_rule_handler)
app.add_exception_handler(ValidationError, validation_error_handler)
app.add_exception_handler(HotelAgentError, hotel_agent_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.get("/", tags=["root"])
async def root():
    """Service-Info."""
    return {
        "ok": True,
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "hotel": settings.HOTEL_NAME,
        "docs": "/docs",
        "health": "/healthz",
    }


@app.get("/healthz", tags=["health"], response_model=HealthResponse)
async def healthz():
    """
    Health-Check für Monitoring und Load Balancer.

    Zeigt nur, ob Integrationen konfiguriert sind, nie ihre Secrets.
    """
    return HealthResponse(
        ok=True,
        service=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime_seconds=int(time.monotonic() - _STARTED_AT),
        config={
            "port": settings.PORT,
            "hasToolSecret": bool(settings.TOOL_SECRET),
            "llmEnabled": settings.LLM_ENABLED,
            "hasLlmKey": bool(settings.LLM_API_KEY),
            "hotelRunnerEnabled": settings.HOTELRUNNER_ENABLED,
        },
    )


@app.get("/metrics", tags=["health"], include_in_schema=False)
async def metrics():
    """Prometheus-Metriken (Textformat)."""
    return render_metrics()


app.include_router(tool_router)
app.include_router(public_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hotel_agent.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
