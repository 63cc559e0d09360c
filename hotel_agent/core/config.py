"""Konfiguration des Hotel-Agent-Backends über Umgebungsvariablen."""
from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Einstellungen der Anwendung.

    Werden aus Umgebungsvariablen oder der Datei .env geladen.
    Alle Geschäftskonstanten (Gästelimit, Preise, Wechselkurs) stehen hier,
    damit es genau einen verbindlichen Regelsatz gibt.
    """

    # Anwendung
    APP_NAME: str = "Retell Hotel Agent"
    APP_VERSION: str = "2.6.0"
    ENVIRONMENT: str = "dev"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    HOTEL_NAME: str = "Erendiz Hotel"

    # API-Server
    HOST: str = "0.0.0.0"
    PORT: int = 10000

    # CORS: "*" oder kommagetrennte Liste von Origins
    CORS_ORIGIN: str = "*"

    # Tool-Routen (Retell schickt das Secret als Header)
    TOOL_SECRET: str = ""

    # LLM-Orakel für die Slot-Extraktion (optional)
    LLM_ENABLED: bool = False
    LLM_API_KEY: str = ""
    LLM_BASE_URL: str = "https://api.openai.com/v1"
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TIMEOUT_SECONDS: float = 5.0
    LLM_MAX_CONCURRENCY: int = 5
    LLM_CACHE_TTL_SECONDS: float = 300.0
    LLM_BREAKER_THRESHOLD: int = 3
    LLM_BREAKER_COOLDOWN_SECONDS: float = 30.0

    # HotelRunner Channel-Manager
    HOTELRUNNER_ENABLED: bool = False
    HOTELRUNNER_API_KEY: str = ""
    HOTELRUNNER_PROPERTY_ID: int = 0
    HOTELRUNNER_BASE_URL: str = "https://app.hotelrunner.com/api/v2/apps/"
    HOTELRUNNER_TIMEOUT_SECONDS: float = 8.0
    HOTELRUNNER_MAX_CONCURRENCY: int = 5

    # Buchungsregeln
    MAX_GUESTS: int = 10
    MAX_NIGHTS: int = 30
    BASE_RATE: Decimal = Decimal("90")
    EXCHANGE_RATE: Decimal = Decimal("48.0")
    ADDON_RATE: Decimal = Decimal("220")
    DEFAULT_BOARD: str = "fruehstueck"
    LONG_STAY_DISCOUNT_ENABLED: bool = False
    LONG_STAY_MIN_NIGHTS: int = 7
    LONG_STAY_DISCOUNT_PERCENT: Decimal = Decimal("10")

    # Datumsparser
    FALLBACK_MIN_YEAR: int = 1900

    # JSONL-Trace der Tool-Aufrufe
    TRACE_LOGS: bool = False
    TRACE_LOG_FILE: str = "logs/tool_calls.jsonl"

    # Rate Limiting pro Client-IP (gleitendes Fenster)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_SECONDS: float = 60.0
    RATE_LIMIT_PUBLIC_MAX: int = 120
    RATE_LIMIT_TOOL_MAX: int = 60

    # Gesamtdauer einer Anfrage, danach 408
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # Prometheus-Metriken unter /metrics
    METRICS_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def cors_origins(self) -> list[str]:
        """CORS-Origins als Liste."""
        if self.CORS_ORIGIN.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGIN.split(",") if o.strip()]

    @property
    def hotelrunner_configured(self) -> bool:
        return bool(self.HOTELRUNNER_ENABLED and self.HOTELRUNNER_API_KEY and self.HOTELRUNNER_PROPERTY_ID)

    @property
    def llm_configured(self) -> bool:
        return bool(self.LLM_ENABLED and self.LLM_API_KEY)


@lru_cache
def get_settings() -> Settings:
    """Einstellungen der Anwendung (gecacht)."""
    return Settings()


settings = get_settings()
