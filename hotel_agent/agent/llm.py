"""
LLM-Orakel für die Slot-Extraktion.

Optionaler zweiter Extraktor hinter dem regelbasierten SlotExtractor.
OpenAI-kompatible Chat-Completions-API über httpx.

Schutzmechanismen:
- Timeout pro Aufruf (LLM_TIMEOUT_SECONDS)
- Semaphore begrenzt parallele Aufrufe
- TTL-Cache pro normalisiertem Text
- Circuit Breaker; ist er offen, bleibt es bei den Regeln
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from datetime import date
from typing import Any, Optional

import httpx

from hotel_agent.agent.date_parser import is_iso_date
from hotel_agent.agent.normalize import normalize_text
from hotel_agent.agent.resilience import CircuitBreaker, TTLCache
from hotel_agent.agent.slot_extractor import slot_extractor
from hotel_agent.core.config import Settings, settings
from hotel_agent.core.errors import UpstreamUnavailable
from hotel_agent.core.trace_logger import trace_logger
from hotel_agent.models.domain import BookingSlots, ParsedDate

logger = logging.getLogger(__name__)

NOTE_LLM = "llm_extracted"

# Systemprompt für die Slot-Extraktion
SLOT_EXTRACTION_PROMPT = """Du extrahierst Buchungsdaten für ein Hotel aus der Äußerung eines Anrufers.

Heute ist {today}. Wenn kein Jahr genannt wird, nimm das nächste passende Datum in der Zukunft.

Extrahiere:
- check_in: Anreisedatum im Format YYYY-MM-DD oder null
- check_out: Abreisedatum im Format YYYY-MM-DD oder null
- adults: Anzahl Erwachsene (Ganzzahl) oder null
- children: Anzahl Kinder (Ganzzahl) oder null

Gib NUR valides JSON ohne Kommentare zurück:
{{"check_in": "2025-10-22", "check_out": "2025-10-24", "adults": 2, "children": 1}}"""


def _strip_markdown(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        content = content.split("```")[1]
        if content.startswith("json"):
            content = content[4:]
    return content.strip()


class LLMSlotOracle:
    """
    Client für das LLM-Orakel.

    Liefert ein dict im Slot-Schema oder wirft UpstreamUnavailable.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or settings
        self.client: Optional[httpx.AsyncClient] = None
        self.cache: TTLCache[dict[str, Any]] = TTLCache(self.config.LLM_CACHE_TTL_SECONDS)
        self.breaker = CircuitBreaker(
            "llm",
            threshold=self.config.LLM_BREAKER_THRESHOLD,
            cooldown_seconds=self.config.LLM_BREAKER_COOLDOWN_SECONDS,
        )
        self._semaphore = asyncio.Semaphore(self.config.LLM_MAX_CONCURRENCY)

    @property
    def enabled(self) -> bool:
        return self.config.llm_configured

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazy-Init des HTTP-Clients."""
        if self.client is None:
            self.client = httpx.AsyncClient(
                base_url=self.config.LLM_BASE_URL,
                timeout=self.config.LLM_TIMEOUT_SECONDS,
            )
        return self.client

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """
        Ein Chat-Completions-Aufruf.

        Args:
            system_prompt: Systemprompt
            user_prompt: Äußerung des Anrufers

        Returns:
            Text der ersten Antwort
        """
        client = await self._get_client()
        payload = {
            "model": self.config.LLM_MODEL,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        headers = {"Authorization": f"Bearer {self.config.LLM_API_KEY}"}
        response = await client.post("/chat/completions", json=payload, headers=headers)
        response.raise_for_status()
        content = response.json()["choices"][0]["message"]["content"]
        # content kann null sein (Refusal, Tool-Call)
        if not isinstance(content, str):
            raise ValueError("empty completion content")
        return content

    async def extract_slots(self, text: str, base_date: Optional[date] = None) -> dict[str, Any]:
        """
        Slots per LLM.

        Raises:
            UpstreamUnavailable: nicht konfiguriert, Circuit offen, Timeout,
                HTTP-Fehler oder unlesbare Antwort
        """
        if not self.enabled:
            raise UpstreamUnavailable("llm", "not configured")

        base = base_date or date.today()
        key = f"{base.isoformat()}|{normalize_text(text)}"
        cached = self.cache.get(key)
        if cached is not None:
            trace_logger.log_upstream_call("llm", "/chat/completions", cached=True)
            return cached

        if not self.breaker.allow():
            raise UpstreamUnavailable("llm", "circuit open")

        started = time.perf_counter()
        try:
            async with self._semaphore:
                content = await asyncio.wait_for(
                    self._call_api(SLOT_EXTRACTION_PROMPT.format(today=base.isoformat()), text),
                    timeout=self.config.LLM_TIMEOUT_SECONDS,
                )
            result = json.loads(_strip_markdown(content))
            if not isinstance(result, dict):
                raise ValueError("oracle returned non-object JSON")
        except (
            httpx.HTTPError, asyncio.TimeoutError, AttributeError, KeyError, IndexError, TypeError, ValueError
        ) as e:
            self.breaker.record_failure()
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.warning(f"⚠️ LLM-Orakel fehlgeschlagen: {type(e).__name__}: {e}")
            trace_logger.log_upstream_call("llm", "/chat/completions", elapsed_ms=elapsed_ms, error=type(e).__name__)
            raise UpstreamUnavailable("llm", type(e).__name__) from e

        self.breaker.record_success()
        self.cache.set(key, result)
        elapsed_ms = (time.perf_counter() - started) * 1000
        trace_logger.log_upstream_call("llm", "/chat/completions", status_code=200, elapsed_ms=elapsed_ms)
        return result

    async def close(self):
        """Schließt den HTTP-Client."""
        if self.client:
            await self.client.aclose()
            self.client = None


def _oracle_date(rule: Optional[ParsedDate], value: Any) -> Optional[ParsedDate]:
    if not is_iso_date(value):
        return rule
    value = value.strip()
    if rule is not None and rule.value == value:
        return rule
    return ParsedDate(value=value, needs_confirmation=True, notes=[NOTE_LLM])


def _oracle_count(value: Any, minimum: int) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        n = int(value)
    except (TypeError, ValueError):
        return None
    return n if n >= minimum else None


def reconcile_slots(rule: BookingSlots, oracle: dict[str, Any]) -> BookingSlots:
    """
    Führt Regel- und Orakel-Ergebnis zusammen.

    Pro Feld gewinnt der Orakelwert, wenn er vorhanden und gültig ist,
    sonst bleibt der Regelwert. Vom Orakel geänderte Daten müssen bestätigt
    werden.
    """
    adults = _oracle_count(oracle.get("adults"), minimum=1)
    children = _oracle_count(oracle.get("children"), minimum=0)

    return BookingSlots(
        check_in=_oracle_date(rule.check_in, oracle.get("check_in")),
        check_out=_oracle_date(rule.check_out, oracle.get("check_out")),
        adults=rule.adults if adults is None else adults,
        children=rule.children if children is None else children,
    )


async def extract_with_oracle(
    text: Any, base_date: Optional[date] = None, oracle: Optional[LLMSlotOracle] = None
) -> tuple[BookingSlots, str]:
    """
    Regelbasierte Extraktion, optional durch das Orakel ergänzt.

    Returns:
        (Slots, Quelle) mit Quelle "rules" oder "rules+llm"
    """
    oracle = oracle or llm_oracle
    rule = slot_extractor.extract(text, base_date)
    if not oracle.enabled:
        return rule, "rules"

    try:
        result = await oracle.extract_slots(str(text or ""), base_date)
    except UpstreamUnavailable as e:
        logger.info(f"🧭 Orakel nicht verfügbar ({e.message}), nur Regeln")
        return rule, "rules"
    except Exception:
        # Das Orakel ist optional; die Regeln tragen die Antwort allein
        logger.exception("❌ Unerwarteter Fehler im LLM-Orakel, nur Regeln")
        return rule, "rules"
    return reconcile_slots(rule, result), "rules+llm"


# Globale Instanz
llm_oracle = LLMSlotOracle()
