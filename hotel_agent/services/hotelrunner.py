"""
HotelRunner Channel-Manager Client.

Nur die Reservierungsanlage wird genutzt. Authentifizierung über die
Query-Parameter token und hr_id. Jeder Fehler wird als UpstreamUnavailable
gemeldet, der Aufrufer fällt dann auf die lokale Buchungsnummer zurück.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

import httpx

from hotel_agent.core.config import Settings, settings
from hotel_agent.core.errors import UpstreamUnavailable
from hotel_agent.core.trace_logger import trace_logger
from hotel_agent.models.domain import Booking

logger = logging.getLogger(__name__)


class HotelRunnerClient:
    """
    Async-Client für die HotelRunner REST API.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or settings
        self.client: Optional[httpx.AsyncClient] = None
        self._semaphore = asyncio.Semaphore(self.config.HOTELRUNNER_MAX_CONCURRENCY)

    @property
    def enabled(self) -> bool:
        return self.config.hotelrunner_configured

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazy-Init des HTTP-Clients."""
        if self.client is None:
            self.client = httpx.AsyncClient(
                base_url=self.config.HOTELRUNNER_BASE_URL,
                timeout=self.config.HOTELRUNNER_TIMEOUT_SECONDS,
            )
        return self.client

    async def _request(self, method: str, endpoint: str, body: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Ein API-Aufruf.

        Args:
            method: HTTP-Methode
            endpoint: Pfad relativ zur Basis-URL, z. B. "reservations"
            body: JSON-Body

        Returns:
            JSON-Antwort als dict

        Raises:
            UpstreamUnavailable: nicht konfiguriert, Timeout, HTTP-Status >= 400
                oder kein JSON-Objekt
        """
        if not self.enabled:
            raise UpstreamUnavailable("hotelrunner", "not configured")

        client = await self._get_client()
        params = {"token": self.config.HOTELRUNNER_API_KEY, "hr_id": self.config.HOTELRUNNER_PROPERTY_ID}
        started = time.perf_counter()
        status_code: Optional[int] = None
        try:
            async with self._semaphore:
                response = await client.request(method, endpoint, params=params, json=body)
            status_code = response.status_code
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError("expected JSON object")
        except (httpx.HTTPError, ValueError) as e:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.error(f"❌ HotelRunner {method} {endpoint} fehlgeschlagen: {type(e).__name__}: {e}")
            trace_logger.log_upstream_call(
                "hotelrunner", endpoint, status_code=status_code, elapsed_ms=elapsed_ms, error=type(e).__name__
            )
            raise UpstreamUnavailable("hotelrunner", f"{method} {endpoint}: {type(e).__name__}") from e

        elapsed_ms = (time.perf_counter() - started) * 1000
        trace_logger.log_upstream_call("hotelrunner", endpoint, status_code=status_code, elapsed_ms=elapsed_ms)
        return data

    async def create_reservation(self, booking: Booking) -> Optional[str]:
        """
        Legt die Reservierung bei HotelRunner an.

        Returns:
            reservation_id von HotelRunner oder None, wenn keine geliefert wurde
        """
        body = {
            "reservation": {
                "guest_email": booking.email,
                "check_in_date": booking.check_in,
                "check_out_date": booking.check_out,
                "adults": booking.adults,
                "children": booking.children,
                "board_type": booking.board_type,
                "extras": [{"type": "club_care", "quantity": 1}] if booking.addon else [],
            }
        }
        data = await self._request("POST", "reservations", body)
        reservation_id = data.get("reservation_id")
        logger.info(f"🏨 HotelRunner Reservierung: {reservation_id}")
        return str(reservation_id) if reservation_id else None

    async def close(self):
        """Schließt den HTTP-Client."""
        if self.client:
            await self.client.aclose()
            self.client = None


# Globale Instanz
hotelrunner_client = HotelRunnerClient()
