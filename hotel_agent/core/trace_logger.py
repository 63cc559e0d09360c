"""
Trace-Logger für Tool-Aufrufe und Upstream-Calls.

Wird über TRACE_LOGS=1 eingeschaltet und schreibt Ereignisse als JSONL
in TRACE_LOG_FILE (Standard: logs/tool_calls.jsonl).

Verwendung:
    from hotel_agent.core.trace_logger import trace_logger

    trace_logger.log_tool_call(
        request_id="3f2a...",
        tool="check_availability",
        params={"check_in": "2025-10-20", "check_out": "2025-10-22"},
        ok=True,
        elapsed_ms=3.1,
    )

    trace_logger.log_upstream_call(
        upstream="hotelrunner",
        endpoint="reservations",
        status_code=201,
        elapsed_ms=412.0,
    )
"""
from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from hotel_agent.core.config import settings

logger = logging.getLogger(__name__)


class TraceLogger:
    """
    JSONL-Logger für die Fehlersuche in Anrufen.

    Threadsicher. Schreibt nur, wenn eingeschaltet.
    """

    # Schlüssel, deren Werte maskiert werden
    SENSITIVE_FIELDS = {
        "token", "api_key", "apikey", "secret", "password",
        "authorization", "tool_secret", "tool-secret",
    }

    def __init__(self, enabled: Optional[bool] = None, log_file: Optional[str] = None):
        self._lock = threading.Lock()
        self._enabled = enabled
        self._log_file = Path(log_file) if log_file else None

    @property
    def enabled(self) -> bool:
        if self._enabled is None:
            self._enabled = settings.TRACE_LOGS
        return self._enabled

    @property
    def log_file(self) -> Path:
        if self._log_file is None:
            self._log_file = Path(settings.TRACE_LOG_FILE)
        self._log_file.parent.mkdir(parents=True, exist_ok=True)
        return self._log_file

    def _sanitize_params(self, params: Optional[dict[str, Any]]) -> dict[str, Any]:
        """
        Maskiert geheime Felder rekursiv.

        Args:
            params: Ursprüngliche Parameter

        Returns:
            Kopie mit maskierten Geheimnissen
        """
        if not params:
            return {}

        sanitized: dict[str, Any] = {}
        for key, value in params.items():
            key_lower = str(key).lower()
            if any(s in key_lower for s in self.SENSITIVE_FIELDS):
                sanitized[key] = "***MASKED***"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_params(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    self._sanitize_params(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                sanitized[key] = value
        return sanitized

    def _write_event(self, event: dict[str, Any]) -> None:
        if not self.enabled:
            return

        event.setdefault("timestamp", datetime.now(timezone.utc).isoformat())

        try:
            with self._lock:
                with open(self.log_file, "a", encoding="utf-8") as f:
                    f.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")
        except OSError as e:
            # Ein kaputter Trace darf keinen Anruf abbrechen
            logger.warning(f"[TRACE] Schreiben fehlgeschlagen: {e}")

    def log_tool_call(
        self,
        tool: str,
        request_id: Optional[str] = None,
        params: Optional[dict] = None,
        ok: bool = True,
        elapsed_ms: Optional[float] = None,
        code: Optional[str] = None,
        extra: Optional[dict] = None,
    ) -> None:
        """
        Protokolliert einen Tool-Aufruf des Voice-Agenten.

        Args:
            tool: Name des Tools (extract_core, quote, ...)
            request_id: X-Request-ID des HTTP-Requests
            params: Eingabeparameter (werden maskiert)
            ok: Ergebnis erfolgreich?
            elapsed_ms: Laufzeit in ms
            code: Fehlercode bei ok=False
            extra: Zusätzliche Daten
        """
        if not self.enabled:
            return

        event: dict[str, Any] = {"type": "tool_call", "tool": tool, "ok": ok}
        if request_id:
            event["request_id"] = request_id
        if params:
            event["params"] = self._sanitize_params(params)
        if elapsed_ms is not None:
            event["elapsed_ms"] = round(elapsed_ms, 2)
        if code:
            event["code"] = code
        if extra:
            event["extra"] = self._sanitize_params(extra)

        self._write_event(event)

    def log_upstream_call(
        self,
        upstream: str,
        endpoint: str,
        status_code: Optional[int] = None,
        elapsed_ms: Optional[float] = None,
        error: Optional[str] = None,
        cached: bool = False,
    ) -> None:
        """Protokolliert einen Aufruf an HotelRunner oder das LLM-Orakel."""
        if not self.enabled:
            return

        event: dict[str, Any] = {"type": "upstream_call", "upstream": upstream, "endpoint": endpoint}
        if status_code is not None:
            event["status_code"] = status_code
        if elapsed_ms is not None:
            event["elapsed_ms"] = round(elapsed_ms, 2)
        if error:
            event["error"] = error[:500]
        if cached:
            event["cached"] = True

        self._write_event(event)


# Globale Instanz
trace_logger = TraceLogger()
