"""
Guardrails für Eingaben und Ausgaben des Voice-Agenten.

Input:
    - Utterance in einen String umwandeln (Retell schickt manchmal null,
      Zahlen oder Listen)
    - Steuerzeichen und HTML entfernen, Länge begrenzen

Output:
    - Technische Fehler nie an den Anrufer durchreichen, immer einen
      vorlesbaren deutschen Satz liefern
"""
from __future__ import annotations

import logging
import re
from typing import Any

from hotel_agent.core.errors import TECHNICAL_PROBLEM_SPOKEN, HotelAgentError

logger = logging.getLogger(__name__)

# ==================== INPUT GUARDRAILS ====================

MAX_UTTERANCE_LENGTH = 2000

# Felder, in denen Retell/Clients die Äußerung des Anrufers schicken
UTTERANCE_KEYS = (
    "utterance", "text", "message", "query", "user_text", "userMessage",
    "asr_text", "transcript", "user_message",
)

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')
_HTML_TAGS = re.compile(r'<[^>]+>')
_WHITESPACE = re.compile(r'\s+')


def sanitize_text(text: str) -> str:
    """Entfernt Steuerzeichen und HTML-Tags, fasst Leerraum zusammen."""
    text = _CONTROL_CHARS.sub('', text)
    text = _HTML_TAGS.sub('', text)
    text = _WHITESPACE.sub(' ', text)
    return text.strip()


def coerce_utterance(value: Any) -> str:
    """
    Wandelt eine beliebige Eingabe in eine bereinigte Utterance um.

    Args:
        value: Rohwert aus dem Request (str, None, Zahl, ...)

    Returns:
        Bereinigter Text, höchstens MAX_UTTERANCE_LENGTH Zeichen
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        value = " ".join(str(v) for v in value if v is not None)
    elif not isinstance(value, str):
        value = str(value)

    text = sanitize_text(value)
    if len(text) > MAX_UTTERANCE_LENGTH:
        logger.warning(f"✂️ Utterance gekürzt: {len(text)} > {MAX_UTTERANCE_LENGTH} Zeichen")
        text = text[:MAX_UTTERANCE_LENGTH]
    return text


def pick_utterance(body: dict[str, Any]) -> str:
    """Erste nicht-leere Utterance aus den bekannten Feldern."""
    for key in UTTERANCE_KEYS:
        value = body.get(key)
        if value:
            return coerce_utterance(value)
    return ""


def unwrap_tool_args(body: Any) -> dict[str, Any]:
    """
    Retell schickt Funktionsargumente je nach Agent-Version flach oder
    verschachtelt unter "args"/"arguments".
    """
    if not isinstance(body, dict):
        return {}
    for key in ("args", "arguments"):
        nested = body.get(key)
        if isinstance(nested, dict):
            return nested
    return body


# ==================== OUTPUT GUARDRAILS ====================

_TECHNICAL_PATTERNS = [
    re.compile(p, re.IGNORECASE | re.MULTILINE)
    for p in (
        r"Traceback \(most recent call last\):",
        r"File \"[^\"]+\", line \d+",
        r"\b\w+(Error|Exception)\b",
        r"httpx\.",
    )
]


def safe_spoken(exc: BaseException) -> str:
    """
    Vorlesbarer Satz für einen beliebigen Fehler.

    Fachliche Fehler liefern ihren eigenen Satz, alles andere wird auf den
    generischen "technisches Problem"-Satz abgebildet.
    """
    if isinstance(exc, HotelAgentError):
        spoken = exc.spoken
        if not any(p.search(spoken) for p in _TECHNICAL_PATTERNS):
            return spoken
    return TECHNICAL_PROBLEM_SPOKEN
