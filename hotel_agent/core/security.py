"""Secret-Header-Prüfung für die /retell/tool-Routen."""
from __future__ import annotations

import logging
import secrets
from typing import Optional

from fastapi import HTTPException, Request

from hotel_agent.core.config import settings

logger = logging.getLogger(__name__)


def extract_tool_secret(request: Request) -> Optional[str]:
    """
    Liest das Secret aus den unterstützten Headern.

    Reihenfolge: Authorization: Bearer <s>, tool-secret, x-tool-secret.
    """
    auth = request.headers.get("authorization", "")
    if auth.startswith("Bearer "):
        return auth[len("Bearer "):].strip()
    for header in ("tool-secret", "x-tool-secret"):
        value = request.headers.get(header)
        if value:
            return value.strip()
    return None


async def require_tool_secret(request: Request) -> None:
    """FastAPI-Dependency: 503 ohne konfiguriertes Secret, 401 bei falschem Secret."""
    expected = settings.TOOL_SECRET
    if not expected:
        logger.error("🔐 TOOL_SECRET nicht konfiguriert")
        raise HTTPException(status_code=503, detail="service_unavailable")

    provided = extract_tool_secret(request)
    if not provided or not secrets.compare_digest(provided.encode(), expected.encode()):
        logger.warning(
            f"🚫 Unautorisierter Zugriff: path={request.url.path} "
            f"ip={request.client.host if request.client else '-'} "
            f"has_bearer={'authorization' in request.headers}"
        )
        raise HTTPException(status_code=401, detail="unauthorized")
