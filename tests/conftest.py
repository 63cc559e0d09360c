"""Gemeinsame Fixtures für die Test-Suite."""
import os
import sys
from datetime import date

import pytest

# Projektwurzel in den PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hotel_agent.core.config import settings
from hotel_agent.core.rate_limit import public_limiter, tool_limiter

TOOL_SECRET = "test-secret"

# Sonntag
BASE_DATE = date(2025, 6, 1)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keine echten Upstreams, kein Trace auf der Platte, leere Rate-Limit-Fenster."""
    monkeypatch.setattr(settings, "LLM_ENABLED", False)
    monkeypatch.setattr(settings, "HOTELRUNNER_ENABLED", False)
    monkeypatch.setattr(settings, "TRACE_LOGS", False)
    monkeypatch.setattr(settings, "LONG_STAY_DISCOUNT_ENABLED", False)
    public_limiter.reset()
    tool_limiter.reset()
    yield


@pytest.fixture
def client(monkeypatch):
    """TestClient mit gesetztem Tool-Secret."""
    from fastapi.testclient import TestClient

    from hotel_agent.main import app

    monkeypatch.setattr(settings, "TOOL_SECRET", TOOL_SECRET)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TOOL_SECRET}"}
