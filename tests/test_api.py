"""
API-Tests über den FastAPI TestClient.

Prüft:
1. Health, Root, 404
2. Tool-Secret (Bearer, tool-secret, x-tool-secret, 401, 503)
3. Tool-Routen und Dispatcher
4. Fehlerabbildung (200 mit ok=false, 400, 500)
"""
import os
import sys
from datetime import date, timedelta
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hotel_agent.core.config import settings
from hotel_agent.core.errors import TECHNICAL_PROBLEM_SPOKEN

from conftest import TOOL_SECRET

SCENARIO = "Ich möchte vom 22.10. bis 24.10. für 2 Erwachsene und 1 Kind buchen"


def _future(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


# ==================== TEST 1: Service-Routen ====================

class TestServiceRoutes:

    def test_healthz(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["config"]["hasToolSecret"] is True
        assert TOOL_SECRET not in response.text, "Secret darf nie ausgeliefert werden"

    def test_root(self, client):
        data = client.get("/").json()
        assert data["service"] == settings.APP_NAME
        assert data["health"] == "/healthz"

    def test_request_id_header(self, client):
        response = client.get("/healthz", headers={"X-Request-ID": "call-42"})
        assert response.headers["X-Request-ID"] == "call-42"
        assert client.get("/healthz").headers.get("X-Request-ID")

    def test_unknown_route(self, client):
        response = client.get("/gibt-es-nicht")
        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "route_not_found"
        assert data["path"] == "/gibt-es-nicht"
        assert "POST /retell/tool/quote" in data["available_endpoints"]

    def test_public_ping_and_echo(self, client):
        assert client.get("/retell/public/ping").json()["pong"] is True
        assert client.post("/retell/public/echo", json={"a": 1}).json()["you_sent"] == {"a": 1}

    def test_openapi_documents_error_envelope(self, client):
        schema = client.get("/openapi.json").json()
        assert "ErrorResponse" in schema["components"]["schemas"]
        responses = schema["paths"]["/retell/tool/quote"]["post"]["responses"]
        for status in ("400", "401", "429", "503"):
            assert responses[status]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse"), status
        assert "429" in schema["paths"]["/retell/public/quote"]["post"]["responses"]


# ==================== TEST 2: Tool-Secret ====================

class TestToolSecret:

    def test_missing_secret(self, client):
        response = client.get("/retell/tool/whoami")
        assert response.status_code == 401
        data = response.json()
        assert data["ok"] is False
        assert data["error"] == "unauthorized"
        assert data["spoken"]

    def test_wrong_secret(self, client):
        response = client.get("/retell/tool/whoami", headers={"Authorization": "Bearer falsch"})
        assert response.status_code == 401

    @pytest.mark.parametrize("headers", [
        {"Authorization": f"Bearer {TOOL_SECRET}"},
        {"tool-secret": TOOL_SECRET},
        {"x-tool-secret": TOOL_SECRET},
    ])
    def test_accepted_headers(self, client, headers):
        response = client.get("/retell/tool/whoami", headers=headers)
        assert response.status_code == 200
        assert response.json()["authenticated"] is True

    def test_unconfigured_secret(self, client, monkeypatch, auth_headers):
        monkeypatch.setattr(settings, "TOOL_SECRET", "")
        response = client.get("/retell/tool/whoami", headers=auth_headers)
        assert response.status_code == 503
        assert response.json()["error"] == "service_unavailable"

    def test_public_routes_need_no_secret(self, client):
        response = client.post("/retell/public/extract_core", json={"utterance": "morgen"})
        assert response.status_code == 200


# ==================== TEST 3: Tools ====================

class TestTools:

    def test_extract_core_nested_args(self, client, auth_headers):
        response = client.post(
            "/retell/tool/extract_core",
            json={"args": {"text": SCENARIO, "base_date": "2025-10-01"}},
            headers=auth_headers,
        )
        data = response.json()
        assert response.status_code == 200
        assert data["check_in"] == "2025-10-22"
        assert data["check_out"] == "2025-10-24"
        assert (data["adults"], data["children"]) == (2, 1)
        assert data["source"] == "rules"
        assert data["raw"] == SCENARIO

    def test_extract_core_public(self, client):
        data = client.post(
            "/retell/public/extract_core",
            json={"arguments": {"utterance": SCENARIO, "base_date": "2025-10-01"}},
        ).json()
        assert data["check_in"] == "2025-10-22"
        assert data["source"] == "rules"

    def test_extract_core_empty(self, client, auth_headers):
        data = client.post("/retell/tool/extract_core", json={"text": None}, headers=auth_headers).json()
        assert data["ok"] is True
        assert data["source"] == "empty"
        assert (data["adults"], data["children"]) == (1, 0)

    def test_parse_date(self, client, auth_headers):
        data = client.post(
            "/retell/tool/parse_date",
            json={"text": "nächsten Freitag", "type": "check-in", "base_date": "2025-06-01"},
            headers=auth_headers,
        ).json()
        assert data["date"] == "2025-06-06"
        assert data["needs_confirmation"] is True
        assert data["notes"] == ["weekday_inferred"]

    def test_parse_date_failure_is_ok_false(self, client, auth_headers):
        response = client.post("/retell/tool/parse_date", json={"text": "irgendwann"}, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is False
        assert data["error"] == "date_parse_error"
        assert data["raw"] == "irgendwann"
        assert data["spoken"]

    def test_check_availability(self, client, auth_headers):
        data = client.post(
            "/retell/tool/check_availability",
            json={"from_date": _future(30), "to_date": _future(32), "adults": 2, "children": 1},
            headers=auth_headers,
        ).json()
        assert data["ok"] is True
        assert data["availability_ok"] is True
        assert data["nights"] == 2
        assert data["matching_rooms"][0]["code"] == "DLX"
        assert data["total_guests"] == 3
        assert data["available"] is True
        assert len(data["rooms"]) == len(data["matching_rooms"])
        assert set(data["rooms"][0]) == {"code", "name", "price_per_night", "total_price"}
        assert data["rooms"][0]["code"] == "DLX"
        assert data["rooms"][0]["total_price"] == data["rooms"][0]["price_per_night"] * 2
        assert "spoken" in data

    def test_check_availability_past(self, client, auth_headers):
        response = client.post(
            "/retell/tool/check_availability",
            json={"check_in": "2020-01-10", "check_out": "2020-01-12"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.headers["X-Error-Code"] == "CHECKIN_IN_PAST"
        data = response.json()
        assert data["ok"] is False
        assert data["code"] == "CHECKIN_IN_PAST"

    def test_check_availability_guest_limit(self, client, auth_headers):
        data = client.post(
            "/retell/tool/check_availability",
            json={"check_in": _future(30), "check_out": _future(32), "adults": 11},
            headers=auth_headers,
        ).json()
        assert data["code"] == "NO_ROOMS_AVAILABLE"
        assert data["details"]["reason"] == "guest_limit"

    def test_check_availability_missing_dates(self, client, auth_headers):
        data = client.post("/retell/tool/check_availability", json={}, headers=auth_headers).json()
        assert data["code"] == "MISSING_DATES"

    def test_quote(self, client, auth_headers):
        data = client.post(
            "/retell/tool/quote",
            json={"check_in": "2025-10-22", "check_out": "2025-10-24", "board": "Vollpension", "adults": 2},
            headers=auth_headers,
        ).json()
        assert data["ok"] is True
        assert data["data"]["total_primary"] == 236.0
        assert data["data"]["total_secondary"] == 11328
        assert "236 Euro" in data["spoken"]

    def test_quote_club_care_flag(self, client, auth_headers):
        data = client.post(
            "/retell/tool/quote",
            json={"check_in": "2025-10-22", "check_out": "2025-10-24", "board": "VP", "club_care": "ja"},
            headers=auth_headers,
        ).json()
        assert data["data"]["total_primary"] == 456.0

    def test_public_quote(self, client):
        data = client.post(
            "/retell/public/quote",
            json={"check_in": "2025-10-22", "check_out": "2025-10-24", "board_type": "Vollpension"},
        ).json()
        assert data["data"]["total_primary"] == 236.0

    def test_quote_invalid_dates(self, client, auth_headers):
        response = client.post(
            "/retell/tool/quote",
            json={"check_in": "2025-10-24", "check_out": "2025-10-22"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_dates"

    def test_invalid_json_body(self, client, auth_headers):
        response = client.post(
            "/retell/tool/quote",
            content=b"{kein json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_dates"

    def test_list_rooms(self, client, auth_headers):
        data = client.post("/retell/tool/list_rooms", json={}, headers=auth_headers).json()
        assert data["count"] == 4
        assert data["rooms"][0]["code"] == "STD"
        assert data["rooms"][0]["amenities"] == sorted(data["rooms"][0]["amenities"])

    def test_list_rooms_query(self, client, auth_headers):
        data = client.post("/retell/tool/list_rooms", json={"room": "delux"}, headers=auth_headers).json()
        assert data["count"] == 1
        assert data["rooms"][0]["code"] == "DLX"

        data = client.post("/retell/tool/list_rooms", json={"query": "Baumhaus"}, headers=auth_headers).json()
        assert data["count"] == 0

    def test_commit_booking(self, client, auth_headers):
        data = client.post(
            "/retell/tool/commit_booking",
            json={"email": "Gast@Example.com", "check_in": "2025-10-22", "check_out": "2025-10-24", "adults": 2},
            headers=auth_headers,
        ).json()
        assert data["ok"] is True
        assert data["data"]["booking_id"].startswith("bk_")
        assert data["data"]["source"] == "local"
        assert "gast@example.com" in data["spoken"]

    def test_commit_booking_invalid_email(self, client, auth_headers):
        response = client.post("/retell/tool/commit_booking", json={"email": "kaputt"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_email"

    def test_send_offer(self, client, auth_headers):
        data = client.post(
            "/retell/tool/send_offer",
            json={"email": "gast@example.com", "quote_eur": 236, "quote_try": 11328, "fx": 48},
            headers=auth_headers,
        ).json()
        assert data["data"]["preview"] == "Gesamtpreis: €236.00 (ca. ₺11328)"


# ==================== TEST 4: Dispatcher und 500 ====================

class TestDispatcher:

    def test_dispatch_quote(self, client, auth_headers):
        data = client.post(
            "/retell/tool",
            json={"name": "quote", "arguments": {"check_in": "2025-10-22", "check_out": "2025-10-24",
                                                 "board_type": "Vollpension"}},
            headers=auth_headers,
        ).json()
        assert data["data"]["total_primary"] == 236.0

    def test_dispatch_unknown_tool(self, client, auth_headers):
        response = client.post("/retell/tool", json={"name": "fly_to_moon"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "unknown_tool"

    def test_dispatch_requires_secret(self, client):
        assert client.post("/retell/tool", json={"name": "quote"}).status_code == 401

    def test_unexpected_error_is_500(self, monkeypatch, auth_headers):
        from fastapi.testclient import TestClient

        from hotel_agent.main import app

        monkeypatch.setattr(settings, "TOOL_SECRET", TOOL_SECRET)
        with patch("hotel_agent.api.tools.compute_quote", side_effect=RuntimeError("boom")):
            with TestClient(app, raise_server_exceptions=False) as client:
                response = client.post(
                    "/retell/tool/quote",
                    json={"check_in": "2025-10-22", "check_out": "2025-10-24"},
                    headers=auth_headers,
                )
        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "internal_error"
        assert data["spoken"] == TECHNICAL_PROBLEM_SPOKEN
