"""
backend/tests/test_api_football_provider.py

Purpose:
    API-Football fixture fetch: header auth, normalization into match pool
    records, and graceful degradation to [] on any failure.
"""

from __future__ import annotations

import httpx
import pytest

from app.providers import api_football
from app.providers.api_football import ApiFootballProvider, normalize_fixture


def _raw_fixture(fixture_id: int = 1035, kickoff: str = "2025-01-18T17:00:00+00:00") -> dict:
    return {
        "fixture": {"id": fixture_id, "date": kickoff, "status": {"short": "NS", "long": "Not Started"}},
        "league": {"id": 203, "name": "Süper Lig", "country": "Turkey"},
        "teams": {
            "home": {"id": 994, "name": "Göztepe"},
            "away": {"id": 3603, "name": "Başakşehir "},
        },
    }


class _FakeResponse:
    def __init__(self, payload, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            request = httpx.Request("GET", "https://v3.football.api-sports.io/fixtures")
            raise httpx.HTTPStatusError(
                f"http {self.status_code}", request=request,
                response=httpx.Response(self.status_code, request=request),
            )


class _FakeClient:
    def __init__(self, response=None, exc: Exception | None = None) -> None:
        self._response = response
        self._exc = exc
        self.calls: list[dict] = []

    async def get(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self._exc:
            raise self._exc
        return self._response


def test_normalize_fixture_builds_pool_record():
    record = normalize_fixture(_raw_fixture(), fetched_at_ms=1_700_000_000_000)

    assert record["fixture_id"] == 1035
    assert record["home_team"] == "Goztepe"
    assert record["away_team"] == "Basaksehir"
    assert record["home_team_id"] == 994
    assert record["away_team_id"] == 3603
    assert record["league"] == "Süper Lig"
    assert record["league_id"] == 203
    assert record["date"] == "2025-01-18"
    assert record["time"] == "17:00"
    assert record["timestamp"] == 1737219600000
    assert record["status"] == "NS"
    assert record["home_stats"] is None and record["away_stats"] is None
    assert record["h2h"] == []
    assert record["last_updated"] == 1_700_000_000_000


def test_normalize_fixture_keeps_provider_wall_clock_and_absolute_timestamp():
    record = normalize_fixture(_raw_fixture(kickoff="2025-01-18T20:00:00+03:00"), fetched_at_ms=0)

    assert record["date"] == "2025-01-18"
    assert record["time"] == "20:00"
    assert record["timestamp"] == 1737219600000


@pytest.mark.asyncio
async def test_fetch_fixtures_uses_header_key_and_date_param(monkeypatch):
    provider = ApiFootballProvider()
    fake = _FakeClient(_FakeResponse({"errors": [], "results": 2, "response": [_raw_fixture(1), _raw_fixture(2)]}))
    monkeypatch.setattr(provider, "_client", fake)

    matches = await provider.fetch_fixtures_for_date("secret-key", "2025-01-18")

    assert [m["fixture_id"] for m in matches] == [1, 2]
    call = fake.calls[0]
    assert call["url"].endswith("/fixtures")
    assert call["params"] == {"date": "2025-01-18"}
    assert call["headers"] == {"x-apisports-key": "secret-key"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "client",
    [
        _FakeClient(exc=httpx.ConnectError("boom")),
        _FakeClient(_FakeResponse({}, status_code=500)),
        _FakeClient(_FakeResponse(ValueError("not json"))),
        _FakeClient(_FakeResponse({"response": [{"fixture": {}}]})),
    ],
)
async def test_fetch_fixtures_returns_empty_list_on_any_failure(monkeypatch, client):
    provider = ApiFootballProvider()
    monkeypatch.setattr(provider, "_client", client)

    assert await provider.fetch_fixtures_for_date("k", "2025-01-18") == []


@pytest.mark.asyncio
async def test_fetch_fixtures_with_no_response_key_is_empty(monkeypatch):
    provider = ApiFootballProvider()
    monkeypatch.setattr(provider, "_client", _FakeClient(_FakeResponse({"errors": {"token": "bad key"}})))

    assert await provider.fetch_fixtures_for_date("bad", "2025-01-18") == []
    assert api_football.PROVIDER_NAME == "api_football"
