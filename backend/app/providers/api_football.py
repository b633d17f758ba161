"""
backend/app/providers/api_football.py

Purpose:
    Adapter for API-Football (api-sports.io) daily fixture lists, normalized
    into match pool FixtureRecord dicts.

Dependencies:
    - app.providers.http_client
    - app.services.team_name_normalizer
    - app.utils
"""

import logging
from typing import Any

import httpx

from app.config import settings
from app.providers.http_client import ResilientClient
from app.services.team_name_normalizer import clean_team_name
from app.utils import parse_utc, to_epoch_ms, utcnow

logger = logging.getLogger("matchcredit.api_football")

PROVIDER_NAME = "api_football"


def normalize_fixture(raw: dict[str, Any], fetched_at_ms: int) -> dict[str, Any]:
    """Map one API-Football fixture onto the match pool record shape.

    The kickoff string is split as delivered ("2025-01-18T17:00:00+03:00"):
    ``date``/``time`` keep the provider's local wall clock, ``timestamp`` is
    the absolute instant.
    """
    fixture = raw["fixture"]
    teams = raw["teams"]
    league = raw["league"]
    kickoff = str(fixture["date"])
    day, _, clock = kickoff.partition("T")

    return {
        "fixture_id": int(fixture["id"]),
        "home_team": clean_team_name(teams["home"]["name"]),
        "away_team": clean_team_name(teams["away"]["name"]),
        "home_team_id": teams["home"].get("id"),
        "away_team_id": teams["away"].get("id"),
        "league": league["name"],
        "league_id": int(league["id"]),
        "date": day,
        "time": clock[:5],
        "timestamp": to_epoch_ms(parse_utc(kickoff)),
        "status": (fixture.get("status") or {}).get("short"),
        "home_stats": None,
        "away_stats": None,
        "h2h": [],
        "last_updated": fetched_at_ms,
    }


class ApiFootballProvider:
    """API-Football client for the match pool refresh."""

    def __init__(self):
        self._client = ResilientClient(
            PROVIDER_NAME, timeout=settings.API_FOOTBALL_TIMEOUT_SECONDS,
        )
        self._base_url = settings.API_FOOTBALL_BASE_URL.rstrip("/")

    @property
    def circuit_open(self) -> bool:
        return self._client.circuit.is_open

    async def fetch_fixtures_for_date(self, api_key: str, date: str) -> list[dict[str, Any]]:
        """All fixtures on ``date`` (YYYY-MM-DD). Any failure yields []."""
        try:
            resp = await self._client.get(
                f"{self._base_url}/fixtures",
                params={"date": date},
                headers={"x-apisports-key": api_key},
            )
            resp.raise_for_status()
            payload = resp.json()
            fixtures = payload.get("response") or []
            fetched_at = to_epoch_ms(utcnow())
            matches = [normalize_fixture(raw, fetched_at) for raw in fixtures]
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.error("Fixture fetch for %s failed: %s", date, exc)
            return []

        errors = payload.get("errors")
        if errors:
            # API-Football reports quota/auth problems in-band with HTTP 200.
            logger.warning("API-Football reported errors for %s: %s", date, errors)
        logger.info("API-Football: %d fixtures on %s", len(matches), date)
        return matches

    async def aclose(self) -> None:
        await self._client.aclose()


api_football_provider = ApiFootballProvider()
