"""Match pool models: cached fixtures and refresh metadata."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class FixtureRecord(BaseModel):
    """match_pool/{date}/{fixture_id}. Overwritten on every refresh."""
    fixture_id: int
    home_team: str
    away_team: str
    home_team_id: Optional[int] = None
    away_team_id: Optional[int] = None
    league: str
    league_id: int
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    timestamp: int  # kickoff, epoch ms
    status: str
    # Filled by the stats/H2H enrichment jobs, not by the pool refresh.
    home_stats: Optional[dict[str, Any]] = None
    away_stats: Optional[dict[str, Any]] = None
    h2h: list[dict[str, Any]] = []
    last_updated: int  # epoch ms

    @property
    def pool_key(self) -> str:
        return f"{self.date}/{self.fixture_id}"


class PoolMetadataInDB(BaseModel):
    """Singleton summary of the last refresh (_id = "poolMetadata")."""
    last_update: datetime
    total_matches: int
    leagues: list[int]
    league_count: int
    next_update: int  # epoch ms, advisory


class PoolRefreshResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    total_matches: int = Field(alias="totalMatches")
    leagues: int
    timestamp: str  # ISO-8601
