"""
backend/app/config.py

Purpose:
    Central settings loading for the purchase and match pool services.

Dependencies:
    - pydantic-settings
    - pathlib
"""

import os
from pathlib import Path

from pydantic_settings import BaseSettings

# Prefer backend/.env, fallback to project-root .env.
# LOAD_LOCAL_ENV=false skips both (hosted deployments inject env vars).
_BACKEND_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
_ROOT_ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"


def _env_files() -> tuple[str, ...]:
    raw = os.environ.get("LOAD_LOCAL_ENV", "true").strip().lower()
    if raw in ("0", "false", "no", "off"):
        return ()
    return (str(_BACKEND_ENV_FILE), str(_ROOT_ENV_FILE))


class Settings(BaseSettings):
    MONGO_URI: str
    MONGO_DB: str = "matchcredit"
    JWT_SECRET: str
    JWT_SECRET_OLD: str = ""  # Set during rotation; cleared after token expiry
    BACKEND_CORS_ORIGINS: str = "http://localhost:5173"

    # Google Play purchase verification
    GOOGLE_SERVICE_ACCOUNT_KEY: str = ""  # Service account JSON; empty = default credentials
    GOOGLE_PLAY_PACKAGE_NAME: str = "com.aisporanaliz.app"
    GOOGLE_PLAY_BASE_URL: str = "https://androidpublisher.googleapis.com/androidpublisher/v3"
    GOOGLE_API_TIMEOUT_SECONDS: float = 8.0

    # Product pricing: {"credits_5": {"kind": "credits", "amount": 5}, ...}
    # Empty = built-in catalog.
    PRODUCT_CATALOG: dict[str, dict] = {}

    # API-Football (fixture source)
    API_FOOTBALL_BASE_URL: str = "https://v3.football.api-sports.io"
    API_FOOTBALL_TIMEOUT_SECONDS: float = 15.0

    # Match pool
    MATCH_POOL_TIMEZONE: str = ""  # Empty = server local time
    MATCH_POOL_FETCH_DELAY_SECONDS: float = 0.5
    MATCH_POOL_RETENTION_HOURS: int = 3
    MATCH_POOL_REFRESH_HOURS: int = 6
    MATCH_POOL_AUTO_REFRESH: bool = False

    model_config = {
        "env_file": _env_files(),
        "extra": "ignore",
    }


settings = Settings()
