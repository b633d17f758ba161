"""
backend/tests/conftest.py

Purpose:
    Shared pytest bootstrap: import paths for backend modules and the minimal
    environment app.config needs (no .env files, no real MongoDB).
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

_THIS_FILE = Path(__file__).resolve()
_BACKEND_DIR = _THIS_FILE.parents[1]

if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))

os.environ.setdefault("LOAD_LOCAL_ENV", "false")
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGO_DB", "matchcredit_test")
os.environ.setdefault("JWT_SECRET", "test-secret-with-at-least-32-bytes")
os.environ.setdefault("MATCH_POOL_TIMEZONE", "UTC")
