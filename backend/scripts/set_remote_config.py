"""
backend/scripts/set_remote_config.py

Purpose:
    Read, set or clear runtime configuration values in the `remote_config`
    collection (e.g. the API-Football key read by the match pool refresh).

Usage:
    cd backend && python -m scripts.set_remote_config API_FOOTBALL_KEY --show
    cd backend && python -m scripts.set_remote_config API_FOOTBALL_KEY --value <key>
    cd backend && python -m scripts.set_remote_config API_FOOTBALL_KEY --clear
"""

from __future__ import annotations

import argparse
import asyncio

import app.database as _db
from app.utils import utcnow


def _mask(value: str) -> str:
    if len(value) <= 6:
        return "*" * len(value)
    return f"{value[:3]}...{value[-3:]}"


async def _run(key: str, value: str | None, clear: bool) -> int:
    await _db.connect_db()
    try:
        if clear:
            result = await _db.db.remote_config.delete_one({"_id": key})
            print({"ok": True, "key": key, "cleared": bool(result.deleted_count)})
            return 0

        if value is not None:
            await _db.db.remote_config.update_one(
                {"_id": key},
                {"$set": {"value": value, "updated_at": utcnow()}},
                upsert=True,
            )
            print({"ok": True, "key": key, "value": _mask(value)})
            return 0

        doc = await _db.db.remote_config.find_one({"_id": key})
        if not doc:
            print({"ok": False, "key": key, "reason": "not_set"})
            return 1
        print({"ok": True, "key": key, "value": _mask(str(doc.get("value") or ""))})
        return 0
    finally:
        await _db.close_db()


async def main() -> int:
    parser = argparse.ArgumentParser(description="Manage remote_config values.")
    parser.add_argument("key", help="Config key, e.g. API_FOOTBALL_KEY.")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--value", help="Set the value.")
    group.add_argument("--clear", action="store_true", help="Delete the key.")
    group.add_argument("--show", action="store_true", help="Print the masked value (default).")
    args = parser.parse_args()

    return await _run(key=args.key, value=args.value, clear=bool(args.clear))


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
