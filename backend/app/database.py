"""
backend/app/database.py

Purpose:
    MongoDB connection bootstrap and index management for the purchase ledger
    and match pool collections.

Dependencies:
    - motor.motor_asyncio
    - app.config
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.config import settings

client: AsyncIOMotorClient = None
db: AsyncIOMotorDatabase = None

logger = logging.getLogger("matchcredit.database")


async def connect_db() -> None:
    global client, db
    client = AsyncIOMotorClient(
        settings.MONGO_URI,
        maxPoolSize=25,
        minPoolSize=5,
    )
    db = client[settings.MONGO_DB]
    await _ensure_indexes()
    logger.info("Connected to MongoDB database %s", settings.MONGO_DB)


async def close_db() -> None:
    global client
    if client:
        client.close()


async def _ensure_indexes() -> None:
    """Create indexes on startup. Idempotent, safe to run repeatedly."""

    # ---- Purchase ledger ----

    # purchase_logs._id is the hashed token prefix (insert-if-absent claim).
    # This lookup index serves the advisory duplicate pre-check.
    await db.purchase_logs.create_index("purchase_token")
    await db.purchase_logs.create_index([("user_id", 1), ("created_at", -1)])

    await db.credit_transactions.create_index([("user_id", 1), ("created_at", -1)])
    await db.credit_transactions.create_index("purchase_id")

    await db.suspicious_activity.create_index([("user_id", 1), ("created_at", -1)])
    await db.suspicious_activity.create_index([("activity_type", 1), ("created_at", -1)])

    # ---- Match pool ----

    # _id = "{date}/{fixture_id}"
    await db.match_pool.create_index([("date", 1), ("fixture_id", 1)], unique=True)
    await db.match_pool.create_index("timestamp")
    await db.match_pool.create_index("league_id")
