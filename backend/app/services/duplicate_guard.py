"""Purchase token duplicate detection.

``purchase_logs`` holds one document per purchase token prefix, keyed by
``purchase_key(token)``. Inserting that key inside the ledger transaction is
the authoritative double-spend guard; ``is_duplicate`` is the cheap advisory
lookup used before any work is done.
"""

import hashlib

import app.database as _db

TOKEN_PREFIX_LENGTH = 50


def token_prefix(token: str) -> str:
    """The stored form of a purchase token: its first 50 characters."""
    return token[:TOKEN_PREFIX_LENGTH]


def purchase_key(token: str) -> str:
    """Unique purchase_logs _id for a token (SHA-256 of the stored prefix)."""
    return hashlib.sha256(token_prefix(token).encode("utf-8")).hexdigest()


async def is_duplicate(token: str) -> bool:
    """True if a purchase log already exists for this token prefix."""
    doc = await _db.db.purchase_logs.find_one(
        {"purchase_token": token_prefix(token)},
        {"_id": 1},
    )
    return doc is not None
