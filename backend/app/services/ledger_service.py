"""Purchase ledger: credit packs and premium entitlements.

Every purchase is applied as ONE MongoDB multi-document transaction:

    1. insert purchase_logs/{purchase_key}   (unique _id = double-spend guard)
    2. update users/{user_id}                (credits added or premium $set)
    3. insert credit_transactions            (immutable ledger entry)

Any failure aborts all three, so an account can never be mutated without its
audit records or vice versa. Requires a replica set / mongos deployment.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from pymongo.errors import DuplicateKeyError

import app.database as _db
from app.config import settings
from app.errors import AlreadyExists, InvalidArgument, NotFound
from app.models.purchase import LedgerEntryType
from app.services.duplicate_guard import purchase_key, token_prefix
from app.services.product_catalog import ProductCatalog
from app.utils import from_epoch_ms, to_epoch_ms, utcnow

logger = logging.getLogger("matchcredit.ledger_service")

DAY_MS = 24 * 60 * 60 * 1000
DEFAULT_PLATFORM = "google_play"


class LedgerWriter:
    """Applies verified purchases to accounts. Pricing comes from ``catalog``."""

    def __init__(self, catalog: ProductCatalog):
        self.catalog = catalog

    def credit_amount(self, product_id: str) -> int:
        return self.catalog.credit_amount(product_id)

    def premium_days(self, product_id: str) -> int:
        return self.catalog.premium_days(product_id)

    async def credit_purchase(
        self, user_id: str, product_id: str, token: str,
        platform: Optional[str] = None,
    ) -> dict:
        """Add the product's credits. Returns {credits_added, new_balance}."""
        amount = self.credit_amount(product_id)
        if amount <= 0:
            raise InvalidArgument("Invalid product ID")

        async def _apply(session) -> dict:
            now = utcnow()
            await _claim_purchase(
                session, token,
                user_id=user_id,
                product_id=product_id,
                credit_amount=amount,
                created_at=now,
                platform=platform or DEFAULT_PLATFORM,
            )
            account = await _db.db.users.find_one_and_update(
                {"_id": user_id},
                # Pipeline update: a missing or null balance counts as 0
                [{"$set": {
                    "credits": {"$add": [{"$ifNull": ["$credits", 0]}, amount]},
                    "updated_at": now,
                }}],
                return_document=True,
                session=session,
            )
            if not account:
                raise NotFound("User not found")
            new_balance = int(account["credits"])
            await _log_ledger_entry(
                session,
                user_id=user_id,
                entry_type=LedgerEntryType.purchase,
                amount=amount,
                balance_after=new_balance,
                description=f"Credit purchase - {product_id}",
                product_id=product_id,
                token=token,
                created_at=now,
            )
            return {"credits_added": amount, "new_balance": new_balance}

        result = await _run_in_transaction(_apply)
        logger.info("Credits added: user=%s amount=%d balance=%d",
                    user_id, amount, result["new_balance"])
        return result

    async def activate_premium(
        self, user_id: str, product_id: str, token: str,
        platform: Optional[str] = None,
    ) -> dict:
        """Activate premium for the product's duration, counted from now.

        An unexpired premium period is replaced, not extended.
        Returns {premium_days, expires_at} with expires_at in epoch ms.
        """
        days = self.premium_days(product_id)
        if days <= 0:
            raise InvalidArgument("Invalid premium product ID")

        async def _apply(session) -> dict:
            now = utcnow()
            expires_at = to_epoch_ms(now) + days * DAY_MS
            await _claim_purchase(
                session, token,
                user_id=user_id,
                product_id=product_id,
                premium_days=days,
                created_at=now,
                platform=platform or DEFAULT_PLATFORM,
            )
            account = await _db.db.users.find_one_and_update(
                {"_id": user_id},
                {"$set": {
                    "is_premium": True,
                    "premium_expires_at": from_epoch_ms(expires_at),
                    "updated_at": now,
                }},
                return_document=True,
                session=session,
            )
            if not account:
                raise NotFound("User not found")
            await _log_ledger_entry(
                session,
                user_id=user_id,
                entry_type=LedgerEntryType.premium,
                amount=0,
                balance_after=int(account.get("credits") or 0),
                description=f"Premium subscription - {days} days",
                product_id=product_id,
                token=token,
                created_at=now,
            )
            return {"premium_days": days, "expires_at": expires_at}

        result = await _run_in_transaction(_apply)
        logger.info("Premium activated: user=%s days=%d expires=%s",
                    user_id, days, from_epoch_ms(result["expires_at"]).isoformat())
        return result


async def _run_in_transaction(callback: Callable[[Any], Awaitable[dict]]) -> dict:
    async with await _db.client.start_session() as session:
        return await session.with_transaction(callback)


async def _claim_purchase(session, token: str, **fields) -> None:
    """Insert the purchase log under its unique key; a second claim fails."""
    doc = {
        "_id": purchase_key(token),
        "purchase_token": token_prefix(token),
        "verified": True,
        **fields,
    }
    try:
        await _db.db.purchase_logs.insert_one(doc, session=session)
    except DuplicateKeyError:
        logger.warning("Duplicate purchase token: user=%s product=%s",
                       fields.get("user_id"), fields.get("product_id"))
        raise AlreadyExists("This purchase has already been used")


async def _log_ledger_entry(
    session, *, user_id: str, entry_type: LedgerEntryType, amount: int,
    balance_after: int, description: str, product_id: str, token: str,
    created_at,
) -> None:
    """Insert an immutable ledger entry."""
    await _db.db.credit_transactions.insert_one({
        "user_id": user_id,
        "type": entry_type.value,
        "amount": amount,
        "balance_after": balance_after,
        "created_at": created_at,
        "description": description,
        "product_id": product_id,
        "purchase_id": token_prefix(token),
        "verified": True,
    }, session=session)


ledger_writer = LedgerWriter(ProductCatalog.from_settings(settings.PRODUCT_CATALOG))


def get_ledger_writer() -> LedgerWriter:
    return ledger_writer
