"""Purchase verification flows: Play verification, duplicate check, ledger write.

Both flows share one shape:

    identity -> input -> Play verification -> duplicate pre-check
    -> product lookup -> ledger transaction

Typed ``ServiceError``s pass through unchanged. Anything else is recorded as
suspicious activity and re-raised as ``Internal`` with the original message.
"""

import logging
from typing import Optional

from fastapi import Request

from app.errors import AlreadyExists, Internal, InvalidArgument, ServiceError, Unauthenticated
from app.providers.google_play import PlayVerifier
from app.services.duplicate_guard import is_duplicate
from app.services.ledger_service import LedgerWriter
from app.services.suspicious_activity_service import log_suspicious_activity

logger = logging.getLogger("matchcredit.purchase_service")

# Only this much of a token goes into suspicious activity details.
_LOGGED_TOKEN_CHARS = 20


def _require_identity(user_id: Optional[str]) -> str:
    if not user_id:
        raise Unauthenticated("Could not verify sign-in. Please sign in again.")
    return user_id


def _require_input(token: str, product_id: str) -> None:
    if not token or not product_id:
        raise InvalidArgument("purchaseToken and productId are required")


async def verify_purchase_and_add_credits(
    user_id: Optional[str],
    token: str,
    product_id: str,
    platform: Optional[str],
    *,
    verifier: PlayVerifier,
    ledger: LedgerWriter,
    request: Optional[Request] = None,
) -> dict:
    """Verify a one-time Play purchase and credit the account."""
    user_id = _require_identity(user_id)
    _require_input(token, product_id)
    logger.info(
        "Credit purchase request: user=%s product=%s platform=%s token_len=%d",
        user_id, product_id, platform or "android", len(token),
    )

    try:
        if not await verifier.verify_one_time_purchase(token, product_id):
            await log_suspicious_activity(user_id, "invalid_purchase", {
                "product_id": product_id,
                "purchase_token": token[:_LOGGED_TOKEN_CHARS],
            }, request=request)
            raise InvalidArgument("Purchase could not be verified")

        if await is_duplicate(token):
            logger.warning("Duplicate purchase: user=%s product=%s", user_id, product_id)
            raise AlreadyExists("This purchase has already been used")

        if ledger.credit_amount(product_id) == 0:
            raise InvalidArgument("Invalid product ID")

        result = await ledger.credit_purchase(user_id, product_id, token, platform)
    except ServiceError:
        raise
    except Exception as exc:
        raise await _internal_failure(
            user_id, "purchase_error", product_id, exc, request, "Purchase processing failed",
        ) from exc

    credits = result["credits_added"]
    return {
        "success": True,
        "creditsAdded": credits,
        "newBalance": result["new_balance"],
        "message": f"{credits} credits added to your account",
    }


async def verify_purchase_and_set_premium(
    user_id: Optional[str],
    token: str,
    product_id: str,
    platform: Optional[str],
    *,
    verifier: PlayVerifier,
    ledger: LedgerWriter,
    request: Optional[Request] = None,
) -> dict:
    """Verify a Play subscription and activate premium on the account."""
    user_id = _require_identity(user_id)
    _require_input(token, product_id)
    logger.info(
        "Premium purchase request: user=%s product=%s platform=%s",
        user_id, product_id, platform or "android",
    )

    try:
        if not await verifier.verify_subscription(token, product_id):
            await log_suspicious_activity(user_id, "invalid_premium_purchase", {
                "product_id": product_id,
                "purchase_token": token[:_LOGGED_TOKEN_CHARS],
            }, request=request)
            raise InvalidArgument("Purchase could not be verified")

        if await is_duplicate(token):
            logger.warning("Duplicate premium purchase: user=%s product=%s", user_id, product_id)
            raise AlreadyExists("This purchase has already been used")

        if ledger.premium_days(product_id) == 0:
            raise InvalidArgument("Invalid premium product ID")

        result = await ledger.activate_premium(user_id, product_id, token, platform)
    except ServiceError:
        raise
    except Exception as exc:
        raise await _internal_failure(
            user_id, "premium_purchase_error", product_id, exc, request, "Premium activation failed",
        ) from exc

    days = result["premium_days"]
    return {
        "success": True,
        "premiumDays": days,
        "expiresAt": result["expires_at"],
        "message": f"{days}-day premium membership activated",
    }


async def _internal_failure(
    user_id: str, activity_type: str, product_id: str, exc: Exception,
    request: Optional[Request], summary: str,
) -> Internal:
    """Record an unexpected fault as suspicious activity and build the Internal error."""
    logger.exception("%s for user=%s", summary, user_id)
    await log_suspicious_activity(user_id, activity_type, {
        "product_id": product_id,
        "error": str(exc),
    }, request=request)
    return Internal(f"{summary}: {exc}")
