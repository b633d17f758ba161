"""Purchase verification endpoints: Play credit packs and premium subscriptions."""

from fastapi import APIRouter, Depends, Request

from app.models.purchase import (
    CreditPurchaseResponse,
    PremiumPurchaseResponse,
    PurchaseVerifyRequest,
)
from app.providers.google_play import PlayVerifier
from app.services import purchase_service
from app.services.auth_service import require_user_id
from app.services.ledger_service import LedgerWriter, get_ledger_writer

router = APIRouter(prefix="/api/purchases", tags=["purchases"])


def get_play_verifier(request: Request) -> PlayVerifier:
    """The verifier built once at startup (see app.main lifespan)."""
    return request.app.state.play_verifier


@router.post("/credits", response_model=CreditPurchaseResponse)
async def verify_purchase_and_add_credits(
    body: PurchaseVerifyRequest,
    request: Request,
    user_id: str = Depends(require_user_id),
    verifier: PlayVerifier = Depends(get_play_verifier),
    ledger: LedgerWriter = Depends(get_ledger_writer),
):
    """Verify a one-time credit pack purchase and credit the caller."""
    return await purchase_service.verify_purchase_and_add_credits(
        user_id,
        body.purchase_token,
        body.product_id,
        body.platform,
        verifier=verifier,
        ledger=ledger,
        request=request,
    )


@router.post("/premium", response_model=PremiumPurchaseResponse)
async def verify_purchase_and_set_premium(
    body: PurchaseVerifyRequest,
    request: Request,
    user_id: str = Depends(require_user_id),
    verifier: PlayVerifier = Depends(get_play_verifier),
    ledger: LedgerWriter = Depends(get_ledger_writer),
):
    """Verify a premium subscription purchase and activate premium."""
    return await purchase_service.verify_purchase_and_set_premium(
        user_id,
        body.purchase_token,
        body.product_id,
        body.platform,
        verifier=verifier,
        ledger=ledger,
        request=request,
    )
