"""Purchase ledger models: accounts, ledger entries, purchase logs, requests."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------- Account ----------

class AccountInDB(BaseModel):
    """users/{user_id}: mutated only by the ledger writer."""
    id: str = Field(alias="_id")
    credits: int = 0
    is_premium: bool = False
    premium_expires_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------- Products ----------

class ProductKind(str, Enum):
    credits = "credits"
    premium = "premium"


class ProductOffer(BaseModel):
    """One catalog entry. ``amount`` is credits for credit packs, days for premium."""
    kind: ProductKind
    amount: int = Field(gt=0)


# ---------- Ledger ----------

class LedgerEntryType(str, Enum):
    purchase = "purchase"
    premium = "premium"


class LedgerEntryInDB(BaseModel):
    """Immutable audit record for every credit or entitlement change."""
    user_id: str
    type: LedgerEntryType
    amount: int
    balance_after: int
    created_at: datetime
    description: str
    product_id: str
    purchase_id: str  # first 50 chars of the purchase token
    verified: bool = True


class PurchaseLogInDB(BaseModel):
    """Immutable purchase record. ``_id`` is the hashed token prefix."""
    id: str = Field(alias="_id")
    user_id: str
    product_id: str
    purchase_token: str  # first 50 chars
    credit_amount: Optional[int] = None
    premium_days: Optional[int] = None
    created_at: datetime
    verified: bool = True
    platform: str = "google_play"


class SuspiciousActivityInDB(BaseModel):
    user_id: str
    activity_type: str
    details: dict[str, Any]
    created_at: datetime
    ip_truncated: Optional[str] = None


# ---------- API ----------

class PurchaseVerifyRequest(BaseModel):
    """Request body for both purchase entry points.

    Fields default to empty so missing values reach the handler and surface as
    ``invalid-argument`` rather than a schema error.
    """
    model_config = ConfigDict(populate_by_name=True)

    purchase_token: str = Field(default="", alias="purchaseToken")
    product_id: str = Field(default="", alias="productId")
    platform: Optional[str] = None


class CreditPurchaseResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    credits_added: int = Field(alias="creditsAdded")
    new_balance: int = Field(alias="newBalance")
    message: str


class PremiumPurchaseResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    premium_days: int = Field(alias="premiumDays")
    expires_at: int = Field(alias="expiresAt")  # epoch ms
    message: str
