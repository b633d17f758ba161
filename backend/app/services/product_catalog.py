"""
backend/app/services/product_catalog.py

Purpose:
    Product id -> credit amount / premium days mapping. The catalog is plain
    configuration (``PRODUCT_CATALOG`` setting) injected into the ledger
    writer, so pricing changes need no code change.

Dependencies:
    - app.models.purchase
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from app.models.purchase import ProductKind, ProductOffer

logger = logging.getLogger("matchcredit.product_catalog")

DEFAULT_PRODUCTS: dict[str, dict[str, Any]] = {
    "credits_5": {"kind": "credits", "amount": 5},
    "credits_10": {"kind": "credits", "amount": 10},
    "credits_25": {"kind": "credits", "amount": 25},
    "credits_50": {"kind": "credits", "amount": 50},
    "premium_monthly": {"kind": "premium", "amount": 30},
    "premium_3months": {"kind": "premium", "amount": 90},
    "premium_yearly": {"kind": "premium", "amount": 365},
}


class ProductCatalog:
    """Immutable product lookup. Unknown or wrong-kind products map to 0."""

    def __init__(self, products: Mapping[str, ProductOffer | Mapping[str, Any]]):
        self._products: dict[str, ProductOffer] = {
            product_id: offer if isinstance(offer, ProductOffer) else ProductOffer.model_validate(offer)
            for product_id, offer in products.items()
        }

    @classmethod
    def from_settings(cls, configured: Mapping[str, Any] | None = None) -> "ProductCatalog":
        if configured:
            logger.info("Using configured product catalog (%d products)", len(configured))
            return cls(configured)
        return cls(DEFAULT_PRODUCTS)

    def credit_amount(self, product_id: str) -> int:
        offer = self._products.get(product_id)
        if offer is None or offer.kind != ProductKind.credits:
            return 0
        return offer.amount

    def premium_days(self, product_id: str) -> int:
        offer = self._products.get(product_id)
        if offer is None or offer.kind != ProductKind.premium:
            return 0
        return offer.amount
