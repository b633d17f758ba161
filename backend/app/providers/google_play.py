"""
backend/app/providers/google_play.py

Purpose:
    Server-side Google Play purchase verification (Android Publisher API v3)
    for one-time products and subscriptions.

    ``build_play_verifier()`` is the single initialization step: it loads the
    service account credentials once and returns a ``PlayVerifier`` that the
    app injects into the purchase handlers.

Dependencies:
    - google-auth
    - httpx
"""

import asyncio
import json
import logging
from typing import Any, Optional
from urllib.parse import quote

import google.auth
import httpx
from google.auth.exceptions import DefaultCredentialsError, GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from app.config import Settings, settings

logger = logging.getLogger("matchcredit.google_play")

ANDROID_PUBLISHER_SCOPE = "https://www.googleapis.com/auth/androidpublisher"

# purchases.products: purchaseState 0 = purchased, 1 = canceled, 2 = pending
PURCHASE_STATE_PURCHASED = 0
# purchases.subscriptions: paymentState 0 = pending, 1 = received
PAYMENT_STATE_RECEIVED = 1


class VerifierConfigurationError(RuntimeError):
    """The configured service account blob could not be loaded."""


def load_credentials(service_account_blob: str):
    """Service account credentials from a JSON blob, else application defaults.

    Returns None when no default credentials exist either; every verification
    then reports False. A malformed blob raises VerifierConfigurationError.
    """
    if service_account_blob:
        try:
            info = json.loads(service_account_blob)
            credentials = service_account.Credentials.from_service_account_info(
                info, scopes=[ANDROID_PUBLISHER_SCOPE],
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise VerifierConfigurationError(
                f"Invalid service account credentials: {exc}"
            ) from exc
        logger.info("Service account credentials loaded from GOOGLE_SERVICE_ACCOUNT_KEY")
        return credentials

    logger.warning("No service account key configured, using default credentials")
    try:
        credentials, _ = google.auth.default(scopes=[ANDROID_PUBLISHER_SCOPE])
    except DefaultCredentialsError as exc:
        logger.error("No default Google credentials available: %s", exc)
        return None
    return credentials


class PlayVerifier:
    """Google Play verification client. Never raises from verify_*().

    Every verification sends exactly one request (plain httpx client, no
    circuit breaker).
    """

    def __init__(
        self,
        credentials: Any,
        package_name: str,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 8.0,
    ):
        self._credentials = credentials
        self._package_name = package_name
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def package_name(self) -> str:
        return self._package_name

    async def _access_token(self) -> str:
        if self._credentials is None:
            raise VerifierConfigurationError("Google credentials not configured")
        if not self._credentials.valid:
            # google-auth refresh is blocking (requests transport)
            await asyncio.to_thread(self._credentials.refresh, GoogleAuthRequest())
        return self._credentials.token

    async def _get_purchase(self, kind: str, item_id: str, token: str) -> dict[str, Any]:
        bearer = await self._access_token()
        url = (
            f"{self._base_url}/applications/{quote(self._package_name, safe='')}"
            f"/purchases/{kind}/{quote(item_id, safe='')}/tokens/{quote(token, safe='')}"
        )
        resp = await self._client.get(
            url, headers={"Authorization": f"Bearer {bearer}", "Accept": "application/json"},
        )
        resp.raise_for_status()
        payload = resp.json()
        if not isinstance(payload, dict):
            raise ValueError("Unexpected Android Publisher response shape")
        return payload

    async def verify_one_time_purchase(self, token: str, product_id: str) -> bool:
        """True iff Play reports the one-time product as purchased."""
        logger.info("Verifying purchase for package %s product %s", self._package_name, product_id)
        try:
            payload = await self._get_purchase("products", product_id, token)
        except (httpx.HTTPError, GoogleAuthError, VerifierConfigurationError, ValueError) as exc:
            logger.error("Google Play purchase verification error: %s", exc)
            return False
        state = payload.get("purchaseState")
        is_valid = state == PURCHASE_STATE_PURCHASED
        logger.info("Purchase verification result: %s (purchaseState=%s)", is_valid, state)
        return is_valid

    async def verify_subscription(self, token: str, subscription_id: str) -> bool:
        """True iff Play reports the subscription payment as received."""
        try:
            payload = await self._get_purchase("subscriptions", subscription_id, token)
        except (httpx.HTTPError, GoogleAuthError, VerifierConfigurationError, ValueError) as exc:
            logger.error("Google Play subscription verification error: %s", exc)
            return False
        state = payload.get("paymentState")
        is_valid = state == PAYMENT_STATE_RECEIVED
        logger.info("Subscription verification result: %s (paymentState=%s)", is_valid, state)
        return is_valid

    async def aclose(self) -> None:
        await self._client.aclose()


def build_play_verifier(cfg: Settings = settings) -> PlayVerifier:
    return PlayVerifier(
        credentials=load_credentials(cfg.GOOGLE_SERVICE_ACCOUNT_KEY),
        package_name=cfg.GOOGLE_PLAY_PACKAGE_NAME,
        base_url=cfg.GOOGLE_PLAY_BASE_URL,
        timeout=cfg.GOOGLE_API_TIMEOUT_SECONDS,
    )
