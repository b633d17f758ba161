import logging
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import InvalidTokenError as JWTError

from app.config import settings
from app.errors import Unauthenticated

logger = logging.getLogger("matchcredit.auth")

ALGORITHM = "HS256"

_bearer = HTTPBearer(auto_error=False)


def decode_jwt(token: str) -> dict:
    """Decode a JWT, trying the current secret first, then the old one.

    This allows zero-downtime rotation of JWT_SECRET:
    1. Set JWT_SECRET to the new value and JWT_SECRET_OLD to the previous one.
    2. Once all tokens signed with the old secret have expired, remove
       JWT_SECRET_OLD from .env.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        if settings.JWT_SECRET_OLD:
            return jwt.decode(token, settings.JWT_SECRET_OLD, algorithms=[ALGORITHM])
        raise


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[str]:
    """Caller identity from the Bearer token ``sub`` claim.

    Returns None for a missing or invalid token. Handlers decide whether an
    anonymous caller is acceptable.
    """
    if credentials is None or not credentials.credentials:
        return None
    try:
        payload = decode_jwt(credentials.credentials)
    except JWTError as exc:
        logger.info("Rejected bearer token: %s", exc)
        return None
    user_id = payload.get("sub")
    return str(user_id) if user_id else None


async def require_user_id(
    user_id: Optional[str] = Depends(get_current_user_id),
) -> str:
    """Caller identity or ``Unauthenticated``.

    Resolved as a route dependency, so an anonymous request is rejected before
    its body is validated.
    """
    if not user_id:
        raise Unauthenticated("Could not verify sign-in. Please sign in again.")
    return user_id
