"""Append-only log of suspicious purchase activity.

Entries are insert-only. This module exposes NO update or delete operations on
the suspicious_activity collection.
"""

import logging
from typing import Any, Optional

from fastapi import Request

import app.database as _db
from app.utils import utcnow

logger = logging.getLogger("matchcredit.suspicious_activity")


def _truncate_ip(ip: str) -> str:
    """Anonymize an IP address by replacing the last segment.

    IPv4: 192.168.1.42  -> 192.168.1.xxx
    IPv6: 2001:db8::1   -> 2001:db8::xxx
    """
    if not ip:
        return ""

    if "." in ip:
        parts = ip.split(".")
        if len(parts) == 4:
            parts[-1] = "xxx"
            return ".".join(parts)
        return ip

    if ":" in ip:
        head, _, _ = ip.rpartition(":")
        return f"{head}:xxx"

    return ip


def _get_client_ip(request: Optional[Request]) -> str:
    """Client IP, preferring X-Forwarded-For (behind a proxy)."""
    if request is None:
        return ""

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return ""


async def log_suspicious_activity(
    user_id: str,
    activity_type: str,
    details: dict[str, Any],
    request: Optional[Request] = None,
) -> None:
    """Insert one suspicious activity record.

    Args:
        user_id: Authenticated caller.
        activity_type: e.g. "invalid_purchase", "purchase_error".
        details: Free-form context (product id, truncated token, error text).
        request: Optional request for the truncated client IP.
    """
    doc = {
        "user_id": user_id,
        "activity_type": activity_type,
        "details": details,
        "created_at": utcnow(),
        "ip_truncated": _truncate_ip(_get_client_ip(request)) or None,
    }

    try:
        await _db.db.suspicious_activity.insert_one(doc)
    except Exception:
        # Logging the suspicion must never mask the caller's real error
        logger.exception(
            "Failed to write suspicious activity: user=%s type=%s", user_id, activity_type,
        )
        return

    logger.warning("Suspicious activity: user=%s type=%s details=%s", user_id, activity_type, details)
