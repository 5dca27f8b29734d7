"""X-API-Key enforcement for the /api/v1 routes.

Keys come from PGF_API_KEYS (comma-separated) and are re-read on every
request, so rotating a key needs no restart. With no keys configured the
check is skipped (dev mode). A missing key and a wrong key are both 403.
"""

import hmac
import logging
import os
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"
FORBIDDEN_DETAIL = "Forbidden: Invalid API Key"

_api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


def configured_keys() -> frozenset[str]:
    raw = os.environ.get("PGF_API_KEYS", "")
    return frozenset(k.strip() for k in raw.split(",") if k.strip())


def key_matches(candidate: str, keys: frozenset[str]) -> bool:
    # Constant-time, and every configured key is compared
    matched = False
    for key in keys:
        matched |= hmac.compare_digest(candidate.encode(), key.encode())
    return matched


def require_api_key(
    api_key: Optional[str] = Security(_api_key_header),
) -> Optional[str]:
    """Router dependency: reject the request unless it carries a known key."""
    keys = configured_keys()
    if not keys:
        logger.warning("PGF_API_KEYS not configured: API key auth disabled (dev mode)")
        return api_key

    if not api_key or not key_matches(api_key, keys):
        logger.info(f"Rejected request: {'missing' if not api_key else 'unknown'} API key")
        raise HTTPException(status_code=403, detail=FORBIDDEN_DETAIL)

    return api_key
