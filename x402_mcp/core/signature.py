"""Request signing for signed (OKX-style) facilitators.

Every request carries an HMAC-SHA256 signature over
``timestamp + METHOD + request_path + body``, keyed with the API secret and
base64-encoded.
"""

import base64
import hashlib
import hmac
from datetime import datetime, timezone
from typing import Dict, Optional

from ..types import SignedCredentials


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-01T00:00:00.000Z"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sign_request(
    timestamp: str,
    method: str,
    request_path: str,
    body: str,
    secret_key: str
) -> str:
    """Compute the base64 HMAC-SHA256 signature for a request."""
    prehash = f"{timestamp}{method.upper()}{request_path}{body}"
    digest = hmac.new(secret_key.encode("utf-8"), prehash.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def generate_signed_headers(
    method: str,
    request_path: str,
    body: str,
    credentials: SignedCredentials,
    timestamp: Optional[str] = None
) -> Dict[str, str]:
    """Generate authentication headers for a signed facilitator request.

    Args:
        method: HTTP method
        request_path: API path without the base URL, e.g. /api/v6/x402/verify
        body: Exact request body string that will be sent
        credentials: Facilitator API credentials
        timestamp: Override for the request timestamp

    Returns:
        Headers dict including the content type
    """
    timestamp = timestamp or iso_timestamp()
    return {
        "Content-Type": "application/json",
        "OK-ACCESS-KEY": credentials.api_key,
        "OK-ACCESS-SIGN": sign_request(timestamp, method, request_path, body, credentials.secret_key),
        "OK-ACCESS-PASSPHRASE": credentials.passphrase,
        "OK-ACCESS-TIMESTAMP": timestamp,
    }
