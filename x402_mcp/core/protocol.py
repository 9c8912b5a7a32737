"""Core protocol operations: proof decoding and network matching."""

import base64
import binascii
import json
from typing import Any, Dict, Optional, Sequence

from ..types import (
    NetworkUnsupportedError,
    PaymentOption,
    ProofInvalidError
)


def _b64decode(encoded: str) -> bytes:
    """Standard or URL-safe base64, padding optional."""
    data = encoded.strip().replace("-", "+").replace("_", "/")
    data += "=" * (-len(data) % 4)
    return base64.b64decode(data, validate=True)


def decode_payment_proof(encoded: Any) -> Dict[str, Any]:
    """Decode a base64 JSON payment proof.

    Raises:
        ProofInvalidError: If the proof is not base64 JSON object data or has no network
    """
    if not isinstance(encoded, str):
        raise ProofInvalidError("Payment proof must be a base64 string")

    try:
        raw = _b64decode(encoded)
        decoded = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise ProofInvalidError(f"Could not decode payment proof: {e}") from e

    if not isinstance(decoded, dict):
        raise ProofInvalidError("Payment proof must be a JSON object")
    if not decoded.get("network"):
        raise ProofInvalidError("Payment payload must include 'network' field")
    return decoded


def encode_payment_proof(payload: Dict[str, Any]) -> str:
    """Encode a payment proof for the ``x402.payment`` metadata key."""
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def find_payment_option(
    options: Sequence[PaymentOption],
    network: str
) -> PaymentOption:
    """Return the first option whose network equals ``network``.

    Raises:
        NetworkUnsupportedError: If no option matches
    """
    match: Optional[PaymentOption] = next((o for o in options if o.network == network), None)
    if match is None:
        raise NetworkUnsupportedError(network)
    return match
