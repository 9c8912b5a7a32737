"""Core package exports for x402_mcp."""

from .merchant import (
    create_payment_requirements,
    price_to_atomic_amount,
    build_resource_url
)
from .protocol import (
    decode_payment_proof,
    encode_payment_proof,
    find_payment_option
)
from .signature import generate_signed_headers, sign_request
from .facilitator import FacilitatorClient, FacilitatorGateway
from .registry import ToolDefinition, ToolRegistry

__all__ = [
    # Requirement builder
    "create_payment_requirements",
    "price_to_atomic_amount",
    "build_resource_url",

    # Proof handling
    "decode_payment_proof",
    "encode_payment_proof",
    "find_payment_option",

    # Facilitators
    "generate_signed_headers",
    "sign_request",
    "FacilitatorClient",
    "FacilitatorGateway",

    # Registry
    "ToolDefinition",
    "ToolRegistry"
]
