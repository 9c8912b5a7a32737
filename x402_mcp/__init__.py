"""x402_mcp - x402 payment gating for MCP tools."""

# Wire types, configuration and errors
from .types import (
    X402_VERSION,
    PaymentRequirements,
    x402PaymentRequiredResponse,
    VerifyResponse,
    SettleResponse,
    EIP712Domain,
    ContentBlock,
    ToolResult,

    PaymentState,
    X402Metadata,

    PaymentOption,
    PaymentOptionConfig,
    FacilitatorKind,
    SignedCredentials,
    FacilitatorBinding,
    X402ServerConfig,
    X402Settings,

    X402Error,
    ToolNotFoundError,
    ParameterValidationError,
    ValidationError,
    PaymentError,
    ProofInvalidError,
    NetworkUnsupportedError,
    FacilitatorUnconfiguredError,
    FacilitatorError,
    X402ErrorCode
)

# Core Functions
from .core import (
    create_payment_requirements,
    price_to_atomic_amount,
    decode_payment_proof,
    encode_payment_proof,
    FacilitatorClient,
    FacilitatorGateway,
    ToolDefinition,
    ToolRegistry
)

# Payment middleware
from .executors import (
    X402BaseExecutor,
    X402ServerExecutor,
    PaymentOutcome
)

# MCP binding
from .server import (
    create_paid_mcp_server,
    run_stdio,
    serve_stdio,
    configure_logging
)

__version__ = "1.0.0"

__all__ = [
    # Wire types
    "X402_VERSION",
    "PaymentRequirements",
    "x402PaymentRequiredResponse",
    "VerifyResponse",
    "SettleResponse",
    "EIP712Domain",
    "ContentBlock",
    "ToolResult",

    # States
    "PaymentState",
    "X402Metadata",

    # Configuration
    "PaymentOption",
    "PaymentOptionConfig",
    "FacilitatorKind",
    "SignedCredentials",
    "FacilitatorBinding",
    "X402ServerConfig",
    "X402Settings",

    # Error Types
    "X402Error",
    "ToolNotFoundError",
    "ParameterValidationError",
    "ValidationError",
    "PaymentError",
    "ProofInvalidError",
    "NetworkUnsupportedError",
    "FacilitatorUnconfiguredError",
    "FacilitatorError",
    "X402ErrorCode",

    # Core Functions
    "create_payment_requirements",
    "price_to_atomic_amount",
    "decode_payment_proof",
    "encode_payment_proof",
    "FacilitatorClient",
    "FacilitatorGateway",
    "ToolDefinition",
    "ToolRegistry",

    # Payment middleware
    "X402BaseExecutor",
    "X402ServerExecutor",
    "PaymentOutcome",

    # MCP binding
    "create_paid_mcp_server",
    "run_stdio",
    "serve_stdio",
    "configure_logging"
]
