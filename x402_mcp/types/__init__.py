"""Types package for x402_mcp - wire models, configuration, states and errors."""

from .messages import (
    X402_VERSION,
    PAYMENT_REQUIRED_ERROR,
    BaseCompatibleModel,
    EIP712Domain,
    PaymentRequirements,
    x402PaymentRequiredResponse,
    VerifyResponse,
    SettleResponse,
    ContentBlock,
    ToolResult
)

from .state import (
    PaymentState,
    X402Metadata
)

from .errors import (
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

from .config import (
    DEFAULT_RESOURCE_BASE_URL,
    PaymentOption,
    PaymentOptionConfig,
    FacilitatorKind,
    SignedCredentials,
    FacilitatorBinding,
    X402ServerConfig,
    X402Settings
)

__all__ = [

    "X402_VERSION",
    "PAYMENT_REQUIRED_ERROR",
    "BaseCompatibleModel",
    "EIP712Domain",
    "PaymentRequirements",
    "x402PaymentRequiredResponse",
    "VerifyResponse",
    "SettleResponse",
    "ContentBlock",
    "ToolResult",

    "PaymentState",
    "X402Metadata",

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

    "DEFAULT_RESOURCE_BASE_URL",
    "PaymentOption",
    "PaymentOptionConfig",
    "FacilitatorKind",
    "SignedCredentials",
    "FacilitatorBinding",
    "X402ServerConfig",
    "X402Settings"
]
