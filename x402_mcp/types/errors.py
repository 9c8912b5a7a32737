"""Protocol error types and error code mapping."""

from typing import Optional


class X402Error(Exception):
    """Base error for x402 MCP payments."""
    pass


class ToolNotFoundError(X402Error):
    """Raised when a requested tool is not registered.

    Attributes:
        tool_name: Name of the tool that was not found
    """

    def __init__(self, tool_name: str):
        super().__init__(f"Tool not found: {tool_name}")
        self.tool_name = tool_name


class ParameterValidationError(X402Error):
    """Tool arguments do not satisfy the tool's parameter contract."""

    def __init__(self, tool_name: str, reason: str):
        super().__init__(f"Invalid arguments for tool '{tool_name}': {reason}")
        self.tool_name = tool_name
        self.reason = reason


class ValidationError(X402Error):
    """Payment configuration validation errors (e.g. a malformed price)."""
    pass


class X402ErrorCode:
    """Machine-readable codes carried in payment failure results."""
    PROOF_INVALID = "PROOF_INVALID"
    NETWORK_UNSUPPORTED = "NETWORK_UNSUPPORTED"
    FACILITATOR_UNCONFIGURED = "FACILITATOR_UNCONFIGURED"
    FACILITATOR_ERROR = "FACILITATOR_ERROR"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    EXECUTION_FAILED = "EXECUTION_FAILED"
    SETTLEMENT_FAILED = "SETTLEMENT_FAILED"

    @classmethod
    def get_all_codes(cls) -> list[str]:
        """Returns all defined error codes."""
        return [
            cls.PROOF_INVALID,
            cls.NETWORK_UNSUPPORTED,
            cls.FACILITATOR_UNCONFIGURED,
            cls.FACILITATOR_ERROR,
            cls.VERIFICATION_FAILED,
            cls.EXECUTION_FAILED,
            cls.SETTLEMENT_FAILED,
        ]


class PaymentError(X402Error):
    """Payment processing errors.

    Every subclass maps to a terminal payment state. The executor catches these
    and turns them into error-flagged tool results instead of letting them reach
    the transport.
    """
    code = X402ErrorCode.FACILITATOR_ERROR

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ProofInvalidError(PaymentError):
    """The submitted payment proof could not be decoded or lacks a network."""
    code = X402ErrorCode.PROOF_INVALID


class NetworkUnsupportedError(PaymentError):
    """The proof names a network the tool does not accept."""
    code = X402ErrorCode.NETWORK_UNSUPPORTED

    def __init__(self, network: str):
        super().__init__(f"Network '{network}' is not an accepted payment option")
        self.network = network


class FacilitatorUnconfiguredError(PaymentError):
    """No facilitator binding exists for the selected network."""
    code = X402ErrorCode.FACILITATOR_UNCONFIGURED

    def __init__(self, network: str):
        super().__init__(f"No facilitator configured for network {network}")
        self.network = network


class FacilitatorError(PaymentError):
    """A facilitator call failed at the transport or envelope level.

    Attributes:
        status_code: HTTP status returned by the facilitator, if any
        raw_message: Body text or envelope message reported by the backend
    """
    code = X402ErrorCode.FACILITATOR_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        raw_message: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.raw_message = raw_message if raw_message is not None else message

