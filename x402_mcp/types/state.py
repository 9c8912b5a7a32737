"""Payment lifecycle states and metadata keys."""

from enum import Enum


class PaymentState(str, Enum):
    """States of the per-call payment lifecycle"""
    NO_PAYMENT_REQUIRED = "no-payment-required"          # Free tool, handler ran directly
    PAYMENT_MISSING = "payment-missing"                  # Challenge returned to caller
    PROOF_INVALID = "proof-invalid"
    NETWORK_UNSUPPORTED = "network-unsupported"
    FACILITATOR_UNCONFIGURED = "facilitator-unconfigured"
    VERIFYING = "verifying"
    VERIFICATION_FAILED = "verification-failed"
    EXECUTING = "executing"
    EXECUTION_FAILED = "execution-failed"                # Handler failed, nothing settled
    SETTLING = "settling"
    SETTLEMENT_FAILED = "settlement-failed"              # Handler succeeded, charge failed
    COMPLETED = "completed"                              # Settled and result returned

    @property
    def is_terminal(self) -> bool:
        return self not in (PaymentState.VERIFYING, PaymentState.EXECUTING, PaymentState.SETTLING)


class X402Metadata:
    """Call and result metadata key constants"""
    PAYMENT_KEY = "x402.payment"                    # Base64 JSON payment proof on the request
    PAYMENT_RESPONSE_KEY = "x402.payment-response"  # Settlement confirmation on the result
