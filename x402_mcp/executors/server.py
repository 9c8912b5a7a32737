"""Server-side executor: payment lifecycle for paid tools."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .base import X402BaseExecutor
from ..core import (
    FacilitatorGateway,
    ToolDefinition,
    ToolRegistry,
    create_payment_requirements,
    decode_payment_proof,
    find_payment_option
)
from ..types import (
    X402_VERSION,
    FacilitatorUnconfiguredError,
    NetworkUnsupportedError,
    PaymentError,
    PaymentOption,
    PaymentRequirements,
    PaymentState,
    ProofInvalidError,
    SettleResponse,
    ToolResult,
    VerifyResponse,
    X402ErrorCode,
    X402Metadata,
    X402ServerConfig,
    x402PaymentRequiredResponse
)


logger = logging.getLogger(__name__)

INVALID_PAYMENT = "Invalid payment"
PAYMENT_PROCESSING_ERROR = "Payment processing error"
EXECUTION_FAILED = "Tool execution failed"
SETTLEMENT_FAILED = "Payment settlement failed"
SETTLEMENT_ERROR = "Payment settlement error"

_PRECHECK_STATES = {
    ProofInvalidError: PaymentState.PROOF_INVALID,
    NetworkUnsupportedError: PaymentState.NETWORK_UNSUPPORTED,
    FacilitatorUnconfiguredError: PaymentState.FACILITATOR_UNCONFIGURED,
}


@dataclass
class PaymentOutcome:
    """Terminal state of one call and the result handed back to the caller."""
    state: PaymentState
    result: ToolResult
    settlement: Optional[SettleResponse] = None

    @property
    def settled(self) -> bool:
        return self.state is PaymentState.COMPLETED


class X402ServerExecutor(X402BaseExecutor):
    """Payment middleware for registered tools.

    Paid tools go through verify → execute → settle. Settlement is attempted at
    most once and only after the handler returned a non-error result. Nothing
    is retried; any failure is terminal for the call.

    Example:
        registry = ToolRegistry()
        registry.paid_tool("weather", "Get weather", [option], WeatherParams, get_weather)
        executor = X402ServerExecutor(registry, config)
        result = await executor.execute("weather", {"city": "Paris"}, meta)
    """

    def __init__(
        self,
        registry: ToolRegistry,
        config: X402ServerConfig,
        facilitator: Optional[FacilitatorGateway] = None
    ):
        """Initialize server executor.

        Args:
            registry: Registered tools
            config: Payee and facilitator configuration
            facilitator: Optional gateway; built from ``config.facilitators`` if omitted
        """
        super().__init__(registry, config)
        self.facilitator = facilitator or FacilitatorGateway(
            config.facilitators, timeout=config.facilitator_timeout
        )

    async def verify_payment(
        self,
        option: PaymentOption,
        payment_payload: Dict[str, Any],
        requirements: PaymentRequirements
    ) -> VerifyResponse:
        """Verifies the payment with the network's facilitator."""
        return await self.facilitator.verify(option, payment_payload, requirements)

    async def settle_payment(
        self,
        option: PaymentOption,
        payment_payload: Dict[str, Any],
        requirements: PaymentRequirements
    ) -> SettleResponse:
        """Settles the payment with the network's facilitator."""
        return await self.facilitator.settle(option, payment_payload, requirements)

    async def execute(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None
    ) -> ToolResult:
        """Payment middleware: verify → execute tool → settle."""
        outcome = await self.process(name, arguments, meta)
        return outcome.result

    async def process(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None
    ) -> PaymentOutcome:
        """Run one call through the payment lifecycle.

        Raises:
            ToolNotFoundError: If the tool is not registered
            ParameterValidationError: If the arguments do not fit the tool's contract
        """
        meta = meta or {}
        tool = self.registry.get(name)

        if not tool.is_paid:
            params = tool.validate_arguments(arguments)
            result = await tool.invoke(params, meta)
            return PaymentOutcome(PaymentState.NO_PAYMENT_REQUIRED, result)

        encoded_proof = self.get_payment_proof(meta)
        if encoded_proof is None:
            logger.info(f"💳 Payment required for tool '{tool.name}'")
            return PaymentOutcome(PaymentState.PAYMENT_MISSING, self.create_payment_required_result(tool))

        return await self._process_paid_request(tool, encoded_proof, arguments, meta)

    def build_requirements(self, tool: ToolDefinition, option: PaymentOption) -> PaymentRequirements:
        return create_payment_requirements(
            option,
            tool.name,
            pay_to=self.config.recipient,
            fallback_description=tool.description,
            resource_base_url=self.config.resource_base_url,
        )

    def create_payment_required_result(self, tool: ToolDefinition) -> ToolResult:
        """Challenge listing one payment requirement per accepted network."""
        payment_required = x402PaymentRequiredResponse(
            x402_version=X402_VERSION,
            accepts=[self.build_requirements(tool, option) for option in tool.payment_options],
        )
        return ToolResult.from_json(
            payment_required.model_dump(by_alias=True, exclude_none=True),
            is_error=True,
        )

    async def _process_paid_request(
        self,
        tool: ToolDefinition,
        encoded_proof: Any,
        arguments: Optional[Dict[str, Any]],
        meta: Dict[str, Any]
    ) -> PaymentOutcome:
        """Process paid request: verify → execute → settle."""
        try:
            payment_payload = decode_payment_proof(encoded_proof)
            option = find_payment_option(tool.payment_options, payment_payload["network"])
            self.facilitator.binding_for(option.network)
        except PaymentError as e:
            logger.warning(f"Rejected payment for tool '{tool.name}': {e.message}")
            return self._fail_payment(_PRECHECK_STATES[type(e)], PAYMENT_PROCESSING_ERROR, e.code, e.message)

        requirements = self.build_requirements(tool, option)

        logger.info(f"✅ Received payment payload on '{option.network}'. Verifying for tool '{tool.name}'")
        try:
            verify_response = await self.verify_payment(option, payment_payload, requirements)
        except Exception as e:
            logger.error(f"Exception during payment verification: {e}", exc_info=True)
            return self._fail_payment(
                PaymentState.VERIFICATION_FAILED,
                PAYMENT_PROCESSING_ERROR,
                X402ErrorCode.FACILITATOR_ERROR,
                str(e),
            )

        if not verify_response.is_valid:
            logger.warning(f"Payment verification failed: {verify_response.invalid_reason}")
            return self._fail_payment(
                PaymentState.VERIFICATION_FAILED,
                INVALID_PAYMENT,
                X402ErrorCode.VERIFICATION_FAILED,
                verify_response.invalid_reason or "Payment verification failed",
            )

        logger.info("Payment verified successfully. Executing tool...")
        params = tool.validate_arguments(arguments)
        try:
            result = await tool.invoke(params, meta)
        except Exception as e:
            logger.error(f"Exception during tool execution: {e}", exc_info=True)
            return self._fail_payment(
                PaymentState.EXECUTION_FAILED,
                EXECUTION_FAILED,
                X402ErrorCode.EXECUTION_FAILED,
                str(e),
            )

        if result.is_error:
            logger.info(f"❌ Tool '{tool.name}' reported an error, not settling payment")
            return PaymentOutcome(PaymentState.EXECUTION_FAILED, result)

        logger.info("💰 Settling payment...")
        try:
            settle_response = await self.settle_payment(option, payment_payload, requirements)
        except Exception as e:
            logger.error(f"Exception during settlement: {e}", exc_info=True)
            return self._fail_payment(
                PaymentState.SETTLEMENT_FAILED,
                SETTLEMENT_ERROR,
                X402ErrorCode.FACILITATOR_ERROR,
                str(e),
            )

        if not settle_response.success:
            logger.warning(f"Settlement failed: {settle_response.error_reason}")
            outcome = self._fail_payment(
                PaymentState.SETTLEMENT_FAILED,
                SETTLEMENT_FAILED,
                X402ErrorCode.SETTLEMENT_FAILED,
                settle_response.error_reason or "Settlement unsuccessful",
            )
            outcome.settlement = settle_response
            return outcome

        logger.info(f"✅ Payment settled successfully: {settle_response.tx_hash}")
        return PaymentOutcome(
            PaymentState.COMPLETED,
            self._record_payment_success(result, settle_response),
            settle_response,
        )

    @staticmethod
    def _record_payment_success(result: ToolResult, settle_response: SettleResponse) -> ToolResult:
        """Copy of the tool result with the settlement confirmation in its metadata."""
        meta = dict(result.meta or {})
        meta[X402Metadata.PAYMENT_RESPONSE_KEY] = {
            "settled": True,
            "txHash": settle_response.tx_hash,
        }
        return result.model_copy(update={"meta": meta})

    @staticmethod
    def _fail_payment(state: PaymentState, error: str, code: str, details: str) -> PaymentOutcome:
        """Handle payment failure."""
        failure = ToolResult.from_json(
            {
                "x402Version": X402_VERSION,
                "error": error,
                "code": code,
                "details": details,
            },
            is_error=True,
        )
        return PaymentOutcome(state, failure)
