"""Unit tests for x402_mcp.executors.server module."""

import base64
import json

import pytest
from unittest.mock import AsyncMock, Mock

from x402_mcp.core import ToolRegistry, encode_payment_proof
from x402_mcp.executors.server import PaymentOutcome, X402ServerExecutor
from x402_mcp.tests.conftest import WeatherParams
from x402_mcp.types import (
    FacilitatorError,
    ParameterValidationError,
    PaymentState,
    SettleResponse,
    ToolNotFoundError,
    ToolResult,
    VerifyResponse,
    X402ErrorCode,
    X402ServerConfig
)


def _payload(result: ToolResult) -> dict:
    return json.loads(result.content[0].text)


@pytest.fixture
def executor(registry, server_config):
    executor = X402ServerExecutor(registry, server_config)
    executor.facilitator.verify = AsyncMock(return_value=VerifyResponse(is_valid=True, payer="0xclient456"))
    executor.facilitator.settle = AsyncMock(
        return_value=SettleResponse(success=True, tx_hash="0xsuccess123", network="base-sepolia")
    )
    return executor


class TestX402ServerExecutor:
    """Test the payment lifecycle."""

    def test_initialization_builds_gateway(self, registry, server_config):
        executor = X402ServerExecutor(registry, server_config)

        assert executor.registry is registry
        assert executor.config is server_config
        assert executor.facilitator.binding_for("xlayer").kind.value == "signed"

    def test_custom_facilitator(self, registry, server_config):
        gateway = Mock()
        executor = X402ServerExecutor(registry, server_config, gateway)
        assert executor.facilitator is gateway

    @pytest.mark.asyncio
    async def test_unknown_tool(self, executor):
        with pytest.raises(ToolNotFoundError):
            await executor.execute("nonexistent", {})

    @pytest.mark.asyncio
    async def test_free_tool_runs_directly(self, executor):
        outcome = await executor.process("ping", {}, {})

        assert outcome.state is PaymentState.NO_PAYMENT_REQUIRED
        assert outcome.result.content[0].text == "pong"
        executor.facilitator.verify.assert_not_called()
        executor.facilitator.settle.assert_not_called()

    @pytest.mark.asyncio
    async def test_free_tool_result_returned_verbatim(self, server_config):
        returned = ToolResult.from_text("raw", is_error=True)
        tools = ToolRegistry()
        tools.tool("raw", "Raw", None, lambda params, meta: returned)

        result = await X402ServerExecutor(tools, server_config).execute("raw")

        assert result is returned

    @pytest.mark.asyncio
    async def test_free_tool_invalid_arguments(self, server_config):
        tools = ToolRegistry()
        tools.tool("free_weather", "Weather", WeatherParams, lambda params, meta: ToolResult())

        with pytest.raises(ParameterValidationError):
            await X402ServerExecutor(tools, server_config).execute("free_weather", {})

    @pytest.mark.asyncio
    async def test_payment_missing_returns_challenge(self, executor):
        outcome = await executor.process("weather", {"city": "Paris"}, {})

        assert outcome.state is PaymentState.PAYMENT_MISSING
        assert outcome.result.is_error is True

        payload = _payload(outcome.result)
        assert payload["x402Version"] == 1
        assert payload["error"] == "_meta.x402.payment is required"
        assert [a["network"] for a in payload["accepts"]] == ["xlayer", "base-sepolia"]
        assert [a["maxAmountRequired"] for a in payload["accepts"]] == ["10000", "100000"]

        first = payload["accepts"][0]
        assert first["scheme"] == "exact"
        assert first["payTo"] == executor.config.recipient
        assert first["maxTimeoutSeconds"] == 300
        assert first["resource"] == "https://tools.example.com/mcp/tools/weather"
        assert first["mimeType"] == "application/json"
        assert first["description"] == "Get current weather"
        assert first["extra"] == {"name": "USD Coin", "version": "2"}
        assert payload["accepts"][1]["description"] == "Weather on Base Sepolia"

        executor.facilitator.verify.assert_not_called()

    @pytest.mark.asyncio
    async def test_successful_payment_flow(self, executor, payment_meta, sample_payment_payload):
        outcome = await executor.process("weather", {"city": "Paris"}, payment_meta)

        assert isinstance(outcome, PaymentOutcome)
        assert outcome.state is PaymentState.COMPLETED
        assert outcome.settled is True
        assert outcome.result.is_error is False
        assert outcome.result.content[0].text == "Sunny in Paris"
        assert outcome.result.meta["x402.payment-response"] == {"settled": True, "txHash": "0xsuccess123"}

        option, payload, requirements = executor.facilitator.verify.call_args[0]
        assert option.network == "base-sepolia"
        assert payload == sample_payment_payload
        assert requirements.max_amount_required == "100000"

        # settle gets exactly what verify got
        executor.facilitator.settle.assert_called_once_with(option, payload, requirements)

    @pytest.mark.asyncio
    async def test_success_keeps_handler_metadata(self, server_config, base_sepolia_option, payment_meta):
        tools = ToolRegistry()
        handler_result = ToolResult.model_validate({"content": [{"type": "text", "text": "ok"}], "_meta": {"trace": "t-1"}})
        tools.paid_tool("traced", "Traced", [base_sepolia_option], None, lambda params, meta: handler_result)
        executor = X402ServerExecutor(tools, server_config)
        executor.facilitator.verify = AsyncMock(return_value=VerifyResponse(is_valid=True))
        executor.facilitator.settle = AsyncMock(return_value=SettleResponse(success=True, tx_hash="0x1"))

        result = await executor.execute("traced", {}, payment_meta)

        assert result.meta == {"trace": "t-1", "x402.payment-response": {"settled": True, "txHash": "0x1"}}
        assert handler_result.meta == {"trace": "t-1"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("encoded", ["%%%not-base64%%%", base64.b64encode(b"{oops").decode()])
    async def test_proof_invalid(self, executor, encoded):
        outcome = await executor.process("weather", {"city": "Paris"}, {"x402.payment": encoded})

        assert outcome.state is PaymentState.PROOF_INVALID
        assert outcome.result.is_error is True
        payload = _payload(outcome.result)
        assert payload["error"] == "Payment processing error"
        assert payload["code"] == X402ErrorCode.PROOF_INVALID
        assert payload["details"]
        executor.facilitator.verify.assert_not_called()
        executor.facilitator.settle.assert_not_called()

    @pytest.mark.asyncio
    async def test_proof_without_network_never_runs_handler(self, server_config, base_sepolia_option):
        calls = []
        tools = ToolRegistry()
        tools.paid_tool("tracked", "Tracked", [base_sepolia_option], None, lambda params, meta: calls.append(1))
        executor = X402ServerExecutor(tools, server_config)

        meta = {"x402.payment": encode_payment_proof({"scheme": "exact", "payload": {}})}
        outcome = await executor.process("tracked", {}, meta)

        assert outcome.state is PaymentState.PROOF_INVALID
        assert "network" in _payload(outcome.result)["details"]
        assert calls == []

    @pytest.mark.asyncio
    async def test_network_unsupported(self, executor, sample_payment_payload):
        meta = {"x402.payment": encode_payment_proof(dict(sample_payment_payload, network="solana"))}

        outcome = await executor.process("weather", {"city": "Paris"}, meta)

        assert outcome.state is PaymentState.NETWORK_UNSUPPORTED
        payload = _payload(outcome.result)
        assert payload["code"] == X402ErrorCode.NETWORK_UNSUPPORTED
        assert "solana" in payload["details"]
        executor.facilitator.verify.assert_not_called()

    @pytest.mark.asyncio
    async def test_facilitator_unconfigured(self, registry, payment_meta):
        config = X402ServerConfig(recipient="0xseller", facilitators={})
        executor = X402ServerExecutor(registry, config)

        outcome = await executor.process("weather", {"city": "Paris"}, payment_meta)

        assert outcome.state is PaymentState.FACILITATOR_UNCONFIGURED
        payload = _payload(outcome.result)
        assert payload["code"] == X402ErrorCode.FACILITATOR_UNCONFIGURED
        assert payload["details"] == "No facilitator configured for network base-sepolia"

    @pytest.mark.asyncio
    async def test_verification_failed(self, executor, payment_meta):
        executor.facilitator.verify = AsyncMock(return_value=VerifyResponse(is_valid=False, invalid_reason="expired"))

        outcome = await executor.process("weather", {"city": "Paris"}, payment_meta)

        assert outcome.state is PaymentState.VERIFICATION_FAILED
        assert outcome.result.is_error is True
        payload = _payload(outcome.result)
        assert payload["error"] == "Invalid payment"
        assert payload["code"] == X402ErrorCode.VERIFICATION_FAILED
        assert payload["details"] == "expired"
        assert "accepts" not in payload
        executor.facilitator.settle.assert_not_called()

    @pytest.mark.asyncio
    async def test_verification_transport_error(self, executor, payment_meta):
        executor.facilitator.verify = AsyncMock(side_effect=FacilitatorError("Facilitator verify failed: 503"))

        outcome = await executor.process("weather", {"city": "Paris"}, payment_meta)

        assert outcome.state is PaymentState.VERIFICATION_FAILED
        payload = _payload(outcome.result)
        assert payload["error"] == "Payment processing error"
        assert payload["code"] == X402ErrorCode.FACILITATOR_ERROR
        assert payload["details"] == "Facilitator verify failed: 503"
        executor.facilitator.verify.assert_called_once()
        executor.facilitator.settle.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_arguments_after_verification(self, executor, payment_meta):
        with pytest.raises(ParameterValidationError):
            await executor.process("weather", {"town": "Paris"}, payment_meta)

        executor.facilitator.settle.assert_not_called()

    @pytest.mark.asyncio
    async def test_handler_error_result_skips_settlement(self, server_config, base_sepolia_option, payment_meta):
        error_result = ToolResult.from_text("upstream weather API down", is_error=True)
        tools = ToolRegistry()
        tools.paid_tool("flaky", "Flaky", [base_sepolia_option], None, lambda params, meta: error_result)
        executor = X402ServerExecutor(tools, server_config)
        executor.facilitator.verify = AsyncMock(return_value=VerifyResponse(is_valid=True))
        executor.facilitator.settle = AsyncMock()

        outcome = await executor.process("flaky", {}, payment_meta)

        assert outcome.state is PaymentState.EXECUTION_FAILED
        assert outcome.result is error_result
        assert outcome.result.meta is None
        executor.facilitator.settle.assert_not_called()

    @pytest.mark.asyncio
    async def test_handler_exception_skips_settlement(self, server_config, base_sepolia_option, payment_meta):
        def explode(params, meta):
            raise RuntimeError("boom")

        tools = ToolRegistry()
        tools.paid_tool("explode", "Explode", [base_sepolia_option], None, explode)
        executor = X402ServerExecutor(tools, server_config)
        executor.facilitator.verify = AsyncMock(return_value=VerifyResponse(is_valid=True))
        executor.facilitator.settle = AsyncMock()

        outcome = await executor.process("explode", {}, payment_meta)

        assert outcome.state is PaymentState.EXECUTION_FAILED
        payload = _payload(outcome.result)
        assert payload["error"] == "Tool execution failed"
        assert payload["code"] == X402ErrorCode.EXECUTION_FAILED
        assert payload["details"] == "boom"
        executor.facilitator.settle.assert_not_called()

    @pytest.mark.asyncio
    async def test_settlement_failed(self, executor, payment_meta):
        settle_response = SettleResponse(success=False, error_reason="insufficient funds")
        executor.facilitator.settle = AsyncMock(return_value=settle_response)

        outcome = await executor.process("weather", {"city": "Paris"}, payment_meta)

        assert outcome.state is PaymentState.SETTLEMENT_FAILED
        assert outcome.settlement is settle_response
        assert outcome.result.is_error is True
        payload = _payload(outcome.result)
        assert payload["error"] == "Payment settlement failed"
        assert payload["code"] == X402ErrorCode.SETTLEMENT_FAILED
        assert payload["details"] == "insufficient funds"
        assert "Sunny" not in outcome.result.content[0].text
        executor.facilitator.settle.assert_called_once()

    @pytest.mark.asyncio
    async def test_settlement_transport_error(self, executor, payment_meta):
        executor.facilitator.settle = AsyncMock(side_effect=FacilitatorError("Facilitator settle failed: timeout"))

        outcome = await executor.process("weather", {"city": "Paris"}, payment_meta)

        assert outcome.state is PaymentState.SETTLEMENT_FAILED
        payload = _payload(outcome.result)
        assert payload["error"] == "Payment settlement error"
        assert payload["details"] == "Facilitator settle failed: timeout"
        executor.facilitator.settle.assert_called_once()

    @pytest.mark.asyncio
    async def test_verify_execute_settle_order(self, server_config, base_sepolia_option, payment_meta):
        events = []

        async def verify(*args):
            events.append("verify")
            return VerifyResponse(is_valid=True)

        async def settle(*args):
            events.append("settle")
            return SettleResponse(success=True, tx_hash="0x2")

        def handler(params, meta):
            events.append("execute")
            return ToolResult.from_text("done")

        tools = ToolRegistry()
        tools.paid_tool("ordered", "Ordered", [base_sepolia_option], None, handler)
        executor = X402ServerExecutor(tools, server_config)
        executor.facilitator.verify = verify
        executor.facilitator.settle = settle

        await executor.execute("ordered", {}, payment_meta)

        assert events == ["verify", "execute", "settle"]
