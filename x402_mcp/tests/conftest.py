"""Shared pytest fixtures for x402_mcp tests."""

import pytest
from pydantic import BaseModel

from x402_mcp.core import ToolRegistry, encode_payment_proof
from x402_mcp.types import (
    FacilitatorBinding,
    FacilitatorKind,
    PaymentOption,
    PaymentOptionConfig,
    SignedCredentials,
    ToolResult,
    X402ServerConfig
)


RECIPIENT = "0xmerchant0000000000000000000000000000001"


class WeatherParams(BaseModel):
    city: str


async def get_weather(params: WeatherParams, meta) -> ToolResult:
    return ToolResult.from_text(f"Sunny in {params.city}")


@pytest.fixture
def xlayer_option():
    """Payment option served by the signed facilitator."""
    return PaymentOption(
        price="0.01",
        chain_id=196,
        token="0x74b7f16337b8972027f6196a17a631ac6de26d22",
        token_name="USD Coin",
        token_version="2",
        network="xlayer",
    )


@pytest.fixture
def base_sepolia_option():
    """Payment option served by a plain facilitator."""
    return PaymentOption(
        price="0.1",
        chain_id=84532,
        token="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
        token_name="USDC",
        token_version="2",
        network="base-sepolia",
        config=PaymentOptionConfig(description="Weather on Base Sepolia"),
    )


@pytest.fixture
def signed_credentials():
    return SignedCredentials(api_key="key-123", secret_key="secret-456", passphrase="pass-789")


@pytest.fixture
def signed_binding(signed_credentials):
    return FacilitatorBinding(
        url="https://signed.example.com",
        kind=FacilitatorKind.SIGNED,
        credentials=signed_credentials,
    )


@pytest.fixture
def plain_binding():
    return FacilitatorBinding(url="https://facilitator.example.com")


@pytest.fixture
def server_config(signed_binding, plain_binding):
    return X402ServerConfig(
        recipient=RECIPIENT,
        facilitators={"xlayer": signed_binding, "base-sepolia": plain_binding},
        resource_base_url="https://tools.example.com",
    )


@pytest.fixture
def sample_payment_payload():
    """Decoded proof as a wallet would submit it."""
    return {
        "x402Version": 1,
        "scheme": "exact",
        "network": "base-sepolia",
        "payload": {
            "signature": "0x" + "a" * 130,
            "authorization": {
                "from": "0xclient456",
                "to": RECIPIENT,
                "value": "100000",
                "validAfter": "1640995200",
                "validBefore": "1640998800",
                "nonce": "0x" + "1" * 64,
            },
        },
    }


@pytest.fixture
def payment_meta(sample_payment_payload):
    return {"x402.payment": encode_payment_proof(sample_payment_payload)}


@pytest.fixture
def registry(xlayer_option, base_sepolia_option):
    """Registry with one paid and one free tool."""
    tools = ToolRegistry()
    tools.paid_tool(
        "weather",
        "Get current weather",
        [xlayer_option, base_sepolia_option],
        WeatherParams,
        get_weather,
    )
    tools.tool("ping", "Health check", None, lambda params, meta: ToolResult.from_text("pong"))
    return tools
