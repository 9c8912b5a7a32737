"""Configuration types for x402_mcp."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .messages import BaseCompatibleModel


DEFAULT_RESOURCE_BASE_URL = "http://localhost:3000"
DEFAULT_FACILITATOR_TIMEOUT = 30.0


class PaymentOptionConfig(BaseModel):
    """Optional per-network description and metadata."""
    description: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PaymentOption(BaseCompatibleModel):
    """How a tool can be paid for on one settlement network."""
    model_config = ConfigDict(frozen=True)

    price: str                       # Major units of the token, e.g. "0.01"
    chain_id: int
    token: str                       # Token contract address
    token_name: str                  # EIP-712 domain name, e.g. "USD Coin"
    token_version: str               # EIP-712 domain version
    network: str                     # e.g. "xlayer", "base-sepolia"
    config: Optional[PaymentOptionConfig] = None


class FacilitatorKind(str, Enum):
    """Wire format spoken by a facilitator backend"""
    SIGNED = "signed"   # HMAC-signed requests, chainIndex addressing, {code, data} envelope
    PLAIN = "plain"     # Standard x402 facilitator


class SignedCredentials(BaseModel):
    """API credentials for a signed facilitator."""
    api_key: str
    secret_key: str
    passphrase: str

    def __repr__(self) -> str:
        return f"SignedCredentials(api_key={self.api_key!r}, secret_key='***', passphrase='***')"


class FacilitatorBinding(BaseModel):
    """Facilitator endpoint used for one network."""
    url: str
    kind: FacilitatorKind = FacilitatorKind.PLAIN
    credentials: Optional[SignedCredentials] = None

    @model_validator(mode="after")
    def _require_credentials(self) -> "FacilitatorBinding":
        if self.kind is FacilitatorKind.SIGNED and self.credentials is None:
            raise ValueError("Signed facilitators require credentials")
        self.url = self.url.rstrip("/")
        return self


class X402ServerConfig(BaseModel):
    """Configuration for how a server expects to be paid"""
    recipient: str
    facilitators: Dict[str, FacilitatorBinding] = Field(default_factory=dict)
    resource_base_url: str = DEFAULT_RESOURCE_BASE_URL
    facilitator_timeout: float = DEFAULT_FACILITATOR_TIMEOUT


class X402Settings(BaseSettings):
    """Process environment configuration (``X402_MCP_*`` variables or ``.env``).

    ``X402_MCP_FACILITATORS`` holds a JSON object mapping network names to
    facilitator bindings.
    """
    model_config = SettingsConfigDict(
        env_prefix="X402_MCP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    url: str = DEFAULT_RESOURCE_BASE_URL
    recipient: str = ""
    facilitators: Dict[str, FacilitatorBinding] = Field(default_factory=dict)
    facilitator_timeout: float = DEFAULT_FACILITATOR_TIMEOUT
    log_level: str = "INFO"

    def to_server_config(self) -> X402ServerConfig:
        """Build server config from the loaded settings.

        Raises:
            ValueError: If no recipient address is configured
        """
        if not self.recipient:
            raise ValueError("X402_MCP_RECIPIENT environment variable is required")
        return X402ServerConfig(
            recipient=self.recipient,
            facilitators=self.facilitators,
            resource_base_url=self.url,
            facilitator_timeout=self.facilitator_timeout,
        )
