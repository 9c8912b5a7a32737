"""Wire models exchanged with callers and facilitators."""

import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


X402_VERSION = 1
PAYMENT_REQUIRED_ERROR = "_meta.x402.payment is required"


class BaseCompatibleModel(BaseModel):
    """Base model accepting both snake_case and camelCase field names."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class EIP712Domain(BaseCompatibleModel):
    """Token domain the facilitator needs to check an EIP-712 signature."""
    name: str
    version: str


class PaymentRequirements(BaseCompatibleModel):
    """Machine-readable description of a payment that satisfies a call."""
    scheme: Literal["exact"] = "exact"
    network: Optional[str] = None
    max_amount_required: str
    pay_to: str
    asset: str
    max_timeout_seconds: int = 300
    resource: str
    mime_type: str = "application/json"
    description: str = ""
    extra: EIP712Domain

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class x402PaymentRequiredResponse(BaseCompatibleModel):
    """Challenge returned when a paid tool is called without payment."""
    x402_version: int = X402_VERSION
    error: str = PAYMENT_REQUIRED_ERROR
    accepts: List[PaymentRequirements]


class VerifyResponse(BaseCompatibleModel):
    """Normalized facilitator verification result."""
    model_config = ConfigDict(extra="allow")

    is_valid: bool
    invalid_reason: Optional[str] = None
    payer: Optional[str] = None


class SettleResponse(BaseCompatibleModel):
    """Normalized facilitator settlement result.

    Standard facilitators report the hash as ``transaction``; the signed backend
    uses ``txHash``. Both land in ``tx_hash``.
    """
    model_config = ConfigDict(extra="allow")

    success: bool
    tx_hash: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("txHash", "tx_hash", "transaction"),
    )
    error_reason: Optional[str] = None
    network: Optional[str] = None
    payer: Optional[str] = None


class ContentBlock(BaseCompatibleModel):
    """A single piece of tool output."""
    type: Literal["text", "image", "resource"] = "text"
    text: Optional[str] = None
    data: Optional[str] = None
    mime_type: Optional[str] = None
    resource: Optional[Dict[str, Any]] = None


class ToolResult(BaseCompatibleModel):
    """Result of a tool call: content blocks, error flag and free-form metadata."""
    content: List[ContentBlock] = Field(default_factory=list)
    is_error: bool = False
    meta: Optional[Dict[str, Any]] = Field(default=None, alias="_meta")

    @classmethod
    def from_text(cls, text: str, is_error: bool = False) -> "ToolResult":
        return cls(content=[ContentBlock(type="text", text=text)], is_error=is_error)

    @classmethod
    def from_json(cls, payload: Dict[str, Any], is_error: bool = False) -> "ToolResult":
        return cls.from_text(json.dumps(payload), is_error=is_error)

    def json_payload(self) -> Optional[Dict[str, Any]]:
        """Parse the first text block as JSON, if possible."""
        for block in self.content:
            if block.type == "text" and block.text is not None:
                try:
                    return json.loads(block.text)
                except ValueError:
                    return None
        return None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
