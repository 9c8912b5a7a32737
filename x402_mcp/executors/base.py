"""Base executor types and interfaces for x402 payment middleware."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..core.registry import ToolRegistry
from ..types import (
    ToolResult,
    X402Metadata,
    X402ServerConfig
)


class X402BaseExecutor(ABC):
    """Base executor with x402 protocol support."""

    def __init__(
        self,
        registry: ToolRegistry,
        config: X402ServerConfig
    ):
        """Initialize base executor.

        Args:
            registry: Registered tools to dispatch to
            config: Payee and facilitator configuration
        """
        self.registry = registry
        self.config = config

    @staticmethod
    def get_payment_proof(meta: Optional[Dict[str, Any]]) -> Optional[Any]:
        """Return the encoded payment proof from call metadata, if present."""
        if not meta:
            return None
        return meta.get(X402Metadata.PAYMENT_KEY) or None

    @abstractmethod
    async def execute(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None
    ) -> ToolResult:
        """Execute a tool call with x402 payment handling.

        Args:
            name: Tool name
            arguments: Raw tool arguments
            meta: Call metadata (may carry ``x402.payment``)

        Returns:
            The tool result, or an error result describing the payment outcome
        """
        raise NotImplementedError
