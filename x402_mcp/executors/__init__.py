"""Executors that wrap registered tools with x402 payment handling."""

from .base import X402BaseExecutor
from .server import X402ServerExecutor, PaymentOutcome

__all__ = [
    "X402BaseExecutor",
    "X402ServerExecutor",
    "PaymentOutcome"
]
