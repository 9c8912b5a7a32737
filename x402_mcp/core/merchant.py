"""Payment requirements creation functions."""

from decimal import Decimal, InvalidOperation, ROUND_FLOOR, localcontext
from typing import Optional

from ..types import (
    EIP712Domain,
    PaymentOption,
    PaymentRequirements,
    ValidationError,
    DEFAULT_RESOURCE_BASE_URL
)


# Tokens accepted here use six decimal places (USDC convention).
TOKEN_DECIMALS = 6
MAX_TIMEOUT_SECONDS = 300


def price_to_atomic_amount(price: str, decimals: int = TOKEN_DECIMALS) -> str:
    """Converts a decimal price in major units to an integer string of minor units.

    The result is floored, never rounded, so a caller is never asked for more
    than the configured price.

    Raises:
        ValidationError: If the price is not a finite, non-negative decimal
    """
    try:
        value = Decimal(str(price).strip())
    except InvalidOperation:
        raise ValidationError(f"Invalid price: {price!r}")

    if not value.is_finite():
        raise ValidationError(f"Invalid price: {price!r}")
    if value < 0:
        raise ValidationError(f"Price must not be negative: {price!r}")

    # Enough precision that scaling is exact before the floor.
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits) + decimals)
        ctx.rounding = ROUND_FLOOR
        atomic = value.scaleb(decimals).to_integral_value(rounding=ROUND_FLOOR)
    return str(int(atomic))


def build_resource_url(base_url: str, tool_name: str) -> str:
    """Resource identifier advertised for a tool."""
    return f"{base_url.rstrip('/')}/mcp/tools/{tool_name}"


def create_payment_requirements(
    option: PaymentOption,
    tool_name: str,
    pay_to: str,
    fallback_description: str = "",
    resource_base_url: str = DEFAULT_RESOURCE_BASE_URL,
) -> PaymentRequirements:
    """Creates PaymentRequirements for a tool call on one network.

    Args:
        option: Network payment configuration the requirement is built from
        tool_name: Name of the tool being paid for
        pay_to: Address receiving the payment
        fallback_description: Used when the option carries no description
        resource_base_url: Base URL of this server

    Returns:
        PaymentRequirements ready for a challenge or a facilitator call
    """
    description: Optional[str] = option.config.description if option.config else None

    return PaymentRequirements(
        scheme="exact",
        network=option.network,
        max_amount_required=price_to_atomic_amount(option.price),
        pay_to=pay_to,
        asset=option.token,
        max_timeout_seconds=MAX_TIMEOUT_SECONDS,
        resource=build_resource_url(resource_base_url, tool_name),
        mime_type="application/json",
        description=description or fallback_description,
        extra=EIP712Domain(name=option.token_name, version=option.token_version),
    )
