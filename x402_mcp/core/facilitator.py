"""Facilitator gateway: verify and settle payments through external backends.

Two wire formats are supported behind one interface:

- ``plain``: a standard x402 facilitator. POST ``<url>/verify`` or
  ``<url>/settle``, body used as-is in the response.
- ``signed``: HMAC-authenticated backend addressed by chain index. POST
  ``<url>/api/v6/x402/<action>``, response wrapped in ``{code, data, msg}``.
"""

import copy
import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .signature import generate_signed_headers
from ..types import (
    X402_VERSION,
    FacilitatorBinding,
    FacilitatorError,
    FacilitatorKind,
    FacilitatorUnconfiguredError,
    PaymentOption,
    PaymentRequirements,
    SettleResponse,
    VerifyResponse
)


logger = logging.getLogger(__name__)

SIGNED_API_PREFIX = "/api/v6/x402"
DEFAULT_SIGNED_ERROR = "Signed facilitator error"

ResponseT = TypeVar("ResponseT", bound=BaseModel)


def _dumps(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"))


class FacilitatorClient:
    """Client for the facilitator bound to one network."""

    def __init__(
        self,
        binding: FacilitatorBinding,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize facilitator client.

        Args:
            binding: Facilitator URL, kind and credentials
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.binding = binding
        self.timeout = timeout
        self._transport = transport

    async def verify(
        self,
        option: PaymentOption,
        payment_payload: Dict[str, Any],
        requirements: PaymentRequirements
    ) -> VerifyResponse:
        """Ask the facilitator whether the payment satisfies the requirements."""
        result = await self._call("verify", option, payment_payload, requirements)
        return self._normalize("verify", result, VerifyResponse)

    async def settle(
        self,
        option: PaymentOption,
        payment_payload: Dict[str, Any],
        requirements: PaymentRequirements
    ) -> SettleResponse:
        """Ask the facilitator to finalize a verified payment."""
        result = await self._call("settle", option, payment_payload, requirements)
        return self._normalize("settle", result, SettleResponse)

    def build_request_body(
        self,
        option: PaymentOption,
        payment_payload: Dict[str, Any],
        requirements: PaymentRequirements
    ) -> Dict[str, Any]:
        """Shape the POST body for this facilitator kind.

        Signed backends know chains only by index, so ``network`` is removed from
        the payload and requirements and ``chainIndex`` is added at the top level.
        Plain backends get ``network`` set to the matched option's network.
        """
        payload = copy.deepcopy(payment_payload)
        wire_requirements = requirements.to_wire()

        body: Dict[str, Any] = {
            "x402Version": X402_VERSION,
            "paymentPayload": payload,
            "paymentRequirements": wire_requirements,
        }

        if self.binding.kind is FacilitatorKind.SIGNED:
            payload.pop("network", None)
            wire_requirements.pop("network", None)
            body["chainIndex"] = str(option.chain_id)
        else:
            wire_requirements["network"] = option.network

        return body

    def build_request(self, action: str, body: Dict[str, Any]) -> Tuple[str, Dict[str, str], str]:
        """Return the URL, headers and body string for an action."""
        content = _dumps(body)

        if self.binding.kind is FacilitatorKind.SIGNED:
            request_path = f"{SIGNED_API_PREFIX}/{action}"
            headers = generate_signed_headers("POST", request_path, content, self.binding.credentials)
            return f"{self.binding.url}{request_path}", headers, content

        return f"{self.binding.url}/{action}", {"Content-Type": "application/json"}, content

    async def _call(
        self,
        action: str,
        option: PaymentOption,
        payment_payload: Dict[str, Any],
        requirements: PaymentRequirements
    ) -> Dict[str, Any]:
        body = self.build_request_body(option, payment_payload, requirements)
        url, headers, content = self.build_request(action, body)

        logger.info(f"🔍 Calling {self.binding.kind.value} facilitator {action} at {url}")
        logger.debug(f"Facilitator {action} body: {content}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, content=content, headers=headers)
        except httpx.HTTPError as e:
            raise FacilitatorError(f"Facilitator {action} request failed: {e}") from e

        if not response.is_success:
            logger.error(f"❌ Facilitator {action} failed with {response.status_code}: {response.text}")
            raise FacilitatorError(
                f"Facilitator {action} failed: {response.text}",
                status_code=response.status_code,
                raw_message=response.text,
            )

        try:
            result = response.json()
        except ValueError as e:
            raise FacilitatorError(
                f"Facilitator {action} returned an unparseable body: {response.text}",
                status_code=response.status_code,
                raw_message=response.text,
            ) from e

        logger.info(f"✅ Facilitator {action} result: {_dumps(result) if isinstance(result, dict) else result}")

        if self.binding.kind is FacilitatorKind.SIGNED:
            return self._unwrap_envelope(action, result)
        if not isinstance(result, dict):
            raise FacilitatorError(f"Facilitator {action} returned a non-object body: {response.text}")
        return result

    @staticmethod
    def _unwrap_envelope(action: str, result: Any) -> Dict[str, Any]:
        """Unwrap ``{code, data: [...], msg}``; code "0" with data means success."""
        if not isinstance(result, dict):
            raise FacilitatorError(f"Facilitator {action} returned a non-object body")

        data = result.get("data")
        if result.get("code") != "0" or not data:
            message = result.get("msg") or DEFAULT_SIGNED_ERROR
            raise FacilitatorError(message, raw_message=message)

        first = data[0] if isinstance(data, list) else data
        if not isinstance(first, dict):
            raise FacilitatorError(f"Facilitator {action} returned malformed data: {data!r}")
        return first

    @staticmethod
    def _normalize(action: str, result: Dict[str, Any], model: Type[ResponseT]) -> ResponseT:
        try:
            return model.model_validate(result)
        except PydanticValidationError as e:
            raise FacilitatorError(f"Facilitator {action} returned an unexpected response: {result}") from e


class FacilitatorGateway:
    """Routes verify/settle calls to the facilitator bound to each network.

    The binding table is fixed at construction and read-only afterwards.
    """

    def __init__(
        self,
        bindings: Mapping[str, FacilitatorBinding],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._clients: Dict[str, FacilitatorClient] = {
            network: FacilitatorClient(binding, timeout=timeout, transport=transport)
            for network, binding in bindings.items()
        }

    def client_for(self, network: str) -> FacilitatorClient:
        """Return the client for a network.

        Raises:
            FacilitatorUnconfiguredError: If no facilitator is bound to the network
        """
        client = self._clients.get(network)
        if client is None:
            raise FacilitatorUnconfiguredError(network)
        return client

    def binding_for(self, network: str) -> FacilitatorBinding:
        return self.client_for(network).binding

    async def verify(
        self,
        option: PaymentOption,
        payment_payload: Dict[str, Any],
        requirements: PaymentRequirements
    ) -> VerifyResponse:
        return await self.client_for(option.network).verify(option, payment_payload, requirements)

    async def settle(
        self,
        option: PaymentOption,
        payment_payload: Dict[str, Any],
        requirements: PaymentRequirements
    ) -> SettleResponse:
        return await self.client_for(option.network).settle(option, payment_payload, requirements)
