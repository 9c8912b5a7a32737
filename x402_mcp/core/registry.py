"""ToolRegistry: registered tools, their parameter contracts and payment options."""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..types import (
    PaymentOption,
    ParameterValidationError,
    ToolNotFoundError,
    ToolResult
)


logger = logging.getLogger(__name__)

HandlerResult = Union[ToolResult, Dict[str, Any]]
ToolHandler = Callable[..., Union[HandlerResult, Awaitable[HandlerResult]]]

EMPTY_INPUT_SCHEMA: Dict[str, Any] = {"type": "object", "properties": {}, "required": []}


@dataclass(frozen=True)
class ToolDefinition:
    """A registered tool.

    A tool with no payment options is free; one or more options make it paid.
    """
    name: str
    description: str
    handler: ToolHandler
    params_model: Optional[Type[BaseModel]] = None
    payment_options: Tuple[PaymentOption, ...] = field(default_factory=tuple)

    @property
    def is_paid(self) -> bool:
        return bool(self.payment_options)

    def input_schema(self) -> Dict[str, Any]:
        """JSON Schema for the tool's arguments."""
        if self.params_model is None:
            return dict(EMPTY_INPUT_SCHEMA)
        schema = self.params_model.model_json_schema()
        schema.setdefault("properties", {})
        schema.setdefault("required", [])
        return schema

    def validate_arguments(self, arguments: Optional[Dict[str, Any]]) -> Optional[BaseModel]:
        """Validate raw call arguments against the parameter contract.

        Raises:
            ParameterValidationError: If the arguments do not fit the contract
        """
        if self.params_model is None:
            return None
        try:
            return self.params_model.model_validate(arguments or {})
        except PydanticValidationError as e:
            raise ParameterValidationError(self.name, str(e)) from e

    async def invoke(self, params: Optional[BaseModel], meta: Dict[str, Any]) -> ToolResult:
        """Run the handler and coerce its return value to a ToolResult."""
        result = self.handler(params, meta)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, ToolResult):
            return result
        return ToolResult.model_validate(result)


class ToolRegistry:
    """Registry of tools, populated once during server setup."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDefinition] = {}

    def register(self, tool: ToolDefinition) -> None:
        """Register a tool definition.

        Raises:
            ValueError: If the name is taken or a network appears twice in the
                tool's payment options
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' already registered")

        networks = [option.network for option in tool.payment_options]
        duplicates = sorted({n for n in networks if networks.count(n) > 1})
        if duplicates:
            raise ValueError(f"Tool '{tool.name}' declares network(s) more than once: {', '.join(duplicates)}")

        self._tools[tool.name] = tool
        logger.info(f"Registered {'paid' if tool.is_paid else 'free'} tool '{tool.name}'")

    def tool(
        self,
        name: str,
        description: str,
        params_model: Optional[Type[BaseModel]],
        handler: ToolHandler
    ) -> ToolDefinition:
        """Register a free tool."""
        definition = ToolDefinition(
            name=name,
            description=description,
            handler=handler,
            params_model=params_model,
        )
        self.register(definition)
        return definition

    def paid_tool(
        self,
        name: str,
        description: str,
        payments: Iterable[PaymentOption],
        params_model: Optional[Type[BaseModel]],
        handler: ToolHandler
    ) -> ToolDefinition:
        """Register a tool that requires payment on one of the given networks."""
        options = tuple(payments)
        if not options:
            raise ValueError(f"Paid tool '{name}' needs at least one payment option")
        definition = ToolDefinition(
            name=name,
            description=description,
            handler=handler,
            params_model=params_model,
            payment_options=options,
        )
        self.register(definition)
        return definition

    def get(self, name: str) -> ToolDefinition:
        """Look up a tool by name.

        Raises:
            ToolNotFoundError: If the tool is not registered
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def list_tools(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
