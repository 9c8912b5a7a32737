"""MCP server binding for paid tools.

Example:
    def setup_tools(tools: ToolRegistry) -> None:
        tools.paid_tool("weather", "Get weather", [xlayer_usdc], WeatherParams, get_weather)
        tools.tool("ping", "Health check", None, ping)

    anyio.run(serve_stdio, setup_tools, {"name": "weather", "version": "1.0.0"})
"""

import logging
import sys
from typing import Any, Callable, Dict, Mapping, Optional

import mcp.types as types
from mcp.server.lowlevel import Server

from .core import FacilitatorGateway, ToolRegistry
from .executors import X402ServerExecutor
from .types import X402ServerConfig, X402Settings


logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Send logs to stderr; stdout carries the MCP stdio channel."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )


def _call_meta(params: types.CallToolRequestParams) -> Dict[str, Any]:
    meta = params.meta
    if meta is None:
        return {}
    if isinstance(meta, dict):
        return dict(meta)
    return meta.model_dump(by_alias=True, exclude_none=True)


def create_paid_mcp_server(
    setup_tools: Callable[[ToolRegistry], None],
    server_info: Mapping[str, str],
    config: X402ServerConfig,
    facilitator: Optional[FacilitatorGateway] = None
) -> Server:
    """Create an MCP server whose paid tools are gated by x402 payments.

    Args:
        setup_tools: Called once with the registry to register tools
        server_info: ``{"name": ..., "version": ...}``
        config: Payee and facilitator configuration
        facilitator: Optional gateway override

    Returns:
        A low-level MCP server with tools/list and tools/call handlers
    """
    registry = ToolRegistry()
    setup_tools(registry)
    executor = X402ServerExecutor(registry, config, facilitator)

    server = Server(server_info["name"], version=server_info.get("version"))

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.input_schema(),
            )
            for tool in registry.list_tools()
        ]

    async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
        params = request.params
        logger.info(f"tools/call {params.name}")
        result = await executor.execute(params.name, params.arguments, _call_meta(params))
        return types.ServerResult(types.CallToolResult.model_validate(result.to_wire()))

    # Registered directly so the handler sees the request's _meta and returns
    # error-flagged results without further wrapping.
    server.request_handlers[types.CallToolRequest] = call_tool

    logger.info(f"Created paid MCP server '{server_info['name']}' with {len(registry)} tool(s)")
    return server


async def run_stdio(server: Server) -> None:
    """Serve over stdin/stdout until the client disconnects."""
    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


async def serve_stdio(
    setup_tools: Callable[[ToolRegistry], None],
    server_info: Mapping[str, str],
    settings: Optional[X402Settings] = None
) -> None:
    """Stdio entry point configured from ``X402_MCP_*`` settings.

    Raises:
        ValueError: If no recipient address is configured
    """
    settings = settings or X402Settings()
    configure_logging(settings.log_level)
    server = create_paid_mcp_server(setup_tools, server_info, settings.to_server_config())
    await run_stdio(server)
