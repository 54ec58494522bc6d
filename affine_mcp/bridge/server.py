"""
AFFiNE MCP Server - Main facade

Wires the tool registry and the resource resolver into the MCP runtime and
converts bridge errors into MCP error responses.
"""

import json
import time
from contextlib import AsyncExitStack
from typing import Any, Iterable

from loguru import logger
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND, ErrorData, Resource, TextContent, Tool
from pydantic import AnyUrl, ValidationError

from affine_mcp import __version__
from affine_mcp.errors import ConfigurationError, InvalidArgumentError, InvalidResourceError, UnknownToolError, UpstreamError
from affine_mcp.upstream.proxy import AffineProxy
from affine_mcp.utility import new_correlation_id

from .config import AffineSettings, ServerOptions
from .registry import ToolRegistry
from .render import render_result
from .resources import AffineResources, ResourceContent
from .tools import AffineTools, GraphQLExecutor


def to_mcp_error(error: Exception) -> McpError:
    """Map a bridge exception onto the MCP error envelope"""
    if isinstance(error, McpError):
        return error
    if isinstance(error, UnknownToolError):
        return McpError(ErrorData(code=METHOD_NOT_FOUND, message=str(error)))
    if isinstance(error, InvalidResourceError):
        return McpError(ErrorData(code=INVALID_REQUEST, message=str(error)))
    if isinstance(error, (ValidationError, InvalidArgumentError)):
        return McpError(ErrorData(code=INVALID_PARAMS, message=str(error)))
    if isinstance(error, UpstreamError):
        return McpError(
            ErrorData(
                code=INTERNAL_ERROR,
                message=f"Failed to query AFFiNE API: {error.message}",
                data={"kind": error.kind.value, "operation": error.operation},
            )
        )
    return McpError(ErrorData(code=INTERNAL_ERROR, message=f"Internal error: {error}"))


class AffineMCPServer:
    """
    MCP server exposing AFFiNE workspaces as tools and resources

    Usage:
        server = AffineMCPServer(build_settings())
        await server.run_stdio()
    """

    def __init__(
        self,
        settings: AffineSettings,
        proxy: GraphQLExecutor | None = None,
        options: ServerOptions | None = None,
        version: str = __version__,
    ) -> None:
        if not settings.access_token.get_secret_value().strip():
            raise ConfigurationError("AFFINE_ACCESS_TOKEN environment variable (affine.access_token) is required")
        self.settings: AffineSettings = settings
        self.options: ServerOptions = options or ServerOptions()
        self.version: str = version
        self.proxy: GraphQLExecutor = proxy or AffineProxy(
            base_url=settings.api_url,
            access_token=settings.access_token.get_secret_value(),
            timeout=settings.timeout,
            user_agent=settings.user_agent,
        )
        self.tools = AffineTools(self.proxy, settings)
        self.registry = ToolRegistry(self.tools)
        self.resources = AffineResources(self.tools)
        self.server: Server = Server(self.options.name, version=version)

        self._register_handlers()

        logger.info(f"AFFiNE MCP Server initialized (v{version}, api={settings.api_url})")

    async def list_tools(self) -> list[Tool]:
        return self.registry.list_tools()

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        with logger.contextualize(correlation_id=new_correlation_id()):
            start_time: float = time.perf_counter()
            logger.info(f"call_tool: {name}")
            try:
                result: Any = await self.registry.invoke(name, arguments)
            except Exception as e:
                logger.error(f"call_tool {name} failed: {e}")
                raise to_mcp_error(e) from e
            logger.info(f"call_tool done: {name} in {(time.perf_counter() - start_time) * 1000:.0f} ms")
            return [TextContent(type="text", text=render_result(result))]

    async def list_resources(self) -> list[Resource]:
        with logger.contextualize(correlation_id=new_correlation_id()):
            try:
                return await self.resources.list_resources()
            except Exception as e:
                logger.error(f"list_resources failed: {e}")
                raise to_mcp_error(e) from e

    async def read_resource(self, uri: str) -> ResourceContent:
        with logger.contextualize(correlation_id=new_correlation_id()):
            logger.info(f"read_resource: {uri}")
            try:
                return await self.resources.resolve(uri)
            except Exception as e:
                logger.error(f"read_resource {uri} failed: {e}")
                raise to_mcp_error(e) from e

    async def verify_connection(self) -> int:
        """Startup connectivity check; returns the number of accessible workspaces"""
        workspaces = await self.tools.list_workspaces()
        logger.info(f"Connected to {self.settings.api_url}: {len(workspaces)} accessible workspace(s)")
        return len(workspaces)

    def _register_handlers(self) -> None:
        """Register MCP protocol handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return await self.list_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            return await self.call_tool(name, arguments)

        @self.server.list_resources()
        async def list_resources() -> list[Resource]:
            return await self.list_resources()

        @self.server.read_resource()
        async def read_resource(uri: AnyUrl) -> Iterable[ReadResourceContents]:
            content: ResourceContent = await self.read_resource(str(uri))
            return [ReadResourceContents(content=json.dumps(content.data, indent=2, default=str), mime_type=content.mime_type)]

    async def run_stdio(self) -> None:
        """Run the server with stdio transport."""
        async with AsyncExitStack() as stack:
            if isinstance(self.proxy, AffineProxy):
                await stack.enter_async_context(self.proxy)
            logger.info("AFFiNE MCP server running on stdio")
            read_stream, write_stream = await stack.enter_async_context(stdio_server())
            await self.server.run(read_stream, write_stream, self.server.create_initialization_options())
