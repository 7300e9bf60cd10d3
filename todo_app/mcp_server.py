"""
FastMCP server exposing the to-do tools and widget resource.

Used for the stdio transport (local MCP clients and inspectors). The handlers
are installed on the low-level server so tool results keep their structured
content and _meta exactly as the HTTP endpoint returns them.
"""

import logging

import mcp.types as types
from mcp.server.fastmcp import FastMCP
from mcp.shared.exceptions import McpError

from .errors import UnknownResourceError, UnknownToolError, ValidationError
from .handlers import TodoCommands
from .jsonrpc import SERVER_NAME
from .widget import WidgetResource

logger = logging.getLogger(__name__)


def invalid_params(message: str, data: dict = None) -> McpError:
    return McpError(types.ErrorData(code=types.INVALID_PARAMS, message=message, data=data))


def create_mcp_server(commands: TodoCommands, widget: WidgetResource) -> FastMCP:
    mcp = FastMCP(SERVER_NAME)

    async def list_tools(req: types.ListToolsRequest) -> types.ServerResult:
        return types.ServerResult(types.ListToolsResult(tools=commands.tool_definitions()))

    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        try:
            result = commands.call(req.params.name, req.params.arguments)
        except ValidationError as e:
            raise invalid_params(str(e), {"errors": e.details})
        except UnknownToolError as e:
            raise invalid_params(str(e))
        return types.ServerResult(result.to_mcp())

    async def list_resources(req: types.ListResourcesRequest) -> types.ServerResult:
        return types.ServerResult(types.ListResourcesResult(resources=[widget.resource()]))

    async def read_resource(req: types.ReadResourceRequest) -> types.ServerResult:
        try:
            return types.ServerResult(widget.read(str(req.params.uri)))
        except UnknownResourceError as e:
            raise invalid_params(str(e))

    handlers = mcp._mcp_server.request_handlers
    handlers[types.ListToolsRequest] = list_tools
    handlers[types.CallToolRequest] = call_tool
    handlers[types.ListResourcesRequest] = list_resources
    handlers[types.ReadResourceRequest] = read_resource

    logger.info("MCP server registered")
    return mcp
