"""
JSON-RPC 2.0 dispatcher for the MCP protocol endpoint.

Translates MCP requests (initialize, tools/*, resources/*) into calls on
TodoCommands and the widget resource. The HTTP layer lives in flask_server.py.
"""

import logging
from typing import Any, Callable, Dict, Optional

import mcp.types as types
from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS

from .errors import (
    TransportError,
    UnknownResourceError,
    UnknownToolError,
    ValidationError,
)
from .handlers import TodoCommands
from .widget import WidgetResource

logger = logging.getLogger(__name__)

SERVER_NAME = "todo-list-server"
SERVER_VERSION = "1.0.0"

# Reserved server error code returned for non-POST methods on the protocol endpoint.
METHOD_NOT_ALLOWED = -32000


def dump(model) -> dict:
    return model.model_dump(by_alias=True, exclude_none=True, mode="json")


def error_envelope(code: int, message: str, request_id: Any = None,
                   data: Optional[dict] = None) -> dict:
    return {
        "jsonrpc": "2.0",
        "error": TransportError(code, message, data).to_error_object(),
        "id": request_id,
    }


class JsonRpcDispatcher:
    def __init__(self, commands: TodoCommands, widget: WidgetResource):
        self.commands = commands
        self.widget = widget
        self.methods: Dict[str, Callable[[dict], dict]] = {
            "initialize": self.initialize,
            "ping": self.ping,
            "tools/list": self.list_tools,
            "tools/call": self.call_tool,
            "resources/list": self.list_resources,
            "resources/read": self.read_resource,
        }

    def handle(self, payload: Any) -> Optional[dict]:
        """Handle one decoded request. Returns None for notifications.

        Requests without an id still run; only their result is dropped.
        """
        request_id = payload.get("id") if isinstance(payload, dict) else None
        try:
            method, params = self._unpack(payload)
        except TransportError as e:
            return self._failure(request_id, e)
        notification = "id" not in payload
        if notification and method.startswith("notifications/"):
            logger.debug("Received notification %s", method)
            return None
        try:
            handler = self.methods.get(method)
            if handler is None:
                raise TransportError(types.METHOD_NOT_FOUND, f"Method not found: {method}")
            result = handler(params)
        except TransportError as e:
            response = self._failure(request_id, e)
            return None if notification else response
        if notification:
            return None
        return {"jsonrpc": "2.0", "result": result, "id": request_id}

    def _failure(self, request_id, error: TransportError) -> dict:
        logger.info("JSON-RPC request %r failed: %s", request_id, error)
        return {"jsonrpc": "2.0", "error": error.to_error_object(), "id": request_id}

    def _unpack(self, payload: Any):
        if not isinstance(payload, dict) or payload.get("jsonrpc") != "2.0":
            raise TransportError(types.INVALID_REQUEST, "Invalid Request")
        method = payload.get("method")
        if not isinstance(method, str):
            raise TransportError(types.INVALID_REQUEST, "Invalid Request: missing method")
        params = payload.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise TransportError(types.INVALID_PARAMS, "Invalid params: expected an object")
        return method, params

    def initialize(self, params: dict) -> dict:
        requested = params.get("protocolVersion")
        if requested in SUPPORTED_PROTOCOL_VERSIONS:
            version = requested
        else:
            version = types.LATEST_PROTOCOL_VERSION
        result = types.InitializeResult(
            protocolVersion=version,
            capabilities=types.ServerCapabilities(
                tools=types.ToolsCapability(listChanged=False),
                resources=types.ResourcesCapability(subscribe=False, listChanged=False),
            ),
            serverInfo=types.Implementation(name=SERVER_NAME, version=SERVER_VERSION),
        )
        return dump(result)

    def ping(self, params: dict) -> dict:
        return {}

    def list_tools(self, params: dict) -> dict:
        return dump(types.ListToolsResult(tools=self.commands.tool_definitions()))

    def call_tool(self, params: dict) -> dict:
        name = params.get("name")
        if not isinstance(name, str):
            raise TransportError(types.INVALID_PARAMS, "Invalid params: 'name' is required")
        try:
            result = self.commands.call(name, params.get("arguments"))
        except ValidationError as e:
            raise TransportError(types.INVALID_PARAMS, str(e), {"errors": e.details})
        except UnknownToolError as e:
            raise TransportError(types.INVALID_PARAMS, str(e))
        return result.to_wire()

    def list_resources(self, params: dict) -> dict:
        return dump(types.ListResourcesResult(resources=[self.widget.resource()]))

    def read_resource(self, params: dict) -> dict:
        uri = params.get("uri")
        if not isinstance(uri, str):
            raise TransportError(types.INVALID_PARAMS, "Invalid params: 'uri' is required")
        try:
            return dump(self.widget.read(uri))
        except UnknownResourceError as e:
            raise TransportError(types.INVALID_PARAMS, str(e))
