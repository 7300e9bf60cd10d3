"""
Error types shared by the store, the tool handlers and the transports.
"""

from typing import Dict, List, Optional


class TodoAppError(Exception):
    """Base class for every error raised by the to-do app."""


class ValidationError(TodoAppError):
    """Input was malformed or out of range.

    `details` is a list of {"field": ..., "message": ...} dicts so callers can
    point at the offending field.
    """

    def __init__(self, details: List[Dict[str, str]]):
        self.details = details
        summary = "; ".join(f"{d['field']}: {d['message']}" for d in details)
        super().__init__(f"Invalid input: {summary}")

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])


class NotFoundError(TodoAppError):
    def __init__(self, todo_id: str):
        self.todo_id = todo_id
        super().__init__(f'To-do item with ID "{todo_id}" not found.')


class UnknownToolError(TodoAppError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool '{name}' not found")


class TransportError(TodoAppError):
    """A protocol-level failure carrying a JSON-RPC error code."""

    def __init__(self, code: int, message: str, data: Optional[dict] = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"[{code}] {message}")

    def to_error_object(self) -> dict:
        error = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class UnavailableCapability(TodoAppError):
    """The widget host does not provide the requested integration function."""

    def __init__(self, capability: str):
        self.capability = capability
        super().__init__(f"Host capability '{capability}' is not available")


class WidgetAssetsError(TodoAppError):
    """The bundled widget JS/CSS could not be found on disk."""


class UnknownResourceError(TodoAppError):
    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"Resource '{uri}' not found")
