"""
Python model of the embedded to-do widget.

The widget never touches a host global directly. It talks to a WidgetHost,
which exposes the current host-provided state (read_globals), a change
subscription (subscribe, the equivalent of the "openai:set_globals" event)
and the host capabilities (call_tool, set_widget_state, ...).

Two hosts ship with the package:

- LocalHost routes tool calls straight to an in-process TodoCommands.
  Useful for tests and for driving the widget logic without a server.
- HttpHost calls tools through the MCP JSON-RPC endpoint at BASE_URL.
"""

import dataclasses
import itertools
import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import httpx
import mcp.types as types

from .errors import TransportError, UnavailableCapability
from .handlers import TodoCommands
from .models import Todo
from .schemas import AddTodoParams, parse_params
from .store import now_ms

logger = logging.getLogger(__name__)

DISPLAY_MODES = ("pip", "inline", "fullscreen")


def default_user_agent() -> dict:
    return {"device": {"type": "unknown"}, "capabilities": {"hover": False, "touch": False}}


def default_safe_area() -> dict:
    return {"insets": {"top": 0, "bottom": 0, "left": 0, "right": 0}}


@dataclass(frozen=True)
class HostGlobals:
    tool_input: Optional[dict] = None
    tool_output: Optional[dict] = None
    tool_response_metadata: Optional[dict] = None
    widget_state: Optional[dict] = None
    theme: str = "light"
    user_agent: dict = field(default_factory=default_user_agent)
    locale: str = "en"
    max_height: int = 400
    display_mode: str = "inline"
    safe_area: dict = field(default_factory=default_safe_area)


Listener = Callable[[HostGlobals], None]


class WidgetHost:
    """Base host: state + change notifications, no capabilities."""

    def __init__(self, host_globals: Optional[HostGlobals] = None):
        self._globals = host_globals or HostGlobals()
        self._listeners: List[Listener] = []

    def read_globals(self) -> HostGlobals:
        return self._globals

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener` for global updates. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_globals(self, **changes) -> None:
        """Replace some globals and notify listeners (the "openai:set_globals" event)."""
        self._globals = dataclasses.replace(self._globals, **changes)
        for listener in list(self._listeners):
            listener(self._globals)

    def capabilities(self) -> frozenset:
        return frozenset()

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities()

    async def call_tool(self, name: str, arguments: Optional[dict] = None) -> dict:
        raise UnavailableCapability("call_tool")

    async def set_widget_state(self, state: dict) -> None:
        raise UnavailableCapability("set_widget_state")

    async def send_follow_up_message(self, prompt: str) -> None:
        raise UnavailableCapability("send_follow_up_message")

    async def request_display_mode(self, mode: str) -> dict:
        raise UnavailableCapability("request_display_mode")

    def open_external(self, href: str) -> None:
        raise UnavailableCapability("open_external")


class LocalHost(WidgetHost):
    def __init__(self, commands: Optional[TodoCommands] = None,
                 host_globals: Optional[HostGlobals] = None):
        super().__init__(host_globals)
        self.commands = commands
        self.follow_up_messages: List[str] = []
        self.opened_links: List[str] = []

    def capabilities(self) -> frozenset:
        caps = {"set_widget_state", "send_follow_up_message", "request_display_mode", "open_external"}
        if self.commands is not None:
            caps.add("call_tool")
        return frozenset(caps)

    async def call_tool(self, name: str, arguments: Optional[dict] = None) -> dict:
        if self.commands is None:
            raise UnavailableCapability("call_tool")
        return self.commands.call(name, arguments or {}).to_wire()

    async def set_widget_state(self, state: dict) -> None:
        self._globals = dataclasses.replace(self._globals, widget_state=state)

    async def send_follow_up_message(self, prompt: str) -> None:
        self.follow_up_messages.append(prompt)

    async def request_display_mode(self, mode: str) -> dict:
        if mode not in DISPLAY_MODES:
            raise ValueError(f"Unsupported display mode: {mode}")
        self.set_globals(display_mode=mode)
        return {"mode": mode}

    def open_external(self, href: str) -> None:
        self.opened_links.append(href)


class HttpHost(WidgetHost):
    """Calls tools on the server's /mcp endpoint.

    Without a base URL the widget can still render injected state, but tool
    calls are unavailable.
    """

    def __init__(self, base_url: Optional[str] = None, host_globals: Optional[HostGlobals] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 10):
        super().__init__(host_globals)
        self.base_url = base_url.rstrip("/") if base_url else None
        self.transport = transport
        self.timeout = timeout
        self._ids = itertools.count(1)
        if self.base_url is None:
            logger.warning("No API base URL configured; tool calls are unavailable")

    def capabilities(self) -> frozenset:
        return frozenset({"call_tool"}) if self.base_url else frozenset()

    async def call_tool(self, name: str, arguments: Optional[dict] = None) -> dict:
        if self.base_url is None:
            raise UnavailableCapability("call_tool")
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "tools/call",
            "params": {"name": name, "arguments": arguments or {}},
        }
        async with httpx.AsyncClient(
            base_url=self.base_url, transport=self.transport, timeout=self.timeout
        ) as client:
            response = await client.post("/mcp", json=payload)
        try:
            body = response.json()
        except ValueError:
            response.raise_for_status()
            raise TransportError(types.INTERNAL_ERROR, "Invalid JSON-RPC response")
        if "error" in body:
            error = body["error"]
            raise TransportError(error.get("code", types.INTERNAL_ERROR),
                                 error.get("message", ""), error.get("data"))
        return body["result"]


def parse_todos(items) -> List[Todo]:
    return [Todo.model_validate(item) for item in items]


def todos_in(source) -> Optional[List[Todo]]:
    if isinstance(source, dict) and isinstance(source.get("todos"), list):
        return parse_todos(source["todos"])
    return None


def snapshot_from(host_globals: HostGlobals) -> Optional[List[Todo]]:
    """Todos injected by the host: persisted widget state first, then tool output."""
    for source in (host_globals.widget_state, host_globals.tool_output):
        snapshot = todos_in(source)
        if snapshot is not None:
            return snapshot
    return None


class TodoWidget:
    """Local mirror of the to-do list with optimistic mutations.

    With reconcile=True a successful tool response replaces the mirror with the
    server's list and a failed call reverts the optimistic change. With
    reconcile=False the calls are fire-and-forget: the mirror only changes
    locally or through host notifications.
    """

    def __init__(self, host: WidgetHost, reconcile: bool = True):
        self.host = host
        self.reconcile = reconcile
        initial = host.read_globals()
        self.todos: List[Todo] = snapshot_from(initial) or []
        self._tool_output = initial.tool_output
        self._widget_state = initial.widget_state
        self._pending = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def is_loading(self) -> bool:
        return self._pending > 0

    @property
    def globals(self) -> HostGlobals:
        return self.host.read_globals()

    def mount(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.host.subscribe(self._on_globals_changed)

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_globals_changed(self, host_globals: HostGlobals) -> None:
        # Adopt whichever snapshot the host replaced; a new tool output wins.
        snapshot = None
        if host_globals.tool_output is not self._tool_output:
            snapshot = todos_in(host_globals.tool_output)
        elif host_globals.widget_state is not self._widget_state:
            snapshot = todos_in(host_globals.widget_state)
        self._tool_output = host_globals.tool_output
        self._widget_state = host_globals.widget_state
        if snapshot is not None:
            self.todos = snapshot

    async def _persist(self) -> None:
        if self.host.supports("set_widget_state"):
            await self.host.set_widget_state({"todos": [todo.to_dict() for todo in self.todos]})
            self._widget_state = self.host.read_globals().widget_state

    async def _invoke(self, name: str, arguments: dict,
                      revert: Optional[Callable[[List[Todo]], List[Todo]]] = None,
                      adopt: bool = False) -> dict:
        self._pending += 1
        try:
            result = await self.host.call_tool(name, arguments)
        except Exception:
            if self.reconcile and revert is not None:
                self.todos = revert(self.todos)
                await self._persist()
            raise
        finally:
            self._pending -= 1

        if result.get("isError"):
            logger.info("Tool %s failed: %s", name, result.get("content"))
            if self.reconcile and revert is not None:
                self.todos = revert(self.todos)
                await self._persist()
        elif self.reconcile or adopt:
            todos = (result.get("structuredContent") or {}).get("todos")
            if isinstance(todos, list):
                self.todos = parse_todos(todos)
                await self._persist()
        return result

    async def add_todo(self, title: str) -> dict:
        params = parse_params(AddTodoParams, {"title": title})
        placeholder = Todo(id=f"pending-{uuid.uuid4().hex}", title=params.title,
                           completed=False, created_at=now_ms())
        self.todos = self.todos + [placeholder]
        await self._persist()
        return await self._invoke(
            "todos.add_todo",
            {"title": params.title},
            revert=lambda todos: [t for t in todos if t.id != placeholder.id],
        )

    async def toggle_todo(self, todo_id: str) -> dict:
        before = {t.id: t for t in self.todos if t.id == todo_id}

        def restore(todos):
            return [before.get(t.id, t) for t in todos]

        self.todos = [
            t.model_copy(update={"completed": not t.completed}) if t.id == todo_id else t
            for t in self.todos
        ]
        await self._persist()
        return await self._invoke("todos.toggle_todo", {"id": todo_id}, revert=restore)

    async def delete_todo(self, todo_id: str) -> dict:
        removed = [t for t in self.todos if t.id == todo_id]

        def restore(todos):
            present = {t.id for t in todos}
            missing = [t for t in removed if t.id not in present]
            return sorted(todos + missing, key=lambda t: t.created_at)

        self.todos = [t for t in self.todos if t.id != todo_id]
        await self._persist()
        return await self._invoke("todos.delete_todo", {"id": todo_id}, revert=restore)

    async def refresh(self) -> dict:
        return await self._invoke("todos.refresh_todos", {}, adopt=True)

    async def save_state(self) -> dict:
        return await self._invoke(
            "todos.save_todo_state", {"todos": [todo.to_dict() for todo in self.todos]}
        )
