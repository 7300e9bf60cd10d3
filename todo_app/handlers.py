"""
To-do tool handlers.

Every tool validates its arguments, calls the store and answers with a short
human-readable message plus structured content the widget renders. The same
TodoCommands instance backs the JSON-RPC endpoint and the FastMCP server.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Type

import mcp.types as types
from pydantic import BaseModel

from .errors import NotFoundError, UnknownToolError
from .schemas import (
    AddTodoParams,
    DeleteTodoParams,
    NoParams,
    SaveTodoStateParams,
    ToggleTodoParams,
    input_schema,
    parse_params,
)
from .store import TodoStore
from .widget import WIDGET_URI

logger = logging.getLogger(__name__)


def plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


@dataclass
class ToolResult:
    text: str
    structured: Optional[dict] = None
    is_error: bool = False

    @classmethod
    def error(cls, exc: Exception) -> "ToolResult":
        return cls(text=str(exc), is_error=True)

    def to_mcp(self) -> types.CallToolResult:
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=self.text)],
            structuredContent=self.structured,
            isError=self.is_error,
        )

    def to_wire(self) -> dict:
        return self.to_mcp().model_dump(by_alias=True, exclude_none=True, mode="json")


@dataclass(frozen=True)
class ToolSpec:
    name: str
    title: str
    description: str
    params_model: Type[BaseModel]
    handler: Callable[["TodoCommands", BaseModel], ToolResult]
    invoking: str
    invoked: str
    output_template: bool = False
    read_only: bool = False

    def definition(self) -> types.Tool:
        meta = {
            "openai/toolInvocation/invoking": self.invoking,
            "openai/toolInvocation/invoked": self.invoked,
        }
        if self.output_template:
            meta["openai/outputTemplate"] = WIDGET_URI
        annotations = types.ToolAnnotations(readOnlyHint=True) if self.read_only else None
        return types.Tool(
            name=self.name,
            title=self.title,
            description=self.description,
            inputSchema=input_schema(self.params_model),
            annotations=annotations,
            **{"_meta": meta},
        )


class TodoCommands:
    def __init__(self, store: TodoStore):
        self.store = store

    def _todos(self) -> List[dict]:
        return [todo.to_dict() for todo in self.store.list()]

    def show_list(self, params: NoParams) -> ToolResult:
        todos = self._todos()
        return ToolResult(
            text=f"To-do list is ready! You have {plural(len(todos), 'task')}.",
            structured={"todos": todos, "message": "To-do list ready"},
        )

    def refresh(self, params: NoParams) -> ToolResult:
        todos = self._todos()
        return ToolResult(
            text=f"Refreshed {plural(len(todos), 'todo')}.",
            structured={"todos": todos},
        )

    def add(self, params: AddTodoParams) -> ToolResult:
        todo = self.store.create(params.title)
        return ToolResult(
            text=f'Added to-do: "{todo.title}"',
            structured={"todos": self._todos(), "newTodo": todo.to_dict()},
        )

    def toggle(self, params: ToggleTodoParams) -> ToolResult:
        updated = self.store.toggle(params.id)
        if updated is None:
            return ToolResult.error(NotFoundError(params.id))
        state = "completed" if updated.completed else "incomplete"
        return ToolResult(
            text=f'To-do "{updated.title}" marked as {state}.',
            structured={"todos": self._todos(), "updatedTodo": updated.to_dict()},
        )

    def delete(self, params: DeleteTodoParams) -> ToolResult:
        todo = self.store.get(params.id)
        if todo is None or not self.store.delete(params.id):
            return ToolResult.error(NotFoundError(params.id))
        return ToolResult(
            text=f'Deleted to-do: "{todo.title}"',
            structured={"todos": self._todos(), "deletedId": params.id},
        )

    def save_state(self, params: SaveTodoStateParams) -> ToolResult:
        # The snapshot is acknowledged only; the store stays the source of truth.
        logger.debug("Received widget snapshot with %d todos", len(params.todos))
        return ToolResult(
            text=f"Saved {plural(len(params.todos), 'todo')}.",
            structured={"todos": self._todos()},
        )

    def tool_definitions(self) -> List[types.Tool]:
        return [spec.definition() for spec in TOOL_SPECS.values()]

    def call(self, name: str, arguments: Optional[dict] = None) -> ToolResult:
        spec = TOOL_SPECS.get(name)
        if spec is None:
            raise UnknownToolError(name)
        params = parse_params(spec.params_model, arguments)
        logger.debug("Calling tool %s", name)
        return spec.handler(self, params)


TOOL_SPECS: Dict[str, ToolSpec] = {
    spec.name: spec
    for spec in [
        ToolSpec(
            name="todos.show_todo_list",
            title="Show To-Do List",
            description=(
                "Use this when the user wants to see or manage their to-do list. Opens an "
                "interactive widget for viewing, adding, completing, and deleting todos."
            ),
            params_model=NoParams,
            handler=TodoCommands.show_list,
            invoking="Opening to-do list",
            invoked="To-do list displayed",
            output_template=True,
            read_only=True,
        ),
        ToolSpec(
            name="todos.refresh_todos",
            title="Refresh To-Do List",
            description=(
                "Refreshes the to-do list data from the server. Called by the widget "
                "component to get the latest todos."
            ),
            params_model=NoParams,
            handler=TodoCommands.refresh,
            invoking="Refreshing todos",
            invoked="Todos refreshed",
        ),
        ToolSpec(
            name="todos.add_todo",
            title="Add To-Do Item",
            description=(
                "Adds a new to-do item to the list. Use this when the user wants to create "
                "a new task."
            ),
            params_model=AddTodoParams,
            handler=TodoCommands.add,
            invoking="Adding to-do item",
            invoked="To-do item added",
        ),
        ToolSpec(
            name="todos.toggle_todo",
            title="Toggle To-Do Completion",
            description=(
                "Toggles the completion status of a to-do item. Called by the widget when "
                "user clicks a checkbox."
            ),
            params_model=ToggleTodoParams,
            handler=TodoCommands.toggle,
            invoking="Toggling todo",
            invoked="Todo toggled",
        ),
        ToolSpec(
            name="todos.delete_todo",
            title="Delete To-Do Item",
            description=(
                "Deletes a to-do item from the list. Called by the widget when user deletes "
                "a task."
            ),
            params_model=DeleteTodoParams,
            handler=TodoCommands.delete,
            invoking="Deleting todo",
            invoked="Todo deleted",
        ),
        ToolSpec(
            name="todos.save_todo_state",
            title="Save To-Do State",
            description=(
                "Saves the current state of todos from the widget. Called by the component "
                "to persist changes."
            ),
            params_model=SaveTodoStateParams,
            handler=TodoCommands.save_state,
            invoking="Saving todo state",
            invoked="Todo state saved",
        ),
    ]
}
