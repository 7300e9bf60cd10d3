"""
To-do list exposed as a ChatGPT app over the Model Context Protocol.
"""

from .handlers import TodoCommands, ToolResult
from .models import Todo
from .store import TodoStore

__version__ = "1.0.0"

__all__ = ["Todo", "TodoCommands", "TodoStore", "ToolResult"]
