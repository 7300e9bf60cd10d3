"""
In-memory to-do store.

One TodoStore is created per process and handed to the tool handlers and the
HTTP routes. Nothing is persisted; restarting the server starts from scratch.
"""

import logging
import time
import uuid
from typing import Callable, Dict, List, Optional

from .errors import ValidationError
from .models import TITLE_MAX_LENGTH, Todo

logger = logging.getLogger(__name__)

SAMPLE_TITLES = ["Learn about MCP", "Build a ChatGPT app", "Deploy to Vercel"]


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def check_title(title) -> str:
    if not isinstance(title, str):
        raise ValidationError.for_field("title", "Title must be a string")
    if len(title) < 1:
        raise ValidationError.for_field("title", "Title cannot be empty")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError.for_field(
            "title", f"Title must be {TITLE_MAX_LENGTH} characters or fewer"
        )
    return title


class TodoStore:
    def __init__(self, clock: Callable[[], int] = now_ms):
        self._clock = clock
        self._todos: Dict[str, Todo] = {}
        self._last_created_at = 0

    def __len__(self) -> int:
        return len(self._todos)

    def list(self) -> List[Todo]:
        # sorted() is stable and dict order is insertion order, so equal
        # timestamps keep creation order.
        return sorted(self._todos.values(), key=lambda todo: todo.created_at)

    def get(self, todo_id: str) -> Optional[Todo]:
        return self._todos.get(todo_id)

    def create(self, title: str) -> Todo:
        check_title(title)
        created_at = max(self._clock(), self._last_created_at)
        self._last_created_at = created_at
        todo = Todo(id=uuid.uuid4().hex, title=title, completed=False, created_at=created_at)
        self._todos[todo.id] = todo
        logger.info("Created todo %s: %r", todo.id, title)
        return todo

    def update(self, todo_id: str, title: Optional[str] = None,
               completed: Optional[bool] = None) -> Optional[Todo]:
        todo = self._todos.get(todo_id)
        if todo is None:
            return None

        changes = {}
        if title is not None:
            changes["title"] = check_title(title)
        if completed is not None:
            if not isinstance(completed, bool):
                raise ValidationError.for_field("completed", "Completed must be a boolean")
            changes["completed"] = completed

        updated = todo.model_copy(update=changes)
        self._todos[todo_id] = updated
        return updated

    def delete(self, todo_id: str) -> bool:
        removed = self._todos.pop(todo_id, None)
        if removed is not None:
            logger.info("Deleted todo %s", todo_id)
        return removed is not None

    def toggle(self, todo_id: str) -> Optional[Todo]:
        todo = self._todos.get(todo_id)
        if todo is None:
            return None
        return self.update(todo_id, completed=not todo.completed)


def seed_sample_todos(store: TodoStore) -> None:
    """Fill an empty store with a few sample items."""
    if len(store):
        return
    for title in SAMPLE_TITLES:
        store.create(title)
