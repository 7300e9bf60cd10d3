"""
Input schemas for the to-do tools and REST routes.
"""

from typing import List, Optional, Type, TypeVar, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr

from .errors import ValidationError
from .models import TITLE_MAX_LENGTH

ParamsT = TypeVar("ParamsT", bound=BaseModel)


class NoParams(BaseModel):
    pass


class AddTodoParams(BaseModel):
    title: StrictStr = Field(
        min_length=1,
        max_length=TITLE_MAX_LENGTH,
        description="The title/description of the to-do item",
    )


class ToggleTodoParams(BaseModel):
    id: StrictStr = Field(description="The ID of the to-do item to toggle")


class DeleteTodoParams(BaseModel):
    id: StrictStr = Field(description="The ID of the to-do item to delete")


class TodoSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: StrictStr
    title: StrictStr
    completed: StrictBool
    created_at: Union[int, float] = Field(alias="createdAt")


class SaveTodoStateParams(BaseModel):
    todos: List[TodoSnapshot] = Field(description="Array of all todos to save")


class UpdateTodoBody(BaseModel):
    title: Optional[StrictStr] = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    completed: Optional[StrictBool] = None


def parse_params(model: Type[ParamsT], arguments) -> ParamsT:
    """Validate raw arguments against `model`, raising ValidationError with field details."""
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise ValidationError.for_field("arguments", "Expected an object")
    try:
        return model.model_validate(arguments)
    except pydantic.ValidationError as e:
        details = [
            {
                "field": ".".join(str(part) for part in err["loc"]) or "arguments",
                "message": err["msg"],
            }
            for err in e.errors()
        ]
        raise ValidationError(details) from e


def input_schema(model: Type[BaseModel]) -> dict:
    schema = model.model_json_schema(by_alias=True)
    schema.pop("title", None)
    schema.setdefault("properties", {})
    return schema
