"""
Todo model shared by the store, the tools and the widget client.
"""

from pydantic import BaseModel, ConfigDict, Field

TITLE_MAX_LENGTH = 200


class Todo(BaseModel):
    """A single to-do item.

    Instances are frozen: the store hands out snapshots and replaces them on
    update, so nothing outside the store can change its state.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    completed: bool = False
    created_at: int = Field(alias="createdAt")

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)
