from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class TodoBase(BaseModel):
    title: str


class TodoCreate(TodoBase):
    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v


class TodoOut(TodoBase):
    id: int
    completed: bool = False
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TodoListOut(BaseModel):
    """Snapshot of a user's list view, as rendered by the JSON routes."""

    status: str
    todos: list[TodoOut]
    updating_ids: list[int]
    deleting_ids: list[int]
    error: Optional[str] = None
