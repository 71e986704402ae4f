"""Pydantic schemas for todos.

Learn: Separate schemas for create/update/read keeps the API clean.
- TodoCreate: what you POST (no owner field, the owner is the caller)
- TodoUpdate: what you PUT; every field optional, unset/null fields keep
  their stored value
- TodoRead: what the API returns
"""

from typing import Optional

from pydantic import BaseModel, Field


class TodoCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    completed: bool = False


class TodoUpdate(BaseModel):
    """Partial update: only non-None fields are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    completed: Optional[bool] = None


class TodoRead(BaseModel):
    id: int
    title: str
    completed: bool
    owner_id: int

    model_config = {"from_attributes": True}
