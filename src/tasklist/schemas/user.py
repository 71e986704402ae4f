"""Pydantic schemas for registration and login."""

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class UserRead(BaseModel):
    """Public view of a user. The password hash never leaves the store."""
    id: int
    username: str

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    token: str
