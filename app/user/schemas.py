# app/user/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    id: str | None = None
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)
    organization_id: str | None = None
    password: str | None = None


class UserUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    role: str | None = None
    # empty string moves the user back to internal staff
    organization_id: str | None = None


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: str
    organization_id: str | None = None
    avatar: str

    model_config = {"from_attributes": True}
