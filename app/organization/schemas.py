# app/organization/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field


class OrganizationCreate(BaseModel):
    id: str | None = None
    name: str = Field(..., min_length=1)
    plan: str | None = None
    contact_email: str = Field(..., min_length=1)


class OrganizationUpdate(BaseModel):
    name: str | None = None
    plan: str | None = None
    contact_email: str | None = None


class OrganizationOut(BaseModel):
    id: str
    name: str
    plan: str
    contact_email: str
    created_at: datetime

    model_config = {"from_attributes": True}
