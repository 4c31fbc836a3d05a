# app/ticket/schemas.py
from datetime import date, datetime

from pydantic import BaseModel, Field


class TicketBase(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)


class TicketCreate(TicketBase):
    id: str | None = None
    priority: str | None = None
    category: str | None = None
    organization_id: str | None = None


class TicketUpdate(BaseModel):
    # organization_id is deliberately absent: a ticket never changes tenant
    status: str | None = None
    priority: str | None = None
    assigned_to: str | None = None


class MessageCreate(BaseModel):
    id: str | None = None
    content: str = Field(..., min_length=1)
    is_internal: bool = False


class TimeEntryCreate(BaseModel):
    id: str | None = None
    hours: float
    description: str = ""
    entry_date: date | None = None


class ConversionCreate(BaseModel):
    id: str | None = None
    proposed_type: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1)


class MessageOut(BaseModel):
    id: str
    ticket_id: str
    user_id: str
    content: str
    is_internal: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class TimeEntryOut(BaseModel):
    id: str
    ticket_id: str
    user_id: str
    hours: float
    description: str
    entry_date: date
    created_at: datetime

    model_config = {"from_attributes": True}


class ConversionRequestOut(BaseModel):
    id: str
    ticket_id: str
    proposed_type: str
    reason: str
    internal_approval: str
    client_approval: str
    proposed_by: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TicketOut(TicketBase):
    id: str
    status: str
    priority: str
    category: str
    organization_id: str
    created_by: str
    assigned_to: str | None = None
    hours_worked: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TicketDetailOut(TicketOut):
    messages: list[MessageOut] = []
    time_entries: list[TimeEntryOut] = []
    conversion_request: ConversionRequestOut | None = None
