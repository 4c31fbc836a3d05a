# app/invoice/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field


class InvoiceCreate(BaseModel):
    id: str | None = None
    organization_id: str = Field(..., min_length=1)
    month: int
    year: int
    tickets_closed: int = 0
    total_hours: float = 0.0
    rate_per_hour: float = 0.0
    total_amount: float = 0.0


class InvoiceStatusUpdate(BaseModel):
    status: str


class InvoiceOut(BaseModel):
    id: str
    organization_id: str
    month: int
    year: int
    tickets_closed: int
    total_hours: float
    rate_per_hour: float
    total_amount: float
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}
