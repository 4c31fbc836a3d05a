# app/activity/schemas.py
from datetime import datetime

from pydantic import BaseModel


class ActivityOut(BaseModel):
    id: str
    type: str
    description: str
    user_id: str
    ticket_id: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class DashboardStatsOut(BaseModel):
    total_tickets: int
    open_tickets: int
    in_progress: int
    resolved: int
    closed: int
    total_hours: float
    pending_approval: int
