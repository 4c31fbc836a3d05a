# app/store/records.py
"""Records exchanged between the services and the store adapters.

Both adapters build and return these models, so the services never see an ORM
row or a raw JSON document.
"""
import uuid
from datetime import date, datetime, timezone

from pydantic import BaseModel, Field

ROLES = ("admin", "agent", "client")
STAFF_ROLES = ("admin", "agent")
PLANS = ("starter", "professional", "enterprise")
TICKET_STATUSES = ("open", "in-progress", "resolved", "closed")
TICKET_PRIORITIES = ("low", "medium", "high", "critical")
APPROVAL_STATES = ("pending", "approved", "rejected")
APPROVAL_SIDES = ("internal", "client")
INVOICE_STATUSES = ("draft", "sent", "paid")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class Record(BaseModel):
    model_config = {"from_attributes": True}


class User(Record):
    id: str
    name: str
    email: str
    password_hash: str = ""
    role: str
    organization_id: str | None = None
    avatar: str = ""
    created_at: datetime = Field(default_factory=utcnow)


class Organization(Record):
    id: str
    name: str
    plan: str = "starter"
    contact_email: str
    created_at: datetime = Field(default_factory=utcnow)


class Ticket(Record):
    id: str
    title: str
    description: str
    status: str = "open"
    priority: str = "medium"
    category: str = "support"
    organization_id: str
    created_by: str
    assigned_to: str | None = None
    hours_worked: float = Field(default=0.0, allow_inf_nan=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Message(Record):
    id: str
    ticket_id: str
    user_id: str
    content: str
    is_internal: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class TimeEntry(Record):
    id: str
    ticket_id: str
    user_id: str
    hours: float = Field(allow_inf_nan=False)
    description: str = ""
    entry_date: date
    created_at: datetime = Field(default_factory=utcnow)


class ConversionRequest(Record):
    id: str
    ticket_id: str
    proposed_type: str
    reason: str
    internal_approval: str = "pending"
    client_approval: str = "pending"
    proposed_by: str
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def fully_approved(self) -> bool:
        return self.internal_approval == "approved" and self.client_approval == "approved"

    @property
    def is_pending(self) -> bool:
        return "pending" in (self.internal_approval, self.client_approval)


class Invoice(Record):
    id: str
    organization_id: str
    month: int
    year: int
    tickets_closed: int = 0
    total_hours: float = 0.0
    rate_per_hour: float = 0.0
    total_amount: float = 0.0
    status: str = "draft"
    created_at: datetime = Field(default_factory=utcnow)


class ActivityItem(Record):
    id: str
    type: str
    description: str
    user_id: str
    ticket_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class TicketFilter(BaseModel):
    """Filters accepted by ``EntityStore.list_tickets``; ``None`` means no filter."""

    status: str | None = None
    priority: str | None = None
    category: str | None = None
    organization_id: str | None = None
    assigned_to: str | None = None
    search: str | None = None

    def matches(self, ticket: Ticket) -> bool:
        if self.status and ticket.status != self.status:
            return False
        if self.priority and ticket.priority != self.priority:
            return False
        if self.category and ticket.category != self.category:
            return False
        if self.organization_id is not None and ticket.organization_id != self.organization_id:
            return False
        if self.assigned_to and ticket.assigned_to != self.assigned_to:
            return False
        return self.matches_search(ticket)

    def matches_search(self, ticket: Ticket) -> bool:
        """Case-insensitive substring match over title, description and id.

        Uses full Unicode case folding; both adapters apply this predicate so
        non-ASCII text matches the same way everywhere.
        """
        if not self.search:
            return True
        needle = self.search.casefold()
        return any(needle in h.casefold() for h in (ticket.title, ticket.description, ticket.id))
