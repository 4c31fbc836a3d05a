# app/store/models.py
from datetime import timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.types import TypeDecorator

from app.core.database import Base


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, returns aware UTC (sqlite drops tzinfo otherwise)."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class OrganizationRow(Base):
    __tablename__ = "organizations"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, index=True)
    plan = Column(String, nullable=False, default="starter")
    contact_email = Column(String, nullable=False)
    created_at = Column(UTCDateTime, nullable=False)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False, default="")
    role = Column(String, nullable=False)
    organization_id = Column(String, ForeignKey("organizations.id"), nullable=True, index=True)
    avatar = Column(String, nullable=False, default="")
    created_at = Column(UTCDateTime, nullable=False)


class TicketRow(Base):
    __tablename__ = "tickets"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="open", index=True)
    priority = Column(String, nullable=False, default="medium")
    category = Column(String, nullable=False, default="support")
    organization_id = Column(String, ForeignKey("organizations.id"), nullable=False, index=True)
    created_by = Column(String, nullable=False)
    assigned_to = Column(String, nullable=True, index=True)
    hours_worked = Column(Float, nullable=False, default=0.0)
    created_at = Column(UTCDateTime, nullable=False, index=True)
    updated_at = Column(UTCDateTime, nullable=False)


class MessageRow(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True)
    ticket_id = Column(String, ForeignKey("tickets.id"), nullable=False, index=True)
    user_id = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    is_internal = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, nullable=False)


class TimeEntryRow(Base):
    __tablename__ = "time_entries"

    id = Column(String, primary_key=True)
    ticket_id = Column(String, ForeignKey("tickets.id"), nullable=False, index=True)
    user_id = Column(String, nullable=False)
    hours = Column(Float, nullable=False)
    description = Column(Text, nullable=False, default="")
    entry_date = Column(Date, nullable=False)
    created_at = Column(UTCDateTime, nullable=False)


class ConversionRequestRow(Base):
    __tablename__ = "conversion_requests"

    id = Column(String, primary_key=True)
    ticket_id = Column(String, ForeignKey("tickets.id"), nullable=False, unique=True)
    proposed_type = Column(String, nullable=False)
    reason = Column(Text, nullable=False)
    internal_approval = Column(String, nullable=False, default="pending")
    client_approval = Column(String, nullable=False, default="pending")
    proposed_by = Column(String, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, index=True)


class InvoiceRow(Base):
    __tablename__ = "invoices"

    id = Column(String, primary_key=True)
    organization_id = Column(String, ForeignKey("organizations.id"), nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    tickets_closed = Column(Integer, nullable=False, default=0)
    total_hours = Column(Float, nullable=False, default=0.0)
    rate_per_hour = Column(Float, nullable=False, default=0.0)
    total_amount = Column(Float, nullable=False, default=0.0)
    status = Column(String, nullable=False, default="draft")
    created_at = Column(UTCDateTime, nullable=False)


class ActivityRow(Base):
    __tablename__ = "activities"

    id = Column(String, primary_key=True)
    type = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    user_id = Column(String, nullable=False)
    # no FK: activities outlive the tickets they mention
    ticket_id = Column(String, nullable=True, index=True)
    created_at = Column(UTCDateTime, nullable=False, index=True)
