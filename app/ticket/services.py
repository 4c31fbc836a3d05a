# app/ticket/services.py
import math
from datetime import datetime, timezone

from app.activity.services import record_activity
from app.core.errors import InvalidInput, NotFound
from app.core.scope import Scope
from app.store.base import EntityStore
from app.store.records import (
    TICKET_PRIORITIES,
    TICKET_STATUSES,
    ConversionRequest,
    Message,
    Ticket,
    TicketFilter,
    TimeEntry,
    new_id,
)
from app.ticket.schemas import (
    ConversionCreate,
    MessageCreate,
    TicketCreate,
    TicketDetailOut,
    TicketUpdate,
    TimeEntryCreate,
)


def _require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise InvalidInput(f"{field} is required")
    return value


def _check_status(status: str) -> str:
    if status not in TICKET_STATUSES:
        raise InvalidInput(f"status must be one of: {', '.join(TICKET_STATUSES)}")
    return status


def _check_priority(priority: str) -> str:
    if priority not in TICKET_PRIORITIES:
        raise InvalidInput(f"priority must be one of: {', '.join(TICKET_PRIORITIES)}")
    return priority


def get_visible_ticket(store: EntityStore, scope: Scope, ticket_id: str) -> Ticket:
    """Fetch a ticket the caller may see: absent is NotFound, out of scope is PermissionDenied."""
    return scope.check_ticket(store.get_ticket(ticket_id))


def list_tickets(store: EntityStore, scope: Scope, filters: TicketFilter | None = None) -> list[Ticket]:
    filters = filters or TicketFilter()
    org = scope.organization_filter
    if org is not None:
        filters = filters.model_copy(update={"organization_id": org})
    return store.list_tickets(filters)


def get_ticket(store: EntityStore, scope: Scope, ticket_id: str) -> TicketDetailOut:
    ticket = get_visible_ticket(store, scope, ticket_id)
    messages = store.list_messages(ticket_id, include_internal=scope.include_internal_messages)
    time_entries = store.list_time_entries(ticket_id)
    conversion = store.get_conversion_request_for_ticket(ticket_id)
    return TicketDetailOut.model_validate(
        {
            **ticket.model_dump(),
            "messages": [m.model_dump() for m in messages],
            "time_entries": [e.model_dump() for e in time_entries],
            "conversion_request": conversion.model_dump() if conversion else None,
        }
    )


def create_ticket(store: EntityStore, scope: Scope, payload: TicketCreate) -> Ticket:
    title = _require_text(payload.title, "title")
    description = _require_text(payload.description, "description")

    if scope.is_client:
        organization_id = scope.caller.organization_id
    else:
        organization_id = payload.organization_id
    if not organization_id:
        raise InvalidInput("organization_id is required")
    try:
        store.get_organization(organization_id)
    except NotFound as exc:
        raise InvalidInput("organization does not exist") from exc

    ticket = Ticket(
        id=payload.id or new_id("tkt"),
        title=title,
        description=description,
        priority=_check_priority(payload.priority or "medium"),
        category=payload.category or "support",
        organization_id=organization_id,
        created_by=scope.user_id,
    )
    created = store.create_ticket(ticket)
    record_activity(store, scope.user_id, "ticket-created", f"New ticket: {created.title}", created.id)
    return created


def update_ticket(store: EntityStore, scope: Scope, ticket_id: str, payload: TicketUpdate) -> Ticket:
    ticket = get_visible_ticket(store, scope, ticket_id)

    patch = {}
    if payload.status is not None:
        patch["status"] = _check_status(payload.status)
    if payload.priority is not None:
        patch["priority"] = _check_priority(payload.priority)
    if payload.assigned_to is not None:
        scope.require_staff()
        if payload.assigned_to == "":
            patch["assigned_to"] = None
        else:
            try:
                store.get_user(payload.assigned_to)
            except NotFound as exc:
                raise InvalidInput("assignee does not exist") from exc
            patch["assigned_to"] = payload.assigned_to

    if not patch:
        return ticket

    updated = store.update_ticket(ticket_id, patch)
    if "status" in patch:
        activity_type = "ticket-resolved" if patch["status"] == "resolved" else "ticket-updated"
        record_activity(
            store,
            scope.user_id,
            activity_type,
            f"Ticket {ticket_id} status changed to {patch['status']}",
            ticket_id,
        )
    return updated


def add_message(store: EntityStore, scope: Scope, ticket_id: str, payload: MessageCreate) -> Message:
    content = _require_text(payload.content, "content")
    get_visible_ticket(store, scope, ticket_id)

    message = Message(
        id=payload.id or new_id("msg"),
        ticket_id=ticket_id,
        user_id=scope.user_id,
        content=content,
        # clients cannot write staff-only notes
        is_internal=payload.is_internal and scope.is_staff,
    )
    created = store.create_message(message)
    record_activity(store, scope.user_id, "message-added", f"New message on {ticket_id}", ticket_id)
    return created


def add_time_entry(store: EntityStore, scope: Scope, ticket_id: str, payload: TimeEntryCreate) -> TimeEntry:
    if not math.isfinite(payload.hours) or payload.hours <= 0:
        raise InvalidInput("hours must be a positive number")
    scope.require_staff()
    get_visible_ticket(store, scope, ticket_id)

    entry = TimeEntry(
        id=payload.id or new_id("te"),
        ticket_id=ticket_id,
        user_id=scope.user_id,
        hours=payload.hours,
        description=payload.description,
        entry_date=payload.entry_date or datetime.now(timezone.utc).date(),
    )
    created = store.add_time_entry(entry)
    record_activity(
        store, scope.user_id, "time-logged", f"{created.hours:g}h logged on {ticket_id}", ticket_id
    )
    return created


def request_conversion(
    store: EntityStore, scope: Scope, ticket_id: str, payload: ConversionCreate
) -> ConversionRequest:
    proposed_type = _require_text(payload.proposed_type, "proposed_type")
    reason = _require_text(payload.reason, "reason")
    get_visible_ticket(store, scope, ticket_id)

    existing = store.get_conversion_request_for_ticket(ticket_id)
    if existing is not None and existing.id != payload.id:
        raise InvalidInput("ticket already has a conversion request")

    request = ConversionRequest(
        id=payload.id or new_id("cr"),
        ticket_id=ticket_id,
        proposed_type=proposed_type,
        reason=reason,
        proposed_by=scope.user_id,
    )
    created = store.create_conversion_request(request)
    record_activity(
        store,
        scope.user_id,
        "conversion-requested",
        f"Conversion requested: {ticket_id} to {proposed_type}",
        ticket_id,
    )
    return created
