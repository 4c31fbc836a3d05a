# app/ticket/routes.py
from fastapi import APIRouter, Depends, Query

from app.core.deps import get_scope, get_store
from app.core.scope import Scope
from app.store.base import EntityStore
from app.store.records import TicketFilter
from app.ticket import services as ticket_service
from app.ticket.schemas import (
    ConversionCreate,
    ConversionRequestOut,
    MessageCreate,
    MessageOut,
    TicketCreate,
    TicketDetailOut,
    TicketOut,
    TicketUpdate,
    TimeEntryCreate,
    TimeEntryOut,
)

router = APIRouter(prefix="/api/tickets", tags=["Tickets"])


@router.get("", response_model=list[TicketOut])
def list_all(
    status: str | None = Query(default=None, description="open, in-progress, resolved or closed"),
    priority: str | None = Query(default=None),
    category: str | None = Query(default=None),
    organization_id: str | None = Query(default=None, alias="organizationId"),
    assigned_to: str | None = Query(default=None, alias="assignedTo"),
    search: str | None = Query(default=None, description="Matches title, description or id"),
    store: EntityStore = Depends(get_store),
    scope: Scope = Depends(get_scope),
):
    filters = TicketFilter(
        status=status,
        priority=priority,
        category=category,
        organization_id=organization_id,
        assigned_to=assigned_to,
        search=search,
    )
    return ticket_service.list_tickets(store, scope, filters)


@router.post("", response_model=TicketOut, status_code=201)
def create(ticket: TicketCreate, store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    return ticket_service.create_ticket(store, scope, ticket)


@router.get("/{ticket_id}", response_model=TicketDetailOut)
def get(ticket_id: str, store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    return ticket_service.get_ticket(store, scope, ticket_id)


@router.put("/{ticket_id}", response_model=TicketOut)
def update(
    ticket_id: str,
    ticket: TicketUpdate,
    store: EntityStore = Depends(get_store),
    scope: Scope = Depends(get_scope),
):
    return ticket_service.update_ticket(store, scope, ticket_id, ticket)


@router.post("/{ticket_id}/messages", response_model=MessageOut, status_code=201)
def add_message(
    ticket_id: str,
    message: MessageCreate,
    store: EntityStore = Depends(get_store),
    scope: Scope = Depends(get_scope),
):
    return ticket_service.add_message(store, scope, ticket_id, message)


@router.post("/{ticket_id}/time-entries", response_model=TimeEntryOut, status_code=201)
def add_time_entry(
    ticket_id: str,
    entry: TimeEntryCreate,
    store: EntityStore = Depends(get_store),
    scope: Scope = Depends(get_scope),
):
    return ticket_service.add_time_entry(store, scope, ticket_id, entry)


@router.post("/{ticket_id}/convert", response_model=ConversionRequestOut, status_code=201)
def request_conversion(
    ticket_id: str,
    body: ConversionCreate,
    store: EntityStore = Depends(get_store),
    scope: Scope = Depends(get_scope),
):
    return ticket_service.request_conversion(store, scope, ticket_id, body)
