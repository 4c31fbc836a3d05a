# app/activity/services.py
"""Append-only activity log and the dashboard built on top of it."""
import logging

from app.core.config import get_settings
from app.core.errors import PortalError
from app.core.scope import Scope
from app.store.base import EntityStore
from app.store.records import TICKET_STATUSES, ActivityItem, TicketFilter, new_id

logger = logging.getLogger(__name__)


def record_activity(
    store: EntityStore,
    user_id: str,
    activity_type: str,
    description: str,
    ticket_id: str | None = None,
) -> ActivityItem | None:
    """Append an activity after a successful primary mutation.

    Failures are logged and swallowed: the mutation already happened and the
    caller still gets its result.
    """
    activity = ActivityItem(
        id=new_id("act"),
        type=activity_type,
        description=description,
        user_id=user_id,
        ticket_id=ticket_id,
    )
    try:
        return store.create_activity(activity)
    except PortalError:
        logger.exception("failed to record %s activity for ticket %s", activity_type, ticket_id)
        return None


def list_activities(store: EntityStore, scope: Scope, limit: int | None = None) -> list[ActivityItem]:
    if limit is None:
        limit = get_settings().ACTIVITY_PAGE_SIZE
    return store.list_activities(limit, organization_id=scope.organization_filter)


def dashboard_stats(store: EntityStore, scope: Scope) -> dict:
    org = scope.organization_filter
    tickets = store.list_tickets(TicketFilter(organization_id=org))

    by_status = {status: 0 for status in TICKET_STATUSES}
    for ticket in tickets:
        by_status[ticket.status] = by_status.get(ticket.status, 0) + 1

    requests = store.list_conversion_requests(organization_id=org)
    if scope.is_client:
        # clients only act on their own side
        pending = sum(1 for cr in requests if cr.client_approval == "pending")
    else:
        pending = sum(1 for cr in requests if cr.is_pending)

    return {
        "total_tickets": len(tickets),
        "open_tickets": by_status["open"],
        "in_progress": by_status["in-progress"],
        "resolved": by_status["resolved"],
        "closed": by_status["closed"],
        "total_hours": sum(t.hours_worked for t in tickets),
        "pending_approval": pending,
    }
