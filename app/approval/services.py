# app/approval/services.py
"""Dual-track approval of ticket category conversions.

A request carries two independent fields, ``internal_approval`` and
``client_approval``. There is no terminal state: after every update the pair
is re-read and, whenever both read ``approved``, the ticket's category is set
to the proposed one. Re-running the check once both are approved writes
nothing new.
"""
import logging

from app.activity.services import record_activity
from app.core.errors import InvalidInput, PermissionDenied
from app.core.scope import Scope
from app.store.base import EntityStore
from app.store.records import APPROVAL_SIDES, ConversionRequest

logger = logging.getLogger(__name__)

DECISIONS = ("approved", "rejected")


def list_approvals(store: EntityStore, scope: Scope, include_decided: bool = False) -> list[ConversionRequest]:
    """Conversion requests visible to the caller, by default only those still waiting on a side."""
    return store.list_conversion_requests(
        organization_id=scope.organization_filter,
        pending_only=not include_decided,
    )


def check_side_permission(scope: Scope, side: str) -> None:
    if side == "internal" and scope.is_client:
        raise PermissionDenied("clients cannot approve internal side")
    if side == "client" and not (scope.is_client or scope.is_admin):
        raise PermissionDenied("only clients or admins can approve client side")


def update_approval(store: EntityStore, scope: Scope, request_id: str, side: str, status: str) -> ConversionRequest:
    if side not in APPROVAL_SIDES:
        raise InvalidInput("side must be 'internal' or 'client'")
    if status not in DECISIONS:
        raise InvalidInput("status must be 'approved' or 'rejected'")
    check_side_permission(scope, side)

    current = store.get_conversion_request(request_id)
    scope.check_ticket(store.get_ticket(current.ticket_id))

    store.set_approval(request_id, side, status)
    request = store.get_conversion_request(request_id)

    if request.fully_approved:
        apply_conversion(store, request)
        activity_type = "conversion-approved"
    elif status == "rejected":
        activity_type = "conversion-rejected"
    else:
        activity_type = "conversion-updated"

    record_activity(
        store,
        scope.user_id,
        activity_type,
        f"{side} {status} conversion for {request.ticket_id}",
        request.ticket_id,
    )
    return request


def apply_conversion(store: EntityStore, request: ConversionRequest) -> None:
    """Overwrite the ticket category with the proposed one; no-op when already applied."""
    ticket = store.get_ticket(request.ticket_id)
    if ticket.category == request.proposed_type:
        return
    store.update_ticket(ticket.id, {"category": request.proposed_type})
    logger.info("ticket %s converted to %s by request %s", ticket.id, request.proposed_type, request.id)
