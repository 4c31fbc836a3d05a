# app/invoice/services.py
from app.core.errors import InvalidInput, NotFound
from app.core.scope import Scope
from app.invoice.schemas import InvoiceCreate
from app.store.base import EntityStore
from app.store.records import INVOICE_STATUSES, Invoice, new_id


def list_invoices(store: EntityStore, scope: Scope) -> list[Invoice]:
    return store.list_invoices(organization_id=scope.organization_filter)


def create_invoice(store: EntityStore, scope: Scope, payload: InvoiceCreate) -> Invoice:
    """Record an invoice from caller-supplied aggregates; totals are not recomputed."""
    scope.require_staff()
    if not 1 <= payload.month <= 12:
        raise InvalidInput("month must be between 1 and 12")
    if payload.tickets_closed < 0 or payload.total_hours < 0:
        raise InvalidInput("tickets_closed and total_hours cannot be negative")
    try:
        store.get_organization(payload.organization_id)
    except NotFound as exc:
        raise InvalidInput("organization does not exist") from exc

    invoice = Invoice(
        id=payload.id or new_id("inv"),
        organization_id=payload.organization_id,
        month=payload.month,
        year=payload.year,
        tickets_closed=payload.tickets_closed,
        total_hours=payload.total_hours,
        rate_per_hour=payload.rate_per_hour,
        total_amount=payload.total_amount,
    )
    return store.create_invoice(invoice)


def update_invoice_status(store: EntityStore, scope: Scope, invoice_id: str, status: str) -> Invoice:
    scope.require_staff()
    if status not in INVOICE_STATUSES:
        raise InvalidInput("status must be draft, sent, or paid")
    return store.update_invoice(invoice_id, {"status": status})
