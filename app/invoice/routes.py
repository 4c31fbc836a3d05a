# app/invoice/routes.py
from fastapi import APIRouter, Depends

from app.core.deps import get_scope, get_store
from app.core.scope import Scope
from app.invoice import services as invoice_service
from app.invoice.schemas import InvoiceCreate, InvoiceOut, InvoiceStatusUpdate
from app.store.base import EntityStore

router = APIRouter(prefix="/api/invoices", tags=["Invoices"])


@router.get("", response_model=list[InvoiceOut])
def list_all(store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    return invoice_service.list_invoices(store, scope)


@router.post("", response_model=InvoiceOut, status_code=201)
def create(invoice: InvoiceCreate, store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    return invoice_service.create_invoice(store, scope, invoice)


@router.put("/{invoice_id}", response_model=InvoiceOut)
def update_status(
    invoice_id: str,
    body: InvoiceStatusUpdate,
    store: EntityStore = Depends(get_store),
    scope: Scope = Depends(get_scope),
):
    return invoice_service.update_invoice_status(store, scope, invoice_id, body.status)
