# app/approval/routes.py
from fastapi import APIRouter, Depends, Query

from app.approval import services as approval_service
from app.approval.schemas import ApprovalUpdate
from app.core.deps import get_scope, get_store
from app.core.scope import Scope
from app.store.base import EntityStore
from app.ticket.schemas import ConversionRequestOut

router = APIRouter(prefix="/api/approvals", tags=["Approvals"])


@router.get("", response_model=list[ConversionRequestOut])
def list_all(
    include_decided: bool = Query(default=False, alias="includeDecided"),
    store: EntityStore = Depends(get_store),
    scope: Scope = Depends(get_scope),
):
    return approval_service.list_approvals(store, scope, include_decided=include_decided)


@router.put("/{request_id}", response_model=ConversionRequestOut)
def update(
    request_id: str,
    body: ApprovalUpdate,
    store: EntityStore = Depends(get_store),
    scope: Scope = Depends(get_scope),
):
    return approval_service.update_approval(store, scope, request_id, body.side, body.status)
