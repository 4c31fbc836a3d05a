# app/organization/routes.py
from fastapi import APIRouter, Depends

from app.core.deps import get_scope, get_store
from app.core.scope import Scope
from app.organization import services as organization_service
from app.organization.schemas import OrganizationCreate, OrganizationOut, OrganizationUpdate
from app.store.base import EntityStore

router = APIRouter(prefix="/api/organizations", tags=["Organizations"])


@router.get("", response_model=list[OrganizationOut])
def list_all(store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    return organization_service.list_organizations(store, scope)


@router.get("/{organization_id}", response_model=OrganizationOut)
def get(organization_id: str, store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    return organization_service.get_organization(store, scope, organization_id)


@router.post("", response_model=OrganizationOut, status_code=201)
def create(
    organization: OrganizationCreate,
    store: EntityStore = Depends(get_store),
    scope: Scope = Depends(get_scope),
):
    return organization_service.create_organization(store, scope, organization)


@router.put("/{organization_id}", response_model=OrganizationOut)
def update(
    organization_id: str,
    organization: OrganizationUpdate,
    store: EntityStore = Depends(get_store),
    scope: Scope = Depends(get_scope),
):
    return organization_service.update_organization(store, scope, organization_id, organization)


@router.delete("/{organization_id}")
def delete(organization_id: str, store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    organization_service.delete_organization(store, scope, organization_id)
    return {"status": "deleted"}
