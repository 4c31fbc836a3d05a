# app/organization/services.py
import logging

from app.core.errors import InvalidInput
from app.core.scope import Scope
from app.organization.schemas import OrganizationCreate, OrganizationUpdate
from app.store.base import EntityStore
from app.store.records import PLANS, Organization, new_id

logger = logging.getLogger(__name__)


def _check_plan(plan: str) -> str:
    if plan not in PLANS:
        raise InvalidInput(f"plan must be one of: {', '.join(PLANS)}")
    return plan


def list_organizations(store: EntityStore, scope: Scope) -> list[Organization]:
    return store.list_organizations(organization_id=scope.organization_filter)


def get_organization(store: EntityStore, scope: Scope, organization_id: str) -> Organization:
    # scope is checked before the lookup so clients cannot probe other tenants' ids
    scope.check_organization(organization_id)
    return store.get_organization(organization_id)


def create_organization(store: EntityStore, scope: Scope, payload: OrganizationCreate) -> Organization:
    scope.require_admin()
    if not payload.name.strip() or not payload.contact_email.strip():
        raise InvalidInput("name and contact_email are required")
    organization = Organization(
        id=payload.id or new_id("org"),
        name=payload.name,
        plan=_check_plan(payload.plan or "starter"),
        contact_email=payload.contact_email,
    )
    return store.create_organization(organization)


def update_organization(
    store: EntityStore, scope: Scope, organization_id: str, payload: OrganizationUpdate
) -> Organization:
    scope.require_admin()
    patch = payload.model_dump(exclude_none=True)
    if not patch:
        raise InvalidInput("no fields to update")
    if "plan" in patch:
        _check_plan(patch["plan"])
    return store.update_organization(organization_id, patch)


def delete_organization(store: EntityStore, scope: Scope, organization_id: str) -> None:
    """Remove an organization and everything it owns (tickets and their
    children, invoices, users). Activity history is kept."""
    scope.require_admin()
    store.delete_organization(organization_id)
    logger.info("organization %s deleted by %s", organization_id, scope.user_id)
