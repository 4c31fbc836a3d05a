# app/user/services.py
import logging

from app.core.errors import InvalidInput, NotFound
from app.core.scope import Scope
from app.core.security import hash_password
from app.store.base import EntityStore
from app.store.records import ROLES, User, new_id
from app.user.schemas import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


def initials(name: str) -> str:
    """Up to two upper-case initials, e.g. ``"Ada Lovelace"`` -> ``"AL"``."""
    return "".join(word[0] for word in name.split())[:2].upper()


def _check_role(role: str) -> str:
    if role not in ROLES:
        raise InvalidInput(f"role must be one of: {', '.join(ROLES)}")
    return role


def _check_organization(store: EntityStore, organization_id: str) -> None:
    try:
        store.get_organization(organization_id)
    except NotFound as exc:
        raise InvalidInput("organization does not exist") from exc


def _check_email_free(store: EntityStore, email: str, user_id: str | None = None) -> None:
    try:
        existing = store.get_user_by_email(email)
    except NotFound:
        return
    if existing.id != user_id:
        raise InvalidInput("email already in use")


def list_users(store: EntityStore, scope: Scope) -> list[User]:
    # clients see their own organization plus internal staff, for display
    return store.list_users(organization_id=scope.organization_filter, include_staff=True)


def get_user(store: EntityStore, scope: Scope, user_id: str) -> User:
    user = store.get_user(user_id)
    if user.organization_id is not None:
        scope.check_organization(user.organization_id)
    return user


def create_user(store: EntityStore, scope: Scope, payload: UserCreate) -> User:
    scope.require_admin()
    if not payload.name.strip() or not payload.email.strip():
        raise InvalidInput("name, email, and role are required")
    role = _check_role(payload.role)
    organization_id = payload.organization_id or None
    if organization_id:
        _check_organization(store, organization_id)
    user_id = payload.id or new_id("user")
    _check_email_free(store, payload.email, user_id)

    user = User(
        id=user_id,
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password) if payload.password else "",
        role=role,
        organization_id=organization_id,
        avatar=initials(payload.name),
    )
    return store.create_user(user)


def update_user(store: EntityStore, scope: Scope, user_id: str, payload: UserUpdate) -> User:
    scope.require_admin()
    patch = payload.model_dump(exclude_none=True)
    if not patch:
        raise InvalidInput("no fields to update")
    if "name" in patch:
        patch["avatar"] = initials(patch["name"])
    if "role" in patch:
        _check_role(patch["role"])
    if "email" in patch:
        _check_email_free(store, patch["email"], user_id)
    if "organization_id" in patch:
        if patch["organization_id"] == "":
            patch["organization_id"] = None
        else:
            _check_organization(store, patch["organization_id"])
    return store.update_user(user_id, patch)


def delete_user(store: EntityStore, scope: Scope, user_id: str) -> None:
    """Delete a user; tickets assigned to them become unassigned."""
    scope.require_admin()
    if user_id == scope.user_id:
        raise InvalidInput("cannot delete your own account")
    store.delete_user(user_id)
    logger.info("user %s deleted by %s", user_id, scope.user_id)
