# app/core/scope.py
"""Who may see what.

Every service call receives the authenticated ``Caller`` explicitly and builds
a ``Scope`` from it; nothing reads identity from request-global state.
"""
from dataclasses import dataclass

from app.core.errors import PermissionDenied
from app.store.records import STAFF_ROLES, Ticket


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: str
    organization_id: str | None = None


@dataclass(frozen=True)
class Scope:
    caller: Caller

    @property
    def user_id(self) -> str:
        return self.caller.user_id

    @property
    def is_admin(self) -> bool:
        return self.caller.role == "admin"

    @property
    def is_staff(self) -> bool:
        return self.caller.role in STAFF_ROLES

    @property
    def is_client(self) -> bool:
        return not self.is_staff

    @property
    def organization_filter(self) -> str | None:
        """Organization every list must be narrowed to, ``None`` when unrestricted.

        A client without an organization gets an id that matches nothing.
        """
        if self.is_staff:
            return None
        return self.caller.organization_id or ""

    @property
    def include_internal_messages(self) -> bool:
        return self.is_staff

    def can_see_organization(self, organization_id: str | None) -> bool:
        if self.is_staff:
            return True
        return bool(self.caller.organization_id) and organization_id == self.caller.organization_id

    def check_organization(self, organization_id: str | None) -> None:
        if not self.can_see_organization(organization_id):
            raise PermissionDenied("access denied")

    def check_ticket(self, ticket: Ticket) -> Ticket:
        self.check_organization(ticket.organization_id)
        return ticket

    def require_admin(self) -> None:
        if not self.is_admin:
            raise PermissionDenied("admin access required")

    def require_staff(self) -> None:
        if not self.is_staff:
            raise PermissionDenied("staff access required")


def resolve_scope(caller: Caller) -> Scope:
    return Scope(caller)
