# app/store/base.py
"""The storage port every backend adapter implements.

Contract shared by all adapters:

- getters raise ``NotFound`` when the id is absent, any backend exception is
  wrapped in ``StorageFailure``;
- creates take the record with its id already set; creating an id that
  already exists returns the stored record untouched, so callers may retry;
- ``update_*`` methods take a partial patch (only the keys to change) and
  return the updated record;
- list methods return a deterministic order, ties broken on id.
"""
from abc import ABC, abstractmethod

from app.core.errors import InvalidInput
from app.store.records import (
    ActivityItem,
    ConversionRequest,
    Invoice,
    Message,
    Organization,
    Ticket,
    TicketFilter,
    TimeEntry,
    User,
)

TICKET_PATCH_FIELDS = frozenset({"status", "priority", "category", "assigned_to"})
USER_PATCH_FIELDS = frozenset({"name", "email", "role", "organization_id", "avatar", "password_hash"})
ORGANIZATION_PATCH_FIELDS = frozenset({"name", "plan", "contact_email"})
INVOICE_PATCH_FIELDS = frozenset({"status"})


class EntityStore(ABC):
    # users

    @abstractmethod
    def get_user(self, user_id: str) -> User: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> User: ...

    @abstractmethod
    def list_users(self, organization_id: str | None = None, include_staff: bool = False) -> list[User]:
        """Users ordered by name.

        With ``organization_id`` only that organization's users are returned,
        plus internal staff (no organization) when ``include_staff`` is set.
        """

    @abstractmethod
    def create_user(self, user: User) -> User: ...

    @abstractmethod
    def update_user(self, user_id: str, patch: dict) -> User: ...

    @abstractmethod
    def delete_user(self, user_id: str) -> None:
        """Delete a user and clear every ticket assignment pointing at it."""

    @abstractmethod
    def unassign_tickets(self, user_id: str) -> int: ...

    # organizations

    @abstractmethod
    def get_organization(self, organization_id: str) -> Organization: ...

    @abstractmethod
    def list_organizations(self, organization_id: str | None = None) -> list[Organization]: ...

    @abstractmethod
    def create_organization(self, organization: Organization) -> Organization: ...

    @abstractmethod
    def update_organization(self, organization_id: str, patch: dict) -> Organization: ...

    @abstractmethod
    def delete_organization(self, organization_id: str) -> None:
        """Delete an organization with its tickets (and their messages, time
        entries and conversion requests), invoices and users."""

    # tickets

    @abstractmethod
    def get_ticket(self, ticket_id: str) -> Ticket: ...

    @abstractmethod
    def list_tickets(self, filters: TicketFilter | None = None) -> list[Ticket]:
        """Tickets matching ``filters``, newest first."""

    @abstractmethod
    def create_ticket(self, ticket: Ticket) -> Ticket: ...

    @abstractmethod
    def update_ticket(self, ticket_id: str, patch: dict) -> Ticket: ...

    # messages

    @abstractmethod
    def list_messages(self, ticket_id: str, include_internal: bool = True) -> list[Message]: ...

    @abstractmethod
    def create_message(self, message: Message) -> Message:
        """Store the message and bump the parent ticket's ``updated_at``."""

    # time entries

    @abstractmethod
    def list_time_entries(self, ticket_id: str) -> list[TimeEntry]: ...

    @abstractmethod
    def add_time_entry(self, entry: TimeEntry) -> TimeEntry:
        """Store the entry and add its hours to the ticket's ``hours_worked``."""

    # conversion requests

    @abstractmethod
    def get_conversion_request(self, request_id: str) -> ConversionRequest: ...

    @abstractmethod
    def get_conversion_request_for_ticket(self, ticket_id: str) -> ConversionRequest | None: ...

    @abstractmethod
    def list_conversion_requests(
        self, organization_id: str | None = None, pending_only: bool = False
    ) -> list[ConversionRequest]: ...

    @abstractmethod
    def create_conversion_request(self, request: ConversionRequest) -> ConversionRequest: ...

    @abstractmethod
    def set_approval(self, request_id: str, side: str, status: str) -> ConversionRequest: ...

    # invoices

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Invoice: ...

    @abstractmethod
    def list_invoices(self, organization_id: str | None = None) -> list[Invoice]: ...

    @abstractmethod
    def create_invoice(self, invoice: Invoice) -> Invoice: ...

    @abstractmethod
    def update_invoice(self, invoice_id: str, patch: dict) -> Invoice: ...

    # activities

    @abstractmethod
    def create_activity(self, activity: ActivityItem) -> ActivityItem: ...

    @abstractmethod
    def list_activities(self, limit: int, organization_id: str | None = None) -> list[ActivityItem]:
        """Most recent activities first.

        With ``organization_id`` only activities without a ticket, or whose
        ticket belongs to that organization, are returned.
        """


def check_patch(patch: dict, allowed: frozenset, kind: str) -> dict:
    unknown = set(patch) - allowed
    if unknown:
        raise InvalidInput(f"{kind} fields cannot be updated: {', '.join(sorted(unknown))}")
    return patch
