# app/store/kv.py
"""Key-value adapter backed by Redis.

Layout, all keys under ``{prefix}:``

- ``{kind}:{id}``            JSON document of one record
- ``{kind}:ids``             set of every id of that kind
- ``user:email:{email}``     user id owning an email
- ``conversion_request:ticket:{ticket_id}``  id of the ticket's request

There are no joins and no server-side filtering: list operations load every
record of a kind and filter / sort in Python with the same predicates the
relational adapter pushes into SQL.

Read-modify-write updates of a single record are optimistic (WATCH/MULTI,
retried on conflict). Compound writes spanning two records are not atomic:
a time entry is stored before its ticket's ``hours_worked`` is incremented,
and a message before its ticket is touched. A failure between the two writes
leaves the entry without its increment.
"""
import logging
from collections.abc import Callable, Iterable
from contextlib import contextmanager

import redis

from app.core.errors import InvalidInput, NotFound, StorageFailure
from app.store.base import (
    INVOICE_PATCH_FIELDS,
    ORGANIZATION_PATCH_FIELDS,
    TICKET_PATCH_FIELDS,
    USER_PATCH_FIELDS,
    EntityStore,
    check_patch,
)
from app.store.records import (
    ActivityItem,
    ConversionRequest,
    Invoice,
    Message,
    Organization,
    Record,
    Ticket,
    TicketFilter,
    TimeEntry,
    User,
    utcnow,
)

logger = logging.getLogger(__name__)

USER = "user"
ORGANIZATION = "organization"
TICKET = "ticket"
MESSAGE = "message"
TIME_ENTRY = "time_entry"
CONVERSION_REQUEST = "conversion_request"
INVOICE = "invoice"
ACTIVITY = "activity"

_KIND_LABELS = {
    USER: "user",
    ORGANIZATION: "organization",
    TICKET: "ticket",
    MESSAGE: "message",
    TIME_ENTRY: "time entry",
    CONVERSION_REQUEST: "conversion request",
    INVOICE: "invoice",
    ACTIVITY: "activity",
}


class RedisEntityStore(EntityStore):
    def __init__(self, client: redis.Redis, prefix: str = "portal"):
        self._r = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "portal") -> "RedisEntityStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), prefix=prefix)

    # key helpers

    def _key(self, kind: str, record_id: str) -> str:
        return f"{self._prefix}:{kind}:{record_id}"

    def _ids_key(self, kind: str) -> str:
        return f"{self._prefix}:{kind}:ids"

    def _email_key(self, email: str) -> str:
        return f"{self._prefix}:{USER}:email:{email}"

    def _ticket_request_key(self, ticket_id: str) -> str:
        return f"{self._prefix}:{CONVERSION_REQUEST}:ticket:{ticket_id}"

    @contextmanager
    def _guard(self):
        try:
            yield
        except redis.RedisError as exc:
            logger.exception("redis store operation failed")
            raise StorageFailure("storage operation failed") from exc

    # generic record access

    def _load(self, kind: str, record_cls: type[Record], record_id: str):
        with self._guard():
            raw = self._r.get(self._key(kind, record_id))
        if raw is None:
            raise NotFound(f"{_KIND_LABELS[kind]} not found")
        return record_cls.model_validate_json(raw)

    def _exists(self, kind: str, record_id: str) -> bool:
        with self._guard():
            return bool(self._r.exists(self._key(kind, record_id)))

    def _load_all(self, kind: str, record_cls: type[Record]) -> list:
        with self._guard():
            ids = self._r.smembers(self._ids_key(kind))
            if not ids:
                return []
            raws = self._r.mget([self._key(kind, i) for i in ids])
        return [record_cls.model_validate_json(raw) for raw in raws if raw is not None]

    def _insert(self, kind: str, record: Record):
        with self._guard():
            created = self._r.set(self._key(kind, record.id), record.model_dump_json(), nx=True)
            if not created:
                return self._load(kind, type(record), record.id)
            self._r.sadd(self._ids_key(kind), record.id)
        return record

    def _mutate(self, kind: str, record_cls: type[Record], record_id: str, change: Callable):
        """Apply ``change`` to one record under WATCH, retrying on concurrent writes."""
        key = self._key(kind, record_id)

        def apply(pipe):
            raw = pipe.get(key)
            if raw is None:
                raise NotFound(f"{_KIND_LABELS[kind]} not found")
            updated = change(record_cls.model_validate_json(raw))
            pipe.multi()
            pipe.set(key, updated.model_dump_json())
            return updated

        with self._guard():
            return self._r.transaction(apply, key, value_from_callable=True)

    def _patch(self, kind: str, record_cls: type[Record], record_id: str, patch: dict):
        return self._mutate(kind, record_cls, record_id, lambda rec: rec.model_copy(update=patch))

    def _delete_many(self, kind: str, ids: Iterable[str]) -> None:
        ids = list(ids)
        if not ids:
            return
        with self._guard():
            pipe = self._r.pipeline(transaction=False)
            pipe.delete(*[self._key(kind, i) for i in ids])
            pipe.srem(self._ids_key(kind), *ids)
            pipe.execute()

    # users

    def get_user(self, user_id: str) -> User:
        return self._load(USER, User, user_id)

    def get_user_by_email(self, email: str) -> User:
        with self._guard():
            user_id = self._r.get(self._email_key(email))
        if user_id is None:
            raise NotFound("user not found")
        return self.get_user(user_id)

    def list_users(self, organization_id: str | None = None, include_staff: bool = False) -> list[User]:
        users = self._load_all(USER, User)
        if organization_id is not None:
            users = [
                u
                for u in users
                if u.organization_id == organization_id or (include_staff and u.organization_id is None)
            ]
        return sorted(users, key=lambda u: (u.name, u.id))

    def create_user(self, user: User) -> User:
        if self._exists(USER, user.id):
            return self.get_user(user.id)
        self._claim_email(user.email, user.id)
        return self._insert(USER, user)

    def _claim_email(self, email: str, user_id: str) -> None:
        with self._guard():
            claimed = self._r.set(self._email_key(email), user_id, nx=True)
            if not claimed and self._r.get(self._email_key(email)) != user_id:
                raise InvalidInput("email already in use")

    def _release_email(self, email: str, user_id: str) -> None:
        key = self._email_key(email)
        with self._guard():
            if self._r.get(key) == user_id:
                self._r.delete(key)

    def update_user(self, user_id: str, patch: dict) -> User:
        check_patch(patch, USER_PATCH_FIELDS, "user")
        current = self.get_user(user_id)
        new_email = patch.get("email")
        email_changed = new_email is not None and new_email != current.email
        if email_changed:
            self._claim_email(new_email, user_id)
        try:
            updated = self._patch(USER, User, user_id, patch)
        except Exception:
            if email_changed:
                self._release_email(new_email, user_id)
            raise
        if email_changed:
            with self._guard():
                self._r.delete(self._email_key(current.email))
        return updated

    def delete_user(self, user_id: str) -> None:
        user = self.get_user(user_id)
        self.unassign_tickets(user_id)
        with self._guard():
            self._r.delete(self._email_key(user.email))
        self._delete_many(USER, [user_id])

    def unassign_tickets(self, user_id: str) -> int:
        assigned = [t for t in self._load_all(TICKET, Ticket) if t.assigned_to == user_id]
        for ticket in assigned:
            self._mutate(
                TICKET,
                Ticket,
                ticket.id,
                lambda t: t.model_copy(update={"assigned_to": None}) if t.assigned_to == user_id else t,
            )
        return len(assigned)

    # organizations

    def get_organization(self, organization_id: str) -> Organization:
        return self._load(ORGANIZATION, Organization, organization_id)

    def list_organizations(self, organization_id: str | None = None) -> list[Organization]:
        orgs = self._load_all(ORGANIZATION, Organization)
        if organization_id is not None:
            orgs = [o for o in orgs if o.id == organization_id]
        return sorted(orgs, key=lambda o: (o.name, o.id))

    def create_organization(self, organization: Organization) -> Organization:
        return self._insert(ORGANIZATION, organization)

    def update_organization(self, organization_id: str, patch: dict) -> Organization:
        check_patch(patch, ORGANIZATION_PATCH_FIELDS, "organization")
        return self._patch(ORGANIZATION, Organization, organization_id, patch)

    def delete_organization(self, organization_id: str) -> None:
        self.get_organization(organization_id)
        ticket_ids = {t.id for t in self._load_all(TICKET, Ticket) if t.organization_id == organization_id}

        for kind, record_cls in ((MESSAGE, Message), (TIME_ENTRY, TimeEntry), (CONVERSION_REQUEST, ConversionRequest)):
            children = [c.id for c in self._load_all(kind, record_cls) if c.ticket_id in ticket_ids]
            self._delete_many(kind, children)
        if ticket_ids:
            with self._guard():
                self._r.delete(*[self._ticket_request_key(t) for t in ticket_ids])
        self._delete_many(TICKET, ticket_ids)

        invoices = [i.id for i in self._load_all(INVOICE, Invoice) if i.organization_id == organization_id]
        self._delete_many(INVOICE, invoices)

        users = [u for u in self._load_all(USER, User) if u.organization_id == organization_id]
        if users:
            with self._guard():
                self._r.delete(*[self._email_key(u.email) for u in users])
        self._delete_many(USER, [u.id for u in users])

        self._delete_many(ORGANIZATION, [organization_id])

    # tickets

    def get_ticket(self, ticket_id: str) -> Ticket:
        return self._load(TICKET, Ticket, ticket_id)

    def list_tickets(self, filters: TicketFilter | None = None) -> list[Ticket]:
        filters = filters or TicketFilter()
        tickets = [t for t in self._load_all(TICKET, Ticket) if filters.matches(t)]
        return sorted(tickets, key=lambda t: (t.created_at, t.id), reverse=True)

    def create_ticket(self, ticket: Ticket) -> Ticket:
        return self._insert(TICKET, ticket)

    def update_ticket(self, ticket_id: str, patch: dict) -> Ticket:
        check_patch(patch, TICKET_PATCH_FIELDS, "ticket")
        return self._patch(TICKET, Ticket, ticket_id, {**patch, "updated_at": utcnow()})

    def _touch_ticket(self, ticket_id: str, hours: float = 0.0) -> Ticket:
        return self._mutate(
            TICKET,
            Ticket,
            ticket_id,
            lambda t: t.model_copy(update={"hours_worked": t.hours_worked + hours, "updated_at": utcnow()}),
        )

    # messages

    def list_messages(self, ticket_id: str, include_internal: bool = True) -> list[Message]:
        messages = [
            m
            for m in self._load_all(MESSAGE, Message)
            if m.ticket_id == ticket_id and (include_internal or not m.is_internal)
        ]
        return sorted(messages, key=lambda m: (m.created_at, m.id))

    def create_message(self, message: Message) -> Message:
        if self._exists(MESSAGE, message.id):
            return self._load(MESSAGE, Message, message.id)
        self.get_ticket(message.ticket_id)
        stored = self._insert(MESSAGE, message)
        self._touch_ticket(message.ticket_id)
        return stored

    # time entries

    def list_time_entries(self, ticket_id: str) -> list[TimeEntry]:
        entries = [e for e in self._load_all(TIME_ENTRY, TimeEntry) if e.ticket_id == ticket_id]
        return sorted(entries, key=lambda e: (e.entry_date, e.created_at, e.id))

    def add_time_entry(self, entry: TimeEntry) -> TimeEntry:
        if self._exists(TIME_ENTRY, entry.id):
            return self._load(TIME_ENTRY, TimeEntry, entry.id)
        self.get_ticket(entry.ticket_id)
        stored = self._insert(TIME_ENTRY, entry)
        self._touch_ticket(entry.ticket_id, hours=entry.hours)
        return stored

    # conversion requests

    def get_conversion_request(self, request_id: str) -> ConversionRequest:
        return self._load(CONVERSION_REQUEST, ConversionRequest, request_id)

    def get_conversion_request_for_ticket(self, ticket_id: str) -> ConversionRequest | None:
        with self._guard():
            request_id = self._r.get(self._ticket_request_key(ticket_id))
        if request_id is None:
            return None
        try:
            return self.get_conversion_request(request_id)
        except NotFound:
            return None

    def list_conversion_requests(
        self, organization_id: str | None = None, pending_only: bool = False
    ) -> list[ConversionRequest]:
        requests = self._load_all(CONVERSION_REQUEST, ConversionRequest)
        if organization_id is not None:
            org_tickets = {t.id for t in self._load_all(TICKET, Ticket) if t.organization_id == organization_id}
            requests = [cr for cr in requests if cr.ticket_id in org_tickets]
        if pending_only:
            requests = [cr for cr in requests if cr.is_pending]
        return sorted(requests, key=lambda cr: (cr.created_at, cr.id), reverse=True)

    def create_conversion_request(self, request: ConversionRequest) -> ConversionRequest:
        if self._exists(CONVERSION_REQUEST, request.id):
            return self.get_conversion_request(request.id)
        self.get_ticket(request.ticket_id)
        with self._guard():
            claimed = self._r.set(self._ticket_request_key(request.ticket_id), request.id, nx=True)
        if not claimed:
            raise InvalidInput("ticket already has a conversion request")
        return self._insert(CONVERSION_REQUEST, request)

    def set_approval(self, request_id: str, side: str, status: str) -> ConversionRequest:
        field = "internal_approval" if side == "internal" else "client_approval"
        return self._patch(CONVERSION_REQUEST, ConversionRequest, request_id, {field: status})

    # invoices

    def get_invoice(self, invoice_id: str) -> Invoice:
        return self._load(INVOICE, Invoice, invoice_id)

    def list_invoices(self, organization_id: str | None = None) -> list[Invoice]:
        invoices = self._load_all(INVOICE, Invoice)
        if organization_id is not None:
            invoices = [i for i in invoices if i.organization_id == organization_id]
        return sorted(invoices, key=lambda i: (i.year, i.month, i.created_at, i.id), reverse=True)

    def create_invoice(self, invoice: Invoice) -> Invoice:
        if self._exists(INVOICE, invoice.id):
            return self.get_invoice(invoice.id)
        self.get_organization(invoice.organization_id)
        return self._insert(INVOICE, invoice)

    def update_invoice(self, invoice_id: str, patch: dict) -> Invoice:
        check_patch(patch, INVOICE_PATCH_FIELDS, "invoice")
        return self._patch(INVOICE, Invoice, invoice_id, patch)

    # activities

    def create_activity(self, activity: ActivityItem) -> ActivityItem:
        return self._insert(ACTIVITY, activity)

    def list_activities(self, limit: int, organization_id: str | None = None) -> list[ActivityItem]:
        activities = self._load_all(ACTIVITY, ActivityItem)
        if organization_id is not None:
            ticket_orgs = {t.id: t.organization_id for t in self._load_all(TICKET, Ticket)}
            activities = [
                a for a in activities if a.ticket_id is None or ticket_orgs.get(a.ticket_id) == organization_id
            ]
        activities.sort(key=lambda a: (a.created_at, a.id), reverse=True)
        return activities[:limit]
