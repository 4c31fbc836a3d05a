# app/store/sql.py
import logging
from contextlib import contextmanager

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.database import Base
from app.core.errors import InvalidInput, NotFound, PortalError, StorageFailure
from app.store.base import (
    INVOICE_PATCH_FIELDS,
    ORGANIZATION_PATCH_FIELDS,
    TICKET_PATCH_FIELDS,
    USER_PATCH_FIELDS,
    EntityStore,
    check_patch,
)
from app.store.models import (
    ActivityRow,
    ConversionRequestRow,
    InvoiceRow,
    MessageRow,
    OrganizationRow,
    TicketRow,
    TimeEntryRow,
    UserRow,
)
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
    utcnow,
)

logger = logging.getLogger(__name__)


class SqlEntityStore(EntityStore):
    """Relational adapter: column filters go into the query, compound writes share a transaction."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @classmethod
    def from_engine(cls, engine, create_schema: bool = True) -> "SqlEntityStore":
        if create_schema:
            Base.metadata.create_all(bind=engine)
        return cls(sessionmaker(autocommit=False, autoflush=False, bind=engine))

    @contextmanager
    def _session(self):
        db: Session = self._session_factory()
        try:
            yield db
            db.commit()
        except PortalError:
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("sql store operation failed")
            raise StorageFailure("storage operation failed") from exc
        finally:
            db.close()

    @staticmethod
    def _require(db: Session, row_cls, key: str, kind: str):
        row = db.get(row_cls, key)
        if row is None:
            raise NotFound(f"{kind} not found")
        return row

    def _insert(self, row_cls, record_cls, record, conflict_message: str):
        with self._session() as db:
            existing = db.get(row_cls, record.id)
            if existing is not None:
                return record_cls.model_validate(existing)
            row = row_cls(**record.model_dump())
            db.add(row)
            try:
                db.flush()
            except IntegrityError as exc:
                raise InvalidInput(conflict_message) from exc
            return record_cls.model_validate(row)

    def _patch(self, row_cls, record_cls, key: str, patch: dict, kind: str):
        with self._session() as db:
            row = self._require(db, row_cls, key, kind)
            for field, value in patch.items():
                setattr(row, field, value)
            try:
                db.flush()
            except IntegrityError as exc:
                raise InvalidInput(f"{kind} update conflicts with an existing record") from exc
            return record_cls.model_validate(row)

    # users

    def get_user(self, user_id: str) -> User:
        with self._session() as db:
            return User.model_validate(self._require(db, UserRow, user_id, "user"))

    def get_user_by_email(self, email: str) -> User:
        with self._session() as db:
            row = db.query(UserRow).filter(UserRow.email == email).first()
            if row is None:
                raise NotFound("user not found")
            return User.model_validate(row)

    def list_users(self, organization_id: str | None = None, include_staff: bool = False) -> list[User]:
        with self._session() as db:
            query = db.query(UserRow)
            if organization_id is not None:
                if include_staff:
                    query = query.filter(
                        or_(UserRow.organization_id == organization_id, UserRow.organization_id.is_(None))
                    )
                else:
                    query = query.filter(UserRow.organization_id == organization_id)
            rows = query.order_by(UserRow.name.asc(), UserRow.id.asc()).all()
            return [User.model_validate(r) for r in rows]

    def create_user(self, user: User) -> User:
        return self._insert(UserRow, User, user, "email already in use")

    def update_user(self, user_id: str, patch: dict) -> User:
        check_patch(patch, USER_PATCH_FIELDS, "user")
        return self._patch(UserRow, User, user_id, patch, "user")

    def delete_user(self, user_id: str) -> None:
        with self._session() as db:
            row = self._require(db, UserRow, user_id, "user")
            db.query(TicketRow).filter(TicketRow.assigned_to == user_id).update(
                {TicketRow.assigned_to: None}, synchronize_session=False
            )
            db.delete(row)

    def unassign_tickets(self, user_id: str) -> int:
        with self._session() as db:
            return (
                db.query(TicketRow)
                .filter(TicketRow.assigned_to == user_id)
                .update({TicketRow.assigned_to: None}, synchronize_session=False)
            )

    # organizations

    def get_organization(self, organization_id: str) -> Organization:
        with self._session() as db:
            row = self._require(db, OrganizationRow, organization_id, "organization")
            return Organization.model_validate(row)

    def list_organizations(self, organization_id: str | None = None) -> list[Organization]:
        with self._session() as db:
            query = db.query(OrganizationRow)
            if organization_id is not None:
                query = query.filter(OrganizationRow.id == organization_id)
            rows = query.order_by(OrganizationRow.name.asc(), OrganizationRow.id.asc()).all()
            return [Organization.model_validate(r) for r in rows]

    def create_organization(self, organization: Organization) -> Organization:
        return self._insert(OrganizationRow, Organization, organization, "organization already exists")

    def update_organization(self, organization_id: str, patch: dict) -> Organization:
        check_patch(patch, ORGANIZATION_PATCH_FIELDS, "organization")
        return self._patch(OrganizationRow, Organization, organization_id, patch, "organization")

    def delete_organization(self, organization_id: str) -> None:
        with self._session() as db:
            row = self._require(db, OrganizationRow, organization_id, "organization")
            ticket_ids = [
                tid for (tid,) in db.query(TicketRow.id).filter(TicketRow.organization_id == organization_id)
            ]
            for child in (TimeEntryRow, MessageRow, ConversionRequestRow):
                db.query(child).filter(child.ticket_id.in_(ticket_ids)).delete(
                    synchronize_session=False
                )
            db.query(TicketRow).filter(TicketRow.organization_id == organization_id).delete(
                synchronize_session=False
            )
            db.query(InvoiceRow).filter(InvoiceRow.organization_id == organization_id).delete(
                synchronize_session=False
            )
            db.query(UserRow).filter(UserRow.organization_id == organization_id).delete(
                synchronize_session=False
            )
            db.delete(row)

    # tickets

    def get_ticket(self, ticket_id: str) -> Ticket:
        with self._session() as db:
            return Ticket.model_validate(self._require(db, TicketRow, ticket_id, "ticket"))

    def list_tickets(self, filters: TicketFilter | None = None) -> list[Ticket]:
        filters = filters or TicketFilter()
        with self._session() as db:
            query = db.query(TicketRow)
            if filters.status:
                query = query.filter(TicketRow.status == filters.status)
            if filters.priority:
                query = query.filter(TicketRow.priority == filters.priority)
            if filters.category:
                query = query.filter(TicketRow.category == filters.category)
            if filters.organization_id is not None:
                query = query.filter(TicketRow.organization_id == filters.organization_id)
            if filters.assigned_to:
                query = query.filter(TicketRow.assigned_to == filters.assigned_to)
            rows = query.order_by(TicketRow.created_at.desc(), TicketRow.id.desc()).all()
            tickets = [Ticket.model_validate(r) for r in rows]
        # SQL lower() folds ASCII only on SQLite, so text search runs in Python
        return [t for t in tickets if filters.matches_search(t)]

    def create_ticket(self, ticket: Ticket) -> Ticket:
        return self._insert(TicketRow, Ticket, ticket, "ticket could not be created")

    def update_ticket(self, ticket_id: str, patch: dict) -> Ticket:
        check_patch(patch, TICKET_PATCH_FIELDS, "ticket")
        return self._patch(TicketRow, Ticket, ticket_id, {**patch, "updated_at": utcnow()}, "ticket")

    # messages

    def list_messages(self, ticket_id: str, include_internal: bool = True) -> list[Message]:
        with self._session() as db:
            query = db.query(MessageRow).filter(MessageRow.ticket_id == ticket_id)
            if not include_internal:
                query = query.filter(MessageRow.is_internal.is_(False))
            rows = query.order_by(MessageRow.created_at.asc(), MessageRow.id.asc()).all()
            return [Message.model_validate(r) for r in rows]

    def create_message(self, message: Message) -> Message:
        with self._session() as db:
            existing = db.get(MessageRow, message.id)
            if existing is not None:
                return Message.model_validate(existing)
            ticket = self._require(db, TicketRow, message.ticket_id, "ticket")
            row = MessageRow(**message.model_dump())
            db.add(row)
            ticket.updated_at = utcnow()
            db.flush()
            return Message.model_validate(row)

    # time entries

    def list_time_entries(self, ticket_id: str) -> list[TimeEntry]:
        with self._session() as db:
            rows = (
                db.query(TimeEntryRow)
                .filter(TimeEntryRow.ticket_id == ticket_id)
                .order_by(TimeEntryRow.entry_date.asc(), TimeEntryRow.created_at.asc(), TimeEntryRow.id.asc())
                .all()
            )
            return [TimeEntry.model_validate(r) for r in rows]

    def add_time_entry(self, entry: TimeEntry) -> TimeEntry:
        with self._session() as db:
            existing = db.get(TimeEntryRow, entry.id)
            if existing is not None:
                return TimeEntry.model_validate(existing)
            self._require(db, TicketRow, entry.ticket_id, "ticket")
            row = TimeEntryRow(**entry.model_dump())
            db.add(row)
            db.query(TicketRow).filter(TicketRow.id == entry.ticket_id).update(
                {
                    TicketRow.hours_worked: TicketRow.hours_worked + entry.hours,
                    TicketRow.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
            db.flush()
            return TimeEntry.model_validate(row)

    # conversion requests

    def get_conversion_request(self, request_id: str) -> ConversionRequest:
        with self._session() as db:
            row = self._require(db, ConversionRequestRow, request_id, "conversion request")
            return ConversionRequest.model_validate(row)

    def get_conversion_request_for_ticket(self, ticket_id: str) -> ConversionRequest | None:
        with self._session() as db:
            row = db.query(ConversionRequestRow).filter(ConversionRequestRow.ticket_id == ticket_id).first()
            return ConversionRequest.model_validate(row) if row is not None else None

    def list_conversion_requests(
        self, organization_id: str | None = None, pending_only: bool = False
    ) -> list[ConversionRequest]:
        with self._session() as db:
            query = db.query(ConversionRequestRow)
            if organization_id is not None:
                query = query.join(TicketRow, TicketRow.id == ConversionRequestRow.ticket_id).filter(
                    TicketRow.organization_id == organization_id
                )
            if pending_only:
                query = query.filter(
                    or_(
                        ConversionRequestRow.internal_approval == "pending",
                        ConversionRequestRow.client_approval == "pending",
                    )
                )
            rows = query.order_by(ConversionRequestRow.created_at.desc(), ConversionRequestRow.id.desc()).all()
            return [ConversionRequest.model_validate(r) for r in rows]

    def create_conversion_request(self, request: ConversionRequest) -> ConversionRequest:
        with self._session() as db:
            existing = db.get(ConversionRequestRow, request.id)
            if existing is not None:
                return ConversionRequest.model_validate(existing)
            self._require(db, TicketRow, request.ticket_id, "ticket")
            row = ConversionRequestRow(**request.model_dump())
            db.add(row)
            try:
                db.flush()
            except IntegrityError as exc:
                raise InvalidInput("ticket already has a conversion request") from exc
            return ConversionRequest.model_validate(row)

    def set_approval(self, request_id: str, side: str, status: str) -> ConversionRequest:
        column = "internal_approval" if side == "internal" else "client_approval"
        return self._patch(
            ConversionRequestRow, ConversionRequest, request_id, {column: status}, "conversion request"
        )

    # invoices

    def get_invoice(self, invoice_id: str) -> Invoice:
        with self._session() as db:
            return Invoice.model_validate(self._require(db, InvoiceRow, invoice_id, "invoice"))

    def list_invoices(self, organization_id: str | None = None) -> list[Invoice]:
        with self._session() as db:
            query = db.query(InvoiceRow)
            if organization_id is not None:
                query = query.filter(InvoiceRow.organization_id == organization_id)
            rows = query.order_by(
                InvoiceRow.year.desc(), InvoiceRow.month.desc(), InvoiceRow.created_at.desc(), InvoiceRow.id.desc()
            ).all()
            return [Invoice.model_validate(r) for r in rows]

    def create_invoice(self, invoice: Invoice) -> Invoice:
        with self._session() as db:
            existing = db.get(InvoiceRow, invoice.id)
            if existing is not None:
                return Invoice.model_validate(existing)
            self._require(db, OrganizationRow, invoice.organization_id, "organization")
            row = InvoiceRow(**invoice.model_dump())
            db.add(row)
            db.flush()
            return Invoice.model_validate(row)

    def update_invoice(self, invoice_id: str, patch: dict) -> Invoice:
        check_patch(patch, INVOICE_PATCH_FIELDS, "invoice")
        return self._patch(InvoiceRow, Invoice, invoice_id, patch, "invoice")

    # activities

    def create_activity(self, activity: ActivityItem) -> ActivityItem:
        return self._insert(ActivityRow, ActivityItem, activity, "activity could not be recorded")

    def list_activities(self, limit: int, organization_id: str | None = None) -> list[ActivityItem]:
        with self._session() as db:
            query = db.query(ActivityRow)
            if organization_id is not None:
                query = query.outerjoin(TicketRow, TicketRow.id == ActivityRow.ticket_id).filter(
                    or_(ActivityRow.ticket_id.is_(None), TicketRow.organization_id == organization_id)
                )
            rows = query.order_by(ActivityRow.created_at.desc(), ActivityRow.id.desc()).limit(limit).all()
            return [ActivityItem.model_validate(r) for r in rows]
