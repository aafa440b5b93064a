# ticket_lifecycle/backend/app/services/tickets.py
"""Ticket management on top of the generic resource lifecycle."""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..lifecycle.acl import Principal
from ..lifecycle.kinds import ResourceKind, register_kind
from ..lifecycle.machine import ResourceLifecycle
from ..lifecycle.references import Location
from ..models.ticket import Ticket, TicketTrash
from ..schemas.ticket import (
    TicketAttributes,
    TicketCopy,
    TicketCreate,
    TicketModify,
    TicketRead,
)

TICKET_COPY_COLUMNS = (
    "task",
    "report",
    "severity",
    "host",
    "location",
    "solution_type",
    "assigned_to",
    "status",
    "open_time",
    "solved_time",
    "solved_comment",
    "confirmed_time",
    "confirmed_result",
    "closed_time",
    "closed_rationale",
    "orphaned_time",
)

# Tickets have no predefined rows and nothing refers to them.
TICKET_KIND = register_kind(
    ResourceKind(
        name="ticket",
        model=Ticket,
        trash_model=TicketTrash,
        copy_columns=TICKET_COPY_COLUMNS,
    )
)

tickets = ResourceLifecycle(TICKET_KIND)


def create_ticket(db: Session, principal: Principal, payload: TicketCreate) -> TicketRead:
    attributes = payload.model_dump(include=set(TicketAttributes.model_fields))
    ticket = tickets.create(db, principal, payload.name, payload.comment, **attributes)
    return TicketRead.model_validate(ticket)


def modify_ticket(
    db: Session, principal: Principal, ticket_id: str, payload: TicketModify
) -> TicketRead:
    ticket = tickets.modify(db, principal, ticket_id, name=payload.name, comment=payload.comment)
    return TicketRead.model_validate(ticket)


def delete_ticket(
    db: Session, principal: Principal, ticket_id: str, ultimate: bool = False
) -> None:
    tickets.delete(db, principal, ticket_id, ultimate=ultimate)


def restore_ticket(db: Session, principal: Principal, ticket_id: str) -> TicketRead:
    return TicketRead.model_validate(tickets.restore(db, principal, ticket_id))


def copy_ticket(
    db: Session, principal: Principal, ticket_id: str, payload: Optional[TicketCopy] = None
) -> TicketRead:
    payload = payload or TicketCopy()
    ticket = tickets.copy(db, principal, ticket_id, name=payload.name, comment=payload.comment)
    return TicketRead.model_validate(ticket)


def get_ticket(
    db: Session, principal: Principal, ticket_id: str, trash: bool = False
) -> TicketRead:
    return TicketRead.model_validate(tickets.get(db, principal, ticket_id, trash=trash))


def list_tickets(db: Session, principal: Principal, trash: bool = False) -> List[TicketRead]:
    return [TicketRead.model_validate(t) for t in tickets.list_visible(db, principal, trash)]


def ticket_count(db: Session, principal: Principal, trash: bool = False) -> int:
    return tickets.count_visible(db, principal, trash)


def ticket_uuid(db: Session, ticket: int) -> str:
    return tickets.uuid_of(db, ticket)


def ticket_in_use(db: Session, ticket: Ticket) -> bool:
    return tickets.in_use(db, ticket, Location.TABLE)


def trash_ticket_in_use(db: Session, ticket: TicketTrash) -> bool:
    return tickets.in_use(db, ticket, Location.TRASH)


def ticket_writable(db: Session, ticket: Ticket) -> bool:
    return tickets.writable(db, ticket, Location.TABLE)


def trash_ticket_writable(db: Session, ticket: TicketTrash) -> bool:
    return tickets.writable(db, ticket, Location.TRASH)
