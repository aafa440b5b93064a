# ticket_lifecycle/backend/app/schemas/ticket.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TicketAttributes(BaseModel):
    """Domain fields a ticket carries through trash, restore and copy."""

    task: Optional[int] = None
    report: Optional[int] = None
    severity: Optional[float] = None
    host: Optional[str] = None
    location: Optional[str] = None
    solution_type: Optional[str] = None
    assigned_to: Optional[int] = None
    status: str = "open"
    open_time: Optional[datetime] = None
    solved_time: Optional[datetime] = None
    solved_comment: Optional[str] = None
    confirmed_time: Optional[datetime] = None
    confirmed_result: Optional[int] = None
    closed_time: Optional[datetime] = None
    closed_rationale: Optional[str] = None
    orphaned_time: Optional[datetime] = None


class TicketCreate(TicketAttributes):
    name: str
    comment: Optional[str] = None


class TicketModify(BaseModel):
    # None leaves the field untouched
    name: Optional[str] = None
    comment: Optional[str] = None


class TicketCopy(BaseModel):
    name: Optional[str] = None
    comment: Optional[str] = None


class TicketRead(TicketAttributes):
    id: int
    uuid: str
    owner: Optional[int] = None
    name: str
    comment: str
    creation_time: datetime
    modification_time: datetime

    # Pydantic v2 style (replaces orm_mode = True)
    model_config = ConfigDict(from_attributes=True)
