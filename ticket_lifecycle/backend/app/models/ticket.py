# ticket_lifecycle/backend/app/models/ticket.py

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func

from ..db import Base


class TicketColumns:
    """
    Attribute set shared by the live table and its trash twin.
    Everything except `id` is carried unchanged across a trash move.
    """

    uuid = Column(String(36), nullable=False, index=True)

    @declared_attr
    def owner(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    name = Column(String(255), nullable=False)
    comment = Column(Text, nullable=False, server_default="")

    task = Column(Integer, nullable=True)
    report = Column(Integer, nullable=True)
    severity = Column(Float, nullable=True)
    host = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    solution_type = Column(String(100), nullable=True)

    @declared_attr
    def assigned_to(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=True)

    status = Column(String(50), nullable=False, server_default="open")
    open_time = Column(DateTime(timezone=True), nullable=True)
    solved_time = Column(DateTime(timezone=True), nullable=True)
    solved_comment = Column(Text, nullable=True)
    confirmed_time = Column(DateTime(timezone=True), nullable=True)
    confirmed_result = Column(Integer, nullable=True)
    closed_time = Column(DateTime(timezone=True), nullable=True)
    closed_rationale = Column(Text, nullable=True)
    orphaned_time = Column(DateTime(timezone=True), nullable=True)

    creation_time = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    modification_time = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class Ticket(TicketColumns, Base):
    __tablename__ = "tickets"
    # ids are never reused, so a restored ticket always gets a fresh one
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)


class TicketTrash(TicketColumns, Base):
    __tablename__ = "tickets_trash"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
