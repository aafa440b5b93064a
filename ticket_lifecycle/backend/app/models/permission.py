# ticket_lifecycle/backend/app/models/permission.py
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from ..db import Base


class Permission(Base):
    """
    An access grant: `subject` may perform `name` on a resource.

    `resource_type == ""` marks a command-level grant that is not tied to
    any resource. `resource` is NULL once the granted resource was purged;
    `resource_uuid` is kept so the grant still says what it was for.
    """

    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4())
    )
    owner = Column(Integer, ForeignKey("users.id"), nullable=True)
    name = Column(String(100), nullable=False)
    comment = Column(Text, nullable=False, server_default="")

    resource_type = Column(String(50), nullable=False, server_default="")
    resource = Column(Integer, nullable=True)
    resource_uuid = Column(String(36), nullable=True)
    resource_location = Column(Integer, nullable=False, server_default="0")

    subject_type = Column(String(50), nullable=False, server_default="user")
    subject = Column(Integer, nullable=False)

    creation_time = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    modification_time = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
