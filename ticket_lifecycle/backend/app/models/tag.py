# ticket_lifecycle/backend/app/models/tag.py
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..db import Base


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4())
    )
    owner = Column(Integer, ForeignKey("users.id"), nullable=True)
    name = Column(String(255), nullable=False)
    value = Column(Text, nullable=False, server_default="")
    comment = Column(Text, nullable=False, server_default="")

    creation_time = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    resources = relationship("TagResource", back_populates="tag")


class TagResource(Base):
    """A label: attaches a tag to one resource in the live or trash table."""

    __tablename__ = "tag_resources"

    id = Column(Integer, primary_key=True, index=True)
    tag_id = Column(Integer, ForeignKey("tags.id"), nullable=False, index=True)
    resource_type = Column(String(50), nullable=False)
    resource = Column(Integer, nullable=False)
    resource_uuid = Column(String(36), nullable=True)
    resource_location = Column(Integer, nullable=False, server_default="0")

    tag = relationship("Tag", back_populates="resources")
