# ticket_lifecycle/backend/app/models/user.py
import uuid

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from ..db import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4())
    )
    username = Column(String(100), unique=True, nullable=False)
    role = Column(String(50), nullable=False, server_default="user")

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
