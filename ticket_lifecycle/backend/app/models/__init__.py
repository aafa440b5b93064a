# ticket_lifecycle/backend/app/models/__init__.py

from .user import User
from .ticket import Ticket, TicketTrash
from .permission import Permission
from .tag import Tag, TagResource

__all__ = ["User", "Ticket", "TicketTrash", "Permission", "Tag", "TagResource"]
