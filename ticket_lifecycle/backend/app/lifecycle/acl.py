# ticket_lifecycle/backend/app/lifecycle/acl.py
"""Per-operation access checks for an explicitly passed acting principal.

A principal may run an operation when its role allows the operation's verb,
or when a command-level grant (a permission row with an empty resource type)
names the operation for that user. Access to a single resource additionally
requires owning it or holding a grant on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from sqlalchemy import exists, or_, select
from sqlalchemy.orm import Session

from ..errors import PermissionDenied
from ..models.permission import Permission
from .kinds import ResourceKind
from .references import Location

logger = logging.getLogger(__name__)

LIFECYCLE_VERBS: FrozenSet[str] = frozenset(
    {"create", "modify", "delete", "restore", "get"}
)

ROLE_VERBS: Dict[str, FrozenSet[str]] = {
    "admin": LIFECYCLE_VERBS,
    "user": LIFECYCLE_VERBS,
    "observer": frozenset({"get"}),
}


@dataclass(frozen=True)
class Principal:
    """The user an operation acts for."""

    user_id: int
    uuid: str
    username: str
    role: str = "user"

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(user_id=user.id, uuid=user.uuid, username=user.username, role=user.role)


def _verb(operation: str) -> str:
    return operation.split("_", 1)[0]


def user_may(db: Session, principal: Principal, operation: str) -> bool:
    if _verb(operation) in ROLE_VERBS.get(principal.role, frozenset()):
        return True
    granted = select(
        exists().where(
            Permission.resource_type == "",
            Permission.subject_type == "user",
            Permission.subject == principal.user_id,
            Permission.name == operation,
        )
    )
    return bool(db.execute(granted).scalar())


def authorize(db: Session, principal: Principal, operation: str) -> None:
    """Raise PermissionDenied unless `principal` may run `operation`."""
    if not user_may(db, principal, operation):
        logger.warning("user %s denied %s", principal.username, operation)
        raise PermissionDenied(f"{principal.username} may not {operation}")


def visible_to(
    principal: Principal,
    kind: ResourceKind,
    permission: str,
    location: Location = Location.TABLE,
):
    """
    WHERE clause: rows the principal owns. Live rows are also visible
    through a grant named `permission`; trashed rows only to their owner.
    """
    model = kind.table_for(location)
    owned = model.owner == principal.user_id
    if location is Location.TRASH:
        return owned
    granted = exists().where(
        Permission.resource_type == kind.name,
        Permission.resource == model.id,
        Permission.resource_location == int(location),
        Permission.subject_type == "user",
        Permission.subject == principal.user_id,
        Permission.name == permission,
    )
    return or_(owned, granted)


def find_resource_with_permission(
    db: Session,
    principal: Principal,
    kind: ResourceKind,
    resource_uuid: str,
    permission: str,
) -> Optional[int]:
    """Internal id of the live resource the principal owns or was granted."""
    model = kind.model
    stmt = select(model.id).where(
        model.uuid == resource_uuid,
        visible_to(principal, kind, permission),
    )
    return db.execute(stmt).scalars().first()


def find_trash(
    db: Session,
    principal: Principal,
    kind: ResourceKind,
    resource_uuid: str,
) -> Optional[int]:
    """Internal id of the principal's trashed resource, if any."""
    model = kind.trash_model
    stmt = select(model.id).where(
        model.uuid == resource_uuid,
        visible_to(principal, kind, kind.operation("get"), Location.TRASH),
    )
    return db.execute(stmt).scalars().first()
