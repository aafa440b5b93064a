# ticket_lifecycle/backend/app/lifecycle/validation.py
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..errors import EmptyName
from .kinds import ResourceKind


def validate_name(name: Optional[str], kind: Optional[str] = None) -> str:
    """Reject names that are empty after trimming whitespace."""
    if name is None or not name.strip():
        raise EmptyName(kind=kind)
    return name


def name_available(
    db: Session,
    kind: ResourceKind,
    name: str,
    owner_id: int,
    excluding: Optional[int] = None,
) -> bool:
    """
    True unless a live resource of this kind owned by `owner_id` already
    carries exactly `name`. Trashed resources never block a name.
    """
    model = kind.model
    stmt = select(func.count()).select_from(model).where(
        model.name == name, model.owner == owner_id
    )
    if excluding is not None:
        stmt = stmt.where(model.id != excluding)
    return db.execute(stmt).scalar_one() == 0


def unique_name(
    db: Session,
    kind: ResourceKind,
    proposed: str,
    owner_id: int,
    suffix: str = " Clone",
) -> str:
    """Return `proposed`, or the first free "<proposed><suffix> N"."""
    if name_available(db, kind, proposed, owner_id):
        return proposed
    number = 1
    while True:
        candidate = f"{proposed}{suffix} {number}"
        if name_available(db, kind, candidate, owner_id):
            return candidate
        number += 1
