# ticket_lifecycle/backend/app/lifecycle/relocator.py
"""Keep grants and labels pointing at a resource while it changes tables.

Live and trash tables number their rows independently, so every move
rewrites the dependents' (resource, resource_location) pair in bulk.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from ..models.permission import Permission
from ..models.tag import TagResource
from .references import Location, ResourceRef

logger = logging.getLogger(__name__)

DEPENDENT_MODELS = (Permission, TagResource)


def _pointing_at(model, ref: ResourceRef):
    return (
        model.resource_type == ref.kind,
        model.resource == ref.id,
        model.resource_location == int(ref.location),
    )


def relocate_grants(db: Session, source: ResourceRef, target: ResourceRef) -> int:
    return _relocate(db, Permission, source, target)


def relocate_labels(db: Session, source: ResourceRef, target: ResourceRef) -> int:
    return _relocate(db, TagResource, source, target)


def _relocate(db: Session, model, source: ResourceRef, target: ResourceRef) -> int:
    if source.kind != target.kind:
        raise ValueError(f"cannot move {source.kind} dependents onto a {target.kind}")
    result = db.execute(
        update(model)
        .where(*_pointing_at(model, source))
        .values(resource=target.id, resource_location=int(target.location))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def relocate(db: Session, source: ResourceRef, target: ResourceRef) -> Tuple[int, int]:
    """Point every grant and label on `source` at `target` instead."""
    grants = relocate_grants(db, source, target)
    labels = relocate_labels(db, source, target)
    logger.debug(
        "relocated %d grants, %d labels from %s to %s", grants, labels, source, target
    )
    return grants, labels


def relocate_to_trash(db: Session, kind: str, active_id: int, trash_id: int):
    source = ResourceRef(kind, active_id, Location.TABLE)
    return relocate(db, source, source.moved_to(trash_id, Location.TRASH))


def relocate_to_active(db: Session, kind: str, trash_id: int, active_id: int):
    source = ResourceRef(kind, trash_id, Location.TRASH)
    return relocate(db, source, source.moved_to(active_id, Location.TABLE))


def orphan_grants(db: Session, ref: ResourceRef) -> int:
    """Detach grants from a resource that is going away; keep resource_uuid."""
    result = db.execute(
        update(Permission)
        .where(*_pointing_at(Permission, ref))
        .values(resource=None)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def remove_labels(db: Session, ref: ResourceRef) -> int:
    result = db.execute(
        delete(TagResource)
        .where(*_pointing_at(TagResource, ref))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def orphan_dependents(db: Session, ref: ResourceRef) -> Tuple[int, int]:
    grants = orphan_grants(db, ref)
    labels = remove_labels(db, ref)
    logger.debug("orphaned %d grants, removed %d labels of %s", grants, labels, ref)
    return grants, labels


def copy_labels(
    db: Session,
    source: ResourceRef,
    target: ResourceRef,
    target_uuid: Optional[str] = None,
) -> int:
    """Attach every tag on `source` to a freshly created `target` as well."""
    tag_ids = db.execute(
        select(TagResource.tag_id).where(*_pointing_at(TagResource, source))
    ).scalars().all()
    for tag_id in tag_ids:
        db.add(
            TagResource(
                tag_id=tag_id,
                resource_type=target.kind,
                resource=target.id,
                resource_uuid=target_uuid,
                resource_location=int(target.location),
            )
        )
    return len(tag_ids)


def count_dependents(db: Session, ref: ResourceRef) -> Tuple[int, int]:
    """(grants, labels) currently pointing at `ref`."""
    counts = []
    for model in DEPENDENT_MODELS:
        counts.append(
            db.execute(
                select(func.count()).select_from(model).where(*_pointing_at(model, ref))
            ).scalar_one()
        )
    return counts[0], counts[1]
