# ticket_lifecycle/backend/app/lifecycle/machine.py
"""Create / modify / trash / purge / restore / copy for one resource kind.

Every public method is a single write transaction: the ACL gate runs first,
then validation and capability checks, then the row and its dependents are
written. Any failure rolls the whole operation back.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..errors import NameConflict, NotFound
from .acl import (
    Principal,
    authorize,
    find_resource_with_permission,
    find_trash,
    visible_to,
)
from .capabilities import DEFAULT_CHECKS, run_checks
from .kinds import ResourceKind, registered_kinds
from .references import Location, ResourceRef
from .relocator import (
    copy_labels,
    orphan_dependents,
    relocate_to_active,
    relocate_to_trash,
)
from .transactions import write_transaction
from .validation import name_available, unique_name, validate_name

logger = logging.getLogger(__name__)

RESTORE_OPERATION = "restore"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class ResourceLifecycle:
    """Lifecycle operations bound to a single ResourceKind."""

    def __init__(self, kind: ResourceKind, checks: Iterable = DEFAULT_CHECKS):
        self.kind = kind
        self.checks = tuple(checks)

    # -- helpers ---------------------------------------------------------

    def _clone_into(self, model, row):
        values = {col: getattr(row, col) for col in self.kind.carried_columns()}
        return model(**values)

    def _name_conflict(self, name: str) -> NameConflict:
        return NameConflict(
            f"{self.kind.name} named {name!r} already exists", kind=self.kind.name
        )

    def _not_found(self, resource_uuid: str) -> NotFound:
        return NotFound(
            f"Failed to find {self.kind.name} '{resource_uuid}'",
            kind=self.kind.name,
            resource_id=resource_uuid,
        )

    def _check_attributes(self, attributes: dict) -> None:
        unknown = set(attributes) - set(self.kind.copy_columns)
        if unknown:
            raise TypeError(
                f"unknown {self.kind.name} attributes: {', '.join(sorted(unknown))}"
            )

    # -- transitions -----------------------------------------------------

    def create(
        self,
        db: Session,
        principal: Principal,
        name: str,
        comment: Optional[str] = None,
        **attributes: Any,
    ):
        """Insert a new live resource owned by `principal`."""
        kind = self.kind
        self._check_attributes(attributes)

        with write_transaction(db):
            authorize(db, principal, kind.operation("create"))
            validate_name(name, kind.name)
            if not name_available(db, kind, name, principal.user_id):
                raise self._name_conflict(name)

            now = _now_utc()
            row = kind.model(
                uuid=str(uuid.uuid4()),
                owner=principal.user_id,
                name=name,
                comment=comment or "",
                creation_time=now,
                modification_time=now,
                **attributes,
            )
            db.add(row)
            db.flush()
            new_uuid = row.uuid

        logger.info("%s %s created by %s", kind.name, new_uuid, principal.username)
        return row

    def modify(
        self,
        db: Session,
        principal: Principal,
        resource_uuid: str,
        name: Optional[str] = None,
        comment: Optional[str] = None,
    ):
        """Rename and/or re-comment a live resource; both edits are optional."""
        kind = self.kind
        operation = kind.operation("modify")

        with write_transaction(db):
            authorize(db, principal, operation)
            resource_id = find_resource_with_permission(
                db, principal, kind, resource_uuid, operation
            )
            if resource_id is None:
                raise self._not_found(resource_uuid)
            row = db.get(kind.model, resource_id)
            run_checks(self.checks, "modify", db, kind, row)

            if name is not None:
                validate_name(name, kind.name)
                if not name_available(db, kind, name, row.owner, excluding=row.id):
                    raise self._name_conflict(name)
                row.name = name
                row.modification_time = _now_utc()

            if comment is not None:
                row.comment = comment
                row.modification_time = _now_utc()

            db.flush()

        logger.info("%s %s modified by %s", kind.name, resource_uuid, principal.username)
        return row

    def delete(
        self,
        db: Session,
        principal: Principal,
        resource_uuid: str,
        ultimate: bool = False,
    ) -> None:
        """
        Move a live resource to the trash, or purge it when `ultimate`.
        Trashing something already in the trash is a no-op.
        """
        kind = self.kind
        operation = kind.operation("delete")

        with write_transaction(db):
            authorize(db, principal, operation)
            resource_id = find_resource_with_permission(
                db, principal, kind, resource_uuid, operation
            )

            if resource_id is None:
                trash_id = find_trash(db, principal, kind, resource_uuid)
                if trash_id is None:
                    raise self._not_found(resource_uuid)
                if not ultimate:
                    logger.debug("%s %s is already in the trash", kind.name, resource_uuid)
                    return
                self._purge(db, db.get(kind.trash_model, trash_id), Location.TRASH)
                return

            row = db.get(kind.model, resource_id)
            if ultimate:
                self._purge(db, row, Location.TABLE)
            else:
                self._move_to_trash(db, row)

    def _move_to_trash(self, db: Session, row):
        kind = self.kind
        run_checks(self.checks, "delete", db, kind, row, Location.TABLE)

        trash_row = self._clone_into(kind.trash_model, row)
        db.add(trash_row)
        db.flush()

        relocate_to_trash(db, kind.name, row.id, trash_row.id)
        db.delete(row)
        db.flush()

        logger.info(
            "%s %s moved to trash (trash id %d)", kind.name, trash_row.uuid, trash_row.id
        )
        return trash_row

    def _purge(self, db: Session, row, location: Location) -> None:
        kind = self.kind
        run_checks(self.checks, "purge", db, kind, row, location)

        orphan_dependents(db, ResourceRef(kind.name, row.id, location))
        resource_uuid = row.uuid
        db.delete(row)
        db.flush()

        logger.info("%s %s purged from %s", kind.name, resource_uuid, location.name.lower())

    def restore(self, db: Session, principal: Principal, resource_uuid: str):
        """Bring a trashed resource back into the live table."""
        kind = self.kind

        with write_transaction(db):
            authorize(db, principal, RESTORE_OPERATION)
            trash_id = find_trash(db, principal, kind, resource_uuid)
            if trash_id is None:
                raise self._not_found(resource_uuid)
            trash_row = db.get(kind.trash_model, trash_id)

            if not name_available(db, kind, trash_row.name, trash_row.owner):
                raise self._name_conflict(trash_row.name)

            row = self._clone_into(kind.model, trash_row)
            db.add(row)
            db.flush()

            relocate_to_active(db, kind.name, trash_row.id, row.id)
            db.delete(trash_row)
            db.flush()

        logger.info("%s %s restored by %s", kind.name, resource_uuid, principal.username)
        return row

    def copy(
        self,
        db: Session,
        principal: Principal,
        source_uuid: str,
        name: Optional[str] = None,
        comment: Optional[str] = None,
    ):
        """
        Clone a live resource under a new uuid, owned by `principal`.

        Without `name` the source name is reused, made unique with a
        " Clone N" suffix. Without `comment` the source comment is kept.
        """
        kind = self.kind

        with write_transaction(db):
            authorize(db, principal, kind.operation("create"))
            source_id = find_resource_with_permission(
                db, principal, kind, source_uuid, kind.operation("get")
            )
            if source_id is None:
                raise self._not_found(source_uuid)
            source = db.get(kind.model, source_id)

            if name is None:
                new_name = unique_name(db, kind, source.name, principal.user_id)
            else:
                validate_name(name, kind.name)
                if not name_available(db, kind, name, principal.user_id):
                    raise self._name_conflict(name)
                new_name = name

            now = _now_utc()
            values = {col: getattr(source, col) for col in kind.copy_columns}
            clone = kind.model(
                uuid=str(uuid.uuid4()),
                owner=principal.user_id,
                name=new_name,
                comment=source.comment if comment is None else comment,
                creation_time=now,
                modification_time=now,
                **values,
            )
            db.add(clone)
            db.flush()

            copy_labels(
                db,
                ResourceRef(kind.name, source.id, Location.TABLE),
                ResourceRef(kind.name, clone.id, Location.TABLE),
                clone.uuid,
            )
            db.flush()
            new_uuid = clone.uuid

        logger.info("%s %s copied to %s", kind.name, source_uuid, new_uuid)
        return clone

    # -- reads -----------------------------------------------------------

    def get(self, db: Session, principal: Principal, resource_uuid: str, trash: bool = False):
        kind = self.kind
        if trash:
            resource_id = find_trash(db, principal, kind, resource_uuid)
        else:
            resource_id = find_resource_with_permission(
                db, principal, kind, resource_uuid, kind.operation("get")
            )
        if resource_id is None:
            raise self._not_found(resource_uuid)
        return db.get(kind.trash_model if trash else kind.model, resource_id)

    def list_visible(self, db: Session, principal: Principal, trash: bool = False):
        location = Location.TRASH if trash else Location.TABLE
        model = self.kind.table_for(location)
        stmt = (
            select(model)
            .where(visible_to(principal, self.kind, self.kind.operation("get"), location))
            .order_by(model.name, model.id)
        )
        return db.execute(stmt).scalars().all()

    def count_visible(self, db: Session, principal: Principal, trash: bool = False) -> int:
        location = Location.TRASH if trash else Location.TABLE
        model = self.kind.table_for(location)
        stmt = (
            select(func.count())
            .select_from(model)
            .where(visible_to(principal, self.kind, self.kind.operation("get"), location))
        )
        return db.execute(stmt).scalar_one()

    def uuid_of(self, db: Session, resource_id: int, location: Location = Location.TABLE):
        model = self.kind.table_for(location)
        return db.execute(select(model.uuid).where(model.id == resource_id)).scalar()

    def in_use(self, db: Session, row, location: Location = Location.TABLE) -> bool:
        return bool(self.kind.in_use(db, row, location))

    def writable(self, db: Session, row, location: Location = Location.TABLE) -> bool:
        if location is Location.TRASH:
            return not self.in_use(db, row, location)
        return not self.kind.is_predefined(row)


def restore_any(
    db: Session,
    principal: Principal,
    resource_uuid: str,
    kinds: Optional[Iterable[ResourceKind]] = None,
):
    """
    Restore whichever trashed resource carries `resource_uuid`, trying each
    kind in turn inside one transaction.
    """
    with write_transaction(db):
        for kind in kinds if kinds is not None else registered_kinds():
            try:
                return ResourceLifecycle(kind).restore(db, principal, resource_uuid)
            except NotFound:
                continue
        raise NotFound(f"Failed to find resource '{resource_uuid}'", resource_id=resource_uuid)
