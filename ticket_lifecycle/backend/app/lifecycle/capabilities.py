# ticket_lifecycle/backend/app/lifecycle/capabilities.py
from __future__ import annotations

from typing import FrozenSet, Tuple

from sqlalchemy.orm import Session

from ..errors import Immutable, ResourceInUse
from .kinds import ResourceKind
from .references import Location


class CapabilityCheck:
    """
    One guard the state machine runs before a mutating transition.
    `verbs` lists the transitions it applies to ("modify", "delete", "purge").
    """

    verbs: FrozenSet[str] = frozenset()

    def applies_to(self, verb: str) -> bool:
        return verb in self.verbs

    def check(self, db: Session, kind: ResourceKind, row, location: Location) -> None:
        raise NotImplementedError


class PredefinedResourceCheck(CapabilityCheck):
    verbs = frozenset({"modify", "delete", "purge"})

    def check(self, db, kind, row, location):
        if kind.is_predefined(row):
            raise Immutable(kind=kind.name, resource_id=row.uuid)


class InUseCheck(CapabilityCheck):
    verbs = frozenset({"delete", "purge"})

    def check(self, db, kind, row, location):
        if kind.in_use(db, row, location):
            raise ResourceInUse(kind=kind.name, resource_id=row.uuid)


DEFAULT_CHECKS: Tuple[CapabilityCheck, ...] = (
    PredefinedResourceCheck(),
    InUseCheck(),
)


def run_checks(
    checks,
    verb: str,
    db: Session,
    kind: ResourceKind,
    row,
    location: Location = Location.TABLE,
) -> None:
    for check in checks:
        if check.applies_to(verb):
            check.check(db, kind, row, location)
