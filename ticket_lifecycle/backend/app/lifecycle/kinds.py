# ticket_lifecycle/backend/app/lifecycle/kinds.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple

from .references import Location


def _never(*_args: Any) -> bool:
    return False


@dataclass(frozen=True)
class ResourceKind:
    """
    Describes one managed resource type: its live table, its trash twin,
    the attributes a copy carries over, and kind-specific predicates.
    """

    name: str
    model: Any
    trash_model: Any
    copy_columns: Tuple[str, ...] = ()
    # (row) -> bool; predefined rows may not be modified or deleted
    is_predefined: Callable[[Any], bool] = _never
    # (db, row, location) -> bool
    in_use: Callable[[Any, Any, Location], bool] = _never

    @property
    def plural(self) -> str:
        return f"{self.name}s"

    def table_for(self, location: Location):
        return self.trash_model if location is Location.TRASH else self.model

    def carried_columns(self) -> Tuple[str, ...]:
        """Every column except the table-local id."""
        return tuple(c.key for c in self.model.__table__.columns if c.key != "id")

    def operation(self, verb: str) -> str:
        if verb == "get":
            return f"get_{self.plural}"
        return f"{verb}_{self.name}"


_REGISTRY: Dict[str, ResourceKind] = {}


def register_kind(kind: ResourceKind) -> ResourceKind:
    _REGISTRY[kind.name] = kind
    return kind


def get_kind(name: str) -> ResourceKind:
    return _REGISTRY[name]


def registered_kinds() -> Tuple[ResourceKind, ...]:
    return tuple(_REGISTRY.values())
