# ticket_lifecycle/backend/app/lifecycle/references.py
from dataclasses import dataclass
from enum import IntEnum


class Location(IntEnum):
    """Which table a referenced resource currently lives in."""

    TABLE = 0
    TRASH = 1

    @property
    def other(self) -> "Location":
        return Location.TRASH if self is Location.TABLE else Location.TABLE


@dataclass(frozen=True)
class ResourceRef:
    """
    Composite key a dependent row uses to point at a resource.

    Internal ids are only unique per table, so `id` means nothing
    without `location`.
    """

    kind: str
    id: int
    location: Location = Location.TABLE

    def moved_to(self, new_id: int, location: Location) -> "ResourceRef":
        return ResourceRef(self.kind, new_id, location)
