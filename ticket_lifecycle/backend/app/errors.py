# ticket_lifecycle/backend/app/errors.py
from enum import Enum
from typing import Optional


class ResultCode(str, Enum):
    """Closed set of outcomes a lifecycle operation can report."""

    OK = "ok"
    NOT_FOUND = "not_found"
    NAME_CONFLICT = "name_conflict"
    EMPTY_NAME = "empty_name"
    PERMISSION_DENIED = "permission_denied"
    IMMUTABLE = "immutable"
    IN_USE = "in_use"
    INTERNAL_ERROR = "internal_error"


class LifecycleError(Exception):
    """Base class; every subclass maps to exactly one ResultCode."""

    code: ResultCode = ResultCode.INTERNAL_ERROR
    default_message = "Internal error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        kind: Optional[str] = None,
        resource_id: Optional[str] = None,
    ):
        self.kind = kind
        self.resource_id = resource_id
        super().__init__(message or self.default_message)


class PermissionDenied(LifecycleError):
    code = ResultCode.PERMISSION_DENIED
    default_message = "Permission denied"


class NotFound(LifecycleError):
    code = ResultCode.NOT_FOUND
    default_message = "Resource not found"


class NameConflict(LifecycleError):
    code = ResultCode.NAME_CONFLICT
    default_message = "A resource with this name already exists"


class EmptyName(LifecycleError):
    code = ResultCode.EMPTY_NAME
    default_message = "Name must not be empty"


class Immutable(LifecycleError):
    code = ResultCode.IMMUTABLE
    default_message = "Predefined resource cannot be changed"


class ResourceInUse(LifecycleError):
    code = ResultCode.IN_USE
    default_message = "Resource is in use"


class InternalError(LifecycleError):
    code = ResultCode.INTERNAL_ERROR
