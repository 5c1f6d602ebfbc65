"""Domain error hierarchy and the HTTP error payload helper.

Every rule violation raised by the scheduling engine is a :class:`DomainError`
subclass tagged with an :class:`ErrorKind`. The API layer maps the kind to a
status code; nothing inspects messages or payload shapes to classify errors.
"""

import enum
import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class DomainError(Exception):
    kind = ErrorKind.INTERNAL
    default_code = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        field_errors: Optional[Dict[str, str]] = None,
        conflicts: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.field_errors = field_errors or {}
        self.conflicts = conflicts or []

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def to_detail(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "field_errors": self.field_errors,
            "conflicts": self.conflicts,
        }


class BookingValidationError(DomainError):
    """Input or business-rule violation (lead time, cutoff, terminal state)."""

    kind = ErrorKind.VALIDATION
    default_code = "validation_error"


class AuthorizationError(DomainError):
    kind = ErrorKind.AUTHORIZATION
    default_code = "forbidden"


class SchedulingConflict(DomainError):
    """The requested span overlaps bookings or blocked ranges.

    ``conflicts`` lists every overlapping entity, not just the first.
    """

    kind = ErrorKind.CONFLICT
    default_code = "scheduling_conflict"


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND
    default_code = "not_found"


def error_response(
    message: str,
    field_errors: Dict[str, str],
    code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
) -> HTTPException:
    """Return an HTTPException with a consistent structure and log details."""
    logger.error("%s %s", message, field_errors)
    detail = {"message": message, "field_errors": field_errors}
    return HTTPException(status_code=code, detail=detail)


def domain_error_response(exc: DomainError) -> HTTPException:
    """Translate a domain error into the same payload shape as ``error_response``."""
    if exc.kind is ErrorKind.INTERNAL:
        logger.error("Internal scheduling error: %s", exc.message, exc_info=exc)
        detail = {
            "message": "Internal Server Error",
            "code": exc.code,
            "field_errors": {},
            "conflicts": [],
        }
    else:
        logger.warning(
            "%s rejected (%s): %s %s",
            exc.kind.value,
            exc.code,
            exc.message,
            exc.field_errors or exc.conflicts or "",
        )
        detail = exc.to_detail()
    return HTTPException(status_code=exc.status_code, detail=detail)
