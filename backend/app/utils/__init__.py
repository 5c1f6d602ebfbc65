from .json_utils import dumps
from .errors import (
    AuthorizationError,
    BookingValidationError,
    DomainError,
    ErrorKind,
    NotFoundError,
    SchedulingConflict,
    error_response,
)
from .intervals import overlaps
