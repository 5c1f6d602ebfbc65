import logging
import pytest
from fastapi import HTTPException

from app.utils.errors import (
    BookingValidationError,
    DomainError,
    ErrorKind,
    SchedulingConflict,
    domain_error_response,
    error_response,
)


def test_error_response_logs(caplog):
    caplog.set_level(logging.ERROR, logger="app.utils.errors")
    with pytest.raises(HTTPException):
        raise error_response("Invalid", {"field": "bad"})
    assert any(
        "Invalid" in r.getMessage() and "'field': 'bad'" in r.getMessage()
        for r in caplog.records
    )


def test_conflict_maps_to_409_with_conflicts():
    exc = SchedulingConflict("taken", code="booking_overlap", conflicts=[{"id": 1}])
    http_exc = domain_error_response(exc)
    assert http_exc.status_code == 409
    assert http_exc.detail == {
        "message": "taken",
        "code": "booking_overlap",
        "field_errors": {},
        "conflicts": [{"id": 1}],
    }


def test_validation_kind_and_default_code():
    exc = BookingValidationError("nope")
    assert exc.kind is ErrorKind.VALIDATION
    assert exc.code == "validation_error"
    assert domain_error_response(exc).status_code == 422


def test_internal_errors_hide_details(caplog):
    caplog.set_level(logging.ERROR, logger="app.utils.errors")
    http_exc = domain_error_response(DomainError("db exploded: password=secret"))
    assert http_exc.status_code == 500
    assert http_exc.detail["message"] == "Internal Server Error"
    assert any("db exploded" in r.getMessage() for r in caplog.records)
