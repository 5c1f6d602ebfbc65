from datetime import timedelta

import pytest

from app.api import dependencies
from app.api.auth import create_access_token
from app.models import BookingStatus, ContractorStatus

from factories import MONDAY, NOW, add_booking, add_client, at

BOOKINGS = "/api/v1/bookings"


def iso(dt):
    return dt.isoformat()


def test_client_books_a_free_slot(api, world):
    res = api.post(BOOKINGS, json={"service_id": world.service.id, "scheduled_at": iso(at("10:00"))})
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["status"] == "confirmed"
    assert body["scheduled_at"] == "2030-01-07T10:00:00"
    assert body["ends_at"] == "2030-01-07T11:00:00"
    assert body["contractor_id"] == world.contractor.id


def test_double_booking_returns_conflict_payload(api, db, world):
    existing = add_booking(db, world, at("10:00"), client=add_client(db, "first@test.com"))
    res = api.post(BOOKINGS, json={"service_id": world.service.id, "scheduled_at": iso(at("10:30"))})
    assert res.status_code == 409
    detail = res.json()["detail"]
    assert detail["code"] == "booking_overlap"
    assert [c["id"] for c in detail["conflicts"]] == [existing.id]


def test_lead_time_violation_is_422(api, world):
    res = api.post(
        BOOKINGS,
        json={"service_id": world.service.id, "scheduled_at": iso(NOW + timedelta(minutes=119))},
    )
    assert res.status_code == 422
    assert res.json()["detail"]["code"] == "lead_time"
    assert res.json()["detail"]["field_errors"] == {"scheduled_at": "too_soon"}


def test_malformed_body_uses_field_errors(api):
    res = api.post(BOOKINGS, json={"scheduled_at": "not-a-date"})
    assert res.status_code == 422
    detail = res.json()["detail"]
    assert detail["code"] == "request_validation"
    assert "service_id" in detail["field_errors"]
    assert "scheduled_at" in detail["field_errors"]


def test_unknown_service_is_404(api):
    res = api.post(BOOKINGS, json={"service_id": 424242, "scheduled_at": iso(at("10:00"))})
    assert res.status_code == 404


def test_my_bookings_lists_only_own(api, db, world):
    mine = add_booking(db, world, at("10:00"))
    add_booking(db, world, at("12:00"), client=add_client(db, "someone@test.com"))
    res = api.get(f"{BOOKINGS}/my-bookings")
    assert res.status_code == 200
    assert [b["id"] for b in res.json()] == [mine.id]


def test_booking_detail_visibility(api, db, world):
    booking = add_booking(db, world, at("10:00"))
    assert api.get(f"{BOOKINGS}/{booking.id}").status_code == 200
    assert api.as_user(world.owner).get(f"{BOOKINGS}/{booking.id}").status_code == 200
    stranger = add_client(db, "nosy@test.com")
    res = api.as_user(stranger).get(f"{BOOKINGS}/{booking.id}")
    assert res.status_code == 403
    assert res.json()["detail"]["code"] == "forbidden"
    assert api.get(f"{BOOKINGS}/99999").status_code == 404


def test_cancel_before_and_after_cutoff(api, db, world):
    far = add_booking(db, world, NOW + timedelta(minutes=121))
    near = add_booking(db, world, NOW + timedelta(minutes=30), client=world.client, duration=30)

    res = api.patch(f"{BOOKINGS}/{far.id}/cancel")
    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"

    res = api.patch(f"{BOOKINGS}/{near.id}/cancel")
    assert res.status_code == 422
    assert res.json()["detail"]["code"] == "cancellation_cutoff"


def test_cancel_twice_reports_terminal_state(api, db, world):
    booking = add_booking(db, world, at("12:00"), status=BookingStatus.CANCELLED)
    res = api.patch(f"{BOOKINGS}/{booking.id}/cancel")
    assert res.status_code == 422
    assert res.json()["detail"]["code"] == "terminal_state"


def test_missing_token_is_401(api):
    api.app.dependency_overrides.pop(dependencies.get_current_user)
    res = api.get(f"{BOOKINGS}/my-bookings")
    assert res.status_code == 401
    assert res.headers["www-authenticate"] == "Bearer"


def test_bearer_token_identifies_client(api, db, world):
    api.app.dependency_overrides.pop(dependencies.get_current_user)
    add_booking(db, world, at("10:00"))
    token = create_access_token({"sub": world.client.email})
    res = api.get(f"{BOOKINGS}/my-bookings", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    assert len(res.json()) == 1

    bad = api.get(f"{BOOKINGS}/my-bookings", headers={"Authorization": "Bearer nonsense"})
    assert bad.status_code == 401


def test_available_slots_endpoint(api, db, world):
    add_booking(db, world, at("09:00"))
    res = api.get(f"/api/v1/services/{world.service.id}/available-slots")
    assert res.status_code == 200
    body = res.json()
    assert body["duration_minutes"] == 60
    assert body["next_available_slot"] == {
        "date": MONDAY.isoformat(),
        "time": "10:00",
        "datetime": "2030-01-07T10:00:00",
    }
    assert body["available_slots"][0] == body["next_available_slot"]


def test_available_slots_for_inactive_service_is_404(api, db, world):
    world.service.is_active = False
    db.commit()
    assert api.get(f"/api/v1/services/{world.service.id}/available-slots").status_code == 404


@pytest.mark.parametrize("status", [ContractorStatus.PENDING, ContractorStatus.SUSPENDED])
def test_available_slots_hidden_for_unapproved_contractor(api, db, world, status):
    url = f"/api/v1/services/{world.service.id}/available-slots"
    assert api.get(url).status_code == 200

    world.contractor.status = status
    db.commit()
    res = api.get(url)
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "not_found"

    # Booking creation applies the same gate.
    res = api.post(BOOKINGS, json={"service_id": world.service.id, "scheduled_at": iso(at("10:00"))})
    assert res.status_code == 422
    assert res.json()["detail"]["code"] == "contractor_unavailable"


def test_healthz(api):
    res = api.get("/healthz")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
