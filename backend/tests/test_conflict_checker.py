from datetime import timedelta

from app.models import BookingStatus
from app.services.conflict_checker import ConflictChecker

from factories import MONDAY, add_block, add_booking, at


def load(db, world, start, end, **kwargs):
    return ConflictChecker.load(db, world.contractor.id, start, end, **kwargs)


def test_ninety_minute_span_reports_booking_in_last_quantum(db, world):
    booking = add_booking(db, world, at("10:00"), duration=30)
    checker = load(db, world, at("08:00"), at("12:00"))

    conflicts = checker.find_conflicts(at("08:45"), 90)
    assert [(c.kind, c.id) for c in conflicts] == [("booking", booking.id)]
    assert checker.is_free(at("08:30"), 90)


def test_reports_every_conflicting_entity(db, world):
    first = add_booking(db, world, at("10:00"), duration=30)
    second = add_booking(db, world, at("11:00"), duration=30)
    block = add_block(db, world, MONDAY, "10:30", "11:00", reason="lunch")
    checker = load(db, world, at("10:00"), at("12:00"))

    conflicts = checker.find_conflicts(at("10:00"), 120)
    assert {(c.kind, c.id) for c in conflicts} == {
        ("booking", first.id),
        ("booking", second.id),
        ("blocked", block.id),
    }
    blocked = next(c for c in conflicts if c.kind == "blocked")
    assert blocked.to_dict()["reason"] == "lunch"
    assert blocked.to_dict()["start_time"] == "10:30"


def test_excluded_booking_does_not_conflict_with_itself(db, world):
    booking = add_booking(db, world, at("10:00"), duration=60)
    checker = load(db, world, at("10:00"), at("11:30"), exclude_booking_id=booking.id)
    assert checker.is_free(at("10:30"), 60, exclude_booking_id=booking.id)

    unfiltered = load(db, world, at("10:00"), at("11:30"))
    assert not unfiltered.is_free(at("10:30"), 60)
    assert unfiltered.is_free(at("10:30"), 60, exclude_booking_id=booking.id)


def test_long_booking_starting_before_window_is_found(db, world):
    add_booking(db, world, at("06:00"), duration=240)
    checker = load(db, world, at("09:30"), at("10:30"))
    assert not checker.is_free(at("09:30"), 60)


def test_span_past_midnight_checks_next_day_blocks(db, world):
    tuesday = MONDAY + timedelta(days=1)
    add_block(db, world, tuesday, "00:00", "01:00")
    start = at("23:30")
    checker = load(db, world, start, start + timedelta(minutes=60))
    assert [c.kind for c in checker.find_conflicts(start, 60)] == ["blocked"]


def test_inactive_bookings_are_ignored(db, world):
    add_booking(db, world, at("10:00"), status=BookingStatus.CANCELLED)
    add_booking(db, world, at("10:00"), status=BookingStatus.COMPLETED)
    checker = load(db, world, at("10:00"), at("11:00"))
    assert checker.is_free(at("10:00"), 60)
