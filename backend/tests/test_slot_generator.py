from datetime import date, timedelta

from app.models import BookingStatus
from app.services.availability_resolver import resolve_week
from app.services.conflict_checker import ConflictChecker
from app.services.slot_generator import SlotGenerator, build_available_slots, calendar_board

from factories import MONDAY, NOW, add_block, add_booking, at, make_world, set_week


def monday_times(payload, day=MONDAY):
    return [s["time"] for s in payload["available_slots"] if s["date"] == day.isoformat()]


def test_monday_hour_service_skips_starts_that_would_run_into_booking(db):
    world = make_world(db, duration_minutes=60)
    set_week(db, world, [(1, "09:00", "17:00")])
    add_booking(db, world, at("10:00"), duration=30)

    times = monday_times(build_available_slots(db, world.service, now=NOW))
    assert "09:00" in times
    assert "10:30" in times
    assert "09:30" not in times
    assert "10:00" not in times


def test_monday_half_hour_service_around_hour_booking(db):
    world = make_world(db, duration_minutes=30)
    set_week(db, world, [(1, "09:00", "17:00")])
    add_booking(db, world, at("10:00"), duration=60)

    times = monday_times(build_available_slots(db, world.service, now=NOW))
    assert {"09:00", "09:30", "11:00"} <= set(times)
    assert "10:00" not in times
    assert "10:30" not in times
    assert times[-1] == "16:30"


def test_multi_quantum_service_checks_every_quantum(db):
    world = make_world(db, duration_minutes=90)
    set_week(db, world, [(1, "09:00", "17:00")])
    add_booking(db, world, at("11:00"), duration=30)

    times = monday_times(build_available_slots(db, world.service, now=NOW))
    assert "09:30" in times  # ends exactly when the booking starts
    assert "10:00" not in times
    assert "10:30" not in times
    assert "11:00" not in times
    assert "11:30" in times
    assert times[-1] == "15:30"


def test_multi_quantum_service_blocked_in_its_middle_or_last_quantum(db):
    world = make_world(db, duration_minutes=90)
    set_week(db, world, [(1, "09:00", "17:00")])
    add_block(db, world, MONDAY, "10:30", "11:00")

    times = monday_times(build_available_slots(db, world.service, now=NOW))
    assert "09:00" in times  # ends exactly when the block starts
    assert "09:30" not in times  # last quantum blocked
    assert "10:00" not in times  # middle quantum blocked
    assert "10:30" not in times
    assert "11:00" in times


def test_lead_time_discards_early_starts(db, world):
    payload = build_available_slots(db, world.service, now=at("08:15"))
    assert payload["next_available_slot"]["time"] == "10:30"
    assert payload["next_available_slot"]["date"] == MONDAY.isoformat()


def test_default_week_covers_fifteen_days(db, world):
    payload = build_available_slots(db, world.service, now=NOW)
    slots = payload["available_slots"]
    # Eleven weekdays between Monday the 7th and Monday the 21st, 15 hour-long starts each.
    assert len(slots) == 11 * 15
    assert slots[-1]["date"] == (MONDAY + timedelta(days=14)).isoformat()
    assert not any(date.fromisoformat(s["date"]).weekday() >= 5 for s in slots)
    assert payload["next_available_slot"] == slots[0]


def test_results_are_capped(db):
    world = make_world(db, duration_minutes=30)
    set_week(db, world, [(d, "00:00", "23:30") for d in range(7)])
    slots = build_available_slots(db, world.service, now=NOW)["available_slots"]
    assert len(slots) == 200
    assert [s["datetime"] for s in slots] == sorted(s["datetime"] for s in slots)


def test_only_active_bookings_block_time(db, world):
    add_booking(db, world, at("09:00"), status=BookingStatus.PENDING)
    add_booking(db, world, at("11:00"), status=BookingStatus.CANCELLED)
    add_booking(db, world, at("13:00"), status=BookingStatus.COMPLETED)

    times = monday_times(build_available_slots(db, world.service, now=NOW))
    assert "09:00" not in times
    assert "11:00" in times
    assert "13:00" in times


def test_blocked_range_removes_overlapping_starts(db, world):
    add_block(db, world, MONDAY, "13:00", "14:00")
    times = monday_times(build_available_slots(db, world.service, now=NOW))
    assert "12:00" in times
    assert "12:30" not in times
    assert "13:30" not in times
    assert "14:00" in times


def test_every_generated_slot_is_bookable(db, world):
    add_booking(db, world, at("09:30"), duration=45)
    add_booking(db, world, at("12:00", MONDAY + timedelta(days=1)), duration=120)
    add_block(db, world, MONDAY + timedelta(days=2), "08:00", "12:00")

    horizon_end = at("00:00", MONDAY + timedelta(days=15))
    checker = ConflictChecker.load(db, world.contractor.id, at("00:00"), horizon_end)
    generator = SlotGenerator(resolve_week([]), checker, duration_minutes=60, now=NOW)
    earliest = NOW + timedelta(hours=2)
    for start in generator:
        assert start >= earliest
        assert checker.is_free(start, 60)
        assert start.hour >= 9 and start + timedelta(minutes=60) <= at("17:00", start.date())


def test_generator_can_be_consumed_twice(db, world):
    checker = ConflictChecker.load(db, world.contractor.id, at("00:00"), at("00:00", MONDAY + timedelta(days=15)))
    generator = SlotGenerator(resolve_week([]), checker, duration_minutes=60, now=NOW)
    first = generator.take(5)
    assert first == generator.take(5)
    assert first == sorted(first)


def test_calendar_board_marks_booked_and_blocked(db, world):
    add_booking(db, world, at("10:00"), duration=60)
    add_block(db, world, MONDAY, "13:00", "14:00")

    board = calendar_board(db, world.contractor.id, MONDAY, MONDAY)
    by_start = {e["start_time"]: e for e in board}
    assert len(board) == 16
    assert by_start["10:00"]["status"] == "booked"
    assert by_start["10:30"]["status"] == "booked"
    assert by_start["11:00"]["status"] == "available"
    assert by_start["13:00"]["status"] == "blocked"
    assert by_start["13:30"]["blocked_slot_id"] is not None
    assert by_start["14:00"]["status"] == "available"


def test_calendar_board_skips_closed_days(db, world):
    saturday = MONDAY + timedelta(days=5)
    assert calendar_board(db, world.contractor.id, saturday, saturday + timedelta(days=1)) == []
