from datetime import timedelta

import pytest

from app.models import BlockedSlot, Contractor
from app.schemas.blocked_slot import BlockedSlotCreate
from app.services.blocked_time import BlockedTimeManager
from app.utils.errors import BookingValidationError, NotFoundError, SchedulingConflict

from factories import MONDAY, NOW, add_block, at

TUESDAY = MONDAY + timedelta(days=1)


def manager(db, world, now=NOW):
    return BlockedTimeManager(db, world.contractor, now=now)


def block(day, start, end, reason=None):
    return BlockedSlotCreate(date=day, start_time=start, end_time=end, reason=reason)


def test_overlapping_block_lists_the_existing_one(db, world):
    first = manager(db, world).create(block(TUESDAY, "13:00", "14:00", "dentist"))
    with pytest.raises(SchedulingConflict) as exc:
        manager(db, world).create(block(TUESDAY, "13:30", "14:30"))
    assert exc.value.code == "block_overlap"
    assert exc.value.conflicts == [
        {
            "type": "blocked",
            "id": first.id,
            "date": TUESDAY.isoformat(),
            "start_time": "13:00",
            "end_time": "14:00",
            "reason": "dentist",
        }
    ]
    assert db.query(BlockedSlot).count() == 1


def test_adjacent_blocks_and_other_dates_are_fine(db, world):
    m = manager(db, world)
    m.create(block(TUESDAY, "13:00", "14:00"))
    m.create(block(TUESDAY, "14:00", "15:00"))
    m.create(block(TUESDAY + timedelta(days=1), "13:30", "14:30"))
    assert db.query(BlockedSlot).count() == 3


def test_every_overlapping_block_is_reported(db, world):
    a = add_block(db, world, TUESDAY, "09:00", "10:00")
    b = add_block(db, world, TUESDAY, "11:00", "12:00")
    with pytest.raises(SchedulingConflict) as exc:
        manager(db, world).create(block(TUESDAY, "09:30", "11:30"))
    assert [c["id"] for c in exc.value.conflicts] == [a.id, b.id]


@pytest.mark.parametrize("start, end", [("14:00", "13:00"), ("13:00", "13:00")])
def test_end_must_follow_start(db, world, start, end):
    with pytest.raises(BookingValidationError) as exc:
        manager(db, world).create(block(TUESDAY, start, end))
    assert exc.value.code == "invalid_range"


def test_delete_future_block(db, world):
    slot = add_block(db, world, TUESDAY, "13:00", "14:00")
    manager(db, world).delete(slot.id)
    assert db.query(BlockedSlot).count() == 0


def test_delete_refused_once_started(db, world):
    slot = add_block(db, world, MONDAY, "06:00", "08:00")
    with pytest.raises(BookingValidationError) as exc:
        manager(db, world, now=at("06:00")).delete(slot.id)
    assert exc.value.code == "block_started"
    manager(db, world, now=at("05:59")).delete(slot.id)
    assert db.query(BlockedSlot).count() == 0


def test_delete_requires_ownership(db, world):
    with pytest.raises(NotFoundError):
        manager(db, world).delete(12345)
    slot = add_block(db, world, TUESDAY, "13:00", "14:00")
    other = BlockedTimeManager(db, Contractor(id=world.contractor.id + 100), now=NOW)
    with pytest.raises(NotFoundError):
        other.delete(slot.id)


def test_list_upcoming_is_ordered_and_skips_past_dates(db, world):
    add_block(db, world, MONDAY - timedelta(days=1), "09:00", "10:00")
    late = add_block(db, world, TUESDAY, "15:00", "16:00")
    early = add_block(db, world, TUESDAY, "09:00", "10:00")
    today = add_block(db, world, MONDAY, "12:00", "13:00")
    assert [s.id for s in manager(db, world).list_upcoming()] == [today.id, early.id, late.id]
