import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import crud
from app.database import configure_sqlite_engine, transaction
from app.models import Booking, BookingStatus
from app.models.base import BaseModel
from app.schemas.booking import BookingCreate
from app.services.booking_lifecycle import BookingLifecycle
from app.utils.errors import SchedulingConflict

from factories import NOW, add_booking, add_client, at, make_world


def test_store_rejects_second_active_booking_at_same_start(db, world):
    add_booking(db, world, at("10:00"))
    with pytest.raises(SchedulingConflict) as exc:
        with transaction(db):
            crud.booking.create(
                db,
                service=world.service,
                client_id=world.client.id,
                scheduled_at=at("10:00"),
                duration_minutes=60,
            )
    assert exc.value.code == "concurrent_write"
    assert db.query(Booking).count() == 1


def test_cancelled_booking_does_not_hold_its_start(db, world):
    add_booking(db, world, at("10:00"), status=BookingStatus.CANCELLED)
    with transaction(db):
        crud.booking.create(
            db,
            service=world.service,
            client_id=world.client.id,
            scheduled_at=at("10:00"),
            duration_minutes=60,
        )
    assert db.query(Booking).count() == 2


def test_parallel_creates_for_one_slot_admit_exactly_one(tmp_path):
    engine = configure_sqlite_engine(
        create_engine(
            f"sqlite:///{tmp_path / 'race.db'}",
            connect_args={"check_same_thread": False, "timeout": 15},
        )
    )
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    setup = Session()
    world = make_world(setup)
    clients = [world.client.id, add_client(setup, "racer@test.com").id]
    service_id = world.service.id
    setup.close()

    barrier = threading.Barrier(len(clients))
    outcomes = []

    def attempt(client_id):
        session = Session()
        try:
            client = crud.user.get(session, client_id)
            session.commit()
            barrier.wait()
            BookingLifecycle(session, now=NOW).create(
                client, BookingCreate(service_id=service_id, scheduled_at=at("10:00"))
            )
            outcomes.append("ok")
        except SchedulingConflict:
            outcomes.append("conflict")
        finally:
            session.close()

    threads = [threading.Thread(target=attempt, args=(cid,)) for cid in clients]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes) == ["conflict", "ok"]
    check = Session()
    try:
        active = check.query(Booking).filter(Booking.status == BookingStatus.CONFIRMED).count()
        assert active == 1
    finally:
        check.close()
        engine.dispose()
