"""Shared builders for scheduling tests."""

from datetime import datetime, timedelta
from types import SimpleNamespace

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import (
    BlockedSlot,
    Booking,
    BookingStatus,
    Contractor,
    ContractorStatus,
    Service,
    User,
    UserType,
    WeeklyAvailability,
)
from app.models.base import BaseModel

# Monday 2030-01-07 06:00, so Monday 09:00 is already past the two hour lead.
NOW = datetime(2030, 1, 7, 6, 0)
MONDAY = NOW.date()


def setup_db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    return Session()


def make_world(db, *, duration_minutes=60, approved=True):
    owner = User(
        email="pro@test.com",
        first_name="Pat",
        last_name="Plumber",
        user_type=UserType.CONTRACTOR,
    )
    client = User(
        email="client@test.com",
        first_name="Cleo",
        last_name="Client",
        user_type=UserType.CLIENT,
    )
    db.add_all([owner, client])
    db.flush()
    contractor = Contractor(
        user_id=owner.id,
        business_name="Pat's Pipes",
        status=ContractorStatus.APPROVED if approved else ContractorStatus.PENDING,
    )
    db.add(contractor)
    db.flush()
    service = Service(
        contractor_id=contractor.id,
        title="Leak repair",
        price=100,
        duration_minutes=duration_minutes,
        is_active=True,
    )
    db.add(service)
    db.commit()
    return SimpleNamespace(owner=owner, client=client, contractor=contractor, service=service)


def add_client(db, email):
    user = User(email=email, first_name="Other", last_name="Client", user_type=UserType.CLIENT)
    db.add(user)
    db.commit()
    return user


def add_booking(db, world, at, *, duration=60, status=BookingStatus.CONFIRMED, client=None):
    booking = Booking(
        service_id=world.service.id,
        client_id=(client or world.client).id,
        contractor_id=world.contractor.id,
        scheduled_at=at,
        duration_minutes=duration,
        status=status,
        total_price=100,
    )
    db.add(booking)
    db.commit()
    return booking


def add_block(db, world, day, start, end, reason=None):
    slot = BlockedSlot(
        contractor_id=world.contractor.id,
        date=day,
        start_time=start,
        end_time=end,
        reason=reason,
    )
    db.add(slot)
    db.commit()
    return slot


def set_week(db, world, rows):
    """Store ``(day_of_week, start, end)`` rows as open days."""
    for day, start, end in rows:
        db.add(
            WeeklyAvailability(
                contractor_id=world.contractor.id,
                day_of_week=day,
                start_time=start,
                end_time=end,
                is_available=True,
            )
        )
    db.commit()


def at(hhmm, day=MONDAY):
    h, m = (int(p) for p in hhmm.split(":"))
    return datetime.combine(day, datetime.min.time()) + timedelta(hours=h, minutes=m)
