import os

# Must be set before appointly.config.* is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BOOKING_LOCK_BACKEND"] = "local"

from datetime import date, datetime
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from appointly.config.database import build_engine, get_db
from appointly.models import Appointment, Base, Business, Customer, Employee, Service
from appointly.services.appointment.booking_lock import LocalBookingLock

# 2030-06-03 is a Monday
MONDAY = date(2030, 6, 3)
TUESDAY = date(2030, 6, 4)
SATURDAY = date(2030, 6, 8)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")


def at(day: date, hhmm: str) -> datetime:
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hours, minutes)


class Seeder:
    """Creates committed rows for one test database"""

    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def business(self, hours=None, lunch=False, **fields):
        if hours is None:
            day = {"open": "09:00", "close": "17:00"}
            if lunch:
                day.update(hasLunchBreak=True, lunchStart="12:00", lunchEnd="13:00")
            hours = {name: dict(day) for name in WEEKDAYS}

        fields.setdefault("name", "Salon Lumen")
        fields.setdefault("timezone", "Europe/Zurich")
        return self._save(Business(id=uuid4(), business_hours=hours, **fields))

    def service(self, business, duration=30, buffer_before=0, buffer_after=0, **fields):
        fields.setdefault("name", f"Service {duration}min")
        return self._save(Service(
            id=uuid4(),
            business_id=business.id,
            duration=duration,
            buffer_before=buffer_before,
            buffer_after=buffer_after,
            **fields
        ))

    def employee(self, business, name, services=(), working_hours=None, **fields):
        employee = Employee(
            id=uuid4(),
            business_id=business.id,
            name=name,
            working_hours=working_hours,
            **fields
        )
        employee.services = list(services)
        return self._save(employee)

    def customer(self, business, name="Ada Keller", email=None, phone=None):
        return self._save(Customer(id=uuid4(), business_id=business.id, name=name, email=email, phone=phone))

    def appointment(self, business, employee, service, customer, start, end, status="confirmed"):
        return self._save(Appointment(
            id=uuid4(),
            business_id=business.id,
            employee_id=employee.id,
            service_id=service.id,
            customer_id=customer.id,
            start_time=start,
            end_time=end,
            status=status,
        ))


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'appointly.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def lock():
    return LocalBookingLock()


@pytest.fixture
def client(session_factory):
    from appointly.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
