# tests/conftest.py

from datetime import datetime, time
from types import SimpleNamespace

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from salon_scheduler import models  # noqa: F401  (registers tables)
from salon_scheduler.appointments import AppointmentService
from salon_scheduler.clock import FixedClock
from salon_scheduler.locks import ProfessionalLocks
from salon_scheduler.models import (
    Client,
    Professional,
    ProfessionalService,
    Salon,
    Service,
    WorkingHours,
)
from salon_scheduler.schedules import ScheduleService
from salon_scheduler.schemas import AppointmentCreate

# 2025-06-02 is a Monday
MONDAY = datetime(2025, 6, 2)


def at(hour: int, minute: int = 0, day: datetime = MONDAY) -> datetime:
    return day.replace(hour=hour, minute=minute)


class RecordingNotifier:
    def __init__(self):
        self.confirmations = []
        self.cancellations = []

    def notify_confirmation_link(self, appointment, link):
        self.confirmations.append((appointment, link))

    def notify_cancellation(self, appointment, reason):
        self.cancellations.append((appointment, reason))


def seed_salon(session: Session) -> SimpleNamespace:
    """Salon open 08:00-18:00; one professional working Mondays 09:00-17:00 with lunch 12:00-13:00."""
    salon = Salon(
        name="Belle Studio",
        admin_email="owner@belle.example",
        opens_at=time(8, 0),
        closes_at=time(18, 0),
        min_lead_hours=2,
        min_cancel_hours=2,
        max_no_shows=3,
        booking_interval_minutes=15,
    )
    other_salon = Salon(
        name="Across Town",
        admin_email="owner@across.example",
        opens_at=time(8, 0),
        closes_at=time(18, 0),
    )
    session.add_all([salon, other_salon])
    session.commit()

    professional = Professional(salon_id=salon.id, name="Ana")
    colleague = Professional(salon_id=salon.id, name="Bia")
    haircut = Service(salon_id=salon.id, name="Haircut", duration_minutes=30, price_cents=2500)
    coloring = Service(salon_id=salon.id, name="Coloring", duration_minutes=45, price_cents=8000)
    fringe = Service(salon_id=salon.id, name="Fringe trim", duration_minutes=15, price_cents=1000)
    massage = Service(salon_id=salon.id, name="Massage", duration_minutes=60, price_cents=9000)
    foreign = Service(salon_id=other_salon.id, name="Beard trim", duration_minutes=15, price_cents=1500)
    session.add_all([professional, colleague, haircut, coloring, fringe, massage, foreign])
    session.commit()

    session.add_all([
        ProfessionalService(professional_id=professional.id, service_id=haircut.id),
        ProfessionalService(professional_id=professional.id, service_id=coloring.id),
        ProfessionalService(professional_id=professional.id, service_id=fringe.id),
        WorkingHours(
            professional_id=professional.id,
            day_of_week=0,
            start_time=time(9, 0),
            end_time=time(17, 0),
            break_start=time(12, 0),
            break_end=time(13, 0),
        ),
    ])
    client = Client(salon_id=salon.id, email="carla@example.com", name="Carla")
    session.add(client)
    session.commit()

    return SimpleNamespace(
        salon_id=salon.id,
        other_salon_id=other_salon.id,
        professional_id=professional.id,
        colleague_id=colleague.id,
        haircut_id=haircut.id,
        coloring_id=coloring.id,
        fringe_id=fringe.id,
        massage_id=massage.id,
        foreign_service_id=foreign.id,
        client_id=client.id,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def clock():
    return FixedClock(at(8))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def seed(session):
    return seed_salon(session)


@pytest.fixture
def appointments(session, clock, notifier):
    return AppointmentService(session, clock=clock, notifier=notifier, locks=ProfessionalLocks())


@pytest.fixture
def schedules(session, clock):
    return ScheduleService(session, clock=clock, locks=ProfessionalLocks())


@pytest.fixture
def book(appointments, seed):
    """Book for the seeded client and professional; services default to one haircut."""

    def _book(starts_at, service_ids=None, professional_id=None, **extra):
        data = AppointmentCreate(
            professional_id=professional_id or seed.professional_id,
            service_ids=service_ids or [seed.haircut_id],
            starts_at=starts_at,
            client_id=extra.pop("client_id", seed.client_id),
            **extra,
        )
        return appointments.create(data)

    return _book
