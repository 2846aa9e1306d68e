# salon_scheduler/repositories.py
"""Database access for the scheduling engine.

Each repository wraps one SQLModel session. They add and flush but never
commit: the caller owns the transaction so a booking's validation and
its write land in one unit.
"""

from datetime import date, datetime
from typing import List, Optional, Sequence

from sqlalchemy import case, update
from sqlmodel import Session, select

from salon_scheduler.core import day_bounds
from salon_scheduler.errors import NotFoundError
from salon_scheduler.models import (
    ACTIVE_STATUSES,
    Appointment,
    AppointmentLineItem,
    AppointmentStatus,
    Client,
    Professional,
    ProfessionalService,
    Salon,
    Service,
    TimeBlock,
    WorkingHours,
)


class CatalogRepository:
    """Salons, professionals and services."""

    def __init__(self, session: Session):
        self.session = session

    def get_salon(self, salon_id: int, active_only: bool = True) -> Salon:
        salon = self.session.get(Salon, salon_id)
        if salon is None or (active_only and not salon.active):
            raise NotFoundError("Salon", salon_id)
        return salon

    def get_professional(self, professional_id: int) -> Professional:
        professional = self.session.get(Professional, professional_id)
        if professional is None or not professional.active:
            raise NotFoundError("Professional", professional_id)
        return professional

    def lock_professional(self, professional_id: int) -> None:
        # row lock for multi-process deployments; SQLite ignores FOR UPDATE
        self.session.exec(
            select(Professional.id)
            .where(Professional.id == professional_id)
            .with_for_update()
        ).first()

    def get_services(self, service_ids: Sequence[int]) -> List[Service]:
        found = {
            s.id: s
            for s in self.session.exec(select(Service).where(Service.id.in_(service_ids))).all()
        }
        services = []
        for service_id in service_ids:
            if service_id not in found:
                raise NotFoundError("Service", service_id)
            services.append(found[service_id])
        return services

    def offered_service_ids(self, professional_id: int) -> set[int]:
        rows = self.session.exec(
            select(ProfessionalService.service_id)
            .where(ProfessionalService.professional_id == professional_id)
        ).all()
        return set(rows)


class AppointmentRepository:
    def __init__(self, session: Session):
        self.session = session

    def save(self, appointment: Appointment) -> Appointment:
        self.session.add(appointment)
        self.session.flush()
        return appointment

    def add_line_items(self, items: Sequence[AppointmentLineItem]) -> None:
        for item in items:
            self.session.add(item)
        self.session.flush()

    def get(self, appointment_id: int) -> Appointment:
        appointment = self.session.get(Appointment, appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment", appointment_id)
        return appointment

    def get_by_token(self, token: str) -> Appointment:
        appointment = self.session.exec(
            select(Appointment).where(Appointment.confirmation_token == token)
        ).first()
        if appointment is None:
            raise NotFoundError("Appointment", "token")
        return appointment

    def line_items(self, appointment_id: int) -> List[AppointmentLineItem]:
        return list(self.session.exec(
            select(AppointmentLineItem)
            .where(AppointmentLineItem.appointment_id == appointment_id)
            .order_by(AppointmentLineItem.position)
        ).all())

    def find_conflicting(
        self,
        professional_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> List[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.professional_id == professional_id)
            .where(Appointment.status.in_(ACTIVE_STATUSES))
            .where(Appointment.starts_at < end)
            .where(Appointment.ends_at > start)
        )
        if exclude_id is not None:
            stmt = stmt.where(Appointment.id != exclude_id)
        return list(self.session.exec(stmt).all())

    def find_by_professional_and_day(self, professional_id: int, on_date: date) -> List[Appointment]:
        day_start, day_end = day_bounds(on_date)
        return list(self.session.exec(
            select(Appointment)
            .where(Appointment.professional_id == professional_id)
            .where(Appointment.starts_at < day_end)
            .where(Appointment.ends_at > day_start)
            .where(Appointment.status != AppointmentStatus.cancelled.value)
            .order_by(Appointment.starts_at)
        ).all())

    def list_by_salon(self, salon_id: int, status: Optional[str] = None) -> List[Appointment]:
        stmt = select(Appointment).where(Appointment.salon_id == salon_id)
        if status is not None:
            stmt = stmt.where(Appointment.status == status)
        return list(self.session.exec(stmt.order_by(Appointment.starts_at)).all())

    def list_by_client(self, client_id: int) -> List[Appointment]:
        return list(self.session.exec(
            select(Appointment)
            .where(Appointment.client_id == client_id)
            .order_by(Appointment.starts_at)
        ).all())

    def list_by_professional(self, professional_id: int) -> List[Appointment]:
        return list(self.session.exec(
            select(Appointment)
            .where(Appointment.professional_id == professional_id)
            .order_by(Appointment.starts_at)
        ).all())


class TimeBlockRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_conflicting(self, professional_id: int, start: datetime, end: datetime) -> List[TimeBlock]:
        return list(self.session.exec(
            select(TimeBlock)
            .where(TimeBlock.professional_id == professional_id)
            .where(TimeBlock.starts_at < end)
            .where(TimeBlock.ends_at > start)
        ).all())

    def list_for_professional(self, professional_id: int) -> List[TimeBlock]:
        return list(self.session.exec(
            select(TimeBlock)
            .where(TimeBlock.professional_id == professional_id)
            .order_by(TimeBlock.starts_at)
        ).all())

    def list_in_period(self, professional_id: int, start: datetime, end: datetime) -> List[TimeBlock]:
        return sorted(self.find_conflicting(professional_id, start, end), key=lambda b: b.starts_at)

    def get(self, block_id: int) -> TimeBlock:
        block = self.session.get(TimeBlock, block_id)
        if block is None:
            raise NotFoundError("TimeBlock", block_id)
        return block

    def add(self, block: TimeBlock) -> TimeBlock:
        self.session.add(block)
        self.session.flush()
        return block

    def delete(self, block: TimeBlock) -> None:
        self.session.delete(block)
        self.session.flush()


class WorkingHoursRepository:
    def __init__(self, session: Session):
        self.session = session

    def find(self, professional_id: int, day_of_week: int) -> Optional[WorkingHours]:
        return self.session.exec(
            select(WorkingHours)
            .where(WorkingHours.professional_id == professional_id)
            .where(WorkingHours.day_of_week == int(day_of_week))
        ).first()

    def list_active(self, professional_id: int) -> List[WorkingHours]:
        return list(self.session.exec(
            select(WorkingHours)
            .where(WorkingHours.professional_id == professional_id)
            .where(WorkingHours.active == True)  # noqa: E712
            .order_by(WorkingHours.day_of_week)
        ).all())

    def add(self, hours: WorkingHours) -> WorkingHours:
        self.session.add(hours)
        self.session.flush()
        return hours


class ClientRepository:
    """Client records. Counters change through single UPDATE statements."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, client_id: int) -> Client:
        client = self.session.get(Client, client_id)
        if client is None:
            raise NotFoundError("Client", client_id)
        return client

    def get_or_create(self, salon_id: int, email: str, name: Optional[str] = None) -> Client:
        email = email.strip().lower()
        client = self.session.exec(
            select(Client).where(Client.salon_id == salon_id).where(Client.email == email)
        ).first()
        if client is None:
            client = Client(salon_id=salon_id, email=email, name=name)
            self.session.add(client)
            self.session.flush()
        return client

    def _reload(self, client_id: int) -> Client:
        client = self.get(client_id)
        self.session.refresh(client)
        return client

    def increment_appointment_count(self, client_id: int) -> Client:
        self.session.exec(
            update(Client)
            .where(Client.id == client_id)
            .values(total_appointments=Client.total_appointments + 1)
        )
        return self._reload(client_id)

    def increment_no_show(self, client_id: int) -> Client:
        self.session.exec(
            update(Client)
            .where(Client.id == client_id)
            .values(no_show_count=Client.no_show_count + 1)
        )
        return self._reload(client_id)

    def set_blocked(self, client_id: int, blocked: bool) -> Client:
        self.session.exec(
            update(Client).where(Client.id == client_id).values(blocked=blocked)
        )
        return self._reload(client_id)

    def record_no_show(self, client_id: int, max_no_shows: int) -> Client:
        """Count a no-show and block the client once the limit is reached.

        The threshold check runs inside the same UPDATE as the increment, so
        concurrent no-shows cannot both read the old counter.
        """
        self.session.exec(
            update(Client)
            .where(Client.id == client_id)
            .values(
                no_show_count=Client.no_show_count + 1,
                blocked=case(
                    (Client.no_show_count + 1 >= max_no_shows, True),
                    else_=Client.blocked,
                ),
            )
        )
        return self._reload(client_id)
