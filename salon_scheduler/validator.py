# salon_scheduler/validator.py

import logging
from datetime import datetime
from typing import Optional, Sequence

from pydantic import BaseModel
from sqlmodel import Session

from salon_scheduler.calendar_rules import check_calendar_rules
from salon_scheduler.clock import Clock
from salon_scheduler.conflicts import ConflictDetector
from salon_scheduler.core import weekday_of
from salon_scheduler.durations import ServicePlan, check_services, plan_services, replan
from salon_scheduler.errors import Reason, Violation, reject
from salon_scheduler.models import Appointment, AppointmentLineItem, Client, Professional, Salon
from salon_scheduler.repositories import (
    AppointmentRepository,
    CatalogRepository,
    TimeBlockRepository,
    WorkingHoursRepository,
)

logger = logging.getLogger(__name__)


class BookingDecision(BaseModel):
    salon_id: int
    plan: Optional[ServicePlan] = None
    violation: Optional[Violation] = None

    @property
    def ok(self) -> bool:
        return self.violation is None


class BookingValidator:
    """Single accept/reject decision for a new or moved booking.

    Checks run in a fixed order and stop at the first failure: services
    and duration, static calendar rules, client standing, then overlaps
    with other bookings and time blocks. Unknown ids raise NotFoundError.
    """

    def __init__(self, session: Session, clock: Clock):
        self.catalog = CatalogRepository(session)
        self.hours = WorkingHoursRepository(session)
        self.conflicts = ConflictDetector(AppointmentRepository(session), TimeBlockRepository(session))
        self.clock = clock

    def validate_new(
        self,
        professional_id: int,
        service_ids: Sequence[int],
        client: Client,
        starts_at: datetime,
        prep_minutes: int = 0,
    ) -> BookingDecision:
        # 1) resolve
        professional = self.catalog.get_professional(professional_id)
        salon = self.catalog.get_salon(professional.salon_id)
        services = self.catalog.get_services(service_ids)

        # 2) services and time extent
        plan = plan_services(services, starts_at, prep_minutes)
        violation = check_services(services, salon.id, self.catalog.offered_service_ids(professional.id))
        if violation:
            return BookingDecision(salon_id=salon.id, violation=violation)

        return self._evaluate(salon, professional, client, plan)

    def validate_reschedule(
        self,
        appointment: Appointment,
        line_items: Sequence[AppointmentLineItem],
        professional_id: int,
        starts_at: datetime,
        client: Client,
    ) -> BookingDecision:
        professional = self.catalog.get_professional(professional_id)
        salon = self.catalog.get_salon(appointment.salon_id)

        plan = replan(line_items, starts_at)
        if professional.id != appointment.professional_id:
            services = self.catalog.get_services([item.service_id for item in line_items])
            violation = check_services(services, salon.id, self.catalog.offered_service_ids(professional.id))
            if violation:
                return BookingDecision(salon_id=salon.id, violation=violation)

        # the booking being moved must not collide with itself
        return self._evaluate(salon, professional, client, plan, exclude_id=appointment.id)

    def _evaluate(
        self,
        salon: Salon,
        professional: Professional,
        client: Client,
        plan: ServicePlan,
        exclude_id: Optional[int] = None,
    ) -> BookingDecision:
        start, end = plan.starts_at, plan.ends_at

        # 3) static calendar rules, one window for the whole block of services
        hours = self.hours.find(professional.id, weekday_of(start))
        violation = check_calendar_rules(salon, professional, hours, start, end, self.clock.now())
        if violation:
            return BookingDecision(salon_id=salon.id, violation=violation)

        # 4) client standing
        if client.blocked:
            return BookingDecision(
                salon_id=salon.id,
                violation=reject(Reason.client_blocked, "Client is blocked. Please contact the salon.",
                                 client_id=client.id, no_show_count=client.no_show_count),
            )

        # 5) other bookings and time blocks
        violation = self.conflicts.check(professional.id, start, end, exclude_id=exclude_id)
        if violation:
            return BookingDecision(salon_id=salon.id, violation=violation)

        logger.debug("Booking window %s - %s accepted for professional %s", start, end, professional.id)
        return BookingDecision(salon_id=salon.id, plan=plan)
