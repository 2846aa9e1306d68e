# salon_scheduler/schedules.py

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from salon_scheduler.calendar_rules import check_calendar_rules
from salon_scheduler.clock import Clock, SystemClock
from salon_scheduler.conflicts import find_block_conflict, find_booking_conflict
from salon_scheduler.core import Weekday, day_bounds
from salon_scheduler.durations import check_services, plan_services
from salon_scheduler.errors import BookingValidationError, MisuseError, NotFoundError, Reason, Violation, reject
from salon_scheduler.locks import ProfessionalLocks, professional_locks
from salon_scheduler.models import TimeBlock, WorkingHours
from salon_scheduler.repositories import (
    AppointmentRepository,
    CatalogRepository,
    TimeBlockRepository,
    WorkingHoursRepository,
)
from salon_scheduler.schemas import TimeBlockCreate, WorkingHoursCreate, WorkingHoursUpdate

logger = logging.getLogger(__name__)


def working_hours_violation(data: WorkingHoursUpdate) -> Optional[Violation]:
    if data.start_time >= data.end_time:
        return reject(Reason.invalid_working_hours, "start_time must be before end_time",
                      start_time=data.start_time, end_time=data.end_time)

    if (data.break_start is None) != (data.break_end is None):
        return reject(Reason.invalid_working_hours, "break_start and break_end must be set together")

    if data.break_start is not None:
        if data.break_start > data.break_end:
            return reject(Reason.invalid_working_hours, "break_start cannot be after break_end",
                          break_start=data.break_start, break_end=data.break_end)
        if data.break_start < data.start_time or data.break_end > data.end_time:
            return reject(Reason.invalid_working_hours, "The break must fall inside the working hours",
                          break_start=data.break_start, break_end=data.break_end,
                          start_time=data.start_time, end_time=data.end_time)
    return None


class ScheduleService:
    """Working hours, time blocks and open slots of a professional."""

    def __init__(self, session: Session, clock: Optional[Clock] = None, locks: Optional[ProfessionalLocks] = None):
        self.session = session
        self.clock = clock or SystemClock()
        self.locks = locks or professional_locks
        self.catalog = CatalogRepository(session)
        self.hours = WorkingHoursRepository(session)
        self.blocks = TimeBlockRepository(session)
        self.appointments = AppointmentRepository(session)

    # --- working hours

    def list_working_hours(self, professional_id: int) -> List[WorkingHours]:
        self.catalog.get_professional(professional_id)
        return self.hours.list_active(professional_id)

    def create_working_hours(self, professional_id: int, data: WorkingHoursCreate) -> WorkingHours:
        self.catalog.get_professional(professional_id)

        exists = reject(
            Reason.working_hours_exists,
            f"Working hours for {data.day_of_week.name} already exist",
            day_of_week=int(data.day_of_week),
        )

        # 1) one row per weekday
        if self.hours.find(professional_id, data.day_of_week) is not None:
            raise BookingValidationError(exists)

        # 2) shape of the day
        violation = working_hours_violation(data)
        if violation:
            raise BookingValidationError(violation)

        # 3) insert; a concurrent create for the same day trips uq_professional_day
        try:
            hours = self.hours.add(WorkingHours(
                professional_id=professional_id,
                day_of_week=int(data.day_of_week),
                start_time=data.start_time,
                end_time=data.end_time,
                break_start=data.break_start,
                break_end=data.break_end,
            ))
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise BookingValidationError(exists)
        self.session.refresh(hours)
        logger.info("Working hours created for professional %s on %s", professional_id, data.day_of_week.name)
        return hours

    def update_working_hours(self, professional_id: int, day_of_week: Weekday, data: WorkingHoursUpdate) -> WorkingHours:
        hours = self.hours.find(professional_id, day_of_week)
        if hours is None:
            raise NotFoundError("WorkingHours", f"{professional_id}/{day_of_week.name}")

        violation = working_hours_violation(data)
        if violation:
            raise BookingValidationError(violation)

        hours.start_time = data.start_time
        hours.end_time = data.end_time
        hours.break_start = data.break_start
        hours.break_end = data.break_end
        hours.active = True
        self.session.add(hours)
        self.session.commit()
        self.session.refresh(hours)
        logger.info("Working hours updated for professional %s on %s", professional_id, day_of_week.name)
        return hours

    def deactivate_working_hours(self, professional_id: int, day_of_week: Weekday) -> None:
        hours = self.hours.find(professional_id, day_of_week)
        if hours is None:
            raise NotFoundError("WorkingHours", f"{professional_id}/{day_of_week.name}")
        hours.active = False
        self.session.add(hours)
        self.session.commit()
        logger.info("Working hours deactivated for professional %s on %s", professional_id, day_of_week.name)

    # --- time blocks

    def list_blocks(
        self,
        professional_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[TimeBlock]:
        self.catalog.get_professional(professional_id)
        if start is not None and end is not None:
            return self.blocks.list_in_period(professional_id, start, end)
        return self.blocks.list_for_professional(professional_id)

    def create_block(self, professional_id: int, data: TimeBlockCreate) -> TimeBlock:
        self.catalog.get_professional(professional_id)
        if data.starts_at >= data.ends_at:
            raise BookingValidationError(reject(
                Reason.invalid_time_block, "starts_at must be before ends_at",
                starts_at=data.starts_at, ends_at=data.ends_at,
            ))

        # overlapping blocks are kept as they are; each one is honored
        with self.locks.hold(professional_id):
            block = self.blocks.add(TimeBlock(
                professional_id=professional_id,
                starts_at=data.starts_at,
                ends_at=data.ends_at,
                reason=data.reason,
                recurring=data.recurring,
            ))
            self.session.commit()
        self.session.refresh(block)
        logger.info("Time block %s created for professional %s: %s - %s",
                    block.id, professional_id, block.starts_at, block.ends_at)
        return block

    def remove_block(self, block_id: int) -> None:
        block = self.blocks.get(block_id)
        self.blocks.delete(block)
        self.session.commit()
        logger.info("Time block %s removed", block_id)

    # --- availability

    def available_starts(
        self,
        professional_id: int,
        on_date: date,
        service_ids: Sequence[int],
        prep_minutes: int = 0,
    ) -> List[str]:
        # 1) resolve professional, salon and services
        professional = self.catalog.get_professional(professional_id)
        salon = self.catalog.get_salon(professional.salon_id)
        services = self.catalog.get_services(service_ids)
        violation = check_services(services, salon.id, self.catalog.offered_service_ids(professional.id))
        if violation:
            raise BookingValidationError(violation)

        day_open = datetime.combine(on_date, salon.opens_at)
        duration = timedelta(minutes=plan_services(services, day_open, prep_minutes).total_minutes)

        # 2) everything that can take a slot away on that day
        hours = self.hours.find(professional.id, on_date.weekday())
        day_start, day_end = day_bounds(on_date)
        appts_for_day = self.appointments.find_by_professional_and_day(professional.id, on_date)
        blocks_for_day = self.blocks.list_in_period(professional.id, day_start, day_end)
        now = self.clock.now()

        # 3) walk the salon's booking grid
        step = timedelta(minutes=salon.booking_interval_minutes)
        if step <= timedelta(0):
            raise MisuseError(f"salon {salon.id} has booking interval {salon.booking_interval_minutes}")
        day_close = datetime.combine(on_date, salon.closes_at)
        available = []
        current = day_open
        while current + duration <= day_close:
            slot_start = current
            slot_end = current + duration
            current += step

            if check_calendar_rules(salon, professional, hours, slot_start, slot_end, now) is not None:
                continue
            if find_block_conflict(blocks_for_day, slot_start, slot_end) is not None:
                continue
            if find_booking_conflict(appts_for_day, slot_start, slot_end) is not None:
                continue
            available.append(slot_start.time().strftime("%H:%M"))

        return available
