# salon_scheduler/conflicts.py

from datetime import datetime
from typing import Iterable, Optional

from salon_scheduler.core import overlaps
from salon_scheduler.errors import Reason, Violation, reject
from salon_scheduler.models import ACTIVE_STATUSES, Appointment, TimeBlock
from salon_scheduler.repositories import AppointmentRepository, TimeBlockRepository


def find_booking_conflict(
    appointments: Iterable[Appointment],
    start: datetime,
    end: datetime,
    exclude_id: Optional[int] = None,
) -> Optional[Appointment]:
    for a in appointments:
        if a.id is not None and a.id == exclude_id:
            continue
        # completed, cancelled and no-show bookings free their slot
        if a.status not in ACTIVE_STATUSES:
            continue
        if overlaps(start, end, a.starts_at, a.ends_at):
            return a
    return None


def find_block_conflict(blocks: Iterable[TimeBlock], start: datetime, end: datetime) -> Optional[TimeBlock]:
    for b in blocks:
        if overlaps(start, end, b.starts_at, b.ends_at):
            return b
    return None


def booking_violation(appointment: Appointment) -> Violation:
    return reject(
        Reason.double_booking,
        "Professional already has an appointment at this time",
        appointment_id=appointment.id,
        starts_at=appointment.starts_at, ends_at=appointment.ends_at,
    )


def block_violation(block: TimeBlock) -> Violation:
    return reject(
        Reason.time_block_conflict,
        "Professional is unavailable during this period",
        block_id=block.id, starts_at=block.starts_at, ends_at=block.ends_at,
    )


class ConflictDetector:
    def __init__(self, appointments: AppointmentRepository, blocks: TimeBlockRepository):
        self.appointments = appointments
        self.blocks = blocks

    def check(
        self,
        professional_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> Optional[Violation]:
        booked = find_booking_conflict(
            self.appointments.find_conflicting(professional_id, start, end, exclude_id=exclude_id),
            start, end, exclude_id=exclude_id,
        )
        if booked is not None:
            return booking_violation(booked)

        block = find_block_conflict(self.blocks.find_conflicting(professional_id, start, end), start, end)
        if block is not None:
            return block_violation(block)
        return None
