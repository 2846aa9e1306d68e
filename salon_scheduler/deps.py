# salon_scheduler/deps.py

from fastapi import Depends
from sqlmodel import Session

from salon_scheduler.appointments import AppointmentService
from salon_scheduler.clock import Clock, SystemClock
from salon_scheduler.config import NOTIFIER_WORKERS
from salon_scheduler.db import get_session
from salon_scheduler.notifier import BackgroundNotifier, LoggingNotifier
from salon_scheduler.schedules import ScheduleService

_clock = SystemClock()
background_notifier = BackgroundNotifier(LoggingNotifier(), max_workers=NOTIFIER_WORKERS)


def get_clock() -> Clock:
    return _clock


def get_notifier():
    return background_notifier


def get_appointment_service(
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
    notifier=Depends(get_notifier),
) -> AppointmentService:
    return AppointmentService(session, clock=clock, notifier=notifier)


def get_schedule_service(
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> ScheduleService:
    return ScheduleService(session, clock=clock)
