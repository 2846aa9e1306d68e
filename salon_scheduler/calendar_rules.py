# salon_scheduler/calendar_rules.py
"""Static calendar constraints: salon policy, opening hours, working hours.

Nothing here looks at other bookings. Each check returns the first
violated rule, or None when the range is allowed.
"""

from datetime import datetime, timedelta
from typing import Optional

from salon_scheduler.core import fmt_time, overlaps, within_day_window
from salon_scheduler.errors import MisuseError, Reason, Violation, reject
from salon_scheduler.models import Professional, Salon, WorkingHours


def check_online_booking(salon: Salon, professional: Professional) -> Optional[Violation]:
    if not salon.accepts_online_booking:
        return reject(Reason.online_booking_disabled, "This salon does not accept online bookings",
                      salon_id=salon.id)
    if not professional.accepts_online_booking:
        return reject(Reason.online_booking_disabled, "This professional does not accept online bookings",
                      professional_id=professional.id)
    return None


def check_lead_time(salon: Salon, start: datetime, now: datetime) -> Optional[Violation]:
    earliest = now + timedelta(hours=salon.min_lead_hours)
    if start < earliest:
        return reject(
            Reason.lead_time,
            f"Bookings must be made at least {salon.min_lead_hours} hours in advance",
            min_lead_hours=salon.min_lead_hours, earliest_start=earliest,
        )
    return None


def check_business_hours(salon: Salon, start: datetime, end: datetime) -> Optional[Violation]:
    if not within_day_window(start, end, salon.opens_at, salon.closes_at):
        return reject(
            Reason.outside_business_hours,
            f"Outside salon opening hours ({fmt_time(salon.opens_at)} - {fmt_time(salon.closes_at)})",
            opens_at=salon.opens_at, closes_at=salon.closes_at,
        )
    return None


def check_working_hours(hours: Optional[WorkingHours], start: datetime, end: datetime) -> Optional[Violation]:
    # no row, or an inactive one, means no weekday restriction
    if hours is None or not hours.active:
        return None

    if not within_day_window(start, end, hours.start_time, hours.end_time):
        return reject(
            Reason.outside_working_hours,
            f"Outside the professional's working hours "
            f"({fmt_time(hours.start_time)} - {fmt_time(hours.end_time)})",
            start_time=hours.start_time, end_time=hours.end_time,
        )

    if hours.break_start is not None and hours.break_end is not None and hours.break_start < hours.break_end:
        break_start = datetime.combine(start.date(), hours.break_start)
        break_end = datetime.combine(start.date(), hours.break_end)
        if overlaps(start, end, break_start, break_end):
            return reject(
                Reason.break_conflict,
                f"Conflicts with the professional's break "
                f"({fmt_time(hours.break_start)} - {fmt_time(hours.break_end)})",
                break_start=hours.break_start, break_end=hours.break_end,
            )
    return None


def check_calendar_rules(
    salon: Salon,
    professional: Professional,
    hours: Optional[WorkingHours],
    start: datetime,
    end: datetime,
    now: datetime,
) -> Optional[Violation]:
    """Run the static checks in order and stop at the first failure.

    ``hours`` is the professional's row for the weekday of ``start``.
    """
    if salon is None or professional is None:
        raise MisuseError("salon and professional are required")
    if end <= start:
        raise MisuseError(f"empty time range {start} - {end}")

    # 1) online booking enabled on both sides
    violation = check_online_booking(salon, professional)
    if violation:
        return violation

    # 2) professional works for this salon
    if professional.salon_id != salon.id:
        return reject(Reason.professional_not_in_salon, "Professional does not belong to this salon",
                      professional_id=professional.id, salon_id=salon.id)

    # 3) minimum lead time
    violation = check_lead_time(salon, start, now)
    if violation:
        return violation

    # 4) salon opening hours
    violation = check_business_hours(salon, start, end)
    if violation:
        return violation

    # 5) weekday working hours and break
    return check_working_hours(hours, start, end)
