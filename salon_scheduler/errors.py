# salon_scheduler/errors.py

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class Reason(str, Enum):
    online_booking_disabled = "online_booking_disabled"
    professional_not_in_salon = "professional_not_in_salon"
    lead_time = "lead_time"
    outside_business_hours = "outside_business_hours"
    outside_working_hours = "outside_working_hours"
    break_conflict = "break_conflict"
    time_block_conflict = "time_block_conflict"
    double_booking = "double_booking"
    client_blocked = "client_blocked"
    service_salon_mismatch = "service_salon_mismatch"
    service_inactive = "service_inactive"
    service_not_offered = "service_not_offered"
    invalid_transition = "invalid_transition"
    cancellation_notice = "cancellation_notice"
    invalid_working_hours = "invalid_working_hours"
    working_hours_exists = "working_hours_exists"
    invalid_time_block = "invalid_time_block"


class Violation(BaseModel):
    reason: Reason
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


class SchedulingError(Exception):
    pass


class BookingValidationError(SchedulingError):
    """A business rule rejected the request; the caller can fix it."""

    def __init__(self, violation: Violation):
        super().__init__(violation.message)
        self.violation = violation

    @property
    def reason(self) -> Reason:
        return self.violation.reason


class NotFoundError(SchedulingError):
    def __init__(self, entity: str, key):
        super().__init__(f"{entity} not found: {key}")
        self.entity = entity
        self.key = key


class BookingConflictError(SchedulingError):
    """The write lost a race with another booking; safe to retry."""


class MisuseError(ValueError):
    pass


def reject(reason: Reason, message: str, **context) -> Violation:
    return Violation(reason=reason, message=message, context=context)
