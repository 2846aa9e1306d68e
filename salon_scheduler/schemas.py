# salon_scheduler/schemas.py

from datetime import datetime, date, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from salon_scheduler.core import Weekday
from salon_scheduler.models import AppointmentStatus


class LineItemPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    service_id: int
    position: int
    duration_minutes: int
    prep_time_minutes: int
    price_cents: int


class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    salon_id: int
    client_id: int
    professional_id: int
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus
    charged_amount_cents: int
    confirmation_token: str
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None
    reminder_24h_sent: bool = False
    reminder_2h_sent: bool = False
    line_items: List[LineItemPublic] = []


class AppointmentCreate(BaseModel):
    professional_id: int
    service_ids: List[int] = Field(min_length=1)
    starts_at: datetime
    client_id: Optional[int] = None
    client_email: Optional[str] = None
    client_name: Optional[str] = None
    prep_minutes: int = Field(default=0, ge=0)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def client_is_named(self):
        if self.client_id is None and not self.client_email:
            raise ValueError("either client_id or client_email is required")
        return self


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class RescheduleRequest(BaseModel):
    starts_at: datetime
    professional_id: Optional[int] = None


class WorkingHoursUpdate(BaseModel):
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None


class WorkingHoursCreate(WorkingHoursUpdate):
    day_of_week: Weekday


class WorkingHoursPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    professional_id: int
    day_of_week: Weekday
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    active: bool


class TimeBlockCreate(BaseModel):
    starts_at: datetime
    ends_at: datetime
    reason: Optional[str] = None
    recurring: bool = False


class TimeBlockPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    professional_id: int
    starts_at: datetime
    ends_at: datetime
    reason: Optional[str] = None
    recurring: bool


class AvailabilityResponse(BaseModel):
    professional_id: int
    date: date
    service_ids: List[int]
    available_starts: List[str]
