# salon_scheduler/models.py

from enum import Enum
from typing import Optional
from datetime import datetime, time

from sqlalchemy import DateTime, Index, UniqueConstraint
from sqlmodel import SQLModel, Field

from salon_scheduler.config import (
    DEFAULT_BOOKING_INTERVAL_MINUTES,
    DEFAULT_MAX_NO_SHOWS,
    DEFAULT_MIN_CANCEL_HOURS,
    DEFAULT_MIN_LEAD_HOURS,
)


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"


ACTIVE_STATUSES = (
    AppointmentStatus.pending.value,
    AppointmentStatus.confirmed.value,
    AppointmentStatus.in_progress.value,
)
TERMINAL_STATUSES = (
    AppointmentStatus.completed.value,
    AppointmentStatus.cancelled.value,
    AppointmentStatus.no_show.value,
)


class Salon(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    name: str
    admin_email: str
    opens_at: time
    closes_at: time
    min_lead_hours: int = DEFAULT_MIN_LEAD_HOURS
    min_cancel_hours: int = DEFAULT_MIN_CANCEL_HOURS
    max_no_shows: int = DEFAULT_MAX_NO_SHOWS
    booking_interval_minutes: int = DEFAULT_BOOKING_INTERVAL_MINUTES
    accepts_online_booking: bool = True
    active: bool = True  # soft delete


class Professional(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    salon_id: int = Field(foreign_key="salon.id", index=True)
    name: str
    accepts_online_booking: bool = True
    active: bool = True


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    salon_id: int = Field(foreign_key="salon.id", index=True)
    name: str
    duration_minutes: int = Field(gt=0)
    price_cents: int = Field(default=0, ge=0)
    active: bool = True


class ProfessionalService(SQLModel, table=True):
    professional_id: int = Field(foreign_key="professional.id", primary_key=True)
    service_id: int = Field(foreign_key="service.id", primary_key=True)


class Client(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("salon_id", "email", name="uq_client_salon_email"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    salon_id: int = Field(foreign_key="salon.id", index=True)
    email: str
    name: Optional[str] = None
    total_appointments: int = 0
    no_show_count: int = 0
    blocked: bool = False


class WorkingHours(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("professional_id", "day_of_week", name="uq_professional_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    professional_id: int = Field(foreign_key="professional.id", index=True)
    day_of_week: int  # 0=Mon ... 6=Sun
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    active: bool = True


class TimeBlock(SQLModel, table=True):
    __table_args__ = (
        Index("ix_timeblock_professional_start", "professional_id", "starts_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    professional_id: int = Field(foreign_key="professional.id")
    # salon wall-clock time, stored without timezone
    starts_at: datetime = Field(sa_type=DateTime)
    ends_at: datetime = Field(sa_type=DateTime)
    reason: Optional[str] = None
    recurring: bool = False


class Appointment(SQLModel, table=True):
    __table_args__ = (
        Index("ix_appointment_professional_start", "professional_id", "starts_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    salon_id: int = Field(foreign_key="salon.id", index=True)
    client_id: int = Field(foreign_key="client.id", index=True)
    professional_id: int = Field(foreign_key="professional.id")
    starts_at: datetime = Field(sa_type=DateTime)
    ends_at: datetime = Field(sa_type=DateTime)
    status: str = AppointmentStatus.pending.value
    charged_amount_cents: int = 0
    confirmation_token: str = Field(unique=True, index=True)
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None
    reminder_24h_sent: bool = False
    reminder_2h_sent: bool = False
    created_at: datetime = Field(sa_type=DateTime)
    updated_at: datetime = Field(sa_type=DateTime)


class AppointmentLineItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    appointment_id: int = Field(foreign_key="appointment.id", index=True)
    service_id: int = Field(foreign_key="service.id")
    position: int
    duration_minutes: int
    prep_time_minutes: int = 0
    price_cents: int = 0
