# salon_scheduler/durations.py
"""Turns an ordered list of services into one contiguous booking.

Services run back to back; every service after the first is preceded by
``prep_minutes`` of preparation time, so for n services

    total = sum(duration_i) + prep_minutes * (n - 1)
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel

from salon_scheduler.errors import MisuseError, Reason, Violation, reject
from salon_scheduler.models import AppointmentLineItem, Service


class PlannedItem(BaseModel):
    service_id: int
    position: int
    duration_minutes: int
    prep_time_minutes: int
    price_cents: int
    offset_minutes: int  # from the appointment start to this service's start


class ServicePlan(BaseModel):
    starts_at: datetime
    ends_at: datetime
    total_minutes: int
    charged_amount_cents: int
    items: List[PlannedItem]

    def line_items(self, appointment_id: int) -> List[AppointmentLineItem]:
        return [
            AppointmentLineItem(
                appointment_id=appointment_id,
                service_id=item.service_id,
                position=item.position,
                duration_minutes=item.duration_minutes,
                prep_time_minutes=item.prep_time_minutes,
                price_cents=item.price_cents,
            )
            for item in self.items
        ]


def _build(starts_at: datetime, rows: Iterable[tuple[int, int, int, int]]) -> ServicePlan:
    items = []
    offset = 0
    for position, (service_id, duration, prep, price) in enumerate(rows):
        if duration <= 0:
            raise MisuseError(f"service {service_id} has non-positive duration {duration}")
        offset += prep
        items.append(PlannedItem(
            service_id=service_id,
            position=position,
            duration_minutes=duration,
            prep_time_minutes=prep,
            price_cents=price,
            offset_minutes=offset,
        ))
        offset += duration
    if not items:
        raise MisuseError("a booking needs at least one service")
    return ServicePlan(
        starts_at=starts_at,
        ends_at=starts_at + timedelta(minutes=offset),
        total_minutes=offset,
        charged_amount_cents=sum(item.price_cents for item in items),
        items=items,
    )


def plan_services(services: Sequence[Service], starts_at: datetime, prep_minutes: int = 0) -> ServicePlan:
    if not services:
        raise MisuseError("a booking needs at least one service")
    if prep_minutes < 0:
        raise MisuseError(f"prep_minutes must be >= 0, got {prep_minutes}")

    rows = [
        (s.id, s.duration_minutes, 0 if i == 0 else prep_minutes, s.price_cents)
        for i, s in enumerate(services)
    ]
    return _build(starts_at, rows)


def replan(line_items: Sequence[AppointmentLineItem], starts_at: datetime) -> ServicePlan:
    """Same services, durations and prep times moved to a new start."""
    rows = [
        (item.service_id, item.duration_minutes, item.prep_time_minutes, item.price_cents)
        for item in sorted(line_items, key=lambda i: i.position)
    ]
    return _build(starts_at, rows)


def check_services(
    services: Sequence[Service],
    salon_id: int,
    offered_ids: Optional[set[int]] = None,
) -> Optional[Violation]:
    for service in services:
        if service.salon_id != salon_id:
            return reject(
                Reason.service_salon_mismatch,
                "All services must belong to the professional's salon",
                service_id=service.id, service_salon_id=service.salon_id, salon_id=salon_id,
            )
        if not service.active:
            return reject(
                Reason.service_inactive,
                f"Service '{service.name}' is not available",
                service_id=service.id,
            )
        # an empty set means the professional has no restriction configured
        if offered_ids and service.id not in offered_ids:
            return reject(
                Reason.service_not_offered,
                f"The professional does not perform '{service.name}'",
                service_id=service.id,
            )
    return None
