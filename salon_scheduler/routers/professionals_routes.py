# salon_scheduler/routers/professionals_routes.py

from datetime import datetime, date
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from salon_scheduler.core import Weekday
from salon_scheduler.deps import get_schedule_service
from salon_scheduler.schedules import ScheduleService
from salon_scheduler.schemas import (
    AvailabilityResponse,
    TimeBlockCreate,
    TimeBlockPublic,
    WorkingHoursCreate,
    WorkingHoursPublic,
    WorkingHoursUpdate,
)

router = APIRouter(
    prefix="/professionals",
    tags=["professionals"],
)


@router.get("/{professional_id}/working-hours", response_model=List[WorkingHoursPublic])
def list_working_hours(
    professional_id: int,
    schedules: ScheduleService = Depends(get_schedule_service),
):
    return schedules.list_working_hours(professional_id)


@router.post("/{professional_id}/working-hours", response_model=WorkingHoursPublic, status_code=201)
def create_working_hours(
    professional_id: int,
    hours: WorkingHoursCreate,
    schedules: ScheduleService = Depends(get_schedule_service),
):
    return schedules.create_working_hours(professional_id, hours)


@router.put("/{professional_id}/working-hours/{day_of_week}", response_model=WorkingHoursPublic)
def update_working_hours(
    professional_id: int,
    hours: WorkingHoursUpdate,
    day_of_week: int = Path(ge=0, le=6),
    schedules: ScheduleService = Depends(get_schedule_service),
):
    return schedules.update_working_hours(professional_id, Weekday(day_of_week), hours)


@router.delete("/{professional_id}/working-hours/{day_of_week}", status_code=204)
def deactivate_working_hours(
    professional_id: int,
    day_of_week: int = Path(ge=0, le=6),
    schedules: ScheduleService = Depends(get_schedule_service),
):
    schedules.deactivate_working_hours(professional_id, Weekday(day_of_week))


@router.get("/{professional_id}/blocks", response_model=List[TimeBlockPublic])
def list_blocks(
    professional_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    schedules: ScheduleService = Depends(get_schedule_service),
):
    return schedules.list_blocks(professional_id, start, end)


@router.post("/{professional_id}/blocks", response_model=TimeBlockPublic, status_code=201)
def create_block(
    professional_id: int,
    block: TimeBlockCreate,
    schedules: ScheduleService = Depends(get_schedule_service),
):
    return schedules.create_block(professional_id, block)


@router.delete("/blocks/{block_id}", status_code=204)
def remove_block(
    block_id: int,
    schedules: ScheduleService = Depends(get_schedule_service),
):
    schedules.remove_block(block_id)


@router.get("/{professional_id}/availability", response_model=AvailabilityResponse)
def professional_availability(
    professional_id: int,
    date: date,
    service_ids: List[int] = Query(...),
    prep_minutes: int = Query(0, ge=0),
    schedules: ScheduleService = Depends(get_schedule_service),
):
    available = schedules.available_starts(professional_id, date, service_ids, prep_minutes)
    return {
        "professional_id": professional_id,
        "date": date,
        "service_ids": service_ids,
        "available_starts": available,
    }
