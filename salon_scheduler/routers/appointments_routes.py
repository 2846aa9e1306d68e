# salon_scheduler/routers/appointments_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends

from salon_scheduler.appointments import AppointmentService
from salon_scheduler.deps import get_appointment_service
from salon_scheduler.models import AppointmentStatus
from salon_scheduler.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    CancelRequest,
    RescheduleRequest,
)

router = APIRouter(
    tags=["appointments"],
)


@router.post("/appointments", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_public(service.create(appt))


@router.get("/appointments/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_public(service.get(appt_id))


@router.post("/appointments/{appt_id}/confirm", response_model=AppointmentPublic)
def confirm_appointment(
    appt_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_public(service.confirm(appt_id))


@router.post("/appointments/{appt_id}/start", response_model=AppointmentPublic)
def start_appointment(
    appt_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_public(service.start(appt_id))


@router.post("/appointments/{appt_id}/complete", response_model=AppointmentPublic)
def complete_appointment(
    appt_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_public(service.complete(appt_id))


@router.patch("/appointments/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    body: Optional[CancelRequest] = None,
    service: AppointmentService = Depends(get_appointment_service),
):
    reason = body.reason if body else None
    return service.to_public(service.cancel(appt_id, reason))


@router.patch("/appointments/{appt_id}/reschedule", response_model=AppointmentPublic)
def reschedule_appointment(
    appt_id: int,
    body: RescheduleRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_public(service.reschedule(appt_id, body))


@router.post("/appointments/{appt_id}/no-show", response_model=AppointmentPublic)
def mark_no_show(
    appt_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_public(service.mark_no_show(appt_id))


@router.get("/salons/{salon_id}/appointments", response_model=List[AppointmentPublic])
def list_salon_appointments(
    salon_id: int,
    status: Optional[AppointmentStatus] = None,
    service: AppointmentService = Depends(get_appointment_service),
):
    return [service.to_public(a) for a in service.list_by_salon(salon_id, status)]


@router.get("/clients/{client_id}/appointments", response_model=List[AppointmentPublic])
def list_client_appointments(
    client_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return [service.to_public(a) for a in service.list_by_client(client_id)]


@router.get("/professionals/{professional_id}/appointments", response_model=List[AppointmentPublic])
def list_professional_appointments(
    professional_id: int,
    on_date: Optional[date] = None,
    service: AppointmentService = Depends(get_appointment_service),
):
    if on_date is not None:
        appts = service.daily_agenda(professional_id, on_date)
    else:
        appts = service.list_by_professional(professional_id)
    return [service.to_public(a) for a in appts]
