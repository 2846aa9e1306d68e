# salon_scheduler/routers/public_routes.py
# Links sent to clients; the token is the only credential.

from typing import Optional

from fastapi import APIRouter, Depends

from salon_scheduler.appointments import AppointmentService
from salon_scheduler.deps import get_appointment_service
from salon_scheduler.schemas import AppointmentPublic, CancelRequest

router = APIRouter(
    prefix="/public/appointments",
    tags=["public"],
)


@router.post("/{token}/confirm", response_model=AppointmentPublic)
def confirm_by_token(
    token: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_public(service.confirm_by_token(token))


@router.post("/{token}/cancel", response_model=AppointmentPublic)
def cancel_by_token(
    token: str,
    body: Optional[CancelRequest] = None,
    service: AppointmentService = Depends(get_appointment_service),
):
    reason = body.reason if body else None
    return service.to_public(service.cancel_by_token(token, reason))
