# salon_scheduler/appointments.py
"""Appointment lifecycle.

    pending -> confirmed -> in_progress -> completed
    pending | confirmed -> cancelled
    confirmed -> no_show
    reschedule: any non-terminal status -> pending (new time / professional)

Every write runs under the lock of each professional it touches, with
validation and commit inside the same critical section.
"""

import logging
import secrets
from datetime import date, timedelta
from typing import Callable, Iterable, List, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session

from salon_scheduler.clock import Clock, SystemClock
from salon_scheduler.config import FRONTEND_URL
from salon_scheduler.errors import (
    BookingConflictError,
    BookingValidationError,
    NotFoundError,
    Reason,
    reject,
)
from salon_scheduler.locks import ProfessionalLocks, professional_locks
from salon_scheduler.models import Appointment, AppointmentStatus, Client, TERMINAL_STATUSES
from salon_scheduler.notifier import Notifier
from salon_scheduler.repositories import AppointmentRepository, CatalogRepository, ClientRepository
from salon_scheduler.schemas import AppointmentCreate, AppointmentPublic, LineItemPublic, RescheduleRequest
from salon_scheduler.validator import BookingDecision, BookingValidator

logger = logging.getLogger(__name__)

T = TypeVar("T")

# action -> (statuses it may start from, status it leads to)
TRANSITIONS = {
    "confirm": ((AppointmentStatus.pending,), AppointmentStatus.confirmed),
    "start": ((AppointmentStatus.confirmed,), AppointmentStatus.in_progress),
    "complete": ((AppointmentStatus.in_progress,), AppointmentStatus.completed),
    "mark as no-show": ((AppointmentStatus.confirmed,), AppointmentStatus.no_show),
}

WRITE_ATTEMPTS = 2


class ProfessionalChanged(Exception):
    """The appointment moved to another professional after it was read."""


def generate_token() -> str:
    return secrets.token_urlsafe(32)


def confirmation_link(token: str) -> str:
    return f"{FRONTEND_URL}/appointments/confirm/{token}"


class AppointmentService:
    def __init__(
        self,
        session: Session,
        clock: Optional[Clock] = None,
        notifier: Optional[Notifier] = None,
        locks: Optional[ProfessionalLocks] = None,
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.notifier = notifier
        self.locks = locks or professional_locks
        self.appointments = AppointmentRepository(session)
        self.clients = ClientRepository(session)
        self.catalog = CatalogRepository(session)
        self.validator = BookingValidator(session, self.clock)

    # ------------------------------------------------------------------
    # queries

    def get(self, appointment_id: int) -> Appointment:
        return self.appointments.get(appointment_id)

    def get_by_token(self, token: str) -> Appointment:
        return self.appointments.get_by_token(token)

    def list_by_salon(self, salon_id: int, status: Optional[AppointmentStatus] = None) -> List[Appointment]:
        self.catalog.get_salon(salon_id)
        return self.appointments.list_by_salon(salon_id, status.value if status else None)

    def list_by_client(self, client_id: int) -> List[Appointment]:
        self.clients.get(client_id)
        return self.appointments.list_by_client(client_id)

    def list_by_professional(self, professional_id: int) -> List[Appointment]:
        self.catalog.get_professional(professional_id)
        return self.appointments.list_by_professional(professional_id)

    def daily_agenda(self, professional_id: int, on_date: date) -> List[Appointment]:
        self.catalog.get_professional(professional_id)
        return self.appointments.find_by_professional_and_day(professional_id, on_date)

    def to_public(self, appointment: Appointment) -> AppointmentPublic:
        public = AppointmentPublic.model_validate(appointment)
        public.line_items = [
            LineItemPublic.model_validate(item) for item in self.appointments.line_items(appointment.id)
        ]
        return public

    # ------------------------------------------------------------------
    # transitions

    def create(self, data: AppointmentCreate) -> Appointment:
        def unit() -> Appointment:
            professional = self.catalog.get_professional(data.professional_id)
            self.catalog.lock_professional(professional.id)
            client = self._resolve_client(professional.salon_id, data)

            decision = self.validator.validate_new(
                professional.id, data.service_ids, client, data.starts_at, data.prep_minutes,
            )
            plan = self._accepted(decision).plan

            now = self.clock.now()
            appointment = Appointment(
                salon_id=decision.salon_id,
                client_id=client.id,
                professional_id=professional.id,
                starts_at=plan.starts_at,
                ends_at=plan.ends_at,
                status=AppointmentStatus.pending.value,
                charged_amount_cents=plan.charged_amount_cents,
                confirmation_token=generate_token(),
                notes=data.notes,
                created_at=now,
                updated_at=now,
            )
            self.appointments.save(appointment)
            self.appointments.add_line_items(plan.line_items(appointment.id))
            self.clients.increment_appointment_count(client.id)
            return appointment

        appointment = self._write([data.professional_id], unit)
        logger.info(
            "Appointment %s created for client %s with professional %s at %s",
            appointment.id, appointment.client_id, appointment.professional_id, appointment.starts_at,
        )
        self._notify("notify_confirmation_link", appointment, confirmation_link(appointment.confirmation_token))
        return appointment

    def confirm(self, appointment_id: int) -> Appointment:
        return self._advance(self.appointments.get(appointment_id), "confirm")

    def confirm_by_token(self, token: str) -> Appointment:
        return self._advance(self.appointments.get_by_token(token), "confirm")

    def start(self, appointment_id: int) -> Appointment:
        return self._advance(self.appointments.get(appointment_id), "start")

    def complete(self, appointment_id: int) -> Appointment:
        return self._advance(self.appointments.get(appointment_id), "complete")

    def mark_no_show(self, appointment_id: int) -> Appointment:
        appointment = self.appointments.get(appointment_id)
        was_blocked = self.clients.get(appointment.client_id).blocked
        appointment = self._advance(appointment, "mark as no-show")
        client = self.clients.get(appointment.client_id)
        if client.blocked and not was_blocked:
            logger.warning("Client %s blocked after %s no-shows", client.id, client.no_show_count)
        return appointment

    def cancel(self, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        return self._cancel(self.appointments.get(appointment_id), reason)

    def cancel_by_token(self, token: str, reason: Optional[str] = None) -> Appointment:
        return self._cancel(self.appointments.get_by_token(token), reason or "Cancelled by client via link")

    def reschedule(self, appointment_id: int, data: RescheduleRequest) -> Appointment:
        for attempt in range(1, WRITE_ATTEMPTS + 1):
            current = self.appointments.get(appointment_id)
            held = {current.professional_id, data.professional_id or current.professional_id}
            try:
                appointment = self._write(held, self._reschedule_unit(appointment_id, data, held))
            except ProfessionalChanged:
                logger.warning("Appointment %s changed professional during reschedule, attempt %s",
                               appointment_id, attempt)
                continue
            logger.info(
                "Appointment %s rescheduled to %s with professional %s",
                appointment.id, appointment.starts_at, appointment.professional_id,
            )
            return appointment
        raise BookingConflictError("The appointment was moved by another request")

    def _reschedule_unit(
        self, appointment_id: int, data: RescheduleRequest, held: set
    ) -> Callable[[], Appointment]:
        def unit() -> Appointment:
            appointment = self.appointments.get(appointment_id)
            self._guard_active(appointment, "reschedule")
            # both the current and the target professional must be among the held locks
            new_professional_id = data.professional_id or appointment.professional_id
            if appointment.professional_id not in held or new_professional_id not in held:
                raise ProfessionalChanged()
            self.catalog.lock_professional(new_professional_id)

            decision = self.validator.validate_reschedule(
                appointment,
                self.appointments.line_items(appointment.id),
                new_professional_id,
                data.starts_at,
                self.clients.get(appointment.client_id),
            )
            plan = self._accepted(decision).plan

            appointment.starts_at = plan.starts_at
            appointment.ends_at = plan.ends_at
            appointment.professional_id = new_professional_id
            # a moved booking has to be confirmed again
            appointment.status = AppointmentStatus.pending.value
            appointment.reminder_24h_sent = False
            appointment.reminder_2h_sent = False
            appointment.updated_at = self.clock.now()
            return self.appointments.save(appointment)

        return unit

    # ------------------------------------------------------------------
    # internals

    def _resolve_client(self, salon_id: int, data: AppointmentCreate) -> Client:
        if data.client_id is not None:
            client = self.clients.get(data.client_id)
            if client.salon_id != salon_id:
                raise NotFoundError("Client", data.client_id)
            return client
        return self.clients.get_or_create(salon_id, data.client_email, data.client_name)

    def _accepted(self, decision: BookingDecision) -> BookingDecision:
        if not decision.ok:
            raise BookingValidationError(decision.violation)
        return decision

    def _guard_active(self, appointment: Appointment, action: str) -> None:
        if appointment.status in TERMINAL_STATUSES:
            raise BookingValidationError(reject(
                Reason.invalid_transition,
                f"Cannot {action} an appointment that is {appointment.status}",
                action=action, status=appointment.status,
            ))

    def _advance(self, appointment: Appointment, action: str) -> Appointment:
        allowed, target = TRANSITIONS[action]
        appointment_id = appointment.id

        def unit() -> Appointment:
            fresh = self.appointments.get(appointment_id)
            if fresh.status not in [s.value for s in allowed]:
                raise BookingValidationError(reject(
                    Reason.invalid_transition,
                    f"Cannot {action} an appointment that is {fresh.status}",
                    action=action, status=fresh.status, allowed=[s.value for s in allowed],
                ))
            fresh.status = target.value
            fresh.updated_at = self.clock.now()
            self.appointments.save(fresh)
            if target is AppointmentStatus.no_show:
                salon = self.catalog.get_salon(fresh.salon_id, active_only=False)
                self.clients.record_no_show(fresh.client_id, salon.max_no_shows)
            return fresh

        appointment = self._write([appointment.professional_id], unit)
        logger.info("Appointment %s is now %s", appointment.id, appointment.status)
        return appointment

    def _cancel(self, appointment: Appointment, reason: Optional[str]) -> Appointment:
        appointment_id = appointment.id

        def unit() -> Appointment:
            fresh = self.appointments.get(appointment_id)
            self._guard_active(fresh, "cancel")

            salon = self.catalog.get_salon(fresh.salon_id, active_only=False)
            deadline = fresh.starts_at - timedelta(hours=salon.min_cancel_hours)
            if self.clock.now() > deadline:
                raise BookingValidationError(reject(
                    Reason.cancellation_notice,
                    f"Cancellations require at least {salon.min_cancel_hours} hours notice",
                    min_cancel_hours=salon.min_cancel_hours, deadline=deadline,
                ))

            fresh.status = AppointmentStatus.cancelled.value
            fresh.cancellation_reason = reason
            fresh.updated_at = self.clock.now()
            return self.appointments.save(fresh)

        appointment = self._write([appointment.professional_id], unit)
        logger.info("Appointment %s cancelled: %s", appointment.id, reason)
        self._notify("notify_cancellation", appointment, reason)
        return appointment

    def _notify(self, method: str, appointment: Appointment, *args) -> None:
        # runs after commit; delivery errors are logged, never raised
        if self.notifier is None:
            return
        try:
            getattr(self.notifier, method)(self.to_public(appointment), *args)
        except Exception:
            logger.exception("Notification %s failed for appointment %s", method, appointment.id)

    def _write(self, professional_ids: Iterable[int], unit: Callable[[], T]) -> T:
        """Run ``unit`` and commit it while holding the professionals' locks.

        A failed write is rolled back and the whole unit (validation
        included) runs once more before BookingConflictError is raised.
        """
        with self.locks.hold(*professional_ids):
            for attempt in range(1, WRITE_ATTEMPTS + 1):
                # read what other sessions committed while we waited for the lock
                self.session.expire_all()
                try:
                    result = unit()
                    self.session.commit()
                except (IntegrityError, OperationalError) as exc:
                    self.session.rollback()
                    if attempt == WRITE_ATTEMPTS:
                        raise BookingConflictError(
                            "The booking could not be saved because of a concurrent change"
                        ) from exc
                    logger.warning("Write conflict on attempt %s, retrying: %s", attempt, exc)
                    continue
                except Exception:
                    self.session.rollback()
                    raise
                self.session.refresh(result)
                return result
