# salon_scheduler/notifier.py

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import List, Optional, Protocol

from salon_scheduler.schemas import AppointmentPublic

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify_confirmation_link(self, appointment: AppointmentPublic, link: str) -> None: ...

    def notify_cancellation(self, appointment: AppointmentPublic, reason: Optional[str]) -> None: ...


class LoggingNotifier:
    """Default delivery: writes the message to the log."""

    def notify_confirmation_link(self, appointment: AppointmentPublic, link: str) -> None:
        logger.info(
            "Confirmation link for appointment %s (client %s): %s",
            appointment.id, appointment.client_id, link,
        )

    def notify_cancellation(self, appointment: AppointmentPublic, reason: Optional[str]) -> None:
        logger.info(
            "Appointment %s on %s cancelled for client %s: %s",
            appointment.id, appointment.starts_at.strftime("%Y-%m-%d %H:%M"),
            appointment.client_id, reason or "no reason given",
        )


class BackgroundNotifier:
    """Runs a notifier off the caller's thread.

    Delivery errors are logged and dropped: the state change that
    triggered the notification has already been committed.
    """

    def __init__(self, notifier: Notifier, max_workers: int = 2):
        self.notifier = notifier
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notifier")
        self._pending: List[Future] = []
        self._lock = threading.Lock()

    def _deliver(self, method: str, *args) -> None:
        try:
            getattr(self.notifier, method)(*args)
        except Exception:
            logger.exception("Notification %s failed for appointment %s", method, args[0].id)

    def _submit(self, method: str, *args) -> None:
        future = self._executor.submit(self._deliver, method, *args)
        with self._lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)

    def notify_confirmation_link(self, appointment: AppointmentPublic, link: str) -> None:
        self._submit("notify_confirmation_link", appointment, link)

    def notify_cancellation(self, appointment: AppointmentPublic, reason: Optional[str]) -> None:
        self._submit("notify_cancellation", appointment, reason)

    def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for queued deliveries to finish."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
