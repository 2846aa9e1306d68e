# salon_scheduler/locks.py

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional


class ProfessionalLocks:
    """One mutex per professional calendar.

    Validation and persistence of a booking run while the lock is held, so
    two requests for the same professional cannot both pass the conflict
    check before either one is written.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}

    def _lock_for(self, professional_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(professional_id)
            if lock is None:
                lock = self._locks[professional_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, *professional_ids: Optional[int]) -> Iterator[None]:
        # ascending order so two multi-professional holders cannot deadlock
        ids = sorted({pid for pid in professional_ids if pid is not None})
        locks = [self._lock_for(pid) for pid in ids]
        acquired = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


# Shared by every request handled in this process
professional_locks = ProfessionalLocks()
