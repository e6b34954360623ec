"""Single-slot guard that keeps one generation request in flight at a time."""

from contextlib import contextmanager
import threading
from typing import Iterator

from sourcewriter.errors import GenerationBusyError


class InFlightGuard:
    """Rejects a second caller while the slot is held, rather than queueing it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise GenerationBusyError("A generation request is already in progress.")
        try:
            yield
        finally:
            self._lock.release()
