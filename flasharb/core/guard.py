# /flasharb/core/guard.py
import threading
from contextlib import contextmanager

from flasharb.core.errors import ReentrancyError
from flasharb.core.logger import get_logger

log = get_logger(__name__)


class ReentrancyGuard:
    """
    In-flight flag around an execution. The check-and-set is a non-blocking
    lock acquire, so a second entry is rejected immediately instead of waiting.
    """
    def __init__(self, name: str = "executor"):
        self.name = name
        self._lock = threading.Lock()

    @property
    def entered(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def enter(self):
        if not self._lock.acquire(blocking=False):
            log.critical("REENTRANT_CALL_REJECTED", guard=self.name)
            raise ReentrancyError("ReentrancyGuard: reentrant call")
        try:
            yield
        finally:
            self._lock.release()
