import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


def _spawn_thread(target: Callable):
    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread


class PhaseTimer:
    """
    One deferred phase transition.
    
    The callback runs once after ``delay`` seconds unless the timer was
    cancelled first. ``spawn`` and ``sleep`` decide where it runs: a daemon
    thread by default, Socket.IO background tasks inside the service.
    """
    
    def __init__(
        self,
        delay: float,
        callback: Callable[[], None],
        spawn: Callable = _spawn_thread,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.delay = delay
        self.callback = callback
        self._spawn = spawn
        self._sleep = sleep
        self._cancelled = threading.Event()
        self._started = False
    
    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()
    
    def start(self) -> "PhaseTimer":
        if self._started:
            return self
        self._started = True
        self._spawn(self._run)
        return self
    
    def cancel(self):
        self._cancelled.set()
    
    def _run(self):
        self._sleep(self.delay)
        if self.cancelled:
            logger.debug("Phase timer cancelled before firing")
            return
        try:
            self.callback()
        except Exception:
            logger.exception("Phase timer callback failed")
