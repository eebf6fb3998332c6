"""Time sources and periodic tick producers.

Everything that needs "now" or a repeating callback takes a Clock and a ticker
factory, so tests can swap in hand-driven stand-ins.
"""

import threading
import time
from datetime import datetime
from tm.common.logger import log


class Clock:
    """Supplies monotonic seconds (for measuring) and an aware local datetime (for recording)."""

    def monotonic(self) -> float:
        raise NotImplementedError

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):

    def monotonic(self) -> float:
        return time.monotonic()

    def now(self) -> datetime:
        return datetime.now().astimezone()


class Ticker:
    """Runs `callback` every `interval` seconds on its own daemon thread until stopped.

    stop() blocks until the worker thread has exited, so once it returns no further
    callback can fire. Calling stop() from inside the callback is allowed; it just
    skips the join.
    """

    def __init__(self, interval, callback, name="ticker"):
        self.interval = float(interval)
        self._callback = callback
        self._name = name
        self._stop_event = threading.Event()
        self._thread = None

    @property
    def active(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.active:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def stop(self):
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None

    def _run(self):
        # Event.wait doubles as the sleep, so stop() wakes us immediately instead of after a full period.
        while not self._stop_event.wait(self.interval):
            try:
                self._callback()
            except Exception:
                log.exception(f"Tick callback for '{self._name}' raised, continuing")
