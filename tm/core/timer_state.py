import threading
from tm.common.logger import log
from tm.core.binding import StringBinding
from tm.core.clock import SystemClock, Ticker
from tm.core.session_log import SessionEntry

DEFAULT_NAME = "Unnamed"
ZERO_DISPLAY = "00:00:00"


# Format elapsed seconds as HH:MM:SS. Hours are unbounded, negative values clamp to zero.
def format_elapsed(seconds):
    seconds = max(0, int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


class TaskTimer:
    """Stopwatch for a single task row.

    Two states, idle and running. While running a ticker republishes the elapsed
    time to `display` once per `tick_interval`. Every field is guarded by `_lock`
    because the ticker thread reads what the UI thread writes.

    Measuring uses the clock's monotonic seconds; the wall-clock start is only kept
    for the session record.
    """

    def __init__(self, name="", clock=None, display=None, session_log=None,
                 tick_interval=1.0, ticker_factory=Ticker):
        self._name = name
        self._clock = clock or SystemClock()
        self.display = display or StringBinding(ZERO_DISPLAY)
        self._session_log = session_log
        self._tick_interval = tick_interval
        self._ticker_factory = ticker_factory
        self._lock = threading.Lock()

        self._running = False
        self._accumulated = 0.0
        self._mono = None
        self._started_at = None  # aware datetime, set while running
        self._ticker = None

        self.display.set(ZERO_DISPLAY)
        log.debug(f"Initialized new task timer '{self.display_name}'")

    # -- Read side ------------------------------------------------------------------------------------------------

    @property
    def name(self):
        with self._lock:
            return self._name
    @name.setter
    def name(self, value):
        with self._lock:
            self._name = value or ""

    # Name used in logs and session records. Blank names become "Unnamed".
    @property
    def display_name(self):
        name = self.name.strip()
        return name or DEFAULT_NAME

    @property
    def running(self):
        with self._lock:
            return self._running

    @property
    def accumulated(self):
        with self._lock:
            return self._accumulated

    @property
    def started_at(self):
        with self._lock:
            return self._started_at

    def elapsed(self):
        with self._lock:
            return self._elapsed_locked()

    def elapsed_display(self):
        return format_elapsed(self.elapsed())

    def _elapsed_locked(self):
        if self._running and self._mono is not None:
            return self._accumulated + (self._clock.monotonic() - self._mono)
        return self._accumulated

    # -- State machine --------------------------------------------------------------------------------------------

    # Flips between idle and running. Returns the finalized accumulated seconds when this call stopped the timer,
    # None when it started it.
    def toggle(self):
        with self._lock:
            running = self._running
        if running:
            self.stop()
            return self.accumulated
        self.start()
        return None

    def start(self):
        with self._lock:
            if self._running:
                return
            self._running = True
            self._mono = mono = self._clock.monotonic()
            self._started_at = self._clock.now()
            self._ticker = self._ticker_factory(self._tick_interval, self._tick, name=f"tick:{self._name or DEFAULT_NAME}")
            ticker = self._ticker
        ticker.start()
        log.debug(f"Started task '{self.display_name}' at mono {mono}")

    # Stops the timer and records the session. The ticker is halted before the session is written, and the
    # in-memory state is final before the write is attempted, so a failed append (OSError, propagated) leaves the
    # timer consistent. record=False skips the write. Returns the SessionEntry, or None for a sub-second session.
    def stop(self, record=True):
        with self._lock:
            if not self._running:
                return None
            mono_now = self._clock.monotonic()
            session_seconds = mono_now - self._mono
            self._accumulated += session_seconds
            self._running = False
            self._mono = None
            started_at = self._started_at
            self._started_at = None
            ticker = self._ticker
            self._ticker = None
            total = self._accumulated
            name = self._name.strip() or DEFAULT_NAME
        if ticker is not None:
            ticker.stop()
        self.display.set(format_elapsed(total))
        log.debug(f"Stopped task '{name}' after {session_seconds:.2f}s, accumulated {total:.2f}s")

        duration = int(session_seconds)
        if duration <= 0:
            log.debug(f"Session for '{name}' lasted under a second, not logging it")
            return None
        entry = SessionEntry.build(name, duration, started_at, self._clock.now())
        if record and self._session_log is not None:
            self._session_log.append(entry)
        return entry

    # Zeroes the timer, stopping (and logging) first if it is running. The zeroing happens even when the implicit
    # stop fails to write its session; that error is still raised afterwards.
    def reset(self):
        try:
            self.stop()
        finally:
            with self._lock:
                self._accumulated = 0.0
            self.display.set(ZERO_DISPLAY)
            log.debug(f"Reset task '{self.display_name}' to 0")

    # -- Ticker ---------------------------------------------------------------------------------------------------

    def _tick(self):
        # Publishing under the lock, and only while running, is what keeps a late tick from overwriting the
        # display after stop() or reset() has already set it.
        with self._lock:
            if not self._running:
                return
            self.display.set(format_elapsed(self._elapsed_locked()))
