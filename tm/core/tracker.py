from tm.common.logger import log
from tm.core.clock import SystemClock, Ticker
from tm.core.stats import DEFAULT_DAYS, summarize
from tm.core.timer_state import TaskTimer


class TaskTracker:
    """The overlay's task slots plus the history behind them.

    Front ends talk to this and nothing lower: start/stop/reset a slot by index,
    read its display string, pull a stats summary, or wipe history. Slots are
    fixed for the life of the process.
    """

    def __init__(self, session_log, slots=3, clock=None, tick_interval=1.0, ticker_factory=Ticker):
        self.session_log = session_log
        self._clock = clock or SystemClock()
        self.timers = [
            TaskTimer(clock=self._clock, session_log=session_log,
                      tick_interval=tick_interval, ticker_factory=ticker_factory)
            for _ in range(slots)
        ]
        log.info(f"Task tracker ready with {slots} slot(s), logging to '{session_log.path}'")

    def __len__(self):
        return len(self.timers)

    def timer(self, index) -> TaskTimer:
        if not 0 <= index < len(self.timers):
            raise IndexError(f"No task slot {index} (have {len(self.timers)})")
        return self.timers[index]

    # -- Per-slot control -----------------------------------------------------------------------------------------

    def start(self, index):
        self.timer(index).start()

    def stop(self, index):
        return self.timer(index).stop()

    def toggle(self, index):
        return self.timer(index).toggle()

    def reset(self, index):
        self.timer(index).reset()

    def set_name(self, index, name):
        self.timer(index).name = name

    def elapsed_display(self, index):
        return self.timer(index).elapsed_display()

    # The task the mini line should show: the first running one, else the first slot.
    def focus_task(self):
        for timer in self.timers:
            if timer.running:
                return timer
        return self.timers[0]

    def mini_summary(self):
        timer = self.focus_task()
        return timer.display_name, timer.display.get()

    # -- History --------------------------------------------------------------------------------------------------

    # Reloads the log and recomputes. Missing log reads as empty; read errors other than that propagate.
    def stats_summary(self, limit_days=DEFAULT_DAYS):
        return summarize(self.session_log.load_all(), limit_days)

    def stats_report(self, limit_days=DEFAULT_DAYS):
        return self.stats_summary(limit_days).render()

    def clear_all_history(self):
        self.session_log.clear()

    # -- Lifecycle ------------------------------------------------------------------------------------------------

    # Stops every running slot. With log_running, their sessions are written like any other stop; otherwise the
    # tickers are just released. Every slot is stopped even if an earlier write fails; the first failure is
    # re-raised at the end.
    def shutdown(self, log_running=True):
        first_error = None
        for timer in self.timers:
            if not timer.running:
                continue
            try:
                timer.stop(record=log_running)
            except OSError as e:
                log.error(f"Failed to log final session for '{timer.display_name}'", exc_info=True)
                if first_error is None:
                    first_error = e
        log.info("Task tracker shut down")
        if first_error is not None:
            raise first_error
