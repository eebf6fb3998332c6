from tm.core.binding import StringBinding
from tm.core.clock import SystemClock, Ticker

UNKNOWN_BATTERY = "BAT:??"


# Publishes "<battery> | 02 Jan 15:04" into a binding on its own ticker. The battery reader is whatever the
# platform layer offers; it should return a short string and may raise OSError.
class StatusReadout:

    def __init__(self, battery_reader=None, clock=None, interval=1.0, display=None, ticker_factory=Ticker):
        self.battery_reader = battery_reader
        self.display = display or StringBinding("Loading...")
        self._clock = clock or SystemClock()
        self._ticker = ticker_factory(interval, self.refresh, name="status-readout")

    def render(self):
        battery = UNKNOWN_BATTERY
        if self.battery_reader is not None:
            try:
                battery = self.battery_reader() or UNKNOWN_BATTERY
            except OSError:
                battery = UNKNOWN_BATTERY
        return f"{battery} | {self._clock.now():%d %b %H:%M}"

    def refresh(self):
        self.display.set(self.render())

    def start(self):
        self.refresh()
        self._ticker.start()

    def stop(self):
        self._ticker.stop()
