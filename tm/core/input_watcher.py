"""Polls global key state and the foreground window, turning chord presses into overlay events.

The OS side is hidden behind InputSource; the watcher only does the sampling
cadence and the edge detection.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from tm.common.logger import log
from tm.core.clock import Ticker

DEFAULT_POLL_INTERVAL = 0.05


class OverlayEvent(Enum):
    LOCK_TOGGLE = "lock_toggle"
    MINI_TOGGLE = "mini_toggle"


class InputSource:
    """Global keyboard state plus the identity of the foreground window."""

    # Whether the logical key ("ctrl", "shift", "alt", "win", or a single letter/digit) is held right now.
    def is_pressed(self, key) -> bool:
        raise NotImplementedError

    def foreground_window(self):
        raise NotImplementedError


@dataclass(frozen=True)
class Chord:
    keys: tuple

    @staticmethod
    def parse(chord):
        """Build a chord from "ctrl+shift+l" or ["ctrl", "shift", "l"]."""
        if isinstance(chord, str):
            chord = chord.split("+")
        keys = tuple(k.strip().lower() for k in chord if k and k.strip())
        if not keys:
            raise ValueError("A chord needs at least one key")
        return Chord(keys)

    def label(self):
        return "+".join(k.capitalize() for k in self.keys)

    def is_held(self, source):
        return all(source.is_pressed(k) for k in self.keys)


class EdgeDetector:
    """Fires once on a not-pressed -> pressed transition.

    `release_polls` is how many consecutive released samples it takes to re-arm.
    1 is plain edge detection; raising it debounces a chord whose key-up flickers
    under OS key repeat.
    """

    def __init__(self, release_polls=1):
        self.release_polls = max(1, int(release_polls))
        self._armed = True
        self._released_for = self.release_polls

    def update(self, pressed):
        if pressed:
            self._released_for = 0
            if self._armed:
                self._armed = False
                return True
            return False
        self._released_for += 1
        if self._released_for >= self.release_polls:
            self._armed = True
        return False


@dataclass(frozen=True)
class PollResult:
    events: tuple
    foreground: object


class InputWatcher:
    """Samples the two chords and the foreground window on a fixed cadence.

    Each cycle hands the sink (normally an OverlayController) any toggle events
    first, then the focus sample, which is sent unconditionally.
    """

    def __init__(self, source, sink, lock_chord, mini_chord, interval=DEFAULT_POLL_INTERVAL,
                 release_polls=1, start_delay=0.0, ticker_factory=Ticker):
        self.source = source
        self.sink = sink
        self.lock_chord = Chord.parse(lock_chord) if not isinstance(lock_chord, Chord) else lock_chord
        self.mini_chord = Chord.parse(mini_chord) if not isinstance(mini_chord, Chord) else mini_chord
        self.interval = interval
        self.start_delay = start_delay
        self._lock_edge = EdgeDetector(release_polls)
        self._mini_edge = EdgeDetector(release_polls)
        self._ticker_factory = ticker_factory
        self._delay_ticker = None
        self._ticker = None
        self._stopped = False
        self._lifecycle = threading.Lock()

    def _held(self, chord):
        try:
            return chord.is_held(self.source)
        except (OSError, RuntimeError, ValueError) as e:
            log.debug(f"Key poll for {chord.label()} failed, treating as released: {e}")
            return False

    def _foreground(self):
        try:
            return self.source.foreground_window()
        except (OSError, RuntimeError) as e:
            log.debug(f"Foreground window query failed: {e}")
            return None

    # Runs one sampling cycle and delivers its results to the sink.
    def poll_once(self):
        events = []
        if self._lock_edge.update(self._held(self.lock_chord)):
            events.append(OverlayEvent.LOCK_TOGGLE)
        if self._mini_edge.update(self._held(self.mini_chord)):
            events.append(OverlayEvent.MINI_TOGGLE)
        foreground = self._foreground()

        for event in events:
            log.debug(f"Input watcher emitting {event.value}")
            self.sink.handle_event(event)
        self.sink.on_focus_sample(foreground)
        return PollResult(tuple(events), foreground)

    def start(self):
        with self._lifecycle:
            if self._ticker is not None or self._delay_ticker is not None:
                return
            self._stopped = False
            if self.start_delay > 0:
                # One-shot wait so the window has a chance to exist before the first surface call.
                self._delay_ticker = self._ticker_factory(self.start_delay, self._begin_polling, name="input-delay")
                self._delay_ticker.start()
            else:
                self._start_polling_locked()
        log.info(f"Input watcher started (lock={self.lock_chord.label()}, mini={self.mini_chord.label()}, "
                 f"every {self.interval * 1000:.0f}ms)")

    # Runs on the delay ticker's thread.
    def _begin_polling(self):
        with self._lifecycle:
            if self._stopped or self._ticker is not None:
                return
            delay = self._delay_ticker
            self._delay_ticker = None
            self._start_polling_locked()
        if delay is not None:
            delay.stop()

    def _start_polling_locked(self):
        self._ticker = self._ticker_factory(self.interval, self.poll_once, name="input-watcher")
        self._ticker.start()

    # Tickers are stopped (and joined) outside the lock, since a delay callback may be waiting on it.
    def stop(self):
        with self._lifecycle:
            self._stopped = True
            tickers = (self._delay_ticker, self._ticker)
            self._delay_ticker = None
            self._ticker = None
        for ticker in tickers:
            if ticker is not None:
                ticker.stop()
