"""Deterministic stand-ins for the OS-facing pieces, shared by the test modules."""

import os
import tempfile
import threading
from datetime import datetime, timedelta

# Keep the logger and default paths out of the real home directory. Must run before anything imports tm.
os.environ.setdefault("TM_DATA_DIR", tempfile.mkdtemp(prefix="tm-tests-"))

from tm.core.clock import Clock
from tm.core.input_watcher import InputSource
from tm.core.surface import SurfaceUnavailable, WindowControlSurface


class ScriptedInputSource(InputSource):
    """Key state and foreground window set directly by the test."""

    def __init__(self, foreground=None):
        self.held = set()
        self.foreground = foreground
        self.fail_keys = False

    def press(self, *keys):
        self.held.update(keys)

    def release(self, *keys):
        self.held.difference_update(keys)

    def is_pressed(self, key):
        if self.fail_keys:
            raise OSError("key state unavailable")
        return key in self.held

    def foreground_window(self):
        return self.foreground


class RecordingSurface(WindowControlSurface):
    """Surface that records every call. While `ready` is False it behaves like a window that doesn't exist yet."""

    def __init__(self, identity=42, screen=(1920, 1080), geometry=(100, 200, 300, 220), ready=True,
                 origin=(0, 0)):
        self.ready = ready
        self.identity = identity
        self.screen = screen
        self.origin = origin
        self.current_geometry = geometry
        self.calls = []
        self.opacity = None
        self.click_through = None
        self.on_top = False

    def _check(self):
        if not self.ready:
            raise SurfaceUnavailable("not ready")

    def set_opacity(self, alpha):
        self._check()
        self.calls.append(("set_opacity", alpha))
        self.opacity = alpha

    def set_click_through(self, enabled):
        self._check()
        self.calls.append(("set_click_through", enabled))
        self.click_through = enabled

    def set_always_on_top(self):
        self._check()
        self.calls.append(("set_always_on_top",))
        self.on_top = True

    def window_identity(self):
        return self.identity if self.ready else None

    def screen_size(self):
        self._check()
        return self.screen

    def screen_origin(self):
        self._check()
        return self.origin

    def geometry(self):
        self._check()
        return self.current_geometry

    def move_and_resize(self, x, y, width, height):
        self._check()
        self.calls.append(("move_and_resize", x, y, width, height))
        self.current_geometry = (x, y, width, height)

    def named(self, name):
        return [c for c in self.calls if c[0] == name]


class MemorySessionLog:
    """In-memory SessionLog with a switch to make appends fail like a full disk."""

    def __init__(self):
        self.path = "<memory>"
        self.entries = []
        self.fail = False

    def append(self, entry):
        if self.fail:
            raise OSError(28, "No space left on device")
        self.entries.append(entry)

    def load_all(self):
        return sorted(self.entries, key=lambda e: e.start_time, reverse=True)

    def clear(self):
        self.entries = []


# Clock that only moves when told to. Wall time and monotonic time advance together.
class ManualClock(Clock):

    def __init__(self, start=None):
        self._wall = start or datetime(2026, 1, 5, 9, 0, 0).astimezone()
        self._mono = 0.0
        self._lock = threading.Lock()

    def monotonic(self):
        with self._lock:
            return self._mono

    def now(self):
        with self._lock:
            return self._wall

    def advance(self, seconds):
        with self._lock:
            self._mono += seconds
            self._wall += timedelta(seconds=seconds)


class ManualTicker:
    """Ticker stand-in whose ticks are fired by hand.

    `live` counts started-but-not-stopped instances so a test can check that a
    stopped task really released its producer. Compare against a baseline taken
    at the start of the test.
    """

    live = 0
    _count_lock = threading.Lock()

    def __init__(self, interval, callback, name="ticker"):
        self.interval = float(interval)
        self._callback = callback
        self.name = name
        self.active = False

    def start(self):
        with ManualTicker._count_lock:
            if not self.active:
                self.active = True
                ManualTicker.live += 1

    def stop(self):
        with ManualTicker._count_lock:
            if self.active:
                self.active = False
                ManualTicker.live -= 1

    def fire(self):
        if self.active:
            self._callback()
