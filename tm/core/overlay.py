"""Overlay visual state: normal/mini, locked (click-through) or not, and opacity.

OverlayController is the single owner of this state. The input watcher feeds it
events and focus samples; the renderer subscribes to state changes; the window
surface is driven from here and nowhere else.
"""

import threading
from dataclasses import dataclass, replace
from enum import Enum
from tm.common.logger import log
from tm.core.binding import StringBinding
from tm.core.clock import SystemClock
from tm.core.input_watcher import OverlayEvent
from tm.core.surface import SurfaceUnavailable


class Visibility(Enum):
    NORMAL = "normal"
    MINI = "mini"


class LockMode(Enum):
    UNLOCKED = "unlocked"
    CLICK_THROUGH = "click_through"


class Focus(Enum):
    FOCUSED = "focused"
    UNFOCUSED = "unfocused"


@dataclass(frozen=True)
class OverlayState:
    visibility: Visibility = Visibility.NORMAL
    lock: LockMode = LockMode.UNLOCKED
    focus: Focus = Focus.UNFOCUSED
    opacity: int = 255

    @property
    def locked(self):
        return self.lock is LockMode.CLICK_THROUGH

    @property
    def mini(self):
        return self.visibility is Visibility.MINI


def _clamp_alpha(value):
    return max(0, min(255, int(value)))


# (lock, focus) -> alpha. Click-through ignores focus; the window can't be focused by clicking it anyway.
@dataclass(frozen=True)
class OpacityPolicy:
    focused: int = 255
    unfocused: int = 180
    click_through: int = 120

    def opacity_for(self, lock, focus):
        if lock is LockMode.CLICK_THROUGH:
            return _clamp_alpha(self.click_through)
        if focus is Focus.FOCUSED:
            return _clamp_alpha(self.focused)
        return _clamp_alpha(self.unfocused)


class OverlayController:

    def __init__(self, surface, policy=None, normal_size=(300, 220), mini_size=(450, 40),
                 mini_top_margin=10, summary_source=None, clock=None, lock_hint="Ctrl+Shift+L",
                 always_on_top=True):
        self.surface = surface
        self.policy = policy or OpacityPolicy()
        self.normal_size = tuple(normal_size)
        self.mini_size = tuple(mini_size)
        self.mini_top_margin = mini_top_margin
        self.lock_hint = lock_hint
        # Callable returning (task name, "HH:MM:SS") for the mini summary line
        self.summary_source = summary_source
        self._clock = clock or SystemClock()
        self.mini_text = StringBinding("Ready")

        self._lock = threading.Lock()
        self._state = OverlayState(opacity=self.policy.opacity_for(LockMode.UNLOCKED, Focus.UNFOCUSED))
        self._listeners = []
        self._normal_geometry = None

        # Surface operations still owed to the window, retried every focus sample until they stick
        self._pending = {"always_on_top"} if always_on_top else set()

    @property
    def state(self):
        with self._lock:
            return self._state

    def add_listener(self, listener):
        """Register `listener(state)`, called after every lock or visibility change (on the caller's thread)."""
        self._listeners.append(listener)

    def lock_label(self, state=None):
        state = state or self.state
        if state.locked:
            return f"\U0001F512 LOCKED ({self.lock_hint} to unlock)"
        return ""

    # -- Events ---------------------------------------------------------------------------------------------------

    def handle_event(self, event):
        if event is OverlayEvent.LOCK_TOGGLE:
            self.toggle_lock()
        elif event is OverlayEvent.MINI_TOGGLE:
            self.toggle_mini()
        else:
            log.warning(f"Overlay controller ignoring unknown event {event!r}")

    def toggle_lock(self):
        with self._lock:
            lock = LockMode.UNLOCKED if self._state.locked else LockMode.CLICK_THROUGH
            self._state = replace(self._state, lock=lock, opacity=self.policy.opacity_for(lock, self._state.focus))
            state = self._state
            self._pending.add("click_through")
        log.info(f"Overlay lock -> {state.lock.value}")
        self._flush_pending()
        self._notify(state)
        return state

    def toggle_mini(self):
        with self._lock:
            visibility = Visibility.NORMAL if self._state.mini else Visibility.MINI
            self._state = replace(self._state, visibility=visibility)
            state = self._state
            self._pending.add("geometry")
        log.info(f"Overlay visibility -> {state.visibility.value}")
        if state.mini:
            self._remember_normal_geometry()
            self._refresh_mini_text()
        # Listeners swap the content first so the resize below applies to the new layout.
        self._notify(state)
        self._flush_pending()
        return state

    # Leveled focus sample, delivered every poll. Recomputes and reapplies opacity and retries anything the surface
    # refused earlier.
    def on_focus_sample(self, foreground):
        own = self._advisory("window_identity", self.surface.window_identity)
        focus = Focus.FOCUSED if own is not None and foreground is not None and foreground == own else Focus.UNFOCUSED
        with self._lock:
            opacity = self.policy.opacity_for(self._state.lock, focus)
            self._state = replace(self._state, focus=focus, opacity=opacity)
            mini = self._state.mini
        self._advisory("set_opacity", self.surface.set_opacity, opacity)
        self._flush_pending()
        if mini:
            self._refresh_mini_text()

    # -- Surface --------------------------------------------------------------------------------------------------

    # Calls a surface operation, swallowing the failures a not-yet-ready or vanished window produces. Returns the
    # call's result, or None on failure.
    def _advisory(self, label, call, *args):
        try:
            return call(*args)
        except (SurfaceUnavailable, OSError) as e:
            log.debug(f"Surface call {label} deferred: {e}")
            return None

    def _flush_pending(self):
        with self._lock:
            pending = set(self._pending)
            state = self._state
        done = set()
        for op in pending:
            try:
                if op == "always_on_top":
                    self.surface.set_always_on_top()
                elif op == "click_through":
                    self.surface.set_click_through(state.locked)
                elif op == "geometry":
                    self._apply_geometry(state)
                done.add(op)
            except (SurfaceUnavailable, OSError) as e:
                log.debug(f"Surface op {op} still pending: {e}")
        if done:
            with self._lock:
                self._pending -= done

    def _remember_normal_geometry(self):
        try:
            self._normal_geometry = tuple(self.surface.geometry())
        except (SurfaceUnavailable, OSError):
            self._normal_geometry = None

    def _apply_geometry(self, state):
        if state.mini:
            width, height = self.mini_size
            screen_width, _ = self.surface.screen_size()
            origin_x, origin_y = self.surface.screen_origin()
            x = origin_x + screen_width // 2 - width // 2
            self.surface.move_and_resize(x, origin_y + self.mini_top_margin, width, height)
        elif self._normal_geometry is not None:
            x, y, _, _ = self._normal_geometry
            self.surface.move_and_resize(x, y, *self.normal_size)
        else:
            x, y, _, _ = self.surface.geometry()
            self.surface.move_and_resize(x, y, *self.normal_size)

    # -- Mini summary ---------------------------------------------------------------------------------------------

    def _refresh_mini_text(self):
        if self.summary_source is None:
            return
        name, elapsed = self.summary_source()
        stamp = self._clock.now().strftime("%a, %d %b %Y %H:%M")
        self.mini_text.set(f"[ {name} {elapsed} | {stamp} ]")

    def _notify(self, state):
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                log.exception("Overlay state listener raised")
