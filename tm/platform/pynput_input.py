import threading
from pynput import keyboard
from tm.common.logger import log
from tm.core.input_watcher import InputSource

_MODIFIERS = {
    keyboard.Key.ctrl: "ctrl", keyboard.Key.ctrl_l: "ctrl", keyboard.Key.ctrl_r: "ctrl",
    keyboard.Key.shift: "shift", keyboard.Key.shift_l: "shift", keyboard.Key.shift_r: "shift",
    keyboard.Key.alt: "alt", keyboard.Key.alt_l: "alt", keyboard.Key.alt_r: "alt",
    keyboard.Key.cmd: "win", keyboard.Key.cmd_l: "win", keyboard.Key.cmd_r: "win",
    keyboard.Key.space: "space",
}


# Turns a pynput key into the logical name chords use. With Ctrl held some backends report letters as control
# characters (Ctrl+L arrives as '\x0c'), so those are folded back onto their letter.
def logical_name(key):
    if key in _MODIFIERS:
        return _MODIFIERS[key]
    if isinstance(key, keyboard.Key):
        return key.name.lower()
    char = getattr(key, "char", None)
    if char:
        if ord(char) < 32:
            return chr(ord(char) + 96)
        return char.lower()
    vk = getattr(key, "vk", None)
    if vk is not None and (0x41 <= vk <= 0x5A or 0x61 <= vk <= 0x7A or 0x30 <= vk <= 0x39):
        return chr(vk).lower()
    return None


class PynputInputSource(InputSource):
    """Key state from a global pynput listener, for platforms without GetAsyncKeyState.

    The listener keeps the set of currently held keys; polling just reads it.
    Foreground identity comes from `focus_reader`, normally the Qt surface's own
    notion of whether the overlay is the active window.
    """

    def __init__(self, focus_reader):
        self._focus_reader = focus_reader
        self._held = set()
        self._lock = threading.Lock()
        self._listener = None

    def start(self):
        if self._listener is not None:
            return
        self._listener = keyboard.Listener(on_press=self._on_press, on_release=self._on_release)
        self._listener.daemon = True
        self._listener.start()
        log.info("pynput keyboard listener started")

    def stop(self):
        if self._listener is not None:
            self._listener.stop()
            self._listener = None

    def _on_press(self, key):
        name = logical_name(key)
        if name is not None:
            with self._lock:
                self._held.add(name)

    def _on_release(self, key):
        name = logical_name(key)
        if name is not None:
            with self._lock:
                self._held.discard(name)

    def is_pressed(self, key):
        with self._lock:
            return key in self._held

    def foreground_window(self):
        return self._focus_reader()
