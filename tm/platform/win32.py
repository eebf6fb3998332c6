"""Thin ctypes wrappers over the user32/kernel32 calls the overlay uses on Windows.

Nothing here touches ctypes.windll at import time, so the module imports fine
everywhere; the functions themselves are only called on win32.
"""

import ctypes
from ctypes import wintypes
from tm.core.input_watcher import InputSource

GWL_EXSTYLE = -20
WS_EX_LAYERED = 0x00080000
WS_EX_TRANSPARENT = 0x00000020
WS_EX_TOOLWINDOW = 0x00000080
LWA_ALPHA = 0x00000002
HWND_TOPMOST = wintypes.HWND(-1)
SWP_NOSIZE = 0x0001
SWP_NOMOVE = 0x0002
SWP_NOACTIVATE = 0x0010

_VIRTUAL_KEYS = {
    "ctrl": 0x11,
    "control": 0x11,
    "shift": 0x10,
    "alt": 0x12,
    "win": 0x5B,
    "space": 0x20,
}


class SYSTEM_POWER_STATUS(ctypes.Structure):
    _fields_ = [
        ("ACLineStatus", ctypes.c_ubyte),
        ("BatteryFlag", ctypes.c_ubyte),
        ("BatteryLifePercent", ctypes.c_ubyte),
        ("SystemStatusFlag", ctypes.c_ubyte),
        ("BatteryLifeTime", wintypes.DWORD),
        ("BatteryFullLifeTime", wintypes.DWORD),
    ]


_USER32 = None

# user32 with argtypes declared, so 64-bit window handles aren't truncated to a C int.
def _user32():
    global _USER32
    if _USER32 is None:
        user32 = ctypes.WinDLL("user32", use_last_error=True)
        user32.GetWindowLongW.argtypes = [wintypes.HWND, ctypes.c_int]
        user32.GetWindowLongW.restype = ctypes.c_long
        user32.SetWindowLongW.argtypes = [wintypes.HWND, ctypes.c_int, ctypes.c_long]
        user32.SetWindowLongW.restype = ctypes.c_long
        user32.SetLayeredWindowAttributes.argtypes = [wintypes.HWND, wintypes.DWORD, ctypes.c_ubyte, wintypes.DWORD]
        user32.SetLayeredWindowAttributes.restype = wintypes.BOOL
        user32.SetWindowPos.argtypes = [wintypes.HWND, wintypes.HWND, ctypes.c_int, ctypes.c_int,
                                        ctypes.c_int, ctypes.c_int, ctypes.c_uint]
        user32.SetWindowPos.restype = wintypes.BOOL
        user32.GetForegroundWindow.restype = wintypes.HWND
        user32.GetAsyncKeyState.argtypes = [ctypes.c_int]
        user32.GetAsyncKeyState.restype = ctypes.c_short
        _USER32 = user32
    return _USER32

def _raise_last_error():
    raise ctypes.WinError(ctypes.get_last_error())

# Maps a logical key name to its virtual-key code. Letters and digits map to their uppercase ASCII code, f1-f12
# to VK_F1..VK_F12.
def virtual_key(name):
    name = name.lower()
    if name in _VIRTUAL_KEYS:
        return _VIRTUAL_KEYS[name]
    if len(name) == 1 and name.isalnum():
        return ord(name.upper())
    if name.startswith("f") and name[1:].isdigit() and 1 <= int(name[1:]) <= 12:
        return 0x6F + int(name[1:])
    raise ValueError(f"Unknown key name '{name}'")


def _ex_style(hwnd):
    return _user32().GetWindowLongW(hwnd, GWL_EXSTYLE)

def _set_ex_style(hwnd, style):
    ctypes.set_last_error(0)
    if _user32().SetWindowLongW(hwnd, GWL_EXSTYLE, style) == 0 and ctypes.get_last_error():
        _raise_last_error()


def set_window_alpha(hwnd, alpha):
    _set_ex_style(hwnd, _ex_style(hwnd) | WS_EX_LAYERED)
    if not _user32().SetLayeredWindowAttributes(hwnd, 0, int(alpha), LWA_ALPHA):
        _raise_last_error()

def set_click_through(hwnd, enabled):
    style = _ex_style(hwnd)
    if enabled:
        _set_ex_style(hwnd, style | WS_EX_TRANSPARENT | WS_EX_LAYERED)
    else:
        _set_ex_style(hwnd, style & ~WS_EX_TRANSPARENT)

# Keeps the overlay out of the taskbar and alt-tab.
def set_tool_window(hwnd):
    _set_ex_style(hwnd, _ex_style(hwnd) | WS_EX_TOOLWINDOW)

def set_topmost(hwnd):
    if not _user32().SetWindowPos(hwnd, HWND_TOPMOST, 0, 0, 0, 0, SWP_NOMOVE | SWP_NOSIZE | SWP_NOACTIVATE):
        _raise_last_error()


def battery_status():
    status = SYSTEM_POWER_STATUS()
    if not ctypes.windll.kernel32.GetSystemPowerStatus(ctypes.byref(status)):
        return "BAT:??"
    charging = "⚡" if status.ACLineStatus == 1 else ""
    if status.BatteryLifePercent == 255:
        return f"BAT:??{charging}"
    return f"{status.BatteryLifePercent}%{charging}"


class Win32InputSource(InputSource):

    def __init__(self):
        self._codes = {}

    def is_pressed(self, key):
        code = self._codes.get(key)
        if code is None:
            code = self._codes[key] = virtual_key(key)
        return bool(_user32().GetAsyncKeyState(code) & 0x8000)

    def foreground_window(self):
        return _user32().GetForegroundWindow() or None
