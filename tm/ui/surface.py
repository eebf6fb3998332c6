import sys
from PySide6.QtCore import QObject, Qt, Signal
from tm.common.logger import log
from tm.core.surface import SurfaceUnavailable, WindowControlSurface


class QtWindowSurface(QObject, WindowControlSurface):
    """Window control surface backed by Qt, safe to drive from the input watcher thread.

    Requests are emitted as signals on an object living in the GUI thread, so Qt
    queues them there; the slots do the actual widget calls. Reads come from
    values cached by the GUI thread (window handle, screen, geometry, active).
    Until attach() has run, every request raises SurfaceUnavailable.
    """

    _opacity_requested = Signal(int)
    _click_through_requested = Signal(bool)
    _on_top_requested = Signal()
    _geometry_requested = Signal(int, int, int, int)

    def __init__(self, window):
        super().__init__(window)
        self._window = window
        self._ready = False
        self._identity = None
        self._active = False
        self._screen = (1920, 1080)
        self._screen_origin = (0, 0)
        self._geometry = None
        self._last_opacity = None

        self._opacity_requested.connect(self._apply_opacity)
        self._click_through_requested.connect(self._apply_click_through)
        self._on_top_requested.connect(self._apply_on_top)
        self._geometry_requested.connect(self._apply_geometry)

    # -- GUI thread bookkeeping -----------------------------------------------------------------------------------

    # Called once the window is shown and has a native handle.
    def attach(self):
        self._identity = int(self._window.winId())
        self.track_geometry()
        self._ready = True
        log.info(f"Window surface attached to handle {self._identity}, screen {self._screen}")

    def track_geometry(self):
        g = self._window.geometry()
        self._geometry = (g.x(), g.y(), g.width(), g.height())
        # The window may have been dragged onto another monitor
        screen = self._window.screen()
        if screen is not None:
            available = screen.availableGeometry()
            self._screen = (available.width(), available.height())
            self._screen_origin = (available.x(), available.y())

    def set_active(self, active):
        self._active = bool(active)

    # Foreground identity for input sources that can't ask the OS: our own handle while we're the active window.
    def current_foreground(self):
        return self._identity if self._active else None

    def _require_ready(self):
        if not self._ready:
            raise SurfaceUnavailable("overlay window is not shown yet")

    # -- WindowControlSurface -------------------------------------------------------------------------------------

    def set_opacity(self, alpha):
        self._require_ready()
        if alpha != self._last_opacity:
            self._last_opacity = alpha
            self._opacity_requested.emit(int(alpha))

    def set_click_through(self, enabled):
        self._require_ready()
        self._click_through_requested.emit(bool(enabled))

    def set_always_on_top(self):
        self._require_ready()
        self._on_top_requested.emit()

    def window_identity(self):
        return self._identity

    def screen_size(self):
        return self._screen

    def screen_origin(self):
        return self._screen_origin

    def geometry(self):
        self._require_ready()
        return self._geometry

    def move_and_resize(self, x, y, width, height):
        self._require_ready()
        self._geometry_requested.emit(int(x), int(y), int(width), int(height))

    # -- Slots (GUI thread) ---------------------------------------------------------------------------------------

    def _apply_opacity(self, alpha):
        self._window.setWindowOpacity(alpha / 255.0)

    def _apply_click_through(self, enabled):
        # Changing window flags re-creates the native window on some platforms, so show() it again afterwards.
        self._window.setWindowFlag(Qt.WindowTransparentForInput, enabled)
        self._window.show()
        self._identity = int(self._window.winId())

    def _apply_on_top(self):
        if not self._window.windowFlags() & Qt.WindowStaysOnTopHint:
            self._window.setWindowFlag(Qt.WindowStaysOnTopHint, True)
            self._window.show()
            self._identity = int(self._window.winId())
        self._window.raise_()

    def _apply_geometry(self, x, y, width, height):
        self._window.setFixedSize(width, height)
        self._window.move(x, y)
        self.track_geometry()


class Win32WindowSurface(QtWindowSurface):
    """Windows flavour: opacity, click-through and topmost go straight to user32.

    Those calls are fine from any thread, so they skip the signal hop. Geometry
    still goes through Qt so the widget's idea of its size stays in sync.
    """

    def set_opacity(self, alpha):
        from tm.platform.win32 import set_window_alpha
        self._require_ready()
        set_window_alpha(self._identity, alpha)

    def set_click_through(self, enabled):
        from tm.platform.win32 import set_click_through
        self._require_ready()
        set_click_through(self._identity, enabled)

    def set_always_on_top(self):
        from tm.platform.win32 import set_tool_window, set_topmost
        self._require_ready()
        set_tool_window(self._identity)
        set_topmost(self._identity)


def create_surface(window):
    if sys.platform == "win32":
        return Win32WindowSurface(window)
    return QtWindowSurface(window)
