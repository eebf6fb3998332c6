from tm.common.logger import log


# Raised by a surface when the window it drives doesn't exist yet (or has gone away).
class SurfaceUnavailable(RuntimeError):
    pass


class WindowControlSurface:
    """What the overlay needs from the host windowing layer.

    Every call is advisory. Implementations raise SurfaceUnavailable (or OSError
    from a native call) when they can't comply right now, and the caller retries
    on its next poll.
    """

    def set_opacity(self, alpha: int):
        raise NotImplementedError

    def set_click_through(self, enabled: bool):
        raise NotImplementedError

    def set_always_on_top(self):
        raise NotImplementedError

    # Native identity of the overlay window, comparable with InputSource.foreground_window(). None until the
    # window exists.
    def window_identity(self):
        raise NotImplementedError

    # (width, height) of the screen the overlay lives on.
    def screen_size(self):
        raise NotImplementedError

    # (x, y) of that screen's usable area in desktop coordinates. Non-zero on a secondary monitor.
    def screen_origin(self):
        raise NotImplementedError

    # (x, y, width, height) of the overlay window.
    def geometry(self):
        raise NotImplementedError

    def move_and_resize(self, x, y, width, height):
        raise NotImplementedError


# Surface for headless runs: remembers what it was told and never fails.
class NullSurface(WindowControlSurface):

    def __init__(self, screen=(1920, 1080), geometry=(0, 0, 300, 220), origin=(0, 0)):
        self.opacity = 255
        self.click_through = False
        self.on_top = False
        self._screen = tuple(screen)
        self._origin = tuple(origin)
        self._geometry = tuple(geometry)

    def set_opacity(self, alpha):
        self.opacity = alpha

    def set_click_through(self, enabled):
        self.click_through = enabled
        log.debug(f"NullSurface click-through -> {enabled}")

    def set_always_on_top(self):
        self.on_top = True

    def window_identity(self):
        return 0

    def screen_size(self):
        return self._screen

    def screen_origin(self):
        return self._origin

    def geometry(self):
        return self._geometry

    def move_and_resize(self, x, y, width, height):
        self._geometry = (x, y, width, height)
