import sys
from tm.common.logger import log


# Picks the key/focus source for this OS. Windows polls GetAsyncKeyState directly; everything else listens with
# pynput and asks `focus_reader` (the Qt surface) which window is in front.
def create_input_source(focus_reader):
    if sys.platform == "win32":
        from tm.platform.win32 import Win32InputSource
        log.info("Using Win32 key polling")
        return Win32InputSource()

    from tm.platform.pynput_input import PynputInputSource
    source = PynputInputSource(focus_reader)
    source.start()
    return source


def battery_reader():
    if sys.platform == "win32":
        from tm.platform.win32 import battery_status
        return battery_status
    return None
