import threading


# A single string value that background workers publish into and the front end reads from. Listeners are
# called on the publishing thread, so a UI listener must hand the value over to its own thread (the Qt layer
# does this with a queued signal) rather than touch widgets directly.
class StringBinding:

    def __init__(self, value=""):
        self._value = value
        self._lock = threading.Lock()
        self._listeners = []

    def get(self):
        with self._lock:
            return self._value

    def set(self, value):
        with self._lock:
            changed = value != self._value
            self._value = value
            listeners = list(self._listeners)
        if changed:
            for listener in listeners:
                listener(value)

    def add_listener(self, listener):
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener):
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
