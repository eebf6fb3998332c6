import sys
from PySide6.QtCore import Qt, QEvent, QTimer
from PySide6.QtWidgets import (
    QApplication,
    QLabel,
    QMainWindow,
    QMessageBox,
    QStackedWidget,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)
from tm.common.logger import log
from tm.core import config
from tm.core.input_watcher import Chord, InputWatcher
from tm.core.overlay import OpacityPolicy, OverlayController
from tm.core.session_log import SessionLog
from tm.core.status import StatusReadout
from tm.core.tracker import TaskTracker
from tm.platform.factory import battery_reader, create_input_source
from tm.ui.surface import create_surface
from tm.ui.theme import build_stylesheet
from tm.ui.widgets import (
    BindingRelay,
    StateRelay,
    build_separator,
    build_stats_tab,
    build_task_row,
    mono_font,
    set_row_running,
)

WINDOW_TITLE = "Monitor"


# ---------------------------------------------------------------------------
# Main window
# ---------------------------------------------------------------------------

# The overlay itself: task rows and stats in tabs, swapped for a one-line summary in mini mode.
class MainWindow(QMainWindow):

    def __init__(self, settings=None):
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)
        self.settings = settings or config.load_settings()
        s = self.settings

        flags = self.windowFlags() | Qt.Tool
        if s["always_on_top"]:
            flags |= Qt.WindowStaysOnTopHint
        self.setWindowFlags(flags)

        # -- Core --
        self.tracker = TaskTracker(
            SessionLog(config.SESSION_LOG_PATH),
            slots=s["task_slots"],
            tick_interval=s["tick_interval_ms"] / 1000,
        )
        self.surface = create_surface(self)
        self.setFixedSize(*s["normal_size"])
        lock_chord = Chord.parse(s["lock_chord"])
        self.controller = OverlayController(
            self.surface,
            policy=OpacityPolicy(
                focused=s["opacity_focused"],
                unfocused=s["opacity_unfocused"],
                click_through=s["opacity_click_through"],
            ),
            normal_size=s["normal_size"],
            mini_size=s["mini_size"],
            mini_top_margin=s["mini_top_margin"],
            summary_source=self.tracker.mini_summary,
            lock_hint=lock_chord.label(),
            always_on_top=s["always_on_top"],
        )
        self.status = StatusReadout(battery_reader=battery_reader(), interval=s["status_interval_ms"] / 1000)
        self.input_source = create_input_source(self.surface.current_foreground)
        self.watcher = InputWatcher(
            self.input_source, self.controller,
            lock_chord=lock_chord,
            mini_chord=s["mini_chord"],
            interval=s["poll_interval_ms"] / 1000,
            release_polls=s["chord_release_polls"],
            start_delay=s["watcher_start_delay_ms"] / 1000,
        )

        self._rows = []
        self._relays = []
        self._attached = False

        # -- Build UI skeleton --
        central = QWidget()
        central.setObjectName("overlayRoot")
        central.setAttribute(Qt.WA_StyledBackground, True)
        self.setCentralWidget(central)
        root_lay = QVBoxLayout(central)
        root_lay.setContentsMargins(6, 4, 6, 4)

        self._stack = QStackedWidget()
        root_lay.addWidget(self._stack)

        self._tabs = QTabWidget()
        self._tabs.addTab(self._build_tasks_tab(), "Tasks")
        stats_tab, self._stats = build_stats_tab(on_refresh=self._refresh_stats, on_clear=self._on_clear_history)
        self._tabs.addTab(stats_tab, "Stats")
        self._tabs.currentChanged.connect(self._on_tab_changed)
        self._stack.addWidget(self._tabs)

        self._mini_label = QLabel(self.controller.mini_text.get())
        self._mini_label.setFont(mono_font(10, bold=True))
        self._mini_label.setAlignment(Qt.AlignCenter)
        self._bind(self.controller.mini_text, self._mini_label.setText)
        self._stack.addWidget(self._mini_label)

        state_relay = StateRelay(self.controller, self)
        state_relay.changed.connect(self._apply_overlay_state)
        self._relays.append(state_relay)

        self.setStyleSheet(build_stylesheet(locked=False))
        self._refresh_stats()

        # -- Workers --
        self.status.start()
        self.watcher.start()

    def _bind(self, binding, slot):
        relay = BindingRelay(binding, self)
        relay.changed.connect(slot)
        self._relays.append(relay)

    def _build_tasks_tab(self):
        tab = QWidget()
        lay = QVBoxLayout(tab)
        lay.setContentsMargins(0, 2, 0, 0)
        lay.setSpacing(3)

        header = QLabel("▶/⏸ | Task | Timer")
        header.setFont(mono_font(9))
        lay.addWidget(header)

        for index, timer in enumerate(self.tracker.timers):
            rc, wd = build_task_row(
                index, timer,
                on_toggle=self._on_toggle,
                on_reset=self._on_reset,
                on_rename=self.tracker.set_name,
            )
            self._bind(timer.display, wd["time"].setText)
            self._rows.append(wd)
            lay.addWidget(rc)

        lay.addWidget(build_separator())

        self._status_label = QLabel(self.status.display.get())
        self._status_label.setObjectName("statusLabel")
        self._status_label.setFont(mono_font(9))
        self._status_label.setAlignment(Qt.AlignCenter)
        self._bind(self.status.display, self._status_label.setText)
        lay.addWidget(self._status_label)

        self._lock_label = QLabel("")
        self._lock_label.setObjectName("lockLabel")
        self._lock_label.setAlignment(Qt.AlignCenter)
        lay.addWidget(self._lock_label)
        lay.addStretch(1)
        return tab

    # ------------------------------------------------------------------ #
    #  Window events                                                       #
    # ------------------------------------------------------------------ #

    def showEvent(self, event):
        super().showEvent(event)
        if not self._attached:
            self._attached = True
            QTimer.singleShot(0, self.surface.attach)

    def changeEvent(self, event):
        if event.type() == QEvent.ActivationChange:
            self.surface.set_active(self.isActiveWindow())
        super().changeEvent(event)

    def moveEvent(self, event):
        super().moveEvent(event)
        self.surface.track_geometry()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.surface.track_geometry()

    # ------------------------------------------------------------------ #
    #  Overlay state                                                       #
    # ------------------------------------------------------------------ #

    def _apply_overlay_state(self, state):
        self._stack.setCurrentIndex(1 if state.mini else 0)
        self.setStyleSheet(build_stylesheet(locked=state.locked))
        self._lock_label.setText(self.controller.lock_label(state))

    # ------------------------------------------------------------------ #
    #  Task handlers                                                       #
    # ------------------------------------------------------------------ #

    def _on_toggle(self, index):
        try:
            self.tracker.toggle(index)
        except OSError as e:
            log.error(f"Failed to write session for slot {index}", exc_info=True)
            QMessageBox.warning(self, "Session Not Saved", f"The session could not be written to the log:\n{e}")
        set_row_running(self._rows[index], self.tracker.timer(index).running)

    def _on_reset(self, index):
        try:
            self.tracker.reset(index)
        except OSError as e:
            log.error(f"Failed to write session for slot {index} during reset", exc_info=True)
            QMessageBox.warning(self, "Session Not Saved", f"The session could not be written to the log:\n{e}")
        set_row_running(self._rows[index], False)

    # ------------------------------------------------------------------ #
    #  Stats                                                               #
    # ------------------------------------------------------------------ #

    def _on_tab_changed(self, index):
        if self._tabs.tabText(index) == "Stats":
            self._refresh_stats()

    def _refresh_stats(self):
        try:
            report = self.tracker.stats_report(self.settings["stats_days"])
        except OSError:
            log.warning("Failed to load session log for stats", exc_info=True)
            report = "Error loading logs"
        self._stats["text"].setPlainText(report)

    def _on_clear_history(self):
        if self.settings["confirm_clear"]:
            if QMessageBox.question(
                    self, "Delete All Stats?",
                    "This will permanently delete all logged data.\n\nAre you sure?"
            ) != QMessageBox.Yes:
                return
        try:
            self.tracker.clear_all_history()
        except OSError as e:
            log.error("Failed to clear session history", exc_info=True)
            QMessageBox.critical(self, "Clear Failed", f"Could not delete the session log:\n{e}")
            return
        self._stats["text"].setPlainText("All stats deleted")

    # ------------------------------------------------------------------ #
    #  Window close                                                        #
    # ------------------------------------------------------------------ #

    def closeEvent(self, event):
        self.watcher.stop()
        self.status.stop()
        if hasattr(self.input_source, "stop"):
            self.input_source.stop()
        try:
            self.tracker.shutdown(log_running=self.settings["log_running_on_exit"])
        except OSError as e:
            QMessageBox.warning(self, "Save Error",
                                f"Failed to save running sessions:\n{e}")
        event.accept()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    app = QApplication(sys.argv)
    window = MainWindow()
    window.show()
    sys.exit(app.exec())
