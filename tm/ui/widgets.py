"""Row and tab builders for the overlay.

Each builder returns a (container, widget_dict) tuple. The widget_dict maps
logical names to sub-widgets for later updates.
"""

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtGui import QFont
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)
from tm.ui.theme import COLORS, MONO_FONT

PLAY = "▶"
PAUSE = "⏸"
RESET = "↺"


# Carries StringBinding updates from whatever thread published them onto the GUI thread. The relay lives in the
# GUI thread, so Qt queues the emit.
class BindingRelay(QObject):
    changed = Signal(str)

    def __init__(self, binding, parent=None):
        super().__init__(parent)
        binding.add_listener(self.changed.emit)


# Same idea for OverlayController state changes.
class StateRelay(QObject):
    changed = Signal(object)

    def __init__(self, controller, parent=None):
        super().__init__(parent)
        controller.add_listener(self.changed.emit)


def mono_font(size=10, bold=False):
    font = QFont(MONO_FONT, size)
    font.setStyleHint(QFont.Monospace)
    font.setBold(bold)
    return font


def build_task_row(index, timer, on_toggle, on_reset, on_rename):
    """Start/pause and reset buttons, the task name entry, and the time label.

    Returns (container, widget_dict).
    """
    rc = QWidget()
    rc_lay = QHBoxLayout(rc)
    rc_lay.setContentsMargins(0, 0, 0, 0)
    rc_lay.setSpacing(4)

    start_btn = QPushButton(PAUSE if timer.running else PLAY)
    start_btn.setFixedWidth(28)
    start_btn.clicked.connect(lambda _=False: on_toggle(index))
    rc_lay.addWidget(start_btn)

    reset_btn = QPushButton(RESET)
    reset_btn.setFixedWidth(28)
    reset_btn.clicked.connect(lambda _=False: on_reset(index))
    rc_lay.addWidget(reset_btn)

    name_edit = QLineEdit(timer.name)
    name_edit.setPlaceholderText("Task...")
    name_edit.textChanged.connect(lambda text: on_rename(index, text))
    rc_lay.addWidget(name_edit, 1)

    time_lbl = QLabel(timer.display.get())
    time_lbl.setFont(mono_font())
    time_lbl.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
    rc_lay.addWidget(time_lbl)

    widget_dict = {
        "start": start_btn, "reset": reset_btn,
        "name": name_edit, "time": time_lbl,
        "container": rc,
    }
    return rc, widget_dict


def set_row_running(widget_dict, running):
    widget_dict["start"].setText(PAUSE if running else PLAY)
    color = COLORS["running_text"] if running else COLORS["text"]
    widget_dict["time"].setStyleSheet(f"color: {color};")


def build_stats_tab(on_refresh, on_clear):
    """Scrollable monospace report with Refresh and Clear History buttons.

    Returns (container, widget_dict).
    """
    rc = QWidget()
    lay = QVBoxLayout(rc)
    lay.setContentsMargins(0, 0, 0, 0)
    lay.setSpacing(4)

    text = QPlainTextEdit("Loading...")
    text.setReadOnly(True)
    text.setFont(mono_font(9))
    text.setMinimumHeight(110)
    lay.addWidget(text, 1)

    btn_row = QHBoxLayout()
    refresh_btn = QPushButton("Refresh")
    refresh_btn.clicked.connect(lambda _=False: on_refresh())
    btn_row.addWidget(refresh_btn)

    clear_btn = QPushButton("Clear History")
    clear_btn.setObjectName("dangerButton")
    clear_btn.clicked.connect(lambda _=False: on_clear())
    btn_row.addWidget(clear_btn)
    lay.addLayout(btn_row)

    return rc, {"text": text, "refresh": refresh_btn, "clear": clear_btn}


def build_separator():
    sep = QFrame()
    sep.setFixedHeight(1)
    sep.setStyleSheet(f"background-color: {COLORS['separator']};")
    return sep
