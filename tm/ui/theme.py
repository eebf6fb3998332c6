"""Colours and stylesheet for the overlay. One dark theme; the lock tint is the only variant."""

COLORS = {
    "bg": "rgba(20, 20, 20, 240)",
    "bg_locked": "rgba(50, 0, 0, 150)",
    "text": "#E6E6E6",
    "muted": "#9A9A9A",
    "running_text": "#7CFC9A",
    "entry_bg": "#2A2A2A",
    "button_bg": "#333333",
    "button_hover": "#444444",
    "danger": "#C0392B",
    "lock_text": "#FF8A80",
    "separator": "#3A3A3A",
}

MONO_FONT = "Consolas"


def build_stylesheet(locked=False):
    c = COLORS
    bg = c["bg_locked"] if locked else c["bg"]
    return f"""
        #overlayRoot {{ background-color: {bg}; }}
        QLabel {{ color: {c['text']}; background: transparent; }}
        QLabel#lockLabel {{ color: {c['lock_text']}; font-weight: bold; }}
        QLabel#statusLabel {{ color: {c['muted']}; }}
        QLineEdit {{ color: {c['text']}; background-color: {c['entry_bg']};
                     border: 1px solid {c['separator']}; padding: 1px 4px; }}
        QPushButton {{ color: {c['text']}; background-color: {c['button_bg']};
                       border: none; padding: 2px 6px; }}
        QPushButton:hover {{ background-color: {c['button_hover']}; }}
        QPushButton#dangerButton {{ background-color: {c['danger']}; }}
        QPlainTextEdit {{ color: {c['text']}; background: transparent; border: none; }}
        QTabWidget::pane {{ border: none; }}
        QTabBar::tab {{ color: {c['muted']}; background: transparent; padding: 2px 10px; }}
        QTabBar::tab:selected {{ color: {c['text']}; border-bottom: 1px solid {c['text']}; }}
    """
