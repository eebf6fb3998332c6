import copy
import json
from tm.common.logger import log
from tm.common.setup import PATHS

#region === Defaults and Paths ===

SETTINGS_PATH = PATHS.settings
SESSION_LOG_PATH = PATHS.session_log

# Default values for every setting. Anything missing or of the wrong shape in settings.json falls back to these.
_SETTINGS_DEFAULTS = {
    "task_slots": 3,
    "tick_interval_ms": 1000,
    "poll_interval_ms": 50,
    "watcher_start_delay_ms": 1000,
    "status_interval_ms": 1000,
    "lock_chord": ["ctrl", "shift", "l"],
    "mini_chord": ["ctrl", "shift", "k"],
    "chord_release_polls": 1,
    "opacity_focused": 255,
    "opacity_unfocused": 180,
    "opacity_click_through": 120,
    "normal_size": [300, 220],
    "mini_size": [450, 40],
    "mini_top_margin": 10,
    "stats_days": 7,
    "always_on_top": True,
    "confirm_clear": True,
    "log_running_on_exit": True,
}

# Inclusive bounds for the integer settings. Out of range counts as invalid and gets defaulted.
_INT_BOUNDS = {
    "task_slots": (1, 9),
    "tick_interval_ms": (100, 60_000),
    "poll_interval_ms": (10, 1000),
    "watcher_start_delay_ms": (0, 30_000),
    "status_interval_ms": (100, 60_000),
    "chord_release_polls": (1, 20),
    "opacity_focused": (0, 255),
    "opacity_unfocused": (0, 255),
    "opacity_click_through": (120, 150),
    "mini_top_margin": (0, 2000),
    "stats_days": (1, 366),
}

# Helper to return a truly fresh, default settings dict.
def build_default_settings():
    return copy.deepcopy(_SETTINGS_DEFAULTS)

#endregion === Defaults and Paths ===

#region === Validation ===

def _valid(key, value):
    default = _SETTINGS_DEFAULTS[key]
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        low, high = _INT_BOUNDS.get(key, (None, None))
        return (low is None or value >= low) and (high is None or value <= high)
    if key.endswith("_chord"):
        return (isinstance(value, list) and len(value) > 0
                and all(isinstance(k, str) and k.strip() for k in value))
    if key.endswith("_size"):
        return (isinstance(value, list) and len(value) == 2
                and all(isinstance(v, int) and not isinstance(v, bool) and v > 0 for v in value))
    return isinstance(value, type(default))

#endregion === Validation ===

#region === Saving and Loading Settings ===

# Loads settings from SETTINGS_PATH, defaulting (and reporting) every missing or invalid key. A missing file is a
# normal first run; an unreadable one falls back to defaults with a warning.
def load_settings(path=None):
    path = path or SETTINGS_PATH
    try:
        if not path.exists():
            log.info(f"No settings file at '{path}', using defaults.")
            return build_default_settings()

        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise TypeError(f"settings root is {type(raw).__name__}, expected an object")

        settings = build_default_settings()
        defaulted_values = set()
        for key in _SETTINGS_DEFAULTS:
            if key not in raw:
                defaulted_values.add(key)
            elif not _valid(key, raw[key]):
                defaulted_values.add(key)
            else:
                settings[key] = raw[key]

        unknown = set(raw) - set(_SETTINGS_DEFAULTS)
        if unknown:
            log.warning(f"Ignoring unknown settings: {', '.join(sorted(unknown))}")
        if defaulted_values:
            log.warning(f"Loaded settings from '{path}', but with missing or invalid values that were defaulted: "
                        f"{', '.join(sorted(defaulted_values))}")
        else:
            log.info(f"Successfully loaded settings from '{path}'.")
        return settings
    except (json.JSONDecodeError, OSError, TypeError):
        log.warning(f"Ran into an error while loading '{path}', falling back to default settings.", exc_info=True)
        return build_default_settings()

# Write the given settings to disk.
def save_settings(settings, path=None):
    path = path or SETTINGS_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2)
    log.info(f"Successfully saved settings to '{path}'")

#endregion === Saving and Loading Settings ===
