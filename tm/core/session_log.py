import json
import re
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from tm.common.logger import log

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# Fractional seconds of any length. Nanosecond writers trim trailing zeros, so a fraction can have 1 to 9 digits,
# and datetime.fromisoformat() on 3.10 only takes exactly 3 or 6.
_FRACTION = re.compile(r"\.(\d+)")


# One completed Start -> Stop interval of a task. Never mutated once built.
@dataclass(frozen=True)
class SessionEntry:
    task_name: str
    duration_seconds: int
    start_time: datetime
    end_time: datetime
    date: str

    # Builds an entry, deriving the calendar date from the local start time.
    @staticmethod
    def build(task_name, duration_seconds, start_time, end_time):
        return SessionEntry(
            task_name=task_name,
            duration_seconds=int(duration_seconds),
            start_time=start_time,
            end_time=end_time,
            date=start_time.astimezone().strftime("%Y-%m-%d"),
        )

    def to_dict(self):
        return {
            "task_name": self.task_name,
            "duration_seconds": self.duration_seconds,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "date": self.date,
        }

    # Parses one record, returning None for anything that isn't a well-formed entry.
    @staticmethod
    def from_dict(record):
        if not isinstance(record, dict):
            return None
        name = record.get("task_name")
        duration = record.get("duration_seconds")
        date = record.get("date")
        if not isinstance(name, str) or not isinstance(date, str) or not _DATE_RE.match(date):
            return None
        if isinstance(duration, bool) or not isinstance(duration, int) or duration < 1:
            return None
        start = parse_timestamp(record.get("start_time"))
        end = parse_timestamp(record.get("end_time"))
        if start is None or end is None:
            return None
        return SessionEntry(name, duration, start, end, date)


# Reads an ISO 8601 timestamp into an aware datetime. Naive values are taken as local time.
def parse_timestamp(value):
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.astimezone()
    except (ValueError, OverflowError, OSError):
        return None
    return parsed


class SessionLog:
    """Append-only JSON Lines store of completed sessions.

    One object per line, so a torn or hand-edited line only costs that one record.
    Appends from several stopping tasks are serialized through a lock. There is no
    way to edit or drop a single record; clear() removes the whole file.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def append(self, entry: SessionEntry):
        line = json.dumps(entry.to_dict(), ensure_ascii=False)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        log.info(f"Logged session '{entry.task_name}' ({entry.duration_seconds}s) to '{self.path}'")

    def load_all(self):
        with self._lock:
            try:
                with open(self.path, "r", encoding="utf-8", errors="replace") as f:
                    lines = f.readlines()
            except FileNotFoundError:
                return []

        entries = []
        skipped = 0
        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                entry = SessionEntry.from_dict(json.loads(line))
            # JSONDecodeError is a ValueError; oversized int literals raise a plain one, deep nesting RecursionError
            except (ValueError, RecursionError):
                entry = None
            if entry is None:
                skipped += 1
                continue
            entries.append(entry)

        if skipped:
            log.warning(f"Skipped {skipped} malformed record(s) while loading '{self.path}'")
        entries.sort(key=lambda e: e.start_time, reverse=True)
        return entries

    def clear(self):
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                log.debug(f"Clear requested but '{self.path}' does not exist, nothing to do")
                return
        log.info(f"Cleared all session history at '{self.path}'")
