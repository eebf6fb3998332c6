"""Per-day totals derived from the session log.

Nothing here is persisted; every view reloads the log and recomputes.
"""

from dataclasses import dataclass, field
from tm.core.timer_state import format_elapsed

DEFAULT_DAYS = 7
EMPTY_REPORT = "No data yet\n\nStart tracking to see stats"


def format_duration(seconds):
    return format_elapsed(seconds)


@dataclass
class DailyStats:
    date: str
    total_time: int = 0
    breakdown: dict = field(default_factory=dict)
    sessions: int = 0

    def add(self, entry):
        self.total_time += entry.duration_seconds
        self.breakdown[entry.task_name] = self.breakdown.get(entry.task_name, 0) + entry.duration_seconds
        self.sessions += 1

    # Tasks by descending time, alphabetical on ties.
    def ranked_tasks(self):
        return sorted(self.breakdown.items(), key=lambda item: (-item[1], item[0]))


def aggregate(entries):
    """Group entries by calendar date into DailyStats, keyed by the YYYY-MM-DD date."""
    stats = {}
    for entry in entries:
        day = stats.get(entry.date)
        if day is None:
            day = stats[entry.date] = DailyStats(date=entry.date)
        day.add(entry)
    return stats


# Most recent `limit` days first. ISO dates sort correctly as strings.
def recent_days(stats, limit=DEFAULT_DAYS):
    dates = sorted(stats, reverse=True)
    if limit is not None:
        dates = dates[:max(0, limit)]
    return [stats[d] for d in dates]


@dataclass
class StatsSummary:
    total_sessions: int
    days: list

    @property
    def empty(self):
        return self.total_sessions == 0

    def render(self):
        if self.empty:
            return EMPTY_REPORT
        lines = [f"Total Sessions: {self.total_sessions}", ""]
        for day in self.days:
            lines.append(day.date)
            lines.append(f"Total: {format_duration(day.total_time)} ({day.sessions} sessions)")
            for name, seconds in day.ranked_tasks():
                lines.append(f"  {name}: {format_duration(seconds)}")
            lines.append("")
        return "\n".join(lines)


def summarize(entries, limit_days=DEFAULT_DAYS):
    entries = list(entries)
    return StatsSummary(total_sessions=len(entries), days=recent_days(aggregate(entries), limit_days))
