import os
from pathlib import Path
from dataclasses import dataclass

# Lil helper function to create missing directories on the way to a path.
def ensure_directory(path: Path):
    path.mkdir(parents=True,exist_ok=True)
    return path

# Dataclass for accessing paths across program.
@dataclass(frozen=False)
class ProjectPaths:

    data: Path
    logs: Path

    session_log: Path
    settings: Path

    @staticmethod
    def build():
        # TM_DATA_DIR lets tests and portable installs keep everything in one place. Otherwise we use the
        # same per-user folder the overlay has always written its task log to.
        override = os.getenv("TM_DATA_DIR")
        if override:
            data = ensure_directory(Path(override))
        else:
            data = ensure_directory(Path.home() / ".monitor_logs")

        logs = ensure_directory(data / "logs")

        return ProjectPaths(
            data = data,
            logs = logs,
            session_log = data / "task_logs.jsonl",
            settings = data / "settings.json",
        )
PATHS = ProjectPaths.build()
