import logging
import os
from pathlib import Path
from logging.handlers import RotatingFileHandler
from tm.common.setup import PATHS
from datetime import datetime

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(threadName)s:%(filename)s:%(lineno)d] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Adds the handler built by `factory` to the logger, unless a handler of the same name is already attached (module
# reloads and repeated get_logger() calls would otherwise double every line).
def _attach(logger: logging.Logger, handler_name, level, fmt, factory):
    if any(h.get_name() == handler_name for h in logger.handlers):
        return None
    handler = factory()
    handler.setLevel(level)
    handler.setFormatter(fmt)
    handler.set_name(handler_name)
    logger.addHandler(handler)
    return handler

# Keeps only the newest `keep` per-run debug logs in the given folder.
def _prune_runs(folder: Path, name, keep):
    runs = sorted(folder.glob(f"{name}_*.log"),key=lambda p: p.stat().st_mtime,reverse=True)
    for run in runs[keep:]:
        try: run.unlink()
        except OSError: pass

def get_logger(
        name = "taskmonitor",
        level = logging.INFO,
        log_dir: Path | None = None,
        max_bytes = 5 * 1024 * 1024,
        backup_count = 5,
        persistent = True,
        console = False,
        historical_debugs: int = 10
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(min(level, logging.DEBUG) if historical_debugs > 0 else level)

    log_dir = log_dir or PATHS.logs
    log_dir.mkdir(parents=True,exist_ok=True)
    fmt = logging.Formatter(LOG_FORMAT,LOG_DATE_FORMAT)

    # Rotating log that survives across runs
    if persistent:
        _attach(logger, f"{name}:persistent", level, fmt, lambda: RotatingFileHandler(
            filename=log_dir / f"{name}.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        ))

    # Latest-only log, overwritten each run
    _attach(logger, f"{name}:latest", level, fmt, lambda: logging.FileHandler(
        filename=log_dir / "latest.log",
        mode="w",
        encoding="utf-8",
        delay=True,
    ))

    # One full debug log per run, so a flaky chord or a dropped session can be traced after the fact
    if historical_debugs > 0:
        debug_dir = log_dir / "debug"
        debug_dir.mkdir(parents=True,exist_ok=True)
        added = _attach(logger, f"{name}:historical_debug", logging.DEBUG, fmt, lambda: logging.FileHandler(
            filename=debug_dir / f"{name}_{datetime.now():%Y-%m-%d_%H-%M-%S}.log",
            encoding="utf-8",
            delay=True,
        ))
        if added is not None:
            _prune_runs(debug_dir, name, historical_debugs)

    if console:
        _attach(logger, f"{name}:console", level, fmt, logging.StreamHandler)

    return logger

# TM_LOG_CONSOLE=1 mirrors the log to stderr, handy when running from a terminal.
log = get_logger(
    level=logging.DEBUG if os.getenv("TM_DEBUG") else logging.INFO,
    console=bool(os.getenv("TM_LOG_CONSOLE")),
    historical_debugs=10,
)
log.info("=== INITIALIZED NEW SESSION ===")
