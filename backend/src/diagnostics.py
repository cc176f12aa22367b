"""Diagnostics for the bravepink process.

init_diagnostics() wires up three things under APP_DIR:
JSON log lines (rotation bounds disk use), a faulthandler file for
interpreter-level crashes, and a crash dump per unhandled exception.
"""

import datetime
import faulthandler
import json
import logging
import logging.handlers
import os
import sys
import traceback
from pathlib import Path

from security import strip_pii

logger = logging.getLogger(__name__)

APP_DIR = "~/.bravepink"
LOG_FILENAME = "bravepink.log"
FAULT_FILENAME = "bravepink_fault.log"

# Crash dumps kept on disk; older ones are pruned after each new dump
MAX_CRASH_REPORTS = 5


def _app_path(*parts: str) -> str:
    return os.path.join(os.path.expanduser(APP_DIR), *parts)


def resolve_log_dir(requested: str = "") -> str:
    """Log directory to use; APP_LOG_DIR values outside APP_DIR are ignored."""
    if not requested:
        return _app_path("logs")
    resolved = os.path.realpath(requested)
    root = os.path.realpath(os.path.expanduser(APP_DIR))
    if os.path.commonpath([resolved, root]) != root:
        logger.warning("APP_LOG_DIR outside %s, using default", APP_DIR)
        return _app_path("logs")
    return resolved


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.datetime.fromtimestamp(
                record.created, tz=datetime.timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry)


def setup_structured_logging(log_dir: str | None = None) -> str:
    """Attach a rotating JSON handler to the root logger; returns the log dir.

    Level comes from APP_LOG_LEVEL (default INFO).
    """
    log_dir = resolve_log_dir(log_dir or os.environ.get("APP_LOG_DIR", ""))
    os.makedirs(log_dir, mode=0o700, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, LOG_FILENAME), maxBytes=5_000_000, backupCount=5
    )
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, os.environ.get("APP_LOG_LEVEL", "INFO").upper(), logging.INFO))
    root.addHandler(handler)
    return log_dir


def setup_faulthandler(log_dir: str):
    """Send interpreter-level crash tracebacks to FAULT_FILENAME.

    Not the rotating log: rotation would close the descriptor faulthandler holds.
    """
    fault_path = os.path.join(log_dir, FAULT_FILENAME)
    try:
        fault_file = open(fault_path, "a", buffering=1)  # noqa: SIM115
        os.chmod(fault_path, 0o600)
        faulthandler.enable(file=fault_file, all_threads=True)
    except OSError as e:
        print(f"WARNING: Could not enable faulthandler: {e}", file=sys.stderr)


def _prune_crash_reports(crash_dir: str):
    """Keep only the newest MAX_CRASH_REPORTS dumps."""
    dumps = sorted(
        Path(crash_dir).glob("crash_*.json"),
        key=lambda f: f.stat().st_mtime,
        reverse=True,
    )
    for old in dumps[MAX_CRASH_REPORTS:]:
        old.unlink(missing_ok=True)


def write_crash_report(exc_type, exc_value, exc_tb) -> Path:
    """Write a PII-scrubbed JSON dump of one exception; returns its path."""
    crash_dir = _app_path("crash_reports")
    os.makedirs(crash_dir, mode=0o700, exist_ok=True)
    stamp = datetime.datetime.now(tz=datetime.timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    report = {
        "timestamp": stamp,
        "exception_type": exc_type.__name__ if exc_type else "Unknown",
        "exception_message": str(exc_value),
        "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
        "python_version": sys.version,
        "platform": sys.platform,
    }
    # strip_pii takes a Sentry event; the dump rides in its "extra" block
    report = strip_pii({"extra": report}, {})["extra"]

    path = Path(crash_dir) / f"crash_{stamp}.json"
    old_umask = os.umask(0o077)
    try:
        path.write_text(json.dumps(report, indent=2))
    finally:
        os.umask(old_umask)
    _prune_crash_reports(crash_dir)
    return path


def setup_excepthook():
    """Dump unhandled exceptions to disk, then defer to the default hook."""

    def _crash_excepthook(exc_type, exc_value, exc_tb):
        try:
            write_crash_report(exc_type, exc_value, exc_tb)
        except Exception as e:  # noqa: BLE001
            print(f"WARNING: Could not write crash report: {e}", file=sys.stderr)
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = _crash_excepthook


def init_diagnostics():
    """Initialize all diagnostic layers. Call from main.py."""
    log_dir = setup_structured_logging()
    setup_faulthandler(log_dir)
    setup_excepthook()
    logger.info("Diagnostics initialized: logging=%s, faulthandler=enabled", log_dir)
