"""
Logging setup for the tfblueprint CLI.

Console messages go to stderr so that generated output written to stdout
(rendered scripts, guides, terraform output JSON) can be piped. A
timestamped debug log is also kept per run unless disabled.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Older run logs beyond this count are removed
KEEP_LOG_FILES = 20


def get_log_dir() -> Path:
    """``~/.cache/tfblueprint/logs`` (or ``%LOCALAPPDATA%`` on Windows)."""
    if os.name == "nt":
        root = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~")
    else:
        root = os.environ.get("XDG_CACHE_HOME") or os.path.expanduser("~/.cache")
    return Path(root) / "tfblueprint" / "logs"


def _prune_old_logs(log_dir: Path, keep: int = KEEP_LOG_FILES):
    logs = sorted(log_dir.glob("tfblueprint_*.log"))
    for stale in logs[:-keep] if keep else logs:
        try:
            stale.unlink()
        except OSError:
            pass


def setup_logging(
    log_level: str = "INFO",
    log_file: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure the root logger for a CLI run.

    Args:
        log_level: Console level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Also write a DEBUG-level log file for this run
        log_dir: Directory for log files, get_log_dir() when None

    Returns:
        The root logger
    """
    root = logging.getLogger()
    console_level = getattr(logging, str(log_level).upper(), logging.INFO)
    root.handlers.clear()
    root.setLevel(logging.DEBUG if log_file else console_level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console)

    if not log_file:
        return root

    directory = Path(log_dir) if log_dir else get_log_dir()
    directory.mkdir(parents=True, exist_ok=True)
    _prune_old_logs(directory, KEEP_LOG_FILES - 1)

    path = directory / f"tfblueprint_{datetime.now():%Y%m%d_%H%M%S}.log"
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    root.addHandler(handler)
    root.debug(f"Logging to file: {path}")
    return root
