# =============================================================================
# control_room/logging/config.py
# Logging Configuration for Control Room
# =============================================================================
"""
Process-wide logging for the dashboard.

Streamlit re-runs the page script on every interaction, so ``setup_logging``
only installs handlers once per process unless ``force=True`` is passed.
Log files rotate by day name: ``logs/control_room_YYYY-MM-DD.log``.
"""

import logging
import sys
import time
from datetime import date
from pathlib import Path
from typing import Any, List, Optional


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_DIR = Path("logs")

# Network client loggers report every request at INFO
QUIET_LOGGERS = ("urllib3", "httpx", "httpcore", "hpack", "supabase", "postgrest")

_configured = False


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_filename: Optional[str] = None,
    log_dir: Optional[Path] = None,
    force: bool = False,
) -> bool:
    """
    Install the console (and optionally file) handlers on the root logger.

    Args:
        level: Root logging level
        log_to_file: Also write to ``log_dir/log_filename``
        log_filename: Defaults to ``control_room_<today>.log``
        log_dir: Defaults to ``./logs``
        force: Reconfigure even if logging was already set up

    Returns:
        True when handlers were installed, False when already configured.
    """
    global _configured
    if _configured and not force:
        return False

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_to_file:
        directory = Path(log_dir) if log_dir is not None else LOG_DIR
        directory.mkdir(parents=True, exist_ok=True)
        filename = log_filename or f"control_room_{date.today().isoformat()}.log"
        handlers.append(logging.FileHandler(directory / filename, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    logging.getLogger("control_room").info(
        f"Logging ready at {logging.getLevelName(level)}"
        + (f", file {handlers[-1].baseFilename}" if log_to_file else "")
    )
    return True


def get_logger(name: str) -> logging.Logger:
    """Shorthand for ``logging.getLogger(name)``."""
    return logging.getLogger(name)


class LogContext:
    """
    Times a block and logs its outcome.

    Usage:
        with LogContext(logger, "Loading dashboard", table="deals") as ctx:
            ...
        ctx.elapsed   # seconds

    Start is logged at DEBUG (drains and dashboard loads run often); the
    outcome at INFO, or at ERROR with the traceback when the block raised.
    Exceptions are never suppressed.
    """

    def __init__(self, logger: logging.Logger, operation: str, **fields: Any):
        self.logger = logger
        self.operation = operation
        self.fields = fields
        self.elapsed: Optional[float] = None
        self._started: Optional[float] = None

    def _label(self) -> str:
        if not self.fields:
            return self.operation
        extra = ", ".join(f"{k}={v}" for k, v in self.fields.items())
        return f"{self.operation} [{extra}]"

    def __enter__(self) -> "LogContext":
        self._started = time.perf_counter()
        self.logger.debug(f"{self._label()}: started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.elapsed = time.perf_counter() - self._started
        if exc_type is None:
            self.logger.info(f"{self._label()}: done in {self.elapsed:.2f}s")
        else:
            self.logger.error(
                f"{self._label()}: failed after {self.elapsed:.2f}s: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        return False
